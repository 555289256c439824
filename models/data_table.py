"""Data table model - a user-defined table whose columns are managed at runtime"""

from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.table_field import TableField
    from models.field_section import FieldSection


class DataTable(Base):
    """
    DataTable represents one user-editable table.

    Each table:
    - Has an ordered list of fields (TableField)
    - Groups its fields into named sections (FieldSection)
    - Optionally pins a primary display field
    """
    __tablename__ = "data_tables"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # NULL = automatic, "id" = identity column, otherwise a field name
    primary_field_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    fields: Mapped[list["TableField"]] = relationship(
        "TableField",
        back_populates="table",
        cascade="all, delete-orphan",
    )

    sections: Mapped[list["FieldSection"]] = relationship(
        "FieldSection",
        back_populates="table",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<DataTable(name='{self.name}', primary='{self.primary_field_name}')>"
