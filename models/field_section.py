"""Field section model - a named, ordered grouping of fields within a table"""

import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Boolean, Integer, ForeignKey, UniqueConstraint, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, JSONType

if TYPE_CHECKING:
    from models.data_table import DataTable


class FieldSection(Base):
    """
    Persisted settings for a section.

    Fields reference sections by name (TableField.group_name), so a section
    may exist implicitly before a row is written here.
    """
    __tablename__ = "field_sections"

    table_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("data_tables.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    default_collapsed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    default_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    permissions: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)

    table: Mapped["DataTable"] = relationship("DataTable", back_populates="sections")

    __table_args__ = (
        # Section names are unique per table (case-sensitive)
        UniqueConstraint('table_id', 'name', name='uq_field_section_name'),
    )

    def __repr__(self):
        return f"<FieldSection(name='{self.name}', order_index={self.order_index})>"
