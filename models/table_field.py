"""Table field model - one runtime-defined column of a data table"""

import uuid
from typing import Any, Optional, TYPE_CHECKING

from sqlalchemy import String, Boolean, Integer, ForeignKey, UniqueConstraint, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, JSONType

if TYPE_CHECKING:
    from models.data_table import DataTable


class TableField(Base):
    """
    TableField stores the definition of a single column.

    Ordering: order_index is authoritative; position is the legacy
    fallback for rows written before order_index existed.
    """
    __tablename__ = "table_fields"

    table_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("data_tables.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Sanitised internal name and human-facing label
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Field kind (see services.field_type_registry)
    type: Mapped[str] = mapped_column(String(50), nullable=False)

    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    order_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # NULL = default section
    group_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    default_value: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)

    # Kind-specific settings (choices, formula, linked_table_id, lookup_*, ...)
    options: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)

    table: Mapped["DataTable"] = relationship("DataTable", back_populates="fields")

    __table_args__ = (
        UniqueConstraint('table_id', 'name', name='uq_table_field_name'),
    )

    def __repr__(self):
        return f"<TableField(name='{self.name}', type='{self.type}', order_index={self.order_index})>"
