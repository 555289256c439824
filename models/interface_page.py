"""Interface page model - a navigation entry placed inside a group"""

import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Integer, ForeignKey, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.interface_group import InterfaceGroup


class InterfacePage(Base):
    __tablename__ = "interface_pages"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # NULL = ungrouped
    group_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("interface_groups.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    group: Mapped[Optional["InterfaceGroup"]] = relationship("InterfaceGroup", back_populates="pages")

    def __repr__(self):
        return f"<InterfacePage(name='{self.name}', order_index={self.order_index})>"
