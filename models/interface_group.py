"""Interface group model - a navigation group holding interface pages"""

from typing import TYPE_CHECKING

from sqlalchemy import String, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.interface_page import InterfacePage


class InterfaceGroup(Base):
    __tablename__ = "interface_groups"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    collapsed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    pages: Mapped[list["InterfacePage"]] = relationship(
        "InterfacePage",
        back_populates="group",
        order_by="InterfacePage.order_index"
    )

    def __repr__(self):
        return f"<InterfaceGroup(name='{self.name}', order_index={self.order_index})>"
