"""Navigation schemas - interface groups and the pages inside them"""

from pydantic import BaseModel, Field as PydanticField
from uuid import UUID
from typing import Optional


class InterfaceGroupCreate(BaseModel):
    name: str = PydanticField(..., min_length=1, max_length=200)


class InterfacePageCreate(BaseModel):
    name: str = PydanticField(..., min_length=1, max_length=200)
    group_id: Optional[UUID] = None


class InterfacePageRead(BaseModel):
    id: UUID
    name: str
    group_id: Optional[UUID] = None
    order_index: int = 0

    model_config = {"from_attributes": True}


class InterfaceGroupRead(BaseModel):
    # None for the synthesised "Ungrouped" group
    id: Optional[UUID] = None
    name: str
    order_index: int = 0
    collapsed: bool = False
    is_system: bool = False
    pages: list[InterfacePageRead] = PydanticField(default_factory=list)

    model_config = {"from_attributes": True}


class PageMove(BaseModel):
    """Target group (None = ungrouped) and optional sibling anchor"""
    group_id: Optional[UUID] = None
    before_page_id: Optional[UUID] = None


class GroupReorder(BaseModel):
    group_ids: list[UUID]
