"""Section schemas - named groupings of fields within a table"""

from pydantic import BaseModel, Field as PydanticField
from uuid import UUID
from typing import Annotated, Literal, Optional, Union


class SectionBase(BaseModel):
    name: str
    display_name: Optional[str] = None
    order_index: int = 0
    default_collapsed: bool = False
    default_visible: bool = True
    permissions: dict = PydanticField(default_factory=dict)
    is_default: bool = False


class PersistedSection(SectionBase):
    """A section backed by a field_sections row"""
    kind: Literal["persisted"] = "persisted"
    id: UUID
    table_id: UUID

    model_config = {"from_attributes": True}

    @property
    def is_persisted(self) -> bool:
        return True


class VirtualSection(SectionBase):
    """A section implied by field group names (or the synthesised default) with no row yet"""
    kind: Literal["virtual"] = "virtual"
    id: None = None
    table_id: UUID

    @property
    def is_persisted(self) -> bool:
        return False


SectionDefinition = Annotated[Union[PersistedSection, VirtualSection], PydanticField(discriminator="kind")]


class SectionCreate(BaseModel):
    name: str = PydanticField(..., max_length=200)
    display_name: Optional[str] = PydanticField(None, max_length=200)
    default_collapsed: bool = False
    default_visible: bool = True
    permissions: dict = PydanticField(default_factory=dict)


class SectionUpdate(BaseModel):
    name: Optional[str] = PydanticField(None, max_length=200)
    display_name: Optional[str] = PydanticField(None, max_length=200)
    order_index: Optional[int] = None
    default_collapsed: Optional[bool] = None
    default_visible: Optional[bool] = None
    permissions: Optional[dict] = None


class SectionReorder(BaseModel):
    """Non-default sections in their new order, identified by id or (for implicit sections) by name"""
    sections: list[str]


class SectionMove(BaseModel):
    before: Optional[str] = None
