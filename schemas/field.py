"""Field schemas - runtime-defined table columns"""

from pydantic import BaseModel, Field as PydanticField
from uuid import UUID
from datetime import datetime
from typing import Any, Optional


class FieldCreate(BaseModel):
    """Schema for creating a field; `label` is preferred, `name` is accepted for older clients"""
    label: Optional[str] = PydanticField(None, max_length=200)
    name: Optional[str] = PydanticField(None, max_length=200)
    type: str = PydanticField(..., max_length=50)
    required: bool = False
    group_name: Optional[str] = PydanticField(None, max_length=200)
    default_value: Any = None
    options: dict = PydanticField(default_factory=dict)


class FieldUpdate(BaseModel):
    """Schema for updating a field (only the fields that are set are applied)"""
    label: Optional[str] = PydanticField(None, max_length=200)
    internal_name: Optional[str] = PydanticField(None, max_length=100)
    type: Optional[str] = PydanticField(None, max_length=50)
    required: Optional[bool] = None
    group_name: Optional[str] = PydanticField(None, max_length=200)
    default_value: Any = None
    options: Optional[dict] = None

    model_config = {"from_attributes": True}


class FieldDefinition(BaseModel):
    """A field as read from the persistence boundary"""
    id: UUID
    table_id: UUID
    name: str
    label: Optional[str] = None
    type: str
    position: Optional[int] = None
    order_index: Optional[int] = None
    group_name: Optional[str] = None
    required: bool = False
    default_value: Any = None
    options: dict = PydanticField(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class FieldMove(BaseModel):
    """Move a field within or across sections; omit group_name to stay in the current section"""
    group_name: Optional[str] = None
    before_field_id: Optional[UUID] = None
    after_field_id: Optional[UUID] = None


class FieldReorder(BaseModel):
    field_ids: list[UUID]


class TypeChangeCheckIn(BaseModel):
    type: str


class TypeChangeCheckOut(BaseModel):
    can_change: bool
    warning: Optional[str] = None
    destructive: bool = False


class FieldUpdateResponse(BaseModel):
    field: FieldDefinition
    warning: Optional[str] = None
