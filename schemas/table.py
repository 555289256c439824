"""Data table schemas"""

from pydantic import BaseModel, Field as PydanticField
from uuid import UUID
from datetime import datetime
from typing import Optional


class TableCreate(BaseModel):
    name: str = PydanticField(..., min_length=1, max_length=200)
    description: Optional[str] = None


class TableDefinition(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    primary_field_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PrimaryFieldUpdate(BaseModel):
    """`auto`, `id`, or the name of a non-virtual, non-system field"""
    primary_field: str


class PrimaryFieldOut(BaseModel):
    primary_field_name: Optional[str] = None
    effective_primary_field: Optional[str] = None
