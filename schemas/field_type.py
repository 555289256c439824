"""Field type schemas"""

from pydantic import BaseModel, Field as PydanticField
from typing import Optional


class FieldTypeRead(BaseModel):
    """A field kind as offered to schema editors"""
    handle: str
    label: str
    is_virtual: bool
    # Postgres column type; None for computed kinds
    storage_hint: Optional[str] = None
    requires_options: bool = False
    option_schema: list[str] = PydanticField(default_factory=list)
