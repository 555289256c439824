"""Field Types API endpoints - read-only catalog of field kinds"""

from fastapi import APIRouter

from schemas.field_type import FieldTypeRead
from services.field_type_registry import describe_kind, list_kinds

router = APIRouter()


def _to_read(descriptor) -> FieldTypeRead:
    return FieldTypeRead(
        handle=descriptor.kind.value,
        label=descriptor.label,
        is_virtual=descriptor.is_virtual,
        storage_hint=descriptor.storage_hint,
        requires_options=descriptor.requires_options,
        option_schema=list(descriptor.option_schema),
    )


@router.get("/", response_model=list[FieldTypeRead])
def list_field_types():
    """List every field kind with its option keys"""
    return [_to_read(descriptor) for descriptor in list_kinds()]


@router.get("/{handle}/", response_model=FieldTypeRead)
def get_field_type(handle: str):
    """Unknown handles are answered with 400 (unknown field type)"""
    return _to_read(describe_kind(handle))
