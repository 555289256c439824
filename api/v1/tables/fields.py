"""Fields API endpoints - typed columns of a data table"""

from uuid import UUID
from fastapi import APIRouter, Depends, status

from schemas.field import (
    FieldCreate,
    FieldDefinition,
    FieldMove,
    FieldReorder,
    FieldUpdate,
    FieldUpdateResponse,
    TypeChangeCheckIn,
    TypeChangeCheckOut,
)
from services.field_schema_store import FieldSchemaStore, SAME_SECTION, get_field_schema_store
from services.type_transition_checker import is_destructive_type_change

router = APIRouter()


def _field_of_table(store: FieldSchemaStore, table_id: UUID, field_id: UUID) -> FieldDefinition:
    """Resolve a field through its table so ids of other tables 404"""
    return store.get_field(field_id, table_id)


@router.get("/", response_model=list[FieldDefinition])
def list_fields(
    table_id: UUID,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """List the fields of a table in display order"""
    return store.list_fields(table_id)


@router.post("/", response_model=FieldDefinition, status_code=status.HTTP_201_CREATED)
def create_field(
    table_id: UUID,
    field_data: FieldCreate,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """
    Create a field at the end of the table.

    A group_name that has no section yet creates that section.
    """
    return store.create_field(table_id, field_data.model_dump())


@router.post("/reorder/", response_model=list[FieldDefinition])
def reorder_fields(
    table_id: UUID,
    data: FieldReorder,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    store.reorder_fields(table_id, data.field_ids)
    return store.list_fields(table_id)


@router.get("/{field_id}/", response_model=FieldDefinition)
def get_field(
    table_id: UUID,
    field_id: UUID,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    return _field_of_table(store, table_id, field_id)


@router.patch("/{field_id}/", response_model=FieldUpdateResponse)
def update_field(
    table_id: UUID,
    field_id: UUID,
    update_data: FieldUpdate,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """
    Update a field.

    Type changes are checked first; the response carries the warning the
    change produced, if any.
    """
    _field_of_table(store, table_id, field_id)
    patch = update_data.model_dump(exclude_unset=True)

    warning = None
    if patch.get("type"):
        warning = store.check_type_change(field_id, patch["type"]).warning

    field = store.update_field(field_id, patch)
    return FieldUpdateResponse(field=field, warning=warning)


@router.delete("/{field_id}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_field(
    table_id: UUID,
    field_id: UUID,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """
    Delete a field.

    Fails with 409 while lookup fields still use it as their source.
    """
    _field_of_table(store, table_id, field_id)
    store.delete_field(field_id)


@router.post("/{field_id}/move/", response_model=list[FieldDefinition])
def move_field(
    table_id: UUID,
    field_id: UUID,
    data: FieldMove,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """Move a field before/after a sibling or to the end of a section (omit group_name to stay)"""
    _field_of_table(store, table_id, field_id)
    move = data.model_dump(exclude_unset=True)
    store.move_field(
        field_id,
        target_group=move.get("group_name", SAME_SECTION),
        before_field_id=data.before_field_id,
        after_field_id=data.after_field_id,
    )
    return store.list_fields(table_id)


@router.post("/{field_id}/type-check/", response_model=TypeChangeCheckOut)
def check_type_change(
    table_id: UUID,
    field_id: UUID,
    data: TypeChangeCheckIn,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """Preview whether a type change is allowed and what it does to existing data"""
    field = _field_of_table(store, table_id, field_id)
    check = store.check_type_change(field_id, data.type)
    return TypeChangeCheckOut(
        can_change=check.can_change,
        warning=check.warning,
        destructive=is_destructive_type_change(field.type, data.type),
    )


@router.get("/{field_id}/result-candidates/", response_model=list[FieldDefinition])
def list_result_candidates(
    table_id: UUID,
    field_id: UUID,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """Fields of the linked table that a lookup field can display"""
    _field_of_table(store, table_id, field_id)
    return store.result_candidates(field_id)


@router.get("/{field_id}/formula-siblings/", response_model=list[FieldDefinition])
def list_formula_siblings(
    table_id: UUID,
    field_id: UUID,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """Fields a formula may reference"""
    _field_of_table(store, table_id, field_id)
    return store.formula_siblings(field_id)
