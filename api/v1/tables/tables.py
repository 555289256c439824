"""Tables API endpoints - data tables and their primary field"""

from uuid import UUID
from fastapi import APIRouter, Depends, status

from schemas.table import TableCreate, TableDefinition, PrimaryFieldUpdate, PrimaryFieldOut
from repositories.table_repository import TableRepository, get_table_repository
from services.field_schema_store import FieldSchemaStore, get_field_schema_store

router = APIRouter()


@router.get("/", response_model=list[TableDefinition])
def list_tables(table_repo: TableRepository = Depends(get_table_repository)):
    """List all data tables"""
    return table_repo.get_all()


@router.post("/", response_model=TableDefinition, status_code=status.HTTP_201_CREATED)
def create_table(
    table_data: TableCreate,
    table_repo: TableRepository = Depends(get_table_repository),
):
    return table_repo.create(table_data)


@router.get("/{table_id}/", response_model=TableDefinition)
def get_table(
    table_id: UUID,
    table_repo: TableRepository = Depends(get_table_repository),
):
    return table_repo.get_or_404(table_id)


@router.get("/{table_id}/primary-field/", response_model=PrimaryFieldOut)
def get_primary_field(
    table_id: UUID,
    table_repo: TableRepository = Depends(get_table_repository),
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    table = table_repo.get_or_404(table_id)
    return PrimaryFieldOut(
        primary_field_name=table.primary_field_name,
        effective_primary_field=store.effective_primary_field(table_id),
    )


@router.put("/{table_id}/primary-field/", response_model=PrimaryFieldOut)
def set_primary_field(
    table_id: UUID,
    data: PrimaryFieldUpdate,
    store: FieldSchemaStore = Depends(get_field_schema_store),
):
    """
    Choose the field shown as record title.

    `auto` picks the first regular field, `id` shows the record id, any
    other value must name a stored, non-system field.
    """
    table = store.select_primary_field(table_id, data.primary_field)
    return PrimaryFieldOut(
        primary_field_name=table.primary_field_name,
        effective_primary_field=store.effective_primary_field(table_id),
    )
