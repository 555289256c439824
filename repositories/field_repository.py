"""Field Repository - Data access layer for table fields"""

from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from core.errors import NotFoundError
from db.session import get_db
from models import TableField

# Columns a caller may write through create/update
WRITABLE_COLUMNS = (
    "name",
    "label",
    "type",
    "position",
    "order_index",
    "group_name",
    "required",
    "default_value",
    "options",
)


class FieldRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_or_404(self, field_id: UUID, table_id: UUID | None = None) -> TableField:
        """Get a field by ID, optionally scoped to a table"""
        stmt = select(TableField).where(TableField.id == field_id)
        if table_id is not None:
            stmt = stmt.where(TableField.table_id == table_id)
        field = self.session.scalar(stmt)
        if not field:
            raise NotFoundError(f"Field '{field_id}' not found")
        return field

    def get(self, field_id: UUID) -> TableField | None:
        return self.session.get(TableField, field_id)

    def get_all_by_table(self, table_id: UUID) -> list[TableField]:
        """
        Get all fields of a table in insertion order.

        Display ordering (order_index, position, name) is resolved by the
        schema store, which needs the raw list order as its last fallback.
        """
        stmt = (
            select(TableField)
            .where(TableField.table_id == table_id)
            .order_by(TableField.created_at, TableField.id)
        )
        return list(self.session.scalars(stmt).all())

    def create(self, table_id: UUID, field_data: dict) -> TableField:
        """Create a new field"""
        values = {key: field_data[key] for key in WRITABLE_COLUMNS if key in field_data}
        field = TableField(table_id=table_id, **values)
        if field.options is None:
            field.options = {}

        self.session.add(field)
        self.session.commit()
        self.session.refresh(field)
        return field

    def update(self, field: TableField, update_data: dict) -> TableField:
        """Update a field with the provided data"""
        for key, value in update_data.items():
            if key in WRITABLE_COLUMNS:
                setattr(field, key, value)

        self.session.commit()
        self.session.refresh(field)
        return field

    def delete(self, field: TableField) -> None:
        self.session.delete(field)
        self.session.commit()

    def bulk_update_order(self, table_id: UUID, updates: list[dict]) -> None:
        """
        Apply [{id, order_index, group_name?}] in one transaction.

        Entries without a group_name key leave the field's section untouched.
        """
        ids = [entry["id"] for entry in updates]
        stmt = (
            select(TableField)
            .where(TableField.table_id == table_id)
            .where(TableField.id.in_(ids))
        )
        fields = {field.id: field for field in self.session.scalars(stmt).all()}

        for entry in updates:
            field = fields.get(entry["id"])
            if field is None:
                raise NotFoundError(f"Field '{entry['id']}' not found")
            field.order_index = entry["order_index"]
            if "group_name" in entry:
                field.group_name = entry["group_name"]

        self.session.commit()


def get_field_repository(db: Session = Depends(get_db)) -> FieldRepository:
    """Dependency for field repository"""
    return FieldRepository(db)
