"""Table Repository - Data access layer for data tables"""

from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from core.errors import NotFoundError, ValidationError
from db.session import get_db
from models import DataTable
from schemas.table import TableCreate


class TableRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_or_404(self, table_id: UUID) -> DataTable:
        """Get a table by ID"""
        table = self.session.get(DataTable, table_id)
        if not table:
            raise NotFoundError(f"Table '{table_id}' not found")
        return table

    def get_all(self) -> list[DataTable]:
        """Get all tables, alphabetically"""
        stmt = select(DataTable).order_by(DataTable.name)
        return list(self.session.scalars(stmt).all())

    def get_by_name(self, name: str) -> DataTable | None:
        stmt = select(DataTable).where(DataTable.name == name)
        return self.session.scalar(stmt)

    def create(self, table_data: TableCreate) -> DataTable:
        """Create a new table"""
        name = table_data.name.strip()
        if not name:
            raise ValidationError("Table name cannot be empty")
        if self.get_by_name(name):
            raise ValidationError(f"Table with name '{name}' already exists")

        table = DataTable(name=name, description=table_data.description)
        self.session.add(table)
        self.session.commit()
        self.session.refresh(table)
        return table

    def set_primary_field(self, table: DataTable, primary_field_name: str | None) -> DataTable:
        """Store the explicit primary field (None = automatic)"""
        table.primary_field_name = primary_field_name
        self.session.commit()
        self.session.refresh(table)
        return table


def get_table_repository(db: Session = Depends(get_db)) -> TableRepository:
    """Dependency for table repository"""
    return TableRepository(db)
