"""Section Repository - Data access layer for field sections"""

from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from core.errors import NotFoundError, ValidationError
from db.session import get_db
from models import FieldSection

WRITABLE_COLUMNS = (
    "name",
    "display_name",
    "order_index",
    "default_collapsed",
    "default_visible",
    "permissions",
)


class SectionRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_or_404(self, section_id: UUID, table_id: UUID) -> FieldSection:
        """Get a section by ID within a table"""
        stmt = (
            select(FieldSection)
            .where(FieldSection.id == section_id)
            .where(FieldSection.table_id == table_id)
        )
        section = self.session.scalar(stmt)
        if not section:
            raise NotFoundError(f"Section '{section_id}' not found")
        return section

    def get_all_by_table(self, table_id: UUID) -> list[FieldSection]:
        """Get all persisted sections of a table ordered by order_index"""
        stmt = (
            select(FieldSection)
            .where(FieldSection.table_id == table_id)
            .order_by(FieldSection.order_index, FieldSection.name)
        )
        return list(self.session.scalars(stmt).all())

    def get_by_name(self, table_id: UUID, name: str) -> FieldSection | None:
        stmt = (
            select(FieldSection)
            .where(FieldSection.table_id == table_id)
            .where(FieldSection.name == name)
        )
        return self.session.scalar(stmt)

    def create(self, table_id: UUID, section_data: dict) -> FieldSection:
        """Create a new section; names are unique per table"""
        name = section_data.get("name")
        if self.get_by_name(table_id, name):
            raise ValidationError(f"Section with name '{name}' already exists in this table")

        values = {key: section_data[key] for key in WRITABLE_COLUMNS if key in section_data}
        section = FieldSection(table_id=table_id, **values)
        if section.permissions is None:
            section.permissions = {}

        self.session.add(section)
        self.session.commit()
        self.session.refresh(section)
        return section

    def update(self, section: FieldSection, update_data: dict) -> FieldSection:
        """Update a section with the provided data"""
        for key, value in update_data.items():
            if key in WRITABLE_COLUMNS:
                setattr(section, key, value)

        self.session.commit()
        self.session.refresh(section)
        return section

    def delete(self, section: FieldSection) -> None:
        self.session.delete(section)
        self.session.commit()

    def bulk_update_order(self, table_id: UUID, updates: list[dict]) -> None:
        """Apply [{id, order_index}] in one transaction"""
        ids = [entry["id"] for entry in updates]
        stmt = (
            select(FieldSection)
            .where(FieldSection.table_id == table_id)
            .where(FieldSection.id.in_(ids))
        )
        sections = {section.id: section for section in self.session.scalars(stmt).all()}

        for entry in updates:
            section = sections.get(entry["id"])
            if section is None:
                raise NotFoundError(f"Section '{entry['id']}' not found")
            section.order_index = entry["order_index"]

        self.session.commit()


def get_section_repository(db: Session = Depends(get_db)) -> SectionRepository:
    """Dependency for section repository"""
    return SectionRepository(db)
