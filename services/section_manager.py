"""Section/Grouping Manager - named, ordered groupings of fields

Sections come from three places: rows in field_sections, group names used
by fields that have no row yet, and the protected default section that is
synthesised whenever a field has no group. Sections without a row are
VirtualSection values; any structural write materialises them first.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from core.errors import NotFoundError, ValidationError
from core.logging_config import get_logger
from core.settings import settings
from db.session import get_db
from schemas.section import PersistedSection, SectionDefinition, VirtualSection
from services.field_schema_store import FieldSchemaStore, section_key
from services.reorder_engine import MoveIntent, OrderedItem, OrderUpdate, plan_move, plan_sequence
from services.schema_persistence import DatabaseSchemaPersistence, DatabaseTableCatalog, SchemaPersistence

logger = get_logger(__name__)


def _sort_key(section) -> tuple:
    return (not section.is_default, section.order_index, section.name)


def resolve_sections(table_id, persisted: list[PersistedSection], fields) -> list[SectionDefinition]:
    """
    Merge persisted sections, sections implied by field group names and the
    default section into one list: default first, then order_index and name.
    """
    default_name = settings.DEFAULT_SECTION_NAME
    by_name: dict[str, SectionDefinition] = {}

    for section in persisted:
        by_name[section.name] = section.model_copy(update={"is_default": section.name == default_name})

    next_index = max((section.order_index for section in persisted), default=-1) + 1
    has_ungrouped = False
    for field in fields:
        name = section_key(field.group_name)
        if name is None:
            has_ungrouped = True
        elif name not in by_name:
            by_name[name] = VirtualSection(
                name=name,
                display_name=name,
                order_index=next_index,
                table_id=table_id,
            )
            next_index += 1

    if has_ungrouped and default_name not in by_name:
        by_name[default_name] = VirtualSection(
            name=default_name,
            display_name=default_name,
            order_index=0,
            table_id=table_id,
            is_default=True,
        )

    return sorted(by_name.values(), key=_sort_key)


def validate_section_settings(patch: dict) -> dict:
    """Trim and check user-editable section settings; returns the cleaned patch."""
    cleaned = dict(patch)
    if "name" in cleaned:
        name = (cleaned["name"] or "").strip()
        if not name:
            raise ValidationError("Section name cannot be empty")
        cleaned["name"] = name
    if cleaned.get("display_name") is not None:
        cleaned["display_name"] = cleaned["display_name"].strip() or None
    order_index = cleaned.get("order_index")
    if order_index is not None and order_index < 0:
        raise ValidationError("Section order cannot be negative")
    if "permissions" in cleaned and cleaned["permissions"] is None:
        cleaned["permissions"] = {}
    return cleaned


class SectionManager:
    def __init__(self, persistence: SchemaPersistence, store: FieldSchemaStore):
        self.persistence = persistence
        self.store = store

    def list_sections(self, table_id) -> list[SectionDefinition]:
        return resolve_sections(
            table_id,
            self.persistence.load_sections(table_id),
            self.store.list_fields(table_id),
        )

    def _find(self, sections: list[SectionDefinition], key: str) -> SectionDefinition:
        """Find by persisted id or by name."""
        for section in sections:
            if section.is_persisted and str(section.id) == str(key):
                return section
        for section in sections:
            if section.name == key:
                return section
        raise NotFoundError(f"Section '{key}' not found")

    def ensure_section_exists(self, table_id, name: str) -> SectionDefinition:
        """Return the section called `name`, creating a row for it if needed."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Section name cannot be empty")
        if section_key(name) is None:
            # The default section has no row unless someone stored one
            for section in self.list_sections(table_id):
                if section.is_default:
                    return section
            return VirtualSection(
                name=settings.DEFAULT_SECTION_NAME,
                display_name=settings.DEFAULT_SECTION_NAME,
                table_id=table_id,
                is_default=True,
            )
        return self.store.ensure_section(table_id, name)

    def _materialize(self, table_id, sections: list[SectionDefinition]) -> list[SectionDefinition]:
        materialized = []
        for section in sections:
            if not section.is_persisted and not section.is_default:
                section = self.store.ensure_section(table_id, section.name)
            materialized.append(section)
        return materialized

    def _store_order(self, table_id, updates: list[OrderUpdate], sections: list[SectionDefinition]) -> None:
        ids = {section.name: section.id for section in sections}
        self.persistence.save_section_order(
            table_id,
            [OrderUpdate(ids[update.item_id], None, update.order_index) for update in updates],
        )

    def reorder_sections(self, table_id, ordered: list[str]) -> list[SectionDefinition]:
        """
        Store a new order for the non-default sections.

        Entries are section ids or names. The default section always stays
        first: listing it first is tolerated, listing it anywhere else makes
        the whole call a no-op.
        """
        sections = self.list_sections(table_id)
        requested = [self._find(sections, key) for key in ordered]

        default_positions = [index for index, section in enumerate(requested) if section.is_default]
        if any(index > 0 for index in default_positions):
            logger.info_ctx("Ignoring attempt to move the default section", table_id=str(table_id))
            return sections
        requested = [section for section in requested if not section.is_default]

        movable = self._materialize(table_id, [section for section in sections if not section.is_default])
        plan = plan_sequence(
            [OrderedItem(section.name, None, section.order_index) for section in movable],
            [section.name for section in requested],
        )
        self._store_order(table_id, plan.updates, movable)
        logger.info_ctx("Sections reordered", table_id=str(table_id), count=len(plan.updates))
        return self.list_sections(table_id)

    def move_section(self, table_id, section_name: str, before_name: Optional[str] = None) -> list[SectionDefinition]:
        """
        Move one section before another (or to the end). Moving the default
        section is ignored; anchoring on it means "first".
        """
        sections = self.list_sections(table_id)
        section = self._find(sections, section_name)
        if section.is_default:
            logger.info_ctx("Ignoring attempt to move the default section", table_id=str(table_id))
            return sections

        movable = self._materialize(table_id, [s for s in sections if not s.is_default])
        anchor = None
        if before_name is not None:
            target = self._find(sections, before_name)
            anchor = movable[0].name if target.is_default else target.name

        plan = plan_move(
            [OrderedItem(s.name, None, s.order_index) for s in movable],
            MoveIntent(item_id=section.name, before_id=anchor),
        )
        self._store_order(table_id, plan.updates, movable)
        return self.list_sections(table_id)

    def create_section(self, table_id, data: dict) -> PersistedSection:
        data = validate_section_settings(data)
        name = data.get("name")
        if not name:
            raise ValidationError("Section name cannot be empty")
        if section_key(name) is None:
            raise ValidationError(f"'{name}' is reserved for the default section")

        sections = self.list_sections(table_id)
        existing = next((section for section in sections if section.name == name), None)
        if existing is not None and existing.is_persisted:
            raise ValidationError(f"Section with name '{name}' already exists in this table")

        if not data.get("display_name"):
            data["display_name"] = name
        if existing is not None:
            # Implied by field group names: give it a row at its current place
            data.setdefault("order_index", existing.order_index)
        else:
            data.setdefault("order_index", max((s.order_index for s in sections if not s.is_default), default=-1) + 1)

        section = self.persistence.save_section(table_id, None, data)
        logger.info_ctx("Section created", table_id=str(table_id), section_name=name)
        return section

    def update_section(self, table_id, section_id, patch: dict) -> PersistedSection:
        """Update settings; a new name carries the section's fields along."""
        patch = validate_section_settings(patch)
        sections = self.list_sections(table_id)
        section = self._find(sections, str(section_id))
        if not section.is_persisted:
            raise NotFoundError(f"Section '{section_id}' not found")

        new_name = patch.get("name")
        if new_name is not None and new_name != section.name:
            self._check_rename(section, new_name, sections)

        updated = self.persistence.save_section(table_id, section.id, patch)

        if new_name is not None and new_name != section.name:
            self.store.relocate_section(table_id, section.name, new_name)
            logger.info_ctx("Section renamed", table_id=str(table_id), section_name=new_name)
        return updated

    def rename_section(self, table_id, section_id, new_name: str) -> PersistedSection:
        return self.update_section(table_id, section_id, {"name": new_name})

    def _check_rename(self, section, new_name: str, sections) -> None:
        if section.is_default:
            raise ValidationError("The default section cannot be renamed")
        if section_key(new_name) is None:
            raise ValidationError(f"'{new_name}' is reserved for the default section")
        if any(other.name == new_name for other in sections):
            raise ValidationError(f"Section with name '{new_name}' already exists in this table")

    def delete_section(self, table_id, section_id) -> None:
        """
        Delete a section row. Its fields are appended to the default section;
        the default section itself cannot be deleted.
        """
        sections = self.list_sections(table_id)
        section = self._find(sections, str(section_id))
        if section.is_default:
            raise ValidationError("The default section cannot be deleted")
        if not section.is_persisted:
            raise NotFoundError(f"Section '{section_id}' not found")

        self.store.relocate_section(table_id, section.name, None)
        self.persistence.delete_section(table_id, section.id)
        logger.info_ctx("Section deleted", table_id=str(table_id), section_name=section.name)


def get_section_manager(db: Session = Depends(get_db)) -> SectionManager:
    """Dependency for the section manager"""
    persistence = DatabaseSchemaPersistence(db)
    return SectionManager(persistence, FieldSchemaStore(persistence, DatabaseTableCatalog(db)))
