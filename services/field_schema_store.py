"""Field Schema Store - the field list of a table and its structural mutations

The store keeps a local, display-ordered copy of every table it touched.
Mutations are validated first (nothing is written when validation fails),
then applied to the local copy and persisted. When a persistence call fails
the local copy is replaced by a fresh read before the error is re-raised,
so callers never have to undo anything themselves.
"""

from typing import Callable, Optional, TypeVar

from fastapi import Depends
from sqlalchemy.orm import Session

from core.errors import DependencyError, NotFoundError, PersistenceError, ValidationError
from core.logging_config import get_logger
from core.settings import settings
from db.session import get_db
from schemas.field import FieldDefinition
from schemas.section import PersistedSection
from schemas.table import TableDefinition
from services.field_option_validator import normalize_options, validate_options
from services.field_type_registry import (
    FieldKind,
    describe_kind,
    is_system_field,
    sanitize_field_name,
    to_kind,
    validate_field_name,
)
from services.relationship_resolver import (
    candidate_result_fields,
    find_field,
    formula_eligible_siblings,
    is_link_field,
    lookup_dependents,
    reconcile_lookup_options,
    resolve_link_target,
    validate_lookup_relationship,
)
from services.reorder_engine import (
    CURRENT_CONTAINER,
    MoveIntent,
    OrderedItem,
    OrderUpdate,
    ReorderPlan,
    ReorderState,
    densify,
    plan_move,
    plan_sequence,
)
from services.schema_persistence import (
    DatabaseSchemaPersistence,
    DatabaseTableCatalog,
    SchemaPersistence,
    TableCatalog,
)
from services.type_transition_checker import TypeChangeCheck, can_change_type

logger = get_logger(__name__)

T = TypeVar("T")

# Passed as target_group to keep a field in its current section
SAME_SECTION = CURRENT_CONTAINER

AUTO_PRIMARY = "auto"
ID_PRIMARY = "id"


def section_key(group_name: Optional[str]) -> Optional[str]:
    """Container key of a field's section; None is the default section."""
    if group_name is None:
        return None
    name = group_name.strip()
    if not name or name == settings.DEFAULT_SECTION_NAME:
        return None
    return name


def _read_order(indexed: tuple[int, FieldDefinition]) -> tuple:
    raw_index, field = indexed
    if field.order_index is not None:
        primary = field.order_index
    elif field.position is not None:
        primary = field.position
    else:
        primary = raw_index
    return primary, field.name.lower()


def order_fields(fields: list[FieldDefinition]) -> list[FieldDefinition]:
    """
    Display order: order_index, else the legacy position, else the raw list
    index; ties break by case-insensitive name.
    """
    return [field for _, field in sorted(enumerate(fields), key=_read_order)]


def _as_items(fields: list[FieldDefinition]) -> list[OrderedItem]:
    return [OrderedItem(field.id, section_key(field.group_name), field.order_index) for field in fields]


class FieldSchemaStore:
    def __init__(self, persistence: SchemaPersistence, catalog: TableCatalog):
        self.persistence = persistence
        self.catalog = catalog
        self._fields: dict[str, list[FieldDefinition]] = {}

    # -- reading -------------------------------------------------------

    def refresh(self, table_id) -> list[FieldDefinition]:
        """Replace the local copy of a table with the authoritative field list"""
        fields = order_fields(self.persistence.load_fields(table_id))
        self._fields[str(table_id)] = fields
        return list(fields)

    def list_fields(self, table_id) -> list[FieldDefinition]:
        fields = self._fields.get(str(table_id))
        if fields is None:
            return self.refresh(table_id)
        return list(fields)

    def get_field(self, field_id, table_id=None) -> FieldDefinition:
        if table_id is None:
            stored = self.persistence.find_field(field_id)
            if stored is None:
                raise NotFoundError(f"Field '{field_id}' not found")
            table_id = stored.table_id

        field = find_field(self.list_fields(table_id), field_id)
        if field is None:
            raise NotFoundError(f"Field '{field_id}' not found")
        return field

    # -- persistence helpers -------------------------------------------

    def _set_local(self, table_id, fields: list[FieldDefinition]) -> None:
        self._fields[str(table_id)] = order_fields(fields)

    def _persist(self, table_id, write: Callable[[], T]) -> T:
        try:
            return write()
        except PersistenceError as e:
            logger.warning_ctx("Write failed, reloading fields", table_id=str(table_id), error=e.message)
            try:
                self.refresh(table_id)
            except PersistenceError:
                # Next read goes back to the boundary
                self._fields.pop(str(table_id), None)
            raise

    def _apply_order(self, table_id, updates: list[OrderUpdate]) -> None:
        """Apply order updates locally, then persist them."""
        if not updates:
            return
        by_id = {str(update.item_id): update for update in updates}
        fields = []
        for field in self.list_fields(table_id):
            update = by_id.get(str(field.id))
            if update is not None:
                field = field.model_copy(
                    update={"group_name": update.container_id, "order_index": update.order_index}
                )
            fields.append(field)
        self._set_local(table_id, fields)
        self._persist(table_id, lambda: self.persistence.save_field_order(table_id, updates))

    def ensure_section(self, table_id, group_name: Optional[str]) -> Optional[PersistedSection]:
        """
        Return the persisted section named `group_name`, creating it if missing.

        The default section is never materialised here; None is returned for it.
        """
        name = section_key(group_name)
        if name is None:
            return None

        sections = self.persistence.load_sections(table_id)
        for section in sections:
            if section.name == name:
                return section

        order_index = max((section.order_index for section in sections), default=-1) + 1
        logger.info_ctx("Creating section", table_id=str(table_id), section_name=name)
        return self._persist(
            table_id,
            lambda: self.persistence.save_section(
                table_id, None, {"name": name, "display_name": name, "order_index": order_index}
            ),
        )

    # -- validation ----------------------------------------------------

    def _checked_options(self, kind: FieldKind, options: dict, fields: list[FieldDefinition]) -> dict:
        options = normalize_options(kind, options)
        result = validate_options(kind, options)
        if not result.valid:
            raise ValidationError(result.error)

        if kind == FieldKind.LINK_TO_TABLE:
            target = str(options["linked_table_id"])
            if not any(str(table.id) == target for table in self.catalog.list_tables()):
                raise ValidationError(f"Linked table '{target}' does not exist")

        if kind == FieldKind.LOOKUP:
            link_field = find_field(fields, options.get("lookup_field_id"))
            target = resolve_link_target(link_field) if link_field is not None and is_link_field(link_field) else None
            target_fields = self.catalog.list_fields_of(target) if target else []
            result = validate_lookup_relationship(options, fields, target_fields)
            if not result.valid:
                raise ValidationError(result.error)
        return options

    # -- mutations -----------------------------------------------------

    def create_field(self, table_id, draft: dict) -> FieldDefinition:
        """
        Validate and create a field at the end of the table.

        `draft` carries label (or name), type, required, group_name,
        default_value and options.
        """
        fields = self.list_fields(table_id)
        label = (draft.get("label") or draft.get("name") or "").strip()
        if not label:
            raise ValidationError("Field name is required")

        kind = to_kind(draft.get("type"))
        name = sanitize_field_name(draft.get("name") or label)
        validate_field_name(name, [field.name for field in fields])

        options = dict(draft.get("options") or {})
        if kind == FieldKind.LOOKUP:
            options = reconcile_lookup_options(None, options, fields)
        options = self._checked_options(kind, options, fields)

        group_name = section_key(draft.get("group_name"))
        self.ensure_section(table_id, group_name)

        order_index = len(fields)
        patch = {
            "name": name,
            "label": label,
            "type": kind.value,
            "required": bool(draft.get("required")) and not describe_kind(kind).is_virtual,
            "group_name": group_name,
            "default_value": draft.get("default_value"),
            "options": options,
            "order_index": order_index,
            "position": order_index,
        }
        field = self._persist(table_id, lambda: self.persistence.save_field(table_id, None, patch))
        self._set_local(table_id, fields + [field])

        logger.info_ctx("Field created", table_id=str(table_id), field_id=str(field.id), type=kind.value)
        return field

    def check_type_change(self, field_id, to_type) -> TypeChangeCheck:
        field = self.get_field(field_id)
        return can_change_type(field.type, to_type, field, self.list_fields(field.table_id))

    def update_field(self, field_id, patch: dict) -> FieldDefinition:
        """
        Apply a partial update. Kind changes must pass the transition check;
        a new group_name moves the field to the end of that section.
        """
        current = self.get_field(field_id)
        table_id = current.table_id
        fields = self.list_fields(table_id)
        siblings = [field for field in fields if field.id != current.id]
        changes: dict = {}

        if "label" in patch:
            label = (patch["label"] or "").strip()
            if not label:
                raise ValidationError("Field name is required")
            changes["label"] = label

        internal_name = patch.get("internal_name")
        if internal_name is not None and internal_name != current.name:
            if is_system_field(current):
                raise ValidationError("System fields cannot be renamed")
            validate_field_name(internal_name, [field.name for field in siblings])
            changes["name"] = internal_name

        old_kind = to_kind(current.type)
        new_kind = to_kind(patch.get("type") or current.type)
        kind_changed = new_kind != old_kind
        if kind_changed:
            if is_system_field(current):
                raise ValidationError("The type of a system field cannot be changed")
            check = can_change_type(old_kind, new_kind, current, fields)
            if not check.can_change:
                raise DependencyError(check.warning, check.dependents)
            if check.warning:
                logger.info_ctx("Type change accepted", field_id=str(field_id), warning=check.warning)
            changes["type"] = new_kind.value

        if kind_changed or patch.get("options") is not None:
            previous = current.options if not kind_changed else {}
            incoming = patch.get("options")
            if incoming is None:
                incoming = dict(previous)

            if new_kind == FieldKind.LOOKUP:
                options = reconcile_lookup_options(previous, incoming, fields)
            else:
                options = dict(incoming)
            options = self._checked_options(new_kind, options, fields)

            if old_kind == FieldKind.LINK_TO_TABLE and new_kind == FieldKind.LINK_TO_TABLE:
                old_target = str(current.options.get("linked_table_id"))
                if str(options.get("linked_table_id")) != old_target:
                    dependents = lookup_dependents(fields, current.id)
                    if dependents:
                        names = [dependent.name for dependent in dependents]
                        raise DependencyError(
                            f"Cannot change the target table of '{current.name}' while "
                            f"{', '.join(names)} depend on it",
                            names,
                        )
            changes["options"] = options

        if "required" in patch and patch["required"] is not None:
            changes["required"] = bool(patch["required"])
        if describe_kind(new_kind).is_virtual:
            changes["required"] = False

        if "default_value" in patch:
            changes["default_value"] = patch["default_value"]

        section_changed = (
            "group_name" in patch
            and section_key(patch["group_name"]) != section_key(current.group_name)
        )

        field = current
        if changes:
            field = self._persist(table_id, lambda: self.persistence.save_field(table_id, current.id, changes))
            self._set_local(table_id, [field if f.id == current.id else f for f in fields])

        if "name" in changes:
            table = self.persistence.load_table(table_id)
            if table.primary_field_name == current.name:
                self._persist(table_id, lambda: self.persistence.save_primary_field(table_id, changes["name"]))

        if section_changed:
            self.move_field(current.id, target_group=patch["group_name"])
            field = self.get_field(current.id, table_id)

        logger.info_ctx("Field updated", table_id=str(table_id), field_id=str(field_id))
        return field

    def delete_field(self, field_id) -> None:
        """
        Delete a field that nothing references. The remaining fields of its
        section are re-densified and an explicit primary pointing at it is
        cleared.
        """
        current = self.get_field(field_id)
        table_id = current.table_id
        fields = self.list_fields(table_id)

        if is_system_field(current):
            raise ValidationError("System fields cannot be deleted")

        dependents = lookup_dependents(fields, current.id)
        if dependents:
            names = [dependent.name for dependent in dependents]
            raise DependencyError(
                f"Field '{current.name}' is referenced by {', '.join(names)}. "
                "Delete or repoint those fields first.",
                names,
            )

        remaining = [field for field in fields if field.id != current.id]
        self._set_local(table_id, remaining)
        self._persist(table_id, lambda: self.persistence.delete_field(table_id, current.id))

        container = section_key(current.group_name)
        updates = densify(
            [item for item in _as_items(remaining) if item.container_id == container],
            container,
        )
        self._apply_order(table_id, updates)

        table = self.persistence.load_table(table_id)
        if table.primary_field_name == current.name:
            self._persist(table_id, lambda: self.persistence.save_primary_field(table_id, None))

        logger.info_ctx("Field deleted", table_id=str(table_id), field_id=str(field_id))

    def move_field(
        self,
        field_id,
        target_group=SAME_SECTION,
        before_field_id=None,
        after_field_id=None,
    ) -> ReorderPlan:
        """
        Move a field before/after a sibling (or to the end) of a section.

        Both the target section and, on a cross-section move, the source
        section end up densely indexed.
        """
        current = self.get_field(field_id)
        table_id = current.table_id

        target = target_group if target_group is SAME_SECTION else section_key(target_group)
        if target is not SAME_SECTION:
            self.ensure_section(table_id, target)

        plan = plan_move(
            _as_items(self.list_fields(table_id)),
            MoveIntent(
                item_id=current.id,
                target_container_id=target,
                before_id=before_field_id,
                after_id=after_field_id,
            ),
        )
        self._apply_order(table_id, plan.updates)

        logger.info_ctx(
            "Field moved",
            table_id=str(table_id),
            field_id=str(field_id),
            section_name=plan.target_container_id,
            order_index=plan.target_index,
        )
        return plan

    def reorder_fields(self, table_id, ordered_ids: list) -> ReorderPlan:
        """
        Reorder fields from an explicit id sequence. Fields keep their
        section: the sequence is applied per section, so every section it
        touches ends up densely indexed from 0. Unlisted fields follow the
        listed ones of their section in their current order.
        """
        items = _as_items(self.list_fields(table_id))
        sections = {item.id: item.container_id for item in items}

        by_section: dict = {}
        for field_id in ordered_ids:
            if field_id not in sections:
                raise NotFoundError(f"Field '{field_id}' not found")
            by_section.setdefault(sections[field_id], []).append(field_id)

        plan = ReorderPlan(state=ReorderState.UPDATES_PRODUCED)
        for section, section_ids in by_section.items():
            plan.updates.extend(plan_sequence(items, section_ids, section).updates)

        self._apply_order(table_id, plan.updates)
        return plan

    def relocate_section(self, table_id, from_group, to_group) -> list[OrderUpdate]:
        """Append every field of one section to the end of another."""
        source = section_key(from_group)
        target = section_key(to_group)
        if source == target:
            return []

        items = _as_items(self.list_fields(table_id))
        merged = [item for item in items if item.container_id == target]
        merged += [item for item in items if item.container_id == source]
        updates = densify(merged, target)
        self._apply_order(table_id, updates)
        return updates

    # -- primary field ---------------------------------------------------

    def _primary_candidates(self, table_id) -> list[FieldDefinition]:
        return [
            field for field in self.list_fields(table_id)
            if not describe_kind(field.type).is_virtual and not is_system_field(field)
        ]

    def select_primary_field(self, table_id, name_or_sentinel: str) -> TableDefinition:
        """`auto` clears the explicit primary, `id` selects the identity column."""
        value = (name_or_sentinel or "").strip()
        if value == AUTO_PRIMARY:
            primary = None
        elif value == ID_PRIMARY:
            primary = ID_PRIMARY
        else:
            if not any(field.name == value for field in self._primary_candidates(table_id)):
                raise NotFoundError(
                    f"'{value}' is not a field that can be used as primary field"
                )
            primary = value

        return self._persist(table_id, lambda: self.persistence.save_primary_field(table_id, primary))

    def effective_primary_field(self, table_id) -> str:
        """Name of the field shown as record title, or `id`."""
        table = self.persistence.load_table(table_id)
        candidates = self._primary_candidates(table_id)

        if table.primary_field_name == ID_PRIMARY:
            return ID_PRIMARY
        if table.primary_field_name and any(f.name == table.primary_field_name for f in candidates):
            return table.primary_field_name
        return candidates[0].name if candidates else ID_PRIMARY

    # -- relationship pickers --------------------------------------------

    def result_candidates(self, field_id) -> list[FieldDefinition]:
        """Fields of the linked table a lookup field may display."""
        field = self.get_field(field_id)
        if to_kind(field.type) != FieldKind.LOOKUP:
            raise ValidationError(f"Field '{field.name}' is not a lookup field")

        options = reconcile_lookup_options(field.options, {}, self.list_fields(field.table_id))
        target = options.get("lookup_table_id")
        if not target:
            return []
        lookup = field.model_copy(update={"options": options})
        return candidate_result_fields(lookup, self.catalog.list_fields_of(target))

    def formula_siblings(self, field_id) -> list[FieldDefinition]:
        field = self.get_field(field_id)
        return formula_eligible_siblings(self.list_fields(field.table_id), field.id)


def get_field_schema_store(db: Session = Depends(get_db)) -> FieldSchemaStore:
    """Dependency for the field schema store"""
    return FieldSchemaStore(DatabaseSchemaPersistence(db), DatabaseTableCatalog(db))
