"""Relationship Resolver - effective linkage of link, lookup and formula fields

Link and lookup options store field and table ids as strings (they live in a
JSON column), so every comparison here goes through `_same_id`.
"""

from typing import Iterable, Optional

from core.errors import UnknownKindError
from services.field_option_validator import OptionValidation
from services.field_type_registry import FieldKind, to_kind

# Keys whose value names another field of the same table
REFERENCE_KEYS = ("lookup_field_id", "linked_field_id")


def _same_id(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def _kind_of(field) -> Optional[FieldKind]:
    try:
        return to_kind(field.type)
    except UnknownKindError:
        # Rows with unrecognised kinds never take part in relationships
        return None


def is_link_field(field) -> bool:
    return _kind_of(field) == FieldKind.LINK_TO_TABLE


def is_lookup_field(field) -> bool:
    return _kind_of(field) == FieldKind.LOOKUP


def resolve_link_target(field) -> Optional[str]:
    """Target table id of a link field (or of the link behind a lookup's stored target)."""
    options = field.options or {}
    kind = _kind_of(field)
    if kind == FieldKind.LINK_TO_TABLE:
        target = options.get("linked_table_id")
    elif kind == FieldKind.LOOKUP:
        target = options.get("lookup_table_id")
    else:
        return None
    return str(target) if target else None


def find_field(fields: Iterable, field_id) -> Optional[object]:
    for field in fields:
        if _same_id(field.id, field_id):
            return field
    return None


def lookup_dependents(fields: Iterable, field_id) -> list:
    """Fields of the same table that reference `field_id` (as lookup source or link back-reference)."""
    dependents = []
    for field in fields:
        if _same_id(field.id, field_id):
            continue
        options = field.options or {}
        if any(_same_id(options.get(key), field_id) for key in REFERENCE_KEYS):
            dependents.append(field)
    return dependents


def candidate_result_fields(lookup_field, target_table_fields: Iterable) -> list:
    """
    Fields of the lookup's target table that may be displayed by the lookup.

    Lookup fields are excluded: chaining a lookup through another lookup is
    not supported.
    """
    target_table_id = resolve_link_target(lookup_field)
    candidates = []
    for field in target_table_fields:
        if target_table_id is not None and not _same_id(field.table_id, target_table_id):
            continue
        if _kind_of(field) in (None, FieldKind.LOOKUP):
            continue
        candidates.append(field)
    return candidates


def formula_eligible_siblings(all_fields: Iterable, excluding_field_id) -> list:
    """Fields a formula may reference: everything except formulas and the field itself."""
    return [
        field for field in all_fields
        if not _same_id(field.id, excluding_field_id) and _kind_of(field) != FieldKind.FORMULA
    ]


def reconcile_lookup_options(previous: Optional[dict], incoming: dict, fields: Iterable) -> dict:
    """
    Derive the effective options of a lookup field.

    - lookup_table_id is always copied from the chosen link field
    - switching to another link field clears lookup_result_field_id unless the
      same change supplies a new one
    """
    previous = previous or {}
    options = {**previous, **incoming}

    source_changed = not _same_id(previous.get("lookup_field_id"), options.get("lookup_field_id"))
    if previous and source_changed and "lookup_result_field_id" not in incoming:
        options.pop("lookup_result_field_id", None)

    link_field = find_field(fields, options.get("lookup_field_id"))
    if link_field is not None and is_link_field(link_field):
        target = resolve_link_target(link_field)
        if target:
            options["lookup_table_id"] = target
    elif source_changed:
        options.pop("lookup_table_id", None)
    return options


def validate_lookup_relationship(options: dict, fields: Iterable, target_table_fields: Iterable) -> OptionValidation:
    """
    Check a lookup's references against the current table and its link target.

    `fields` are the lookup's sibling fields; `target_table_fields` are the
    fields of the table the link field points to.
    """
    fields = list(fields)
    link_field = find_field(fields, options.get("lookup_field_id"))
    if link_field is None:
        return OptionValidation.fail("Lookup source field does not exist in this table")
    if not is_link_field(link_field):
        return OptionValidation.fail(f"Lookup source field '{link_field.name}' is not a link field")

    target_table_id = resolve_link_target(link_field)
    if not target_table_id:
        return OptionValidation.fail(f"Link field '{link_field.name}' has no target table")

    declared_target = options.get("lookup_table_id")
    if declared_target and not _same_id(declared_target, target_table_id):
        return OptionValidation.fail("Lookup table must be the table targeted by the linked field")

    result_field_id = options.get("lookup_result_field_id")
    if not result_field_id:
        return OptionValidation.fail("Lookup fields must select a field to display from the linked table")

    result_field = find_field(target_table_fields, result_field_id)
    if result_field is None or not _same_id(result_field.table_id, target_table_id):
        return OptionValidation.fail("Lookup result field must belong to the linked table")
    if is_lookup_field(result_field):
        return OptionValidation.fail("Lookup fields cannot display another lookup field")
    return OptionValidation.ok()
