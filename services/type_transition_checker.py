"""Type Transition Checker - may a field change from one kind to another?"""

from dataclasses import dataclass, field as dataclass_field
from typing import Iterable, Optional

from services.field_type_registry import FieldKind, SIMPLE_KINDS, describe_kind
from services.relationship_resolver import lookup_dependents

# Conversions that keep every stored value intact
_LOSSLESS = {
    (FieldKind.TEXT, FieldKind.LONG_TEXT),
    (FieldKind.LONG_TEXT, FieldKind.TEXT),
    (FieldKind.NUMBER, FieldKind.CURRENCY),
    (FieldKind.NUMBER, FieldKind.PERCENT),
    (FieldKind.CURRENCY, FieldKind.NUMBER),
    (FieldKind.PERCENT, FieldKind.NUMBER),
    (FieldKind.SINGLE_SELECT, FieldKind.MULTI_SELECT),
    (FieldKind.URL, FieldKind.TEXT),
    (FieldKind.EMAIL, FieldKind.TEXT),
}
_TEXTUAL = {FieldKind.TEXT, FieldKind.LONG_TEXT}


@dataclass(frozen=True)
class TypeChangeCheck:
    can_change: bool
    warning: Optional[str] = None
    dependents: list[str] = dataclass_field(default_factory=list)


def is_destructive_type_change(from_kind, to_kind) -> bool:
    """True when converting may drop or lossily cast stored values."""
    source = describe_kind(from_kind)
    target = describe_kind(to_kind)
    if source.kind == target.kind or source.is_virtual:
        return False
    if target.is_virtual:
        return True
    if (source.kind, target.kind) in _LOSSLESS:
        return False
    # Anything simple renders losslessly as text
    return not (source.kind in SIMPLE_KINDS and target.kind in _TEXTUAL)


def can_change_type(from_kind, to_kind, field=None, siblings: Iterable = ()) -> TypeChangeCheck:
    """
    Decide whether a field may change kind and what to tell the user.

    `field` and `siblings` are only needed to detect dependants of a link
    field; without them the check is purely kind-based. The checker never
    repairs anything: a blocked transition stays blocked until the caller
    removes or repoints the dependants.
    """
    source = describe_kind(from_kind)
    target = describe_kind(to_kind)

    if source.kind == target.kind:
        return TypeChangeCheck(can_change=True)

    if source.kind == FieldKind.LINK_TO_TABLE and field is not None:
        dependents = lookup_dependents(siblings, field.id)
        if dependents:
            names = ", ".join(f"'{d.name}'" for d in dependents)
            return TypeChangeCheck(
                can_change=False,
                warning=(
                    f"Cannot change '{field.name}' away from {source.label}: "
                    f"field(s) {names} depend on it. Remove or repoint them first."
                ),
                dependents=[d.name for d in dependents],
            )

    if source.is_virtual and target.is_virtual:
        return TypeChangeCheck(
            can_change=True,
            warning=f"The {source.label.lower()} configuration will be replaced by the new {target.label.lower()} settings.",
        )

    if source.kind in SIMPLE_KINDS and target.kind in SIMPLE_KINDS:
        return TypeChangeCheck(
            can_change=True,
            warning=f"Existing values will be reformatted as {target.label.lower()}.",
        )

    if not source.is_virtual and target.is_virtual:
        return TypeChangeCheck(
            can_change=True,
            warning=(
                f"Stored {source.label.lower()} values will be hidden and the field becomes read-only "
                f"once it is a {target.label.lower()} field."
            ),
        )

    if source.is_virtual and not target.is_virtual:
        return TypeChangeCheck(
            can_change=True,
            warning=f"The field will start empty; computed {source.label.lower()} values are not copied.",
        )

    return TypeChangeCheck(
        can_change=True,
        warning=f"Changing from {source.label.lower()} to {target.label.lower()} may lose existing data.",
    )
