"""Hierarchical Reorder Engine - position planning for items in ordered containers

Used for fields in sections, sections themselves, pages in navigation groups
and the groups themselves. Everything here is pure: callers translate a drag
gesture (or an API request) into a MoveIntent, receive a ReorderPlan and
decide how to persist it.

Items are expected in display order. Within a container the engine keeps
the relative order it was given; it never re-sorts by order_index, so legacy
gaps or duplicate indices cannot reshuffle siblings.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Hashable, Iterable, Optional

from core.errors import NotFoundError, ValidationError
from core.logging_config import get_logger

logger = get_logger(__name__)

# Marks "the container the item is in now" on a MoveIntent
CURRENT_CONTAINER = object()


class ReorderState(str, Enum):
    IDLE = "idle"
    MOVE_REQUESTED = "move_requested"
    COMPUTING = "computing"
    UPDATES_PRODUCED = "updates_produced"


@dataclass(frozen=True)
class OrderedItem:
    id: Hashable
    # None is the virtual/default container
    container_id: Optional[Hashable] = None
    order_index: Optional[int] = None


@dataclass(frozen=True)
class OrderUpdate:
    item_id: Hashable
    container_id: Optional[Hashable]
    order_index: int


@dataclass(frozen=True)
class MoveIntent:
    item_id: Hashable
    target_container_id: Optional[Hashable] = CURRENT_CONTAINER
    before_id: Optional[Hashable] = None
    after_id: Optional[Hashable] = None
    source_container_id: Optional[Hashable] = CURRENT_CONTAINER


@dataclass
class ReorderPlan:
    item_id: Optional[Hashable] = None
    source_container_id: Optional[Hashable] = None
    target_container_id: Optional[Hashable] = None
    target_index: Optional[int] = None
    updates: list[OrderUpdate] = field(default_factory=list)
    state: ReorderState = ReorderState.IDLE

    @property
    def is_noop(self) -> bool:
        return not self.updates

    @property
    def crosses_containers(self) -> bool:
        return self.source_container_id != self.target_container_id


def sort_items(items: Iterable[OrderedItem]) -> list[OrderedItem]:
    """Sort by order_index (missing indices last), keeping input order for ties."""
    indexed = list(enumerate(items))
    indexed.sort(key=lambda pair: (pair[1].order_index is None, pair[1].order_index or 0, pair[0]))
    return [item for _, item in indexed]


def container_items(items: Iterable[OrderedItem], container_id) -> list[OrderedItem]:
    return [item for item in items if item.container_id == container_id]


def _changed(item: OrderedItem, container_id, order_index: int) -> bool:
    return item.container_id != container_id or item.order_index != order_index


def densify(items: Iterable[OrderedItem], container_id) -> list[OrderUpdate]:
    """Dense 0-based indices for `items` (in their given order) inside `container_id`; changed items only."""
    return [
        OrderUpdate(item.id, container_id, index)
        for index, item in enumerate(items)
        if _changed(item, container_id, index)
    ]


def _index_of(items: list[OrderedItem], item_id) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return -1


def plan_move(items: Iterable[OrderedItem], intent: MoveIntent) -> ReorderPlan:
    """
    Plan moving one item to a new position, possibly in another container.

    The target container is re-densified with the item inserted before
    `intent.before_id` (or after `intent.after_id`); a missing or unknown
    anchor means end of the container. When the container changes, the
    source container is re-densified too. Only items whose container or
    index actually changes are returned.

    Raises NotFoundError (and produces nothing) when the item is unknown.
    """
    items = list(items)
    plan = ReorderPlan(item_id=intent.item_id, state=ReorderState.MOVE_REQUESTED)

    moved_index = _index_of(items, intent.item_id)
    if moved_index == -1:
        raise NotFoundError(f"Item '{intent.item_id}' not found")
    moved = items[moved_index]

    if intent.source_container_id is not CURRENT_CONTAINER and intent.source_container_id != moved.container_id:
        raise NotFoundError(
            f"Item '{intent.item_id}' not found in container '{intent.source_container_id}'"
        )
    if intent.before_id is not None and intent.after_id is not None:
        raise ValidationError("A move can be anchored before or after a sibling, not both")

    plan.state = ReorderState.COMPUTING
    source = moved.container_id
    target = source if intent.target_container_id is CURRENT_CONTAINER else intent.target_container_id
    plan.source_container_id = source
    plan.target_container_id = target

    original_target = container_items(items, target)
    siblings = [item for item in original_target if item.id != moved.id]

    anchor = intent.before_id if intent.before_id is not None else intent.after_id
    if anchor is not None and anchor == moved.id:
        # Anchored on itself: stay put
        insert_at = _index_of(original_target, moved.id)
        if insert_at == -1:
            insert_at = len(siblings)
    else:
        insert_at = _index_of(siblings, anchor) if anchor is not None else -1
        if insert_at == -1:
            if anchor is not None:
                logger.debug(f"Anchor '{anchor}' not in container '{target}', appending")
            insert_at = len(siblings)
        elif intent.after_id is not None:
            insert_at += 1

    reordered = siblings[:insert_at] + [moved] + siblings[insert_at:]
    plan.target_index = insert_at
    plan.updates = densify(reordered, target)

    if source != target:
        remaining = [item for item in container_items(items, source) if item.id != moved.id]
        plan.updates.extend(densify(remaining, source))

    plan.state = ReorderState.UPDATES_PRODUCED
    return plan


def plan_sequence(items: Iterable[OrderedItem], ordered_ids: list, container_id=None) -> ReorderPlan:
    """
    Plan a flat reorder of one container from an explicit id sequence.

    Items of the container missing from `ordered_ids` keep their relative
    order after the listed ones. Unknown ids raise NotFoundError.
    """
    current = container_items(items, container_id)
    by_id = {item.id: item for item in current}
    plan = ReorderPlan(
        source_container_id=container_id,
        target_container_id=container_id,
        state=ReorderState.COMPUTING,
    )

    seen = set()
    ordered: list[OrderedItem] = []
    for item_id in ordered_ids:
        if item_id not in by_id:
            raise NotFoundError(f"Item '{item_id}' not found in container '{container_id}'")
        if item_id in seen:
            continue
        seen.add(item_id)
        ordered.append(by_id[item_id])
    ordered.extend(item for item in current if item.id not in seen)

    plan.updates = densify(ordered, container_id)
    plan.state = ReorderState.UPDATES_PRODUCED
    return plan


def apply_updates(items: Iterable[OrderedItem], updates: Iterable[OrderUpdate]) -> list[OrderedItem]:
    """Return `items` with `updates` applied, re-sorted by order_index."""
    by_id = {update.item_id: update for update in updates}
    result = []
    for item in items:
        update = by_id.get(item.id)
        if update is not None:
            item = replace(item, container_id=update.container_id, order_index=update.order_index)
        result.append(item)
    return sort_items(result)
