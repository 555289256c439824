"""Navigation Service - interface pages grouped into ordered navigation groups

Pages without a group belong to the synthesised "Ungrouped" group, which
has no row and always sorts after the real groups.
"""

from fastapi import Depends

from core.logging_config import get_logger
from core.settings import settings
from repositories.navigation_repository import NavigationRepository, get_navigation_repository
from schemas.navigation import InterfaceGroupRead, InterfacePageRead
from services.reorder_engine import (
    MoveIntent,
    OrderedItem,
    ReorderPlan,
    densify,
    plan_move,
    plan_sequence,
)
from services.schema_persistence import storage_errors

logger = get_logger(__name__)


class NavigationService:
    def __init__(self, repository: NavigationRepository):
        self.repository = repository

    def _page_items(self) -> list[OrderedItem]:
        return [
            OrderedItem(page.id, page.group_id, page.order_index)
            for page in self.repository.get_all_pages()
        ]

    def _write_pages(self, updates) -> None:
        if not updates:
            return
        with storage_errors(self.repository.session, "save page order"):
            self.repository.bulk_update_pages(
                [
                    {"id": update.item_id, "group_id": update.container_id, "order_index": update.order_index}
                    for update in updates
                ]
            )

    def _write_groups(self, updates) -> None:
        if not updates:
            return
        with storage_errors(self.repository.session, "save group order"):
            self.repository.bulk_update_groups(
                [{"id": update.item_id, "order_index": update.order_index} for update in updates]
            )

    def list_navigation(self) -> list[InterfaceGroupRead]:
        groups = self.repository.get_all_groups()
        pages = self.repository.get_all_pages()

        result = []
        for group in groups:
            result.append(
                InterfaceGroupRead(
                    id=group.id,
                    name=group.name,
                    order_index=group.order_index,
                    collapsed=group.collapsed,
                    pages=[InterfacePageRead.model_validate(p) for p in pages if p.group_id == group.id],
                )
            )

        ungrouped = [InterfacePageRead.model_validate(p) for p in pages if p.group_id is None]
        if ungrouped:
            result.append(
                InterfaceGroupRead(
                    name=settings.UNGROUPED_GROUP_NAME,
                    order_index=len(groups),
                    is_system=True,
                    pages=ungrouped,
                )
            )
        return result

    def create_group(self, name: str) -> InterfaceGroupRead:
        groups = self.repository.get_all_groups()
        order_index = max((group.order_index for group in groups), default=-1) + 1
        with storage_errors(self.repository.session, "create group"):
            group = self.repository.create_group(name.strip(), order_index)
        return InterfaceGroupRead(id=group.id, name=group.name, order_index=group.order_index)

    def create_page(self, name: str, group_id=None) -> InterfacePageRead:
        if group_id is not None:
            self.repository.get_group_or_404(group_id)
        order_index = sum(1 for item in self._page_items() if item.container_id == group_id)
        with storage_errors(self.repository.session, "create page"):
            page = self.repository.create_page(name.strip(), group_id, order_index)
        return InterfacePageRead.model_validate(page)

    def move_page(self, page_id, group_id=None, before_page_id=None) -> ReorderPlan:
        """Move a page into `group_id` (None = ungrouped), before a sibling or at the end."""
        if group_id is not None:
            self.repository.get_group_or_404(group_id)

        plan = plan_move(
            self._page_items(),
            MoveIntent(item_id=page_id, target_container_id=group_id, before_id=before_page_id),
        )
        self._write_pages(plan.updates)
        logger.info_ctx("Page moved", page_id=str(page_id), order_index=plan.target_index)
        return plan

    def reorder_groups(self, group_ids: list) -> ReorderPlan:
        items = [OrderedItem(group.id, None, group.order_index) for group in self.repository.get_all_groups()]
        plan = plan_sequence(items, group_ids)
        self._write_groups(plan.updates)
        return plan

    def delete_group(self, group_id) -> None:
        """
        Delete a group. Its pages are appended to the ungrouped pages and the
        remaining groups are re-indexed from 0.
        """
        group = self.repository.get_group_or_404(group_id)
        items = self._page_items()
        merged = [item for item in items if item.container_id is None]
        merged += [item for item in items if item.container_id == group.id]
        self._write_pages(densify(merged, None))

        with storage_errors(self.repository.session, "delete group"):
            self.repository.delete_group(group)

        remaining = [
            OrderedItem(other.id, None, other.order_index)
            for other in self.repository.get_all_groups()
            if other.id != group.id
        ]
        self._write_groups(densify(remaining, None))
        logger.info_ctx("Group deleted", group_id=str(group_id))


def get_navigation_service(
    repository: NavigationRepository = Depends(get_navigation_repository),
) -> NavigationService:
    """Dependency for the navigation service"""
    return NavigationService(repository)
