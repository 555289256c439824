"""Navigation Repository - Data access layer for interface groups and pages"""

from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from core.errors import NotFoundError
from db.session import get_db
from models import InterfaceGroup, InterfacePage


class NavigationRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_group_or_404(self, group_id: UUID) -> InterfaceGroup:
        group = self.session.get(InterfaceGroup, group_id)
        if not group:
            raise NotFoundError(f"Interface group '{group_id}' not found")
        return group

    def get_page_or_404(self, page_id: UUID) -> InterfacePage:
        page = self.session.get(InterfacePage, page_id)
        if not page:
            raise NotFoundError(f"Interface page '{page_id}' not found")
        return page

    def get_all_groups(self) -> list[InterfaceGroup]:
        stmt = select(InterfaceGroup).order_by(InterfaceGroup.order_index, InterfaceGroup.name)
        return list(self.session.scalars(stmt).all())

    def get_all_pages(self) -> list[InterfacePage]:
        stmt = select(InterfacePage).order_by(InterfacePage.order_index, InterfacePage.created_at)
        return list(self.session.scalars(stmt).all())

    def create_group(self, name: str, order_index: int) -> InterfaceGroup:
        group = InterfaceGroup(name=name, order_index=order_index)
        self.session.add(group)
        self.session.commit()
        self.session.refresh(group)
        return group

    def create_page(self, name: str, group_id: UUID | None, order_index: int) -> InterfacePage:
        page = InterfacePage(name=name, group_id=group_id, order_index=order_index)
        self.session.add(page)
        self.session.commit()
        self.session.refresh(page)
        return page

    def delete_group(self, group: InterfaceGroup) -> None:
        self.session.delete(group)
        self.session.commit()

    def bulk_update_pages(self, updates: list[dict]) -> None:
        """Apply [{id, group_id, order_index}] in one transaction"""
        for entry in updates:
            page = self.get_page_or_404(entry["id"])
            page.group_id = entry["group_id"]
            page.order_index = entry["order_index"]
        self.session.commit()

    def bulk_update_groups(self, updates: list[dict]) -> None:
        """Apply [{id, order_index}] in one transaction"""
        for entry in updates:
            group = self.get_group_or_404(entry["id"])
            group.order_index = entry["order_index"]
        self.session.commit()


def get_navigation_repository(db: Session = Depends(get_db)) -> NavigationRepository:
    """Dependency for navigation repository"""
    return NavigationRepository(db)
