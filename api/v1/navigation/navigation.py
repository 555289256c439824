"""Navigation API endpoints - interface groups and the pages inside them"""

from uuid import UUID
from fastapi import APIRouter, Depends, status

from schemas.navigation import (
    GroupReorder,
    InterfaceGroupCreate,
    InterfaceGroupRead,
    InterfacePageCreate,
    InterfacePageRead,
    PageMove,
)
from services.navigation_service import NavigationService, get_navigation_service

router = APIRouter()


@router.get("/", response_model=list[InterfaceGroupRead])
def list_navigation(service: NavigationService = Depends(get_navigation_service)):
    """Groups in order with their pages; ungrouped pages come last"""
    return service.list_navigation()


@router.post("/groups/", response_model=InterfaceGroupRead, status_code=status.HTTP_201_CREATED)
def create_group(
    data: InterfaceGroupCreate,
    service: NavigationService = Depends(get_navigation_service),
):
    return service.create_group(data.name)


@router.post("/groups/reorder/", response_model=list[InterfaceGroupRead])
def reorder_groups(
    data: GroupReorder,
    service: NavigationService = Depends(get_navigation_service),
):
    service.reorder_groups(data.group_ids)
    return service.list_navigation()


@router.delete("/groups/{group_id}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: UUID,
    service: NavigationService = Depends(get_navigation_service),
):
    """Delete a group; its pages become ungrouped"""
    service.delete_group(group_id)


@router.post("/pages/", response_model=InterfacePageRead, status_code=status.HTTP_201_CREATED)
def create_page(
    data: InterfacePageCreate,
    service: NavigationService = Depends(get_navigation_service),
):
    return service.create_page(data.name, data.group_id)


@router.post("/pages/{page_id}/move/", response_model=list[InterfaceGroupRead])
def move_page(
    page_id: UUID,
    data: PageMove,
    service: NavigationService = Depends(get_navigation_service),
):
    """Move a page into a group (null = ungrouped), before a sibling or at the end"""
    service.move_page(page_id, data.group_id, data.before_page_id)
    return service.list_navigation()
