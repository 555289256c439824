"""Sections API endpoints - named groupings of the fields of a table"""

from uuid import UUID
from fastapi import APIRouter, Depends, status

from schemas.section import (
    PersistedSection,
    SectionCreate,
    SectionDefinition,
    SectionMove,
    SectionReorder,
    SectionUpdate,
)
from services.section_manager import SectionManager, get_section_manager

router = APIRouter()


@router.get("/", response_model=list[SectionDefinition])
def list_sections(
    table_id: UUID,
    manager: SectionManager = Depends(get_section_manager),
):
    """
    List the sections of a table.

    Includes sections that only exist because fields use their name
    (kind "virtual") and the default section when ungrouped fields exist.
    """
    return manager.list_sections(table_id)


@router.post("/", response_model=PersistedSection, status_code=status.HTTP_201_CREATED)
def create_section(
    table_id: UUID,
    section_data: SectionCreate,
    manager: SectionManager = Depends(get_section_manager),
):
    return manager.create_section(table_id, section_data.model_dump())


@router.post("/reorder/", response_model=list[SectionDefinition])
def reorder_sections(
    table_id: UUID,
    data: SectionReorder,
    manager: SectionManager = Depends(get_section_manager),
):
    """
    Reorder the non-default sections.

    Sections are given by id, or by name for sections that have no row yet.
    The default section always stays first.
    """
    return manager.reorder_sections(table_id, data.sections)


@router.post("/{section_key}/move/", response_model=list[SectionDefinition])
def move_section(
    table_id: UUID,
    section_key: str,
    data: SectionMove,
    manager: SectionManager = Depends(get_section_manager),
):
    return manager.move_section(table_id, section_key, data.before)


@router.patch("/{section_id}/", response_model=PersistedSection)
def update_section(
    table_id: UUID,
    section_id: UUID,
    update_data: SectionUpdate,
    manager: SectionManager = Depends(get_section_manager),
):
    """Update section settings. Renaming a section moves its fields along."""
    return manager.update_section(table_id, section_id, update_data.model_dump(exclude_unset=True))


@router.delete("/{section_id}/", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(
    table_id: UUID,
    section_id: UUID,
    manager: SectionManager = Depends(get_section_manager),
):
    """Delete a section; its fields move to the end of the default section"""
    manager.delete_section(table_id, section_id)
