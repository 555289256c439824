"""Data table API routes"""

from fastapi import APIRouter
from . import tables, fields, sections

router = APIRouter()

router.include_router(tables.router, prefix="/tables", tags=["Tables"])
router.include_router(fields.router, prefix="/tables/{table_id}/fields", tags=["Fields"])
router.include_router(sections.router, prefix="/tables/{table_id}/sections", tags=["Sections"])
