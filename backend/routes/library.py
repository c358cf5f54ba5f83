"""Library routes: static component type catalog."""

from fastapi import APIRouter

from engine.components import get_component_library

router = APIRouter()


@router.get("/components")
async def list_components():
    """Component types with their property schema and pins, for property editors."""
    return get_component_library()
