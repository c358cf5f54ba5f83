"""Design routes: seed and read designs consumed by the simulation engine."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from backend.designs.models import CreateDesignRequest, Design, DesignMetadata, DesignSummary

router = APIRouter()


@router.post("/designs", response_model=Design, status_code=201)
async def create_design(body: CreateDesignRequest, request: Request):
    """Store a new design and return it with its generated id."""
    store = request.app.state.design_store
    try:
        design = Design(
            name=body.name or "Untitled Design",
            components=body.components,
            connections=body.connections,
            metadata=DesignMetadata(**(body.metadata or {})),
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    await store.add_design(design)
    return design


@router.get("/designs", response_model=list[DesignSummary])
async def list_designs(request: Request):
    """List stored designs."""
    store = request.app.state.design_store
    return await store.list_summaries()


@router.get("/designs/{design_id}", response_model=Design)
async def get_design(design_id: str, request: Request):
    """Get a specific design."""
    store = request.app.state.design_store
    design = await store.get_design(design_id)
    if not design:
        raise HTTPException(status_code=404, detail="Design not found")
    return design
