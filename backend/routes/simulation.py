"""Batch simulation route: fixed-step runs returned in one response."""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from backend.models import BatchSimulationMetadata, BatchSimulationRequest, BatchSimulationResponse
from engine.batch import run_batch

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/designs/{design_id}/simulate", response_model=BatchSimulationResponse)
async def simulate_design(
    design_id: str,
    request: Request,
    body: Optional[BatchSimulationRequest] = None,
):
    """Run a design for a fixed number of steps and return every snapshot."""
    body = body or BatchSimulationRequest()
    store = request.app.state.design_store
    design = await store.get_design(design_id)
    if not design:
        raise HTTPException(status_code=404, detail="Design not found")

    rng = request.app.state.rng_factory()
    try:
        # Keep the event loop free for streaming ticks while the batch runs
        results = await run_in_threadpool(run_batch, design.to_engine(), body.steps, body.time_step, rng)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Batch simulated design %s for %d steps", design_id, body.steps)
    return BatchSimulationResponse(
        design_id=design_id,
        simulation_results=results,
        metadata=BatchSimulationMetadata(
            steps=body.steps,
            time_step=body.time_step,
            duration=body.steps * body.time_step,
            timestamp=datetime.now(timezone.utc).isoformat(),
        ),
    )
