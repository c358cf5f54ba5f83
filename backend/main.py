"""VelocityChip Backend: FastAPI application entry point."""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import partial

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend import config
from backend.models import HealthResponse
from backend.routes import design, library, simulation, stream
from backend.middleware.rate_limit import RateLimitMiddleware

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _build_design_store():
    if config.DESIGN_STORE == "sqlite":
        from backend.database import init_db, make_engine, make_session_factory
        from backend.designs.store import SQLiteDesignStore
        engine = make_engine()
        init_db(engine)
        return SQLiteDesignStore(make_session_factory(engine))
    if config.DESIGN_STORE != "memory":
        raise ValueError(f"Unknown VELOCITYCHIP_DESIGN_STORE '{config.DESIGN_STORE}'. Must be 'memory' or 'sqlite'")
    from backend.designs.store import InMemoryDesignStore
    return InMemoryDesignStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    from engine.noise import default_noise
    from backend.simulation.registry import SessionRegistry

    app.state.started_at = time.monotonic()
    app.state.design_store = _build_design_store()
    if config.SIMULATION_SEED is not None:
        # One seed sequence per process; each session draws its own child generator
        import numpy as np
        seeds = np.random.SeedSequence(config.SIMULATION_SEED)
        app.state.rng_factory = lambda: default_noise(seeds.spawn(1)[0])
    else:
        app.state.rng_factory = partial(default_noise, None)
    app.state.registry = SessionRegistry(app.state.design_store, rng_factory=app.state.rng_factory)
    logger.info("VelocityChip backend ready (design store: %s)", config.DESIGN_STORE)
    yield
    await app.state.registry.shutdown()


app = FastAPI(
    title="VelocityChip API",
    description="Real-time circuit simulation engine",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: allow frontend origins
_frontend_url = os.getenv("FRONTEND_URL")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[_frontend_url] if _frontend_url else [],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RateLimitMiddleware, requests_per_minute=120, batch_requests_per_minute=20)

# Register route modules
app.include_router(design.router, prefix="/api", tags=["Design"])
app.include_router(simulation.router, prefix="/api", tags=["Simulation"])
app.include_router(library.router, prefix="/api", tags=["Library"])
app.include_router(stream.router, tags=["Streaming"])


@app.get("/api/health", response_model=HealthResponse)
async def health_check(request: Request):
    state = request.app.state
    return HealthResponse(
        status="healthy",
        service="velocitychip-backend",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=time.monotonic() - state.started_at,
        active_simulations=state.registry.active_count,
        connected_clients=state.registry.observer_count,
        total_designs=await state.design_store.count(),
    )


def serve() -> None:
    """Run the API under uvicorn with the configured bind address."""
    import uvicorn
    uvicorn.run("backend.main:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    serve()
