"""FastAPI application for the solar array simulator."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solarsim.api.routes import simulation, websocket
from solarsim.api.routes.websocket import get_engine


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the authoritative engine before the first client connects."""
    engine = get_engine()
    logger.info(
        "Solar array ready: %d region(s), %d panel(s)",
        len(engine.regions),
        sum(len(region.panels) for region in engine.regions.values()),
    )
    yield


app = FastAPI(
    title="Solar Array Simulator",
    description="Sun-tracking solar panels with authority/observer angle replication",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],  # Vite dev server
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(simulation.router)
app.include_router(websocket.router)


@app.get("/")
async def root():
    """Root endpoint with a summary of the simulated array."""
    engine = get_engine()
    return {
        "name": "Solar Array Simulator",
        "version": "0.1.0",
        "status": "running",
        "regions": {
            region_id: [panel.entity_id for panel in region.panels]
            for region_id, region in engine.regions.items()
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
