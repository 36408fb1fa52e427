import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from netlab.api.routes import router as network_router
from netlab.api.tables import router as tables_router
from netlab.engine.measure_registry import MeasureRegistry
from netlab.measures import measure_functions

logger = logging.getLogger("uvicorn.error")

SAMPLES_DIR = Path(__file__).resolve().parent.parent / "samples"

CORS_ORIGINS = ["http://localhost:5173"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup: log built-in measures and available samples ---
    registry = MeasureRegistry()
    registry.register_from_module(measure_functions)
    names = registry.list_measures()
    logger.info("Loaded %d built-in measures: %s", len(names), names)

    if SAMPLES_DIR.is_dir():
        samples = sorted(
            {p.stem for p in SAMPLES_DIR.glob("*.json")}
            | {p.name for p in SAMPLES_DIR.iterdir() if p.is_dir() and any(p.glob("edges*.csv"))}
        )
        logger.info("Available sample networks: %s", samples)
    else:
        logger.warning("Samples directory does not exist: %s", SAMPLES_DIR)

    yield


app = FastAPI(
    title="Network Analysis Workbench",
    description="Descriptive statistics, centrality, communities and cores for social networks",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(network_router)
app.include_router(tables_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
