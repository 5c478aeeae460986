"""
FastAPI Entrypoint.
Serves the design studio's generation, pricing and 3D flow.

Responsibilities:
- Initialize FastAPI app
- Register routers (generate, status, pricing, recolor, listing, submissions)
- Setup middleware (CORS, logging)
- Stop background 3D polling on shutdown
- Health check endpoints
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from design_studio.core.config import settings
from design_studio.core.logger import setup_logger
from design_studio.dependencies import get_job_registry
from design_studio.routes import generate, listing, pricing, recolor, status, submissions

setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Poll loops must not outlive the app
    registry = app.dependency_overrides.get(get_job_registry, get_job_registry)()
    await registry.shutdown()


app = FastAPI(
    title=f"{settings.PROJECT_NAME} Backend",
    description="API for AI furniture design generation, pricing and 3D reconstruction",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generate.router)
app.include_router(status.router)
app.include_router(pricing.router)
app.include_router(recolor.router)
app.include_router(listing.router)
app.include_router(submissions.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": f"{settings.PROJECT_NAME} backend is running"}
