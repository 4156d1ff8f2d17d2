"""FloorMesh FastAPI Application"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
load_dotenv()  # Load .env file

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import floors, health

# Configure logging
logging.basicConfig(
    level=os.getenv("FLOORMESH_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    logger.info("Starting FloorMesh API...")
    yield
    logger.info("Shutting down FloorMesh API...")


app = FastAPI(
    title="FloorMesh",
    description="FML floor plans to per-floor 3D meshes",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for viewer frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv(
        "FLOORMESH_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(floors.router, prefix="/api/floors", tags=["Floors"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "FloorMesh",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs",
    }
