"""Health check routes."""

from fastapi import APIRouter

import floormesh

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/version")
async def version():
    """Package version of the mesh generator."""
    return {"version": floormesh.__version__}
