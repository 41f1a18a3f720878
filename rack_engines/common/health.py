"""Liveness and readiness endpoints for the rack editor service."""
from typing import Any, Dict, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from rack_engines import __version__
from rack_engines.config import runtime_config

router = APIRouter(tags=["system"])


class ProbeResult(BaseModel):
    status: str = "ok"
    version: str = __version__
    env: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


@router.get("/health", response_model=ProbeResult)
def liveness():
    return ProbeResult(env=runtime_config.get_env())


@router.get("/ready", response_model=ProbeResult)
def readiness():
    """Reports the editor defaults new layouts will be created with."""
    settings = runtime_config.config_snapshot()
    return ProbeResult(env=settings.pop("env"), settings=settings)
