"""
Pydantic Models and Schemas
===========================

Request envelopes and service responses used around the clipping pipeline.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.types import StrictStr

from webclip.models.params import ClipParams


class ClipRequestEnvelope(BaseModel):
    """Top-level JSON request fields that are not clipping parameters."""

    model_config = ConfigDict(extra="ignore")

    url: Optional[StrictStr] = Field(None, description="Page to clip")
    presets: Optional[List[StrictStr]] = Field(None, description="Preset references")


class DecodedRequest(BaseModel):
    """A request decoded into target URL, preset references and parameters."""

    url: str = Field("", description="Page to clip")
    presets: List[str] = Field(default_factory=list, description="Preset references in order")
    params: ClipParams = Field(default_factory=ClipParams, description="Explicit parameters")


class GatewayStatus(BaseModel):
    """Admission gateway occupancy."""

    capacity: int = Field(..., ge=1, description="Configured slot count")
    available: int = Field(..., ge=0, description="Free slots")
    in_flight: int = Field(..., ge=0, description="Renderer calls in progress")


class HealthStatus(BaseModel):
    """Health check status."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(..., description="Overall status")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Check timestamp"
    )
    version: str = Field(..., description="Application version")
    renderer: bool = Field(..., description="Renderer readiness")
    gateway: GatewayStatus = Field(..., description="Admission gateway occupancy")
    presets: int = Field(0, ge=0, description="Number of loaded presets")
