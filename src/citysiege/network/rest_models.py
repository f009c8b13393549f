"""Pydantic request/response models for the admin REST API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


# ===================================================================
# Auth
# ===================================================================


class TokenRequest(BaseModel):
    secret: str
    name: str = "admin"


class TokenResponse(BaseModel):
    success: bool
    token: str = ""
    reason: str = ""


# ===================================================================
# Siege control
# ===================================================================


class StartRequest(BaseModel):
    city: Optional[str] = None


class StopRequest(BaseModel):
    city: str
    winner: str = Field(..., description="'alliance' or 'horde'")


class CleanupRequest(BaseModel):
    city: Optional[str] = None


class CommandRequest(BaseModel):
    command: str = Field(..., description="e.g. 'status' or 'waypoints stormwind'")
    session: Optional[str] = Field(None, description="Act as this connected session")


class CommandResponse(BaseModel):
    lines: List[str]


# ===================================================================
# Status
# ===================================================================


class SiegeSummary(BaseModel):
    event_id: int
    city: str
    phase: str
    attackers: int
    defenders: int
    queued_respawns: int
    remaining_seconds: float
    narrative_remaining_seconds: float
    leader: str
    leader_alive: bool
    leader_health: Optional[float] = None
    outcome: Optional[str] = None


class CitySummary(BaseModel):
    name: str
    faction: str
    map_id: int
    enabled: bool
    waypoints: int
    under_siege: bool


class StatusResponse(BaseModel):
    enabled: bool
    next_siege_in: Optional[float] = None
    sieges: List[SiegeSummary]


class OperationResponse(BaseModel):
    success: bool
    error: str = ""
    siege: Optional[SiegeSummary] = None
    cleaned: List[str] = []
