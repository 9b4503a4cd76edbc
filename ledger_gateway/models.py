"""
Gateway data models: dataclasses for ledger state, Pydantic models for API requests.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from drone_agent.models import ZERO_ADDRESS


# --- Internal state dataclasses ---

@dataclass
class LivenessState:
    agent: str
    lat: Optional[int] = None
    lon: Optional[int] = None
    ready: Optional[bool] = None
    timestamp: int = 0
    reports: int = 0


@dataclass
class LedgerEvent:
    event_id: str
    event_type: str
    request_id: int
    agent: str
    data: dict
    created_at: float


# --- Pydantic request models ---

class CreateRequest(BaseModel):
    requester: str = ZERO_ADDRESS
    pickup_lat_e7: int
    pickup_lon_e7: int
    drop_lat_e7: int
    drop_lon_e7: int
    price: int = Field(default=0, ge=0)
    max_price: int = Field(default=0, ge=0)
    targeted_device: str = ZERO_ADDRESS
    target_window_seconds: Optional[int] = Field(default=None, ge=0)


class ProposalRequest(BaseModel):
    agent: str
    price: int = Field(ge=0)


class AgentActionRequest(BaseModel):
    agent: str


class LivenessRequest(BaseModel):
    lat: int
    lon: int
    ready: int
    timestamp: int = Field(ge=0)
