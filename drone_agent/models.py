"""
Data models: dataclasses for agent-local state, Pydantic models for ledger payloads.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Literal, NamedTuple, Optional, Set

from pydantic import BaseModel, ValidationError

from drone_agent.errors import MalformedResponse

# --- Wire constants ---
E7 = 10_000_000
PRICE_DECIMALS = 18
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
# "no update" markers understood by reportLiveness(int256,int256,int256,uint256)
INT256_MIN = -(1 << 255)
READY_UNCHANGED = -1

# --- Type aliases ---
Phase = Literal["ready", "toPickup", "toDropoff", "returning"]


class RequestStatus(IntEnum):
    OPEN = 0
    PROPOSED = 1
    ACCEPTED = 2
    STARTED = 3
    PICKED_UP = 4
    DROPPED = 5
    COMPLETED = 6
    CANCELLED = 7

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    RequestStatus.OPEN: "Open",
    RequestStatus.PROPOSED: "Proposed",
    RequestStatus.ACCEPTED: "Accepted",
    RequestStatus.STARTED: "Started",
    RequestStatus.PICKED_UP: "PickedUp",
    RequestStatus.DROPPED: "Dropped",
    RequestStatus.COMPLETED: "Completed",
    RequestStatus.CANCELLED: "Cancelled",
}


class Coordinate(NamedTuple):
    """Latitude/longitude in degrees scaled by 1e7."""
    lat: int
    lon: int

    def degrees(self) -> str:
        return f"lat: {self.lat / E7:.7f}, lon: {self.lon / E7:.7f}"


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def is_zero_address(addr: Optional[str]) -> bool:
    return not addr or addr.strip().lower() == ZERO_ADDRESS


# --- Internal state dataclasses ---

@dataclass
class AgentState:
    position: Coordinate
    home: Coordinate
    ready: bool = True
    phase: Phase = "ready"
    speed_mph: float = 10.0
    max_trip_km: float = 6.0
    price_per_km: float = 0.1
    pending_bids: Set[int] = field(default_factory=set)


@dataclass
class HeartbeatCache:
    last_lat: Optional[int] = None
    last_lon: Optional[int] = None
    last_ready: Optional[bool] = None

    @property
    def empty(self) -> bool:
        return self.last_lat is None or self.last_lon is None or self.last_ready is None


@dataclass
class HeartbeatReport:
    lat: int
    lon: int
    ready: int
    timestamp: int


# --- Pydantic ledger models ---

# Order of Hummingbird.DeliveryRequest; positional replies follow it.
REQUEST_FIELDS: List[str] = [
    "id", "requester",
    "pickup_lat_e7", "pickup_lon_e7", "drop_lat_e7", "drop_lon_e7",
    "price", "proposed_price", "drone", "status",
    "requested_at", "proposed_at", "targeted_device", "expires_at",
    "max_price", "accepted_at",
]

_NAMED_ALIASES: Dict[str, tuple] = {
    "id": ("id", "requestId"),
    "requester": ("requester",),
    "pickup_lat_e7": ("pickup_lat_e7", "pickupLatE7", "pickupLat"),
    "pickup_lon_e7": ("pickup_lon_e7", "pickupLonE7", "pickupLon"),
    "drop_lat_e7": ("drop_lat_e7", "dropLatE7", "dropLat"),
    "drop_lon_e7": ("drop_lon_e7", "dropLonE7", "dropLon"),
    "price": ("price",),
    "proposed_price": ("proposed_price", "proposedPrice"),
    "drone": ("drone",),
    "status": ("status",),
    "requested_at": ("requested_at", "requestedAt"),
    "proposed_at": ("proposed_at", "proposedAt"),
    "targeted_device": ("targeted_device", "targetedDevice", "target"),
    "expires_at": ("expires_at", "expiresAt", "expiry"),
    "max_price": ("max_price", "maxPrice"),
    "accepted_at": ("accepted_at", "acceptedAt"),
}


class DeliveryRequest(BaseModel):
    id: int
    requester: str = ZERO_ADDRESS
    pickup_lat_e7: int
    pickup_lon_e7: int
    drop_lat_e7: int
    drop_lon_e7: int
    price: int = 0
    proposed_price: int = 0
    drone: str = ZERO_ADDRESS
    status: RequestStatus = RequestStatus.OPEN
    requested_at: int = 0
    proposed_at: int = 0
    targeted_device: str = ZERO_ADDRESS
    expires_at: int = 0
    max_price: int = 0
    accepted_at: int = 0

    @property
    def pickup(self) -> Coordinate:
        return Coordinate(self.pickup_lat_e7, self.pickup_lon_e7)

    @property
    def dropoff(self) -> Coordinate:
        return Coordinate(self.drop_lat_e7, self.drop_lon_e7)

    @property
    def is_targeted(self) -> bool:
        return not is_zero_address(self.targeted_device)

    def assigned_to(self, agent: str) -> bool:
        return same_address(self.drone, agent)

    def exclusive_for_other(self, agent: str, now: int) -> bool:
        """Targeted at someone else and still inside the exclusivity window."""
        return self.is_targeted and self.expires_at > now and not same_address(self.targeted_device, agent)

    @classmethod
    def from_wire(cls, raw: Any) -> "DeliveryRequest":
        """Accept either a named mapping or a positional tuple in ledger order."""
        if isinstance(raw, dict):
            data = {}
            for name, keys in _NAMED_ALIASES.items():
                for k in keys:
                    if raw.get(k) is not None:
                        data[name] = raw[k]
                        break
        elif isinstance(raw, (list, tuple)):
            data = {name: v for name, v in zip(REQUEST_FIELDS, raw) if v is not None}
        else:
            raise MalformedResponse(f"unexpected request payload type {type(raw).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedResponse(f"bad delivery request: {e.errors()[0].get('loc')} {e.errors()[0].get('msg')}") from e

    def to_wire(self) -> dict:
        d = self.model_dump()
        d["status"] = int(self.status)
        return d
