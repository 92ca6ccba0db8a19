from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_GEOLOCATION_TIMEOUT_SECONDS
from ..core.enums import GeolocationErrorCode


@dataclass(frozen=True)
class LocationOptions:
    """Options of a position request: accurate, time-bounded, never cached."""

    enable_high_accuracy: bool = True
    timeout: float = DEFAULT_GEOLOCATION_TIMEOUT_SECONDS
    maximum_age: float = 0.0


@dataclass(frozen=True)
class LocationData:
    latitude: float
    longitude: float
    accuracy: float
    timestamp: int  # epoch milliseconds


@dataclass(frozen=True)
class LocationError:
    code: GeolocationErrorCode
    message: str


@dataclass(frozen=True)
class LocationResult:
    location: Optional[LocationData] = None
    error: Optional[LocationError] = None

    @property
    def ok(self) -> bool:
        return self.location is not None
