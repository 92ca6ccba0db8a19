from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Protocol

from ..common.datetime_utils import now_utc
from ..core.enums import GeolocationErrorCode
from .model import LocationData, LocationError, LocationOptions, LocationResult

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Geolocation is not supported by this browser."
TIMEOUT_MESSAGE = "Timeout expired while acquiring the current position."


class PositionError(Exception):
    """Raised by a position source that cannot produce a reading."""

    def __init__(self, code: GeolocationErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class Locator(Protocol):
    """Source of the current device position for a clock action."""

    def get_current_location(self) -> LocationResult:
        raise NotImplementedError


def _epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def _error(code: GeolocationErrorCode, message: str) -> LocationResult:
    return LocationResult(error=LocationError(code=code, message=message))


class StaticLocator(Locator):
    """Always answers with the same reading (or the same error)."""

    def __init__(self, location: Optional[LocationData] = None, error: Optional[LocationError] = None):
        if location is None and error is None:
            error = LocationError(code=GeolocationErrorCode.UNSUPPORTED, message=UNSUPPORTED_MESSAGE)
        self._result = LocationResult(location=location, error=None if location else error)

    @classmethod
    def at(cls, latitude: float, longitude: float, *, accuracy: float = 10.0) -> "StaticLocator":
        return cls(
            LocationData(latitude=latitude, longitude=longitude, accuracy=accuracy, timestamp=_epoch_ms(now_utc()))
        )

    def get_current_location(self) -> LocationResult:
        return self._result


class PayloadLocator(Locator):
    """Position reported by the client along with the clock request.

    Accepts ``{"location": {"latitude", "longitude", "accuracy", "timestamp"}}``
    or ``{"location_error": {"code", "message"}}``. The timestamp is the
    device's own clock and is kept as reported; a missing one is stamped
    with the server time.
    """

    def __init__(
        self,
        payload: Any,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._payload = payload if isinstance(payload, Mapping) else {}
        self._clock = clock

    def get_current_location(self) -> LocationResult:
        err = self._payload.get("location_error")
        if isinstance(err, Mapping):
            try:
                code = GeolocationErrorCode(int(err.get("code", GeolocationErrorCode.POSITION_UNAVAILABLE)))
            except (TypeError, ValueError):
                code = GeolocationErrorCode.POSITION_UNAVAILABLE
            return _error(code, str(err.get("message") or "Unable to retrieve your location."))

        loc = self._payload.get("location")
        if not isinstance(loc, Mapping):
            return _error(GeolocationErrorCode.UNSUPPORTED, UNSUPPORTED_MESSAGE)

        try:
            latitude = float(loc["latitude"])
            longitude = float(loc["longitude"])
            accuracy = float(loc.get("accuracy") or 0.0)
        except (KeyError, TypeError, ValueError):
            return _error(GeolocationErrorCode.POSITION_UNAVAILABLE, "Location reading is incomplete.")

        if not (math.isfinite(latitude) and math.isfinite(longitude)) or abs(latitude) > 90 or abs(longitude) > 180:
            return _error(GeolocationErrorCode.POSITION_UNAVAILABLE, "Location reading is out of range.")

        now_ms = _epoch_ms(self._clock())
        try:
            timestamp = int(loc.get("timestamp") or now_ms)
        except (TypeError, ValueError):
            timestamp = now_ms

        return LocationResult(
            location=LocationData(latitude=latitude, longitude=longitude, accuracy=accuracy, timestamp=timestamp)
        )


class TimeBoundLocator(Locator):
    """Wraps a blocking position source and gives up after ``options.timeout``.

    Adapter for embedding the service next to a device-side position source
    (the HTTP app takes readings from the request through PayloadLocator).
    A pending read cannot be aborted; it is left to finish in the background
    and its result is discarded.
    """

    def __init__(
        self,
        source: Callable[[LocationOptions], LocationData],
        *,
        options: Optional[LocationOptions] = None,
    ):
        self._source = source
        self._options = options or LocationOptions()

    def get_current_location(self) -> LocationResult:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="geolocation")
        try:
            future = executor.submit(self._source, self._options)
            return LocationResult(location=future.result(timeout=self._options.timeout))
        except FutureTimeoutError:
            logger.warning("Geolocation timed out after %.1fs", self._options.timeout)
            return _error(GeolocationErrorCode.TIMEOUT, TIMEOUT_MESSAGE)
        except PositionError as e:
            return _error(e.code, e.message)
        except Exception:
            logger.exception("Position source failed")
            return _error(GeolocationErrorCode.POSITION_UNAVAILABLE, "Unable to retrieve your location.")
        finally:
            executor.shutdown(wait=False)
