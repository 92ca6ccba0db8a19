"""Kinster attendance tracker.

Feature modules (users, attendance, geolocation, reports) sit on top of a
local key/value storage layer; a thin Flask controller layer exposes them.
"""

__version__ = "1.0.0"
