"""Domain exceptions raised by the service layer.

The API layer maps them to HTTP status codes; the fake client data source
maps them to ``ApiError`` with the same codes.
"""
from __future__ import annotations


class AssetTrackerError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AssetTrackerError):
    """A referenced entity does not exist."""

    status_code = 404


class InvalidRequestError(AssetTrackerError):
    """Missing or malformed input."""

    status_code = 400


class InvalidTransitionError(InvalidRequestError):
    """A status change the lifecycle does not allow."""

    status_code = 409
