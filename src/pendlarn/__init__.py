"""Pendlarn - commuter train departures from Trafikverket's open API."""

__version__ = "0.1.0"

from .models import Information, TrainAnnouncement, TimeWindow
from .exceptions import (
    PendlarnError,
    InvalidWindowError,
    TransportError,
    UpstreamError,
    AuthError,
    DecodeError,
)
from .trafikverket_client import TrafikverketClient, get_trains_stopping_at
from .board import CommuteBoard, BoardRow

__all__ = [
    "TrafikverketClient",
    "get_trains_stopping_at",
    "CommuteBoard",
    "BoardRow",
    "Information",
    "TrainAnnouncement",
    "TimeWindow",
    "PendlarnError",
    "InvalidWindowError",
    "TransportError",
    "UpstreamError",
    "AuthError",
    "DecodeError",
]
