"""Data models for Pendlarn."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from .exceptions import DecodeError, InvalidWindowError

logger = logging.getLogger(__name__)

# Upstream times carry no zone, e.g. "2024-03-01T08:05:00"
ADVERTISED_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _require_str(record: Dict[str, Any], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"expected string field {key!r} in {record!r}")
    return value


def _optional_str(record: Dict[str, Any], key: str) -> str:
    value = record.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"expected string field {key!r}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class TimeWindow:
    """Open interval (after, before) of advertised times to search."""
    after: datetime
    before: datetime

    def __post_init__(self):
        if not self.after < self.before:
            raise InvalidWindowError(
                f"after ({self.after.isoformat()}) must be before before ({self.before.isoformat()})"
            )


@dataclass
class Information:
    """A coded notice attached to an announcement."""
    code: str
    description: str

    @classmethod
    def from_dict(cls, data: Any) -> "Information":
        if not isinstance(data, dict):
            raise DecodeError(f"expected information object, got {data!r}")
        return cls(code=_optional_str(data, "Code"), description=_optional_str(data, "Description"))


def _information_list(record: Dict[str, Any], key: str) -> List[Information]:
    items = record.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise DecodeError(f"expected list field {key!r}, got {type(items).__name__}")
    return [Information.from_dict(item) for item in items]


@dataclass
class TrainAnnouncement:
    """One train's advertised departure or arrival at a location."""
    location_signature: str
    advertised_time_at_location: str  # Raw upstream timestamp
    advertised_train_ident: str
    operator: str = ""
    track_at_location: str = ""
    deviation: List[Information] = field(default_factory=list)
    other_information: List[Information] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "TrainAnnouncement":
        """
        Build an announcement from an upstream TrainAnnouncement record.

        Raises:
            DecodeError: If required fields are missing or have the wrong type.
        """
        if not isinstance(data, dict):
            raise DecodeError(f"expected announcement object, got {data!r}")
        return cls(
            location_signature=_require_str(data, "LocationSignature"),
            advertised_time_at_location=_require_str(data, "AdvertisedTimeAtLocation"),
            advertised_train_ident=_require_str(data, "AdvertisedTrainIdent"),
            operator=_optional_str(data, "Operator"),
            track_at_location=_optional_str(data, "TrackAtLocation"),
            deviation=_information_list(data, "Deviation"),
            other_information=_information_list(data, "OtherInformation"),
        )

    def parse_time(self) -> datetime:
        """Parse the advertised time. Raises ValueError if it is not in the expected format."""
        return datetime.strptime(self.advertised_time_at_location, ADVERTISED_TIME_FORMAT)

    def display_time(self) -> str:
        """
        Advertised time as HH:MM.

        Falls back to slicing the raw string when it does not parse, so an
        odd timestamp still shows up on the board instead of failing the page.
        """
        try:
            return self.parse_time().strftime("%H:%M")
        except ValueError:
            logger.debug(f"Could not parse time {self.advertised_time_at_location!r}, using raw value")
            return self.advertised_time_at_location[11:16]
