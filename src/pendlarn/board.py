"""Commute board: which trains to show for a route and how to show them."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Tuple

from .models import Information, TrainAnnouncement
from .trafikverket_client import TrafikverketClient

logger = logging.getLogger(__name__)

# Notices that are true but not worth a commuter's attention
UNINTERESTING_CODES = {
    "ONA151",  # stannar ej i Märsta
    "ONA124",  # buss ersätter
    "ONA001",  # ej avstigning från X vagnar
}

LOCATION_NAMES = {
    "U": "Uppsala",
    "Cst": "Stockholm C",
}

# Look for trains departing within this window...
DEPARTURE_WINDOW = timedelta(hours=1)
# ...but search twice as long, since trains must also reach the destination in time
SEARCH_DURATION = 2 * DEPARTURE_WINDOW


@dataclass(frozen=True)
class Route:
    """A commute between two stations, addressed by a URL slug."""
    slug: str
    from_station: str
    to_station: str

    @property
    def name(self) -> str:
        return location_name(self.from_station)


ROUTES: Dict[str, Route] = {
    "uppsala": Route("uppsala", "U", "Cst"),
    "stockholm": Route("stockholm", "Cst", "U"),
}
DEFAULT_ROUTE = "uppsala"


@dataclass
class BoardRow:
    """One departure as shown on the board."""
    time: str
    track: str
    operator: str
    train_ident: str
    deviations: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)


def is_uninteresting(info: Information) -> bool:
    """True for notices that should be left off the board."""
    return info.code in UNINTERESTING_CODES


def location_name(location_signature: str) -> str:
    """Human readable name for a location signature, or the signature itself."""
    return LOCATION_NAMES.get(location_signature, location_signature)


def search_window(after: datetime) -> Tuple[datetime, datetime]:
    return after, after + SEARCH_DURATION


def build_row(announcement: TrainAnnouncement) -> BoardRow:
    """
    Turn an announcement into a board row.

    Deviations are always kept. Other information is filtered through
    is_uninteresting().
    """
    return BoardRow(
        time=announcement.display_time(),
        track=announcement.track_at_location,
        operator=announcement.operator,
        train_ident=announcement.advertised_train_ident,
        deviations=[info.description for info in announcement.deviation],
        notices=[
            info.description
            for info in announcement.other_information
            if not is_uninteresting(info)
        ],
    )


def build_rows(announcements: List[TrainAnnouncement]) -> List[BoardRow]:
    return [build_row(announcement) for announcement in announcements]


class CommuteBoard:
    """
    Builds the departure board for a configured route.

    This class provides methods to:
    - Resolve a route by slug
    - Fetch the trains leaving within the next window
    - Format them as board rows
    """

    def __init__(self, client: TrafikverketClient, timezone: Optional[tzinfo] = None):
        """
        Initialize the board.

        Args:
            client: Client used to query Trafikverket.
            timezone: Zone "now" is taken in. Defaults to the local zone.
        """
        self.client = client
        self.timezone = timezone

    @staticmethod
    def get_route(slug: str) -> Route:
        """
        Get a route by slug.

        Raises:
            KeyError: If there is no such route.
        """
        return ROUTES[slug]

    def now(self) -> datetime:
        if self.timezone is None:
            return datetime.now().astimezone()
        return datetime.now(self.timezone)

    def departures(self, slug: str, after: Optional[datetime] = None) -> Tuple[Route, List[BoardRow]]:
        """
        Get the board rows for a route.

        Args:
            slug: Route slug (e.g. "uppsala").
            after: Start of the search window. Defaults to now.

        Returns:
            The route and its rows, ordered by advertised time.
        """
        route = self.get_route(slug)
        if after is None:
            after = self.now()
        after, before = search_window(after)

        announcements = self.client.get_trains_stopping_at(
            route.from_station, route.to_station, after, before
        )
        logger.info(f"{len(announcements)} departures from {route.name} after {after:%H:%M}")
        return route, build_rows(announcements)
