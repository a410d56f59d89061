"""Trafikverket open API client."""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import requests

from .exceptions import AuthError, DecodeError, TransportError, UpstreamError
from .models import TimeWindow, TrainAnnouncement
from .queries import OBJECT_TYPE, build_detail_query, build_list_query

logger = logging.getLogger(__name__)

TRAFIKVERKET_URL = "https://api.trafikinfo.trafikverket.se/v2/data.json"
DEFAULT_TIMEOUT = 10  # seconds


def dedupe_identifiers(identifiers: Iterable[str]) -> List[str]:
    """Drop repeated idents, keeping the order they were first seen in."""
    seen = set()
    unique: List[str] = []
    for ident in identifiers:
        if ident not in seen:
            seen.add(ident)
            unique.append(ident)
    return unique


def _as_local(moment: datetime) -> datetime:
    return moment.astimezone() if moment.tzinfo is None else moment


class TrafikverketClient:
    """Fetches train announcements from the Trafikverket API."""

    def __init__(
        self,
        api_key: str,
        url: str = TRAFIKVERKET_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Trafikverket authentication key, sent inside each query body.
            url: Endpoint the XML queries are posted to.
            timeout: Per-request timeout in seconds.
            session: Optional requests session to reuse (mainly for tests).
        """
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_trains_stopping_at(
        self,
        from_station: str,
        to_station: str,
        after: datetime,
        before: datetime,
    ) -> List[TrainAnnouncement]:
        """
        Get departures from from_station for trains that also stop at to_station.

        First lists the idents of every train departing from_station towards
        to_station or arriving at to_station from from_station inside the
        window, then fetches the departure announcements for those idents.

        Args:
            from_station: Location signature of the origin (e.g. "U").
            to_station: Location signature of the destination (e.g. "Cst").
            after: Start of the window (exclusive).
            before: End of the window (exclusive).

        Returns:
            Announcements in the order the API returns them (by advertised time).

        Raises:
            InvalidWindowError: If after is not strictly before before.
            TransportError, AuthError, UpstreamError, DecodeError: If either query fails.
        """
        window = TimeWindow(_as_local(after), _as_local(before))

        list_query = build_list_query(
            self.api_key, from_station, to_station, window.after, window.before
        )
        results = self._query(list_query)
        idents = dedupe_identifiers(
            self._require_ident(record)
            for group in results
            for record in self._records(group)
        )
        logger.debug(f"Found {len(idents)} trains between {from_station} and {to_station}")

        detail_query = build_detail_query(
            self.api_key, from_station, idents, window.after, window.before
        )
        results = self._query(detail_query)
        announcements = [
            TrainAnnouncement.from_dict(record)
            for group in results
            for record in self._records(group)
        ]
        logger.debug(f"Fetched {len(announcements)} announcements from {from_station}")
        return announcements

    def _query(self, body: str) -> List[Dict[str, Any]]:
        """
        Post a query and return the RESULT groups of the response.

        Args:
            body: XML query document.

        Returns:
            List of result groups, one per QUERY element.
        """
        response = self._post(body)
        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"response is not JSON: {e}") from e

        try:
            results = data["RESPONSE"]["RESULT"]
        except (KeyError, TypeError) as e:
            raise DecodeError(f"unexpected response envelope: {e!r}") from e
        if not isinstance(results, list):
            raise DecodeError(f"expected RESULT to be a list, got {type(results).__name__}")

        for group in results:
            if not isinstance(group, dict):
                raise DecodeError(f"expected result group object, got {group!r}")
            if "ERROR" in group:
                error = group["ERROR"]
                message = error.get("MESSAGE") if isinstance(error, dict) else str(error)
                logger.error(f"Trafikverket rejected query: {message}")
                raise UpstreamError(response.status_code, f"query rejected: {message}")
        return results

    def _post(self, body: str) -> requests.Response:
        logger.debug(f"Posting query to {self.url}")
        try:
            response = self.session.post(
                self.url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "text/xml"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Failed to reach {self.url}: {e}")
            raise TransportError(str(e)) from e

        if response.status_code == 401:
            raise AuthError()
        if response.status_code != 200:
            logger.warning(f"Unexpected status {response.status_code} from {self.url}")
            raise UpstreamError(response.status_code)
        return response

    @staticmethod
    def _records(group: Dict[str, Any]) -> List[Any]:
        # The API leaves the key out entirely when nothing matched
        records = group.get(OBJECT_TYPE, [])
        if not isinstance(records, list):
            raise DecodeError(f"expected {OBJECT_TYPE} to be a list, got {type(records).__name__}")
        return records

    @staticmethod
    def _require_ident(record: Any) -> str:
        ident = record.get("AdvertisedTrainIdent") if isinstance(record, dict) else None
        if not isinstance(ident, str):
            raise DecodeError(f"announcement without AdvertisedTrainIdent: {record!r}")
        return ident


def get_trains_stopping_at(
    api_key: str,
    from_station: str,
    to_station: str,
    after: datetime,
    before: datetime,
) -> List[TrainAnnouncement]:
    """Shortcut for a one-off TrafikverketClient(api_key).get_trains_stopping_at(...)."""
    return TrafikverketClient(api_key).get_trains_stopping_at(from_station, to_station, after, before)
