"""Request bodies for the Trafikverket query language."""

import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Iterable, List, Tuple

OBJECT_TYPE = "TrainAnnouncement"
SCHEMA_VERSION = "1.8"
ORDER_BY = "AdvertisedTimeAtLocation"

# ActivityType values used by the API
DEPARTURE = "Avgang"
ARRIVAL = "Ankomst"

DETAIL_FIELDS = [
    "LocationSignature",
    "AdvertisedTimeAtLocation",
    "AdvertisedTrainIdent",
    "Operator",
    "Deviation",
    "OtherInformation",
    "TrackAtLocation",
]


def format_timestamp(moment: datetime) -> str:
    """
    Format a time the way the API expects it: ISO 8601 with zone offset.

    e.g. 2019-01-01T12:00:00+01:00. Naive times are taken as local time.
    """
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.isoformat(timespec="seconds")


def _request(api_key: str, includes: List[str]) -> Tuple[ET.Element, ET.Element]:
    request = ET.Element("REQUEST")
    ET.SubElement(request, "LOGIN", authenticationkey=api_key)
    query = ET.SubElement(
        request,
        "QUERY",
        objecttype=OBJECT_TYPE,
        orderby=ORDER_BY,
        schemaversion=SCHEMA_VERSION,
    )
    for name in includes:
        ET.SubElement(query, "INCLUDE").text = name
    return request, ET.SubElement(query, "FILTER")


def _compare(parent: ET.Element, operator: str, name: str, value: str) -> None:
    # Values only ever go into attributes, which the serializer escapes
    ET.SubElement(parent, operator, name=name, value=value)


def _time_bounds(parent: ET.Element, after: datetime, before: datetime) -> None:
    _compare(parent, "GT", "AdvertisedTimeAtLocation", format_timestamp(after))
    _compare(parent, "LT", "AdvertisedTimeAtLocation", format_timestamp(before))


def _to_string(request: ET.Element) -> str:
    return ET.tostring(request, encoding="unicode")


def build_list_query(
    api_key: str,
    from_station: str,
    to_station: str,
    after: datetime,
    before: datetime,
) -> str:
    """
    Build a query listing the idents of trains running between two stations.

    A train matches if it departs from_station heading (directly or via) to
    to_station, or arrives at to_station coming (directly or via) from
    from_station, with an advertised time strictly inside (after, before).
    Only AdvertisedTrainIdent is requested.
    """
    request, query_filter = _request(api_key, ["AdvertisedTrainIdent"])
    conditions = ET.SubElement(query_filter, "AND")
    _time_bounds(conditions, after, before)
    either = ET.SubElement(conditions, "OR")

    departing = ET.SubElement(either, "AND")
    _compare(departing, "EQ", "ActivityType", DEPARTURE)
    _compare(departing, "EQ", "LocationSignature", from_station)
    heading_to = ET.SubElement(departing, "OR")
    _compare(heading_to, "EQ", "ToLocation.LocationName", to_station)
    _compare(heading_to, "EQ", "ViaToLocation.LocationName", to_station)

    arriving = ET.SubElement(either, "AND")
    _compare(arriving, "EQ", "ActivityType", ARRIVAL)
    _compare(arriving, "EQ", "LocationSignature", to_station)
    coming_from = ET.SubElement(arriving, "OR")
    _compare(coming_from, "EQ", "FromLocation.LocationName", from_station)
    _compare(coming_from, "EQ", "ViaFromLocation.LocationName", from_station)

    return _to_string(request)


def build_detail_query(
    api_key: str,
    from_station: str,
    identifiers: Iterable[str],
    after: datetime,
    before: datetime,
) -> str:
    """
    Build a query for the full departure announcements of the given trains.

    An empty identifier set is sent as an empty IN list; the API then
    answers with no announcements.
    """
    request, query_filter = _request(api_key, DETAIL_FIELDS)
    conditions = ET.SubElement(query_filter, "AND")
    _compare(conditions, "EQ", "ActivityType", DEPARTURE)
    _compare(conditions, "EQ", "LocationSignature", from_station)
    _time_bounds(conditions, after, before)
    _compare(conditions, "IN", "AdvertisedTrainIdent", ",".join(identifiers))
    return _to_string(request)
