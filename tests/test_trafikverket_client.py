"""Tests for TrafikverketClient."""

import json
import unittest
import xml.etree.ElementTree as ET
from unittest.mock import MagicMock, patch
from datetime import datetime, timedelta, timezone
import sys
from pathlib import Path

import requests

# Add src to path so we can import pendlarn
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pendlarn.exceptions import (
    AuthError,
    DecodeError,
    InvalidWindowError,
    TransportError,
    UpstreamError,
)
from pendlarn.models import TrainAnnouncement
from pendlarn.trafikverket_client import (
    TrafikverketClient,
    dedupe_identifiers,
    get_trains_stopping_at,
)

CET = timezone(timedelta(hours=1))
AFTER = datetime(2024, 3, 1, 8, 0, tzinfo=CET)
BEFORE = AFTER + timedelta(hours=2)

FIRST = {
    "LocationSignature": "U",
    "AdvertisedTimeAtLocation": "2024-03-01T08:05:00",
    "AdvertisedTrainIdent": "43212",
    "Operator": "SJ",
    "TrackAtLocation": "4",
    "Deviation": [{"Code": "ANA027", "Description": "Inställt"}],
    "OtherInformation": [{"Code": "ONA151", "Description": "Stannar ej i Märsta"}],
}
SECOND = {
    "LocationSignature": "U",
    "AdvertisedTimeAtLocation": "2024-03-01T08:20:00",
    "AdvertisedTrainIdent": "43214",
    "Operator": "SL",
    "TrackAtLocation": "2",
}


def _response(status_code: int, body) -> requests.Response:
    """Build a real requests.Response carrying body (dict is JSON encoded)."""
    response = requests.Response()
    response.status_code = status_code
    if not isinstance(body, bytes):
        body = json.dumps(body).encode("utf-8")
    response._content = body
    response.encoding = "utf-8"
    return response


def _envelope(*groups) -> dict:
    return {"RESPONSE": {"RESULT": [{"TrainAnnouncement": records} for records in groups]}}


def _idents(*values) -> list:
    return [{"AdvertisedTrainIdent": value} for value in values]


class TestDedupeIdentifiers(unittest.TestCase):
    """Test identifier deduplication."""

    def test_keeps_first_seen_order(self):
        self.assertEqual(dedupe_identifiers(["x", "y", "x", "z", "y"]), ["x", "y", "z"])

    def test_empty(self):
        self.assertEqual(dedupe_identifiers([]), [])


class TestTrafikverketClient(unittest.TestCase):
    """Test the two-phase fetch against a stubbed session."""

    def setUp(self):
        self.session = MagicMock()
        self.client = TrafikverketClient("secret", url="https://example.test/data.json", session=self.session)

    def _sent_query(self, call_index: int) -> ET.Element:
        _, kwargs = self.session.post.call_args_list[call_index]
        return ET.fromstring(kwargs["data"].decode("utf-8"))

    def test_returns_detail_records_in_order(self):
        self.session.post.side_effect = [
            _response(200, _envelope(_idents("43212", "43214"))),
            _response(200, _envelope([FIRST, SECOND])),
        ]

        trains = self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

        self.assertEqual(self.session.post.call_count, 2)
        self.assertEqual([t.advertised_train_ident for t in trains], ["43212", "43214"])
        self.assertEqual(trains[0], TrainAnnouncement.from_dict(FIRST))
        self.assertEqual(trains[1], TrainAnnouncement.from_dict(SECOND))
        # Nothing is filtered at this level
        self.assertEqual(trains[0].other_information[0].code, "ONA151")

    def test_posts_xml_with_timeout(self):
        self.session.post.side_effect = [
            _response(200, _envelope(_idents("1"))),
            _response(200, _envelope([])),
        ]

        self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

        args, kwargs = self.session.post.call_args_list[0]
        self.assertEqual(args[0], "https://example.test/data.json")
        self.assertEqual(kwargs["headers"], {"Content-Type": "text/xml"})
        self.assertEqual(kwargs["timeout"], 10)

    def test_detail_query_uses_deduplicated_idents(self):
        self.session.post.side_effect = [
            _response(200, _envelope(_idents("x", "y", "x"), _idents("z", "y"))),
            _response(200, _envelope([])),
        ]

        self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

        detail = self._sent_query(1)
        self.assertEqual(detail.find(".//IN").get("value"), "x,y,z")
        self.assertEqual(
            detail.find(".//EQ[@name='LocationSignature']").get("value"), "U"
        )
        self.assertEqual(detail.find(".//GT").get("value"), "2024-03-01T08:00:00+01:00")
        self.assertEqual(detail.find(".//LT").get("value"), "2024-03-01T10:00:00+01:00")

    def test_flattens_all_result_groups(self):
        self.session.post.side_effect = [
            _response(200, _envelope(_idents("43212", "43214"))),
            _response(200, _envelope([FIRST], [SECOND])),
        ]

        trains = self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

        self.assertEqual([t.advertised_time_at_location for t in trains],
                         ["2024-03-01T08:05:00", "2024-03-01T08:20:00"])

    def test_no_matches_still_runs_detail_query(self):
        self.session.post.side_effect = [
            _response(200, {"RESPONSE": {"RESULT": [{}]}}),
            _response(200, {"RESPONSE": {"RESULT": [{}]}}),
        ]

        trains = self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

        self.assertEqual(trains, [])
        self.assertEqual(self.session.post.call_count, 2)
        self.assertEqual(self._sent_query(1).find(".//IN").get("value"), "")

    def test_inverted_window_sends_nothing(self):
        with self.assertRaises(InvalidWindowError):
            self.client.get_trains_stopping_at("U", "Cst", BEFORE, AFTER)
        self.session.post.assert_not_called()

    def test_empty_window_sends_nothing(self):
        with self.assertRaises(InvalidWindowError):
            self.client.get_trains_stopping_at("U", "Cst", AFTER, AFTER)
        self.session.post.assert_not_called()

    def test_unauthorized_is_auth_error(self):
        self.session.post.return_value = _response(401, b"")

        with self.assertRaises(AuthError) as ctx:
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn("API key", str(ctx.exception))
        self.assertEqual(self.session.post.call_count, 1)

    def test_server_error_is_upstream_error(self):
        self.session.post.return_value = _response(500, b"oops")

        with self.assertRaises(UpstreamError) as ctx:
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

        self.assertNotIsInstance(ctx.exception, AuthError)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(self.session.post.call_count, 1)

    def test_malformed_json_is_decode_error(self):
        self.session.post.return_value = _response(200, b"{not json")

        with self.assertRaises(DecodeError):
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)
        self.assertEqual(self.session.post.call_count, 1)

    def test_unexpected_envelope_is_decode_error(self):
        for body in ({"RESULT": []}, {"RESPONSE": {"RESULT": {}}}, {"RESPONSE": {"RESULT": ["x"]}}, []):
            with self.subTest(body=body):
                self.session.post.reset_mock()
                self.session.post.return_value = _response(200, body)
                with self.assertRaises(DecodeError):
                    self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)
                self.assertEqual(self.session.post.call_count, 1)

    def test_record_without_ident_is_decode_error(self):
        self.session.post.return_value = _response(200, _envelope([{"Operator": "SJ"}]))

        with self.assertRaises(DecodeError):
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

    def test_failure_in_detail_phase_returns_nothing(self):
        self.session.post.side_effect = [
            _response(200, _envelope(_idents("43212"))),
            _response(503, b""),
        ]

        with self.assertRaises(UpstreamError) as ctx:
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(self.session.post.call_count, 2)

    def test_query_error_in_result_is_upstream_error(self):
        body = {"RESPONSE": {"RESULT": [{"ERROR": {"SOURCE": "Request", "MESSAGE": "Invalid query"}}]}}
        self.session.post.return_value = _response(200, body)

        with self.assertRaises(UpstreamError) as ctx:
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)
        self.assertIn("Invalid query", str(ctx.exception))

    def test_connection_failure_is_transport_error(self):
        self.session.post.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(TransportError):
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)
        self.assertEqual(self.session.post.call_count, 1)

    def test_timeout_is_transport_error(self):
        self.session.post.side_effect = requests.Timeout("read timed out")

        with self.assertRaises(TransportError):
            self.client.get_trains_stopping_at("U", "Cst", AFTER, BEFORE)

    @patch("pendlarn.trafikverket_client.requests.Session")
    def test_module_shortcut(self, mock_session_cls):
        session = mock_session_cls.return_value
        session.post.side_effect = [
            _response(200, _envelope(_idents("43212"))),
            _response(200, _envelope([FIRST])),
        ]

        trains = get_trains_stopping_at("secret", "U", "Cst", AFTER, BEFORE)

        self.assertEqual(len(trains), 1)
        login = ET.fromstring(session.post.call_args_list[0][1]["data"]).find("LOGIN")
        self.assertEqual(login.get("authenticationkey"), "secret")


if __name__ == "__main__":
    unittest.main()
