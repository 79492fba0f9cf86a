"""Tests for the offline CUSIP backfill tool."""

import pytest
import requests

from etftracker.cusip_backfill import FmpCusipLookup, backfill_cusips
from etftracker.errors import TrackerError, TrackerErrorCode


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Answers search-symbol queries from a dict keyed by query."""

    def __init__(self, answers):
        self.answers = answers
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        answer = self.answers.get(params["query"], FakeResponse(payload=[]))
        if isinstance(answer, Exception):
            raise answer
        return answer


class TestFmpCusipLookup:
    def test_requires_key(self):
        with pytest.raises(TrackerError) as exc_info:
            FmpCusipLookup("")
        assert exc_info.value.code == TrackerErrorCode.AUTH_FAILED

    def test_direct_cusip(self):
        session = FakeSession({"IBIT": FakeResponse(payload=[{"symbol": "IBIT", "cusip": "46438F101"}])})
        lookup = FmpCusipLookup("k", session=session)
        assert lookup.lookup("ibit") == "46438F101"
        url, params = session.calls[0]
        assert url.endswith("/stable/search-symbol")
        assert params == {"query": "IBIT", "apikey": "k"}

    def test_isin_fallback(self):
        session = FakeSession({"FBTC": FakeResponse(payload={"data": [
            {"symbol": "FBTC", "isin": "US31608A5044"},
        ]})})
        assert FmpCusipLookup("k", session=session).lookup("FBTC") == "31608A504"

    def test_rate_limited(self):
        session = FakeSession({"IBIT": FakeResponse(status_code=429)})
        with pytest.raises(TrackerError) as exc_info:
            FmpCusipLookup("k", session=session).lookup("IBIT")
        assert exc_info.value.retryable


class TestBackfill:
    def test_map_with_sentinel_and_delay(self):
        session = FakeSession({
            "IBIT": FakeResponse(payload=[{"symbol": "IBIT", "cusip": "46438F101"}]),
            "BAD": FakeResponse(status_code=500),
            "DOWN": requests.ConnectionError("offline"),
            "JUNK": FakeResponse(payload=ValueError("not json")),
        })
        sleeps = []
        seen = []
        results = backfill_cusips(
            FmpCusipLookup("k", session=session),
            ["ibit", "NOPE", "BAD", "DOWN", "JUNK"],
            sleep=sleeps.append,
            on_result=lambda sym, cusip: seen.append(sym),
        )
        assert results == {
            "IBIT": "46438F101",
            "NOPE": "—",
            "BAD": "—",
            "DOWN": "—",
            "JUNK": "—",
        }
        assert sleeps == [0.25] * 5
        assert seen == ["IBIT", "NOPE", "BAD", "DOWN", "JUNK"]

    def test_no_delay(self):
        sleeps = []
        backfill_cusips(
            FmpCusipLookup("k", session=FakeSession({})),
            ["IBIT"],
            delay_seconds=0,
            sleep=sleeps.append,
        )
        assert sleeps == []
