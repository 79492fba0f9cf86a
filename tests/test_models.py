"""Tests for data models."""

import pytest

from etftracker.models.detail import EtfDetail
from etftracker.models.etf import CUSIP_UNKNOWN, EtfRecord
from etftracker.models.feed import BtcFeedEntry
from etftracker.models.holding import CountryWeighting, Holding
from etftracker.models.info import EtfInfo
from etftracker.models.snapshot import Snapshot


class TestEtfRecord:
    def test_defaults(self):
        r = EtfRecord("ZZZZ", "Plain Fund")
        assert r.region == "United States"
        assert r.crypto_weight == 0.0
        assert r.cusip is None
        assert r.cusip_display == CUSIP_UNKNOWN

    @pytest.mark.parametrize("weight", [float("nan"), float("inf"), -5.0])
    def test_weight_never_invalid(self, weight):
        assert EtfRecord("X", "X", crypto_weight=weight).crypto_weight == 0.0

    @pytest.mark.parametrize("cusip", ["", "  ", CUSIP_UNKNOWN])
    def test_cusip_sentinel_normalized(self, cusip):
        assert EtfRecord("X", "X", cusip=cusip).cusip is None

    def test_frozen(self):
        r = EtfRecord("X", "X")
        with pytest.raises(AttributeError):
            r.crypto_weight = 1.0  # type: ignore[misc]

    def test_to_dict_optional_keys(self):
        plain = EtfRecord("X", "X").to_dict()
        assert plain["cusip"] == CUSIP_UNKNOWN
        assert "btcHoldings" not in plain
        assert "sponsoredBy" not in plain

        full = EtfRecord("IBIT", "iShares", btc_holdings=1.5,
                         sponsored_by="BlackRock", sponsored_badge="Featured").to_dict()
        assert full["btcHoldings"] == 1.5
        assert full["sponsoredBy"] == "BlackRock"
        assert full["sponsoredBadge"] == "Featured"

    def test_from_dict_tolerant(self):
        r = EtfRecord.from_dict({"ticker": "ibit", "cryptoWeight": "junk", "cusip": 12})
        assert r.ticker == "IBIT"
        assert r.name == "IBIT"
        assert r.crypto_weight == 0.0
        assert r.cusip is None

    def test_from_dict_round_trip(self):
        r = EtfRecord("IBIT", "iShares Bitcoin Trust", crypto_weight=99.5, crypto_exposure="BTC",
                      cusip="46438F101", digital_asset_indicator=True, btc_holdings=10.25)
        assert EtfRecord.from_dict(r.to_dict()) == r


class TestSnapshot:
    def test_find_case_insensitive(self, sample_snapshot):
        assert sample_snapshot.find("blok").ticker == "BLOK"
        assert sample_snapshot.find("NOPE") is None

    def test_to_dict(self, sample_snapshot):
        out = sample_snapshot.to_dict()
        assert out["count"] == 3
        assert out["syncedAt"] == "2024-06-03T14:00:00+00:00"
        assert [e["ticker"] for e in out["etfs"]] == ["IBIT", "BLOK", "ZZZZ"]

    def test_from_dict_bad_timestamp(self):
        snap = Snapshot.from_dict({"etfs": "nope", "syncedAt": "yesterday"})
        assert snap.count == 0
        assert snap.synced_at is None

    def test_empty(self):
        assert Snapshot.empty().to_dict() == {"etfs": [], "syncedAt": None, "count": 0}


class TestEtfDetail:
    def test_basic_keys(self):
        d = EtfDetail("IBIT", holdings=[Holding(name="Bitcoin", weight_percentage=100)])
        out = d.to_dict()
        assert set(out) == {
            "symbol", "quote", "holdings", "cryptoWeight", "cryptoExposure",
            "cusip", "sponsoredBy", "sponsoredBadge",
        }
        assert out["holdings"][0]["weightPercentage"] == 100
        assert out["cusip"] == CUSIP_UNKNOWN

    def test_extended_keys(self):
        d = EtfDetail(
            "IBIT",
            extended=True,
            info=EtfInfo("IBIT", name="iShares", cusip="46438F101"),
            country_weightings=[CountryWeighting("United States", 100)],
            error="partial",
        )
        out = d.to_dict()
        assert out["info"]["cusip"] == "46438F101"
        assert out["countryWeightings"] == [{"country": "United States", "weightPercentage": 100}]
        assert out["sectorWeightings"] == []
        assert out["chart"] == []
        assert out["news"] == []
        assert out["error"] == "partial"


class TestBtcFeedEntry:
    def test_usable(self):
        assert BtcFeedEntry("IBIT", 1.0).usable
        assert not BtcFeedEntry("IBIT", 1.0, error=True).usable
