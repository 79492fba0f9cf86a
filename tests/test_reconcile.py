"""Tests for the reconciliation engine: field chains, spot-BTC branch, detail."""

import pytest

from etftracker.models.etf import CUSIP_UNKNOWN, NO_EXPOSURE, EtfRecord
from etftracker.models.feed import BtcFeedEntry
from etftracker.models.holding import CountryWeighting, Holding, SectorWeighting
from etftracker.models.info import EtfInfo, EtfListing
from etftracker.models.knowledge import KnowledgeEntry
from etftracker.normalize import map_holding
from etftracker.reconcile import (
    Reconciler,
    crypto_weight_from_holdings,
    first_some,
    infer_crypto_exposure,
    is_digital_asset,
    resolve_crypto_exposure,
    resolve_crypto_weight,
    resolve_cusip,
    resolve_region,
    valid_cusip,
)


# ---------------------------------------------------------------- helpers


class TestFirstSome:
    def test_first_non_none_wins(self):
        assert first_some(lambda: None, lambda: 0, lambda: 5) == 0

    def test_lazy(self):
        calls = []

        def later():
            calls.append("later")
            return 2

        assert first_some(lambda: 1, later) == 1
        assert calls == []

    def test_all_none(self):
        assert first_some(lambda: None) is None


class TestCryptoWeightFromHoldings:
    def test_coinbase_and_apple(self):
        holdings = [
            map_holding({"name": "Coinbase Global", "weightPercentage": "12.50%"}),
            map_holding({"name": "Apple Inc", "weightPercentage": "5.00%"}),
        ]
        assert crypto_weight_from_holdings(holdings) == 12.5

    def test_empty(self):
        assert crypto_weight_from_holdings([]) == 0

    def test_symbol_match(self):
        holdings = [Holding(name="Strategy Inc", symbol="MSTR", weight_percentage=8.0)]
        assert crypto_weight_from_holdings(holdings) == 8.0

    def test_bounded_by_total(self, sample_holdings):
        total = sum(h.weight_percentage for h in sample_holdings)
        weight = crypto_weight_from_holdings(sample_holdings)
        assert 0 <= weight <= total
        assert weight == pytest.approx(19.75)

    def test_nan_weight_ignored(self):
        holdings = [Holding(name="Bitcoin", weight_percentage=float("nan"))]
        assert crypto_weight_from_holdings(holdings) == 0


class TestInferExposure:
    @pytest.mark.parametrize("name,expected", [
        ("iShares Bitcoin Trust", "BTC"),
        ("Fidelity Ethereum Fund", "ETH"),
        ("Bitcoin & Ether Strategy", "BTC, ETH"),
        ("Simplify Crypto Strategy", "Various"),
        ("Digital Asset Leaders", "Various"),
        ("Global Blockchain Leaders", "Blockchain equities"),
        ("Vanguard S&P 500", NO_EXPOSURE),
        ("", NO_EXPOSURE),
    ])
    def test_rules(self, name, expected):
        assert infer_crypto_exposure(name) == expected


class TestDigitalAsset:
    def test_weight_threshold(self):
        assert is_digital_asset(0.2, None, "")
        assert not is_digital_asset(0.1, None, "Plain Fund")

    def test_knowledge_flag(self):
        entry = KnowledgeEntry("X", 0, "—")
        assert is_digital_asset(0, entry, "")

    def test_name_regex(self):
        assert is_digital_asset(0, None, "Some ETHEREUM Income")
        assert not is_digital_asset(0, None, "Utilities Select")


class TestValidCusip:
    def test_sentinel_and_blank(self):
        assert valid_cusip(CUSIP_UNKNOWN) is None
        assert valid_cusip("  ") is None
        assert valid_cusip(None) is None
        assert valid_cusip(12) is None

    def test_valid(self):
        assert valid_cusip(" 46438F101 ") == "46438F101"


# ----------------------------------------------------------------- chains


class TestResolveCryptoWeight:
    def test_cached_wins(self):
        cached = EtfRecord("X", "X", crypto_weight=42.0)
        assert resolve_crypto_weight(cached, 10.0, None) == 42.0

    def test_cached_zero_still_wins(self):
        cached = EtfRecord("X", "X", crypto_weight=0.0)
        entry = KnowledgeEntry("X", 90, "BTC")
        assert resolve_crypto_weight(cached, 10.0, entry) == 0.0

    def test_holdings_before_knowledge(self):
        entry = KnowledgeEntry("X", 90, "BTC")
        assert resolve_crypto_weight(None, 12.5, entry) == 12.5

    def test_zero_holdings_falls_to_knowledge(self):
        entry = KnowledgeEntry("X", 90, "BTC")
        assert resolve_crypto_weight(None, 0.0, entry) == 90

    def test_default_zero(self):
        assert resolve_crypto_weight(None, 0.0, None) == 0.0

    def test_clamped(self):
        assert resolve_crypto_weight(None, 140.0, None) == 100.0
        assert resolve_crypto_weight(None, 12.3456, None) == 12.35


class TestResolveCryptoExposure:
    def test_priority(self):
        cached = EtfRecord("X", "X", crypto_exposure="ETH")
        entry = KnowledgeEntry("X", 90, "BTC (futures)")
        assert resolve_crypto_exposure(cached, entry, "Bitcoin") == "ETH"
        assert resolve_crypto_exposure(None, entry, "Bitcoin") == "BTC (futures)"
        assert resolve_crypto_exposure(None, None, "Bitcoin Fund") == "BTC"


class TestResolveCusip:
    def test_cached_first(self):
        cached = EtfRecord("IBIT", "x", cusip="111111111")
        info = EtfInfo("IBIT", cusip="222222222")
        assert resolve_cusip("IBIT", cached=cached, info=info) == "111111111"

    def test_sentinel_never_short_circuits(self):
        cached = EtfRecord("ZZZZ", "x", cusip=CUSIP_UNKNOWN)
        info = EtfInfo("ZZZZ", cusip=CUSIP_UNKNOWN)
        assert resolve_cusip("ZZZZ", cached=cached, info=info, lookup="333333333") == "333333333"

    def test_knowledge_before_override(self):
        entry = KnowledgeEntry("x", 1, "BTC", cusip="444444444")
        assert resolve_cusip("IBIT", knowledge=entry) == "444444444"

    def test_override_before_external(self):
        assert resolve_cusip("ETHA", external={"ETHA": "555555555"}) == "46438R105"

    def test_external_last(self):
        assert resolve_cusip("ZZZZ", external={"ZZZZ": "555555555"}) == "555555555"

    def test_unknown_is_none(self):
        assert resolve_cusip("ZZZZ") is None


class TestResolveRegion:
    def test_top_country(self):
        countries = [CountryWeighting("United States", 30), CountryWeighting("Canada", 70)]
        assert resolve_region(countries, None) == "Canada"

    def test_knowledge_then_default(self):
        assert resolve_region([], KnowledgeEntry("x", 1, "BTC", "Canada")) == "Canada"
        assert resolve_region([], None) == "United States"


# ---------------------------------------------------------- end to end


class TestReconcile:
    async def test_ibit_knowledge_fallback(self, mock_source):
        record = await Reconciler(mock_source).reconcile(EtfListing("IBIT", "IBIT"))
        assert record.crypto_weight == 99.5
        assert record.crypto_exposure == "BTC"
        assert record.cusip == "46438F101"
        assert record.digital_asset_indicator is True
        assert record.name == "iShares Bitcoin Trust"

    async def test_btc_feed_entry(self, mock_source):
        entry = BtcFeedEntry("FBTC", holdings=350000.25)
        mock_source.set_holdings("FBTC", [Holding(name="Apple", weight_percentage=100)])
        record = await Reconciler(mock_source).reconcile(
            EtfListing("FBTC", "Fidelity"), btc_entry=entry,
        )
        assert record.crypto_weight == 99.5
        assert record.crypto_exposure == "BTC"
        assert record.btc_holdings == 350000.25
        assert record.digital_asset_indicator is True
        assert mock_source.call_count("get_holdings") == 0

    async def test_btc_feed_shortcut_ignores_knowledge(self, mock_source):
        entry = BtcFeedEntry("BITO", holdings=1000.456)
        record = await Reconciler(mock_source).reconcile(EtfListing("BITO"), btc_entry=entry)
        assert record.crypto_weight == 99.5
        assert record.crypto_exposure == "BTC"
        assert record.btc_holdings == 1000.46

    async def test_errored_feed_entry_ignored(self, mock_source):
        entry = BtcFeedEntry("BITO", holdings=0, error=True)
        record = await Reconciler(mock_source).reconcile(EtfListing("BITO"), btc_entry=entry)
        assert record.crypto_weight == 95
        assert record.btc_holdings is None

    async def test_holdings_drive_weight(self, mock_source):
        mock_source.set_holdings("ZZZZ", [
            map_holding({"name": "Coinbase Global", "weightPercentage": "12.50%"}),
            map_holding({"name": "Apple Inc", "weightPercentage": "5.00%"}),
        ])
        record = await Reconciler(mock_source).reconcile(EtfListing("ZZZZ", "Fintech Leaders"))
        assert record.crypto_weight == 12.5
        assert record.digital_asset_indicator is True

    async def test_unknown_ticker(self, mock_source):
        record = await Reconciler(mock_source).reconcile(EtfListing("ZZZZ", "Plain Value Fund"))
        assert record.crypto_weight == 0
        assert record.crypto_exposure == NO_EXPOSURE
        assert record.cusip is None
        assert record.to_dict()["cusip"] == CUSIP_UNKNOWN
        assert record.digital_asset_indicator is False
        assert record.region == "United States"

    async def test_unknown_ticker_name_regex(self, mock_source):
        record = await Reconciler(mock_source).reconcile(EtfListing("ZZZZ", "Crypto Income Fund"))
        assert record.crypto_weight == 0
        assert record.digital_asset_indicator is True

    async def test_partial_failure_isolated(self, mock_source):
        mock_source.fail_on = {"get_holdings", "get_cusip"}
        mock_source.set_info("ZZZZ", EtfInfo("ZZZZ", name="Info Name", cusip="666666666"))
        mock_source.set_country_weightings("ZZZZ", [CountryWeighting("Germany", 60)])
        record = await Reconciler(mock_source).reconcile(EtfListing("ZZZZ", "listing"))
        assert record.name == "Info Name"
        assert record.cusip == "666666666"
        assert record.region == "Germany"
        assert record.crypto_weight == 0

    async def test_fallback_record(self, mock_source):
        rec = Reconciler(mock_source).fallback_record(EtfListing("BLOK", "BLOK"))
        assert rec.crypto_weight == 25
        assert rec.crypto_exposure == "Blockchain equities"
        assert rec.cusip == "03208U303"


class TestDetail:
    async def test_cached_row_outranks_live(self, mock_source):
        mock_source.set_quote("BLOK", {"symbol": "BLOK", "name": "Amplify", "price": 40.1})
        mock_source.set_holdings("BLOK", [Holding(name="Coinbase", weight_percentage=5)])
        cached = EtfRecord("BLOK", "Amplify", crypto_weight=27.3, crypto_exposure="Various",
                           cusip="777777777")
        detail = await Reconciler(mock_source).detail("blok", cached=cached)
        assert detail.symbol == "BLOK"
        assert detail.crypto_weight == 27.3
        assert detail.crypto_exposure == "Various"
        assert detail.cusip == "777777777"
        assert detail.quote["price"] == 40.1
        assert detail.error is None
        assert "info" not in detail.to_dict()

    async def test_extended(self, mock_source):
        mock_source.set_quote("IBIT", {"name": "iShares Bitcoin Trust"})
        mock_source.set_sector_weightings("IBIT", [SectorWeighting("Financial Services", 100)])
        mock_source.set_news("IBIT", [{"title": str(i)} for i in range(8)])
        mock_source.set_chart("IBIT", [{"date": "2024-06-01", "price": 50}])
        mock_source.fail_on = {"get_country_weightings"}
        detail = await Reconciler(mock_source).detail("IBIT", extended=True)
        out = detail.to_dict()
        assert out["countryWeightings"] == []
        assert out["sectorWeightings"][0]["sector"] == "Financial Services"
        assert len(out["news"]) == 5
        assert out["chart"] == [{"date": "2024-06-01", "price": 50}]
        assert out["info"] is None

    async def test_no_live_data_sets_error(self, mock_source):
        detail = await Reconciler(mock_source).detail("IBIT")
        assert detail.error
        assert detail.crypto_weight == 99.5
        assert detail.cusip == "46438F101"
        assert detail.quote is None
        assert detail.holdings == []

    async def test_fallback_detail(self, mock_source):
        detail = Reconciler(mock_source).fallback_detail("ZZZZ", error="boom")
        out = detail.to_dict()
        assert out["error"] == "boom"
        assert out["cryptoWeight"] == 0
        assert out["cryptoExposure"] == NO_EXPOSURE
        assert out["cusip"] == CUSIP_UNKNOWN
