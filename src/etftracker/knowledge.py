"""Static reference tables for known crypto ETFs.

The knowledge base is the fallback of last resort when the market-data API
returns nothing (free tiers lack holdings and country endpoints). CUSIPs come
from SEC filings and fund prospectuses. The tables are read-only at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from etftracker.models.knowledge import KnowledgeEntry

_US = "United States"

CRYPTO_ETF_KNOWLEDGE: Mapping[str, KnowledgeEntry] = MappingProxyType({
    "IBIT": KnowledgeEntry("iShares Bitcoin Trust", 99.5, "BTC", _US, "46438F101"),
    "BITB": KnowledgeEntry("Bitwise Bitcoin ETF", 99.5, "BTC", _US, "09174C104"),
    "FBTC": KnowledgeEntry("Fidelity Wise Origin Bitcoin Fund", 99.5, "BTC", _US, "31608A504"),
    "ARKB": KnowledgeEntry("ARK 21Shares Bitcoin ETF", 99.5, "BTC", _US, "00215Q207"),
    "BRRR": KnowledgeEntry("Valkyrie Bitcoin Fund", 99.5, "BTC", _US, "91911A501"),
    "BTCW": KnowledgeEntry("BME Bitcoin Suisse ETF", 99.5, "BTC", _US),
    "HODL": KnowledgeEntry("Vaneck Bitcoin Strategy ETF", 99.5, "BTC", _US),
    "BITO": KnowledgeEntry("ProShares Bitcoin Strategy ETF", 95, "BTC (futures)", _US, "74322R309"),
    "BITS": KnowledgeEntry("Global X Blockchain & Bitcoin Strategy ETF", 95, "BTC", _US),
    "BTF": KnowledgeEntry("Valkyrie Bitcoin Strategy ETF", 95, "BTC (futures)", _US),
    "DEFI": KnowledgeEntry("Simplify Definity Digital Economy ETF", 30, "BTC, ETH, Various", _US),
    "BLOK": KnowledgeEntry(
        "Amplify Transformational Data Sharing ETF", 25, "Blockchain equities", _US, "03208U303",
    ),
    "BITQ": KnowledgeEntry("Bitwise Crypto Industry Innovators ETF", 90, "BTC", _US, "09175C103"),
    "CRYP": KnowledgeEntry("Simplify Cryptocurrency Strategy ETF", 85, "BTC, ETH, Various", _US),
    "BTEK": KnowledgeEntry("Global X Blockchain ETF", 20, "Blockchain equities", _US),
    "DAPP": KnowledgeEntry("VanEck Digital Transformation ETF", 15, "Blockchain equities", _US),
    "BLCN": KnowledgeEntry("Siren Nasdaq NexGen Economy ETF", 15, "Blockchain equities", _US),
    "GBTC": KnowledgeEntry("Grayscale Bitcoin Trust", 99.5, "BTC", _US, "389375104"),
    "BTC": KnowledgeEntry("Grayscale Bitcoin Mini Trust", 99.5, "BTC", _US),
    "BTCC": KnowledgeEntry("Purpose Bitcoin ETF", 99.5, "BTC", "Canada"),
})

# Extra CUSIPs for funds the API and knowledge base lack.
CUSIP_OVERRIDES: Mapping[str, str] = MappingProxyType({
    # Bitwise
    "BITQ": "09175C103",
    "BITB": "09174C104",
    "ETHW": "091955104",
    # Spot Bitcoin
    "IBIT": "46438F101",
    "FBTC": "31608A504",
    "ARKB": "040919102",
    "BRRR": "91916J100",
    "HODL": "92189K105",
    "BTCW": "97789G109",
    "BTCO": "46091J101",
    # Futures / strategy
    "BITO": "74347G440",
    "BTF": "91917A108",
    # Ethereum
    "ETHA": "46438R105",
    "ETHE": "389638107",
    "ETHV": "92189L103",
    "CETH": "04071F102",
    "TETH": "04071F102",
    # Grayscale
    "GBTC": "389375104",
    "BTC": "389930207",
    # Blockchain / fintech
    "BLOK": "03208U303",
    "FINX": "37954Y814",
})


@dataclass(frozen=True)
class SponsoredListing:
    """Paid placement shown next to an ETF row."""

    ticker: str
    sponsored_by: str
    badge: str | None = None


# Issuers pay for placement; e.g. "IBIT": SponsoredListing("IBIT", "BlackRock", "Featured").
SPONSORED_ETFS: Mapping[str, SponsoredListing] = MappingProxyType({})

# Guarantees coverage of the sync universe even when the listing filter misses.
KNOWN_CRYPTO_ETFS: tuple[str, ...] = (
    "IBIT", "BITB", "FBTC", "ARKB", "BRRR", "BTCW", "HODL", "GBTC", "BTC", "BTCC",
    "BITO", "BITS", "DEFI", "BLOK", "BITQ", "CRYP", "BTF", "BTEK", "DAPP", "BLCN",
)

# Keywords selecting crypto funds out of the full ETF listing.
CRYPTO_LISTING_KEYWORDS: tuple[str, ...] = (
    "bitcoin", "btc", "crypto", "ethereum", "eth", "digital", "blockchain",
)

# Substrings marking a holding (by name or symbol) as crypto-related.
CRYPTO_ASSET_INDICATORS: tuple[str, ...] = (
    "bitcoin", "btc", "ethereum", "eth", "crypto",
    "coinbase", "coin", "grayscale", "microstrategy", "mstr",
    "block", "sq", "marathon", "riot", "cleanspark", "clsk",
    "bitfarms", "bitf", "hut", "hut8", "cipher", "cifr",
    "bitdeer", "btdr", "irm", "iris", "argo", "arqb",
)


def get_knowledge(ticker: str) -> KnowledgeEntry | None:
    return CRYPTO_ETF_KNOWLEDGE.get(ticker.upper())


def get_cusip_override(ticker: str) -> str | None:
    return CUSIP_OVERRIDES.get(ticker.upper())


def get_sponsor(ticker: str) -> SponsoredListing | None:
    return SPONSORED_ETFS.get(ticker.upper())
