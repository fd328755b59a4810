"""Shared fixtures for the NewsStock tests."""

import json
import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from newsstock.models.analysis import CompanyAnalysis, FinancialData
from newsstock.models.stock import StockPrice

TESLA_ARTICLE = (
    "Tesla announces breakthrough battery technology that will revolutionize electric vehicles. "
    "The company expects significant growth and plans to expand manufacturing."
)

TESLA_ROW = {
    "company_name": "Tesla Inc",
    "stock_symbol": "TSLA",
    "sentiment": "Positive",
    "impact": 5,
    "recommendation": "BUY",
    "reasoning": "The battery breakthrough directly strengthens Tesla's core electric vehicle business.",
}

BANK_ROWS = [
    {
        "company_name": "Bank Central Asia Tbk",
        "stock_symbol": "BBCA.JK",
        "sentiment": "Positive",
        "impact": "4",
        "reasoning": "Indonesian bank positioned to benefit from expanded collaboration with fintech lending platforms.",
        "recommendation": "BUY",
    },
    {
        "company_name": "Bank Rakyat Indonesia Tbk",
        "stock_symbol": "BBRI.JK",
        "sentiment": "Positive",
        "impact": "4",
        "reasoning": "Major Indonesian bank with strong UMKM lending focus.",
        "recommendation": "BUY",
    },
    {
        "company_name": "Bank Mandiri Tbk",
        "stock_symbol": "BMRI.JK",
        "sentiment": "Positive",
        "impact": "3",
        "reasoning": "Large Indonesian bank expected to participate in fintech lending collaboration.",
        "recommendation": "HOLD",
    },
]

SENTINEL_ROW = {
    "company_name": "No company identified",
    "stock_symbol": "N/A",
    "sentiment": "Neutral",
    "impact": 1,
    "recommendation": "N/A",
    "reasoning": "The article does not concern any publicly traded company.",
}


def make_prices(closes: list[float], volume: int = 1_000_000) -> list[StockPrice]:
    """Daily bars ending today, high/low 1 above/below the close."""
    start = datetime.now(timezone.utc) - timedelta(days=len(closes))
    return [
        StockPrice(
            date=start + timedelta(days=i),
            open=close,
            high=close + 1,
            low=close - 1,
            close=close,
            volume=volume + i,
        )
        for i, close in enumerate(closes)
    ]


class FakeMarketData:
    """Stands in for the yfinance history call. Values are price lists or exceptions to raise."""

    def __init__(self, histories: dict[str, list[StockPrice] | Exception]):
        self.histories = histories
        self.calls: list[tuple[str, date, date]] = []
        self._lock = threading.Lock()

    def __call__(self, symbol: str, start: date, end: date) -> list[StockPrice]:
        with self._lock:
            self.calls.append((symbol, start, end))

        history = self.histories.get(symbol)
        if history is None:
            raise LookupError(f"No data found for {symbol}")
        if isinstance(history, Exception):
            raise history
        return history

    @property
    def symbols(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def tesla_article() -> str:
    return TESLA_ARTICLE


@pytest.fixture
def tesla_response() -> str:
    return json.dumps([TESLA_ROW])


@pytest.fixture
def bank_response() -> str:
    return json.dumps(BANK_ROWS, indent=2)


@pytest.fixture
def sentinel_response() -> str:
    return json.dumps([SENTINEL_ROW])


@pytest.fixture
def tesla_prices() -> list[StockPrice]:
    return make_prices([240.0, 245.5, 250.0, 248.0, 260.0])


@pytest.fixture
def tesla_analysis() -> CompanyAnalysis:
    return CompanyAnalysis(
        **TESLA_ROW,
        financial_data=FinancialData(
            current_price=260.0, daily_change_percent=4.84, volume=1_000_004, weekly_high=261.0, weekly_low=239.0
        ),
    )


@pytest.fixture
def bank_analysis() -> list[CompanyAnalysis]:
    return [CompanyAnalysis(**row) for row in BANK_ROWS]
