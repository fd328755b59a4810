import logging
from datetime import date, timedelta
from typing import cast

import yfinance as yf
from curl_cffi.requests.exceptions import HTTPError
from pandas import DataFrame, Timestamp

from newsstock.constants.analysis import LOOKUP_ENTRIES, LOOKUP_WINDOW_DAYS
from newsstock.exceptions import EnrichmentFailure, TransportFailure
from newsstock.models.stock import StockLookup, StockPrice
from newsstock.utils.financials import summarize_lookup

logger = logging.getLogger(__name__)


def _history_to_prices(hist: DataFrame) -> list[StockPrice]:
    hist = hist.dropna(subset=["Close"])
    return [
        StockPrice(
            date=cast(Timestamp, index).to_pydatetime(),
            open=float(row.get("Open", 0)),
            high=float(row.get("High", 0)),
            low=float(row.get("Low", 0)),
            close=float(row.get("Close", 0)),
            volume=int(row.get("Volume", 0)),
        )
        for index, row in hist.iterrows()
    ]


def fetch_price_history(symbol: str, start: date, end: date | None = None) -> list[StockPrice]:
    """
    Fetches daily price history for a ticker symbol from Yahoo Finance.

    Args:
        symbol (str): The ticker symbol.
        start (date): First day of the window.
        end (date | None): Last day of the window, inclusive. Defaults to today.

    Returns:
        list[StockPrice]: Daily entries, oldest first.

    Raises:
        TransportFailure: If Yahoo Finance could not be reached or answered with an error.
        EnrichmentFailure: If no data came back for the symbol, e.g. unknown or delisted.
    """

    end = end or date.today()
    logger.debug(f"Fetching price history for {symbol} from {start} to {end}")

    try:
        # yfinance treats `end` as exclusive
        hist = yf.Ticker(symbol).history(start=start, end=end + timedelta(days=1), interval="1d")
    except HTTPError as e:
        logger.error(f"Failed to fetch price history for {symbol}. Error: {e}")
        raise TransportFailure("market_data", str(e)) from e

    if hist is None or hist.empty:
        raise EnrichmentFailure(symbol, "No price data found, symbol may be delisted")

    prices = _history_to_prices(hist)
    if not prices:
        raise EnrichmentFailure(symbol, "Price data contained no closing prices")

    logger.debug(f"Fetched {len(prices)} entries for {symbol}")
    return prices


def lookup_stock(symbol: str) -> StockLookup:
    """
    Single stock lookup: the last few daily entries of the past month with a short summary.
    Failures of the market data call propagate to the caller.
    """

    symbol = symbol.strip().upper()
    prices = fetch_price_history(symbol, start=date.today() - timedelta(days=LOOKUP_WINDOW_DAYS))
    last_entries = prices[-LOOKUP_ENTRIES:]

    return StockLookup(symbol=symbol, data=last_entries, summary=summarize_lookup(last_entries))


if __name__ == "__main__":
    ticker = input("Ticker> ")
    print(lookup_stock(ticker).model_dump_json(by_alias=True, indent=2))
