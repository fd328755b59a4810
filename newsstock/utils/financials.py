from newsstock.models.analysis import FinancialData
from newsstock.models.stock import LookupSummary, StockPrice


def calculate_daily_change_percent(prices: list[StockPrice]) -> float | None:
    if len(prices) < 2:
        return None

    previous_close = prices[-2].close
    if not previous_close:
        return None

    return round((prices[-1].close - previous_close) / previous_close * 100, 2)


def summarize_history(prices: list[StockPrice]) -> FinancialData:
    """
    Derives the enrichment record from a daily price window, oldest entry first.
    """

    if not prices:
        return FinancialData.unavailable("No price data returned")

    latest = prices[-1]
    return FinancialData(
        current_price=round(latest.close, 2),
        daily_change_percent=calculate_daily_change_percent(prices),
        volume=latest.volume,
        weekly_high=round(max(price.high for price in prices), 2),
        weekly_low=round(min(price.low for price in prices), 2),
    )


def summarize_lookup(prices: list[StockPrice]) -> LookupSummary:
    latest = prices[-1]
    return LookupSummary(
        current_price=latest.close,
        volume=latest.volume,
        high=max(price.high for price in prices),
        low=min(price.low for price in prices),
    )
