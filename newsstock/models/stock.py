from datetime import datetime

from pydantic import Field

from newsstock.models.base import CamelModel


class StockPrice(CamelModel):
    date: datetime = Field(description="Date of the stock price data")
    open: float = Field(description="Opening price of the stock")
    high: float = Field(description="Highest price during trading session")
    low: float = Field(description="Lowest price during trading session")
    close: float = Field(description="Closing price of the stock")
    volume: int = Field(description="Number of shares traded")


class LookupSummary(CamelModel):
    current_price: float = Field(description="Close of the most recent entry")
    volume: int = Field(description="Volume of the most recent entry")
    high: float = Field(description="Highest price across the returned entries")
    low: float = Field(description="Lowest price across the returned entries")


class StockLookup(CamelModel):
    symbol: str = Field(description="Stock ticker symbol")
    data: list[StockPrice] = Field(description="Most recent daily entries, oldest first")
    summary: LookupSummary
