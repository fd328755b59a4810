from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, Field, field_serializer, field_validator

from newsstock.constants.analysis import NOT_AVAILABLE, SENTINEL_SYMBOL
from newsstock.models.base import CamelModel

Sentiment = Literal["Positive", "Negative", "Neutral"]
Recommendation = Literal["BUY", "SELL", "HOLD", "N/A"]

FINANCIAL_FIELDS = ("current_price", "daily_change_percent", "volume", "weekly_high", "weekly_low")


class FinancialData(CamelModel):
    model_config = ConfigDict(frozen=True)

    current_price: float | None = Field(None, description="Close of the most recent trading day")
    daily_change_percent: float | None = Field(None, description="Change of the latest close vs the previous close, in %")
    volume: int | None = Field(None, description="Latest day's traded volume")
    weekly_high: float | None = Field(None, description="Highest high across the window")
    weekly_low: float | None = Field(None, description="Lowest low across the window")
    error: str | None = Field(None, exclude=True, description="Why the market data is not available")

    @field_validator(*FINANCIAL_FIELDS, mode="before")
    @classmethod
    def parse_not_available(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().upper() == NOT_AVAILABLE:
            return None
        return value

    @field_serializer(*FINANCIAL_FIELDS)
    def serialize_not_available(self, value: float | int | None) -> float | int | str:
        return NOT_AVAILABLE if value is None else value

    @property
    def available(self) -> bool:
        return any(getattr(self, name) is not None for name in FINANCIAL_FIELDS)

    @classmethod
    def unavailable(cls, reason: str | None = None) -> "FinancialData":
        return cls(error=reason)


class CompanyAnalysis(CamelModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    company_name: str = Field(min_length=1, description="Full official name of the company")
    stock_symbol: str = Field(min_length=1, description="Ticker symbol, the enrichment join key")
    sentiment: Sentiment = Field(description="Sentiment of the article towards the company")
    impact: int = Field(ge=1, le=5, description="Potential market impact from 1 (minimal) to 5 (major)")
    recommendation: Recommendation = Field(description="BUY, SELL, HOLD or N/A when nothing was identified")
    reasoning: str = Field(min_length=1, description="Why the company is relevant to the article")
    financial_data: FinancialData | None = Field(None, description="Recent market data, attached after enrichment")

    @field_validator("stock_symbol", mode="before")
    @classmethod
    def normalize_symbol(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("sentiment", mode="before")
    @classmethod
    def normalize_sentiment(cls, value: Any) -> Any:
        return value.strip().capitalize() if isinstance(value, str) else value

    @field_validator("recommendation", mode="before")
    @classmethod
    def normalize_recommendation(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def is_sentinel(self) -> bool:
        return self.stock_symbol == SENTINEL_SYMBOL


class AnalysisResult(CamelModel):
    timestamp: datetime
    article_word_count: int
    total_companies: int
    analysis: list[CompanyAnalysis]
