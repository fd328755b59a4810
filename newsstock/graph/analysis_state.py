import operator
from typing import Annotated, TypedDict

from newsstock.models.analysis import AnalysisResult, CompanyAnalysis, FinancialData


class SymbolFetchState(TypedDict):
    symbol: str


class EnrichmentState(TypedDict):
    symbols: list[str]
    # every fetch task writes only its own key
    snapshots: Annotated[dict[str, FinancialData], operator.or_]


class AnalysisState(TypedDict):
    article_text: str
    raw_response: str | None
    entities: list[CompanyAnalysis]
    symbols: list[str]
    snapshots: dict[str, FinancialData]
    result: AnalysisResult | None
