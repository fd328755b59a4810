import os
from typing import Final

MIN_ARTICLE_LENGTH: Final[int] = 100
RAW_EXCERPT_LENGTH: Final[int] = 200
ARTICLE_EXCERPT_LENGTH: Final[int] = 1000
MAX_HISTORY_TURNS: Final[int] = 10

# "no companies identified" row, and the wire value for missing market data
SENTINEL_SYMBOL: Final[str] = "N/A"
NOT_AVAILABLE: Final[str] = "N/A"

ENRICHMENT_WINDOW_DAYS: Final[int] = int(os.getenv("ENRICHMENT_WINDOW_DAYS") or 7)
MARKET_DATA_MAX_CONCURRENCY: Final[int] = int(os.getenv("MARKET_DATA_MAX_CONCURRENCY") or 8)
ANALYZE_TIMEOUT_SECONDS: Final[float] = float(os.getenv("ANALYZE_TIMEOUT_SECONDS") or 120)

LOOKUP_WINDOW_DAYS: Final[int] = 30
LOOKUP_ENTRIES: Final[int] = 5

ANALYZER_GRAPH_NAME: Final[str] = "news_analyzer"
ENRICHER_GRAPH_NAME: Final[str] = "market_data_enricher"
