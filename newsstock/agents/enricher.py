import logging
import os
from datetime import date, timedelta
from typing import Callable

from langgraph.graph import END, START, StateGraph
from langgraph.types import Send

from newsstock.constants.analysis import (
    ENRICHER_GRAPH_NAME,
    ENRICHMENT_WINDOW_DAYS,
    MARKET_DATA_MAX_CONCURRENCY,
    SENTINEL_SYMBOL,
)
from newsstock.graph.analysis_state import EnrichmentState, SymbolFetchState
from newsstock.models.analysis import FinancialData
from newsstock.models.stock import StockPrice
from newsstock.tools.stock import fetch_price_history
from newsstock.utils.financials import summarize_history

DEBUG = os.getenv("DEBUG", "0") == "1"

logger = logging.getLogger(__name__)

FetchHistory = Callable[[str, date, date], list[StockPrice]]


class MarketDataEnricher:
    """
    Attaches recent market data to ticker symbols.

    Every symbol is fetched as its own task (one `Send` per symbol), so a slow or failing symbol never
    blocks or fails its siblings. A failed fetch becomes an all "not available" record for that symbol.
    """

    def __init__(
        self,
        fetch_history: FetchHistory = fetch_price_history,
        window: timedelta = timedelta(days=ENRICHMENT_WINDOW_DAYS),
        max_concurrency: int = MARKET_DATA_MAX_CONCURRENCY,
    ):
        self.fetch_history = fetch_history
        self.window = window
        self.max_concurrency = max_concurrency
        self.graph = self._build_graph()

    def _build_graph(self):
        return (
            StateGraph(EnrichmentState)
            .add_node("fetch_symbol_node", self.fetch_symbol_node)
            .add_conditional_edges(START, self.route_symbols, ["fetch_symbol_node", END])
            .add_edge("fetch_symbol_node", END)
            .compile(name=ENRICHER_GRAPH_NAME, debug=DEBUG)
        )

    def route_symbols(self, state: EnrichmentState) -> list[Send] | str:
        sends = [Send("fetch_symbol_node", {"symbol": symbol}) for symbol in state["symbols"]]
        return sends or END

    def fetch_symbol_node(self, state: SymbolFetchState) -> dict:
        symbol = state["symbol"]
        end = date.today()
        start = end - self.window

        logger.debug(f"Fetching financial data for {symbol}...")
        try:
            snapshot = summarize_history(self.fetch_history(symbol, start, end))
        except Exception as e:
            logger.error(f"Error fetching data for {symbol}: {e}")
            snapshot = FinancialData.unavailable(str(e))

        return {"snapshots": {symbol: snapshot}}

    def enrich(self, symbols: list[str]) -> dict[str, FinancialData]:
        """
        Fetches and summarizes the price window of every symbol.

        Args:
            symbols (list[str]): Ticker symbols. Duplicates, blanks and the sentinel symbol are skipped.

        Returns:
            dict[str, FinancialData]: One record per queried symbol, in the order given.
        """

        queried = [symbol for symbol in dict.fromkeys(symbols) if symbol and symbol != SENTINEL_SYMBOL]
        if not queried:
            logger.debug("No symbols to enrich")
            return {}

        logger.info(f"Found {len(queried)} stocks to enrich: {queried}")
        state = self.graph.invoke(
            {"symbols": queried, "snapshots": {}},
            config={"max_concurrency": self.max_concurrency},
        )

        snapshots: dict[str, FinancialData] = state["snapshots"]
        return {
            symbol: snapshots[symbol] if symbol in snapshots else FinancialData.unavailable("No result for symbol")
            for symbol in queried
        }
