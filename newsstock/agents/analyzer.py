import logging
import os
from datetime import datetime, timezone

from langchain_core.language_models import BaseLanguageModel
from langgraph.graph import END, START, StateGraph

from newsstock.agents.enricher import MarketDataEnricher
from newsstock.ai_models.llm import get_llm
from newsstock.constants.analysis import ANALYZER_GRAPH_NAME, MIN_ARTICLE_LENGTH
from newsstock.exceptions import AnalysisError, InputTooShort, MalformedResponse, TransportFailure
from newsstock.graph.analysis_state import AnalysisState
from newsstock.models.analysis import AnalysisResult, CompanyAnalysis, FinancialData
from newsstock.prompts.analyzer import analysis_prompt_template
from newsstock.utils.extraction import extract_entities, unique_symbols
from newsstock.utils.text import response_text

DEBUG = os.getenv("DEBUG", "0") == "1"

logger = logging.getLogger(__name__)


def attach_financial_data(
    entities: list[CompanyAnalysis], snapshots: dict[str, FinancialData]
) -> list[CompanyAnalysis]:
    """Puts each symbol's record on every row sharing that symbol, keeping the model's order."""
    return [
        entity.model_copy(update={"financial_data": snapshots[entity.stock_symbol]})
        if entity.stock_symbol in snapshots
        else entity
        for entity in entities
    ]


class AnalysisOrchestrator:
    """
    Article text in, enriched analysis out.

    One language model call, then entity extraction, then one market data fetch per unique symbol.
    """

    def __init__(self, llm: BaseLanguageModel | None = None, enricher: MarketDataEnricher | None = None):
        self._llm = llm
        self.enricher = enricher or MarketDataEnricher()
        self.graph = self._build_graph()

    @property
    def llm(self) -> BaseLanguageModel:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    def _build_graph(self):
        return (
            StateGraph(AnalysisState)
            .add_node("generate_analysis_node", self.generate_analysis_node)
            .add_node("extract_entities_node", self.extract_entities_node)
            .add_node("enrich_entities_node", self.enrich_entities_node)
            .add_node("compose_result_node", self.compose_result_node)
            .add_edge(START, "generate_analysis_node")
            .add_edge("generate_analysis_node", "extract_entities_node")
            .add_edge("extract_entities_node", "enrich_entities_node")
            .add_edge("enrich_entities_node", "compose_result_node")
            .add_edge("compose_result_node", END)
            .compile(name=ANALYZER_GRAPH_NAME, debug=DEBUG)
        )

    def generate_analysis_node(self, state: AnalysisState) -> dict:
        logger.debug("Entering generate_analysis_node")
        prompt = analysis_prompt_template.format(article_text=state["article_text"])

        try:
            response = self.llm.invoke(prompt)
        except Exception as e:
            logger.error(f"ERROR in generate_analysis_node: {e}")
            raise TransportFailure("language_model", str(e)) from e

        raw_response = response_text(response)
        logger.info(f"Model analysis complete: {raw_response[:200]}...")
        return {"raw_response": raw_response}

    def extract_entities_node(self, state: AnalysisState) -> dict:
        logger.debug("Entering extract_entities_node")
        entities = extract_entities(state["raw_response"] or "")
        return {"entities": entities, "symbols": unique_symbols(entities)}

    def enrich_entities_node(self, state: AnalysisState) -> dict:
        logger.debug("Entering enrich_entities_node")
        return {"snapshots": self.enricher.enrich(state["symbols"])}

    def compose_result_node(self, state: AnalysisState) -> dict:
        logger.debug("Entering compose_result_node")
        analysis = attach_financial_data(state["entities"], state["snapshots"])

        return {
            "result": AnalysisResult(
                timestamp=datetime.now(timezone.utc),
                article_word_count=len(state["article_text"].split()),
                total_companies=len(analysis),
                analysis=analysis,
            )
        }

    def analyze(self, article_text: str) -> AnalysisResult:
        """
        Runs the whole pipeline for one article.

        Raises:
            InputTooShort: Before any external call, if the article is below MIN_ARTICLE_LENGTH characters.
            AnalysisError: If the language model call fails or its response can not be parsed.
        """

        text = (article_text or "").strip()
        if len(text) < MIN_ARTICLE_LENGTH:
            raise InputTooShort(len(text), MIN_ARTICLE_LENGTH)

        logger.info(f"Analyzing article ({len(text)} characters)...")

        try:
            state = self.graph.invoke({"article_text": text})
        except TransportFailure as e:
            raise AnalysisError("language_model", "Language model call failed", e.details) from e
        except MalformedResponse as e:
            raise AnalysisError("extraction", "Failed to parse AI analysis", e.details, e.raw_excerpt) from e

        result: AnalysisResult = state["result"]
        logger.info(f"Analysis complete with {result.total_companies} companies")
        return result


if __name__ == "__main__":
    from newsstock.utils.logger import setup_logging

    setup_logging()
    orchestrator = AnalysisOrchestrator()
    article = input("Article> ").strip()
    print(orchestrator.analyze(article).model_dump_json(by_alias=True, indent=2))
