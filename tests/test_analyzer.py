"""Tests for the end-to-end analysis pipeline."""

import json
from unittest.mock import MagicMock

import pytest
from langchain_core.language_models.fake import FakeListLLM

from conftest import BANK_ROWS, SENTINEL_ROW, TESLA_ROW, FakeMarketData, make_prices
from newsstock.agents.analyzer import AnalysisOrchestrator, attach_financial_data
from newsstock.agents.enricher import MarketDataEnricher
from newsstock.exceptions import AnalysisError, InputTooShort
from newsstock.models.analysis import FinancialData


def make_llm(response: str) -> MagicMock:
    llm = MagicMock()
    llm.invoke.return_value = response
    return llm


def make_orchestrator(llm, histories) -> tuple[AnalysisOrchestrator, FakeMarketData]:
    market = FakeMarketData(histories)
    return AnalysisOrchestrator(llm=llm, enricher=MarketDataEnricher(fetch_history=market)), market


class TestInputValidation:
    def test_short_article_makes_no_external_calls(self):
        llm = make_llm("[]")
        orchestrator, market = make_orchestrator(llm, {})

        with pytest.raises(InputTooShort) as exc_info:
            orchestrator.analyze("x" * 50)

        assert exc_info.value.length == 50
        assert exc_info.value.minimum == 100
        llm.invoke.assert_not_called()
        assert market.calls == []

    def test_whitespace_does_not_count(self):
        orchestrator, _ = make_orchestrator(make_llm("[]"), {})

        with pytest.raises(InputTooShort):
            orchestrator.analyze("   " + "a" * 99 + "\n\n\n   ")

    def test_empty_article(self):
        orchestrator, _ = make_orchestrator(make_llm("[]"), {})

        with pytest.raises(InputTooShort):
            orchestrator.analyze("")


class TestAnalyze:
    def test_tesla_with_market_data(self, tesla_article, tesla_response, tesla_prices):
        orchestrator, market = make_orchestrator(FakeListLLM(responses=[tesla_response]), {"TSLA": tesla_prices})

        result = orchestrator.analyze(tesla_article)

        assert result.total_companies == 1
        assert result.analysis[0].stock_symbol == "TSLA"
        assert result.analysis[0].financial_data.current_price == 260.0
        assert result.analysis[0].financial_data.daily_change_percent == 4.84
        assert result.article_word_count == len(tesla_article.split())
        assert market.symbols == ["TSLA"]

    def test_tesla_without_market_data(self, tesla_article, tesla_response):
        orchestrator, _ = make_orchestrator(FakeListLLM(responses=[tesla_response]), {})

        result = orchestrator.analyze(tesla_article)

        assert result.total_companies == 1
        financial_data = result.analysis[0].financial_data
        assert financial_data is not None
        assert not financial_data.available

    def test_non_financial_fields_unchanged(self, tesla_article, bank_response):
        histories = {"BBCA.JK": make_prices([9000.0, 9100.0]), "BMRI.JK": RuntimeError("timeout")}
        orchestrator, _ = make_orchestrator(make_llm(bank_response), histories)

        result = orchestrator.analyze(tesla_article)

        assert len(result.analysis) == len(BANK_ROWS)
        for entity, row in zip(result.analysis, BANK_ROWS):
            assert entity.company_name == row["company_name"]
            assert entity.stock_symbol == row["stock_symbol"]
            assert entity.sentiment == row["sentiment"]
            assert entity.impact == int(row["impact"])
            assert entity.recommendation == row["recommendation"]
            assert entity.reasoning == row["reasoning"]

        assert result.analysis[0].financial_data.available
        assert not result.analysis[1].financial_data.available
        assert not result.analysis[2].financial_data.available

    def test_shared_symbol_is_fetched_once_and_attached_to_each_row(self, tesla_article, tesla_prices):
        rows = [TESLA_ROW, {**TESLA_ROW, "company_name": "Tesla Energy", "reasoning": "Storage unit benefits."}]
        orchestrator, market = make_orchestrator(make_llm(json.dumps(rows)), {"TSLA": tesla_prices})

        result = orchestrator.analyze(tesla_article)

        assert result.total_companies == 2
        assert [e.company_name for e in result.analysis] == ["Tesla Inc", "Tesla Energy"]
        assert result.analysis[0].financial_data == result.analysis[1].financial_data
        assert market.symbols == ["TSLA"]

    def test_sentinel_row_is_not_enriched(self, tesla_article, sentinel_response):
        orchestrator, market = make_orchestrator(make_llm(sentinel_response), {})

        result = orchestrator.analyze(tesla_article)

        assert result.total_companies == 1
        assert result.analysis[0].stock_symbol == SENTINEL_ROW["stock_symbol"]
        assert result.analysis[0].financial_data is None
        assert market.calls == []

    def test_fenced_response(self, tesla_article, tesla_response, tesla_prices):
        orchestrator, _ = make_orchestrator(make_llm(f"```json\n{tesla_response}\n```\n"), {"TSLA": tesla_prices})
        assert orchestrator.analyze(tesla_article).analysis[0].stock_symbol == "TSLA"

    def test_prompt_embeds_article(self, tesla_article, tesla_response):
        llm = make_llm(tesla_response)
        orchestrator, _ = make_orchestrator(llm, {})

        orchestrator.analyze(tesla_article)

        llm.invoke.assert_called_once()
        prompt = llm.invoke.call_args.args[0]
        assert tesla_article in prompt
        assert '"stock_symbol"' in prompt

    def test_each_call_uses_its_own_article(self, tesla_response):
        llm = make_llm(tesla_response)
        orchestrator, _ = make_orchestrator(llm, {})

        orchestrator.analyze("First article. " * 10)
        orchestrator.analyze("Second article. " * 10)

        prompts = [call.args[0] for call in llm.invoke.call_args_list]
        assert "First article." in prompts[0] and "Second article." not in prompts[0]
        assert "Second article." in prompts[1] and "First article." not in prompts[1]


class TestAnalyzeFailures:
    def test_unparseable_response(self, tesla_article):
        raw = "I think Tesla will do great! " * 20
        orchestrator, market = make_orchestrator(make_llm(raw), {})

        with pytest.raises(AnalysisError) as exc_info:
            orchestrator.analyze(tesla_article)

        error = exc_info.value
        assert error.stage == "extraction"
        assert error.error == "Failed to parse AI analysis"
        assert error.raw_response == raw[:200] + "..."
        assert error.to_dict()["rawResponse"] == error.raw_response
        assert market.calls == []

    def test_invalid_entity_rejects_whole_analysis(self, tesla_article):
        rows = [TESLA_ROW, {**BANK_ROWS[0], "impact": 9}]
        orchestrator, market = make_orchestrator(make_llm(json.dumps(rows)), {})

        with pytest.raises(AnalysisError) as exc_info:
            orchestrator.analyze(tesla_article)

        assert exc_info.value.stage == "extraction"
        assert market.calls == []

    def test_language_model_failure(self, tesla_article):
        llm = MagicMock()
        llm.invoke.side_effect = RuntimeError("quota exceeded")
        orchestrator, market = make_orchestrator(llm, {})

        with pytest.raises(AnalysisError) as exc_info:
            orchestrator.analyze(tesla_article)

        assert exc_info.value.stage == "language_model"
        assert "quota exceeded" in exc_info.value.details
        assert "rawResponse" not in exc_info.value.to_dict()
        assert market.calls == []


class TestAttachFinancialData:
    def test_keeps_order_and_skips_missing(self, bank_analysis):
        snapshot = FinancialData(current_price=1.0)

        attached = attach_financial_data(bank_analysis, {"BBRI.JK": snapshot})

        assert [e.stock_symbol for e in attached] == ["BBCA.JK", "BBRI.JK", "BMRI.JK"]
        assert attached[0].financial_data is None
        assert attached[1].financial_data == snapshot
        assert bank_analysis[1].financial_data is None
