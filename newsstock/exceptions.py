from typing import Any, Literal


class NewsStockError(Exception):
    """Base class for every error raised by the analysis pipeline."""


class InputTooShort(NewsStockError):
    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(f"Article text is required and must be at least {minimum} characters (got {length})")


class MalformedResponse(NewsStockError):
    """
    The language model's output could not be turned into a valid list of companies.

    Carries the parse/validation error and a short excerpt of the raw response for diagnostics.
    """

    def __init__(self, details: str, raw_excerpt: str):
        self.details = details
        self.raw_excerpt = raw_excerpt
        super().__init__(f"Failed to parse AI analysis: {details}")


class EnrichmentFailure(NewsStockError):
    def __init__(self, symbol: str, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Failed to enrich {symbol}: {reason}")


class TransportFailure(NewsStockError):
    def __init__(self, source: Literal["language_model", "market_data"], details: str):
        self.source = source
        self.details = details
        super().__init__(f"{source} call failed: {details}")


class AnalysisError(NewsStockError):
    """
    Orchestration-level failure. `stage` names the pipeline step that made the entity list unusable.
    """

    def __init__(
        self,
        stage: Literal["language_model", "extraction"],
        error: str,
        details: str,
        raw_response: str | None = None,
    ):
        self.stage = stage
        self.error = error
        self.details = details
        self.raw_response = raw_response
        super().__init__(f"{error}: {details}")

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "details": self.details, "stage": self.stage}
        if self.raw_response is not None:
            body["rawResponse"] = self.raw_response
        return body
