from pydantic import ConfigDict, Field

from newsstock.models.analysis import AnalysisResult, CompanyAnalysis
from newsstock.models.base import CamelModel
from newsstock.models.chat import ChatTurn


class AnalyzeRequest(CamelModel):
    article_text: str = Field(default="")


class AnalyzeResponse(AnalysisResult):
    success: bool = Field(default=True)


class ErrorResponse(CamelModel):
    error: str
    details: str | None = Field(default=None)
    # stage = "language_model" | "extraction"
    stage: str | None = Field(default=None)
    # only for extraction failures, truncated
    raw_response: str | None = Field(default=None)


class ChatRequest(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(min_length=1)
    # replaces the server side history when present
    conversation_history: list[ChatTurn] | None = Field(default=None)
    # binds a new grounding context when present
    analysis: list[CompanyAnalysis] | None = Field(default=None)
    article_text: str | None = Field(default=None)


class ChatResponse(CamelModel):
    success: bool
    response: str | None = Field(default=None)
    error: str | None = Field(default=None)
