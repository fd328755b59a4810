from datetime import datetime, timezone
from typing import Literal

from pydantic import ConfigDict, Field, field_validator

from newsstock.constants.analysis import ARTICLE_EXCERPT_LENGTH, MAX_HISTORY_TURNS
from newsstock.models.analysis import CompanyAnalysis
from newsstock.models.base import CamelModel


def excerpt(text: str, limit: int = ARTICLE_EXCERPT_LENGTH) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class ChatTurn(CamelModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChatContext(CamelModel):
    """
    Grounding context of a chat session.

    `article_excerpt` and `analysis` are fixed for the life of the session, only `history` moves
    and it never holds more than the last MAX_HISTORY_TURNS turns.
    """

    model_config = ConfigDict(frozen=True)

    article_excerpt: str = ""
    analysis: tuple[CompanyAnalysis, ...] = ()
    history: tuple[ChatTurn, ...] = ()

    @field_validator("article_excerpt")
    @classmethod
    def bound_excerpt(cls, value: str) -> str:
        return excerpt(value)

    @field_validator("history")
    @classmethod
    def bound_history(cls, value: tuple[ChatTurn, ...]) -> tuple[ChatTurn, ...]:
        return value[-MAX_HISTORY_TURNS:]

    @property
    def is_fresh(self) -> bool:
        return not any(turn.role == "assistant" for turn in self.history)

    def with_turns(self, *turns: ChatTurn) -> "ChatContext":
        return self.model_copy(update={"history": (self.history + turns)[-MAX_HISTORY_TURNS:]})

    def with_history(self, turns: list[ChatTurn] | tuple[ChatTurn, ...]) -> "ChatContext":
        return self.model_copy(update={"history": tuple(turns)[-MAX_HISTORY_TURNS:]})
