import logging
import re
import threading
from typing import Final

from langchain_core.language_models import BaseLanguageModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from newsstock.ai_models.chat import get_chat_model
from newsstock.exceptions import TransportFailure
from newsstock.models.analysis import CompanyAnalysis
from newsstock.models.chat import ChatContext, ChatTurn
from newsstock.prompts.chat import (
    ADVICE_REFUSAL,
    ATTRIBUTION_TEMPLATE,
    DISCLAIMER,
    FIRST_MESSAGE_DISCLAIMER_RULE,
    FOLLOW_UP_DISCLAIMER_RULE,
    SCOPE_REFUSAL,
    chat_prompt_template,
)
from newsstock.utils.text import response_text

logger = logging.getLogger(__name__)

ADVICE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\b("
    r"should\s+i\s+(buy|sell|hold|invest|short|get\s+out)"
    r"|(would|do)\s+you\s+(buy|sell|hold|recommend|suggest|invest)"
    r"|is\s+(it|this|now)\s+(a\s+)?(good|bad|right|smart|safe)\s+(time|idea|moment|investment|buy)"
    r"|worth\s+(buying|selling|investing)"
    r"|buy\s+or\s+sell"
    r"|price\s+(target|prediction|forecast)"
    r"|predict"
    r"|will\s+[\w.$]+(\s+stock)?\s+(go\s+up|go\s+down|rise|fall|drop|crash|recover)"
    r"|what\s+would\s+you\s+do"
    r")",
    re.IGNORECASE,
)

OUT_OF_SCOPE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\b("
    r"real[\s-]?time"
    r"|live\s+(price|quote|data)"
    r"|price\s+history|historical\s+(price|data)|price\s+chart"
    r"|today'?s\s+market|broader\s+market|stock\s+market\s+today|market\s+outlook"
    r"|bitcoin|crypto(currency|currencies)?"
    r")\b",
    re.IGNORECASE,
)

CASHTAG_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$([A-Za-z]{1,5}(?:\.[A-Za-z]{1,3})?)\b")

ATTRIBUTION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"analysis\s+generated\s+an?\s+'[^']+'\s+recommendation\s+because", re.IGNORECASE
)

_CORPORATE_SUFFIX: Final[re.Pattern[str]] = re.compile(
    r"[,.]?\s+(inc|incorporated|corp|corporation|co|company|ltd|limited|plc|tbk|holdings|group|sa|ag|nv)\.?$",
    re.IGNORECASE,
)


def is_advice_seeking(message: str) -> bool:
    return bool(ADVICE_PATTERN.search(message))


def is_out_of_scope(context: ChatContext, message: str) -> bool:
    """
    Requests the grounding context can not answer: live or historical market data, the broader market,
    or cashtags of companies that are not part of the analysis.
    """

    if OUT_OF_SCOPE_PATTERN.search(message):
        return True

    known = {company.stock_symbol for company in context.analysis}
    return any(tag.upper() not in known for tag in CASHTAG_PATTERN.findall(message))


def _short_name(company_name: str) -> str:
    return _CORPORATE_SUFFIX.sub("", company_name.strip()).lower()


def mentioned_companies(context: ChatContext, message: str) -> list[CompanyAnalysis]:
    lowered = message.lower()
    return [
        company
        for company in context.analysis
        if not company.is_sentinel
        and (
            re.search(rf"(?<![\w.]){re.escape(company.stock_symbol)}(?![\w.])", message, re.IGNORECASE)
            or _short_name(company.company_name) in lowered
        )
    ]


def attribution(company: CompanyAnalysis) -> str:
    reasoning = company.reasoning.rstrip()
    if not reasoning.endswith((".", "!", "?")):
        reasoning += "."

    return ATTRIBUTION_TEMPLATE.format(
        company_name=company.company_name,
        stock_symbol=company.stock_symbol,
        recommendation=company.recommendation,
        reasoning=reasoning,
    )


def serialize_analysis(analysis: tuple[CompanyAnalysis, ...]) -> str:
    rows = []
    for index, company in enumerate(analysis, start=1):
        exclude = None if company.financial_data and company.financial_data.available else {"financial_data"}
        rows.append(f"Company {index}:\n{company.model_dump_json(exclude=exclude, indent=2)}")

    return "\n\n".join(rows) or "No analysis data available."


def history_messages(history: tuple[ChatTurn, ...]) -> list[BaseMessage]:
    return [HumanMessage(turn.content) if turn.role == "user" else AIMessage(turn.content) for turn in history]


class ChatGroundingEngine:
    """
    Answers follow-up questions about one frozen analysis.

    The model only ever sees the analysis, the article excerpt, the bounded history and the new message.
    On top of the prompt rules, the disclaimer, the scope refusal and the recommendation attribution are
    enforced on the returned text.
    """

    def __init__(self, chat_model: BaseLanguageModel | None = None):
        self._chat_model = chat_model

    @property
    def chat_model(self) -> BaseLanguageModel:
        if self._chat_model is None:
            self._chat_model = get_chat_model()
        return self._chat_model

    def build_messages(self, context: ChatContext, message: str) -> list[BaseMessage]:
        return chat_prompt_template.invoke(
            {
                "disclaimer_rule": FIRST_MESSAGE_DISCLAIMER_RULE if context.is_fresh else FOLLOW_UP_DISCLAIMER_RULE,
                "disclaimer": DISCLAIMER,
                "scope_refusal": SCOPE_REFUSAL,
                "advice_refusal": ADVICE_REFUSAL,
                "article_excerpt": context.article_excerpt,
                "analysis_data": serialize_analysis(context.analysis),
                "history": history_messages(context.history),
                "message": message,
            }
        ).to_messages()

    def _enforce_attribution(self, context: ChatContext, message: str, response: str) -> str:
        if ATTRIBUTION_PATTERN.search(response):
            return response

        companies = mentioned_companies(context, message) or [c for c in context.analysis if not c.is_sentinel]
        lines = [ADVICE_REFUSAL, *(attribution(company) for company in companies)]
        return response.rstrip() + "\n\n" + "\n".join(lines)

    def respond(self, context: ChatContext, message: str) -> str:
        """
        Produces the assistant's answer to one user message.

        Raises:
            TransportFailure: If the chat model call fails.
        """

        message = message.strip()
        logger.info(f"Processing chat message: {message[:50]}...")

        first_turn = context.is_fresh
        advice = is_advice_seeking(message)

        if is_out_of_scope(context, message):
            logger.info("Message is outside of the analysis, refusing")
            response = SCOPE_REFUSAL
        else:
            try:
                reply = self.chat_model.invoke(self.build_messages(context, message))
            except Exception as e:
                logger.error(f"Chat model call failed: {e}")
                raise TransportFailure("language_model", str(e)) from e

            response = response_text(reply)
            if advice:
                response = self._enforce_attribution(context, message, response)

        if (first_turn or advice) and DISCLAIMER not in response:
            response = f"{DISCLAIMER}\n\n{response}"

        logger.debug(f"Chat response generated: {response[:100]}...")
        return response


class ChatSession:
    """
    The chat context bound to one analysis. Turns are processed one at a time.
    """

    def __init__(self, engine: ChatGroundingEngine, context: ChatContext):
        self.engine = engine
        self._context = context
        self._lock = threading.Lock()

    @property
    def context(self) -> ChatContext:
        return self._context

    def send(self, message: str, history: list[ChatTurn] | None = None) -> str:
        """
        Answers `message` and appends the exchange to the history.
        `history`, when given, replaces the session history first (the client is the source of truth).
        """

        with self._lock:
            context = self._context if history is None else self._context.with_history(history)
            response = self.engine.respond(context, message)
            self._context = context.with_turns(
                ChatTurn(role="user", content=message.strip()),
                ChatTurn(role="assistant", content=response),
            )
            return response
