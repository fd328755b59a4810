import asyncio
import logging
import os
import threading
from functools import cache
from typing import Callable

from fastapi import Depends, FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newsstock.agents.analyzer import AnalysisOrchestrator
from newsstock.agents.chat import ChatGroundingEngine, ChatSession
from newsstock.constants.analysis import ANALYZE_TIMEOUT_SECONDS, MIN_ARTICLE_LENGTH
from newsstock.exceptions import AnalysisError, InputTooShort, TransportFailure
from newsstock.models.api import AnalyzeRequest, AnalyzeResponse, ChatRequest, ChatResponse, ErrorResponse
from newsstock.models.chat import ChatContext
from newsstock.models.stock import StockLookup
from newsstock.tools.stock import lookup_stock
from newsstock.utils.logger import setup_logging

DEBUG = os.getenv("DEBUG", "0") == "1"
CORS_ALLOW_ORIGINS = (os.getenv("CORS_ALLOW_ORIGINS") or "*").split(",")

setup_logging()
logger = logging.getLogger(__name__)


class ChatSessionStore:
    """Holds the one chat session bound to the latest analysis."""

    def __init__(self):
        self._session: ChatSession | None = None
        self._lock = threading.Lock()

    def bind(self, session: ChatSession) -> ChatSession:
        with self._lock:
            self._session = session
            return session

    def current(self) -> ChatSession | None:
        with self._lock:
            return self._session


chat_store = ChatSessionStore()


@cache
def get_orchestrator() -> AnalysisOrchestrator:
    return AnalysisOrchestrator()


@cache
def get_chat_engine() -> ChatGroundingEngine:
    return ChatGroundingEngine()


def get_chat_store() -> ChatSessionStore:
    return chat_store


def get_stock_lookup() -> Callable[[str], StockLookup]:
    return lookup_stock


def error_response(status_code: int, payload: ErrorResponse | ChatResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload.model_dump(by_alias=True, exclude_none=True))


app = FastAPI(title="NewsStock API", debug=DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Welcome to the NewsStock API!"}


@app.get("/health")
async def health():
    return {"status": "ok", "message": "NewsStock API is running"}


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    request: AnalyzeRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    engine: ChatGroundingEngine = Depends(get_chat_engine),
    store: ChatSessionStore = Depends(get_chat_store),
):
    logger.info(f"Received article for analysis ({len(request.article_text)} characters)")

    try:
        # on timeout the running analysis is not cancelled, its result is dropped
        result = await asyncio.wait_for(
            run_in_threadpool(orchestrator.analyze, request.article_text),
            timeout=ANALYZE_TIMEOUT_SECONDS,
        )
    except InputTooShort as e:
        return error_response(
            400,
            ErrorResponse(
                error=f"Article text is required and must be at least {MIN_ARTICLE_LENGTH} characters",
                details=str(e),
            ),
        )
    except AnalysisError as e:
        logger.error(f"Analysis failed at {e.stage}: {e.details}")
        status_code = 500 if e.stage == "extraction" else 502
        return JSONResponse(status_code=status_code, content=e.to_dict())
    except TimeoutError:
        logger.error(f"Analysis did not finish within {ANALYZE_TIMEOUT_SECONDS} seconds")
        return error_response(
            504, ErrorResponse(error="Analysis timed out", details=f"No result after {ANALYZE_TIMEOUT_SECONDS} seconds")
        )
    except Exception as e:
        logger.exception("Error in /analyze endpoint")
        return error_response(500, ErrorResponse(error="Internal server error", details=str(e)))

    store.bind(ChatSession(engine, ChatContext(article_excerpt=request.article_text, analysis=tuple(result.analysis))))

    return AnalyzeResponse(**dict(result))


@app.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
def chat(
    request: ChatRequest,
    engine: ChatGroundingEngine = Depends(get_chat_engine),
    store: ChatSessionStore = Depends(get_chat_store),
):
    if request.analysis is not None:
        context = ChatContext(article_excerpt=request.article_text or "", analysis=tuple(request.analysis))
        session: ChatSession | None = store.bind(ChatSession(engine, context))
    else:
        session = store.current()

    if session is None:
        return error_response(
            409, ChatResponse(success=False, error="No analysis to discuss. Analyze an article first.")
        )

    try:
        response = session.send(request.message, history=request.conversation_history)
    except TransportFailure as e:
        logger.error(f"Chat failed: {e}")
        return error_response(502, ChatResponse(success=False, error="The AI service is unavailable"))

    return ChatResponse(success=True, response=response)


@app.get("/stock/{symbol}", response_model=StockLookup)
def stock(symbol: str, lookup: Callable[[str], StockLookup] = Depends(get_stock_lookup)):
    logger.info(f"Fetching data for {symbol}...")

    try:
        return lookup(symbol)
    except Exception as e:
        logger.error(f"Error fetching stock data for {symbol}: {e}")
        return error_response(500, ErrorResponse(error="Failed to fetch stock data", details=str(e)))


if __name__ == "__main__":
    orchestrator = get_orchestrator()
    article = input("Article> ").strip()
    result = orchestrator.analyze(article)
    for company in result.analysis:
        print(f"  • {company.stock_symbol}: {company.company_name} ({company.recommendation})")

    session = ChatSession(get_chat_engine(), ChatContext(article_excerpt=article, analysis=tuple(result.analysis)))
    while True:
        query = input("You> ").strip()
        print(session.send(query))
