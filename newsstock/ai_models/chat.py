import os
from functools import cache

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.rate_limiters import InMemoryRateLimiter

CHAT_MODEL = os.getenv("CHAT_MODEL") or "google_genai:gemini-2.5-flash"

TEMPERATURE = float(os.getenv("TEMPERATURE") or 0)


rate_limiter = InMemoryRateLimiter(
    requests_per_second=1,
    check_every_n_seconds=0.1,
    max_bucket_size=10,
)


@cache
def get_chat_model() -> BaseChatModel:
    return init_chat_model(
        model=CHAT_MODEL,
        temperature=TEMPERATURE,
        max_tokens=2048,
        rate_limiter=rate_limiter,
    )
