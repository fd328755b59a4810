import os
from functools import cache

from langchain_core.language_models import BaseLLM
from langchain_google_genai.llms import GoogleGenerativeAI
from langchain_ollama.llms import OllamaLLM

LLM_MODEL = os.getenv("LLM_MODEL") or "google_genai:gemini-2.5-flash"

TEMPERATURE = float(os.getenv("TEMPERATURE") or 0)


@cache
def get_llm() -> BaseLLM:
    """
    Text-in, text-out model used for the article analysis.
    LLM_MODEL is `<provider>:<model>`, provider being `google_genai` or `ollama`.
    """

    provider, _, model = LLM_MODEL.partition(":")

    if provider == "google_genai":
        return GoogleGenerativeAI(
            model=model,
            temperature=TEMPERATURE,
            max_tokens=4096,
        )
    elif provider == "ollama":
        return OllamaLLM(
            model=model,
            temperature=TEMPERATURE,
        )
    else:
        raise ValueError(f"Unsupported LLM model: {LLM_MODEL}")
