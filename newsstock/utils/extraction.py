import json
import logging
import re
from typing import Any, Final

from pydantic import TypeAdapter, ValidationError

from newsstock.constants.analysis import RAW_EXCERPT_LENGTH
from newsstock.exceptions import MalformedResponse
from newsstock.models.analysis import CompanyAnalysis

logger = logging.getLogger(__name__)

_OPENING_FENCE: Final[re.Pattern[str]] = re.compile(r"^```[\w+-]*")
_CLOSING_FENCE: Final[re.Pattern[str]] = re.compile(r"```\s*$")

_entities_adapter: Final[TypeAdapter[list[CompanyAnalysis]]] = TypeAdapter(list[CompanyAnalysis])


def raw_excerpt(raw_text: str, limit: int = RAW_EXCERPT_LENGTH) -> str:
    if len(raw_text) <= limit:
        return raw_text
    return raw_text[:limit] + "..."


def strip_code_fence(text: str) -> str:
    """
    Removes a markdown code fence around the model response, if there is one.
    Handles ```json and plain ``` openers, a missing closing fence and surrounding whitespace.
    """

    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def _describe_validation_error(error: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors(include_url=False)[:5]
    ]
    return f"{error.error_count()} invalid field(s) - " + "; ".join(problems)


def extract_entities(raw_text: str) -> list[CompanyAnalysis]:
    """
    Turns the raw language model response into validated company records.

    The whole batch is rejected if any element is invalid.

    Args:
        raw_text (str): The model response, possibly wrapped in a code fence.

    Returns:
        list[CompanyAnalysis]: The companies, in the order the model emitted them.

    Raises:
        MalformedResponse: If no valid, non-empty JSON array of companies can be recovered.
    """

    cleaned = strip_code_fence(raw_text)
    logger.debug(f"Cleaned model response: {cleaned[:RAW_EXCERPT_LENGTH]}")

    try:
        data: Any = json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.error(f"Error parsing model response: {e}")
        raise MalformedResponse(str(e), raw_excerpt(raw_text)) from e

    if not isinstance(data, list):
        raise MalformedResponse(f"Expected a JSON array, got {type(data).__name__}", raw_excerpt(raw_text))

    if not data:
        raise MalformedResponse("The JSON array contains no companies", raw_excerpt(raw_text))

    try:
        entities = _entities_adapter.validate_python(data)
    except ValidationError as e:
        details = _describe_validation_error(e)
        logger.error(f"Model response failed validation: {details}")
        raise MalformedResponse(details, raw_excerpt(raw_text)) from e

    logger.info(f"Successfully parsed JSON with {len(entities)} companies")
    return entities


def unique_symbols(entities: list[CompanyAnalysis]) -> list[str]:
    """Ticker symbols in first-seen order, without duplicates."""
    return list(dict.fromkeys(entity.stock_symbol for entity in entities))
