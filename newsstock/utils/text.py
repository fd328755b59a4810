from typing import Any

from langchain_core.messages import BaseMessage


def response_text(response: Any) -> str:
    """Text of a model response, whether the model returned a plain string or a chat message."""
    if not isinstance(response, BaseMessage):
        return str(response)

    content = response.content
    if isinstance(content, str):
        return content

    # multimodal content blocks
    return "".join(part if isinstance(part, str) else str(part.get("text", "")) for part in content)
