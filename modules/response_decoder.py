"""
Response Decoder Module
----------------------
Pulls structured question content out of free-form model replies.

Models often wrap their JSON in markdown fences or surround it with prose.
`decode` strips that noise and never raises: a reply that cannot be read
simply yields None, and the caller keeps the raw text.
"""

import json
import logging
import re

from modules.questions import AIResult

logger = logging.getLogger(__name__)

JSON_FENCE = "```json"
FENCE = "```"
JSON_FENCE_PATTERN = re.compile(re.escape(JSON_FENCE), re.IGNORECASE)


def strip_fences(text: str) -> str:
    """
    Return the content of the first fenced block in `text`.

    A ```json opener (any case) takes precedence over a bare ``` fence. When
    no usable block is found the trimmed text is returned unchanged.
    """
    text = text.strip()

    match = JSON_FENCE_PATTERN.search(text)
    if match:
        start = match.end()
    else:
        opener = text.find(FENCE)
        if opener == -1:
            return text
        start = opener + len(FENCE)

    end = text.find(FENCE, start)
    if end > start:
        return text[start:end].strip()
    return text


def decode(text: str | None) -> AIResult | None:
    """
    Decode an AI reply into an AIResult.

    Args:
        text: The verbatim model reply

    Returns:
        The decoded result, or None if the reply is blank or not a JSON object
    """
    if not text or not text.strip():
        return None

    payload = strip_fences(text)
    try:
        data = json.loads(payload)
    except (ValueError, RecursionError) as e:
        logger.debug(f"AI reply is not valid JSON: {e}")
        return None

    if not isinstance(data, dict):
        logger.debug(f"AI reply decoded to {type(data).__name__}, expected an object")
        return None

    return AIResult.from_dict(data)


def encode(result: AIResult) -> str:
    """Render a result as a fenced JSON block, the shape the prompt asks for.

    Inverse of `decode`; used to build model-style replies in tests.
    """
    body = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    return f"{JSON_FENCE}\n{body}\n{FENCE}"
