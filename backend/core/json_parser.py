"""
JSON extraction from LLM responses
"""

import re
from typing import Optional

# First ```json fenced block; non-greedy so trailing prose is not swallowed
_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")


def extract_fenced_json(text: str) -> Optional[str]:
    """
    Return the body of the first ```json fenced block in text

    Args:
        text: Raw model output

    Returns:
        Block content without fences, or None when there is no such block
    """
    if not text:
        return None
    match = _FENCED_JSON_RE.search(text)
    if not match:
        return None
    return match.group(1)
