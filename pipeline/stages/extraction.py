"""Structured output extraction stage.

Narrative responses are free text that should be a JSON object but may be
wrapped in prose or code fences, or carry trailing commas. Recovery is an
ordered list of strategies; each takes the raw text and returns a dict or
None without raising. The first dict that looks like an analysis record
(see ``RECORD_KEYS``) wins; any other JSON object, such as an error payload,
counts as no parse.
"""

import json
import re
from typing import Callable, Optional

from pipeline.logger import get_logger

logger = get_logger("stages.extraction")

Strategy = Callable[[str], Optional[dict]]

_FENCED_BLOCK_RE = re.compile(r"```[\w+-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)
_FENCE_MARKER_RE = re.compile(r"```[\w+-]*")
# String literals are matched first so commas inside them are left alone
_TRAILING_COMMA_RE = re.compile(r'("(?:[^"\\]|\\.)*")|,\s*([}\]])')

# A parsed object is only an analysis when it carries one of these top-level keys
RECORD_KEYS = frozenset({"summary", "languages", "sentimentDistribution"})


def _loads_object(text: Optional[str]) -> Optional[dict]:
    """Parse text as JSON, accepting only an object."""
    if not text or not text.strip():
        return None
    try:
        value = json.loads(text.strip())
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _strip_fences(text: str) -> str:
    return _FENCE_MARKER_RE.sub("", text)


def _remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(lambda m: m.group(1) or m.group(2), text)


def is_record_shaped(parsed: dict) -> bool:
    """Check that a parsed object carries at least one analysis record section."""
    return not RECORD_KEYS.isdisjoint(parsed)


def _brace_slice(text: str) -> Optional[str]:
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def parse_as_is(text: str) -> Optional[dict]:
    return _loads_object(text)


def parse_fenced_block(text: str) -> Optional[dict]:
    match = _FENCED_BLOCK_RE.search(text)
    return _loads_object(match.group(1)) if match else None


def parse_without_fences(text: str) -> Optional[dict]:
    return _loads_object(_strip_fences(text))


def parse_without_trailing_commas(text: str) -> Optional[dict]:
    return _loads_object(_remove_trailing_commas(_strip_fences(text)))


def parse_outermost_braces(text: str) -> Optional[dict]:
    return _loads_object(_brace_slice(_remove_trailing_commas(_strip_fences(text))))


STRATEGIES: tuple[Strategy, ...] = (
    parse_as_is,
    parse_fenced_block,
    parse_without_fences,
    parse_without_trailing_commas,
    parse_outermost_braces,
)


def extract_structured_output(text: Optional[str]) -> Optional[dict]:
    """Recover a JSON object from a narrative response.

    Args:
        text: Raw response text.

    Returns:
        Optional[dict]: The first record-shaped object any strategy recovers, or
            None when all fail.
    """
    if not text:
        return None

    for strategy in STRATEGIES:
        parsed = strategy(text)
        if parsed is None:
            continue
        if not is_record_shaped(parsed):
            logger.warning(f"'{strategy.__name__}' found JSON without analysis sections: {sorted(parsed)[:5]}")
            continue
        logger.info(f"Narrative response parsed with '{strategy.__name__}'")
        return parsed

    logger.warning(f"Narrative response could not be parsed ({len(text)} chars), using local analysis")
    return None
