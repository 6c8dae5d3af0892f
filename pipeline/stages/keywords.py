"""Keyword frequency and word count stage."""

import re
from collections import Counter
from typing import Sequence

from pipeline.constants import MAX_KEYWORD_FREQUENCY_ENTRIES, TOKEN_PATTERN
from pipeline.logger import get_logger
from pipeline.models import SocialDocument, WordCountStats
from pipeline.pipeline_config import KeywordConfig
from pipeline.utils import truncate_text

logger = get_logger("stages.keywords")

_TOKEN_RE = re.compile(TOKEN_PATTERN)


def tokenize(text: str) -> list[str]:
    """Lowercase text and split it into Latin and Devanagari word tokens.

    Punctuation, digits (ASCII and Devanagari) and any other script are dropped.
    """
    return _TOKEN_RE.findall((text or "").lower())


def count_keywords(
    documents: Sequence[SocialDocument],
    config: KeywordConfig = KeywordConfig(),
    max_text_length: int = 5000,
) -> dict[str, int]:
    """Count token occurrences across documents for the word cloud.

    Each document contributes at most ``config.max_tokens_per_document``
    tokens so that a single long post cannot dominate the table.

    Args:
        documents: Selected documents.
        config: Keyword settings.
        max_text_length: Characters of each text considered, as for classification.

    Returns:
        dict[str, int]: Top ``config.top_n`` tokens by count, descending. Ties keep
            the order in which the tokens were first seen.
    """
    counts: Counter[str] = Counter()
    for d in documents:
        tokens = tokenize(truncate_text(d.text, max_text_length))
        counts.update(tokens[:config.max_tokens_per_document])

    top_n = min(config.top_n, MAX_KEYWORD_FREQUENCY_ENTRIES)
    # most_common keeps first-encountered order among equal counts
    table = dict(counts.most_common(top_n))
    logger.info(f"Counted {len(counts)} distinct tokens, keeping {len(table)}")
    return table


def word_count_stats(documents: Sequence[SocialDocument]) -> WordCountStats:
    """Average, maximum and minimum whitespace-separated word counts."""
    if not documents:
        return WordCountStats()

    counts = [len(d.text.split()) for d in documents]
    return WordCountStats(
        avg=round(sum(counts) / len(counts), 2),
        max=max(counts),
        min=min(counts),
    )
