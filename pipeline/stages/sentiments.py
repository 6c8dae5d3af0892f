"""Local, deterministic sentiment classification stage.

Texts containing Devanagari are scored against a Hindi/Marathi lexicon; all
other texts go through TextBlob's pattern polarity. Neither path uses any
randomness, so the same text always gets the same label and confidence.
"""

import re
from typing import Sequence

from textblob import TextBlob

from pipeline.constants import (
    DEVANAGARI_NEGATIVE_WORDS,
    DEVANAGARI_NEGATORS,
    DEVANAGARI_PATTERN,
    DEVANAGARI_POSITIVE_WORDS,
)
from pipeline.logger import get_logger
from pipeline.models import ClassificationResult, SentimentLabel, SocialDocument
from pipeline.pipeline_config import ClassifierConfig
from pipeline.stages.keywords import tokenize
from pipeline.utils import clamp, truncate_text

logger = get_logger("stages.sentiments")

DEVANAGARI = "devanagari"
LATIN = "latin"

_DEVANAGARI_RE = re.compile(DEVANAGARI_PATTERN)


def detect_script(text: str) -> str:
    """Return ``"devanagari"`` if the text contains any Devanagari character, else ``"latin"``."""
    return DEVANAGARI if _DEVANAGARI_RE.search(text or "") else LATIN


def _classify_latin(text: str, neutral_band: float) -> ClassificationResult:
    polarity = TextBlob(text).sentiment.polarity

    if polarity > neutral_band:
        label = SentimentLabel.POSITIVE
        confidence = 0.5 + abs(polarity) / 2
    elif polarity < -neutral_band:
        label = SentimentLabel.NEGATIVE
        confidence = 0.5 + abs(polarity) / 2
    else:
        label = SentimentLabel.NEUTRAL
        confidence = 1 - abs(polarity) / (2 * neutral_band) if neutral_band > 0 else 1.0

    return ClassificationResult(label=label, confidence=round(clamp(confidence), 4))


def _classify_devanagari(text: str) -> ClassificationResult:
    tokens = tokenize(text)
    score = 0
    hits = 0

    for i, token in enumerate(tokens):
        if token in DEVANAGARI_POSITIVE_WORDS:
            polarity = 1
        elif token in DEVANAGARI_NEGATIVE_WORDS:
            polarity = -1
        else:
            continue
        if i + 1 < len(tokens) and tokens[i + 1] in DEVANAGARI_NEGATORS:
            polarity = -polarity
        score += polarity
        hits += 1

    if hits == 0:
        return ClassificationResult(label=SentimentLabel.NEUTRAL, confidence=1.0)
    if score == 0:
        return ClassificationResult(label=SentimentLabel.NEUTRAL, confidence=0.5)

    label = SentimentLabel.POSITIVE if score > 0 else SentimentLabel.NEGATIVE
    confidence = 0.5 + 0.5 * abs(score) / (hits + 1)
    return ClassificationResult(label=label, confidence=round(clamp(confidence), 4))


def classify_text(text: str, max_length: int = 5000, neutral_band: float = 0.1) -> ClassificationResult:
    """Classify a single text.

    Args:
        text: Raw document text.
        max_length: Characters examined; longer texts are truncated first.
        neutral_band: Absolute TextBlob polarity at or below which English text is neutral.

    Returns:
        ClassificationResult: Label and confidence in [0, 1].
    """
    text = truncate_text(text, max_length)
    if not tokenize(text):
        return ClassificationResult(label=SentimentLabel.NEUTRAL, confidence=0.0)

    if detect_script(text) == DEVANAGARI:
        return _classify_devanagari(text)
    return _classify_latin(text, neutral_band)


def classify_documents(
    documents: Sequence[SocialDocument],
    config: ClassifierConfig = ClassifierConfig(),
) -> list[ClassificationResult]:
    """Classify every document, preserving input order.

    Args:
        documents: Selected documents.
        config: Classifier settings.

    Returns:
        list[ClassificationResult]: One result per document.
    """
    results = [
        classify_text(d.text, max_length=config.max_text_length, neutral_band=config.neutral_band)
        for d in documents
    ]
    logger.info(f"Classified {len(results)} documents")
    return results


def confidence_average(results: Sequence[ClassificationResult]) -> float:
    """Mean confidence, rounded to 4 places; 0.0 for no results."""
    if not results:
        return 0.0
    return round(sum(r.confidence for r in results) / len(results), 4)
