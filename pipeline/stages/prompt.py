"""Prompt construction for the narrative service."""

import json
from functools import lru_cache
from typing import Sequence

from pipeline.models import AnalysisRecord, LocalStatistics, SocialDocument


@lru_cache(maxsize=1)
def schema_description() -> str:
    """JSON Schema of the AnalysisRecord, the exact shape the extractor validates.

    Returns:
        str: Compact, key-sorted JSON Schema document.
    """
    return json.dumps(AnalysisRecord.model_json_schema(by_alias=True), sort_keys=True, ensure_ascii=False)


def serialize_documents(documents: Sequence[SocialDocument]) -> str:
    """Serialize documents as newline-separated JSON objects with sorted keys."""
    return "\n".join(
        json.dumps(d.to_dict(), sort_keys=True, ensure_ascii=False)
        for d in documents
    )


def build_prompt(keyword: str, documents: Sequence[SocialDocument], statistics: LocalStatistics) -> str:
    """Generate the prompt for the multilingual narrative analysis of a collection.

    The output is a pure function of its inputs so identical runs send
    identical requests.

    Args:
        keyword: Collection key the posts were collected for.
        documents: Selected documents.
        statistics: Locally computed figures, passed as reference values.

    Returns:
        str: Formatted prompt.
    """
    reference = json.dumps({
        'overallDistribution': statistics.distribution.to_dict(),
        'overallConfidenceAvg': statistics.confidence_avg,
        'trend': [b.to_dict() for b in statistics.trend],
        'wordCountStats': statistics.word_count_stats.to_dict(),
    }, sort_keys=True, ensure_ascii=False)

    prompt = f"""
        You are a multilingual social media analyst. Analyze the following {len(documents)} posts about "{keyword}".
        The text may include English (en), Hindi (hi), and Marathi (mr). Detect the language per post and perform sentiment analysis accordingly.

        OUTPUT SCHEMA (JSON Schema, follow it exactly):
        {schema_description()}

        GUIDANCE:
        • Perform language detection using cues in text; map to keys: en, hi, mr.
        • Classify sentiment as positive, neutral, or negative. Provide a confidence 0..1.
        • For topKeywords, lemmatize/stem and aggregate within each language; include Devanagari tokens for hi/mr.
        • themes should be concise labels with 1-2 short example posts each (in original language).
        • topEngagers should name the channels or authors driving the conversation, with a one-line reason.
        • Keep arrays short (<=10 items). Numbers must be numbers. Strings must not contain newlines.

        REFERENCE FIGURES (computed locally; keep overall counts and trend consistent with them):
        {reference}

        CRITICAL RULES:
        ✗ NEVER add commentary before or after the JSON
        ✗ NEVER wrap the JSON in code fences
        ✓ Output ONLY one valid JSON object matching the schema

        DATA (newline-separated JSON objects):
        {serialize_documents(documents)}
    """.strip()
    return prompt


def build_messages(prompt: str) -> list[dict]:
    """Wrap the prompt as a chat completion message list."""
    return [{'role': 'user', 'content': prompt}]
