"""Analysis record normalization stage.

Narrative responses and records stored by earlier versions of the pipeline
come in several shapes: capitalized sentiment keys, a top-level
``sentimentDistribution`` whose values may be lists of posts, trend points
under ``summary.trend``, ``trend.daily`` or ``timeline``, and so on. This
module maps all of them onto the canonical ``AnalysisRecord``; nothing
downstream reads any other shape.
"""

from typing import Any, Optional

from pipeline.constants import NARRATIVE_PLACEHOLDER
from pipeline.logger import get_logger
from pipeline.models import AnalysisRecord, SentimentLabel
from pipeline.stages.trend import to_utc_date
from pipeline.utils import clamp

logger = get_logger("stages.normalization")

LANGUAGE_KEYS = ("en", "hi", "mr")


def _first(mapping: Any, *keys: str, default: Any = None) -> Any:
    """Return the first non-None value among keys of a mapping."""
    if not isinstance(mapping, dict):
        return default
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return default


def _as_int(value: Any) -> int:
    if isinstance(value, (list, tuple)):
        return len(value)
    try:
        return max(0, int(round(float(value))))
    except (TypeError, ValueError, OverflowError):
        return 0


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result == result else default  # NaN


def _as_label(value: Any) -> Optional[str]:
    label = str(value or "").strip().lower()
    return label if label in {l.value for l in SentimentLabel} else None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and not isinstance(item, (dict, list))]


def _distribution(raw: Any) -> dict:
    return {
        label.value: _as_int(_first(raw, label.value, label.value.capitalize(), default=0))
        for label in SentimentLabel
    }


def _trend(raw: dict) -> list[dict]:
    source = _first(raw.get('summary'), 'trend') or raw.get('trend') or raw.get('timeline')
    if isinstance(source, dict):
        source = source.get('daily')
    if not isinstance(source, list):
        return []

    by_date: dict[str, dict] = {}
    for point in source:
        day = to_utc_date(_first(point, 'date', 'day', 'ts'))
        if day is None:
            continue
        counts = by_date.setdefault(day, {'positive': 0, 'neutral': 0, 'negative': 0})
        for label, count in _distribution(point).items():
            counts[label] += count

    return [
        {'date': day, **counts, 'total': sum(counts.values())}
        for day, counts in sorted(by_date.items())
    ]


def _keyword_counts(raw: Any) -> list[dict]:
    if isinstance(raw, dict):
        raw = [{'keyword': k, 'count': v} for k, v in raw.items()]
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        if isinstance(item, dict) and _first(item, 'keyword', 'word', 'term') is not None:
            out.append({'keyword': str(_first(item, 'keyword', 'word', 'term')), 'count': _as_int(item.get('count'))})
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            out.append({'keyword': str(item[0]), 'count': _as_int(item[1])})
    return out


def _themes(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        if isinstance(item, str):
            out.append({'theme': item, 'examples': []})
        elif isinstance(item, dict) and _first(item, 'theme', 'name', 'label') is not None:
            out.append({
                'theme': str(_first(item, 'theme', 'name', 'label')),
                'examples': _string_list(item.get('examples')),
            })
    return out


def _sample_posts(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        if isinstance(item, str):
            item = {'text': item}
        text = _first(item, 'text', 'comment', 'post')
        if text is None:
            continue
        out.append({
            'text': str(text),
            'sentiment': _as_label(_first(item, 'sentiment', 'label')) or SentimentLabel.NEUTRAL.value,
            'confidence': clamp(_as_float(item.get('confidence'))),
        })
    return out


def _language(raw: Any) -> dict:
    return {
        'distribution': _distribution(_first(raw, 'distribution', default={})),
        'confidenceAvg': clamp(_as_float(_first(raw, 'confidenceAvg', 'confidence'))),
        'topKeywords': _keyword_counts(_first(raw, 'topKeywords', 'keywords')),
        'themes': _themes(raw.get('themes') if isinstance(raw, dict) else None),
        'samplePosts': _sample_posts(raw.get('samplePosts') if isinstance(raw, dict) else None),
    }


def _top_engagers(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        if isinstance(item, str):
            out.append({'channelTitle': item, 'reason': ''})
            continue
        title = _first(item, 'channelTitle', 'channel', 'author', 'name')
        if title is not None:
            out.append({'channelTitle': str(title), 'reason': str(_first(item, 'reason', default=''))})
    return out


def normalize_analysis(raw: Any) -> AnalysisRecord:
    """Map any accepted current or legacy analysis shape onto an AnalysisRecord.

    Missing sections take their empty defaults; a missing or blank narrative
    becomes the placeholder text.

    Args:
        raw: Parsed analysis object.

    Returns:
        AnalysisRecord: Canonical record.

    Raises:
        ValueError: If raw is not a JSON object.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Analysis must be a JSON object, got {type(raw).__name__}")

    summary = raw.get('summary') if isinstance(raw.get('summary'), dict) else {}
    distribution = _first(summary, 'overallDistribution') or raw.get('sentimentDistribution') or {}
    narrative = _first(summary, 'narrative')
    if not isinstance(narrative, str) or not narrative.strip():
        narrative = NARRATIVE_PLACEHOLDER

    languages = raw.get('languages') if isinstance(raw.get('languages'), dict) else {}
    canonical_languages = {key: _language(languages.get(key, {})) for key in LANGUAGE_KEYS}
    if not languages and isinstance(raw.get('topComments'), list):
        canonical_languages['en']['samplePosts'] = _sample_posts(raw['topComments'])

    word_counts = raw.get('wordCountStats') if isinstance(raw.get('wordCountStats'), dict) else {}
    keyword_frequency = {
        entry['keyword'].lower(): entry['count']
        for entry in _keyword_counts(raw.get('keywordFrequency'))
        if entry['count'] > 0
    }

    canonical = {
        'summary': {
            'overallDistribution': _distribution(distribution),
            'overallConfidenceAvg': clamp(_as_float(_first(summary, 'overallConfidenceAvg'))),
            'narrative': narrative,
            'highlights': _string_list(summary.get('highlights')),
            'recommendations': _string_list(summary.get('recommendations')),
        },
        'trend': _trend(raw),
        'languages': canonical_languages,
        'topEngagers': _top_engagers(raw.get('topEngagers')),
        'wordCountStats': {
            'avg': _as_float(word_counts.get('avg')),
            'max': _as_int(word_counts.get('max')),
            'min': _as_int(word_counts.get('min')),
        },
        'keywordFrequency': keyword_frequency,
    }
    return AnalysisRecord.model_validate(canonical)
