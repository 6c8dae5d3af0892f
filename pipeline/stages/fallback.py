"""Local analysis record composition.

Builds a complete AnalysisRecord from local statistics alone, and overlays
the local figures onto records recovered from the narrative service, so a
run always yields the same schema whatever happened remotely.
"""

from typing import Optional

from pipeline.constants import NARRATIVE_PLACEHOLDER
from pipeline.logger import get_logger
from pipeline.models import (
    AnalysisRecord,
    LanguageBreakdown,
    Languages,
    LocalStatistics,
    SamplePost,
    Summary,
)
from pipeline.pipeline_config import FallbackConfig
from pipeline.stages.sentiments import DEVANAGARI, LATIN, detect_script
from pipeline.utils import collapse_whitespace, truncate_text

logger = get_logger("stages.fallback")


def partial_narrative(raw_text: Optional[str], max_length: int = 1000) -> Optional[str]:
    """Use a prose-only narrative response as the narrative text.

    Responses that contain a ``{`` were meant to be JSON and are not reused.
    """
    if not raw_text or "{" in raw_text:
        return None
    text = collapse_whitespace(raw_text)
    return truncate_text(text, max_length) or None


def sample_posts_by_script(
    statistics: LocalStatistics,
    config: FallbackConfig = FallbackConfig(),
) -> dict[str, list[SamplePost]]:
    """Pick up to ``config.max_samples_per_script`` sample posts per script.

    Returns:
        dict[str, list[SamplePost]]: Samples keyed by ``"latin"`` and ``"devanagari"``.
    """
    samples: dict[str, list[SamplePost]] = {LATIN: [], DEVANAGARI: []}
    for document, result in zip(statistics.documents, statistics.results):
        text = truncate_text(collapse_whitespace(document.text), config.sample_text_length)
        if not text:
            continue
        # Script of the whole text, not of the excerpt
        bucket = samples[detect_script(document.text)]
        if len(bucket) < config.max_samples_per_script:
            bucket.append(SamplePost(text=text, sentiment=result.label, confidence=result.confidence))
    return samples


def compose_fallback_record(
    statistics: LocalStatistics,
    narrative: Optional[str] = None,
    config: FallbackConfig = FallbackConfig(),
) -> AnalysisRecord:
    """Build a complete analysis record from local statistics.

    Local classification does not separate languages, so en, hi and mr all
    carry the overall distribution. English gets Latin-script samples; Hindi
    and Marathi share the Devanagari samples.

    Args:
        statistics: Local statistics for the run.
        narrative: Optional narrative text; the placeholder is used when absent.
        config: Fallback settings.

    Returns:
        AnalysisRecord: Schema-complete record.
    """
    samples = sample_posts_by_script(statistics, config)

    def breakdown(script: str) -> LanguageBreakdown:
        return LanguageBreakdown(
            distribution=statistics.distribution,
            confidence_avg=statistics.confidence_avg,
            sample_posts=samples[script],
        )

    record = AnalysisRecord(
        summary=Summary(
            overall_distribution=statistics.distribution,
            overall_confidence_avg=statistics.confidence_avg,
            narrative=narrative or NARRATIVE_PLACEHOLDER,
        ),
        trend=statistics.trend,
        languages=Languages(en=breakdown(LATIN), hi=breakdown(DEVANAGARI), mr=breakdown(DEVANAGARI)),
        word_count_stats=statistics.word_count_stats,
        keyword_frequency=statistics.keyword_frequency,
    )
    logger.info("Composed analysis record from local statistics")
    return record


def merge_local_statistics(record: AnalysisRecord, statistics: LocalStatistics) -> AnalysisRecord:
    """Overlay the locally computed figures onto a narrative record.

    Distribution, confidence average, trend, word counts and keyword
    frequency always come from local computation; everything else is kept.
    """
    summary = record.summary.model_copy(update={
        'overall_distribution': statistics.distribution,
        'overall_confidence_avg': statistics.confidence_avg,
    })
    return record.model_copy(update={
        'summary': summary,
        'trend': statistics.trend,
        'word_count_stats': statistics.word_count_stats,
        'keyword_frequency': statistics.keyword_frequency,
    })
