"""Collection analysis orchestration and request boundary.

``run_analysis`` turns a document set into an AnalysisRecord. The
``analyse_collection``, ``get_collection_analysis`` and
``update_analysis_overrides`` functions are the request-level entry points:
each returns an HTTP-style ``(status, body)`` pair and never raises.
"""

from typing import Any, Optional, Sequence

from pipeline.db import (
    fetch_collection_analysis,
    load_collection_documents,
    persist_analysis,
    persist_analysis_overrides,
)
from pipeline.errors import AnalysisError, CollectionNotFoundError, InputError, PersistenceError
from pipeline.logger import get_logger
from pipeline.models import AnalysisRecord, LocalStatistics, SentimentDistribution, SocialDocument
from pipeline.pipeline_config import PipelineConfig
from pipeline.stages.extraction import extract_structured_output
from pipeline.stages.fallback import compose_fallback_record, merge_local_statistics, partial_narrative
from pipeline.stages.keywords import count_keywords, word_count_stats
from pipeline.stages.narrative import NarrativeFetcher
from pipeline.stages.normalization import normalize_analysis
from pipeline.stages.prompt import build_prompt
from pipeline.stages.selection import select_documents
from pipeline.stages.sentiments import classify_documents, confidence_average
from pipeline.stages.trend import aggregate_trend
from pipeline.utils import Deadline

logger = get_logger("runner")


def compute_local_statistics(
    documents: Sequence[SocialDocument],
    config: Optional[PipelineConfig] = None,
) -> LocalStatistics:
    """Select documents and compute every figure that needs no remote service.

    Args:
        documents: Full document set of the collection.
        config: Pipeline configuration.

    Returns:
        LocalStatistics: Selected documents, their classifications and aggregates.
    """
    config = config or PipelineConfig()
    selected = select_documents(documents)
    results = classify_documents(selected, config.classifier)

    return LocalStatistics(
        documents=selected,
        results=results,
        distribution=SentimentDistribution.from_labels(r.label for r in results),
        confidence_avg=confidence_average(results),
        trend=aggregate_trend(selected, results),
        keyword_frequency=count_keywords(selected, config.keywords, config.classifier.max_text_length),
        word_count_stats=word_count_stats(selected),
    )


def run_analysis(
    keyword: str,
    documents: Sequence[SocialDocument],
    config: Optional[PipelineConfig] = None,
    fetcher: Optional[NarrativeFetcher] = None,
    deadline: Optional[float] = None,
) -> AnalysisRecord:
    """Produce the analysis record for a document set.

    Local statistics are always computed first. The narrative service is then
    asked for the narrative fields unless it is disabled, the selection is
    empty, or the deadline has run out; any failure there falls back to the
    locally composed record.

    Args:
        keyword: Collection key, used in the prompt.
        documents: Full document set of the collection.
        config: Pipeline configuration.
        fetcher: Narrative fetcher; built from ``config.narrative`` when None.
        deadline: Seconds allowed for the run; defaults to ``config.deadline``.

    Returns:
        AnalysisRecord: The record for this run.
    """
    config = config or PipelineConfig()
    clock = Deadline(deadline if deadline is not None else config.deadline)
    fetcher = fetcher or NarrativeFetcher(config.narrative)

    statistics = compute_local_statistics(documents, config)
    dist = statistics.distribution
    logger.info(
        f"Local analysis of '{keyword}': {dist.positive} positive, {dist.neutral} neutral, "
        f"{dist.negative} negative over {len(statistics.trend)} days"
    )

    raw_text = None
    if fetcher.disabled:
        logger.info("Narrative service disabled, using local analysis only")
    elif not statistics.documents:
        logger.info("No documents selected, skipping narrative service")
    elif clock.expired():
        logger.warning("Run deadline reached before the narrative stage, skipping it")
    else:
        remaining = clock.remaining()
        timeout = config.narrative.timeout if remaining is None else min(config.narrative.timeout, remaining)
        raw_text = fetcher.fetch(build_prompt(keyword, statistics.documents, statistics), timeout=timeout)

    parsed = extract_structured_output(raw_text)
    if parsed is not None:
        try:
            return merge_local_statistics(normalize_analysis(parsed), statistics)
        except ValueError as e:
            logger.warning(f"Narrative response did not match the analysis schema: {str(e)[:200]}")

    narrative = partial_narrative(raw_text, config.fallback.max_narrative_length)
    return compose_fallback_record(statistics, narrative, config.fallback)


def _require_collection(collection: Any) -> str:
    if not isinstance(collection, str) or not collection.strip():
        raise InputError()
    return collection.strip()


def analyse_collection(
    keyword: Any,
    config: Optional[PipelineConfig] = None,
    fetcher: Optional[NarrativeFetcher] = None,
) -> tuple[int, dict]:
    """Analyse a collection and store the record on all of its documents.

    Args:
        keyword: Collection key.
        config: Pipeline configuration.
        fetcher: Optional narrative fetcher override.

    Returns:
        tuple[int, dict]: ``(200, {keyword, analysis})`` on success, otherwise
            ``(400|404|500, {error, detail?})``.
    """
    try:
        collection = _require_collection(keyword)
        logger.info(f"Analysing collection: {collection}")

        documents = load_collection_documents(collection)
        if not documents:
            raise CollectionNotFoundError()
        logger.info(f"Found {len(documents)} documents for {collection}")

        record = run_analysis(collection, documents, config=config, fetcher=fetcher)

        try:
            updated = persist_analysis(collection, record)
        except Exception as e:
            raise PersistenceError(str(e)) from e
        logger.info(f"Analysis stored on {updated} documents of {collection}")

    except AnalysisError as e:
        logger.error(f"Analysis of {keyword!r} failed ({e.status_code}): {e.message}")
        return e.status_code, e.to_dict()
    except Exception as e:
        logger.error(f"Analysis of {keyword!r} failed: {e}")
        return 500, AnalysisError(str(e)).to_dict()

    return 200, {'keyword': collection, 'analysis': record.to_dict()}


def get_collection_analysis(collection: Any) -> tuple[int, dict]:
    """Read the stored analysis of a collection in canonical shape.

    Stored records written by any pipeline version are normalized; manual
    overrides stored with them are passed through unchanged.

    Returns:
        tuple[int, dict]: ``(200, {analysis: [...]})`` or an error envelope.
    """
    try:
        collection = _require_collection(collection)
        stored = fetch_collection_analysis(collection)
    except AnalysisError as e:
        return e.status_code, e.to_dict()
    except Exception as e:
        logger.error(f"Error fetching analysis for {collection}: {e}")
        return 500, AnalysisError(str(e), message="Failed to fetch analysis").to_dict()

    analysis = []
    for raw in stored:
        try:
            record = normalize_analysis(raw).to_dict()
        except ValueError as e:
            logger.warning(f"Skipping unreadable stored analysis in {collection}: {str(e)[:100]}")
            continue
        if isinstance(raw.get('overrides'), dict):
            record['overrides'] = raw['overrides']
        analysis.append(record)

    return 200, {'analysis': analysis}


def update_analysis_overrides(collection: Any, overrides: Any) -> tuple[int, dict]:
    """Merge manual overrides into the stored analysis of a collection.

    Returns:
        tuple[int, dict]: ``(200, {updatedCount})`` or an error envelope.
    """
    try:
        collection = _require_collection(collection)
        if not isinstance(overrides, dict):
            raise InputError(message="Invalid overrides payload")
        try:
            updated = persist_analysis_overrides(collection, overrides)
        except Exception as e:
            raise PersistenceError(str(e), message="Failed to update analysis overrides") from e
    except AnalysisError as e:
        logger.error(f"Error updating analysis overrides for {collection!r}: {e.message}")
        return e.status_code, e.to_dict()

    return 200, {'updatedCount': updated}
