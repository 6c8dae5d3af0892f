"""Database persistence helpers for collection documents and analysis records."""

from pydantic import ValidationError

from database.bigquery_manager import get_bigquery_manager
from pipeline.logger import get_logger
from pipeline.models import AnalysisRecord, SocialDocument

logger = get_logger("db")


def load_collection_documents(collection: str) -> list[SocialDocument]:
    """Load the documents of a collection.

    Rows that do not form a valid document are skipped with a warning.

    Args:
        collection: Collection key.

    Returns:
        list[SocialDocument]: Documents in storage order.
    """
    manager = get_bigquery_manager()
    rows = manager.get_collection_documents(collection)

    documents = []
    for row in rows:
        try:
            documents.append(SocialDocument.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping malformed row {row.get('post_id')!r}: {str(e)[:100]}")
    return documents


def persist_analysis(collection: str, record: AnalysisRecord) -> int:
    """Write an analysis record onto every document of a collection.

    Args:
        collection: Collection key.
        record: Analysis record; replaces any previous value.

    Returns:
        int: Number of documents updated.
    """
    manager = get_bigquery_manager()
    return manager.write_analysis(collection, record.to_dict())


def fetch_collection_analysis(collection: str) -> list[dict]:
    """Read the stored analysis objects of a collection, as stored.

    Args:
        collection: Collection key.

    Returns:
        list[dict]: One raw analysis object per analyzed document.
    """
    manager = get_bigquery_manager()
    return manager.get_collection_analysis(collection)


def persist_analysis_overrides(collection: str, overrides: dict) -> int:
    """Merge manual overrides into the stored analysis of a collection.

    Args:
        collection: Collection key.
        overrides: Override mapping stored under ``analysis.overrides``.

    Returns:
        int: Number of documents updated.
    """
    manager = get_bigquery_manager()
    return manager.merge_analysis_overrides(collection, overrides)
