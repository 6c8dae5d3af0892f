"""Per-day sentiment trend stage."""

from datetime import date, datetime
from typing import Any, Optional, Sequence

import pandas as pd

from pipeline.logger import get_logger
from pipeline.models import ClassificationResult, SentimentLabel, SocialDocument, TrendBucket

logger = get_logger("stages.trend")

LABELS = [label.value for label in SentimentLabel]


def to_utc_date(value: Any) -> Optional[str]:
    """Normalize a timestamp to its UTC calendar day.

    Accepts datetimes, ISO-8601 strings and epoch seconds. Naive timestamps
    are taken to be UTC already.

    Args:
        value: Raw timestamp from a document.

    Returns:
        Optional[str]: ``YYYY-MM-DD`` or None when the value is missing or unparseable.
    """
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        return None

    try:
        if isinstance(value, (int, float)):
            ts = pd.Timestamp(value, unit="s")
        elif isinstance(value, (datetime, date)):
            ts = pd.Timestamp(value)
        else:
            ts = pd.Timestamp(str(value).strip())
    except (ValueError, TypeError, OverflowError):
        return None

    if pd.isna(ts):
        return None

    ts = ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
    return ts.strftime("%Y-%m-%d")


def aggregate_trend(
    documents: Sequence[SocialDocument],
    results: Sequence[ClassificationResult],
) -> list[TrendBucket]:
    """Bucket classified documents by UTC calendar day.

    Documents without a parseable timestamp are left out of the trend (they
    still count in the overall distribution, which is computed separately).
    Only days with at least one document get a bucket.

    Args:
        documents: Selected documents.
        results: Classification of each document, same order.

    Returns:
        list[TrendBucket]: Buckets sorted ascending by date.
    """
    if len(documents) != len(results):
        raise ValueError(f"Got {len(results)} classifications for {len(documents)} documents")

    frame = pd.DataFrame({
        'date': [to_utc_date(d.created_at) for d in documents],
        'label': [r.label.value for r in results],
    }).dropna(subset=['date'])

    skipped = len(documents) - len(frame)
    if skipped:
        logger.info(f"{skipped} documents without a usable timestamp left out of the trend")

    if frame.empty:
        return []

    counts = (
        pd.crosstab(frame['date'], frame['label'])
        .reindex(columns=LABELS, fill_value=0)
        .sort_index()
    )

    buckets = []
    for day, row in counts.iterrows():
        positive = int(row[SentimentLabel.POSITIVE.value])
        neutral = int(row[SentimentLabel.NEUTRAL.value])
        negative = int(row[SentimentLabel.NEGATIVE.value])
        buckets.append(TrendBucket(
            date=str(day),
            positive=positive,
            neutral=neutral,
            negative=negative,
            total=positive + neutral + negative,
        ))

    logger.info(f"Aggregated trend over {len(buckets)} days")
    return buckets
