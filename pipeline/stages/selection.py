"""Document selection stage."""

from typing import Sequence

from pipeline.constants import REPLY_ID_PREFIXES
from pipeline.logger import get_logger
from pipeline.models import SocialDocument

logger = get_logger("stages.selection")


def is_reply_document(document: SocialDocument) -> bool:
    """Check whether a document is a comment or reply rather than a top-level post.

    Connectors mark comments and replies through their post identifier
    (e.g. ``comment-Ugx...`` for YouTube comment threads).
    """
    return document.post_id.lower().startswith(REPLY_ID_PREFIXES)


def select_documents(documents: Sequence[SocialDocument]) -> list[SocialDocument]:
    """Pick the documents to analyze for a collection.

    Comments and replies carry the audience's opinion, so when a collection
    holds any of them only those are analyzed. Otherwise every document is used.

    Args:
        documents: Full document set of the collection.

    Returns:
        list[SocialDocument]: Selected documents, in input order. Empty input gives an empty list.
    """
    replies = [d for d in documents if is_reply_document(d)]
    selected = replies if replies else list(documents)
    logger.info(
        f"Selected {len(selected)} of {len(documents)} documents "
        f"({'replies/comments only' if replies else 'all documents'})"
    )
    return selected
