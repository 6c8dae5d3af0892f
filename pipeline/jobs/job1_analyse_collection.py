"""Job 1: Collection Analysis - classify, aggregate, narrate and store."""

import sys

from pipeline.logger import setup_logger
from pipeline.pipeline_config import PipelineConfig
from pipeline.runner import analyse_collection

logger = setup_logger("job1")


def main():
    """Execute the analysis job for one collection.

    Returns:
        int: Exit code (0 for success, 1 for failure).
    """
    config = PipelineConfig()

    if not config.collection:
        logger.error("Job 1 requires a collection key")
        logger.error("Usage: python job1_analyse_collection.py --collection <KEYWORD> [--deadline <SECONDS>]")
        return 1

    logger.info("="*60)
    logger.info(f"Job 1: Collection Analysis - Collection: {config.collection}")
    logger.info("="*60)
    logger.info(f"Narrative model: {config.narrative.model} (enabled: {config.narrative.enabled}, "
                f"key configured: {config.narrative.api_key is not None})")

    status, body = analyse_collection(config.collection, config=config)

    if status != 200:
        logger.error(f"Job 1 failed with status {status}: {body.get('error')}")
        if body.get('detail'):
            logger.error(f"Detail: {body['detail']}")
        return 1

    analysis = body['analysis']
    distribution = analysis['summary']['overallDistribution']
    logger.info("="*60)
    logger.info(f"Job 1 Complete! Collection: {body['keyword']}")
    logger.info(f"Sentiment - positive: {distribution['positive']:,}, neutral: {distribution['neutral']:,}, "
                f"negative: {distribution['negative']:,}")
    logger.info(f"Trend days: {len(analysis['trend'])}, keywords: {len(analysis['keywordFrequency'])}")
    logger.info(f"Narrative: {analysis['summary']['narrative'][:120]}")
    logger.info("="*60)

    return 0


if __name__ == '__main__':
    sys.exit(main())
