"""BigQuery Manager for collection analysis.

This module provides a simplified interface for reading collected social
posts and writing analysis records back onto them.
"""

import json
from typing import Any, Optional

from google.cloud import bigquery

from config import BIGQUERY_DATASET, BIGQUERY_POSTS_TABLE
from database.bigquery_utils import get_bigquery_client, get_project_id


class BigQueryManager:
    """Manager for BigQuery database operations."""

    def __init__(self, creds_dict: Optional[dict] = None) -> None:
        """Initialize BigQuery manager with client and dataset configuration.

        Args:
            creds_dict: Optional service account credentials dictionary.
        """
        self.client = get_bigquery_client(creds_dict)
        self.project_id = get_project_id(creds_dict)
        self.dataset_id = f"{self.project_id}.{BIGQUERY_DATASET}"
        self.posts_table = f"{self.dataset_id}.{BIGQUERY_POSTS_TABLE}"

    def _run(self, sql: str, params: Optional[list] = None) -> bigquery.QueryJob:
        """Execute a parameterized statement and wait for it to finish."""
        job_config = bigquery.QueryJobConfig(query_parameters=params or [])
        query_job = self.client.query(sql, job_config=job_config)
        query_job.result()
        return query_job

    def _query(self, sql: str, params: Optional[list] = None) -> list[dict]:
        """Execute query and return results as list of dicts.

        Args:
            sql: SQL query string.
            params: Query parameters.

        Returns:
            list[dict]: List of row dictionaries.
        """
        job_config = bigquery.QueryJobConfig(query_parameters=params or [])
        results = self.client.query(sql, job_config=job_config).result()
        return [dict(row) for row in results]

    @staticmethod
    def _collection_param(collection: str) -> bigquery.ScalarQueryParameter:
        return bigquery.ScalarQueryParameter("collection", "STRING", collection)

    def get_collection_documents(self, collection: str) -> list[dict]:
        """Get every post stored for a collection.

        Args:
            collection: Collection key (the keyword the posts were collected for).

        Returns:
            list[dict]: Rows with post_id, text, created_at, author, channel_title, like_count.
        """
        query = f"""
        SELECT post_id, text, created_at, author, channel_title, like_count
        FROM `{self.posts_table}`
        WHERE collection = @collection
        ORDER BY post_id
        """
        return self._query(query, [self._collection_param(collection)])

    def write_analysis(self, collection: str, analysis: dict[str, Any]) -> int:
        """Replace the analysis field on every post of a collection.

        One DML statement writes all rows, so a reader sees either the old or
        the new record on every post. The previous value, overrides included,
        is discarded.

        Args:
            collection: Collection key.
            analysis: Serialized analysis record.

        Returns:
            int: Number of rows updated.
        """
        query = f"""
        UPDATE `{self.posts_table}`
        SET analysis = PARSE_JSON(@analysis), analyzed_at = CURRENT_TIMESTAMP()
        WHERE collection = @collection
        """
        job = self._run(query, [
            self._collection_param(collection),
            bigquery.ScalarQueryParameter("analysis", "STRING", json.dumps(analysis, ensure_ascii=False)),
        ])
        return job.num_dml_affected_rows or 0

    def merge_analysis_overrides(self, collection: str, overrides: dict[str, Any]) -> int:
        """Set only ``analysis.overrides`` on every post of a collection.

        Args:
            collection: Collection key.
            overrides: Manual sentiment overrides keyed by sample post text.

        Returns:
            int: Number of rows updated.
        """
        query = f"""
        UPDATE `{self.posts_table}`
        SET analysis = JSON_SET(COALESCE(analysis, JSON '{{}}'), '$.overrides', PARSE_JSON(@overrides))
        WHERE collection = @collection
        """
        job = self._run(query, [
            self._collection_param(collection),
            bigquery.ScalarQueryParameter("overrides", "STRING", json.dumps(overrides, ensure_ascii=False)),
        ])
        return job.num_dml_affected_rows or 0

    def get_collection_analysis(self, collection: str) -> list[dict]:
        """Get the stored analysis of every post in a collection that has one.

        Args:
            collection: Collection key.

        Returns:
            list[dict]: Parsed analysis objects.
        """
        query = f"""
        SELECT TO_JSON_STRING(analysis) AS analysis
        FROM `{self.posts_table}`
        WHERE collection = @collection AND analysis IS NOT NULL
        """
        rows = self._query(query, [self._collection_param(collection)])
        return [json.loads(row['analysis']) for row in rows if row.get('analysis')]


def get_bigquery_manager(creds_dict: Optional[dict] = None) -> BigQueryManager:
    """Get BigQuery manager instance.

    Args:
        creds_dict: Optional service account credentials; file-based or default
            credentials are used otherwise.

    Returns:
        BigQueryManager: Configured BigQuery manager instance.
    """
    return BigQueryManager(creds_dict=creds_dict)
