"""BigQuery Database Initialization Script.

Creates the social posts table that connectors write into and the analysis
pipeline reads from and writes back to.
"""

import sys

from google.cloud import bigquery
from google.cloud.exceptions import NotFound

from config import BIGQUERY_DATASET, BIGQUERY_POSTS_TABLE
from database.bigquery_utils import get_bigquery_client, get_project_id


def create_dataset_if_not_exists(client: bigquery.Client, dataset_id: str) -> None:
    """Create BigQuery dataset if it doesn't exist.

    Args:
        client: BigQuery client instance.
        dataset_id: Fully qualified dataset ID.
    """
    try:
        client.get_dataset(dataset_id)
        print(f"✓ Dataset {dataset_id} already exists")
    except NotFound:
        dataset = bigquery.Dataset(dataset_id)
        dataset.location = "US"
        client.create_dataset(dataset)
        print(f"✓ Created dataset {dataset_id}")


def create_tables(client: bigquery.Client, dataset_id: str, drop_existing: bool = False) -> None:
    """Create the posts table.

    Args:
        client: BigQuery client instance.
        dataset_id: Fully qualified dataset ID.
        drop_existing: Whether to drop the existing table before creating it.
    """
    table_id = f"{dataset_id}.{BIGQUERY_POSTS_TABLE}"

    if drop_existing:
        client.delete_table(table_id, not_found_ok=True)
        print(f"   ✓ Dropped {BIGQUERY_POSTS_TABLE}")

    # One row per post, comment or reply; clustered so per-collection reads and
    # analysis writes only touch that collection's blocks
    print(f"\nCreating {BIGQUERY_POSTS_TABLE} table...")
    query = f"""
    CREATE TABLE IF NOT EXISTS `{table_id}` (
        collection STRING NOT NULL,
        post_id STRING NOT NULL,
        text STRING,
        created_at TIMESTAMP,
        author STRING,
        channel_title STRING,
        like_count INT64,
        post_url STRING,
        analysis JSON,
        analyzed_at TIMESTAMP,
        collected_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP()
    )
    CLUSTER BY collection, post_id
    OPTIONS(
        description="Collected social posts with the latest collection analysis on each row"
    )
    """
    client.query(query).result()
    print(f"   ✓ {BIGQUERY_POSTS_TABLE} created")


def init_bigquery(drop_existing: bool = False) -> None:
    """Initialize BigQuery database with all required tables.

    Args:
        drop_existing: Whether to drop existing tables before creating them.
    """
    client = get_bigquery_client()
    project_id = get_project_id()
    dataset_id = f"{project_id}.{BIGQUERY_DATASET}"

    print(f"\nProject: {project_id}")
    print(f"Full dataset ID: {dataset_id}")

    create_dataset_if_not_exists(client, dataset_id)
    create_tables(client, dataset_id, drop_existing=drop_existing)

    print("\n✓ BigQuery initialization complete!")


if __name__ == '__main__':
    drop_existing = '--drop' in sys.argv
    init_bigquery(drop_existing=drop_existing)
