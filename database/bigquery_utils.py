"""BigQuery utility functions for the analysis pipeline.

This module provides simple connection and helper utilities for BigQuery operations.
Supports file-based service account credentials, in-memory credentials, and
application default credentials when no key file is present.
"""

import json
from pathlib import Path
from typing import Optional

import google.auth
from google.cloud import bigquery
from google.oauth2 import service_account

from config import BIGQUERY_CREDENTIALS_PATH, BIGQUERY_DATASET

SCOPES = ["https://www.googleapis.com/auth/bigquery"]


def get_project_id(creds_dict: Optional[dict] = None) -> str:
    """Get project ID from credentials dict, credentials file, or default credentials.

    Args:
        creds_dict: Optional credentials dictionary (for in-memory credentials).

    Returns:
        str: Project ID string.

    Raises:
        ValueError: If no project ID can be determined.
    """
    if creds_dict:
        project_id = creds_dict.get("project_id")
        if not project_id:
            raise ValueError("project_id not found in credentials dictionary")
        return project_id

    credentials_path = Path(BIGQUERY_CREDENTIALS_PATH)
    if credentials_path.exists():
        with open(credentials_path) as f:
            project_id = json.load(f).get("project_id")
        if not project_id:
            raise ValueError("project_id not found in credentials file")
        return project_id

    _, project_id = google.auth.default(scopes=SCOPES)
    if not project_id:
        raise ValueError(
            f"""
            No BigQuery project found.
            Save a service account JSON key as {credentials_path}
            or configure application default credentials with a project.
            """.strip()
        )
    return project_id


def get_bigquery_client(creds_dict: Optional[dict] = None) -> bigquery.Client:
    """Get BigQuery client instance with credentials.

    Args:
        creds_dict: Optional service account info. If None, the key file is used
                   when present, otherwise application default credentials.

    Returns:
        bigquery.Client: Configured BigQuery client.
    """
    project_id = get_project_id(creds_dict)

    if creds_dict:
        credentials = service_account.Credentials.from_service_account_info(creds_dict, scopes=SCOPES)
    elif Path(BIGQUERY_CREDENTIALS_PATH).exists():
        credentials = service_account.Credentials.from_service_account_file(
            str(BIGQUERY_CREDENTIALS_PATH),
            scopes=SCOPES
        )
    else:
        credentials, _ = google.auth.default(scopes=SCOPES)

    return bigquery.Client(project=project_id, credentials=credentials)


def get_dataset_id(creds_dict: Optional[dict] = None) -> str:
    """Get fully qualified dataset ID.

    Returns:
        str: Fully qualified dataset ID in format 'project_id.dataset_name'.
    """
    return f"{get_project_id(creds_dict)}.{BIGQUERY_DATASET}"
