"""Environment configuration loader for the collection analysis pipeline.

This module handles:
- Loading environment variables from .env file
- Configuring BigQuery settings
- Managing LLM provider configurations for the narrative service
- Creating OpenAI-compatible clients for various LLM providers
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI


# Load .env file from project root (same directory as this file)
project_root = Path(__file__).parent
env_path = project_root / ".env"

if env_path.exists():
    load_dotenv(env_path)


# BigQuery Configuration
BIGQUERY_DATASET: str = os.getenv("BIGQUERY_DATASET", "social_analysis")
BIGQUERY_POSTS_TABLE: str = os.getenv("BIGQUERY_POSTS_TABLE", "social_posts")
BIGQUERY_CREDENTIALS_PATH: Path = Path(
    os.getenv("BIGQUERY_CREDENTIALS_PATH", str(project_root / "bigquery-credentials.json"))
)


# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


# LLM Provider Configuration
PROVIDER_BASE_URL: dict[str, str] = {
    "ANTHROPIC": "https://api.anthropic.com/v1/",
    "GOOGLE": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "GROK": "https://api.x.ai/v1/",
    "OPENAI": "https://api.openai.com/v1/"
}

MODEL_PROVIDER_MAP: dict[str, str] = {

    # Google Gemini models
    "gemini-2.0-flash": "GOOGLE",
    "gemini-2.5-flash": "GOOGLE",
    "gemini-2.5-pro": "GOOGLE",

    # OpenAI models
    "gpt-4o-mini": "OPENAI",
    "gpt-4o": "OPENAI",
    "gpt-5-mini": "OPENAI",

    # Anthropic models
    "claude-haiku-4-5": "ANTHROPIC",
    "claude-sonnet-4-5": "ANTHROPIC",

    # Grok models
    "grok-4-1-fast-non-reasoning": "GROK",
}

# Default model for the narrative service
NARRATIVE_MODEL: str = os.getenv("NARRATIVE_MODEL", "gemini-2.0-flash")
NARRATIVE_TIMEOUT_SECONDS: float = float(os.getenv("NARRATIVE_TIMEOUT_SECONDS", "60"))
NARRATIVE_ENABLED: bool = os.getenv("NARRATIVE_ENABLED", "true").lower() in ("true", "1", "yes")


def get_provider(model: str) -> str:
    """Resolve the provider for a model name.

    Args:
        model: Model name from MODEL_PROVIDER_MAP.

    Returns:
        str: Provider key (e.g. "GOOGLE").

    Raises:
        ValueError: If model is not found in MODEL_PROVIDER_MAP.
    """
    provider = MODEL_PROVIDER_MAP.get(model)
    if not provider:
        raise ValueError(
            f"""
            Model '{model}' not found in MODEL_PROVIDER_MAP.
            Available models: {', '.join(MODEL_PROVIDER_MAP.keys())}
            """.strip()
        )
    return provider


def get_api_key(model: str) -> Optional[str]:
    """Look up the API key for a model's provider in the environment.

    Args:
        model: Model name from MODEL_PROVIDER_MAP.

    Returns:
        Optional[str]: The key, or None when the provider key is not set.
    """
    provider = get_provider(model)
    return os.getenv(f"{provider}_API_KEY") or None


def get_client(model: str, api_key: Optional[str] = None, max_retries: int = 2) -> OpenAI:
    """Get OpenAI-compatible client for the specified model.

    Args:
        model: Model name from MODEL_PROVIDER_MAP.
        api_key: Optional explicit API key. If None, retrieves from environment.
        max_retries: Retries the client makes after a failed request (0 for a single attempt).

    Returns:
        OpenAI: Configured OpenAI client instance.

    Raises:
        ValueError: If model is not found in MODEL_PROVIDER_MAP.
        ValueError: If API key is required but not provided or found in environment.
    """
    provider = get_provider(model)

    base_url = PROVIDER_BASE_URL.get(provider)
    if not base_url:
        raise ValueError(f"Provider '{provider}' not found in PROVIDER_BASE_URL.")

    if not api_key:
        api_key = get_api_key(model)
        if not api_key:
            error_msg = f"""
            API key for {provider} not found.

            To fix this:
            1. Create a .env file in the project root (copy from .env.sample)
            2. Add your API key: {provider}_API_KEY=your-api-key-here
            3. Restart the job

            Without a key the pipeline still runs and stores a locally computed analysis.
            """.strip()
            raise ValueError(error_msg)

    return OpenAI(api_key=api_key, base_url=base_url, max_retries=max_retries)
