"""Pipeline configuration with all arguments organized by stage."""

import sys
from dataclasses import dataclass, field
from typing import Optional

from config import (
    NARRATIVE_ENABLED,
    NARRATIVE_MODEL,
    NARRATIVE_TIMEOUT_SECONDS,
    get_api_key,
)


@dataclass
class ClassifierConfig:
    """Configuration for local sentiment classification."""
    max_text_length: int = 5000  # Characters examined per document
    neutral_band: float = 0.1  # |polarity| at or below this is neutral


@dataclass
class KeywordConfig:
    """Configuration for keyword frequency counting."""
    max_tokens_per_document: int = 200
    top_n: int = 100


@dataclass
class NarrativeConfig:
    """Configuration for the remote narrative service.

    The fetcher is disabled when ``enabled`` is False or no API key is set;
    the key is resolved explicitly here, never inside the fetcher.
    """
    model: str = NARRATIVE_MODEL
    api_key: Optional[str] = None
    timeout: float = NARRATIVE_TIMEOUT_SECONDS
    temperature: float = 0.2
    enabled: bool = NARRATIVE_ENABLED

    @classmethod
    def from_env(cls, model: str = NARRATIVE_MODEL) -> "NarrativeConfig":
        """Build a config whose API key comes from the provider's environment variable."""
        try:
            api_key = get_api_key(model)
        except ValueError:
            api_key = None
        return cls(model=model, api_key=api_key)


@dataclass
class FallbackConfig:
    """Configuration for the locally composed analysis record."""
    max_samples_per_script: int = 5
    sample_text_length: int = 280
    max_narrative_length: int = 1000


@dataclass
class PipelineConfig:
    """Main pipeline configuration containing all stage configs."""

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    keywords: KeywordConfig = field(default_factory=KeywordConfig)
    narrative: NarrativeConfig = field(default_factory=NarrativeConfig.from_env)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    collection: Optional[str] = None
    deadline: Optional[float] = None  # Seconds allowed for a whole run

    def __post_init__(self) -> None:
        """Parse command-line arguments after initialization."""
        if '--collection' in sys.argv:
            idx = sys.argv.index('--collection')
            if idx + 1 < len(sys.argv):
                self.collection = sys.argv[idx + 1]
        if '--deadline' in sys.argv:
            try:
                idx = sys.argv.index('--deadline')
                if idx + 1 < len(sys.argv):
                    self.deadline = float(sys.argv[idx + 1])
            except (ValueError, IndexError):
                pass

    def to_dict(self) -> dict:
        """Convert config to dictionary for logging.

        The narrative API key is never included.

        Returns:
            dict: Configuration as nested dictionary.
        """
        return {
            'classifier': {
                'max_text_length': self.classifier.max_text_length,
                'neutral_band': self.classifier.neutral_band,
            },
            'keywords': {
                'max_tokens_per_document': self.keywords.max_tokens_per_document,
                'top_n': self.keywords.top_n,
            },
            'narrative': {
                'model': self.narrative.model,
                'timeout': self.narrative.timeout,
                'temperature': self.narrative.temperature,
                'enabled': self.narrative.enabled,
                'has_api_key': self.narrative.api_key is not None,
            },
            'fallback': {
                'max_samples_per_script': self.fallback.max_samples_per_script,
                'sample_text_length': self.fallback.sample_text_length,
                'max_narrative_length': self.fallback.max_narrative_length,
            },
            'collection': self.collection,
            'deadline': self.deadline,
        }
