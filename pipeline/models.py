"""Typed records shared by the analysis stages.

Every model serializes with camelCase keys (``overallDistribution``,
``samplePosts``...) because that is the shape stored on documents and read by
the dashboard. ``AnalysisRecord`` is also the schema sent to the narrative
service, so the prompt and the extractor can never disagree on it.
"""

from collections import Counter
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pipeline.constants import MAX_KEYWORD_FREQUENCY_ENTRIES, NARRATIVE_PLACEHOLDER


class SentimentLabel(str, Enum):
    """Sentiment classes produced locally and requested from the narrative service."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> dict:
        """Dump to a JSON-compatible dict using the camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class SocialDocument(CamelModel):
    """One ingested post, comment or reply. Read-only input."""

    post_id: str
    text: str = ""
    created_at: Union[datetime, str, int, float, None] = None
    author: Optional[str] = Field(default=None, validation_alias=AliasChoices("author", "authorName"))
    channel_title: Optional[str] = None
    like_count: Optional[int] = None

    @field_validator("text", mode="before")
    @classmethod
    def _text_or_empty(cls, value):
        return "" if value is None else str(value)

    @field_validator("post_id", mode="before")
    @classmethod
    def _post_id_as_string(cls, value):
        return "" if value is None else str(value)


class ClassificationResult(BaseModel):
    """Label and confidence for a single text."""

    model_config = ConfigDict(frozen=True)

    label: SentimentLabel
    confidence: float = Field(ge=0.0, le=1.0)


class SentimentDistribution(CamelModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.neutral + self.negative

    @classmethod
    def from_labels(cls, labels: Iterable[SentimentLabel]) -> "SentimentDistribution":
        """Count labels into a distribution."""
        counts = Counter(SentimentLabel(label) for label in labels)
        return cls(
            positive=counts[SentimentLabel.POSITIVE],
            neutral=counts[SentimentLabel.NEUTRAL],
            negative=counts[SentimentLabel.NEGATIVE],
        )


class TrendBucket(CamelModel):
    """Sentiment counts for one UTC calendar day."""

    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    total: int = 0

    @model_validator(mode="after")
    def _check_total(self) -> "TrendBucket":
        if self.total != self.positive + self.neutral + self.negative:
            raise ValueError(f"Trend bucket {self.date} total does not match its counts")
        return self


class Summary(CamelModel):
    overall_distribution: SentimentDistribution = Field(default_factory=SentimentDistribution)
    overall_confidence_avg: float = 0.0
    narrative: str = NARRATIVE_PLACEHOLDER
    highlights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class KeywordCount(CamelModel):
    keyword: str
    count: int


class Theme(CamelModel):
    theme: str
    examples: list[str] = Field(default_factory=list)


class SamplePost(CamelModel):
    text: str
    sentiment: SentimentLabel
    confidence: float = Field(ge=0.0, le=1.0)


class LanguageBreakdown(CamelModel):
    """Per-language slice of the analysis."""

    distribution: SentimentDistribution = Field(default_factory=SentimentDistribution)
    confidence_avg: float = 0.0
    top_keywords: list[KeywordCount] = Field(default_factory=list)
    themes: list[Theme] = Field(default_factory=list)
    sample_posts: list[SamplePost] = Field(default_factory=list)


class Languages(CamelModel):
    en: LanguageBreakdown = Field(default_factory=LanguageBreakdown)
    hi: LanguageBreakdown = Field(default_factory=LanguageBreakdown)
    mr: LanguageBreakdown = Field(default_factory=LanguageBreakdown)


class TopEngager(CamelModel):
    channel_title: str
    reason: str = ""


class WordCountStats(CamelModel):
    avg: float = 0.0
    max: int = 0
    min: int = 0


class AnalysisRecord(CamelModel):
    """The single output of a pipeline run, stored on every document of a collection."""

    summary: Summary = Field(default_factory=Summary)
    trend: list[TrendBucket] = Field(default_factory=list)
    languages: Languages = Field(default_factory=Languages)
    top_engagers: list[TopEngager] = Field(default_factory=list)
    word_count_stats: WordCountStats = Field(default_factory=WordCountStats)
    keyword_frequency: dict[str, int] = Field(default_factory=dict)

    @field_validator("keyword_frequency")
    @classmethod
    def _bounded_and_sorted(cls, value: dict[str, int]) -> dict[str, int]:
        ranked = sorted(value.items(), key=lambda item: item[1], reverse=True)
        return dict(ranked[:MAX_KEYWORD_FREQUENCY_ENTRIES])


class LocalStatistics(BaseModel):
    """Everything computed without the narrative service for one run."""

    model_config = ConfigDict(frozen=True)

    documents: list[SocialDocument]
    results: list[ClassificationResult]
    distribution: SentimentDistribution
    confidence_avg: float
    trend: list[TrendBucket]
    keyword_frequency: dict[str, int]
    word_count_stats: WordCountStats
