"""Pytest configuration and shared fixtures for pipeline tests.

This module provides sample documents, pipeline configurations, and mock
clients used across all test modules.
"""

import json
from unittest.mock import MagicMock

import pytest

from pipeline.models import SocialDocument
from pipeline.pipeline_config import NarrativeConfig, PipelineConfig


@pytest.fixture
def sample_documents():
    """Three comments over two days: positive, negative, neutral."""
    return [
        SocialDocument(
            postId="comment-c1",
            text="I love this team, it is great!",
            createdAt="2024-01-01T10:00:00Z",
            author="user1",
        ),
        SocialDocument(
            postId="comment-c2",
            text="This is terrible and awful.",
            createdAt="2024-01-01T18:30:00Z",
            author="user2",
        ),
        SocialDocument(
            postId="comment-c3",
            text="The match starts on Tuesday.",
            createdAt="2024-01-02T08:15:00Z",
            author="user3",
        ),
    ]


@pytest.fixture
def mixed_documents(sample_documents):
    """A video post, the sample comments, and Devanagari comments."""
    return [
        SocialDocument(postId="vid123", text="Match highlights and full recap", createdAt="2024-01-01T08:00:00Z"),
        *sample_documents,
        SocialDocument(postId="comment-c4", text="यह मैच बहुत अच्छा था", createdAt="2024-01-02T09:00:00Z"),
        SocialDocument(postId="comment-c5", text="खूप वाईट खेळ", createdAt=None),
    ]


@pytest.fixture
def local_config():
    """Pipeline configuration with the narrative service disabled."""
    return PipelineConfig(narrative=NarrativeConfig(api_key=None))


@pytest.fixture
def remote_config():
    """Pipeline configuration with a (fake) narrative API key."""
    return PipelineConfig(narrative=NarrativeConfig(model="gemini-2.0-flash", api_key="test-key", enabled=True))


@pytest.fixture
def remote_analysis():
    """Analysis object as the narrative service would return it."""
    return {
        "summary": {
            "overallDistribution": {"positive": 10, "neutral": 10, "negative": 10},
            "overallConfidenceAvg": 0.9,
            "narrative": "Fans are split between excitement and frustration.",
            "highlights": ["Strong reactions to the last match"],
            "recommendations": ["Engage with critical fans"],
        },
        "trend": [],
        "languages": {
            "en": {
                "distribution": {"positive": 1, "neutral": 1, "negative": 1},
                "confidenceAvg": 0.8,
                "topKeywords": [{"keyword": "team", "count": 2}],
                "themes": [{"theme": "Performance", "examples": ["it is great!"]}],
                "samplePosts": [{"text": "I love this team", "sentiment": "positive", "confidence": 0.9}],
            },
            "hi": {
                "distribution": {"positive": 0, "neutral": 0, "negative": 0},
                "confidenceAvg": 0,
                "topKeywords": [],
                "themes": [],
                "samplePosts": [],
            },
            "mr": {
                "distribution": {"positive": 0, "neutral": 0, "negative": 0},
                "confidenceAvg": 0,
                "topKeywords": [],
                "themes": [],
                "samplePosts": [],
            },
        },
        "topEngagers": [{"channelTitle": "Sports Daily", "reason": "Most replied-to channel"}],
        "wordCountStats": {"avg": 1, "max": 1, "min": 1},
        "keywordFrequency": {"team": 99},
    }


def _make_completion(content):
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = content
    completion.usage.prompt_tokens = 100
    completion.usage.completion_tokens = 50
    return completion


@pytest.fixture
def make_completion():
    """Factory for chat completion mocks whose first choice carries the given content."""
    return _make_completion


@pytest.fixture
def mock_openai_client(remote_analysis):
    """Mock OpenAI client returning the remote analysis as a JSON string."""
    client = MagicMock()
    client.chat.completions.create.return_value = _make_completion(json.dumps(remote_analysis))
    return client


@pytest.fixture
def mock_bigquery_manager():
    """Mock BigQuery manager for testing database operations."""
    manager = MagicMock()
    manager.dataset_id = "test_project.test_dataset"
    manager.posts_table = "test_project.test_dataset.social_posts"
    manager.get_collection_documents.return_value = []
    manager.get_collection_analysis.return_value = []
    manager.write_analysis.return_value = 0
    manager.merge_analysis_overrides.return_value = 0
    return manager
