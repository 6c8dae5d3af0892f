"""Tests for the analysis runner and request boundary."""

import json
from unittest.mock import MagicMock, patch

import pytest

from pipeline.constants import NARRATIVE_PLACEHOLDER
from pipeline.models import AnalysisRecord
from pipeline.runner import (
    analyse_collection,
    compute_local_statistics,
    get_collection_analysis,
    run_analysis,
    update_analysis_overrides,
)
from pipeline.stages.narrative import NarrativeFetcher


def _fetcher(response=None):
    fetcher = MagicMock()
    fetcher.disabled = False
    fetcher.fetch.return_value = response
    return fetcher


class TestComputeLocalStatistics:
    """Test local statistics."""

    def test_example(self, sample_documents, local_config):
        """Test distribution and trend for the three sample comments."""
        stats = compute_local_statistics(sample_documents, local_config)

        assert stats.distribution.to_dict() == {"positive": 1, "neutral": 1, "negative": 1}
        assert [b.to_dict() for b in stats.trend] == [
            {"date": "2024-01-01", "positive": 1, "neutral": 0, "negative": 1, "total": 2},
            {"date": "2024-01-02", "positive": 0, "neutral": 1, "negative": 0, "total": 1},
        ]
        assert 0.0 <= stats.confidence_avg <= 1.0

    def test_replies_selected(self, mixed_documents, local_config):
        """Test that the top-level post is left out when comments exist."""
        stats = compute_local_statistics(mixed_documents, local_config)
        assert [d.post_id for d in stats.documents] == [
            "comment-c1", "comment-c2", "comment-c3", "comment-c4", "comment-c5"
        ]
        assert stats.distribution.total == 5


class TestRunAnalysis:
    """Test a full run over a document set."""

    def test_without_credential(self, sample_documents, local_config):
        """Test the local-only record."""
        record = run_analysis("ipl", sample_documents, config=local_config)
        assert isinstance(record, AnalysisRecord)
        assert record.summary.narrative == NARRATIVE_PLACEHOLDER
        assert record.summary.overall_distribution.to_dict() == {"positive": 1, "neutral": 1, "negative": 1}

    def test_remote_success(self, sample_documents, local_config, remote_analysis):
        """Test that remote fields are kept and local figures win."""
        fetcher = _fetcher(json.dumps(remote_analysis))
        record = run_analysis("ipl", sample_documents, config=local_config, fetcher=fetcher)

        assert record.summary.narrative == "Fans are split between excitement and frustration."
        assert record.top_engagers[0].channel_title == "Sports Daily"
        assert record.summary.overall_distribution.to_dict() == {"positive": 1, "neutral": 1, "negative": 1}
        assert "team" in record.keyword_frequency
        assert record.keyword_frequency["team"] == 1
        assert len(record.trend) == 2

        prompt = fetcher.fetch.call_args.args[0]
        assert "comment-c1" in prompt

    def test_fenced_response(self, sample_documents, local_config, remote_analysis):
        """Test a response wrapped in a code fence."""
        fetcher = _fetcher(f"```json\n{json.dumps(remote_analysis)}\n```")
        record = run_analysis("ipl", sample_documents, config=local_config, fetcher=fetcher)
        assert record.summary.narrative == "Fans are split between excitement and frustration."

    def test_unparsable_response(self, sample_documents, local_config):
        """Test that prose is reused as the narrative."""
        fetcher = _fetcher("Fans are   mostly\nhappy with the team.")
        record = run_analysis("ipl", sample_documents, config=local_config, fetcher=fetcher)
        assert record.summary.narrative == "Fans are mostly happy with the team."
        assert record.summary.overall_distribution.total == 3

    def test_broken_json_response(self, sample_documents, local_config):
        """Test that a truncated JSON response falls back to the placeholder."""
        fetcher = _fetcher('{"summary": {"narrative": "cut off')
        record = run_analysis("ipl", sample_documents, config=local_config, fetcher=fetcher)
        assert record.summary.narrative == NARRATIVE_PLACEHOLDER

    def test_error_payload_response(self, mixed_documents, local_config):
        """Test that a JSON error object is treated like no response."""
        fetcher = _fetcher('{"status": "error", "message": "quota exceeded"}')
        record = run_analysis("ipl", mixed_documents, config=local_config, fetcher=fetcher)

        data = record.to_dict()
        overall = data["summary"]["overallDistribution"]
        assert data["summary"]["narrative"] == NARRATIVE_PLACEHOLDER
        assert overall["positive"] >= 2
        for key in ("en", "hi", "mr"):
            assert data["languages"][key]["distribution"] == overall
            assert data["languages"][key]["samplePosts"]

    def test_service_failure(self, sample_documents, local_config):
        """Test no response at all."""
        record = run_analysis("ipl", sample_documents, config=local_config, fetcher=_fetcher(None))
        assert record.summary.narrative == NARRATIVE_PLACEHOLDER

    def test_expired_deadline(self, sample_documents, local_config):
        """Test that the narrative stage is skipped when no time is left."""
        fetcher = _fetcher("unused")
        record = run_analysis("ipl", sample_documents, config=local_config, fetcher=fetcher, deadline=0)
        fetcher.fetch.assert_not_called()
        assert record.summary.narrative == NARRATIVE_PLACEHOLDER

    def test_timeout_bounded_by_deadline(self, sample_documents, local_config):
        """Test the narrative timeout never exceeds the time left."""
        local_config.narrative.timeout = 60
        fetcher = _fetcher(None)
        run_analysis("ipl", sample_documents, config=local_config, fetcher=fetcher, deadline=5)
        assert 0 < fetcher.fetch.call_args.kwargs["timeout"] <= 5

    def test_empty_selection(self, local_config):
        """Test that no documents skip the narrative stage."""
        fetcher = _fetcher("unused")
        record = run_analysis("ipl", [], config=local_config, fetcher=fetcher)
        fetcher.fetch.assert_not_called()
        assert record.summary.overall_distribution.total == 0

    @patch("pipeline.stages.narrative.get_client")
    def test_remote_client(self, mock_get_client, sample_documents, remote_config, mock_openai_client):
        """Test the real fetcher against a mocked OpenAI-compatible client."""
        mock_get_client.return_value = mock_openai_client
        record = run_analysis("ipl", sample_documents, config=remote_config)

        mock_get_client.assert_called_once_with("gemini-2.0-flash", api_key="test-key", max_retries=0)
        assert record.summary.narrative == "Fans are split between excitement and frustration."

    def test_deterministic(self, mixed_documents, local_config):
        """Test identical runs give identical records."""
        first = run_analysis("ipl", mixed_documents, config=local_config).to_dict()
        second = run_analysis("ipl", mixed_documents, config=local_config).to_dict()
        assert first == second


class TestAnalyseCollection:
    """Test the analyse request boundary."""

    @patch("pipeline.runner.persist_analysis")
    @patch("pipeline.runner.load_collection_documents")
    def test_success(self, mock_load, mock_persist, sample_documents, local_config):
        """Test the success body and the single write."""
        mock_load.return_value = sample_documents
        mock_persist.return_value = 3

        status, body = analyse_collection("  ipl ", config=local_config)

        assert status == 200
        assert body["keyword"] == "ipl"
        assert body["analysis"]["summary"]["narrative"] == NARRATIVE_PLACEHOLDER
        mock_load.assert_called_once_with("ipl")
        mock_persist.assert_called_once()
        collection, record = mock_persist.call_args.args
        assert collection == "ipl"
        assert record.to_dict() == body["analysis"]

    @pytest.mark.parametrize("keyword", [None, "", "   ", 42])
    def test_missing_keyword(self, keyword, local_config):
        """Test invalid collection keys."""
        assert analyse_collection(keyword, config=local_config) == (400, {"error": "Missing keyword"})

    @patch("pipeline.runner.persist_analysis")
    @patch("pipeline.runner.load_collection_documents")
    def test_not_found(self, mock_load, mock_persist, local_config):
        """Test an empty collection."""
        mock_load.return_value = []
        assert analyse_collection("ipl", config=local_config) == (404, {"error": "No data found for keyword"})
        mock_persist.assert_not_called()

    @patch("pipeline.runner.persist_analysis")
    @patch("pipeline.runner.load_collection_documents")
    def test_persistence_failure(self, mock_load, mock_persist, sample_documents, local_config):
        """Test a failed write."""
        mock_load.return_value = sample_documents
        mock_persist.side_effect = RuntimeError("quota exceeded")

        status, body = analyse_collection("ipl", config=local_config)
        assert status == 500
        assert body == {"error": "Failed to persist analysis", "detail": "quota exceeded"}

    @patch("pipeline.runner.load_collection_documents")
    def test_load_failure(self, mock_load, local_config):
        """Test an unexpected error."""
        mock_load.side_effect = RuntimeError("connection reset")
        assert analyse_collection("ipl", config=local_config) == (
            500, {"error": "Analysis failed", "detail": "connection reset"}
        )

    @patch("pipeline.runner.persist_analysis")
    @patch("pipeline.runner.load_collection_documents")
    def test_narrative_failure_still_succeeds(self, mock_load, mock_persist, sample_documents, local_config):
        """Test that a failing narrative service does not fail the request."""
        mock_load.return_value = sample_documents
        fetcher = MagicMock(spec=NarrativeFetcher)
        fetcher.disabled = False
        fetcher.fetch.return_value = None

        status, body = analyse_collection("ipl", config=local_config, fetcher=fetcher)
        assert status == 200
        assert body["analysis"]["summary"]["narrative"] == NARRATIVE_PLACEHOLDER


class TestGetCollectionAnalysis:
    """Test reading stored analysis."""

    @patch("pipeline.runner.fetch_collection_analysis")
    def test_normalized_with_overrides(self, mock_fetch):
        """Test legacy records normalized and overrides passed through."""
        mock_fetch.return_value = [
            {"sentimentDistribution": {"Positive": 2}, "overrides": {"great game": "positive"}},
            "not an object",
        ]
        status, body = get_collection_analysis("ipl")

        assert status == 200
        assert len(body["analysis"]) == 1
        analysis = body["analysis"][0]
        assert analysis["summary"]["overallDistribution"]["positive"] == 2
        assert analysis["overrides"] == {"great game": "positive"}

    def test_missing_collection(self):
        """Test an empty key."""
        assert get_collection_analysis("") == (400, {"error": "Missing keyword"})

    @patch("pipeline.runner.fetch_collection_analysis")
    def test_failure(self, mock_fetch):
        """Test a failed read."""
        mock_fetch.side_effect = RuntimeError("boom")
        assert get_collection_analysis("ipl") == (500, {"error": "Failed to fetch analysis", "detail": "boom"})


class TestUpdateAnalysisOverrides:
    """Test writing manual overrides."""

    @patch("pipeline.runner.persist_analysis_overrides")
    def test_success(self, mock_persist):
        """Test the updated count."""
        mock_persist.return_value = 3
        assert update_analysis_overrides("ipl", {"great game": "negative"}) == (200, {"updatedCount": 3})
        mock_persist.assert_called_once_with("ipl", {"great game": "negative"})

    @patch("pipeline.runner.persist_analysis_overrides")
    def test_invalid_payload(self, mock_persist):
        """Test a non-object payload."""
        assert update_analysis_overrides("ipl", ["x"]) == (400, {"error": "Invalid overrides payload"})
        mock_persist.assert_not_called()

    @patch("pipeline.runner.persist_analysis_overrides")
    def test_failure(self, mock_persist):
        """Test a failed write."""
        mock_persist.side_effect = RuntimeError("denied")
        assert update_analysis_overrides("ipl", {}) == (
            500, {"error": "Failed to update analysis overrides", "detail": "denied"}
        )
