"""Tests for the remote narrative stage."""

from unittest.mock import MagicMock, patch

import httpx
from openai import OpenAI

from pipeline.pipeline_config import NarrativeConfig
from pipeline.stages.narrative import NarrativeFetcher


class TestDisabledState:
    """Test the disabled fetcher."""

    def test_no_key(self):
        """Test that a missing key disables the fetcher."""
        assert NarrativeFetcher(NarrativeConfig(api_key=None)).disabled

    def test_flag(self):
        """Test the explicit enabled flag."""
        assert NarrativeFetcher(NarrativeConfig(api_key="k", enabled=False)).disabled
        assert not NarrativeFetcher(NarrativeConfig(api_key="k", enabled=True)).disabled

    @patch("pipeline.stages.narrative.get_client")
    def test_disabled_never_calls(self, mock_get_client):
        """Test that no client is created when disabled."""
        assert NarrativeFetcher(NarrativeConfig(api_key=None)).fetch("prompt") is None
        mock_get_client.assert_not_called()


class TestFetch:
    """Test narrative requests."""

    @patch("pipeline.stages.narrative.get_client")
    def test_success(self, mock_get_client, make_completion):
        """Test raw text returned on success."""
        client = MagicMock()
        client.chat.completions.create.return_value = make_completion('{"summary": {}}')
        mock_get_client.return_value = client

        fetcher = NarrativeFetcher(NarrativeConfig(model="gemini-2.0-flash", api_key="k", enabled=True, timeout=30))
        assert fetcher.fetch("prompt") == '{"summary": {}}'

        mock_get_client.assert_called_once_with("gemini-2.0-flash", api_key="k", max_retries=0)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert kwargs["timeout"] == 30

    @patch("pipeline.stages.narrative.get_client")
    def test_timeout_override(self, mock_get_client, make_completion):
        """Test the per-call timeout."""
        client = MagicMock()
        client.chat.completions.create.return_value = make_completion("text")
        mock_get_client.return_value = client

        NarrativeFetcher(NarrativeConfig(api_key="k", enabled=True)).fetch("prompt", timeout=5)
        assert client.chat.completions.create.call_args.kwargs["timeout"] == 5

    @patch("pipeline.stages.narrative.get_client")
    def test_no_time_left(self, mock_get_client):
        """Test that an exhausted timeout skips the call."""
        assert NarrativeFetcher(NarrativeConfig(api_key="k", enabled=True)).fetch("prompt", timeout=0) is None
        mock_get_client.assert_not_called()

    @patch("pipeline.stages.narrative.get_client")
    def test_call_failure(self, mock_get_client):
        """Test that errors become no narrative."""
        client = MagicMock()
        client.chat.completions.create.side_effect = TimeoutError("timed out")
        mock_get_client.return_value = client

        assert NarrativeFetcher(NarrativeConfig(api_key="k", enabled=True)).fetch("prompt") is None

    @patch("pipeline.stages.narrative.get_client")
    def test_empty_response(self, mock_get_client, make_completion):
        """Test blank content."""
        client = MagicMock()
        client.chat.completions.create.return_value = make_completion("   ")
        mock_get_client.return_value = client

        assert NarrativeFetcher(NarrativeConfig(api_key="k", enabled=True)).fetch("prompt") is None


class TestSingleAttempt:
    """Test that a failed request is never repeated."""

    def test_client_without_retries(self):
        """Test the client the fetcher builds."""
        fetcher = NarrativeFetcher(NarrativeConfig(model="gemini-2.0-flash", api_key="k", enabled=True))
        assert fetcher.client.max_retries == 0

    def test_one_request_per_fetch(self):
        """Test a server error reaches the service exactly once."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(500, json={"error": {"message": "overloaded"}})

        def client_factory(**kwargs):
            return OpenAI(http_client=httpx.Client(transport=httpx.MockTransport(handler)), **kwargs)

        with patch("config.OpenAI", side_effect=client_factory):
            fetcher = NarrativeFetcher(NarrativeConfig(model="gemini-2.0-flash", api_key="k", enabled=True, timeout=5))
            assert fetcher.fetch("prompt") is None

        assert len(requests) == 1
        assert requests[0].url.path.endswith("/chat/completions")
