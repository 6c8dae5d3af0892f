"""Remote narrative stage.

The narrative service is optional: every failure here is logged and turned
into "no narrative" so the run continues with the locally composed record.
"""

from typing import Optional

from config import get_client
from pipeline.logger import get_logger
from pipeline.pipeline_config import NarrativeConfig
from pipeline.stages.prompt import build_messages

logger = get_logger("stages.narrative")


class NarrativeFetcher:
    """Single-attempt client for the generative-text narrative service."""

    def __init__(self, config: NarrativeConfig) -> None:
        """Initialize the fetcher.

        Args:
            config: Narrative settings. A config without an API key, or with
                ``enabled=False``, produces a disabled fetcher.
        """
        self.config = config
        self._client = None

    @property
    def disabled(self) -> bool:
        """True when the fetcher will never call the service."""
        return not self.config.enabled or not self.config.api_key

    @property
    def client(self):
        """Lazily created OpenAI-compatible client that never retries."""
        if self._client is None:
            self._client = get_client(self.config.model, api_key=self.config.api_key, max_retries=0)
        return self._client

    def fetch(self, prompt: str, timeout: Optional[float] = None) -> Optional[str]:
        """Request a narrative analysis for a prompt.

        Args:
            prompt: Prompt built by the prompt stage.
            timeout: Seconds allowed for this call; defaults to the configured timeout.

        Returns:
            Optional[str]: Raw response text, or None if the fetcher is disabled,
                the call fails or times out, or the response is empty.
        """
        if self.disabled:
            logger.info("Narrative service disabled (no API key configured), skipping")
            return None

        timeout = self.config.timeout if timeout is None else timeout
        if timeout <= 0:
            logger.warning("No time left for the narrative service, skipping")
            return None

        try:
            completion = self.client.chat.completions.create(
                model=self.config.model,
                messages=build_messages(prompt),
                temperature=self.config.temperature,
                timeout=timeout,
            )
            content = completion.choices[0].message.content
        except Exception as e:
            logger.warning(f"Narrative service call failed: {str(e)[:200]}")
            return None

        if not content or not content.strip():
            logger.warning("Narrative service returned an empty response")
            return None

        usage = getattr(completion, 'usage', None)
        logger.info(
            f"Narrative received from {self.config.model} "
            f"({getattr(usage, 'prompt_tokens', 0)} in, {getattr(usage, 'completion_tokens', 0)} out)"
        )
        return content
