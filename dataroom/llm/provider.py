"""
Completion endpoint client.

Talks to an OpenAI-style ``/v1/completions`` endpoint over HTTP and wraps
the two uses dataroom has for it: answering questions about a dataset and
generating a synthetic CSV dataset.
"""

import logging
from typing import Any, Dict, Optional

import requests

from dataroom.components.config import Config
from dataroom.llm import prompts
from dataroom.llm.synth import generate_csv_fallback
from dataroom.math.errors import DataroomError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:8007/v1/completions"

ASK_MAX_TOKENS = 400
GENERATE_MAX_TOKENS = 120000
TEMPERATURE = 0.2
FALLBACK_SEED = 1337


class UpstreamError(DataroomError, RuntimeError):
    """The completion endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upstream {status_code}: {body}")


def extract_text(payload: Dict[str, Any]) -> str:
    """
    Concatenate the text of every choice in a completion response.

    Both ``{"choices": [{"text": ...}]}`` and chat-style
    ``{"choices": [{"message": {"content": ...}}]}`` shapes are accepted.
    """
    parts = []
    for choice in (payload or {}).get('choices') or []:
        if not isinstance(choice, dict):
            continue
        text = choice.get('text')
        if text is None:
            text = (choice.get('message') or {}).get('content')
        if text:
            parts.append(text)
    return "".join(parts)


class CompletionProvider:
    """
    Client for a text-completion endpoint.
    """

    def __init__(self,
                 endpoint: str = DEFAULT_ENDPOINT,
                 model: str = "local",
                 timeout: Optional[float] = 120.0,
                 session: Optional[requests.Session] = None,
                 default_rows: int = prompts.DEFAULT_GENERATE_ROWS,
                 min_rows: int = prompts.MIN_GENERATE_ROWS,
                 max_rows: int = prompts.MAX_GENERATE_ROWS,
                 fallback_seed: int = FALLBACK_SEED):
        """
        Initialize the provider.

        Args:
            endpoint: Completion URL
            model: Model name sent with each request
            timeout: Request timeout in seconds
            session: Optional requests session to reuse connections
            default_rows: Row count used when a request gives none
            min_rows: Smallest row count a request may ask for
            max_rows: Largest row count a request may ask for
            fallback_seed: Seed for the offline synthesizer
        """
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()
        self.default_rows = default_rows
        self.min_rows = min_rows
        self.max_rows = max_rows
        self.fallback_seed = fallback_seed

    @classmethod
    def from_config(cls, config: Config) -> "CompletionProvider":
        """Build a provider from the llm.* and generate.* settings."""
        return cls(
            endpoint=config.get("llm.endpoint", DEFAULT_ENDPOINT),
            model=config.get("llm.model", "local"),
            timeout=config.get("llm.timeout", 120.0),
            default_rows=config.get("generate.default-rows", prompts.DEFAULT_GENERATE_ROWS),
            min_rows=config.get("generate.min-rows", prompts.MIN_GENERATE_ROWS),
            max_rows=config.get("generate.max-rows", prompts.MAX_GENERATE_ROWS),
            fallback_seed=config.get("generate.fallback-seed", FALLBACK_SEED)
        )

    def complete_raw(self, prompt: str, max_tokens: int, temperature: float = TEMPERATURE) -> requests.Response:
        """POST a completion request and return the raw response."""
        logger.info(f"Requesting completion from {self.endpoint} (max_tokens={max_tokens})")
        return self.session.post(
            self.endpoint,
            json={
                "model": self.model,
                "prompt": prompt,
                "max_tokens": max_tokens,
                "temperature": temperature
            },
            timeout=self.timeout
        )

    def complete(self, prompt: str, max_tokens: int, temperature: float = TEMPERATURE) -> str:
        """
        Request a completion.

        Args:
            prompt: Prompt text
            max_tokens: Token limit for the answer
            temperature: Sampling temperature

        Returns:
            Completion text ('' if the response has no choices)

        Raises:
            UpstreamError: If the endpoint returns a non-2xx status
            requests.RequestException: On connection failures
        """
        response = self.complete_raw(prompt, max_tokens, temperature)
        if not response.ok:
            raise UpstreamError(response.status_code, response.text)
        return extract_text(response.json())

    def ask(self, prompt: str) -> str:
        """
        Answer a question prompt.

        Returns:
            Model answer
        """
        return self.complete(prompt, ASK_MAX_TOKENS)

    def generate_csv(self,
                     prompt: Optional[str],
                     rows: Optional[Any] = None,
                     fallback_seed: Optional[int] = None) -> str:
        """
        Generate a CSV dataset for a free-text description.

        The model is asked for CSV first. If it answers with a non-2xx status
        or with text that does not look like CSV, the deterministic
        synthesizer produces the dataset instead.

        Args:
            prompt: Dataset description
            rows: Requested row count (clamped to the allowed range)
            fallback_seed: Seed for the synthesizer (provider default if None)

        Returns:
            CSV text

        Raises:
            requests.RequestException: On connection failures
        """
        n_rows = prompts.clamp_rows(rows, self.default_rows, self.min_rows, self.max_rows)
        seed = self.fallback_seed if fallback_seed is None else fallback_seed
        user_prompt = prompt or "generic dataset"

        response = self.complete_raw(
            prompts.build_generate_prompt(user_prompt, n_rows),
            GENERATE_MAX_TOKENS
        )

        csv_text = ""
        if response.ok:
            csv_text = prompts.unwrap_csv_fence(extract_text(response.json()))
        else:
            logger.warning(f"Completion endpoint returned {response.status_code}")

        if not prompts.looks_like_csv(csv_text):
            logger.warning("Model output is not CSV; using the synthetic generator")
            csv_text = generate_csv_fallback(prompt or "", n_rows, seed)

        return csv_text
