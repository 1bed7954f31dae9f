import logging
import os
import re
from abc import ABC, abstractmethod
from typing import List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from newsroom.errors import BackendError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
TEMPERATURE = 0.7

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_prompt(text: str) -> str:
    """Remove control characters some endpoints reject; keeps tab, LF and CR."""
    return _CONTROL_CHARS.sub("", text)


def load_api_keys() -> List[str]:
    """GEMINI_API_KEY, then GEMINI_API_KEY_2 .. GEMINI_API_KEY_9."""
    keys = []
    for i in range(1, 10):
        key_name = "GEMINI_API_KEY" if i == 1 else f"GEMINI_API_KEY_{i}"
        api_key = os.getenv(key_name)
        if api_key:
            keys.append(api_key)
            logger.info(f"Loaded {key_name}")
    return keys


class TextBackend(ABC):
    @abstractmethod
    async def complete(self, prompt: str, max_tokens: int) -> str:
        """Returns generated text or raises BackendError."""


class GeminiBackend(TextBackend):
    def __init__(self, api_keys: Optional[List[str]] = None, model_name: str = DEFAULT_MODEL):
        self.api_keys = api_keys if api_keys is not None else load_api_keys()
        self.model_name = model_name
        self.retry_wait = wait_exponential(multiplier=1, min=2, max=10) + wait_random(0, 2)

        if not self.api_keys:
            logger.warning("No GEMINI_API_KEY found. Article generation will fall back to repo descriptions.")
            self.model = None
            self.current_key_index = -1
        else:
            logger.info(f"Loaded {len(self.api_keys)} API key(s)")
            self.current_key_index = 0
            genai.configure(api_key=self.api_keys[self.current_key_index])
            self.model = genai.GenerativeModel(self.model_name)
            logger.info(f"Using API key #{self.current_key_index + 1}, Model: {self.model_name}")

    def _rotate_api_key(self) -> bool:
        """Rotate to next API key when rate limited"""
        if len(self.api_keys) <= 1:
            return False

        old_index = self.current_key_index
        self.current_key_index = (self.current_key_index + 1) % len(self.api_keys)
        genai.configure(api_key=self.api_keys[self.current_key_index])
        self.model = genai.GenerativeModel(self.model_name)
        logger.info(f"Rotated from API key #{old_index + 1} to API key #{self.current_key_index + 1}")
        return True

    def _should_retry(self, exc: BaseException) -> bool:
        # A quota error is only worth retrying on a fresh key; other 4xx never are.
        if isinstance(exc, google_exceptions.ResourceExhausted):
            return self._rotate_api_key()
        if isinstance(exc, google_exceptions.ClientError):
            return False
        return True

    async def _generate(self, prompt: str, max_tokens: int) -> str:
        response = await self.model.generate_content_async(
            sanitize_prompt(prompt),
            generation_config={"max_output_tokens": max_tokens, "temperature": TEMPERATURE},
        )
        try:
            text = response.text
        except ValueError as e:
            # Blocked or truncated candidates have no text part
            raise BackendError(f"{self.model_name} returned no usable text: {e}") from e
        text = (text or "").strip()
        if not text:
            raise BackendError(f"Empty response from {self.model_name}")
        return text

    async def complete(self, prompt: str, max_tokens: int) -> str:
        if self.model is None:
            raise BackendError("Gemini backend is not configured")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(2),
                wait=self.retry_wait,
                retry=retry_if_exception(self._should_retry),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return await self._generate(prompt, max_tokens)
        except BackendError:
            raise
        except Exception as e:
            logger.error(f"LLM call failed (model={self.model_name}): {e}")
            raise BackendError(str(e)) from e
