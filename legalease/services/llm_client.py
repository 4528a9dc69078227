"""
LLM client for legal document analysis over an OpenAI-compatible endpoint.
"""
import logging
import time
from typing import Optional

import openai
from openai import OpenAI

from legalease.config import AnalyzerConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are LegalEaseAI, a legal analysis assistant. Provide clear, accurate and "
    "informative analysis of legal documents. When asked for JSON, return ONLY valid JSON."
)

APP_TITLE = 'LegalEaseAI'


class ModelError(Exception):
    """Base class for model call failures."""


class MissingCredentialsError(ModelError):
    """No API key is configured."""


class TransportFailureError(ModelError):
    """Non-2xx status, network failure or an envelope that could not be read."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class EmptyResponseError(ModelError):
    """The response envelope carried no usable message content."""


class LLMClient:
    """
    Sends a single prompt to the chat-completion endpoint and returns the text.

    One attempt per call: SDK-level retries are disabled and retry policy is
    left to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 10_000,
        timeout: float = 60.0,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.system_prompt = system_prompt
        self._client: Optional[OpenAI] = None

    @classmethod
    def from_config(cls, cfg: AnalyzerConfig) -> 'LLMClient':
        return cls(
            api_key=cfg.api_key,
            model=cfg.model,
            base_url=cfg.base_url,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
            timeout=cfg.request_timeout,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def _get_client(self) -> OpenAI:
        """Get or initialize the OpenAI SDK client."""
        if not self.has_credentials:
            raise MissingCredentialsError("LLM API key not configured")
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                default_headers={'X-Title': APP_TITLE},
            )
            logger.info(f"OpenAI client initialized for model {self.model}")
        return self._client

    def call(self, prompt: str) -> str:
        """
        Send one prompt and return the model's reply.

        Args:
            prompt: The user message.

        Returns:
            Trimmed text content of the first choice.

        Raises:
            MissingCredentialsError: If no API key is configured (no request is made).
            TransportFailureError: On HTTP errors, connection failures or a malformed envelope.
            EmptyResponseError: If the reply has no content.
        """
        client = self._get_client()
        start_time = time.time()

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else None
            logger.error(f"LLM API error: status={e.status_code}")
            raise TransportFailureError(
                f"LLM API error: {e.status_code} - {body}", status_code=e.status_code, body=body
            ) from e
        except openai.APIConnectionError as e:
            logger.error(f"LLM API connection failed: {type(e).__name__}")
            raise TransportFailureError(f"LLM API connection failed: {e}") from e
        except openai.APIError as e:
            logger.error(f"LLM API returned an unreadable response: {type(e).__name__}")
            raise TransportFailureError(
                f"Invalid response from LLM API: {e}", status_code=getattr(e, 'status_code', None)
            ) from e
        except Exception as e:
            logger.error(f"LLM API call failed: {type(e).__name__} - {str(e)}")
            raise TransportFailureError(f"LLM API call failed: {e}") from e

        duration = time.time() - start_time

        try:
            choices = getattr(response, 'choices', None) or []
            message = choices[0].message if choices else None
            content = message.content if message is not None else None
        except Exception as e:
            logger.error(f"LLM response envelope could not be read: {type(e).__name__}")
            raise TransportFailureError(f"Invalid response format from LLM API: {e}") from e

        if not choices or message is None:
            logger.error("LLM response had no choices")
            raise EmptyResponseError("Invalid response format from LLM API")

        if content is not None and not isinstance(content, str):
            logger.error(f"LLM response content had unexpected type {type(content).__name__}")
            raise TransportFailureError(
                f"Invalid response format from LLM API: content is {type(content).__name__}, expected text"
            )

        if not content or not content.strip():
            logger.error("LLM response content was empty")
            raise EmptyResponseError("Empty response from LLM API")

        logger.info(f"LLM call complete: {len(content)} chars in {duration:.2f}s")
        return content.strip()
