"""
Runtime configuration for the analysis pipeline.

Values come from the process environment; ``main.py`` loads a ``.env`` file
with python-dotenv before the configuration is read.
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://openrouter.ai/api/v1'
DEFAULT_MODEL = 'openai/gpt-3.5-turbo'

# Checked in order; the first non-empty value wins
API_KEY_ENV_VARS = ('LLM_API_KEY', 'OPENAI_ROUTER_KEY', 'OPENAI_API_KEY')


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}")
        return default


@dataclass
class AnalyzerConfig:
    """Settings shared by the model client and the orchestrator."""
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.3
    max_tokens: int = 10_000
    request_timeout: float = 60.0
    max_retries: int = 0
    chunk_threshold: int = 8_000
    max_chunk_size: int = 5_000
    chunk_delay: float = 0.5
    classification_sample_chars: int = 1_000

    @classmethod
    def from_env(cls) -> 'AnalyzerConfig':
        """Build configuration from environment variables."""
        api_key = None
        for name in API_KEY_ENV_VARS:
            value = (os.getenv(name) or '').strip()
            if value:
                api_key = value
                break

        cfg = cls(
            api_key=api_key,
            base_url=os.getenv('LLM_BASE_URL') or DEFAULT_BASE_URL,
            model=os.getenv('LLM_MODEL') or DEFAULT_MODEL,
            temperature=_env_float('LLM_TEMPERATURE', 0.3),
            max_tokens=_env_int('LLM_MAX_TOKENS', 10_000),
            request_timeout=_env_float('LLM_TIMEOUT_SECONDS', 60.0),
            max_retries=max(0, _env_int('LLM_MAX_RETRIES', 0)),
            chunk_threshold=_env_int('CHUNK_THRESHOLD', 8_000),
            max_chunk_size=_env_int('MAX_CHUNK_SIZE', 5_000),
            chunk_delay=max(0.0, _env_float('CHUNK_DELAY_SECONDS', 0.5)),
            classification_sample_chars=_env_int('CLASSIFICATION_SAMPLE_CHARS', 1_000),
        )

        logger.info(
            f"Analyzer config: model={cfg.model}, base_url={cfg.base_url}, "
            f"api_key_present={bool(cfg.api_key)}, chunk_threshold={cfg.chunk_threshold}, "
            f"max_chunk_size={cfg.max_chunk_size}, chunk_delay={cfg.chunk_delay}s"
        )
        return cfg
