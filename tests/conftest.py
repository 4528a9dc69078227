"""
Shared fixtures for the analysis pipeline tests.
"""
import json
import re

import pytest

from legalease.config import AnalyzerConfig
from legalease.services.analysis_orchestrator import AnalysisOrchestrator
from legalease.utils.rate_limiter import FixedDelayScheduler


LEGAL_VERDICT = json.dumps({'isLegal': True, 'documentType': 'service agreement', 'confidence': 0.9})

_PART_PATTERN = re.compile(r'PART (\d+) of (\d+)')


def prompt_kind(prompt: str) -> str:
    """Identify which pipeline step produced a prompt."""
    if prompt.startswith('Analyze this document and determine if it contains LEGAL CLAUSES'):
        return 'classify'
    if prompt.startswith('You are analyzing PART'):
        return 'chunk'
    if prompt.startswith('You are synthesizing analysis'):
        return 'synthesis'
    if prompt.startswith('As LegalEaseAI'):
        return 'full'
    return 'other'


def chunk_position(prompt: str) -> int:
    return int(_PART_PATTERN.search(prompt).group(1))


class FakeLLMClient:
    """
    Stand-in for LLMClient that records prompts.

    ``handler`` receives each prompt and returns the reply, or raises to
    simulate a model failure. Without a handler, ``responses`` are consumed in
    order; exceptions in that list are raised instead of returned.
    """

    def __init__(self, handler=None, responses=None, has_credentials=True):
        self.handler = handler
        self.responses = list(responses or [])
        self.has_credentials = has_credentials
        self.calls = []

    def call(self, prompt: str) -> str:
        self.calls.append(prompt)
        if self.handler is not None:
            return self.handler(prompt)
        if not self.responses:
            raise AssertionError("FakeLLMClient ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def kinds(self):
        return [prompt_kind(p) for p in self.calls]


def _roman(number: int) -> str:
    values = [(10, 'X'), (9, 'IX'), (5, 'V'), (4, 'IV'), (1, 'I')]
    result = ''
    for value, symbol in values:
        while number >= value:
            result += symbol
            number -= value
    return result


def build_contract(articles: int = 20, sentences: int = 9) -> str:
    """Synthetic contract of ARTICLE sections, roughly 1,000 characters each."""
    sections = []
    for n in range(1, articles + 1):
        body = ' '.join(
            f"The Supplier shall perform obligation {n}.{k} in accordance with the terms "
            f"of this Agreement and applicable law."
            for k in range(1, sentences + 1)
        )
        sections.append(f"ARTICLE {_roman(n)}\n{body}")
    return '\n\n'.join(sections)


@pytest.fixture
def config():
    """Analyzer configuration with a dummy key and no inter-call delay."""
    return AnalyzerConfig(api_key='test-key', chunk_delay=0.0)


@pytest.fixture
def zero_delay_scheduler():
    return FixedDelayScheduler(min_interval=0.0)


@pytest.fixture
def make_orchestrator(config, zero_delay_scheduler):
    """Factory building an orchestrator around a FakeLLMClient."""
    def _make(client, cfg=None):
        return AnalysisOrchestrator(client, cfg or config, scheduler=zero_delay_scheduler)
    return _make


@pytest.fixture
def long_contract():
    return build_contract()
