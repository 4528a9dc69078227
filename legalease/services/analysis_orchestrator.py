"""
Analysis orchestrator - coordinates the full document analysis workflow.

Classifies the document, routes it to single-pass or chunked analysis,
synthesizes chunk results and degrades to a static analysis whenever the
model is unavailable. Apart from input validation and caller-requested
cancellation, ``analyze`` never raises.
"""
import random
import logging
import threading
from typing import List, Optional, Sequence

from tenacity import Retrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_exponential

from legalease.config import AnalyzerConfig
from legalease.models import AnalysisResult, Chunk, ChunkAnalysis, ChunkingReport, DocumentTypeVerdict
from legalease.services import prompt_builder
from legalease.services.fallback_analysis import build_degraded_result, build_not_legal_result
from legalease.services.llm_client import LLMClient, MissingCredentialsError, ModelError, TransportFailureError
from legalease.services.response_interpreter import (
    ChunkReading,
    default_verdict,
    heuristic_analysis,
    highest_risk,
    interpret_analysis,
    interpret_chunk,
    interpret_classification,
)
from legalease.utils.document_chunking import chunk_document, should_chunk
from legalease.utils.rate_limiter import FixedDelayScheduler

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10

PROCESSING_METHOD = 'Intelligent Chunking'
MANUAL_PROCESSING_METHOD = 'Intelligent Chunking (Manual Synthesis)'

CHUNK_FAILURE_TEMPLATE = "Analysis failed for this chunk: {reason}"
MANUAL_SYNTHESIS_HEADER = "Combined analysis from {count} document chunks:\n\n"

CHAT_FALLBACK_RESPONSES = [
    "Thank you for your question. For specific legal advice, I recommend consulting with a qualified "
    "attorney who can review your particular situation.",
    "That's an important legal consideration. Legal documents can be complex, and the specifics of your "
    "situation matter greatly.",
    "I understand your concern. Legal matters often require careful review of all relevant terms and conditions.",
    "This is a common question in legal document review. The answer often depends on the specific language "
    "used in your agreement.",
    "Legal documents can contain important nuances. I'd recommend having a legal professional review the "
    "specific terms that concern you.",
]

CLAUSE_EXPLANATION_FALLBACK = (
    "An automated explanation of this clause is not available right now. "
    "Please have a qualified legal professional review it."
)
QUESTION_FALLBACK = (
    "I could not answer this question automatically right now. "
    "Please review the relevant section of the document with a qualified attorney."
)
SUMMARY_FALLBACK = (
    "An executive summary could not be generated right now. "
    "Please review the full document or try again later."
)

# Transport failures worth another attempt: network errors, rate limits, server errors
RETRYABLE_STATUS_CODES = (429,)


class InvalidDocumentError(ValueError):
    """Input text is empty or too short to analyze."""


class AnalysisCancelledError(Exception):
    """The caller cancelled a chunked analysis."""


def _is_retryable(exc: BaseException) -> bool:
    if not isinstance(exc, TransportFailureError):
        return False
    status = exc.status_code
    return status is None or status in RETRYABLE_STATUS_CODES or status >= 500


def _require_text(value: Optional[str], name: str, min_length: int = 1) -> str:
    text = (value or '').strip()
    if not text:
        raise InvalidDocumentError(f"{name} cannot be empty")
    if len(text) < min_length:
        raise InvalidDocumentError(f"{name} must be at least {min_length} characters")
    return text


def _dedupe(items, key) -> list:
    seen = set()
    unique = []
    for item in items:
        marker = key(item)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(item)
    return unique


class AnalysisOrchestrator:
    """
    Runs the classify, route, analyze and synthesize pipeline for one document at a time.

    The model client is injected so tests and alternative providers can
    substitute their own. Each chunked run gets a fresh ``FixedDelayScheduler``
    unless one is supplied.
    """

    def __init__(
        self,
        client: LLMClient,
        config: Optional[AnalyzerConfig] = None,
        scheduler: Optional[FixedDelayScheduler] = None,
    ):
        self.client = client
        self.config = config or AnalyzerConfig()
        self.scheduler = scheduler
        self.retry_wait = wait_exponential(multiplier=1, min=1, max=10)

    def _call_model(self, prompt: str) -> str:
        """Call the model, retrying transient transport failures per configuration."""
        retrying = Retrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(self.client.call, prompt)

    def _scheduler(self) -> FixedDelayScheduler:
        if self.scheduler is not None:
            return self.scheduler
        return FixedDelayScheduler(self.config.chunk_delay)

    def analyze(self, text: str, cancel_event: Optional[threading.Event] = None) -> AnalysisResult:
        """
        Analyze a document.

        Args:
            text: Extracted document text.
            cancel_event: Optional event; when set, chunked analysis stops before the next chunk.

        Returns:
            A well-formed AnalysisResult, degraded if the model is unavailable.

        Raises:
            InvalidDocumentError: If the trimmed text is shorter than 10 characters.
            AnalysisCancelledError: If ``cancel_event`` was set during chunked analysis.
        """
        document = _require_text(text, "Document text", MIN_TEXT_LENGTH)
        logger.info(f"Starting document analysis: {len(document)} chars")

        if not getattr(self.client, 'has_credentials', True):
            logger.warning("LLM API key not configured, falling back to static analysis")
            return build_degraded_result(document, "LLM API key not configured")

        try:
            verdict = self._classify(document)
            if not verdict.is_legal:
                logger.info(f"Document classified as non-legal ({verdict.document_type}), skipping analysis")
                return build_not_legal_result(verdict)

            decision = should_chunk(document, self.config.chunk_threshold)
            if decision.should_chunk:
                chunks = chunk_document(document, self.config.max_chunk_size)
                if len(chunks) > 1:
                    return self._analyze_chunked(document, chunks, verdict, cancel_event)
                logger.info("Chunking produced fewer than two chunks, using single pass")

            return self._analyze_single(document, verdict)

        except ModelError as e:
            logger.warning(f"Model unavailable, falling back to static analysis: {type(e).__name__}")
            return build_degraded_result(document, str(e))

    def _classify(self, document: str) -> DocumentTypeVerdict:
        """
        Run the classification gate.

        MissingCredentialsError propagates so the caller can degrade at once;
        every other model failure yields the default verdict.
        """
        prompt = prompt_builder.build_classification_prompt(
            document, sample_chars=self.config.classification_sample_chars
        )
        try:
            raw = self._call_model(prompt)
        except MissingCredentialsError:
            raise
        except ModelError as e:
            logger.warning(f"Document type check failed, proceeding with legal analysis: {e}")
            return default_verdict()

        verdict = interpret_classification(raw, document)
        logger.info(
            f"Classification: is_legal={verdict.is_legal}, type={verdict.document_type}, "
            f"confidence={verdict.confidence}, source={verdict.source}"
        )
        return verdict

    def _analyze_single(self, document: str, verdict: DocumentTypeVerdict) -> AnalysisResult:
        logger.info("Running single-pass analysis")
        prompt = prompt_builder.build_full_analysis_prompt(document, verdict.document_type)
        raw = self._call_model(prompt)

        result = interpret_analysis(raw)
        result.document_type = verdict.document_type
        logger.info(
            f"Single-pass analysis complete: {len(result.clauses)} clauses, "
            f"{len(result.red_flags)} red flags, risk={result.overall_risk_level}"
        )
        return result

    def _analyze_chunked(
        self,
        document: str,
        chunks: List[Chunk],
        verdict: DocumentTypeVerdict,
        cancel_event: Optional[threading.Event],
    ) -> AnalysisResult:
        total = len(chunks)
        logger.info(f"Running chunked analysis over {total} chunks")
        scheduler = self._scheduler()

        analyses: List[ChunkAnalysis] = []
        readings: List[ChunkReading] = []

        for chunk in scheduler.throttle(chunks):
            self._check_cancelled(cancel_event)
            logger.info(
                f"Analyzing chunk {chunk.index + 1}/{total} ({chunk.size} chars, critical={chunk.is_critical})"
            )
            prompt = prompt_builder.build_chunk_analysis_prompt(chunk, total)
            try:
                raw = self._call_model(prompt)
            except MissingCredentialsError:
                raise
            except ModelError as e:
                logger.warning(f"Chunk {chunk.index + 1} analysis failed: {e}")
                analyses.append(
                    ChunkAnalysis.for_chunk(chunk, CHUNK_FAILURE_TEMPLATE.format(reason=e), failed=True)
                )
                continue

            reading = interpret_chunk(raw)
            readings.append(reading)
            analyses.append(ChunkAnalysis.for_chunk(chunk, reading.text))

        self._check_cancelled(cancel_event)
        scheduler.acquire()
        synthesis, manual = self._synthesize(analyses)

        return self._assemble_chunked_result(document, analyses, readings, synthesis, manual, verdict)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Analysis cancelled by caller")
            raise AnalysisCancelledError("Analysis was cancelled")

    def _synthesize(self, analyses: Sequence[ChunkAnalysis]):
        """
        Combine chunk analyses into one narrative.

        Returns:
            Tuple of (synthesis text, whether the manual fallback was used).
        """
        logger.info(f"Synthesizing {len(analyses)} chunk analyses")
        try:
            synthesis = self._call_model(prompt_builder.build_synthesis_prompt(analyses))
            return synthesis, False
        except ModelError as e:
            logger.warning(f"Synthesis failed, combining chunk analyses manually: {e}")
            return manual_synthesis(analyses), True

    def _assemble_chunked_result(
        self,
        document: str,
        analyses: List[ChunkAnalysis],
        readings: List[ChunkReading],
        synthesis: str,
        manual: bool,
        verdict: DocumentTypeVerdict,
    ) -> AnalysisResult:
        structured = [r.structured for r in readings if r.structured is not None]

        if structured:
            result = _merge_structured(structured)
        else:
            logger.info("No chunk returned structured output, interpreting synthesis heuristically")
            result = heuristic_analysis(synthesis)

        result.summary = synthesis
        result.document_type = verdict.document_type
        result.chunking = ChunkingReport(
            overall_analysis=synthesis,
            chunk_analyses=list(analyses),
            total_chunks=len(analyses),
            document_size=len(document),
            processing_method=MANUAL_PROCESSING_METHOD if manual else PROCESSING_METHOD,
        )

        notes = [result.note] if result.note else []
        failed = sum(1 for a in analyses if a.failed)
        if failed:
            notes.append(f"{failed} of {len(analyses)} document chunks could not be analyzed.")
        if manual:
            notes.append("Chunk analyses were combined without a synthesis pass.")
        result.note = ' '.join(notes) if notes else None

        logger.info(
            f"Chunked analysis complete: {len(analyses)} chunks, {failed} failed, "
            f"manual synthesis={manual}, risk={result.overall_risk_level}"
        )
        return result

    def explain_clause(self, clause_text: str, document_type: str = 'legal document') -> str:
        clause = _require_text(clause_text, "Clause text")
        try:
            return self._call_model(prompt_builder.build_clause_explanation_prompt(clause, document_type))
        except ModelError as e:
            logger.warning(f"Clause explanation failed: {e}")
            return CLAUSE_EXPLANATION_FALLBACK

    def answer_question(self, question: str, document_text: str, document_type: str = 'legal document') -> str:
        """Answer a question about a specific document."""
        query = _require_text(question, "Question")
        document = _require_text(document_text, "Document text")
        try:
            return self._call_model(prompt_builder.build_document_qa_prompt(query, document, document_type))
        except ModelError as e:
            logger.warning(f"Document question failed: {e}")
            return QUESTION_FALLBACK

    def summarize(self, document_text: str, document_type: str = 'legal document') -> str:
        document = _require_text(document_text, "Document text")
        try:
            return self._call_model(prompt_builder.build_summary_prompt(document, document_type))
        except ModelError as e:
            logger.warning(f"Summary generation failed: {e}")
            return SUMMARY_FALLBACK

    def chat(self, message: str, context: str = '') -> str:
        """
        Conversational answer to a general legal question.

        Falls back to one of a fixed set of replies when the model is unavailable.
        """
        text = _require_text(message, "Message")
        try:
            return self._call_model(prompt_builder.build_chat_prompt(text, context or ''))
        except ModelError as e:
            logger.warning(f"Chat response failed, using canned reply: {e}")
            return random.choice(CHAT_FALLBACK_RESPONSES)


def manual_synthesis(analyses: Sequence[ChunkAnalysis]) -> str:
    """Label and concatenate chunk analyses in chunk order."""
    header = MANUAL_SYNTHESIS_HEADER.format(count=len(analyses))
    return header + '\n\n'.join(a.analysis for a in analyses)


def _merge_structured(results: Sequence[AnalysisResult]) -> AnalysisResult:
    """Merge per-chunk structured results, keeping the first occurrence of each finding."""
    clauses = _dedupe((c for r in results for c in r.clauses), key=lambda c: c.title.strip().lower())
    red_flags = _dedupe((f for r in results for f in r.red_flags), key=lambda f: f.issue.strip().lower())
    key_dates = _dedupe(
        (d for r in results for d in r.key_dates),
        key=lambda d: (d.date.strip().lower(), d.description.strip().lower()),
    )
    recommendations = _dedupe((s for r in results for s in r.recommendations), key=lambda s: s.strip().lower())

    # A clause found in one chunk is not missing because another chunk lacked it
    present = {c.title.strip().lower() for c in clauses}
    missing_clauses = [
        m for m in _dedupe((m for r in results for m in r.missing_clauses), key=lambda m: m.strip().lower())
        if m.strip().lower() not in present
    ]

    favorability = next((r.favorability for r in results if _is_informative(r.favorability)), results[0].favorability)

    return AnalysisResult(
        summary='',
        clauses=clauses,
        red_flags=red_flags,
        key_dates=key_dates,
        overall_risk_level=highest_risk(r.overall_risk_level for r in results),
        recommendations=recommendations,
        missing_clauses=missing_clauses,
        favorability=favorability,
    )


def _is_informative(favorability) -> bool:
    return (
        favorability.for_party1 != 'medium'
        or favorability.for_party2 != 'medium'
        or favorability.explanation != 'Analysis not available'
    )


def analyze_document(
    text: str,
    client: Optional[LLMClient] = None,
    config: Optional[AnalyzerConfig] = None,
) -> AnalysisResult:
    """
    Analyze a document with a client built from configuration.

    Args:
        text: Extracted document text.
        client: Model client to use; built from ``config`` when omitted.
        config: Analyzer configuration; read from the environment when omitted.

    Returns:
        The analysis result.

    Raises:
        InvalidDocumentError: If the text is empty or too short.
    """
    config = config or AnalyzerConfig.from_env()
    client = client or LLMClient.from_config(config)
    return AnalysisOrchestrator(client, config).analyze(text)
