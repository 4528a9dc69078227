"""
Prompt templates for each model task in the analysis pipeline.
"""
import re
import logging
from enum import Enum
from typing import Sequence

from legalease.models import Chunk, ChunkAnalysis

logger = logging.getLogger(__name__)

CLASSIFICATION_SAMPLE_CHARS = 1_000


class PromptKind(str, Enum):
    CLASSIFY = 'classify'
    FULL_ANALYSIS = 'full-analysis'
    CHUNK_ANALYSIS = 'chunk-analysis'
    SYNTHESIS = 'synthesis'
    CLAUSE_EXPLAIN = 'clause-explain'
    DOCUMENT_QA = 'document-qa'
    SUMMARY = 'summary'
    CHAT = 'chat'


CLASSIFY_PROMPT_TEMPLATE = '''Analyze this document and determine if it contains LEGAL CLAUSES and CONTRACTUAL TERMS.

Document sample:
{sample}

Respond with ONLY a JSON object:
{{
  "isLegal": true/false,
  "documentType": "contract/academic paper/research document/technical manual/experiment/report/other",
  "confidence": 0.0-1.0
}}

A document is LEGAL if it contains:
- Contractual obligations and rights
- Terms and conditions
- Payment terms, penalties, liability clauses
- Party responsibilities and obligations
- Legal agreements between parties

A document is NOT LEGAL if it contains:
- Academic research or experiments
- Technical specifications
- Educational content
- Reports or analysis
- General information'''


ANALYSIS_JSON_SCHEMA = '''{
  "summary": "Comprehensive 3-4 sentence summary of the document type, purpose, and overall assessment",
  "clauses": [
    {
      "title": "Specific clause name (e.g., 'Monthly Rent Payment', 'Termination Clause', 'Standard Notice Provision')",
      "originalText": "The exact text from the document",
      "explanation": "Detailed plain-language explanation of what this clause means",
      "riskLevel": "low/medium/high",
      "riskAssessment": "Detailed explanation of risks and potential issues (even if low risk, explain why it's standard/favorable)",
      "legalImplications": "What legal consequences or rights this creates",
      "negotiationPoints": "Suggestions for how this clause could be negotiated or improved (even for low-risk clauses)",
      "industryStandard": "Whether this is typical/unusual for this type of agreement",
      "keyTerms": ["term1", "term2", "term3"],
      "importance": "high/medium/low"
    }
  ],
  "redFlags": [
    {
      "issue": "Specific problematic clause or term (for medium/high risk) OR positive/favorable clause (for low risk)",
      "severity": "critical/high/medium/low",
      "explanation": "Why this is concerning (for risks) OR why this is favorable/well-written (for low risk items)",
      "potentialConsequences": "What could happen if this clause is problematic OR what benefits this provides",
      "recommendations": "Specific actions to address this issue OR how to maintain/leverage this favorable term",
      "legalCitations": "Relevant legal principles or standards if applicable"
    }
  ],
  "keyDates": [
    {
      "date": "Specific date if found",
      "description": "What happens on this date",
      "importance": "critical/high/medium/low",
      "actionRequired": "What the parties need to do"
    }
  ],
  "overallRiskLevel": "low/medium/high",
  "recommendations": ["Specific actionable recommendation"],
  "missingClauses": ["Important clauses that should be present but are missing"],
  "favorability": {
    "forParty1": "high/medium/low",
    "forParty2": "high/medium/low",
    "explanation": "Which party this agreement favors and why"
  }
}'''


ANALYSIS_RULES = '''Rules for your answer:
- Return ONLY a valid JSON object with exactly the keys shown above. No text before or after the JSON.
- Rate every riskLevel and overallRiskLevel as one of: low, medium, high.
- Quote the original clause text VERBATIM in "originalText".
- Cover ALL legal clauses, not only problems:
  * HIGH risk clauses: serious legal issues needing immediate attention
  * MEDIUM risk clauses: areas needing legal review or clarification
  * LOW risk clauses: well-written, favorable, or standard terms (explain why they are standard or favorable)
- Use plain language explanations and give actionable recommendations.'''


FULL_ANALYSIS_PROMPT_TEMPLATE = '''As LegalEaseAI, a specialized legal document analysis assistant, analyze this LEGAL DOCUMENT with contractual clauses and terms.

DOCUMENT TYPE: {document_type}
{type_focus}
Document text:
{document_text}

Provide comprehensive legal analysis with this structure:

{schema}

{rules}'''


CHUNK_ANALYSIS_PROMPT_TEMPLATE = '''You are analyzing PART {position} of {total} of a large legal document.

CHUNK CONTEXT:
- This is chunk {position} of {total} total chunks
- Critical content: {critical}
- Contains financial terms: {financial}
- Contains dates: {dates}
- Markers "[SECTION CONTINUES...]" and "[...CONTINUED FROM PREVIOUS SECTION]" show where a section was split between chunks.

ANALYSIS FOCUS FOR THIS CHUNK:
1. Identify any complete legal clauses or sections
2. Extract key obligations, rights, or restrictions
3. Note any financial terms, dates, or deadlines
4. Highlight critical legal language or unusual provisions
5. Indicate if this chunk connects to previous/next sections

DOCUMENT CHUNK:
{content}

Answer with this structure, covering only what appears in this chunk:

{schema}

{rules}'''


SYNTHESIS_PROMPT_TEMPLATE = '''You are synthesizing analysis from {count} chunks of a large legal document.

CHUNK ANALYSES:
{analyses}

SYNTHESIS REQUIREMENTS:
1. Create unified document summary from all chunks
2. Identify the overall document type and purpose
3. Compile all key parties, obligations, and terms
4. Highlight critical clauses found across chunks
5. Assess overall risk profile and concerns (rate it low, medium, or high)
6. Provide coherent executive summary

Provide comprehensive analysis that unifies insights from all document chunks as clear prose.'''


SYNTHESIS_ENTRY_TEMPLATE = '''
CHUNK {position} ({size} chars, Critical: {critical}):
{analysis}
---'''


CLAUSE_EXPLAIN_PROMPT_TEMPLATE = '''You are a legal expert specializing in contract interpretation. Please explain this clause in plain English.

CLAUSE TEXT:
"{clause_text}"

DOCUMENT TYPE: {document_type}

Please provide:
1. PLAIN ENGLISH EXPLANATION: What this clause means in simple terms
2. PRACTICAL IMPACT: How this affects the parties involved
3. LEGAL SIGNIFICANCE: Why this clause is important
4. POTENTIAL RISKS: What could go wrong or areas of concern
5. COMMON VARIATIONS: How similar clauses are typically written
6. NEGOTIATION POINTS: What aspects might be negotiable

Make your explanation accessible to non-lawyers while maintaining legal accuracy.'''


DOCUMENT_QA_PROMPT_TEMPLATE = '''You are a legal expert providing guidance on document interpretation. Answer the user's question based on the specific document provided.

DOCUMENT TYPE: {document_type}

USER QUESTION: {question}

RELEVANT DOCUMENT SECTIONS:
{document_text}

ANALYSIS APPROACH:
1. Review the document for information directly relevant to the question
2. Provide specific answers based on the document text
3. Quote relevant sections to support your response
4. Indicate if the document doesn't address the question
5. Suggest what additional information might be needed
6. Highlight any risks or considerations related to the question

Please provide a comprehensive answer that addresses the user's specific question while staying grounded in the actual document content.'''


SUMMARY_PROMPT_TEMPLATE = '''Create a comprehensive executive summary of this legal document.

DOCUMENT TYPE: {document_type}

SUMMARY REQUIREMENTS:
1. EXECUTIVE OVERVIEW (2-3 sentences)
2. KEY PARTIES AND THEIR ROLES
3. MAIN OBLIGATIONS (what each party must do)
4. FINANCIAL TERMS (amounts, payment schedules)
5. IMPORTANT DATES AND DEADLINES
6. TERMINATION CONDITIONS
7. MAJOR RISKS OR CONCERNS
8. NEXT STEPS OR ACTION ITEMS

DOCUMENT TEXT:
{document_text}

Focus on the most business-critical information that stakeholders need to understand for decision-making.'''


CHAT_PROMPT_TEMPLATE = '''A user has asked: "{message}"
{context_block}
Please provide a helpful, accurate response about legal matters. Keep your response conversational and informative. If the question is about specific legal advice, remind the user to consult with a qualified attorney.'''


# Extra focus areas keyed by classified document type
TYPE_FOCUS = {
    'rental agreement': '''RENTAL AGREEMENT FOCUS:
- Rent amount, security deposit, and payment terms
- Lease duration and renewal options
- Maintenance and repair responsibilities
- Subletting and assignment rights
- Notice requirements for termination''',
    'employment contract': '''EMPLOYMENT CONTRACT FOCUS:
- Compensation structure (salary, bonuses, benefits)
- Non-compete and non-solicitation clauses
- Intellectual property assignment and confidentiality obligations
- Termination procedures and severance''',
    'non-disclosure agreement': '''NDA FOCUS:
- Scope and definition of confidential information
- Duration of confidentiality obligations
- Permitted disclosures and exceptions
- Remedies for breach and survival clauses''',
    'purchase agreement': '''PURCHASE AGREEMENT FOCUS:
- Purchase price and payment terms
- Delivery, acceptance, and inspection procedures
- Warranty provisions, risk of loss and title transfer''',
    'service agreement': '''SERVICE AGREEMENT FOCUS:
- Scope of work, deliverables, and acceptance criteria
- Service level agreements (SLAs)
- Change order procedures
- Data security and privacy protections''',
    'loan agreement': '''LOAN AGREEMENT FOCUS:
- Principal, interest rate, and repayment schedule
- Collateral, guarantees, and financial covenants
- Default events, acceleration, and prepayment terms''',
    'partnership agreement': '''PARTNERSHIP AGREEMENT FOCUS:
- Capital contributions and ownership percentages
- Profit and loss distribution
- Management authority, transfer restrictions, and dissolution''',
}

GENERAL_FOCUS = '''GENERAL CONTRACT FOCUS:
- Core obligations and performance requirements
- Payment and compensation terms
- Duration and termination provisions
- Risk allocation and liability terms
- Dispute resolution and governing law'''

# Common spellings the classifier returns for the focus keys above
_TYPE_ALIASES = {
    'lease': 'rental agreement',
    'rental': 'rental agreement',
    'employment': 'employment contract',
    'nda': 'non-disclosure agreement',
    'non-disclosure': 'non-disclosure agreement',
    'confidentiality agreement': 'non-disclosure agreement',
    'purchase': 'purchase agreement',
    'sale': 'purchase agreement',
    'service': 'service agreement',
    'services': 'service agreement',
    'loan': 'loan agreement',
    'partnership': 'partnership agreement',
}


def _yes_no(flag: bool) -> str:
    return 'YES' if flag else 'NO'


def type_focus(document_type: str) -> str:
    """Return the focus block for a document type, falling back to general contract focus."""
    key = (document_type or '').strip().lower()
    if key in TYPE_FOCUS:
        return TYPE_FOCUS[key]
    for alias, target in _TYPE_ALIASES.items():
        if re.search(rf'\b{re.escape(alias)}\b', key):
            return TYPE_FOCUS[target]
    return GENERAL_FOCUS


def build_classification_prompt(document_text: str, sample_chars: int = CLASSIFICATION_SAMPLE_CHARS) -> str:
    # Only a prefix is sent; classification is a cheap gate
    return CLASSIFY_PROMPT_TEMPLATE.format(sample=document_text[:sample_chars])


def build_full_analysis_prompt(document_text: str, document_type: str = 'legal document') -> str:
    return FULL_ANALYSIS_PROMPT_TEMPLATE.format(
        document_type=document_type,
        type_focus=type_focus(document_type) + '\n',
        document_text=document_text,
        schema=ANALYSIS_JSON_SCHEMA,
        rules=ANALYSIS_RULES,
    )


def build_chunk_analysis_prompt(chunk: Chunk, total_chunks: int) -> str:
    return CHUNK_ANALYSIS_PROMPT_TEMPLATE.format(
        position=chunk.index + 1,
        total=total_chunks,
        critical=_yes_no(chunk.is_critical),
        financial=_yes_no(chunk.has_financial_terms),
        dates=_yes_no(chunk.has_dates),
        content=chunk.content,
        schema=ANALYSIS_JSON_SCHEMA,
        rules=ANALYSIS_RULES,
    )


def build_synthesis_prompt(analyses: Sequence[ChunkAnalysis]) -> str:
    entries = '\n'.join(
        SYNTHESIS_ENTRY_TEMPLATE.format(
            position=a.chunk_index + 1,
            size=a.size,
            critical=a.is_critical,
            analysis=a.analysis,
        )
        for a in analyses
    )
    return SYNTHESIS_PROMPT_TEMPLATE.format(count=len(analyses), analyses=entries)


def build_clause_explanation_prompt(clause_text: str, document_type: str = 'legal document') -> str:
    return CLAUSE_EXPLAIN_PROMPT_TEMPLATE.format(clause_text=clause_text, document_type=document_type)


def build_document_qa_prompt(question: str, document_text: str, document_type: str = 'legal document') -> str:
    return DOCUMENT_QA_PROMPT_TEMPLATE.format(
        question=question,
        document_text=document_text,
        document_type=document_type,
    )


def build_summary_prompt(document_text: str, document_type: str = 'legal document') -> str:
    return SUMMARY_PROMPT_TEMPLATE.format(document_text=document_text, document_type=document_type)


def build_chat_prompt(message: str, context: str = '') -> str:
    context_block = f"\nContext: {context}\n" if context else ''
    return CHAT_PROMPT_TEMPLATE.format(message=message, context_block=context_block)


_BUILDERS = {
    PromptKind.CLASSIFY: build_classification_prompt,
    PromptKind.FULL_ANALYSIS: build_full_analysis_prompt,
    PromptKind.CHUNK_ANALYSIS: build_chunk_analysis_prompt,
    PromptKind.SYNTHESIS: build_synthesis_prompt,
    PromptKind.CLAUSE_EXPLAIN: build_clause_explanation_prompt,
    PromptKind.DOCUMENT_QA: build_document_qa_prompt,
    PromptKind.SUMMARY: build_summary_prompt,
    PromptKind.CHAT: build_chat_prompt,
}


def build_prompt(kind, **params) -> str:
    """
    Build the prompt for a task kind.

    Args:
        kind: A ``PromptKind`` or its string value (e.g. ``"chunk-analysis"``).
        **params: Keyword arguments of the matching ``build_*`` function.

    Returns:
        The prompt string.

    Raises:
        ValueError: If the kind is unknown.
    """
    try:
        prompt_kind = PromptKind(kind)
    except ValueError:
        raise ValueError(f"Unknown prompt kind: {kind}")

    prompt = _BUILDERS[prompt_kind](**params)
    logger.debug(f"Built {prompt_kind.value} prompt ({len(prompt)} chars)")
    return prompt
