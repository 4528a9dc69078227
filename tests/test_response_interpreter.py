"""
Unit tests for interpreting model output.
"""
import json

import pytest

from legalease.services.response_interpreter import (
    UNSTRUCTURED_NOTE,
    decode_json_object,
    highest_risk,
    interpret_analysis,
    interpret_chunk,
    interpret_classification,
    normalize_risk_level,
    normalize_severity,
)

FULL_ANALYSIS = {
    'summary': 'A one-year lease for a residential apartment.',
    'clauses': [
        {
            'title': 'Monthly Rent Payment',
            'originalText': 'Tenant shall pay $1,200 on the first of each month.',
            'explanation': 'Rent is due monthly.',
            'riskLevel': 'Low',
            'riskAssessment': 'Standard term.',
            'legalImplications': 'Late payment is a breach.',
            'negotiationPoints': 'Ask for a grace period.',
            'industryStandard': 'Typical.',
            'keyTerms': ['rent', 'due date'],
            'importance': 'high',
        }
    ],
    'redFlags': [
        {
            'issue': 'Unlimited tenant liability',
            'severity': 'critical',
            'explanation': 'Tenant bears all damages.',
            'potentialConsequences': 'Large losses.',
            'recommendations': 'Cap liability.',
            'legalCitations': 'General contract law.',
        }
    ],
    'keyDates': [
        {'date': '2025-01-01', 'description': 'Lease starts', 'importance': 'high', 'actionRequired': 'Move in'}
    ],
    'overallRiskLevel': 'high',
    'recommendations': ['Negotiate the liability cap'],
    'missingClauses': ['Force majeure'],
    'favorability': {'forParty1': 'high', 'forParty2': 'low', 'explanation': 'Favors the landlord.'},
}


class TestDecodeJsonObject:
    """Test suite for strict JSON decoding."""

    def test_plain_object(self):
        """Test that a plain JSON object decodes."""
        assert decode_json_object('{"a": 1}') == {'a': 1}

    def test_code_fenced_object(self):
        """Test that a code-fenced JSON object decodes."""
        assert decode_json_object('```json\n{"a": 1}\n```') == {'a': 1}

    def test_object_surrounded_by_prose(self):
        """Test that a JSON object inside prose is recovered."""
        raw = 'Here is the analysis:\n{"summary": "ok"}\nLet me know if you need more.'
        assert decode_json_object(raw) == {'summary': 'ok'}

    @pytest.mark.parametrize('raw', [None, '', '   ', 'not json at all', '[1, 2, 3]', '{"broken": ', '"just a string"'])
    def test_non_objects_return_none(self, raw):
        """Test that non-object input decodes to None."""
        assert decode_json_object(raw) is None


class TestNormalisation:
    """Test suite for enum normalisation."""

    @pytest.mark.parametrize('value, expected', [
        ('low', 'low'), ('HIGH', 'high'), (' Medium ', 'medium'), ('critical', 'high'),
        ('severe', 'medium'), (None, 'medium'), (3, 'medium'),
    ])
    def test_risk_level(self, value, expected):
        """Test that risk levels normalise to low, medium or high."""
        assert normalize_risk_level(value) == expected

    @pytest.mark.parametrize('value, expected', [
        ('critical', 'critical'), ('Notice', 'notice'), ('LOW', 'low'), ('urgent', 'medium'), (None, 'medium'),
    ])
    def test_severity(self, value, expected):
        """Test that severities normalise to the known set."""
        assert normalize_severity(value) == expected

    def test_highest_risk(self):
        """Test that highest_risk picks the most severe level."""
        assert highest_risk(['low', 'medium', 'high', 'low']) == 'high'
        assert highest_risk(['low', 'low']) == 'low'
        assert highest_risk([]) == 'medium'


class TestInterpretAnalysis:
    """Test suite for interpret_analysis."""

    def test_full_json_is_decoded(self):
        """Test that a complete JSON analysis decodes into typed records."""
        result = interpret_analysis(json.dumps(FULL_ANALYSIS))

        assert result.summary == FULL_ANALYSIS['summary']
        assert result.clauses[0].title == 'Monthly Rent Payment'
        assert result.clauses[0].risk_level == 'low'
        assert result.clauses[0].key_terms == ['rent', 'due date']
        assert result.red_flags[0].severity == 'critical'
        assert result.key_dates[0].action_required == 'Move in'
        assert result.overall_risk_level == 'high'
        assert result.missing_clauses == ['Force majeure']
        assert result.favorability.for_party1 == 'high'
        assert result.note is None

    def test_round_trips_to_original_shape(self):
        """Test that a decoded analysis serialises back to the same shape."""
        data = interpret_analysis(json.dumps(FULL_ANALYSIS)).to_dict()

        expected = json.loads(json.dumps(FULL_ANALYSIS))
        expected['clauses'][0]['riskLevel'] = 'low'
        assert data == expected

    def test_partial_json_gets_defaults(self):
        """Test that missing keys get their defaults."""
        result = interpret_analysis('{"summary": "Short summary"}')

        assert result.summary == 'Short summary'
        assert result.clauses == []
        assert result.red_flags == []
        assert result.key_dates == []
        assert result.overall_risk_level == 'medium'
        assert result.recommendations == []
        assert result.missing_clauses == []
        assert result.favorability.to_dict() == {
            'forParty1': 'medium', 'forParty2': 'medium', 'explanation': 'Analysis not available',
        }

    def test_empty_object_gets_default_summary(self):
        """Test that an empty object gets the default summary."""
        assert interpret_analysis('{}').summary == 'Document analysis completed'

    def test_loose_field_types_are_coerced(self):
        """Test that loosely typed fields are coerced."""
        raw = json.dumps({
            'clauses': [{'title': 'Fees', 'keyTerms': 'fee, invoice , ', 'riskLevel': 'extreme'}, 'not a clause'],
            'redFlags': 'none',
            'recommendations': 'Get advice',
            'overallRiskLevel': 'Critical',
        })
        result = interpret_analysis(raw)

        assert len(result.clauses) == 1
        assert result.clauses[0].key_terms == ['fee', 'invoice']
        assert result.clauses[0].risk_level == 'medium'
        assert result.red_flags == []
        assert result.recommendations == ['Get advice']
        assert result.overall_risk_level == 'high'

    def test_string_valued_lists_keep_whole_sentences(self):
        """Test that a string given for a list field is kept as one item."""
        raw = json.dumps({
            'recommendations': 'Negotiate the cap on liability, ideally to 12 months of fees, before signing',
            'missingClauses': 'Governing law, including venue',
        })
        result = interpret_analysis(raw)

        assert result.recommendations == [
            'Negotiate the cap on liability, ideally to 12 months of fees, before signing'
        ]
        assert result.missing_clauses == ['Governing law, including venue']

    def test_blank_string_list_is_empty(self):
        """Test that a blank string for a list field yields an empty list."""
        assert interpret_analysis('{"recommendations": "   "}').recommendations == []

    def test_non_json_becomes_single_generic_clause(self):
        """Test that a prose reply becomes one generic clause."""
        raw = 'This agreement contains a termination clause and a payment schedule. ' * 10
        result = interpret_analysis(raw)

        assert result.summary == raw.strip()[:300] + '...'
        assert len(result.clauses) == 1
        clause = result.clauses[0]
        assert clause.title == 'AI Analysis'
        assert clause.explanation == raw.strip()
        assert clause.risk_level == 'medium'
        assert set(clause.key_terms) >= {'agreement', 'termination', 'payment'}
        assert result.recommendations == ['Review with qualified legal counsel']
        assert result.note == UNSTRUCTURED_NOTE

    def test_short_non_json_summary_has_no_ellipsis(self):
        """Test that a short prose summary is not truncated."""
        assert interpret_analysis('Brief notes only.').summary == 'Brief notes only.'

    def test_non_json_risk_is_approximated_from_keywords(self):
        """Test that prose risk is approximated from keywords."""
        assert interpret_analysis('This is a high-risk contract with severe penalties.').overall_risk_level == 'high'
        assert interpret_analysis('Balanced, standard terms throughout.').overall_risk_level == 'low'
        assert interpret_analysis('Nothing notable here.').overall_risk_level == 'medium'

    def test_non_json_result_serialises(self):
        """Test that a prose-derived result serialises with its note."""
        data = interpret_analysis('free text').to_dict()
        assert data['clauses'][0]['riskLevel'] == 'medium'
        assert data['note'] == UNSTRUCTURED_NOTE


class TestInterpretChunk:
    """Test suite for interpret_chunk."""

    def test_structured_chunk(self):
        """Test that a JSON chunk reply keeps both text and structure."""
        raw = json.dumps({'summary': 'Part one', 'clauses': [{'title': 'Payment'}]})
        reading = interpret_chunk(raw)

        assert reading.text == raw
        assert reading.structured.clauses[0].title == 'Payment'

    def test_prose_chunk(self):
        """Test that a prose chunk reply keeps trimmed text only."""
        reading = interpret_chunk('  This section covers payment.  ')

        assert reading.text == 'This section covers payment.'
        assert reading.structured is None


class TestInterpretClassification:
    """Test suite for interpret_classification."""

    def test_json_verdict(self):
        """Test that a JSON verdict is read as a model verdict."""
        verdict = interpret_classification(
            '{"isLegal": false, "documentType": "research paper", "confidence": 0.85}', 'text'
        )

        assert verdict.is_legal is False
        assert verdict.document_type == 'research paper'
        assert verdict.confidence == 0.85
        assert verdict.source == 'model'

    def test_json_verdict_with_string_values(self):
        """Test that string verdict values are coerced and clamped."""
        verdict = interpret_classification('{"isLegal": "true", "confidence": "1.7"}', 'text')

        assert verdict.is_legal is True
        assert verdict.document_type == 'unknown document'
        assert verdict.confidence == 1.0

    def test_non_json_uses_non_legal_keywords(self):
        """Test that a prose verdict falls back to non-legal keyword counts."""
        document = 'The experiment followed a rigorous methodology. Results and conclusion of the study follow.'
        verdict = interpret_classification('I believe this is a research document.', document)

        assert verdict.is_legal is False
        assert verdict.document_type == 'academic/research document'
        assert verdict.confidence == 0.6
        assert verdict.source == 'heuristic'

    def test_non_json_uses_legal_keywords(self):
        """Test that a prose verdict falls back to legal keyword counts."""
        document = 'This Agreement sets out the terms and conditions, payment obligations and liability of each party.'
        verdict = interpret_classification('Looks like a contract to me.', document)

        assert verdict.is_legal is True
        assert verdict.document_type == 'unknown document'
        assert verdict.source == 'heuristic'

    @pytest.mark.parametrize('raw', [None, '', '  '])
    def test_no_response_gives_default_verdict(self, raw):
        """Test that a missing reply yields the default verdict."""
        verdict = interpret_classification(raw, 'The experiment methodology and results.')

        assert verdict.to_dict() == {
            'isLegal': True, 'documentType': 'unknown document', 'confidence': 0.5, 'source': 'default',
        }
