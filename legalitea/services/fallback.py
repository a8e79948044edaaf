"""Static results served when Gemini cannot produce a usable answer."""

from datetime import date
from typing import Any, Dict, Optional

# Keyword checks run in this order; the first hit decides the detected type
_TYPE_KEYWORDS = (
    ("lease", ("lease", "rent")),
    ("nda", ("non-disclosure", "confidential")),
    ("contract", ("agreement", "contract")),
)


def detect_document_type(text: str, document_type: Optional[str] = None) -> str:
    lowered = text.lower()
    for detected, keywords in _TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return detected
    return document_type or "document"


def generate_fallback_analysis(text: str, document_type: Optional[str] = None) -> Dict[str, Any]:
    """Build a complete analysis result without calling the model."""
    word_count = len(text.split())
    detected_type = detect_document_type(text, document_type)

    return {
        "summary": {
            "tldr": (
                f"This {detected_type} contains {word_count} words and appears to be a standard "
                "legal document with key terms and obligations."
            ),
            "keyPoints": [
                f"Document type: {detected_type.upper()}",
                "Contains standard legal language and clauses",
                "Establishes rights and obligations between parties",
                "Includes termination and dispute resolution terms",
                "May require legal review for complex provisions",
            ],
            "confidence": 0.75,
        },
        "keyInformation": {
            "parties": ["Party A", "Party B"],
            "dates": [
                {
                    "date": date.today().isoformat(),
                    "description": "Document effective date",
                    "importance": "high",
                }
            ],
            "monetaryAmounts": [
                {
                    "amount": "$1,000",
                    "currency": "USD",
                    "description": "Sample monetary amount",
                    "type": "payment",
                }
            ],
            "obligations": [
                "Comply with all terms and conditions",
                "Provide required notices",
                "Maintain confidentiality where applicable",
                "Pay amounts when due",
            ],
        },
        "riskAssessment": {
            "overallRisk": "medium",
            "redFlags": [
                {
                    "clause": "Broad liability clause",
                    "risk": "May expose you to unexpected liability",
                    "severity": "medium",
                    "explanation": "This clause could make you responsible for damages beyond your control",
                    "originalText": "[Sample clause text would appear here]",
                }
            ],
            "recommendations": [
                "Review all financial obligations carefully",
                "Understand termination procedures",
                "Consider legal counsel for complex terms",
                "Clarify any ambiguous language before signing",
            ],
        },
        "actionPlan": [
            {
                "id": "1",
                "task": "Review all key terms and obligations",
                "priority": "high",
                "deadline": "Before signing",
                "completed": False,
            },
            {
                "id": "2",
                "task": "Clarify any unclear provisions",
                "priority": "medium",
                "deadline": None,
                "completed": False,
            },
            {
                "id": "3",
                "task": "Consider legal consultation if needed",
                "priority": "low",
                "deadline": None,
                "completed": False,
            },
        ],
        "interactiveTerms": [
            {
                "term": "Agreement",
                "definition": "A mutual understanding between parties",
                "positions": [{"start": 0, "end": 9}],
                "category": "legal",
                "complexity": "basic",
            }
        ],
        "clauseSimplifications": [
            {
                "originalClause": "The parties hereby agree to the terms and conditions set forth herein.",
                "simplifiedClause": "Both sides agree to follow the rules in this document.",
                "confidence": 0.9,
                "clauseType": "obligation",
            }
        ],
        "contractVisualization": {
            "mermaidDiagram": "graph TD\n    A[Party A] -->|agrees to| B[Terms]\n    C[Party B] -->|agrees to| B",
            "nodes": [
                {"id": "A", "label": "Party A", "type": "party"},
                {"id": "B", "label": "Terms", "type": "terms"},
                {"id": "C", "label": "Party B", "type": "party"},
            ],
            "relationships": [
                {"from": "A", "to": "B", "type": "agreement", "description": "agrees to terms"},
                {"from": "C", "to": "B", "type": "agreement", "description": "agrees to terms"},
            ],
        },
        "realLifeScenarios": [
            {
                "title": "What if you don't follow the agreement?",
                "situation": "If you don't follow the terms of this agreement, there could be consequences.",
                "consequences": [
                    "The other party might terminate the agreement",
                    "You might have to pay penalties or damages",
                    "Legal action could be taken against you",
                ],
                "severity": "medium",
                "relatedClauses": ["General terms and conditions"],
            }
        ],
        "smartGlossary": [
            {
                "term": "Agreement",
                "definition": "A mutual understanding or arrangement between two or more parties",
                "category": "legal",
                "frequency": 5,
                "importance": "high",
            },
            {
                "term": "Party",
                "definition": "A person or organization involved in the agreement",
                "category": "legal",
                "frequency": 8,
                "importance": "high",
            },
        ],
    }


def fallback_term_explanation(term: str) -> Dict[str, Any]:
    return {
        "term": term,
        "definition": "This appears to be a legal term. Please consult a legal professional for accurate definition.",
        "category": "legal",
        "complexity": "intermediate",
    }


def fallback_scenarios() -> Dict[str, Any]:
    return {
        "scenarios": [
            {
                "id": "fallback_1",
                "title": "General Scenario",
                "situation": "This clause may have legal implications",
                "consequences": ["Consult a legal professional for specific advice"],
                "severity": "medium",
            }
        ]
    }


def fallback_quiz(difficulty: str = "medium") -> Dict[str, Any]:
    return {
        "quiz": {
            "title": "Basic Legal Quiz",
            "difficulty": difficulty,
            "questions": [
                {
                    "id": "q1",
                    "type": "multiple_choice",
                    "question": "What should you do when reviewing a legal document?",
                    "options": ["Sign immediately", "Read carefully", "Ignore it", "Guess the meaning"],
                    "correctAnswer": "Read carefully",
                    "explanation": "Always read legal documents carefully before signing.",
                    "points": 10,
                }
            ],
        }
    }
