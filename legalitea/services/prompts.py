# prompts.py
# Prompt templates sent to Gemini. The JSON skeletons are the contract the routes hand back to the UI.
from typing import Optional

from legalitea.languages import get_language_name

QUIZ_EXCERPT_LENGTH = 2000

ANALYSIS_SCHEMA = """{
  "summary": {
    "tldr": "One clear sentence summary in plain English",
    "keyPoints": ["3-5 bullet points of main provisions in simple language"],
    "confidence": 0.85
  },
  "keyInformation": {
    "parties": ["List of parties involved"],
    "dates": [{"date": "YYYY-MM-DD", "description": "what this date is for", "importance": "high/medium/low"}],
    "monetaryAmounts": [{"amount": "$X", "currency": "USD", "description": "what this is for", "type": "payment/penalty/deposit/fee"}],
    "obligations": ["List of key obligations and responsibilities in plain English"]
  },
  "riskAssessment": {
    "overallRisk": "low/medium/high",
    "redFlags": [{"clause": "clause name", "risk": "what could go wrong", "severity": "high/medium/low", "explanation": "why this is risky in simple terms", "originalText": "exact text from document"}],
    "recommendations": ["List of practical recommendations"]
  },
  "actionPlan": [{"id": "1", "task": "specific action to take", "priority": "high/medium/low", "deadline": "when to do this or null", "completed": false}],
  "interactiveTerms": [{"term": "legal term", "definition": "simple explanation", "positions": [{"start": 0, "end": 10}], "category": "legal|financial|temporal|obligation", "complexity": "basic|intermediate|advanced"}],
  "clauseSimplifications": [{"originalClause": "complex legal text", "simplifiedClause": "plain English version", "confidence": 0.9, "clauseType": "obligation|right|condition|penalty"}],
  "contractVisualization": {
    "mermaidDiagram": "graph TD\\n    A[Party 1] -->|obligation| B[Party 2]",
    "nodes": [{"id": "A", "label": "Party 1", "type": "party"}],
    "relationships": [{"from": "A", "to": "B", "type": "obligation", "description": "specific obligation"}]
  },
  "realLifeScenarios": [{"title": "What if scenario", "situation": "realistic situation", "consequences": ["consequence 1"], "severity": "low|medium|high", "relatedClauses": ["clause reference"]}],
  "smartGlossary": [{"term": "legal term", "definition": "simple definition", "category": "legal|financial|temporal", "frequency": 3, "importance": "high|medium|low"}]
}"""


def build_analysis_prompt(text: str, language: str) -> str:
    language_name = get_language_name(language)
    return (
        "You are a legal document analysis assistant helping people who are not lawyers. "
        "Analyze the document below and respond with ONLY a valid JSON object in exactly this format:\n\n"
        f"{ANALYSIS_SCHEMA}\n\n"
        "Guidelines:\n"
        "- Use simple, non-legal language\n"
        "- Be specific about dates, amounts and obligations\n"
        "- Highlight unusual or concerning clauses and give actionable recommendations\n"
        "- Quote originalText word for word from the document, never invent it\n"
        "- Make sure the JSON is valid\n\n"
        f"Write every explanation, summary and recommendation in {language_name}.\n\n"
        f"Document to analyze:\n\n{text}"
    )


def build_term_prompt(term: str, context: Optional[str], document_type: Optional[str], language: str) -> str:
    return (
        "You are a legal term explanation assistant. Explain the term below clearly and concisely. "
        "Respond with ONLY a valid JSON object in this format:\n"
        "{\n"
        f'  "term": "{term}",\n'
        '  "definition": "Simple, clear definition in plain language",\n'
        '  "contextualDefinition": "How this term applies in the context provided",\n'
        '  "category": "legal|financial|temporal|obligation|right|condition",\n'
        '  "complexity": "basic|intermediate|advanced",\n'
        '  "examples": ["practical example 1", "practical example 2"],\n'
        '  "relatedTerms": ["related term 1", "related term 2"],\n'
        '  "consequences": "What happens if this term is violated or activated"\n'
        "}\n\n"
        f'Term to explain: "{term}"\n'
        f'Context: "{context or "General legal context"}"\n'
        f'Document type: "{document_type or "legal document"}"\n\n'
        f"Provide the explanation in {get_language_name(language)}."
    )


def build_scenario_prompt(clause: str, document_type: Optional[str], language: str) -> str:
    return (
        "You are a legal scenario generator. Create 3 realistic, practical scenarios that show what this "
        "clause means for the people who sign it. Respond with ONLY a valid JSON object:\n"
        "{\n"
        '  "scenarios": [\n'
        "    {\n"
        '      "id": "scenario_1",\n'
        '      "title": "Descriptive scenario title",\n'
        '      "situation": "Realistic situation description",\n'
        '      "trigger": "What causes this scenario",\n'
        '      "consequences": ["consequence 1", "consequence 2"],\n'
        '      "severity": "low|medium|high",\n'
        '      "likelihood": "low|medium|high",\n'
        '      "prevention": "How to avoid this scenario",\n'
        '      "proTip": "Practical advice"\n'
        "    }\n"
        "  ]\n"
        "}\n\n"
        f'Clause to analyze: "{clause}"\n'
        f'Document type: "{document_type or "legal document"}"\n\n'
        f"Write the scenarios in {get_language_name(language)} and keep them easy to understand."
    )


def build_quiz_prompt(document_text: str, difficulty: str, language: str) -> str:
    excerpt = document_text[:QUIZ_EXCERPT_LENGTH]
    return (
        "You are a legal education quiz generator. Write 5 questions of varying types that test practical "
        "understanding of the document, not memorization. Respond with ONLY a valid JSON object:\n"
        "{\n"
        '  "quiz": {\n'
        '    "title": "Legal Document Quiz",\n'
        f'    "difficulty": "{difficulty}",\n'
        '    "questions": [\n'
        "      {\n"
        '        "id": "q1",\n'
        '        "type": "multiple_choice|true_false|fill_blank",\n'
        '        "question": "Question text",\n'
        '        "options": ["option 1", "option 2", "option 3", "option 4"],\n'
        '        "correctAnswer": "correct option or index",\n'
        '        "explanation": "Why this is the correct answer",\n'
        '        "points": 10,\n'
        '        "category": "terms|clauses|obligations|rights"\n'
        "      }\n"
        "    ]\n"
        "  }\n"
        "}\n\n"
        f'Document excerpt: "{excerpt}..."\n'
        f"Difficulty level: {difficulty}\n\n"
        f"Write the quiz in {get_language_name(language)}."
    )
