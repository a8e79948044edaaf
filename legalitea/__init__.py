"""LegaliTea: plain-language analysis of legal documents backed by Gemini."""

__version__ = "1.0.0"
