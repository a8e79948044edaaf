"""Output languages the analysis prompts can ask Gemini to answer in."""

from __future__ import annotations

from typing import Dict, List


SUPPORTED_LANGUAGES: List[Dict[str, str]] = [
    {"code": "en", "name": "English", "nativeName": "English"},
    {"code": "es", "name": "Spanish", "nativeName": "Español"},
    {"code": "fr", "name": "French", "nativeName": "Français"},
    {"code": "de", "name": "German", "nativeName": "Deutsch"},
    {"code": "it", "name": "Italian", "nativeName": "Italiano"},
    {"code": "pt", "name": "Portuguese", "nativeName": "Português"},
    {"code": "nl", "name": "Dutch", "nativeName": "Nederlands"},
    {"code": "ru", "name": "Russian", "nativeName": "Русский"},
    {"code": "zh", "name": "Chinese", "nativeName": "中文"},
    {"code": "ja", "name": "Japanese", "nativeName": "日本語"},
    {"code": "ko", "name": "Korean", "nativeName": "한국어"},
    {"code": "hi", "name": "Hindi", "nativeName": "हिन्दी"},
    {"code": "kn", "name": "Kannada", "nativeName": "ಕನ್ನಡ"},
    {"code": "gu", "name": "Gujarati", "nativeName": "ગુજરાતી"},
    {"code": "ar", "name": "Arabic", "nativeName": "العربية"},
]

_NAMES_BY_CODE = {language["code"]: language["name"] for language in SUPPORTED_LANGUAGES}


def get_language_name(code: str) -> str:
    """Return the English name for ``code``, defaulting to English."""
    return _NAMES_BY_CODE.get((code or "").lower(), "English")


def is_language_supported(code: str) -> bool:
    return (code or "").lower() in _NAMES_BY_CODE


def get_supported_languages() -> List[Dict[str, str]]:
    return [dict(language) for language in SUPPORTED_LANGUAGES]


__all__ = ["SUPPORTED_LANGUAGES", "get_language_name", "is_language_supported", "get_supported_languages"]
