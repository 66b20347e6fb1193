"""SRT to WebVTT conversion and language-code normalization."""

from __future__ import annotations

import re

_SRT_TIMESTAMP_RE = re.compile(r"(\d{2}:\d{2}:\d{2}),(\d{3})")

# ISO 639-2 (bibliographic and terminologic) to ISO 639-1.
_ISO639_2_TO_1: dict[str, str] = {
    "eng": "en",
    "spa": "es",
    "fra": "fr",
    "fre": "fr",
    "deu": "de",
    "ger": "de",
    "ita": "it",
    "por": "pt",
    "pob": "pt",
    "rus": "ru",
    "jpn": "ja",
    "kor": "ko",
    "zho": "zh",
    "chi": "zh",
    "ara": "ar",
    "hin": "hi",
    "nld": "nl",
    "dut": "nl",
    "pol": "pl",
    "tur": "tr",
    "swe": "sv",
    "nor": "no",
    "dan": "da",
    "fin": "fi",
    "ces": "cs",
    "cze": "cs",
    "ell": "el",
    "gre": "el",
    "heb": "he",
    "hun": "hu",
    "ron": "ro",
    "rum": "ro",
    "tha": "th",
    "vie": "vi",
    "ind": "id",
    "ukr": "uk",
}

_DISPLAY_NAMES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "hi": "Hindi",
    "nl": "Dutch",
    "pl": "Polish",
    "tr": "Turkish",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
    "cs": "Czech",
    "el": "Greek",
    "he": "Hebrew",
    "hu": "Hungarian",
    "ro": "Romanian",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "uk": "Ukrainian",
}


def srt_to_webvtt(content: str) -> str:
    """Convert SubRip text to WebVTT.

    Content that already carries a WEBVTT header is only normalized.
    """
    text = content.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    text = text.lstrip()
    if text.startswith("WEBVTT"):
        return text
    return "WEBVTT\n\n" + _SRT_TIMESTAMP_RE.sub(r"\1.\2", text)


def normalize_language_code(code: str | None) -> str:
    """Normalize a language code to ISO 639-1 (2 letters, lowercase).

    Regional suffixes are dropped ("pt-BR" -> "pt"); unknown 3-letter
    codes are truncated to their first two letters.
    """
    if not code:
        return ""
    base = code.strip().lower().replace("_", "-").split("-")[0]
    if len(base) == 3:
        return _ISO639_2_TO_1.get(base, base[:2])
    return base[:2]


def language_display_name(code: str) -> str:
    """Human-readable language name; unknown codes are upper-cased."""
    normalized = normalize_language_code(code)
    return _DISPLAY_NAMES.get(normalized, normalized.upper())
