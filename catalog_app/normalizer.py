# catalog_app/normalizer.py
"""
Canonical keys for catalog titles and release file names.

Both functions are total: any input (including None) yields a string and
nothing here raises. Keys are compared for equality (file names) or edit
distance (titles), so the exact steps and the tag vocabulary are part of the
matching contract.
"""

import logging
import os
import re
import unicodedata
from typing import Any, Tuple

log = logging.getLogger(__name__)

# Bump the version whenever the vocabulary changes: stored file name keys
# computed with another version will no longer compare equal.
RELEASE_TAG_VOCABULARY_VERSION = 1
RELEASE_TAG_VOCABULARY: Tuple[str, ...] = (
    "1080p", "720p", "480p", "multi", "x264", "x265", "h264", "h265", "hevc",
    "bdrip", "dvdrip", "webrip", "webdl", "vostfr", "vf", "truefrench",
    "aac", "dts", "ac3", "opus", "flac", "complete", "uncut", "bluray",
    "hddvd", "remux", "hdr", "sdr",
)

STRIPPABLE_EXTENSIONS = frozenset({
    ".mkv", ".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mpg", ".mpeg",
    ".m4v", ".ts", ".m2ts", ".nfo",
})

_WHITESPACE_RE = re.compile(r"\s+")
_BRACKETED_RE = re.compile(r"(\[.*?\]|\(.*?\))")
_RELEASE_TAG_RE = re.compile(
    r"\b(" + "|".join(re.escape(tag) for tag in RELEASE_TAG_VOCABULARY) + r")\b",
    re.IGNORECASE,
)
_SEPARATORS_RE = re.compile(r"[\s.\-_']+")


def _as_text(raw: Any) -> str:
    if raw is None: return ""
    return raw if isinstance(raw, str) else str(raw)


def normalize_title(raw: Any) -> str:
    """Diacritic-free, lowercase, punctuation-free title with single spaces."""
    text = _as_text(raw)
    if not text.strip():
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    without_marks = "".join(ch for ch in decomposed if not unicodedata.category(ch).startswith("M"))
    lowered = without_marks.lower()
    kept = "".join(ch for ch in lowered if ch.isalnum() or ch.isspace())
    return _WHITESPACE_RE.sub(" ", kept).strip()


def strip_known_extension(name: str) -> str:
    """Removes one trailing media/sidecar extension; unknown suffixes stay."""
    stem, ext = os.path.splitext(name)
    if ext and ext.lower() in STRIPPABLE_EXTENSIONS:
        return stem
    return name


def normalize_filename(raw: Any) -> str:
    """Release file name reduced to the words that identify the episode."""
    text = _as_text(raw)
    if not text.strip():
        return ""
    normalized = strip_known_extension(text.strip()).lower()
    normalized = _BRACKETED_RE.sub(" ", normalized)
    normalized = _RELEASE_TAG_RE.sub(" ", normalized)
    normalized = _SEPARATORS_RE.sub(" ", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()
    log.debug(f"Normalized file name '{text}' to '{normalized}'")
    return normalized
