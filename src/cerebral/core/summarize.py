"""Bounded-length digests of agent responses."""

from __future__ import annotations

import re

ELLIPSIS = "..."
# Sentences this short are usually list markers or headings, not content.
MIN_SENTENCE_CHARS = 20
SUMMARY_MARGIN = 20

_SENTENCE_SPLIT = re.compile(r"[.!?]\s+")


def summarize_response(message: str, max_length: int = 300) -> str:
    """Compress ``message`` to roughly ``max_length`` characters.

    Whole sentences are kept from the start while they fit inside
    ``max_length - SUMMARY_MARGIN``. When not even one sentence fits, the
    message is hard-cut and ``...`` appended.
    """
    if len(message) <= max_length:
        return message

    sentences = [s for s in _SENTENCE_SPLIT.split(message) if len(s) > MIN_SENTENCE_CHARS]
    summary = ""
    for sentence in sentences:
        if len(summary + sentence) > max_length - SUMMARY_MARGIN:
            break
        summary += sentence + ". "

    return summary.strip() or message[:max_length] + ELLIPSIS


def truncate_for_speech(text: str, max_chars: int = 1000) -> str:
    """Shorten text before speech synthesis.

    Cuts after the last sentence terminator if it lies in the final 30% of
    the budget, otherwise hard-cuts and appends ``...``.
    """
    if len(text) <= max_chars:
        return text

    truncated = text[:max_chars]
    last_sentence_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_sentence_end > max_chars * 0.7:
        return text[: last_sentence_end + 1]
    return truncated + ELLIPSIS
