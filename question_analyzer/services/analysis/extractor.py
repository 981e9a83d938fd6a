"""
Question Extractor — User request text → sentence-like question candidates.

Pure functions, no deduplication (clustering handles that).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from question_analyzer.models.analysis import DialogTurn

_REQUEST_TYPE = "request"

# Sentence endings followed by whitespace, or any line break.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+|\s*\n\s*")


def split_sentences(text: str) -> list[str]:
    """Split text on sentence punctuation and line breaks, dropping blanks."""
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(text) if s and s.strip()]


def extract_questions(turns: Iterable[DialogTurn]) -> list[str]:
    """Concatenate request-turn queries in order and split into sentences."""
    queries = [
        t.query.strip()
        for t in turns
        if t.type == _REQUEST_TYPE and t.query and t.query.strip()
    ]
    if not queries:
        return []
    return split_sentences("\n".join(queries))
