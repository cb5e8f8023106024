"""Picks the questions out of a transcribed interviewer utterance."""

from __future__ import annotations

import re

QUESTION_WORDS = {
    "what", "why", "how", "where", "when", "which", "who",
    "do", "does", "did", "can", "could", "should", "would",
    "is", "are", "will", "shall", "may", "might",
}

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")


def is_question(sentence: str) -> bool:
    words = sentence.lower().split()
    return bool(words) and words[0].strip(",;:") in QUESTION_WORDS


def detect_questions(text: str) -> str:
    """Return the question sentences of `text`, each ending in '?', space-joined."""
    questions = []
    for sentence in _SENTENCE_SPLIT_RE.split(text):
        trimmed = sentence.strip()
        if is_question(trimmed):
            questions.append(trimmed + "?")
    return " ".join(questions)


def extract_question(text: str) -> str:
    """Detected questions, or the whole transcript when none were found."""
    return detect_questions(text) or text.strip()
