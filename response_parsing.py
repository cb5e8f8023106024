"""
LLM Response Parsing
=====================
Gemini is asked for raw JSON but routinely wraps it in markdown fences,
prefixes it with prose, or double-escapes it. These helpers clean that up
and decode the CV, quiz and question-list payloads.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from prompts import QUIZ_OPTION_COUNT

logger = logging.getLogger(__name__)


# ─── Errors ───────────────────────────────────────────────────────────────────

class CVProcessingError(Exception):
    """Base for failures while importing a CV."""


class InvalidResponseError(CVProcessingError):
    def __init__(self, message: str = "Failed to get a valid response from the AI service"):
        super().__init__(message)


class InvalidFileFormatError(CVProcessingError):
    def __init__(self, message: str = "The file format is not supported. Please use a text or PDF file"):
        super().__init__(message)


class JSONParsingError(CVProcessingError):
    def __init__(self, details: str):
        super().__init__(f"Failed to parse the AI service response: {details}")
        self.details = details


class StorageError(CVProcessingError):
    def __init__(self, cause: Exception):
        super().__init__(f"Failed to save CV information: {cause}")
        self.cause = cause


# ─── Cleanup ──────────────────────────────────────────────────────────────────

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def strip_markdown_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def extract_json_object(text: str) -> str:
    """Slice from the first '{' to the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        logger.warning("Failed to find JSON content in response")
        raise InvalidResponseError()
    return text[start:end + 1]


def clean_json_string(text: str) -> str:
    cleaned = strip_markdown_fences(text)

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1 and end > start:
        cleaned = cleaned[start:end + 1]

    # Undo double escaping
    cleaned = (
        cleaned.replace("\\\\", "\\")
        .replace('\\"', '"')
        .replace("\\n", "\n")
        .replace("\\r", "\r")
        .replace("\\t", "\t")
    )

    cleaned = cleaned.replace("•", "-").replace("\u00a0", " ")
    cleaned = _CONTROL_CHARS_RE.sub("", cleaned)

    if not cleaned.startswith("{"):
        cleaned = "{" + cleaned
    if not cleaned.endswith("}"):
        cleaned = cleaned + "}"
    return cleaned


# ─── CV payload ───────────────────────────────────────────────────────────────

@dataclass
class ExperienceData:
    company: str
    position: str
    start_date: date
    end_date: Optional[date]
    job_description: str


@dataclass
class EducationData:
    institution: str
    degree: Optional[str] = None
    field: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class CVData:
    name: str
    email: str
    phone: str
    summary: str
    experience: list[ExperienceData] = field(default_factory=list)
    education: list[EducationData] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)


def _parse_date(value, key: str, required: bool = False) -> Optional[date]:
    if value in (None, ""):
        if required:
            raise JSONParsingError(f"missing required date '{key}'")
        return None
    if not isinstance(value, str):
        raise JSONParsingError(f"'{key}' is not a string")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise JSONParsingError(f"'{key}' is not in YYYY-MM-DD format: {value!r}")


def _require_str(obj: dict, key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise JSONParsingError(f"missing or invalid field '{key}'")
    return value


def _optional_str(obj: dict, key: str) -> Optional[str]:
    value = obj.get(key)
    return value if isinstance(value, str) else None


def parse_cv_data(response: str) -> CVData:
    """Decode the CV extraction response into CVData."""
    json_content = extract_json_object(response)
    cleaned = clean_json_string(json_content)

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON validation error: {e}")
        raise InvalidResponseError() from e
    if not isinstance(payload, dict):
        raise InvalidResponseError()

    experience = []
    for exp in payload.get("experience") or []:
        if not isinstance(exp, dict):
            raise JSONParsingError("experience entries must be objects")
        experience.append(ExperienceData(
            company=_require_str(exp, "company"),
            position=_require_str(exp, "position"),
            start_date=_parse_date(exp.get("startDate"), "startDate", required=True),
            end_date=_parse_date(exp.get("endDate"), "endDate"),
            job_description=_require_str(exp, "jobDescription"),
        ))

    education = []
    for edu in payload.get("education") or []:
        if not isinstance(edu, dict):
            raise JSONParsingError("education entries must be objects")
        education.append(EducationData(
            institution=_require_str(edu, "institution"),
            degree=_optional_str(edu, "degree"),
            field=_optional_str(edu, "field"),
            start_date=_parse_date(edu.get("startDate"), "startDate"),
            end_date=_parse_date(edu.get("endDate"), "endDate"),
        ))

    skills = payload.get("skills") or []
    if not isinstance(skills, list) or not all(isinstance(s, str) for s in skills):
        raise JSONParsingError("'skills' must be a list of strings")

    return CVData(
        name=_require_str(payload, "name"),
        email=_require_str(payload, "email"),
        phone=_require_str(payload, "phone"),
        summary=_require_str(payload, "summary"),
        experience=experience,
        education=education,
        skills=skills,
    )


# ─── Quiz payload ─────────────────────────────────────────────────────────────

class QuizGenerationError(Exception):
    pass


@dataclass
class QuizQuestion:
    question_text: str
    options: list[str]
    correct_option_index: int
    category: Optional[str] = None


def parse_quiz_questions(response: str, category: Optional[str] = None) -> list[QuizQuestion]:
    cleaned = strip_markdown_fences(response)
    try:
        payload = json.loads(cleaned)
        raw_questions = payload["questions"]
        if not isinstance(raw_questions, list):
            raise TypeError("'questions' is not a list")
        questions = []
        for q in raw_questions:
            options = q["options"]
            if (not isinstance(options, list) or len(options) != QUIZ_OPTION_COUNT
                    or not all(isinstance(o, str) for o in options)):
                raise QuizGenerationError(
                    f"Failed to parse questions: expected {QUIZ_OPTION_COUNT} text options, got {options!r}"
                )
            questions.append(QuizQuestion(
                question_text=str(q["questionText"]),
                options=options,
                correct_option_index=int(q["correctOptionIndex"]),
                category=category,
            ))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        logger.error(f"Quiz JSON parsing error: {e}; raw response: {response!r}")
        raise QuizGenerationError(f"Failed to parse questions: {e}") from e

    for q in questions:
        if not 0 <= q.correct_option_index < len(q.options):
            raise QuizGenerationError(
                f"Failed to parse questions: correct option {q.correct_option_index} "
                f"out of range for {len(q.options)} options"
            )
    return questions


def parse_question_list(response: str) -> list[str]:
    """Decode a JSON array of question strings."""
    cleaned = strip_markdown_fences(response)
    start, end = cleaned.find("["), cleaned.rfind("]")
    if start != -1 and end > start:
        cleaned = cleaned[start:end + 1]
    try:
        questions = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise JSONParsingError(str(e)) from e
    if not isinstance(questions, list) or not all(isinstance(q, str) for q in questions):
        raise JSONParsingError("expected a JSON array of strings")
    return questions
