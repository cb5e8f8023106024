"""
Unit tests for LLM response cleanup and payload decoding.
"""
import json
from datetime import date

import pytest

from response_parsing import (
    InvalidResponseError,
    JSONParsingError,
    QuizGenerationError,
    clean_json_string,
    parse_cv_data,
    parse_question_list,
    parse_quiz_questions,
    strip_markdown_fences,
)

CV_PAYLOAD = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "+1 555 0100",
    "summary": "Backend engineer with eight years of Python.",
    "experience": [
        {
            "company": "Acme",
            "position": "Senior Engineer",
            "startDate": "2019-03-01",
            "endDate": None,
            "jobDescription": "Built billing services.",
        }
    ],
    "education": [
        {
            "institution": "State University",
            "degree": "BSc",
            "field": "Computer Science",
            "startDate": "2011-09-01",
            "endDate": "2015-06-30",
        }
    ],
    "skills": ["Python", "PostgreSQL"],
}


def test_strip_markdown_fences():
    assert strip_markdown_fences('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_clean_json_string_trims_prose_and_symbols():
    raw = 'Sure! ```json\n{"a": "x • y z"}\n``` Hope this helps'
    assert clean_json_string(raw) == '{"a": "x - y z"}'


def test_clean_json_string_drops_escaped_control_characters():
    cleaned = clean_json_string('{"a": "line1\\nline2"}')
    assert json.loads(cleaned) == {"a": "line1line2"}


def test_clean_json_string_adds_missing_braces():
    assert clean_json_string('"a": 1') == '{"a": 1}'


def test_parse_cv_data():
    """Test decoding a CV wrapped in prose and fences."""
    response = "Here is the CV:\n```json\n" + json.dumps(CV_PAYLOAD) + "\n```"
    cv = parse_cv_data(response)

    assert cv.name == "Jane Doe"
    assert cv.skills == ["Python", "PostgreSQL"]
    assert cv.experience[0].start_date == date(2019, 3, 1)
    assert cv.experience[0].end_date is None
    assert cv.education[0].field == "Computer Science"
    assert cv.education[0].end_date == date(2015, 6, 30)


def test_parse_cv_data_rejects_bad_date():
    payload = json.loads(json.dumps(CV_PAYLOAD))
    payload["experience"][0]["startDate"] = "March 2019"
    with pytest.raises(JSONParsingError, match="YYYY-MM-DD"):
        parse_cv_data(json.dumps(payload))


def test_parse_cv_data_requires_experience_start():
    payload = json.loads(json.dumps(CV_PAYLOAD))
    del payload["experience"][0]["startDate"]
    with pytest.raises(JSONParsingError):
        parse_cv_data(json.dumps(payload))


def test_parse_cv_data_requires_name():
    payload = dict(CV_PAYLOAD)
    del payload["name"]
    with pytest.raises(JSONParsingError, match="name"):
        parse_cv_data(json.dumps(payload))


def test_parse_cv_data_without_json():
    with pytest.raises(InvalidResponseError):
        parse_cv_data("I could not read that CV.")


def test_parse_cv_data_with_broken_json():
    with pytest.raises(InvalidResponseError):
        parse_cv_data('{"name": }')


def test_parse_quiz_questions():
    response = json.dumps({"questions": [
        {"questionText": "What does GIL stand for?",
         "options": ["Global Interpreter Lock", "General Input Loop", "Graph Index Layer", "None"],
         "correctOptionIndex": 0},
    ]})
    questions = parse_quiz_questions("```json\n" + response + "\n```", "Technical Knowledge")
    assert len(questions) == 1
    assert questions[0].options[0] == "Global Interpreter Lock"
    assert questions[0].correct_option_index == 0
    assert questions[0].category == "Technical Knowledge"


def test_parse_quiz_questions_rejects_out_of_range_answer():
    response = json.dumps({"questions": [
        {"questionText": "Q", "options": ["a", "b", "c", "d"], "correctOptionIndex": 4},
    ]})
    with pytest.raises(QuizGenerationError, match="out of range"):
        parse_quiz_questions(response)


@pytest.mark.parametrize("options", [
    "Global Interpreter Lock",
    ["a", "b", "c"],
    ["a", "b", "c", "d", "e"],
    ["a", "b", 3, "d"],
    None,
])
def test_parse_quiz_questions_requires_four_text_options(options):
    """Options must be a list of exactly four strings; a bare string is not split into letters."""
    response = json.dumps({"questions": [
        {"questionText": "Q", "options": options, "correctOptionIndex": 0},
    ]})
    with pytest.raises(QuizGenerationError, match="expected 4 text options"):
        parse_quiz_questions(response)


def test_parse_quiz_questions_rejects_missing_keys():
    with pytest.raises(QuizGenerationError):
        parse_quiz_questions('{"questions": [{"questionText": "Q"}]}')
    with pytest.raises(QuizGenerationError):
        parse_quiz_questions("not json")


def test_parse_question_list():
    response = 'Questions:\n```json\n["How would you scale Postgres?", "Explain asyncio."]\n```'
    assert parse_question_list(response) == ["How would you scale Postgres?", "Explain asyncio."]


def test_parse_question_list_rejects_objects():
    with pytest.raises(JSONParsingError):
        parse_question_list('[{"q": 1}]')
