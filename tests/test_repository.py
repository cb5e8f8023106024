"""
Unit tests for the SQLite repository.
"""
from datetime import date

from config import NO_CV_SUMMARY
from repository import INITIAL_QUESTIONS
from response_parsing import CVData, EducationData, ExperienceData, QuizQuestion


def make_cv(name="Jane Doe", summary="Backend engineer."):
    return CVData(
        name=name,
        email="jane@example.com",
        phone="555-0100",
        summary=summary,
        experience=[
            ExperienceData("Acme", "Engineer", date(2018, 1, 1), None, "APIs"),
            ExperienceData("Initech", "Intern", date(2016, 6, 1), date(2016, 9, 1), "Reports"),
        ],
        education=[EducationData("State University", "BSc", "CS", date(2012, 9, 1), date(2016, 6, 1))],
        skills=["Python", "SQL"],
    )


def test_save_and_load_cv(repository):
    saved = repository.save_cv(make_cv())

    latest = repository.latest_cv()
    assert latest.id == saved.id
    assert latest.skills == ["Python", "SQL"]
    assert {e.company for e in repository.experiences_for(saved.id)} == {"Acme", "Initech"}
    assert repository.education_for(saved.id)[0].degree == "BSc"


def test_delete_cv_removes_children(repository):
    saved = repository.save_cv(make_cv())
    repository.delete_cv(saved.id)

    assert repository.latest_cv() is None
    assert repository.experiences_for(saved.id) == []
    assert repository.education_for(saved.id) == []


def test_cv_summary_context(repository):
    assert repository.cv_summary_context() == NO_CV_SUMMARY
    repository.save_cv(make_cv(summary="Ten years of distributed systems."))
    assert repository.cv_summary_context() == "Ten years of distributed systems."


def test_cv_summary_context_with_blank_summary(repository):
    repository.save_cv(make_cv(summary=""))
    assert repository.cv_summary_context() == NO_CV_SUMMARY


def test_seed_initial_questions_is_idempotent(repository):
    first = repository.seed_initial_questions()
    second = repository.seed_initial_questions()

    assert len(first) == len(INITIAL_QUESTIONS)
    assert {q.id for q in first} == {q.id for q in second}
    assert all(q.job_role == "Software Engineer" for q in second)


def test_save_response_with_feedback(repository):
    question = repository.seed_initial_questions()[0]

    response = repository.save_response(question.id, "I build APIs.", feedback_text="Add metrics.",
                                        feedback_score=0.7)

    assert [r.text for r in repository.responses_for(question.id)] == ["I build APIs."]
    feedback = repository.feedback_for(response.id)
    assert feedback[0].text == "Add metrics."
    assert feedback[0].score == 0.7
    stored = next(q for q in repository.list_questions() if q.id == question.id)
    assert stored.has_response


def test_interview_session_record(repository):
    record = repository.start_interview_session("Data Scientist", "Practice")
    assert record.job_role == "Data Scientist"
    assert record.id is not None


def test_quiz_results_round_trip(repository):
    questions = [
        QuizQuestion("Q1", ["a", "b"], 0),
        QuizQuestion("Q2", ["a", "b", "c"], 2),
    ]
    result = repository.save_quiz_result("Technical Knowledge", 1, questions, [0, None], 42.5)

    assert [r.id for r in repository.list_quiz_results()] == [result.id]
    details = sorted(repository.question_results_for(result.id), key=lambda r: r.question_text)
    assert details[0].selected_option_index == 0
    assert details[1].selected_option_index is None
    assert details[1].options == ["a", "b", "c"]

    assert repository.delete_all_quiz_results() == 1
    assert repository.list_quiz_results() == []
    assert repository.question_results_for(result.id) == []
