from question_detector import detect_questions, extract_question, is_question


def test_is_question():
    assert is_question("What is your biggest strength")
    assert is_question("Could, you walk me through it")
    assert not is_question("Thanks for coming in")
    assert not is_question("")


def test_detect_questions_keeps_only_questions():
    text = "Thanks for coming in today. How did you hear about us? Great! Why this role."
    assert detect_questions(text) == "How did you hear about us? Why this role?"


def test_extract_question_falls_back_to_transcript():
    assert extract_question("  Tell me about your last project.  ") == "Tell me about your last project."
    assert extract_question("Nice to meet you. Where are you based") == "Where are you based?"
