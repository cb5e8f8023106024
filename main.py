"""
InterviewSensei — Entry Point
==============================
Loads environment variables, validates API keys, prepares the local
store and dispatches to the interview tools:

    python main.py ace [--continuous]      live answers to interviewer questions
    python main.py warmup                  warm-up questions with coaching
    python main.py mock                    mock interview over the question bank
    python main.py quiz --category ...     multiple-choice practice quiz
    python main.py import-cv PATH          import a CV (PDF/DOCX/text)
    python main.py delete-cv               delete the most recent CV
    python main.py stats [--clear]         quiz statistics
    python main.py devices                 list microphones
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

# ── Setup logging ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("interview_sensei")

# ── Load .env ─────────────────────────────────────────────────────────────────
env_path = Path(__file__).parent / ".env"
if env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(env_path)
    logger.info(f"Loaded .env from {env_path}")
else:
    logger.warning(
        ".env file not found. Make sure GEMINI_API_KEY and OPENAI_API_KEY "
        "are set as environment variables."
    )

# ── Add project root to path ──────────────────────────────────────────────────
sys.path.insert(0, str(Path(__file__).parent))

from config import OPTIONAL_KEYS, REQUIRED_KEYS, InterviewSettings, QuizCategory, SpeechProvider  # noqa: E402


def validate_env():
    """Validate required API keys are present."""
    missing = [f"  {key}  →  {url}" for key, url in REQUIRED_KEYS.items() if not os.environ.get(key)]
    if missing:
        print("\n⚠  Missing API Keys:\n")
        for m in missing:
            print(m)
        print("\nCreate a .env file with these values or set them as environment variables.")
        print("The tool will start but transcription and answers will be unavailable.\n")
    optional = [key for key in OPTIONAL_KEYS if not os.environ.get(key)]
    if optional:
        logger.info(f"Optional fallbacks disabled (no key): {', '.join(optional)}")


async def _ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


# ─── Commands ─────────────────────────────────────────────────────────────────

async def cmd_ace(args, repository):
    from audio_manager import AudioManager
    from llm_client import GeminiClient
    from transcription import TranscriptionService
    from voice_pipeline import InterviewAcePipeline

    callbacks = {
        "on_transcript": lambda t: print(f"\n🎙  Interviewer: {t}"),
        "on_answer": lambda a: print(f"\n💡 Suggested answer:\n{a}\n"),
        "on_error": lambda e: print(f"\n⚠  {e}"),
    }
    pipeline = InterviewAcePipeline(
        TranscriptionService.for_provider(SpeechProvider(args.provider)),
        GeminiClient(),
        repository,
        callbacks,
    )

    loop = asyncio.get_running_loop()
    with AudioManager(input_device_index=args.device) as audio:
        audio.register_frame_callback(lambda pcm: pipeline.push_frame_threadsafe(pcm, loop))
        if args.continuous:
            stop_event = asyncio.Event()
            task = asyncio.create_task(pipeline.run_continuous(stop_event))
            await _ask("Listening continuously. Press Enter to stop.\n")
            stop_event.set()
            await task
            return
        while True:
            if await _ask("Press Enter to listen (q to quit): ") == "q":
                break
            print("Listening... recording stops after a pause.")
            await pipeline.run_until_silence()


async def _record_answer(coach, audio):
    audio.register_frame_callback(coach.recorder.feed)
    try:
        coach.start_recording()
        await _ask("Recording... press Enter when you are done.")
        return await coach.stop_recording()
    finally:
        audio.unregister_frame_callback(coach.recorder.feed)


async def cmd_warmup(args, repository):
    from audio_manager import AudioManager
    from llm_client import GeminiClient
    from transcription import TranscriptionService
    from warmup_coach import WarmupCoach

    coach = WarmupCoach(TranscriptionService.for_provider(SpeechProvider(args.provider)), GeminiClient())
    with AudioManager(input_device_index=args.device) as audio:
        while True:
            print(f"\n[{coach.question_progress}] {coach.current_question}")
            choice = await _ask("Enter = answer, n = next, p = previous, q = quit: ")
            if choice == "q":
                break
            if choice == "n":
                if not coach.next_question():
                    print("End of warm-up session.")
                    break
                continue
            if choice == "p":
                coach.previous_question()
                continue
            if await _record_answer(coach, audio):
                print(f"\nYou said: {coach.transcribed_answer}")
                print(f"\nTips:\n{coach.tips}")
                print(f"\nExample answer:\n{coach.example_answer}")
            else:
                print(f"⚠  {coach.error_message}")


async def cmd_mock(args, repository):
    from llm_client import GeminiClient
    from mock_interview import MockInterview

    settings = InterviewSettings(selected_job_role=args.role)
    interview = MockInterview(GeminiClient(), repository, settings)
    question = interview.start_interview()
    if question is None:
        print("No questions match the current settings.")
        return
    print(f"Tip: {interview.generate_tip()}")
    while question is not None:
        print(f"\n[{question.category} · {question.difficulty}] {question.text}")
        answer = await _ask("Your answer (a = AI answer, empty = skip, q = quit): ")
        if answer == "q":
            break
        if answer == "a":
            print(await interview.generate_ai_response())
        elif answer:
            feedback = await interview.generate_feedback(answer)
            if feedback:
                print(f"\nFeedback: {feedback.suggestions}")
            interview.save_response(answer)
        question = interview.next_question()
    print("Interview complete.")


async def cmd_quiz(args, repository):
    from llm_client import GeminiClient
    from quiz_engine import QuizSession

    quiz = QuizSession(GeminiClient(), repository)
    category = next(c for c in QuizCategory if c.name.lower() == args.category)
    if not await quiz.generate(category):
        print(f"⚠  {quiz.error_message}")
        return

    while True:
        question = quiz.current_question
        print(f"\nQ{quiz.current_question_index + 1}. {question.question_text}")
        for i, option in enumerate(question.options, 1):
            print(f"  {i}. {option}")
        while quiz.selected_option_index is None:
            raw = await _ask("Your choice: ")
            if raw.isdigit() and 1 <= int(raw) <= len(question.options):
                quiz.select_answer(int(raw) - 1)
        correct = quiz.submit_answer()
        right = question.options[question.correct_option_index]
        print("✔ Correct" if correct else f"✘ Incorrect — answer: {right}")
        if not quiz.next_question():
            break
    print(f"\nScore: {quiz.score}/{len(quiz.questions)} in {quiz.elapsed_time:.0f}s")


async def cmd_import_cv(args, repository):
    from cv_engine import CVImportEngine

    engine = CVImportEngine(repository=repository)
    cv_info = await engine.import_file(args.path)
    print(f"Imported CV for {cv_info.name}")
    if cv_info.summary:
        print(cv_info.summary)
    if args.questions:
        for i, q in enumerate(await engine.generate_interview_questions(cv_info), 1):
            print(f"{i}. {q}")


async def cmd_delete_cv(args, repository):
    cv_info = repository.latest_cv()
    if cv_info is None:
        print("No CV stored.")
        return
    repository.delete_cv(cv_info.id)
    print(f"Deleted CV for {cv_info.name}")


async def cmd_stats(args, repository):
    from quiz_engine import QuizStatistics

    stats = QuizStatistics(repository)
    if args.clear:
        print(f"Deleted {stats.delete_all()} quiz results")
        return
    results = stats.load()
    if not results:
        print("No quizzes taken yet.")
        return
    print(f"Quizzes taken: {len(results)}   Average score: {stats.average_score():.0f}%")
    for s in stats.category_stats():
        print(f"  {s.category:<24} {s.count:>3} quizzes  {s.average_score:5.1f}%")
    print("\nRecent:")
    for r in results[:10]:
        print(f"  {r.date:%Y-%m-%d %H:%M}  {r.category:<24} {r.score}/{r.total_questions}  {r.duration:.0f}s")


async def cmd_devices(args, repository):
    from audio_manager import AudioManager

    audio = AudioManager()
    try:
        for device in audio.get_input_device_list():
            print(f"{device['index']:>3}  {device['name']}")
    finally:
        audio.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="interview-sensei", description="Interview rehearsal assistant")
    sub = parser.add_subparsers(dest="command", required=True)

    providers = [p.value for p in SpeechProvider]

    ace = sub.add_parser("ace", help="Transcribe interviewer questions and draft answers")
    ace.add_argument("--continuous", action="store_true", help="Answer every utterance until stopped")
    ace.add_argument("--provider", choices=providers, default=SpeechProvider.WHISPER.value)
    ace.add_argument("--device", type=int, default=None, help="Input device index")
    ace.set_defaults(func=cmd_ace)

    warmup = sub.add_parser("warmup", help="Warm-up questions with tips")
    warmup.add_argument("--provider", choices=providers, default=SpeechProvider.WHISPER.value)
    warmup.add_argument("--device", type=int, default=None)
    warmup.set_defaults(func=cmd_warmup)

    mock = sub.add_parser("mock", help="Mock interview over the question bank")
    mock.add_argument("--role", default="Software Engineer")
    mock.set_defaults(func=cmd_mock)

    quiz = sub.add_parser("quiz", help="Multiple-choice practice quiz")
    quiz.add_argument("--category", choices=[c.name.lower() for c in QuizCategory],
                      default=QuizCategory.TECHNICAL_KNOWLEDGE.name.lower())
    quiz.set_defaults(func=cmd_quiz)

    import_cv = sub.add_parser("import-cv", help="Import a CV file")
    import_cv.add_argument("path")
    import_cv.add_argument("--questions", action="store_true", help="Also generate CV-based questions")
    import_cv.set_defaults(func=cmd_import_cv)

    delete_cv = sub.add_parser("delete-cv", help="Delete the most recent CV")
    delete_cv.set_defaults(func=cmd_delete_cv)

    stats = sub.add_parser("stats", help="Quiz statistics")
    stats.add_argument("--clear", action="store_true", help="Delete all quiz results")
    stats.set_defaults(func=cmd_stats)

    devices = sub.add_parser("devices", help="List input devices")
    devices.set_defaults(func=cmd_devices)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    validate_env()

    from db import init_db
    from repository import Repository
    from response_parsing import CVProcessingError

    init_db()
    try:
        asyncio.run(args.func(args, Repository()))
    except CVProcessingError as e:
        print(f"⚠  {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
