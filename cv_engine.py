"""
CV Import Engine
=================
Handles PDF/DOCX/text extraction, LLM-driven structuring of the CV into
JSON, and persistence of the resulting CVInfo / Experience / Education rows.

Output: CVInfo consumed by the answer pipeline (summary as prompt context)
and the quiz engine (skills + summary).
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

import fitz  # PyMuPDF
import pdfplumber
from docx import Document

from llm_client import GeminiClient, GeminiError
from models import CVInfo
from prompts import build_cv_extraction_prompt, build_cv_questions_prompt
from repository import Repository
from response_parsing import (
    InvalidFileFormatError,
    InvalidResponseError,
    parse_cv_data,
    parse_question_list,
)

logger = logging.getLogger(__name__)


# ─── Extraction Layer ─────────────────────────────────────────────────────────

def _read_pdf_pymupdf(path: Path) -> str:
    with fitz.open(str(path)) as doc:
        return "\n".join(page.get_text("text") for page in doc)


def _read_pdf_pdfplumber(path: Path) -> str:
    with pdfplumber.open(str(path)) as pdf:
        pages = [page.extract_text() for page in pdf.pages]
    return "\n".join(text for text in pages if text)


class TextExtractor:
    """Turns an uploaded CV file into plain text for the extraction prompt."""

    @staticmethod
    def extract_pdf(path: Path) -> str:
        try:
            text = _read_pdf_pymupdf(path)
        except Exception as e:
            logger.warning(f"PyMuPDF could not read {path.name}: {e}")
            text = ""
        if text.strip():
            return text

        # Image-heavy or oddly encoded CVs
        logger.info(f"Retrying {path.name} with pdfplumber")
        try:
            return _read_pdf_pdfplumber(path)
        except Exception as e:
            raise InvalidFileFormatError(f"Could not extract text from PDF: {e}") from e

    @staticmethod
    def extract_docx(path: Path) -> str:
        try:
            doc = Document(str(path))
        except Exception as e:
            raise InvalidFileFormatError(f"Could not open DOCX: {e}") from e
        lines = [p.text for p in doc.paragraphs]
        # Contact and skills blocks are often laid out as tables
        lines.extend(cell.text for table in doc.tables for row in table.rows for cell in row.cells)
        return "\n".join(line.strip() for line in lines if line.strip())

    @staticmethod
    def extract_text(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidFileFormatError() from e

    @classmethod
    def extract(cls, path: str | Path) -> str:
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix == ".pdf":
            text = cls.extract_pdf(path)
        elif suffix == ".docx":
            text = cls.extract_docx(path)
        elif suffix in (".txt", ".md", ""):
            text = cls.extract_text(path)
        else:
            raise InvalidFileFormatError(f"Unsupported file type: {suffix}. Use PDF, DOCX or text.")
        if not text.strip():
            raise InvalidFileFormatError()
        return text


# ─── Public API ───────────────────────────────────────────────────────────────

class CVImportEngine:
    """
    Usage:
        engine = CVImportEngine()
        cv_info = await engine.import_file("cv.pdf")
    """

    def __init__(self, llm: GeminiClient | None = None, repository: Repository | None = None):
        self.extractor = TextExtractor()
        self.llm = llm or GeminiClient()
        self.repository = repository or Repository()

    async def import_file(self, file_path: str | Path) -> CVInfo:
        logger.info(f"Processing CV: {file_path}")
        text = self.extractor.extract(file_path)
        return await self.process_cv(text)

    async def process_cv(self, cv_text: str) -> CVInfo:
        """Structure raw CV text with the LLM and persist it."""
        try:
            response = await self.llm.generate_response(build_cv_extraction_prompt(cv_text))
        except GeminiError as e:
            logger.error(f"CV extraction request failed: {e}")
            raise InvalidResponseError() from e
        logger.debug(f"Raw AI response: {response}")

        cv_data = parse_cv_data(response)
        cv_info = self.repository.save_cv(cv_data)
        logger.info(f"CV imported: {cv_info.name} | skills: {len(cv_info.skills)}")
        return cv_info

    def delete_cv(self, cv_id: uuid.UUID) -> None:
        self.repository.delete_cv(cv_id)

    async def generate_interview_questions(self, cv_info: CVInfo | None = None) -> list[str]:
        """Five technical questions tailored to the CV."""
        cv_info = cv_info or self.repository.latest_cv()
        if cv_info is None:
            raise InvalidResponseError("No CV imported yet.")

        experience = [
            f"- {exp.position} at {exp.company}"
            for exp in self.repository.experiences_for(cv_info.id)
        ]
        prompt = build_cv_questions_prompt(cv_info.name, cv_info.summary, experience, cv_info.skills)
        try:
            response = await self.llm.generate_response(prompt)
        except GeminiError as e:
            raise InvalidResponseError() from e
        return parse_question_list(response)
