import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class CVInfo(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    email: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    summary: Optional[str] = Field(default=None)
    skills: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now, index=True)


class Experience(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cv_info_id: uuid.UUID = Field(foreign_key="cvinfo.id", index=True)
    company: str
    position: str
    start_date: date
    end_date: Optional[date] = Field(default=None)
    job_description: Optional[str] = Field(default=None)


class Education(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cv_info_id: uuid.UUID = Field(foreign_key="cvinfo.id", index=True)
    institution: str
    degree: Optional[str] = Field(default=None)
    field: Optional[str] = Field(default=None)
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)


class Question(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    text: str
    category: str
    difficulty: str
    job_role: str
    has_response: bool = Field(default=False)
    timestamp: datetime = Field(default_factory=datetime.now)


class Response(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    question_id: uuid.UUID = Field(foreign_key="question.id", index=True)
    text: str
    audio_path: Optional[str] = Field(default=None)
    timestamp: datetime = Field(default_factory=datetime.now)


class Feedback(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    response_id: uuid.UUID = Field(foreign_key="response.id", index=True)
    text: str
    score: float
    category: str = Field(default="General")
    timestamp: datetime = Field(default_factory=datetime.now)


class InterviewSessionRecord(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    date: datetime = Field(default_factory=datetime.now)
    job_role: str
    mode: str


class QuizResult(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    date: datetime = Field(default_factory=datetime.now, index=True)
    category: str
    score: int
    total_questions: int
    duration: float = Field(default=0.0)  # seconds


class QuizQuestionResult(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    quiz_result_id: uuid.UUID = Field(foreign_key="quizresult.id", index=True)
    question_text: str
    options: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    correct_option_index: int
    selected_option_index: Optional[int] = Field(default=None)
