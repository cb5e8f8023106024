"""
Prompt Builders
================
Every prompt sent to the LLM lives here so the wording can be tuned in one
place. Builders are plain functions returning strings.
"""

from __future__ import annotations

from typing import Optional

QUIZ_QUESTION_COUNT = 5
QUIZ_OPTION_COUNT = 4


def build_answer_prompt(question: str, cv_summary: str) -> str:
    return f"""You are an expert technical interviewer. The following is the candidate's CV context:

{cv_summary}

Based on the candidate's background, provide a concise, accurate, and professional answer to the following technical interview question. Keep the response brief and focused on key points.

Question: {question}
"""


def build_cv_extraction_prompt(cv_text: str) -> str:
    return f"""Extract the following information from this CV and format it as a valid JSON object. Make sure all dates are in YYYY-MM-DD format.

Required fields:
- name (string)
- email (string)
- phone (string)
- summary (string)
- experience (array of objects with: company, position, startDate, endDate, jobDescription)
- education (array of objects with: institution, degree, field, startDate, endDate)
- skills (array of strings)

Example format:
{{
    "name": "John Doe",
    "email": "john@example.com",
    "phone": "+1234567890",
    "summary": "Experienced software engineer...",
    "experience": [
        {{
            "company": "Tech Corp",
            "position": "Senior Developer",
            "startDate": "2020-01-01",
            "endDate": "2023-12-31",
            "jobDescription": "Led development of..."
        }}
    ],
    "education": [
        {{
            "institution": "University",
            "degree": "Bachelor of Science",
            "field": "Computer Science",
            "startDate": "2016-09-01",
            "endDate": "2020-06-30"
        }}
    ],
    "skills": ["Python", "Distributed Systems", "SQL"]
}}

IMPORTANT: Return ONLY the JSON object, with no additional text, markdown formatting, or code blocks. Do not include any explanations or notes.

CV Text:
{cv_text}
"""


def build_quiz_prompt(category: str, skills: Optional[list[str]], summary: Optional[str],
                      experience_level: str = "senior") -> str:
    skills_text = ", ".join(skills) if skills else "Not specified"
    summary_text = summary or "Not specified"
    return f"""Generate {QUIZ_QUESTION_COUNT} multiple-choice interview questions for a {category} interview for {experience_level}, each with exactly {QUIZ_OPTION_COUNT} options.
The candidate has the following details:
Skills: {skills_text}
Summary: {summary_text}

Return ONLY the raw JSON in the following format, without any markdown formatting or code block indicators:
{{
    "questions": [
        {{
            "questionText": "Question text here",
            "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
            "correctOptionIndex": 0
        }}
    ]
}}

Make sure the questions are relevant to the candidate's background and experience.
Do not include any markdown formatting, code block indicators, or additional text.
Short questions and answers be specific max 50 words by option.
"""


def build_tips_prompt(question: str, answer: str) -> str:
    return f"""As an expert interview coach, provide concise and actionable tips for answering the following interview question. Focus on key elements, common pitfalls, and effective structuring (e.g., STAR method if applicable).
Question: "{question}"
Candidate's Answer: "{answer}"
---
Provide tips based on the candidate's answer and the question. Be specific and actionable.
"""


def build_example_answer_prompt(question: str) -> str:
    return f"""As an expert interview coach, provide a concise and strong example answer for the following interview question.
Question: "{question}"
"""


def build_mock_answer_prompt(question: str, job_role: str) -> str:
    return f"""As an experienced {job_role}, provide a short and specific answer to the following interview question:
"{question}"
"""


def build_feedback_prompt(question: str, response: str) -> str:
    return f"""Analyze the following interview response and provide constructive feedback.
Question: "{question}"
Response: "{response}"

Please evaluate:
1. Clarity and structure
2. Relevance to the question
3. Use of examples
4. Professional tone
5. Areas for improvement

Return ONLY a JSON object in this format, without markdown:
{{
    "clarity": 0.0,
    "relevance": 0.0,
    "confidence": 0.0,
    "suggestions": "Specific suggestions for improvement"
}}
Scores are between 0 and 1.
"""


def build_cv_questions_prompt(name: str, summary: Optional[str], experience: list[str],
                              skills: list[str]) -> str:
    experience_text = "\n".join(experience) if experience else "N/A"
    return f"""Based on the following CV information, generate 5 relevant technical interview questions that would be appropriate for this candidate's experience level and background. Focus on their specific skills and experience areas.

Name: {name}
Summary: {summary or "N/A"}
Experience: {experience_text}
Skills: {", ".join(skills) if skills else "N/A"}

Format the response as a JSON array of strings.
"""
