# backend/questionnaire.py

"""Onboarding questionnaire answers, stored per user as a JSON blob."""

import json
import logging
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from models import Question, QuestionnaireRecord

logger = logging.getLogger(__name__)

_QUESTIONS = TypeAdapter(List[Question])

DEFAULT_QUESTIONS = [
    ("How often do you go hiking?", ["Daily", "Weekly", "Monthly", "Rarely"]),
    ("Which difficulty level do you prefer?", ["Easy", "Moderate", "Hard"]),
    ("How long do your hikes usually last?", ["<1 hour", "1–3 hours", "3–6 hours", "6+ hours"]),
]


class InvalidAnswerError(ValueError):
    pass


def default_questions() -> List[Question]:
    return [Question(text=text, options=list(options)) for text, options in DEFAULT_QUESTIONS]


class QuestionnaireManager:
    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id

    def save(self, questions: List[Question]) -> None:
        payload = _QUESTIONS.dump_json(questions).decode("utf-8")
        record = self.db.get(QuestionnaireRecord, self.user_id)
        if record is None:
            self.db.add(QuestionnaireRecord(user_id=self.user_id, data=payload))
        else:
            record.data = payload
        self.db.commit()

    def load(self) -> Optional[List[Question]]:
        """Saved questions, or None if the user never answered."""
        record = self.db.get(QuestionnaireRecord, self.user_id)
        if record is None or not record.data:
            return None
        try:
            return _QUESTIONS.validate_python(json.loads(record.data))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning(f"Discarding unreadable questionnaire for {self.user_id}: {exc}")
            return None

    def current(self) -> List[Question]:
        questions = self.load()
        if questions is None:
            # saved up front so question ids stay stable between requests
            questions = default_questions()
            self.save(questions)
        return questions

    def load_answers(self) -> Dict[str, str]:
        """Question text -> chosen option, answered questions only."""
        questions = self.load() or []
        return {q.text: q.selected_option for q in questions if q.selected_option}

    def answer(self, question_id: UUID, option: str) -> List[Question]:
        questions = self.current()
        for question in questions:
            if question.id == question_id:
                if option not in question.options:
                    raise InvalidAnswerError(f"'{option}' is not an option for: {question.text}")
                question.selected_option = option
                self.save(questions)
                return questions
        raise InvalidAnswerError(f"Unknown question {question_id}")

    def reset(self) -> None:
        record = self.db.get(QuestionnaireRecord, self.user_id)
        if record is not None:
            self.db.delete(record)
            self.db.commit()
