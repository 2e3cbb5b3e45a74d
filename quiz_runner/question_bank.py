"""
Question bank for the quiz runner.
Holds the ordered, editable question collection and the validation rules
that keep hand-edited questions consistent.
"""
import json
import logging
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .models import Question, QuestionDraft, QuestionType


class QuestionBankError(Exception):
    """Base exception for question bank errors."""
    pass


class ValidationReason(Enum):
    """Reasons a proposed question is rejected."""
    UNKNOWN_TYPE = "unknown_type"
    EMPTY_PROMPT = "empty_prompt"
    NO_VALID_CHOICES = "no_valid_choices"
    NO_VALID_ANSWER = "no_valid_answer"


_REASON_MESSAGES = {
    ValidationReason.UNKNOWN_TYPE: "Unknown question type",
    ValidationReason.EMPTY_PROMPT: "Question text cannot be empty",
    ValidationReason.NO_VALID_CHOICES: "At least one choice must have text",
    ValidationReason.NO_VALID_ANSWER: "The correct answer must refer to a choice with text",
}


class ValidationError(QuestionBankError):
    """Raised when a proposed question fails validation."""

    def __init__(self, reason: ValidationReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or _REASON_MESSAGES[reason])


class QuestionNotFoundError(QuestionBankError):
    """Raised when editing or deleting a question id that does not exist."""

    def __init__(self, question_id: int):
        self.question_id = question_id
        super().__init__(f"Question {question_id} not found")


SAMPLE_QUESTIONS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "type": "single-choice",
        "question": "Which keyword defines a function in Python?",
        "choices": {"A": "func", "B": "def", "C": "lambda", "D": "fn"},
        "answer": "B",
    },
    {
        "id": 2,
        "type": "true-false",
        "question": "Python lists are immutable.",
        "choices": {"A": "True", "B": "False"},
        "answer": "B",
    },
    {
        "id": 3,
        "type": "multi-select",
        "question": "Which of the following are built-in Python collection types?",
        "choices": {"A": "list", "B": "array", "C": "dict", "D": "vector"},
        "answer": ["A", "C"],
    },
]


class QuestionBank:
    """Ordered collection of quiz questions with create, update and delete."""

    def __init__(self, questions: Optional[List[Question]] = None):
        """
        Initialize the bank.

        Args:
            questions: Already validated questions; those without an id get
                the next free one
        """
        self.logger = logging.getLogger(__name__)
        self._questions: List[Question] = []
        self.load_errors: List[str] = []

        questions = list(questions or [])
        # Ids handed out here must not collide with ids supplied later in the list
        self._last_issued_id = max((q.id for q in questions if q.id is not None), default=0)
        for question in questions:
            if question.id is None:
                question = replace(question, id=self.next_id())
            self._append_loaded(question)

    @classmethod
    def with_sample_questions(cls) -> "QuestionBank":
        """Create a bank holding the bundled sample questions."""
        bank = cls()
        bank.load_records(SAMPLE_QUESTIONS)
        return bank

    # Read access

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(list(self._questions))

    def __contains__(self, question_id: object) -> bool:
        return any(question.id == question_id for question in self._questions)

    def get(self, question_id: int) -> Optional[Question]:
        """Return the question with the given id, or None."""
        for question in self._questions:
            if question.id == question_id:
                return question
        return None

    def list_questions(self) -> List[Question]:
        """Return the questions in display order."""
        return list(self._questions)

    def snapshot(self) -> Tuple[Question, ...]:
        """Immutable copy of the current question order and content."""
        return tuple(self._questions)

    def next_id(self) -> int:
        """Id that the next created question will receive."""
        existing = max((question.id for question in self._questions), default=0)
        return max(existing, self._last_issued_id) + 1

    # Validation

    def validate_and_normalize(self, draft: QuestionDraft) -> Question:
        """
        Validate a proposed question and strip stale references.

        Choice text is trimmed and blank choices are dropped. Answer keys that
        no longer point at a surviving choice are discarded; validation only
        fails when nothing usable remains.

        Args:
            draft: Proposed question content

        Returns:
            Normalized Question without an assigned id

        Raises:
            ValidationError: If the type is unknown, the prompt is blank, no
                choice survives, or no answer key survives
        """
        try:
            question_type = QuestionType.parse(draft.type)
        except ValueError as e:
            raise ValidationError(ValidationReason.UNKNOWN_TYPE, f"Unknown question type {draft.type!r}") from e

        prompt = (draft.prompt or "").strip()
        if not prompt:
            raise ValidationError(ValidationReason.EMPTY_PROMPT)

        choices: Dict[str, str] = {}
        for key, text in (draft.choices or {}).items():
            if not isinstance(key, str) or not key.strip():
                continue
            trimmed = text.strip() if isinstance(text, str) else ""
            if trimmed:
                choices[key] = trimmed

        if not choices:
            raise ValidationError(ValidationReason.NO_VALID_CHOICES)

        if question_type is QuestionType.MULTI_SELECT:
            proposed = draft.answer
            if proposed is None:
                proposed = []
            elif isinstance(proposed, str):
                proposed = [proposed]
            answer = frozenset(key for key in proposed if key in choices)
            if not answer:
                raise ValidationError(ValidationReason.NO_VALID_ANSWER)
        else:
            answer = draft.answer
            if not isinstance(answer, str) or answer not in choices:
                raise ValidationError(ValidationReason.NO_VALID_ANSWER)

        return Question(
            id=None,
            type=question_type,
            prompt=prompt,
            choices=choices,
            answer=answer,
        )

    # Mutation

    def create(self, draft: QuestionDraft) -> Question:
        """
        Validate a draft and append it with a freshly assigned id.

        Raises:
            ValidationError: If the draft is invalid; the bank is unchanged
        """
        normalized = self.validate_and_normalize(draft)
        question = replace(normalized, id=self.next_id())
        self._questions.append(question)
        self._last_issued_id = question.id

        self.logger.info(
            f"Created question {question.id} ({question.type.value})",
            extra={
                'event_type': 'question_created',
                'question_id': question.id,
                'question_type': question.type.value,
                'choice_count': len(question.choices),
            }
        )
        return question

    def update(self, question_id: int, draft: QuestionDraft) -> Question:
        """
        Validate a draft and replace an existing question in place.

        Raises:
            QuestionNotFoundError: If no question has the given id
            ValidationError: If the draft is invalid; the bank is unchanged
        """
        position = self._position_of(question_id)
        normalized = self.validate_and_normalize(draft)
        question = replace(normalized, id=question_id)
        self._questions[position] = question

        self.logger.info(
            f"Updated question {question_id}",
            extra={
                'event_type': 'question_updated',
                'question_id': question_id,
                'position': position,
            }
        )
        return question

    def delete(self, question_id: int) -> Question:
        """
        Remove a question, keeping the order of the remaining questions.

        Raises:
            QuestionNotFoundError: If no question has the given id
        """
        position = self._position_of(question_id)
        removed = self._questions.pop(position)

        self.logger.info(
            f"Deleted question {question_id}",
            extra={
                'event_type': 'question_deleted',
                'question_id': question_id,
                'remaining': len(self._questions),
            }
        )
        return removed

    def _position_of(self, question_id: int) -> int:
        for position, question in enumerate(self._questions):
            if question.id == question_id:
                return position
        self.logger.warning(f"Question {question_id} not found")
        raise QuestionNotFoundError(question_id)

    # Loading

    def load_records(self, records: List[Dict[str, Any]]) -> int:
        """
        Append question records supplied by the embedding application.

        Records only need the right shape; content such as blank choices or
        stale answer keys is kept as authored and normalized on first edit.
        Malformed records are skipped and reported through load_errors.

        Args:
            records: List of dicts with type, question (or prompt), choices,
                answer and an optional id

        Returns:
            Number of records loaded
        """
        self.load_errors.clear()
        loaded = 0

        if not isinstance(records, list):
            error_msg = f"Question records must be a list, got {type(records).__name__}"
            self.logger.error(error_msg)
            self.load_errors.append(error_msg)
            return 0

        for i, record in enumerate(records):
            error = self.validate_record_structure(record)
            if error is None:
                question = self._parse_record(record)
                if question.id is not None and question.id in self:
                    error = f"duplicate id {question.id}"
                else:
                    if question.id is None:
                        question = replace(question, id=self.next_id())
                    self._append_loaded(question)
                    loaded += 1
                    continue

            error_msg = f"Question record {i}: {error}"
            self.logger.error(error_msg)
            self.load_errors.append(error_msg)

        self.logger.info(f"Loaded {loaded} questions ({len(self.load_errors)} skipped)")
        return loaded

    def load_file(self, file_path: Union[str, Path]) -> int:
        """
        Load question records from a JSON file of the form {"questions": [...]}.

        Returns:
            Number of records loaded

        Raises:
            QuestionBankError: If the file cannot be read or is not valid JSON
        """
        path = Path(file_path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in {path}: {e}")
            raise QuestionBankError(f"Invalid JSON in {path}: {e}") from e
        except OSError as e:
            self.logger.error(f"Failed to read question file {path}: {e}")
            raise QuestionBankError(f"Failed to read question file {path}: {e}") from e

        if not isinstance(data, dict) or "questions" not in data:
            self.logger.error(f"Question file {path} must contain a 'questions' key")
            raise QuestionBankError(f"Question file {path} must contain a 'questions' key")

        return self.load_records(data["questions"])

    @staticmethod
    def validate_record_structure(record: Any) -> Optional[str]:
        """
        Check that a raw record has the expected shape.

        Expected structure:
        {
            "id": int,             # Optional
            "type": str,
            "question": str,       # or "prompt"
            "choices": {str: str},
            "answer": str | [str]
        }

        Returns:
            None if the record is usable, otherwise a description of the problem
        """
        if not isinstance(record, dict):
            return "must be an object"

        if "id" in record and (not isinstance(record["id"], int) or isinstance(record["id"], bool)):
            return "'id' field must be an integer"

        if "type" not in record:
            return "missing 'type' field"
        try:
            question_type = QuestionType.parse(record["type"])
        except ValueError:
            return f"unknown question type {record['type']!r}"

        prompt = record.get("question", record.get("prompt"))
        if prompt is None:
            return "missing 'question' field"
        if not isinstance(prompt, str):
            return "'question' field must be a string"

        choices = record.get("choices")
        if not isinstance(choices, dict):
            return "'choices' field must be an object"
        if not all(isinstance(key, str) and isinstance(text, str) for key, text in choices.items()):
            return "'choices' keys and values must be strings"

        if "answer" not in record:
            return "missing 'answer' field"
        answer = record["answer"]
        if question_type is QuestionType.MULTI_SELECT:
            if not isinstance(answer, list) or not all(isinstance(key, str) for key in answer):
                return "'answer' field must be a list of choice keys"
        elif not isinstance(answer, str):
            return "'answer' field must be a choice key"

        return None

    @staticmethod
    def _parse_record(record: Dict[str, Any]) -> Question:
        question_type = QuestionType.parse(record["type"])
        answer = record["answer"]
        if question_type is QuestionType.MULTI_SELECT:
            answer = frozenset(answer)
        return Question(
            id=record.get("id"),
            type=question_type,
            prompt=record.get("question", record.get("prompt")),
            choices=dict(record["choices"]),
            answer=answer,
        )

    def _append_loaded(self, question: Question) -> None:
        self._questions.append(question)
        self._last_issued_id = max(self._last_issued_id, question.id or 0)
