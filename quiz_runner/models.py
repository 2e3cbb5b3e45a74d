"""
Core data models for the quiz runner.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union


class QuestionType(Enum):
    """Supported question types."""
    SINGLE_CHOICE = "single-choice"
    TRUE_FALSE = "true-false"
    MULTI_SELECT = "multi-select"

    @property
    def label(self) -> str:
        """Human readable label for the question type."""
        return _TYPE_LABELS[self]

    @classmethod
    def parse(cls, value: Union[str, "QuestionType"]) -> "QuestionType":
        """
        Resolve a question type from its name or one of the legacy aliases.

        Raises:
            ValueError: If the value is not a known question type
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Question type must be a string, got {type(value).__name__}")
        key = value.strip().lower()
        if key in _TYPE_ALIASES:
            return _TYPE_ALIASES[key]
        return cls(key)


_TYPE_LABELS = {
    QuestionType.SINGLE_CHOICE: "Multiple Choice",
    QuestionType.TRUE_FALSE: "True or False",
    QuestionType.MULTI_SELECT: "Select all that apply",
}

# Type names used by older question files
_TYPE_ALIASES = {
    "multiple": QuestionType.SINGLE_CHOICE,
    "truefalse": QuestionType.TRUE_FALSE,
    "checkbox": QuestionType.MULTI_SELECT,
}

# A submitted or canonical answer: one choice key, or a set of keys for multi-select
Answer = Union[str, FrozenSet[str]]


@dataclass(frozen=True)
class Question:
    """Represents a single validated quiz question."""
    id: Optional[int]
    type: QuestionType
    prompt: str
    choices: Mapping[str, str]
    answer: Answer

    def __post_init__(self):
        # Stored read-only and never shared with the caller
        object.__setattr__(self, "choices", MappingProxyType(dict(self.choices)))

    @property
    def is_multi_select(self) -> bool:
        return self.type is QuestionType.MULTI_SELECT

    @property
    def type_label(self) -> str:
        return self.type.label

    def ordered_answer_keys(self) -> Tuple[str, ...]:
        """Canonical answer keys in choice display order."""
        if isinstance(self.answer, frozenset):
            return tuple(key for key in self.choices if key in self.answer)
        return (self.answer,)


@dataclass
class QuestionDraft:
    """Unvalidated question content as proposed by an editor."""
    type: Union[QuestionType, str]
    prompt: str
    choices: Dict[str, str] = field(default_factory=dict)
    answer: Union[str, Iterable[str], None] = None


@dataclass
class QuizSettings:
    """Configuration settings for a quiz session."""
    timer_enabled: bool = False
    timer_duration: int = 600


@dataclass
class QuizSession:
    """One run through a snapshot of the question bank."""
    questions: Tuple[Question, ...]
    current_index: int = 0
    answers: Dict[int, Answer] = field(default_factory=dict)
    completed: bool = False
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def answered_count(self) -> int:
        return len(self.answers)


@dataclass(frozen=True)
class QuestionResult:
    """Per-question outcome reported by the results breakdown."""
    ordinal: int
    question_id: int
    is_correct: Optional[bool]
