"""Assessment Data Transfer Objects.

Quiz questions, per-article test statistics, per-user progress and the
result of a scored attempt.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.dto.catalog import ItemId
from core.dto.shape import ID_TYPES, require
from core.errors import UnexpectedShape


@dataclass(frozen=True)
class QuizQuestion:
    """One question of an article test.

    Attributes:
        id: Question identifier
        article_id: Owning article
        question_text: Prompt shown to the user
        options: Option key -> label, in display order
        correct_option_key: Key of the correct option
    """

    id: ItemId
    article_id: ItemId
    question_text: str
    options: Dict[str, str]
    correct_option_key: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "QuizQuestion":
        options = require(row, "options", (dict, str), "QuizQuestion")
        if isinstance(options, str):
            try:
                options = json.loads(options)
            except ValueError as e:
                raise UnexpectedShape(f"QuizQuestion: options are not valid JSON: {e}")
        if not isinstance(options, dict) or not options:
            raise UnexpectedShape("QuizQuestion: options must be a non-empty object")
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in options.items()):
            raise UnexpectedShape("QuizQuestion: option keys and labels must be text")

        correct = require(row, "correct_answer", str, "QuizQuestion")
        if correct not in options:
            raise UnexpectedShape(f"QuizQuestion: correct answer '{correct}' is not an option")

        return cls(
            id=require(row, "id", ID_TYPES, "QuizQuestion"),
            article_id=require(row, "article_id", ID_TYPES, "QuizQuestion"),
            question_text=require(row, "question", str, "QuizQuestion"),
            options=dict(options),
            correct_option_key=correct,
        )


@dataclass(frozen=True)
class TestStatistics:
    """Aggregate attempt counters for one article test.

    Invariant: successful_passes <= total_attempts.
    """

    __test__ = False  # not a pytest class

    article_id: ItemId
    total_attempts: int = 0
    successful_passes: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TestStatistics":
        article_id = require(row, "article_id", ID_TYPES, "TestStatistics")
        total = row.get("total_attempts") or 0
        passes = row.get("successful_passes") or 0
        if isinstance(total, bool) or isinstance(passes, bool):
            raise UnexpectedShape("TestStatistics: counters must be integers")
        if not isinstance(total, int) or not isinstance(passes, int):
            raise UnexpectedShape("TestStatistics: counters must be integers")
        if passes > total:
            raise UnexpectedShape(
                f"TestStatistics: {passes} passes exceed {total} attempts for {article_id}"
            )
        return cls(article_id=article_id, total_attempts=total, successful_passes=passes)


@dataclass(frozen=True)
class UserProgress:
    """Outcome of the most recent attempt of a user on an article test."""

    user_id: str
    article_id: ItemId
    test_passed: bool

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProgress":
        passed = require(row, "test_passed", (bool, int), "UserProgress")
        return cls(
            user_id=str(require(row, "user_id", ID_TYPES, "UserProgress")),
            article_id=require(row, "article_id", ID_TYPES, "UserProgress"),
            test_passed=bool(passed),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "article_id": self.article_id,
            "test_passed": self.test_passed,
        }


@dataclass(frozen=True)
class QuestionResult:
    """Review line for one question of a submitted attempt."""

    question: QuizQuestion
    chosen_key: Optional[str]
    is_correct: bool

    @property
    def chosen_label(self) -> Optional[str]:
        if self.chosen_key is None:
            return None
        return self.question.options.get(self.chosen_key)

    @property
    def correct_label(self) -> str:
        return self.question.options[self.question.correct_option_key]


@dataclass
class AssessmentResult:
    """Score of a submitted attempt and the statistics after it."""

    article_id: ItemId
    score: int
    correct_count: int
    total_questions: int
    passed: bool
    results: List[QuestionResult] = field(default_factory=list)
    statistics: Optional[TestStatistics] = None


@dataclass(frozen=True)
class ProgressEntry:
    """Profile line: an article and whether its test was passed."""

    article_id: ItemId
    title: str
    test_passed: bool
