"""
Assessment engine for article tests.

Manages quiz sessions, scores submitted attempts, and records the outcome
in the per-article statistics and the per-user progress.

Session lifecycle:
    UNSTARTED --open_test()--> IN_PROGRESS --submit()--> SUBMITTED

SUBMITTED is terminal. Closing a session drops its answers; opening the
test again starts a new session.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from config import Config
from core.action_guard import ActionGuard
from core.dto.assessment import (
    AssessmentResult,
    ProgressEntry,
    QuestionResult,
    QuizQuestion,
    TestStatistics,
    UserProgress,
)
from core.dto.catalog import ItemId, LearningArticle
from core.errors import InvalidInput, InvalidTransition, NotFound
from core.ports.backend import Backend
from core.session import SessionContext

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a quiz session."""

    UNSTARTED = "unstarted"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


@dataclass
class QuizSession:
    """One attempt at an article test.

    Attributes:
        article_id: Article whose test is taken
        questions: Ordered questions, fixed for the whole attempt
        answers: Question id -> chosen option key
        state: Current lifecycle state
        result: Filled in on submit
    """

    article_id: ItemId
    questions: List[QuizQuestion] = field(default_factory=list)
    answers: Dict[ItemId, str] = field(default_factory=dict)
    state: SessionState = SessionState.UNSTARTED
    result: Optional[AssessmentResult] = None

    def start(self, questions: List[QuizQuestion]) -> None:
        if self.state is not SessionState.UNSTARTED:
            raise InvalidTransition(f"Cannot start a session that is {self.state.value}")
        self.questions = list(questions)
        self.answers = {}
        self.state = SessionState.IN_PROGRESS

    def choose(self, question_id: ItemId, option_key: str) -> None:
        """Select an option; choosing again replaces the previous choice."""
        if self.state is not SessionState.IN_PROGRESS:
            raise InvalidTransition(f"Cannot answer a session that is {self.state.value}")
        question = self.question(question_id)
        if option_key not in question.options:
            raise InvalidInput(f"Question {question_id} has no option '{option_key}'")
        self.answers[question_id] = option_key

    def question(self, question_id: ItemId) -> QuizQuestion:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise NotFound(f"Question {question_id} is not part of this test")

    @property
    def answered_count(self) -> int:
        return len(self.answers)


def percent_score(correct: int, total: int) -> int:
    """round(100 * correct / total), halves rounded up."""
    if total <= 0:
        raise ValueError("Cannot score a test without questions")
    return (200 * correct + total) // (2 * total)


def score_attempt(
    questions: List[QuizQuestion], answers: Mapping[ItemId, str]
) -> Tuple[int, int, List[QuestionResult]]:
    """Score answers against the correct option keys.

    Unanswered questions count as incorrect.

    Returns:
        (score percentage, correct count, per-question results)
    """
    results = []
    for question in questions:
        chosen = answers.get(question.id)
        results.append(
            QuestionResult(
                question=question,
                chosen_key=chosen,
                is_correct=chosen == question.correct_option_key,
            )
        )
    correct = sum(1 for r in results if r.is_correct)
    return percent_score(correct, len(questions)), correct, results


class AssessmentEngine:
    """Opens tests, scores attempts and records their outcome.

    Usage:
        engine = AssessmentEngine(backend, session)
        quiz = engine.open_test(article_id)
        quiz.choose(question_id, "b")
        result = engine.submit(quiz)
    """

    def __init__(
        self,
        backend: Backend,
        session: SessionContext,
        guard: Optional[ActionGuard] = None,
        pass_threshold: int = Config.PASS_THRESHOLD,
    ):
        self.backend = backend
        self.session = session
        self.guard = guard or ActionGuard()
        self.pass_threshold = pass_threshold

    def open_test(self, article_id: ItemId) -> QuizSession:
        """Load the test of an article and start a session.

        Raises:
            Unauthenticated: No session
            NotFound: The article has no questions
        """
        self.session.require_user()
        rows = self.backend.query_items(Config.QUESTIONS_TABLE, {"article_id": article_id})
        questions = [QuizQuestion.from_row(row) for row in rows]
        if not questions:
            raise NotFound(f"No test found for article {article_id}")

        quiz = QuizSession(article_id=article_id)
        quiz.start(questions)
        logger.debug(f"Opened test for article {article_id} ({len(questions)} questions)")
        return quiz

    def submit(self, quiz: QuizSession) -> AssessmentResult:
        """Score the session and record the outcome.

        Progress is written before the statistics increment: the progress
        upsert is idempotent, so a failure at either step leaves the
        session IN_PROGRESS and safe to submit again.

        Raises:
            Unauthenticated: No session
            InvalidTransition: Session not IN_PROGRESS
            ActionInFlight: Same submission already pending
            RemoteFailure: Backend error (session stays IN_PROGRESS)
        """
        user = self.session.require_user()
        if quiz.state is not SessionState.IN_PROGRESS:
            raise InvalidTransition(f"Cannot submit a session that is {quiz.state.value}")

        with self.guard.claim(("submit", user.user_id, quiz.article_id)):
            score, correct, results = score_attempt(quiz.questions, quiz.answers)
            passed = score >= self.pass_threshold

            progress = UserProgress(
                user_id=user.user_id, article_id=quiz.article_id, test_passed=passed
            )
            self.backend.upsert_row(
                Config.PROGRESS_TABLE, progress.to_row(), ("user_id", "article_id")
            )
            row = self.backend.increment(
                Config.STATISTICS_TABLE,
                {"article_id": quiz.article_id},
                {"total_attempts": 1, "successful_passes": 1 if passed else 0},
            )
            statistics = TestStatistics.from_row(row)

        quiz.result = AssessmentResult(
            article_id=quiz.article_id,
            score=score,
            correct_count=correct,
            total_questions=len(quiz.questions),
            passed=passed,
            results=results,
            statistics=statistics,
        )
        quiz.state = SessionState.SUBMITTED
        logger.info(
            f"User {user.user_id} scored {score}% on article {quiz.article_id} "
            f"({'passed' if passed else 'failed'})"
        )
        return quiz.result

    # ==================== READS ====================

    def statistics_for(self, article_id: ItemId) -> TestStatistics:
        rows = self.backend.query_items(Config.STATISTICS_TABLE, {"article_id": article_id})
        if not rows:
            return TestStatistics(article_id=article_id)
        return TestStatistics.from_row(rows[0])

    def passed_tests(self, user_id: str) -> Dict[ItemId, bool]:
        """Article id -> outcome of the user's latest attempt."""
        rows = self.backend.query_items(Config.PROGRESS_TABLE, {"user_id": str(user_id)})
        return {p.article_id: p.test_passed for p in map(UserProgress.from_row, rows)}

    def progress_report(
        self, user_id: str, articles: Iterable[LearningArticle]
    ) -> List[ProgressEntry]:
        """Attempted articles with their titles, in article order."""
        passed = self.passed_tests(user_id)
        return [
            ProgressEntry(article_id=a.id, title=a.title, test_passed=passed[a.id])
            for a in articles
            if a.id in passed
        ]
