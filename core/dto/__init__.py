"""Data Transfer Objects for Toolshelf core business logic."""

from .assessment import (
    AssessmentResult,
    ProgressEntry,
    QuestionResult,
    QuizQuestion,
    TestStatistics,
    UserProgress,
)
from .catalog import (
    Item,
    ItemId,
    LearningArticle,
    NewsArticle,
    SavedRelation,
)

__all__ = [
    # Catalog DTOs
    "Item",
    "ItemId",
    "LearningArticle",
    "NewsArticle",
    "SavedRelation",
    # Assessment DTOs
    "QuizQuestion",
    "TestStatistics",
    "UserProgress",
    "QuestionResult",
    "AssessmentResult",
    "ProgressEntry",
]
