"""
Unit tests for record validation at the collaborator boundary.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.dto import (
    Item,
    LearningArticle,
    NewsArticle,
    QuizQuestion,
    SavedRelation,
    TestStatistics,
    UserProgress,
)
from core.errors import RemoteFailure, UnexpectedShape


# ============================================================================
# Catalog records
# ============================================================================


def test_item_from_tools_row():
    item = Item.from_row(
        {"id": 5, "title": "Claude", "description": None, "category": "Text", "price": "Free", "official_link": "https://claude.ai"}
    )
    assert item.link == "https://claude.ai"
    assert item.description == ""
    print("✓ test_item_from_tools_row passed")


def test_item_prefers_link_field():
    item = Item.from_row({"id": "x", "title": "T", "category": "C", "link": "https://a", "official_link": "https://b"})
    assert item.link == "https://a"


@pytest.mark.parametrize(
    "row",
    [
        {"title": "No id", "category": "C"},
        {"id": 1, "category": "C"},
        {"id": 1, "title": 42, "category": "C"},
        {"id": True, "title": "Bool id", "category": "C"},
        {"id": 1, "title": "T", "category": None},
        ["not", "a", "row"],
    ],
)
def test_item_rejects_bad_rows(row):
    with pytest.raises(UnexpectedShape):
        Item.from_row(row)


def test_unexpected_shape_is_remote_failure():
    assert issubclass(UnexpectedShape, RemoteFailure)
    assert UnexpectedShape.kind == "unexpected_shape"


def test_article_excerpt():
    article = LearningArticle.from_row(
        {"id": 1, "title": "T", "content": "y" * 250, "difficulty_level": "Средний"}
    )
    assert article.excerpt() == "y" * 200 + "..."
    assert article.difficulty == "Средний"
    assert article.author == ""


def test_news_article_rejects_non_object_source():
    with pytest.raises(UnexpectedShape):
        NewsArticle.from_row({"title": "T", "url": "https://n", "source": "Wire"})


def test_saved_relation_row_mapping():
    relation = SavedRelation.from_row({"id": 9, "user_id": "u", "tool_id": 3})
    assert relation == SavedRelation(user_id="u", item_id=3)
    assert relation.to_row() == {"user_id": "u", "tool_id": 3}


# ============================================================================
# Assessment records
# ============================================================================


def test_question_options_from_json_text():
    question = QuizQuestion.from_row(
        {"id": 1, "article_id": 2, "question": "Q", "options": '{"a": "Yes", "b": "No"}', "correct_answer": "b"}
    )
    assert list(question.options) == ["a", "b"]
    assert question.correct_option_key == "b"


@pytest.mark.parametrize(
    "options,correct",
    [
        ({"a": "Yes"}, "c"),
        ({}, "a"),
        ("not json", "a"),
        ({"a": 1}, "a"),
    ],
)
def test_question_rejects_bad_options(options, correct):
    with pytest.raises(UnexpectedShape):
        QuizQuestion.from_row(
            {"id": 1, "article_id": 2, "question": "Q", "options": options, "correct_answer": correct}
        )


def test_statistics_defaults_and_validation():
    assert TestStatistics.from_row({"article_id": 1}) == TestStatistics(1, 0, 0)
    with pytest.raises(UnexpectedShape):
        TestStatistics.from_row({"article_id": 1, "total_attempts": 1, "successful_passes": 2})
    with pytest.raises(UnexpectedShape):
        TestStatistics.from_row({"article_id": 1, "total_attempts": "3"})


def test_progress_accepts_integer_flag():
    progress = UserProgress.from_row({"user_id": 7, "article_id": 1, "test_passed": 0})
    assert progress == UserProgress(user_id="7", article_id=1, test_passed=False)
