"""Catalog Data Transfer Objects.

Records listed by the catalog, learning and blog views. Each record is
built from a collaborator row through ``from_row()``, which rejects rows
that are missing fields or carry the wrong types.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from core.dto.shape import ID_TYPES, optional_text, require
from core.errors import UnexpectedShape

ItemId = Union[int, str]


@dataclass(frozen=True)
class Item:
    """A catalog entry (an AI tool).

    Attributes:
        id: Unique identifier
        title: Display title, used by the text filter
        description: Short description
        category: Category facet value
        price: Pricing label ("Free", "Freemium", ...)
        link: Official link
    """

    id: ItemId
    title: str
    description: str
    category: str
    price: str
    link: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Item":
        item_id = require(row, "id", ID_TYPES, "Item")
        # The tools table calls it official_link
        link_field = "link" if row.get("link") is not None else "official_link"
        return cls(
            id=item_id,
            title=require(row, "title", str, "Item"),
            description=optional_text(row, "description", "Item"),
            category=require(row, "category", str, "Item"),
            price=optional_text(row, "price", "Item"),
            link=optional_text(row, link_field, "Item"),
        )


@dataclass(frozen=True)
class LearningArticle:
    """An article of the learning module; owns at most one test."""

    id: ItemId
    title: str
    author: str
    content: str
    difficulty: str
    source_url: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "LearningArticle":
        return cls(
            id=require(row, "id", ID_TYPES, "LearningArticle"),
            title=require(row, "title", str, "LearningArticle"),
            author=optional_text(row, "author", "LearningArticle"),
            content=optional_text(row, "content", "LearningArticle"),
            difficulty=require(row, "difficulty_level", str, "LearningArticle"),
            source_url=optional_text(row, "source_url", "LearningArticle"),
        )

    def excerpt(self, length: int = 200) -> str:
        return f"{self.content[:length]}..."


@dataclass(frozen=True)
class NewsArticle:
    """A blog entry from the news collaborator."""

    title: str
    description: str
    url: str
    source_name: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "NewsArticle":
        source = row.get("source") if isinstance(row, dict) else None
        if source is not None and not isinstance(source, dict):
            raise UnexpectedShape("NewsArticle: field 'source' is not an object")
        return cls(
            title=require(row, "title", str, "NewsArticle"),
            description=optional_text(row, "description", "NewsArticle"),
            url=require(row, "url", str, "NewsArticle"),
            source_name=optional_text(source or {}, "name", "NewsArticle"),
        )


@dataclass(frozen=True)
class SavedRelation:
    """A user saved an item. Unique per (user_id, item_id)."""

    user_id: str
    item_id: ItemId

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SavedRelation":
        return cls(
            user_id=str(require(row, "user_id", ID_TYPES, "SavedRelation")),
            item_id=require(row, "tool_id", ID_TYPES, "SavedRelation"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "tool_id": self.item_id}
