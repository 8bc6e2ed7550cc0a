"""Data classes for the notemap domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from notemap.sm2 import ReviewState

SUBJECT_CONTEXTS = ("course", "book", "article", "idea")


@dataclass
class MindMapNode:
    id: str
    text: str
    description: str = ""
    children: list["MindMapNode"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict, _path: str = "root") -> "MindMapNode":
        """Build a node tree from the JSON shape {id, text, description?, children?}."""
        if not isinstance(data, dict) or not data.get("text"):
            raise ValueError(f"Mind map node at {_path} must be an object with a 'text' field")
        node_id = str(data.get("id") or _path)
        children = [
            cls.from_dict(child, f"{node_id}.{i}")
            for i, child in enumerate(data.get("children") or [])
        ]
        return cls(
            id=node_id,
            text=str(data["text"]),
            description=str(data.get("description") or ""),
            children=children,
        )

    def to_dict(self) -> dict:
        data = {"id": self.id, "text": self.text}
        if self.description:
            data["description"] = self.description
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data

    def count(self) -> int:
        return 1 + sum(c.count() for c in self.children)


@dataclass
class Subject:
    id: int
    title: str
    raw_notes: str
    next_review_at: datetime
    created_at: datetime
    context: str = "idea"
    mind_map: Optional[MindMapNode] = None
    ease_factor: float = 2.5
    repetitions: int = 0
    interval_days: int = 1
    version: int = 1

    @property
    def review_state(self) -> ReviewState:
        return ReviewState(
            ease_factor=self.ease_factor,
            repetitions=self.repetitions,
            interval_days=self.interval_days,
            next_review_at=self.next_review_at,
        )


@dataclass
class ReviewRecord:
    id: int
    subject_id: int
    quality: int
    interval_days: int
    ease_factor: float
    reviewed_at: datetime
