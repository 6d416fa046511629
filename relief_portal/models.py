"""Shared pydantic models.

News items are stored as JSON objects in a flat file; any keys beyond
title/description/date are carried through unchanged when the file is
rewritten.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NewsItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str = ""
    description: str = ""
    date: Optional[str] = None

    def archive_record(self) -> Dict[str, Any]:
        """Row shape of the archival `news` table."""
        return {"title": self.title, "content": self.description, "reported_at": self.date}


class NewsIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(default="")
    date: Optional[str] = None


class RotationResult(BaseModel):
    breaking: List[Dict[str, Any]] = Field(default_factory=list)
    all: List[Dict[str, Any]] = Field(default_factory=list)


class Hospital(BaseModel):
    id: Any
    name: str
    latitude: float
    longitude: float

