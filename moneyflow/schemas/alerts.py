"""Pydantic models for the scheduled alert trigger."""
from __future__ import annotations

from typing import Dict, List, Union

from pydantic import BaseModel, Field


class AlertRunRequest(BaseModel):
    category: Union[str, List[str]] = Field(
        "all", description="Alert category, list of categories, or 'all'"
    )


class CategorySummaryRead(BaseModel):
    category: str
    eligible: int
    processed: int
    fired: int
    skipped: int
    errored: int
    sent: int
    failed: int
    removed: int


class AlertRunResponse(BaseModel):
    started_at: str
    categories: Dict[str, CategorySummaryRead]
