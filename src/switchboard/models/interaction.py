"""Audit record model for a single dispatched AI interaction.

One record is written per uncached generate/chat/embeddings call,
successful or not. Structured input and output are kept as JSON-ready
values so records round-trip losslessly through the JSON store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

OperationKind = Literal["generate", "chat", "embeddings"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InteractionRecord(BaseModel):
    """Audit entry for one provider call."""

    id: str | None = None
    provider: str
    type: OperationKind
    input: Any
    output: Any = None
    options: dict[str, Any] = Field(default_factory=dict)
    tokens_used: int = Field(default=0, ge=0)
    duration: float = Field(default=0.0, ge=0.0)
    success: bool = True
    error: str | None = None
    user_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
