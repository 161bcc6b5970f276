"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class GenerationResult:
    """Result of one generation loop run."""

    text: str
    overflow: bool
    error: str | None = None
    tokens: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TurnResult:
    """Result of one complete conversation turn."""

    prompt: str
    reply: str
    overflow: bool
    error: str | None = None
    tokens: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
