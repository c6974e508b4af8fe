from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from domain.common.exceptions import RelayError


@dataclass(frozen=True, slots=True)
class RelayOutcome:
    """Result of one exchange: every frame, or a failure. Never partial."""

    frames: List[bytes] = field(default_factory=list)
    error: Optional[RelayError] = None

    @classmethod
    def success(cls, frames: List[bytes]) -> "RelayOutcome":
        return cls(frames=list(frames))

    @classmethod
    def failure(cls, error: RelayError) -> "RelayOutcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
