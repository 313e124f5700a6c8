"""Records flowing through the pipeline and their stats variants."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, ClassVar, Union


@dataclass(frozen=True, slots=True)
class Success:
    """Star count read from the provider."""

    stars: int
    kind: ClassVar[str] = "success"

    def as_dict(self) -> dict[str, Any]:
        return {"stars": self.stars}


@dataclass(frozen=True, slots=True)
class Failure:
    """Transport, provider or parse failure for one record."""

    message: str
    kind: ClassVar[str] = "failure"

    def as_dict(self) -> dict[str, Any]:
        return {"error": True, "message": self.message}


@dataclass(frozen=True, slots=True)
class Unresolved:
    """No API endpoint could be derived from the record URL."""

    kind: ClassVar[str] = "unresolved"

    def as_dict(self) -> dict[str, Any]:
        return {"unresolved": True}


StatsResult = Union[Success, Failure, Unresolved]


@dataclass(frozen=True, slots=True)
class ProjectRecord:
    """A project entry; ``stats`` is attached once by the fetch stage."""

    url: str | None
    stats: StatsResult | None = None
    name: str | None = None
    category: str | None = None

    def with_stats(self, stats: StatsResult) -> "ProjectRecord":
        if self.stats is not None:
            raise ValueError(f"Stats already attached to {self.url!r}")
        return replace(self, stats=stats)


@dataclass(frozen=True, slots=True)
class ResolvedRecord:
    """Resolution stage output; ``endpoint`` is ``None`` when unresolvable."""

    record: ProjectRecord
    endpoint: str | None


@dataclass(frozen=True, slots=True)
class QuotaState:
    limit: int
    used: int
    reset_at_ms: int

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit


__all__ = [
    "Failure",
    "ProjectRecord",
    "QuotaState",
    "ResolvedRecord",
    "StatsResult",
    "Success",
    "Unresolved",
]
