"""Engine components: resolve → fetch, coordinated by the quota tracker."""

from .fetcher import FetchResponse, HttpTransport, classify_response
from .models import (
    Failure,
    ProjectRecord,
    QuotaState,
    ResolvedRecord,
    StatsResult,
    Success,
    Unresolved,
)
from .quota import QuotaTracker
from .resolver import resolve_endpoint
from .stages import END_OF_STREAM, FetchStage, ResolutionStage
from .thread_pool import ThreadPoolManager

__all__ = [
    "END_OF_STREAM",
    "Failure",
    "FetchResponse",
    "FetchStage",
    "HttpTransport",
    "ProjectRecord",
    "QuotaState",
    "QuotaTracker",
    "ResolutionStage",
    "ResolvedRecord",
    "StatsResult",
    "Success",
    "ThreadPoolManager",
    "Unresolved",
    "classify_response",
    "resolve_endpoint",
]
