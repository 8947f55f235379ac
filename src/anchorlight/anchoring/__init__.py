"""Text anchoring: capture, resolution, markers and retry scheduling."""

from anchorlight.anchoring.locator import TextLocator
from anchorlight.anchoring.markers import MarkerApplier
from anchorlight.anchoring.models import (
    Anchor,
    AnchorRecord,
    AnchorState,
    ApplyOutcome,
    ApplyResult,
    ObserverState,
    PendingAnchor,
    Resolution,
    ResolvedVia,
    Viewport,
)
from anchorlight.anchoring.orchestrator import RestorationOrchestrator
from anchorlight.anchoring.paths import StructuralPathCodec
from anchorlight.anchoring.registry import AnchorRegistry
from anchorlight.anchoring.resolver import AnchorResolver
from anchorlight.anchoring.text_nodes import TextLeaf, TextRange

__all__ = [
    "Anchor",
    "AnchorRecord",
    "AnchorRegistry",
    "AnchorResolver",
    "AnchorState",
    "ApplyOutcome",
    "ApplyResult",
    "MarkerApplier",
    "ObserverState",
    "PendingAnchor",
    "Resolution",
    "ResolvedVia",
    "RestorationOrchestrator",
    "StructuralPathCodec",
    "TextLeaf",
    "TextLocator",
    "TextRange",
    "Viewport",
]
