"""Exception types raised at the anchoring boundaries.

Routine outcomes (text not yet on the page, a range that cannot be wrapped
safely) are returned as values, not raised. Exceptions are reserved for
input that can never succeed and for the host going away.
"""

from __future__ import annotations


class AnchorlightError(Exception):
    """Base class for anchorlight errors."""


class MalformedAnchorError(AnchorlightError, ValueError):
    """Anchor text is empty; it cannot be resolved or scheduled."""


class TransportUnavailableError(AnchorlightError):
    """The messaging channel to the host is gone (context invalidated)."""
