"""Name resolution helpers for envelopes and scenarios.

Pure functions that resolve user-friendly names (partial, case-insensitive)
to domain objects. No I/O; they operate on already-fetched data.
"""

from __future__ import annotations

from budget_mate.models.results import Scenario
from budget_mate.models.schemas import Envelope


class ResolverError(Exception):
    """Raised when an entity cannot be resolved by name."""

    def __init__(
        self,
        entity_type: str,
        query: str,
        available: list[str] | None = None,
    ):
        self.entity_type = entity_type
        self.query = query
        self.available = available or []
        detail = f"No {entity_type} found matching '{query}'."
        if self.available:
            detail += f" Available: {', '.join(self.available)}"
        super().__init__(detail)


def resolve_envelope(
    envelopes: list[Envelope],
    name: str,
) -> Envelope:
    """Find an envelope by name (partial, case-insensitive).

    An exact match wins over a partial one. Credit card holding envelopes
    are not user-editable and are skipped.

    Raises :class:`ResolverError` if nothing matches.
    """
    candidates = [e for e in envelopes if not e.is_cc_holding]
    query = name.strip().lower()
    for env in candidates:
        if env.name.lower() == query:
            return env
    for env in candidates:
        if query in env.name.lower():
            return env
    raise ResolverError(
        "envelope",
        name,
        available=[e.name for e in candidates[:20]],
    )


def resolve_scenario(
    scenarios: list[Scenario],
    query: str,
) -> Scenario:
    """Find a scenario by id or name (partial, case-insensitive).

    Raises :class:`ResolverError` if nothing matches.
    """
    q = query.strip().lower()
    for s in scenarios:
        if s.id == q:
            return s
    for s in scenarios:
        if q in s.name.lower() or q in s.id:
            return s
    raise ResolverError(
        "scenario",
        query,
        available=[s.id for s in scenarios],
    )
