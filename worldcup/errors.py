"""
Domain errors raised by the services layer.

Routers translate these into HTTP responses; nothing here is fatal to the
process. All of them are ValueErrors so callers that only care about "bad
input" can catch that.
"""


class TournamentError(ValueError):
    """Base class for tournament engine errors."""


class MalformedResultError(TournamentError):
    """Score is not a non-negative integer, or the tie-break winner is not a participant."""


class InconsistentEditError(TournamentError):
    """Result cannot be recorded in the match's current state (e.g. knockout draw without tie-break)."""


class UnknownMatchError(TournamentError):
    """No match with the given code in this tournament."""


class UnknownTeamError(TournamentError):
    """Team code is not part of the roster."""


class InvalidSnapshotError(TournamentError):
    """Snapshot payload violates match invariants or references unknown matches."""


class ResultSourceUnavailable(Exception):
    """Remote result source failed (transport, status or payload). Recovered by fallback simulation."""
