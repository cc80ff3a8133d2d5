"""
Request Guards and Utilities

Provides reusable guards for the routers:
- Tournament lookup (404)
- Domain error → HTTP status translation
"""

from fastapi import HTTPException
from sqlmodel import Session

from worldcup.errors import TournamentError, UnknownMatchError
from worldcup.models.tournament import Tournament


def require_tournament(session: Session, tournament_id: int) -> Tournament:
    """
    Load a tournament or raise 404.

    Raises:
        HTTPException 404: Tournament not found
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def http_error(exc: TournamentError) -> HTTPException:
    """
    Map a domain error to the HTTP error a router should raise.

    Unknown matches are 404; every other rejection (malformed score, draw
    without tie-break, unresolved participants, bad snapshot, unknown team in
    a payload) is 422 and leaves stored state unchanged.
    """
    if isinstance(exc, UnknownMatchError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=422, detail=str(exc))
