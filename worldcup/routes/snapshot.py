from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from worldcup.database import get_session
from worldcup.errors import TournamentError
from worldcup.services import tournament_service
from worldcup.services.snapshot import TournamentSnapshot
from worldcup.utils.guards import http_error, require_tournament

router = APIRouter()


class SnapshotLoadResponse(BaseModel):
    snapshot: TournamentSnapshot
    propagation: Dict[str, Any]


@router.get("/tournaments/{tournament_id}/snapshot", response_model=TournamentSnapshot)
def export_snapshot(tournament_id: int, session: Session = Depends(get_session)):
    """Serialize every match plus the current standings"""
    tournament = require_tournament(session, tournament_id)
    return tournament_service.snapshot_of(session, tournament)


@router.put("/tournaments/{tournament_id}/snapshot", response_model=SnapshotLoadResponse)
def load_snapshot(tournament_id: int, payload: TournamentSnapshot, session: Session = Depends(get_session)):
    """
    Replace the tournament's matches with the snapshot's.

    Standings in the payload are ignored; standings and bracket participants
    are re-derived from the loaded matches.
    """
    tournament = require_tournament(session, tournament_id)
    try:
        _, report = tournament_service.load_snapshot(session, tournament, payload)
    except TournamentError as e:
        session.rollback()
        raise http_error(e)

    return SnapshotLoadResponse(
        snapshot=tournament_service.snapshot_of(session, tournament),
        propagation=report.to_dict(),
    )
