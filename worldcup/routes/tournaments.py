from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from worldcup.database import get_session
from worldcup.errors import TournamentError
from worldcup.models.stage import Phase, Stage
from worldcup.models.tournament import Tournament
from worldcup.services import tournament_service
from worldcup.services.propagation_engine import match_state
from worldcup.utils.guards import http_error, require_tournament

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    selected_team_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class SelectTeamRequest(BaseModel):
    team_id: str


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    selected_team_id: Optional[str] = None
    phase: Phase
    created_at: datetime
    updated_at: datetime


class KnockoutMatchSummary(BaseModel):
    match_code: str
    stage: str
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    state: str


class CloseGroupStageResponse(BaseModel):
    tournament: TournamentResponse
    created_count: int
    round_of_32: List[KnockoutMatchSummary]


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(payload: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament with its full group-stage schedule"""
    try:
        return tournament_service.create_tournament(session, payload.name, payload.selected_team_id)
    except TournamentError as e:
        raise http_error(e)


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return require_tournament(session, tournament_id)


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament and all its matches"""
    tournament = require_tournament(session, tournament_id)
    session.delete(tournament)
    session.commit()
    return Response(status_code=204)


@router.put("/tournaments/{tournament_id}/selected-team", response_model=TournamentResponse)
def select_team(tournament_id: int, payload: SelectTeamRequest, session: Session = Depends(get_session)):
    """Pick the followed team; leaves team selection for the group stage"""
    tournament = require_tournament(session, tournament_id)
    try:
        return tournament_service.select_team(session, tournament, payload.team_id)
    except TournamentError as e:
        raise http_error(e)


@router.post("/tournaments/{tournament_id}/close-group-stage", response_model=CloseGroupStageResponse)
def close_group_stage(tournament_id: int, session: Session = Depends(get_session)):
    """
    Build the knockout bracket from the current standings.

    Idempotent: calling again creates nothing new, it only re-syncs the
    Round-of-32 pairings with the standings.
    """
    tournament = require_tournament(session, tournament_id)
    if Phase(tournament.phase) == Phase.team_selection:
        raise HTTPException(status_code=409, detail="Select a team before closing the group stage")

    created, engine = tournament_service.close_group_stage(session, tournament)
    session.refresh(tournament)
    r32 = [
        KnockoutMatchSummary(
            match_code=m.match_code,
            stage=m.stage,
            home_team_id=m.home_team_id,
            away_team_id=m.away_team_id,
            state=match_state(m),
        )
        for m in engine.by_stage(Stage.round_of_32)
    ]
    return CloseGroupStageResponse(
        tournament=TournamentResponse.model_validate(tournament),
        created_count=len(created),
        round_of_32=r32,
    )


@router.post("/tournaments/{tournament_id}/restart", response_model=TournamentResponse)
def restart_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Discard all results and the bracket; start again from team selection"""
    tournament = require_tournament(session, tournament_id)
    return tournament_service.restart(session, tournament)
