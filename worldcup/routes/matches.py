"""
Match results: manual edits and simulation.

Every command here ends in exactly one propagation pass; the response carries
the edited match plus what the pass changed downstream (participant changes
and reset matches).
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, StrictInt
from sqlmodel import Session

from worldcup.database import get_session
from worldcup.errors import TournamentError
from worldcup.models.match import Match
from worldcup.models.stage import Stage
from worldcup.services import tournament_service
from worldcup.services.propagation_engine import match_state
from worldcup.services.result_source import ResultSource, default_fallback, default_source
from worldcup.utils.guards import http_error, require_tournament

router = APIRouter()


def get_result_source() -> Optional[ResultSource]:
    return default_source()


def get_fallback() -> ResultSource:
    return default_fallback()


class MatchResultUpdate(BaseModel):
    home_score: Optional[StrictInt] = None
    away_score: Optional[StrictInt] = None
    score: Optional[Union[str, Dict[str, Any]]] = None
    tie_break_winner_id: Optional[str] = None


class MatchState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    match_code: str
    match_number: int
    stage: Stage
    group_id: Optional[str] = None
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_finished: bool
    winner_team_id: Optional[str] = None
    state: str
    match_date: date
    kickoff_time: Optional[str] = None
    venue: str
    updated_at: datetime


class MatchUpdateResponse(BaseModel):
    match: MatchState
    propagation: Dict[str, Any]


class SimulatedResult(BaseModel):
    match_code: str
    home_score: int
    away_score: int
    tie_break_winner_id: Optional[str] = None


class SimulatePhaseRequest(BaseModel):
    stage: Stage
    group_id: Optional[str] = None


class SimulatePhaseResponse(BaseModel):
    simulated_count: int
    results: List[SimulatedResult]
    propagation: Dict[str, Any]


def _match_to_state(m: Match) -> MatchState:
    return MatchState(
        match_code=m.match_code,
        match_number=m.match_number,
        stage=m.stage,
        group_id=m.group_id,
        home_team_id=m.home_team_id,
        away_team_id=m.away_team_id,
        home_score=m.home_score,
        away_score=m.away_score,
        is_finished=m.is_finished,
        winner_team_id=m.winner_team_id,
        state=match_state(m),
        match_date=m.match_date,
        kickoff_time=m.kickoff_time,
        venue=m.venue,
        updated_at=m.updated_at,
    )


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchState])
def list_matches(
    tournament_id: int,
    stage: Optional[Stage] = None,
    group: Optional[str] = None,
    session: Session = Depends(get_session),
):
    """List matches, optionally filtered by stage and/or group"""
    tournament = require_tournament(session, tournament_id)
    engine = tournament_service.load_engine(session, tournament)
    return [_match_to_state(m) for m in engine.by_stage(stage, group.upper() if group else None)]


@router.get("/tournaments/{tournament_id}/matches/{match_code}", response_model=MatchState)
def get_match(tournament_id: int, match_code: str, session: Session = Depends(get_session)):
    tournament = require_tournament(session, tournament_id)
    try:
        return _match_to_state(tournament_service.get_match(session, tournament, match_code.upper()))
    except TournamentError as e:
        raise http_error(e)


@router.patch("/tournaments/{tournament_id}/matches/{match_code}/result", response_model=MatchUpdateResponse)
def update_match_result(
    tournament_id: int,
    match_code: str,
    payload: MatchResultUpdate,
    session: Session = Depends(get_session),
) -> MatchUpdateResponse:
    """
    Record or overwrite a result.

    Either home_score + away_score (with tie_break_winner_id for a knockout
    draw) or a score string such as "1-1 (4-3 pens)", never both. Rejected
    edits return 422 and leave every match unchanged.
    """
    if payload.score is not None and (payload.home_score is not None or payload.away_score is not None):
        raise HTTPException(status_code=422, detail="Send either score or home_score/away_score, not both")
    tournament = require_tournament(session, tournament_id)
    code = match_code.upper()
    try:
        if payload.score is not None:
            match, report = tournament_service.edit_result_from_score(session, tournament, code, payload.score)
        elif payload.home_score is not None and payload.away_score is not None:
            match, report = tournament_service.edit_result(
                session,
                tournament,
                code,
                payload.home_score,
                payload.away_score,
                payload.tie_break_winner_id,
            )
        else:
            raise HTTPException(status_code=422, detail="home_score and away_score (or score) are required")
    except TournamentError as e:
        session.rollback()
        raise http_error(e)

    return MatchUpdateResponse(match=_match_to_state(match), propagation=report.to_dict())


@router.post("/tournaments/{tournament_id}/matches/{match_code}/simulate", response_model=MatchUpdateResponse)
def simulate_match(
    tournament_id: int,
    match_code: str,
    session: Session = Depends(get_session),
    source: Optional[ResultSource] = Depends(get_result_source),
    fallback: ResultSource = Depends(get_fallback),
) -> MatchUpdateResponse:
    """Simulate one READY match (remote predictor, else local fallback)"""
    tournament = require_tournament(session, tournament_id)
    try:
        match, _, report = tournament_service.simulate_match(session, tournament, match_code.upper(), source, fallback)
    except TournamentError as e:
        session.rollback()
        raise http_error(e)
    return MatchUpdateResponse(match=_match_to_state(match), propagation=report.to_dict())


@router.post("/tournaments/{tournament_id}/simulate", response_model=SimulatePhaseResponse)
def simulate_phase(
    tournament_id: int,
    payload: SimulatePhaseRequest,
    session: Session = Depends(get_session),
    source: Optional[ResultSource] = Depends(get_result_source),
    fallback: ResultSource = Depends(get_fallback),
) -> SimulatePhaseResponse:
    """Simulate every READY match of a stage, or of one group, as a single batch"""
    tournament = require_tournament(session, tournament_id)
    try:
        outcomes, report = tournament_service.simulate_phase(
            session,
            tournament,
            payload.stage,
            source,
            fallback,
            group_id=payload.group_id.upper() if payload.group_id else None,
        )
    except TournamentError as e:
        session.rollback()
        raise http_error(e)

    return SimulatePhaseResponse(
        simulated_count=len(outcomes),
        results=[
            SimulatedResult(
                match_code=o.match_code,
                home_score=o.result.home_score,
                away_score=o.result.away_score,
                tie_break_winner_id=o.result.tie_break_winner_id,
            )
            for o in outcomes
        ],
        propagation=report.to_dict(),
    )
