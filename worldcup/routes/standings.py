from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from worldcup.data.teams import TEAMS, group_of
from worldcup.database import get_session
from worldcup.services import tournament_service
from worldcup.services.qualifiers import qualifier_summary
from worldcup.services.standings import group_tables, rank_all_groups
from worldcup.utils.guards import require_tournament

router = APIRouter()


@router.get("/tournaments/{tournament_id}/standings")
def get_standings(tournament_id: int, session: Session = Depends(get_session)) -> List[Dict[str, Any]]:
    """All 12 group tables, recomputed from the finished group matches"""
    tournament = require_tournament(session, tournament_id)
    engine = tournament_service.load_engine(session, tournament)
    return group_tables(engine.standings)


@router.get("/tournaments/{tournament_id}/standings/{team_id}")
def get_team_standing(tournament_id: int, team_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    tournament = require_tournament(session, tournament_id)
    team_id = team_id.upper()
    if team_id not in TEAMS:
        raise HTTPException(status_code=404, detail="Team not found")

    engine = tournament_service.load_engine(session, tournament)
    group_id = group_of(team_id)
    row = engine.standings[team_id].to_dict()
    row["team_name"] = TEAMS[team_id].name
    row["group_id"] = group_id
    row["position"] = rank_all_groups(engine.standings)[group_id].index(team_id) + 1
    return row


@router.get("/tournaments/{tournament_id}/qualifiers")
def get_qualifiers(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Who goes through as things stand, and where the best thirds would land"""
    tournament = require_tournament(session, tournament_id)
    engine = tournament_service.load_engine(session, tournament)
    return qualifier_summary(engine.standings)
