from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from worldcup.data.teams import GROUPS, TEAMS, group_of

router = APIRouter()


class TeamResponse(BaseModel):
    id: str
    name: str
    rating: int
    confederation: str
    group_id: str


class GroupResponse(BaseModel):
    id: str
    team_ids: List[str]


@router.get("/teams", response_model=List[TeamResponse])
def list_teams():
    """All 48 teams in draw order"""
    return [
        TeamResponse(
            id=t.id,
            name=t.name,
            rating=t.rating,
            confederation=t.confederation,
            group_id=group_of(t.id),
        )
        for t in TEAMS.values()
    ]


@router.get("/groups", response_model=List[GroupResponse])
def list_groups():
    return [GroupResponse(id=g.id, team_ids=list(g.team_ids)) for g in GROUPS]
