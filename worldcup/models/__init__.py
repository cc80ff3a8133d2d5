from worldcup.models.match import Match
from worldcup.models.stage import Phase, Stage, is_knockout
from worldcup.models.standing import Standing
from worldcup.models.team import Group, Team
from worldcup.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Match",
    "Stage",
    "Phase",
    "Standing",
    "Team",
    "Group",
    "is_knockout",
]
