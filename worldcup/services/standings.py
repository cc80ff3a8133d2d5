"""
Group standings.

Standings are a pure function of the finished group matches: they are rebuilt
from zero on every call, never patched incrementally.

Ranking: points, then goal difference, then goals for. Teams level on all
three keep the order they were given in (group draw order inside a group,
group letter order across groups); Python's sort is stable.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from worldcup.data.teams import GROUPS, TEAMS
from worldcup.models.match import Match
from worldcup.models.stage import Stage
from worldcup.models.standing import Standing
from worldcup.models.team import Group


def compute_standings(
    matches: Iterable[Match], team_ids: Optional[Iterable[str]] = None
) -> Dict[str, Standing]:
    """
    Fold finished group matches into one Standing per team.

    Every known team (the full roster unless team_ids is given) starts at
    zero, so teams without a finished match still get a row. Knockout matches
    and unfinished group matches are ignored.
    """
    ids = list(team_ids) if team_ids is not None else list(TEAMS.keys())
    standings: Dict[str, Standing] = {tid: Standing(team_id=tid) for tid in ids}

    for match in matches:
        if Stage(match.stage) != Stage.group or not match.is_finished:
            continue
        if match.home_score is None or match.away_score is None:
            continue
        if match.home_team_id is None or match.away_team_id is None:
            continue
        home = standings.setdefault(match.home_team_id, Standing(team_id=match.home_team_id))
        away = standings.setdefault(match.away_team_id, Standing(team_id=match.away_team_id))
        home.record(match.home_score, match.away_score)
        away.record(match.away_score, match.home_score)

    return standings


def ranking_key(standing: Standing) -> Tuple[int, int, int]:
    """Sort key: ascending order puts the best team first."""
    return (-standing.points, -standing.goal_difference, -standing.goals_for)


def rank_team_ids(team_ids: Iterable[str], standings: Dict[str, Standing]) -> List[str]:
    """Order team ids best-first. Missing standings count as zero."""
    return sorted(team_ids, key=lambda tid: ranking_key(standings.get(tid) or Standing(team_id=tid)))


def rank_group(group: Group, standings: Dict[str, Standing]) -> List[str]:
    """Group team ids ordered 1st..4th."""
    return rank_team_ids(group.team_ids, standings)


def rank_all_groups(standings: Dict[str, Standing], groups: Iterable[Group] = GROUPS) -> Dict[str, List[str]]:
    """group_id -> team ids ordered 1st..4th, for every group."""
    return {g.id: rank_group(g, standings) for g in groups}


def group_tables(standings: Dict[str, Standing], groups: Iterable[Group] = GROUPS) -> List[Dict]:
    """Display rows: one entry per group, teams ranked with their position."""
    tables = []
    for group in groups:
        rows = []
        for position, tid in enumerate(rank_group(group, standings), start=1):
            row = standings[tid].to_dict() if tid in standings else Standing(team_id=tid).to_dict()
            row["position"] = position
            row["team_name"] = TEAMS[tid].name if tid in TEAMS else tid
            rows.append(row)
        tables.append({"group_id": group.id, "rows": rows})
    return tables
