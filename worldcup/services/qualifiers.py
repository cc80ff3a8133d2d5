"""
Knockout qualification: group winners, runners-up and the best 8 of the 12
third-placed teams, assigned to Round-of-32 slots.

Everything here is a pure function of the standings. select_r32_pairings keeps
no memory between calls, so it can be re-run after every result edit.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from worldcup.data.bracket_slots import R32_SLOTS, R32Slot, SeedCode
from worldcup.data.teams import GROUPS
from worldcup.models.standing import Standing
from worldcup.models.team import Group
from worldcup.services.standings import rank_all_groups, ranking_key

logger = logging.getLogger(__name__)

QUALIFIED_THIRDS = 8


@dataclass
class ThirdPlaceCandidate:
    team_id: str
    group_id: str


@dataclass
class R32Pairing:
    match_code: str
    home_team_id: Optional[str]
    away_team_id: Optional[str]


def rank_third_placed(
    group_rankings: Dict[str, List[str]], standings: Dict[str, Standing]
) -> List[ThirdPlaceCandidate]:
    """All third-placed teams, best first. Group letter order breaks exact ties."""
    thirds = [
        ThirdPlaceCandidate(team_id=ranked[2], group_id=gid)
        for gid, ranked in sorted(group_rankings.items())
        if len(ranked) > 2
    ]
    return sorted(
        thirds,
        key=lambda c: ranking_key(standings.get(c.team_id) or Standing(team_id=c.team_id)),
    )


def best_thirds(
    group_rankings: Dict[str, List[str]], standings: Dict[str, Standing], count: int = QUALIFIED_THIRDS
) -> List[ThirdPlaceCandidate]:
    return rank_third_placed(group_rankings, standings)[:count]


def _resolve_direct(seed: SeedCode, group_rankings: Dict[str, List[str]]) -> Optional[str]:
    ranked = group_rankings.get(seed.groups[0]) or []
    index = seed.rank - 1
    return ranked[index] if index < len(ranked) else None


def _assign_third(
    slot: R32Slot,
    seed: SeedCode,
    qualified: List[ThirdPlaceCandidate],
    assigned: Set[str],
) -> Optional[str]:
    """
    Greedy pick for one third-place slot.

    Highest-ranked unassigned qualified third whose group is on the allow-list;
    otherwise the best unassigned qualified third at all; otherwise None.
    """
    allowed = set(seed.groups)
    for cand in qualified:
        if cand.team_id not in assigned and cand.group_id in allowed:
            assigned.add(cand.team_id)
            return cand.team_id

    for cand in qualified:
        if cand.team_id not in assigned:
            logger.debug(
                "No qualified third for %s left in %s; falling back to %s (group %s)",
                seed,
                slot.match_code,
                cand.team_id,
                cand.group_id,
            )
            assigned.add(cand.team_id)
            return cand.team_id

    return None


def select_r32_pairings(
    standings: Dict[str, Standing],
    groups: Iterable[Group] = GROUPS,
    slots: Iterable[R32Slot] = R32_SLOTS,
) -> List[R32Pairing]:
    """
    One pairing per Round-of-32 slot, in seed-table order.

    Direct codes ('1A', '2B') resolve from the ranked groups; third-place
    codes are filled greedily in table order from the qualified thirds.
    """
    group_rankings = rank_all_groups(standings, groups)
    qualified = best_thirds(group_rankings, standings)
    assigned: Set[str] = set()

    pairings: List[R32Pairing] = []
    for slot in slots:
        sides = []
        for seed in (slot.home, slot.away):
            if seed.is_third_place:
                sides.append(_assign_third(slot, seed, qualified, assigned))
            else:
                sides.append(_resolve_direct(seed, group_rankings))
        pairings.append(R32Pairing(match_code=slot.match_code, home_team_id=sides[0], away_team_id=sides[1]))
    return pairings


def qualifier_summary(standings: Dict[str, Standing], groups: Iterable[Group] = GROUPS) -> Dict:
    """
    Qualification picture for display: winners, runners-up, the ranked
    third-place table (with qualified flag and assigned R32 slot) and the
    Round-of-32 pairings as they would stand now.
    """
    groups = list(groups)
    group_rankings = rank_all_groups(standings, groups)
    thirds = rank_third_placed(group_rankings, standings)
    pairings = select_r32_pairings(standings, groups)

    slot_of_team: Dict[str, str] = {}
    for p in pairings:
        for tid in (p.home_team_id, p.away_team_id):
            if tid is not None:
                slot_of_team[tid] = p.match_code

    third_rows = []
    for rank, cand in enumerate(thirds, start=1):
        s = standings.get(cand.team_id) or Standing(team_id=cand.team_id)
        third_rows.append(
            {
                "rank": rank,
                "team_id": cand.team_id,
                "group_id": cand.group_id,
                "points": s.points,
                "goal_difference": s.goal_difference,
                "goals_for": s.goals_for,
                "qualified": rank <= QUALIFIED_THIRDS,
                "r32_match_code": slot_of_team.get(cand.team_id) if rank <= QUALIFIED_THIRDS else None,
            }
        )

    return {
        "group_winners": {gid: ranked[0] for gid, ranked in group_rankings.items()},
        "runners_up": {gid: ranked[1] for gid, ranked in group_rankings.items()},
        "third_placed": third_rows,
        "r32_pairings": [
            {"match_code": p.match_code, "home_team_id": p.home_team_id, "away_team_id": p.away_team_id}
            for p in pairings
        ],
    }
