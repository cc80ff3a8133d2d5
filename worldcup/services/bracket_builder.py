"""
Knockout bracket construction.

Creates the 32 knockout matches (16 R32, 8 R16, 4 QF, 2 SF, third place,
final). Only Round-of-32 matches get participants here; later rounds start
empty and are filled by propagation.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from worldcup.data.bracket_slots import R32_SLOTS
from worldcup.data.schedule import GROUP_FIXTURES, KNOCKOUT_FIXTURES, KnockoutFixture
from worldcup.data.teams import GROUPS_BY_ID
from worldcup.models.match import Match
from worldcup.models.stage import Stage
from worldcup.services.qualifiers import R32Pairing


def _knockout_match(fixture: KnockoutFixture, tournament_id: Optional[int]) -> Match:
    return Match(
        tournament_id=tournament_id,
        match_code=fixture.match_code,
        match_number=fixture.number,
        stage=fixture.stage,
        match_date=fixture.match_date,
        kickoff_time=fixture.kickoff_time,
        venue=fixture.venue,
        is_finished=False,
        updated_at=datetime.utcnow(),
    )


def build_bracket(
    pairings: Iterable[R32Pairing],
    existing: Iterable[Match] = (),
    tournament_id: Optional[int] = None,
) -> List[Match]:
    """
    Return the knockout matches that do not exist yet.

    Idempotent: any match code already present in `existing` is skipped, so
    re-entering after a partial build neither duplicates nor discards matches.
    Existing R32 participants are left to propagation to reconcile.
    """
    existing_codes = {m.match_code for m in existing}
    pairing_by_code: Dict[str, R32Pairing] = {p.match_code: p for p in pairings}

    missing = [code for code in (s.match_code for s in R32_SLOTS) if code not in pairing_by_code]
    if missing:
        raise ValueError(f"Missing Round-of-32 pairings for {', '.join(missing)}")

    created: List[Match] = []
    for fixture in KNOCKOUT_FIXTURES:
        if fixture.match_code in existing_codes:
            continue
        match = _knockout_match(fixture, tournament_id)
        if fixture.stage == Stage.round_of_32:
            pairing = pairing_by_code[fixture.match_code]
            match.home_team_id = pairing.home_team_id
            match.away_team_id = pairing.away_team_id
        created.append(match)
    return created


def build_group_schedule(tournament_id: Optional[int] = None) -> List[Match]:
    """The 72 group matches with participants seeded from the draw."""
    matches: List[Match] = []
    for fixture in GROUP_FIXTURES:
        group = GROUPS_BY_ID[fixture.group_id]
        home_pos, away_pos = fixture.pairing
        matches.append(
            Match(
                tournament_id=tournament_id,
                match_code=fixture.match_code,
                match_number=fixture.number,
                stage=Stage.group,
                group_id=fixture.group_id,
                home_team_id=group.team_ids[home_pos],
                away_team_id=group.team_ids[away_pos],
                match_date=fixture.match_date,
                kickoff_time=fixture.kickoff_time,
                venue=fixture.venue,
                is_finished=False,
                updated_at=datetime.utcnow(),
            )
        )
    return matches
