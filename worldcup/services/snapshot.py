"""
Serializable tournament snapshots.

Standings are included on export for convenience but ignored on import: they
are a pure derivation of the finished group matches and get recomputed, along
with the bracket, by settling the loaded matches.

Fixture metadata (stage, date, kickoff, venue) is exported for display only.
On import it is rebuilt from the static schedule, and group matches must keep
the participants the draw gives them.
"""
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from worldcup.data.schedule import GROUP_FIXTURES_BY_CODE, KNOCKOUT_FIXTURES_BY_CODE, match_number
from worldcup.data.teams import GROUPS_BY_ID, TEAMS
from worldcup.errors import InvalidSnapshotError
from worldcup.models.match import Match
from worldcup.models.stage import Phase, Stage
from worldcup.models.standing import Standing

SNAPSHOT_VERSION = 1

_GROUP_CODES = set(GROUP_FIXTURES_BY_CODE)
_KNOCKOUT_CODES = set(KNOCKOUT_FIXTURES_BY_CODE)


class MatchSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    match_code: str
    stage: Stage
    group_id: Optional[str] = None
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_finished: bool = False
    winner_team_id: Optional[str] = None
    match_date: Optional[date] = None
    kickoff_time: Optional[str] = None
    venue: Optional[str] = None


class StandingSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    team_id: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int


class TournamentSnapshot(BaseModel):
    version: int = SNAPSHOT_VERSION
    name: Optional[str] = None
    selected_team_id: Optional[str] = None
    phase: Phase
    matches: List[MatchSnapshot]
    standings: Dict[str, StandingSnapshot] = {}


def export_snapshot(
    matches: Iterable[Match],
    standings: Dict[str, Standing],
    phase: Phase,
    selected_team_id: Optional[str] = None,
    name: Optional[str] = None,
) -> TournamentSnapshot:
    ordered = sorted(matches, key=lambda m: m.match_number)
    return TournamentSnapshot(
        name=name,
        selected_team_id=selected_team_id,
        phase=phase,
        matches=[MatchSnapshot.model_validate(m) for m in ordered],
        standings={tid: StandingSnapshot.model_validate(s) for tid, s in standings.items()},
    )


def _score_winner(m: MatchSnapshot) -> Optional[str]:
    if m.home_score > m.away_score:
        return m.home_team_id
    if m.away_score > m.home_score:
        return m.away_team_id
    return None


def _check_fixture(m: MatchSnapshot) -> None:
    """Stage, group and (for group matches) participants must match the static schedule."""
    code = m.match_code
    if code in GROUP_FIXTURES_BY_CODE:
        fixture = GROUP_FIXTURES_BY_CODE[code]
        if Stage(m.stage) != Stage.group:
            raise InvalidSnapshotError(f"{code}: stage {Stage(m.stage).value!r} does not fit this match")
        if m.group_id != fixture.group_id:
            raise InvalidSnapshotError(f"{code}: belongs to group {fixture.group_id}, not {m.group_id!r}")
        team_ids = GROUPS_BY_ID[fixture.group_id].team_ids
        expected = (team_ids[fixture.pairing[0]], team_ids[fixture.pairing[1]])
        if (m.home_team_id, m.away_team_id) != expected:
            raise InvalidSnapshotError(f"{code}: participants must be {expected[0]} v {expected[1]}")
        return

    fixture = KNOCKOUT_FIXTURES_BY_CODE[code]
    if Stage(m.stage) != fixture.stage:
        raise InvalidSnapshotError(f"{code}: stage {Stage(m.stage).value!r} does not fit this match")
    if m.group_id is not None:
        raise InvalidSnapshotError(f"{code}: knockout matches have no group")


def _check_match(m: MatchSnapshot) -> None:
    code = m.match_code
    for tid in (m.home_team_id, m.away_team_id, m.winner_team_id):
        if tid is not None and tid not in TEAMS:
            raise InvalidSnapshotError(f"{code}: unknown team {tid!r}")
    if (m.home_score is None) != (m.away_score is None):
        raise InvalidSnapshotError(f"{code}: scores must be both set or both empty")
    for score in (m.home_score, m.away_score):
        if score is not None and score < 0:
            raise InvalidSnapshotError(f"{code}: negative score")
    if m.is_finished and m.home_score is None:
        raise InvalidSnapshotError(f"{code}: finished match without a score")
    if m.winner_team_id is not None and not m.is_finished:
        raise InvalidSnapshotError(f"{code}: winner recorded on an unfinished match")
    if m.is_finished and (m.home_team_id is None or m.away_team_id is None):
        raise InvalidSnapshotError(f"{code}: finished match without both participants")
    if not m.is_finished:
        return

    score_winner = _score_winner(m)
    if Stage(m.stage) == Stage.group:
        # Group winner is display-only: the side with more goals, none on a draw
        if m.winner_team_id != score_winner:
            raise InvalidSnapshotError(f"{code}: winner contradicts the score")
        return
    if m.winner_team_id is None or m.winner_team_id not in (m.home_team_id, m.away_team_id):
        raise InvalidSnapshotError(f"{code}: finished knockout match needs a winner among its participants")
    if score_winner is not None and m.winner_team_id != score_winner:
        raise InvalidSnapshotError(f"{code}: winner contradicts the score")


def validate_snapshot(snapshot: TournamentSnapshot) -> None:
    """Raise InvalidSnapshotError unless the snapshot can be loaded as-is."""
    if snapshot.selected_team_id is not None and snapshot.selected_team_id not in TEAMS:
        raise InvalidSnapshotError(f"Unknown selected team {snapshot.selected_team_id!r}")

    seen: Dict[str, MatchSnapshot] = {}
    for m in snapshot.matches:
        try:
            match_number(m.match_code)
        except ValueError as e:
            raise InvalidSnapshotError(str(e)) from e
        if m.match_code in seen:
            raise InvalidSnapshotError(f"Duplicate match {m.match_code}")
        if m.match_code not in _GROUP_CODES and m.match_code not in _KNOCKOUT_CODES:
            raise InvalidSnapshotError(f"Unknown match {m.match_code}")
        _check_fixture(m)
        _check_match(m)
        seen[m.match_code] = m

    missing_group = _GROUP_CODES - seen.keys()
    if missing_group:
        raise InvalidSnapshotError(f"Snapshot is missing {len(missing_group)} group match(es)")
    knockout_present = _KNOCKOUT_CODES & seen.keys()
    if knockout_present and knockout_present != _KNOCKOUT_CODES:
        raise InvalidSnapshotError("Snapshot contains a partial knockout bracket")


def _match_from_snapshot(m: MatchSnapshot, tournament_id: Optional[int], now: datetime) -> Match:
    fixture = GROUP_FIXTURES_BY_CODE.get(m.match_code) or KNOCKOUT_FIXTURES_BY_CODE[m.match_code]
    return Match(
        tournament_id=tournament_id,
        match_code=fixture.match_code,
        match_number=fixture.number,
        stage=Stage.group if m.match_code in GROUP_FIXTURES_BY_CODE else fixture.stage,
        group_id=m.group_id,
        home_team_id=m.home_team_id,
        away_team_id=m.away_team_id,
        home_score=m.home_score,
        away_score=m.away_score,
        is_finished=m.is_finished,
        winner_team_id=m.winner_team_id,
        match_date=fixture.match_date,
        kickoff_time=fixture.kickoff_time,
        venue=fixture.venue,
        updated_at=now,
    )


def matches_from_snapshot(snapshot: TournamentSnapshot, tournament_id: Optional[int] = None) -> List[Match]:
    """Build Match rows from a validated snapshot; fixture metadata comes from the schedule."""
    now = datetime.utcnow()
    return [_match_from_snapshot(m, tournament_id, now) for m in snapshot.matches]
