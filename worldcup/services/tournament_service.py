"""
Session-bound tournament operations.

Each function loads the tournament's matches into a TournamentEngine, performs
one command (one atomic event or one validated batch, followed by a single
settle), and commits. Remote results are fetched before anything is mutated,
so a failed fetch leaves the stored state untouched.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlmodel import Session, select

from worldcup.data.bracket_slots import SIDE_HOME
from worldcup.data.teams import TEAMS
from worldcup.errors import InconsistentEditError, MalformedResultError, UnknownMatchError, UnknownTeamError
from worldcup.models.match import Match
from worldcup.models.stage import Phase, Stage
from worldcup.models.tournament import Tournament
from worldcup.services.bracket_builder import build_group_schedule
from worldcup.services.propagation_engine import (
    STATE_READY,
    PropagationReport,
    ResultEvent,
    TournamentEngine,
    match_state,
)
from worldcup.services.result_source import MatchResult, ResultSource, resolve_result, resolve_results
from worldcup.services.score_parser import parse_score
from worldcup.services.snapshot import (
    TournamentSnapshot,
    export_snapshot,
    matches_from_snapshot,
    validate_snapshot,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationOutcome:
    match_code: str
    result: MatchResult


def _check_team(team_id: Optional[str]) -> None:
    if team_id is not None and team_id not in TEAMS:
        raise UnknownTeamError(f"Unknown team {team_id!r}")


def load_matches(session: Session, tournament_id: int) -> List[Match]:
    return list(
        session.exec(
            select(Match).where(Match.tournament_id == tournament_id).order_by(Match.match_number)
        ).all()
    )


def get_match(session: Session, tournament: Tournament, match_code: str) -> Match:
    match = session.exec(
        select(Match).where(Match.tournament_id == tournament.id, Match.match_code == match_code)
    ).first()
    if match is None:
        raise UnknownMatchError(f"Match {match_code} not found")
    return match


def load_engine(session: Session, tournament: Tournament) -> TournamentEngine:
    return TournamentEngine(load_matches(session, tournament.id), tournament_id=tournament.id)


def _commit(session: Session, tournament: Tournament, engine: TournamentEngine) -> None:
    for match in engine.matches.values():
        session.add(match)
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()


def create_tournament(session: Session, name: str, selected_team_id: Optional[str] = None) -> Tournament:
    """Create a tournament with its 72 group matches seeded from the draw."""
    _check_team(selected_team_id)
    tournament = Tournament(
        name=name,
        selected_team_id=selected_team_id,
        phase=Phase.group_stage if selected_team_id else Phase.team_selection,
    )
    session.add(tournament)
    session.commit()
    session.refresh(tournament)

    for match in build_group_schedule(tournament.id):
        session.add(match)
    session.commit()
    session.refresh(tournament)
    logger.info("Created tournament %s (%s)", tournament.id, tournament.name)
    return tournament


def select_team(session: Session, tournament: Tournament, team_id: str) -> Tournament:
    _check_team(team_id)
    tournament.selected_team_id = team_id
    if Phase(tournament.phase) == Phase.team_selection:
        tournament.phase = Phase.group_stage
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


def edit_result(
    session: Session,
    tournament: Tournament,
    match_code: str,
    home_score: int,
    away_score: int,
    tie_break_winner_id: Optional[str] = None,
) -> Tuple[Match, PropagationReport]:
    """Record a manual result. Rejected edits raise before anything is committed."""
    engine = load_engine(session, tournament)
    report = engine.apply_result(
        ResultEvent(
            match_code=match_code,
            home_score=home_score,
            away_score=away_score,
            tie_break_winner_id=tie_break_winner_id,
        )
    )
    _commit(session, tournament, engine)
    return engine.get(match_code), report


def edit_result_from_score(
    session: Session, tournament: Tournament, match_code: str, raw: Union[str, Dict[str, Any]]
) -> Tuple[Match, PropagationReport]:
    """Record a result typed as '2-1' or '1-1 (4-3 pens)'; a shootout names the tie-break winner."""
    parsed = parse_score(raw)
    if parsed is None:
        raise MalformedResultError(f"Could not parse score {raw!r}")

    tie_break = None
    side = parsed.shootout_winner_side
    if side is not None:
        match = get_match(session, tournament, match_code)
        tie_break = match.home_team_id if side == SIDE_HOME else match.away_team_id
    return edit_result(session, tournament, match_code, parsed.home_goals, parsed.away_goals, tie_break)


def _fetch_result(
    match: Match, source: Optional[ResultSource], fallback: ResultSource
) -> MatchResult:
    if match_state(match) != STATE_READY:
        raise InconsistentEditError(f"{match.match_code} is not ready to be simulated")
    home = TEAMS[match.home_team_id]
    away = TEAMS[match.away_team_id]
    return resolve_result(source, fallback, home, away, Stage(match.stage))


def simulate_match(
    session: Session,
    tournament: Tournament,
    match_code: str,
    source: Optional[ResultSource],
    fallback: ResultSource,
) -> Tuple[Match, MatchResult, PropagationReport]:
    """Simulate one READY match through the same entry point as a manual edit."""
    engine = load_engine(session, tournament)
    match = engine.get(match_code)
    result = _fetch_result(match, source, fallback)
    report = engine.apply_result(
        ResultEvent(
            match_code=match_code,
            home_score=result.home_score,
            away_score=result.away_score,
            tie_break_winner_id=result.tie_break_winner_id,
        )
    )
    _commit(session, tournament, engine)
    return engine.get(match_code), result, report


def simulate_phase(
    session: Session,
    tournament: Tournament,
    stage: Stage,
    source: Optional[ResultSource],
    fallback: ResultSource,
    group_id: Optional[str] = None,
) -> Tuple[List[SimulationOutcome], PropagationReport]:
    """
    Simulate every READY match of a stage (optionally one group).

    All results are fetched first (one batch request when the source supports
    it), then applied as one batch followed by a single settle.
    """
    engine = load_engine(session, tournament)
    ready = [m for m in engine.by_stage(stage, group_id) if match_state(m) == STATE_READY]

    pairs = [(TEAMS[m.home_team_id], TEAMS[m.away_team_id]) for m in ready]
    results = resolve_results(source, fallback, pairs, Stage(stage))
    outcomes = [SimulationOutcome(match_code=m.match_code, result=r) for m, r in zip(ready, results)]
    report = engine.apply_results(
        ResultEvent(
            match_code=o.match_code,
            home_score=o.result.home_score,
            away_score=o.result.away_score,
            tie_break_winner_id=o.result.tie_break_winner_id,
        )
        for o in outcomes
    )
    _commit(session, tournament, engine)
    logger.info(
        "Simulated %d %s match(es) for tournament %s", len(outcomes), Stage(stage).value, tournament.id
    )
    return outcomes, report


def close_group_stage(session: Session, tournament: Tournament) -> Tuple[List[Match], TournamentEngine]:
    """Build the knockout bracket from current standings. Safe to call again."""
    engine = load_engine(session, tournament)
    unfinished = [m.match_code for m in engine.by_stage(Stage.group) if not m.is_finished]
    if unfinished:
        logger.warning(
            "Closing group stage of tournament %s with %d unfinished group match(es)", tournament.id, len(unfinished)
        )
    created = engine.close_group_stage()
    tournament.phase = Phase.knockout_stage
    _commit(session, tournament, engine)
    return created, engine


def restart(session: Session, tournament: Tournament) -> Tournament:
    """Drop every match and result; back to team selection with a fresh group schedule."""
    for match in load_matches(session, tournament.id):
        session.delete(match)
    session.flush()

    for match in build_group_schedule(tournament.id):
        session.add(match)
    tournament.selected_team_id = None
    tournament.phase = Phase.team_selection
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    logger.info("Restarted tournament %s", tournament.id)
    return tournament


def snapshot_of(session: Session, tournament: Tournament) -> TournamentSnapshot:
    engine = load_engine(session, tournament)
    return export_snapshot(
        engine.matches.values(),
        engine.standings,
        Phase(tournament.phase),
        selected_team_id=tournament.selected_team_id,
        name=tournament.name,
    )


def load_snapshot(
    session: Session, tournament: Tournament, snapshot: TournamentSnapshot
) -> Tuple[TournamentEngine, PropagationReport]:
    """Replace the tournament's matches with the snapshot's and re-derive standings and bracket."""
    validate_snapshot(snapshot)

    for match in load_matches(session, tournament.id):
        session.delete(match)
    session.flush()

    engine = TournamentEngine(matches_from_snapshot(snapshot, tournament.id), tournament_id=tournament.id)
    report = engine.settle()
    tournament.selected_team_id = snapshot.selected_team_id
    tournament.phase = snapshot.phase
    _commit(session, tournament, engine)
    session.refresh(tournament)
    return engine, report
