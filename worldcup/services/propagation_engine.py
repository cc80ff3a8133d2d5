"""
Result propagation and invalidation.

Every result mutation (manual edit, single simulation, batch simulation) goes
through apply_result / apply_results, which record the score locally and then
run exactly one settle() pass:

  1. standings are recomputed from scratch over all finished group matches
  2. if the bracket exists, Round-of-32 participants are re-derived from the
     qualifier selection and overwritten where they differ
  3. later rounds take the winner (loser for the third-place playoff) of each
     finished source match, walking KNOCKOUT_LINKS until a full pass changes
     nothing

Whenever a participant of a finished match changes, that match is reset
(scores, finished flag and winner cleared), which in turn clears whatever it
fed downstream. settle() is idempotent: a second call with no new input
changes nothing.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from worldcup.data.bracket_slots import KNOCKOUT_LINKS, R32_SLOTS, ROLE_LOSER, SIDE_AWAY, SIDE_HOME
from worldcup.errors import InconsistentEditError, MalformedResultError, UnknownMatchError
from worldcup.models.match import Match
from worldcup.models.stage import Stage, is_knockout
from worldcup.models.standing import Standing
from worldcup.services.bracket_builder import build_bracket
from worldcup.services.qualifiers import select_r32_pairings
from worldcup.services.standings import compute_standings

logger = logging.getLogger(__name__)

STATE_PENDING = "PENDING"
STATE_READY = "READY"
STATE_FINISHED = "FINISHED"


@dataclass
class ResultEvent:
    match_code: str
    home_score: int
    away_score: int
    tie_break_winner_id: Optional[str] = None  # knockout draws only (e.g. penalty shootout)


@dataclass
class ParticipantChange:
    match_code: str
    side: str
    old_team_id: Optional[str]
    new_team_id: Optional[str]


@dataclass
class PropagationReport:
    """What one apply/settle call changed."""

    applied: List[str] = field(default_factory=list)
    participant_changes: List[ParticipantChange] = field(default_factory=list)
    reset_matches: List[str] = field(default_factory=list)
    passes: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.applied or self.participant_changes or self.reset_matches)

    def merge(self, other: "PropagationReport") -> "PropagationReport":
        self.applied.extend(other.applied)
        self.participant_changes.extend(other.participant_changes)
        self.reset_matches.extend(other.reset_matches)
        self.passes += other.passes
        return self

    def to_dict(self) -> Dict:
        return {
            "applied": list(self.applied),
            "participant_changes": [
                {
                    "match_code": c.match_code,
                    "side": c.side,
                    "old_team_id": c.old_team_id,
                    "new_team_id": c.new_team_id,
                }
                for c in self.participant_changes
            ],
            "reset_matches": list(self.reset_matches),
            "passes": self.passes,
        }


# ============================================================================
# Per-match state
# ============================================================================


def match_state(match: Match) -> str:
    if match.is_finished:
        return STATE_FINISHED
    if match.home_team_id is not None and match.away_team_id is not None:
        return STATE_READY
    return STATE_PENDING


def reset_match(match: Match) -> bool:
    """Clear result fields. Returns True if there was a result to clear."""
    had_result = match.is_finished or match.home_score is not None or match.away_score is not None
    match.home_score = None
    match.away_score = None
    match.is_finished = False
    match.winner_team_id = None
    if had_result:
        match.updated_at = datetime.utcnow()
    return had_result


def _validate_score(value, label: str) -> int:
    # bool is an int subclass; a True/False score is a caller bug
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResultError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise MalformedResultError(f"{label} must be >= 0, got {value}")
    return value


def check_result(match: Match, event: ResultEvent) -> Optional[str]:
    """
    Validate an event against a match without touching it.

    Returns the winner the match would record (None for a drawn group match).
    Raises MalformedResultError / InconsistentEditError.
    """
    home_score = _validate_score(event.home_score, "home_score")
    away_score = _validate_score(event.away_score, "away_score")

    if match.home_team_id is None or match.away_team_id is None:
        raise InconsistentEditError(f"{match.match_code} participants are not resolved yet")

    participants = (match.home_team_id, match.away_team_id)
    tie_break = event.tie_break_winner_id
    if tie_break is not None and tie_break not in participants:
        raise MalformedResultError(f"tie_break_winner_id {tie_break!r} is not playing in {match.match_code}")

    if home_score > away_score:
        score_winner = match.home_team_id
    elif away_score > home_score:
        score_winner = match.away_team_id
    else:
        score_winner = None

    if not is_knockout(match.stage):
        return score_winner

    if score_winner is None:
        if tie_break is None:
            raise InconsistentEditError(f"{match.match_code} is a knockout match; a draw needs a tie-break winner")
        return tie_break

    if tie_break is not None and tie_break != score_winner:
        raise InconsistentEditError(
            f"tie_break_winner_id {tie_break!r} contradicts the {home_score}-{away_score} score"
        )
    return score_winner


def apply_local_result(match: Match, event: ResultEvent) -> None:
    """Record the result on this match only. Leaves the match untouched on error."""
    winner = check_result(match, event)
    match.home_score = event.home_score
    match.away_score = event.away_score
    match.is_finished = True
    match.winner_team_id = winner
    match.updated_at = datetime.utcnow()


# ============================================================================
# Propagation
# ============================================================================


def has_bracket(matches: Dict[str, Match]) -> bool:
    return any(slot.match_code in matches for slot in R32_SLOTS)


def _set_participant(
    match: Match, side: str, team_id: Optional[str], report: PropagationReport
) -> bool:
    attr = "home_team_id" if side == SIDE_HOME else "away_team_id"
    current = getattr(match, attr)
    if current == team_id:
        return False
    setattr(match, attr, team_id)
    match.updated_at = datetime.utcnow()
    report.participant_changes.append(
        ParticipantChange(match_code=match.match_code, side=side, old_team_id=current, new_team_id=team_id)
    )
    if reset_match(match):
        report.reset_matches.append(match.match_code)
    return True


def _outcome(source: Optional[Match], role: str) -> Optional[str]:
    """Team a finished source sends forward; None while the source is unfinished."""
    if source is None or not source.is_finished or source.winner_team_id is None:
        return None
    if role == ROLE_LOSER:
        if source.winner_team_id == source.home_team_id:
            return source.away_team_id
        return source.home_team_id
    return source.winner_team_id


def sync_round_of_32(
    matches: Dict[str, Match], standings: Dict[str, Standing], report: PropagationReport
) -> None:
    """Overwrite R32 participants that no longer match the qualifier selection."""
    for pairing in select_r32_pairings(standings):
        match = matches.get(pairing.match_code)
        if match is None:
            continue
        _set_participant(match, SIDE_HOME, pairing.home_team_id, report)
        _set_participant(match, SIDE_AWAY, pairing.away_team_id, report)


def advance_knockouts(matches: Dict[str, Match], report: PropagationReport) -> None:
    """
    Push winners/losers forward until a full pass over the wiring changes nothing.

    A reset clears the reset match's winner, so the next link that reads it
    sees None and clears its own target in turn.
    """
    max_passes = len(KNOCKOUT_LINKS) + 1
    for _ in range(max_passes):
        report.passes += 1
        changed = False
        for link in KNOCKOUT_LINKS:
            target = matches.get(link.target_code)
            if target is None:
                continue
            incoming = _outcome(matches.get(link.source_code), link.role)
            if _set_participant(target, link.side, incoming, report):
                changed = True
        if not changed:
            return
    raise RuntimeError("Knockout propagation did not reach a fixed point")


def settle(matches: Dict[str, Match]) -> Tuple[Dict[str, Standing], PropagationReport]:
    """Re-derive standings and bracket participants. Idempotent."""
    report = PropagationReport()
    standings = compute_standings(matches.values())
    if has_bracket(matches):
        sync_round_of_32(matches, standings, report)
        advance_knockouts(matches, report)
    if report.reset_matches:
        logger.info(
            "Propagation reset %d match(es): %s", len(report.reset_matches), ", ".join(report.reset_matches)
        )
    return standings, report


def _lookup(matches: Dict[str, Match], code: str) -> Match:
    match = matches.get(code)
    if match is None:
        raise UnknownMatchError(f"Match {code} not found")
    return match


def apply_results(
    matches: Dict[str, Match], events: Iterable[ResultEvent]
) -> Tuple[Dict[str, Standing], PropagationReport]:
    """
    Apply a batch of results atomically, then settle once.

    Every event is validated before any match is touched, so one bad event
    rejects the whole batch. Events must target matches whose participants are
    already known (one stage at a time).
    """
    events = list(events)
    for event in events:
        check_result(_lookup(matches, event.match_code), event)

    report = PropagationReport()
    for event in events:
        apply_local_result(matches[event.match_code], event)
        report.applied.append(event.match_code)

    standings, settle_report = settle(matches)
    return standings, report.merge(settle_report)


def apply_result(matches: Dict[str, Match], event: ResultEvent) -> Tuple[Dict[str, Standing], PropagationReport]:
    """Single entry point for edits and simulations: local update, then one settle."""
    return apply_results(matches, [event])


def index_matches(matches: Iterable[Match]) -> Dict[str, Match]:
    """match_code -> Match, ordered by match number."""
    return {m.match_code: m for m in sorted(matches, key=lambda m: m.match_number)}


class TournamentEngine:
    """
    Owns one tournament's matches and current standings.

    Callers mutate state only through the methods below; each method leaves
    the collection at a propagation fixed point.
    """

    def __init__(self, matches: Iterable[Match], tournament_id: Optional[int] = None):
        self.tournament_id = tournament_id
        self.matches: Dict[str, Match] = index_matches(matches)
        self.standings: Dict[str, Standing] = compute_standings(self.matches.values())

    @property
    def has_bracket(self) -> bool:
        return has_bracket(self.matches)

    def get(self, match_code: str) -> Match:
        return _lookup(self.matches, match_code)

    def match_state(self, match_code: str) -> str:
        return match_state(self.get(match_code))

    def by_stage(self, stage: Optional[Stage] = None, group_id: Optional[str] = None) -> List[Match]:
        out = []
        for m in self.matches.values():
            if stage is not None and Stage(m.stage) != Stage(stage):
                continue
            if group_id is not None and m.group_id != group_id:
                continue
            out.append(m)
        return out

    def settle(self) -> PropagationReport:
        self.standings, report = settle(self.matches)
        return report

    def apply_result(self, event: ResultEvent) -> PropagationReport:
        self.standings, report = apply_result(self.matches, event)
        return report

    def apply_results(self, events: Iterable[ResultEvent]) -> PropagationReport:
        self.standings, report = apply_results(self.matches, events)
        return report

    def close_group_stage(self) -> List[Match]:
        """Build the missing knockout matches from current standings and settle. Returns the new matches."""
        pairings = select_r32_pairings(self.standings)
        created = build_bracket(pairings, self.matches.values(), self.tournament_id)
        if created:
            self.matches = index_matches(list(self.matches.values()) + created)
            logger.info("Created %d knockout match(es) for tournament %s", len(created), self.tournament_id)
        self.settle()
        return created
