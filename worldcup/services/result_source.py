"""
Result sources: where simulated scores come from.

The engine only sees MatchResult values. A source may be the remote predictor
service or the local skill-weighted fallback; resolve_result() and
resolve_results() guarantee a usable result by falling back whenever the
remote source fails.

Reads configuration from environment variables:
  - PREDICTOR_API_URL          (unset: fallback simulation only)
  - PREDICTOR_TIMEOUT_SECONDS  (default 10)
  - SIMULATION_SEED            (optional integer seed for the fallback RNG)
"""
import logging
import os
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import requests

from worldcup.errors import ResultSourceUnavailable
from worldcup.models.stage import Stage, is_knockout
from worldcup.models.team import Team

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

# The predictor expects these spellings
_API_NAME_OVERRIDES = {
    "USA": "United States",
    "Curacao": "Curaçao",
    "Cabo Verde": "Cape Verde",
}


@dataclass
class MatchResult:
    home_score: int
    away_score: int
    tie_break_winner_id: Optional[str] = None


class ResultSource(Protocol):
    def get_result(self, home: Team, away: Team, stage: Stage) -> MatchResult:
        ...


class FallbackSimulator:
    """
    Local skill-weighted simulation, used when no remote source is available.

    Five attacking phases; each goes to the home side with probability
    0.5 + (home.rating - away.rating) / 100 and is converted 40% of the time.
    Knockout draws are broken by giving one side (coin flip) an extra goal.
    """

    phases = 5
    conversion = 0.4

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def get_result(self, home: Team, away: Team, stage: Stage) -> MatchResult:
        home_chance = 0.5 + (home.rating - away.rating) / 100
        home_score = 0
        away_score = 0
        for _ in range(self.phases):
            home_attacks = self.rng.random() < home_chance
            if self.rng.random() < self.conversion:
                if home_attacks:
                    home_score += 1
                else:
                    away_score += 1

        if is_knockout(stage) and home_score == away_score:
            if self.rng.random() < 0.5:
                home_score += 1
            else:
                away_score += 1

        return MatchResult(home_score=home_score, away_score=away_score)


def api_team_name(team: Team) -> str:
    return _API_NAME_OVERRIDES.get(team.name, team.name)


class RemotePredictorSource:
    """
    Client for the match predictor service (POST {base_url}/predict-gemini,
    or /predict-batch-gemini for a whole phase).

    Any transport error, non-2xx status or malformed payload raises
    ResultSourceUnavailable; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def _post(self, path: str, payload: Any) -> Any:
        try:
            response = self.http.post(
                f"{self.base_url}{path}",
                json=payload,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ResultSourceUnavailable(f"Predictor request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ResultSourceUnavailable(f"Predictor returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ResultSourceUnavailable("Predictor returned non-JSON body") from e

    @staticmethod
    def _fixture(home: Team, away: Team, knockout: bool) -> Dict[str, Any]:
        return {
            "team1": api_team_name(home),
            "team2": api_team_name(away),
            "is_knockout": knockout,
        }

    def get_result(self, home: Team, away: Team, stage: Stage) -> MatchResult:
        knockout = is_knockout(stage)
        data = self._post("/predict-gemini", self._fixture(home, away, knockout))
        return self._parse(data, home, away, knockout)

    def get_results(self, pairs: Sequence[Tuple[Team, Team]], stage: Stage) -> List[Optional[MatchResult]]:
        """
        One POST {base_url}/predict-batch-gemini for several fixtures.

        The reply is a list (bare, or under "results" or "matches") read back
        by index. Missing or malformed items come back as None; a failed
        request raises ResultSourceUnavailable.
        """
        knockout = is_knockout(stage)
        data = self._post(
            "/predict-batch-gemini",
            {"matches": [self._fixture(home, away, knockout) for home, away in pairs]},
        )
        if isinstance(data, dict):
            data = data.get("results", data.get("matches"))
        if not isinstance(data, list):
            raise ResultSourceUnavailable("Predictor batch payload is not a list")

        results: List[Optional[MatchResult]] = []
        for index, (home, away) in enumerate(pairs):
            if index >= len(data):
                results.append(None)
                continue
            try:
                results.append(self._parse(data[index], home, away, knockout))
            except ResultSourceUnavailable as e:
                logger.debug("Ignoring batch item %d for %s v %s: %s", index, home.id, away.id, e)
                results.append(None)
        return results

    def _parse(self, data: Any, home: Team, away: Team, knockout: bool) -> MatchResult:
        if not isinstance(data, dict):
            raise ResultSourceUnavailable("Predictor payload is not an object")
        home_score = data.get("team1_score")
        away_score = data.get("team2_score")
        for value in (home_score, away_score):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ResultSourceUnavailable(f"Predictor returned invalid score {value!r}")

        tie_break = None
        qualified = data.get("qualified_team")
        if knockout and home_score == away_score and isinstance(qualified, str) and qualified.strip():
            tie_break = self._qualified_team_id(qualified, home, away)

        return MatchResult(home_score=home_score, away_score=away_score, tie_break_winner_id=tie_break)

    @staticmethod
    def _qualified_team_id(qualified: str, home: Team, away: Team) -> str:
        winner = qualified.strip().lower()
        home_name = api_team_name(home).lower()
        if winner in home_name or home_name in winner:
            return home.id
        return away.id


def _usable(result: MatchResult, stage: Stage) -> bool:
    if is_knockout(stage) and result.home_score == result.away_score:
        return result.tie_break_winner_id is not None
    return True


def resolve_result(
    source: Optional[ResultSource],
    fallback: ResultSource,
    home: Team,
    away: Team,
    stage: Stage,
) -> MatchResult:
    """
    Ask the source for a result; use the fallback when it is missing, fails,
    or returns a knockout draw without a tie-break winner.
    """
    if source is not None:
        try:
            result = source.get_result(home, away, stage)
            if _usable(result, stage):
                return result
            logger.warning(
                "Result source gave an undecided knockout result for %s v %s; using fallback", home.id, away.id
            )
        except ResultSourceUnavailable as e:
            logger.warning("Result source unavailable for %s v %s (%s); using fallback", home.id, away.id, e)
    return fallback.get_result(home, away, stage)


def resolve_results(
    source: Optional[ResultSource],
    fallback: ResultSource,
    pairs: Sequence[Tuple[Team, Team]],
    stage: Stage,
) -> List[MatchResult]:
    """
    Results for several fixtures of one stage, in the order given.

    Sources with a get_results() batch method are asked once; a failed batch
    falls back for every fixture, a missing or unusable item only for itself.
    Other sources go through resolve_result() one fixture at a time.
    """
    batch = getattr(source, "get_results", None)
    if batch is None or not pairs:
        return [resolve_result(source, fallback, home, away, stage) for home, away in pairs]

    try:
        remote = batch(pairs, stage)
    except ResultSourceUnavailable as e:
        logger.warning("Batch result source unavailable for %d match(es) (%s); using fallback", len(pairs), e)
        return [fallback.get_result(home, away, stage) for home, away in pairs]

    results = []
    for index, (home, away) in enumerate(pairs):
        result = remote[index] if index < len(remote) else None
        if result is None or not _usable(result, stage):
            logger.warning("No usable batch result for %s v %s; using fallback", home.id, away.id)
            result = fallback.get_result(home, away, stage)
        results.append(result)
    return results


def default_fallback() -> FallbackSimulator:
    seed = os.getenv("SIMULATION_SEED")
    return FallbackSimulator(random.Random(int(seed)) if seed else None)


def default_source() -> Optional[RemotePredictorSource]:
    base_url = os.getenv("PREDICTOR_API_URL", "")
    if not base_url:
        return None
    timeout = float(os.getenv("PREDICTOR_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    return RemotePredictorSource(base_url, timeout=timeout)
