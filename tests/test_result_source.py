"""Result sources: seeded fallback, remote predictor client, fallback on failure."""
import logging
import random

import pytest
import requests

from worldcup.data.teams import TEAMS
from worldcup.errors import ResultSourceUnavailable
from worldcup.models.stage import Stage
from worldcup.services.result_source import (
    FallbackSimulator,
    MatchResult,
    RemotePredictorSource,
    api_team_name,
    resolve_result,
    resolve_results,
)

# ---------------------------------------------------------------------------
# Lightweight stand-ins for requests (no network)
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body_is_json=True):
        self.status_code = status_code
        self._payload = payload
        self._body_is_json = body_is_json

    def json(self):
        if not self._body_is_json:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Records POSTs and replays one canned response (or raises)."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class StaticSource:
    def __init__(self, result):
        self.result = result

    def get_result(self, home, away, stage):
        return self.result


class BrokenSource:
    def get_result(self, home, away, stage):
        raise ResultSourceUnavailable("down")


# ---------------------------------------------------------------------------
# FallbackSimulator
# ---------------------------------------------------------------------------


class TestFallbackSimulator:

    def test_seeded_is_deterministic(self):
        home, away = TEAMS["BRA"], TEAMS["HAI"]
        first, second = FallbackSimulator(random.Random(42)), FallbackSimulator(random.Random(42))
        a = [first.get_result(home, away, Stage.group) for _ in range(20)]
        b = [second.get_result(home, away, Stage.group) for _ in range(20)]
        assert a == b

    def test_scores_bounded_by_phases(self):
        sim = FallbackSimulator(random.Random(1))
        for _ in range(200):
            r = sim.get_result(TEAMS["ARG"], TEAMS["JOR"], Stage.group)
            assert 0 <= r.home_score <= 5 and 0 <= r.away_score <= 5
            assert r.home_score + r.away_score <= 5

    def test_knockout_never_drawn(self):
        sim = FallbackSimulator(random.Random(3))
        for _ in range(200):
            r = sim.get_result(TEAMS["ESP"], TEAMS["URU"], Stage.round_of_16)
            assert r.home_score != r.away_score

    def test_stronger_side_wins_more(self):
        sim = FallbackSimulator(random.Random(11))
        results = [sim.get_result(TEAMS["ARG"], TEAMS["JAM"], Stage.group) for _ in range(500)]
        home_wins = sum(1 for r in results if r.home_score > r.away_score)
        away_wins = sum(1 for r in results if r.away_score > r.home_score)
        assert home_wins > away_wins


# ---------------------------------------------------------------------------
# RemotePredictorSource
# ---------------------------------------------------------------------------


class TestRemotePredictorSource:

    def test_posts_normalized_names(self):
        http = FakeSession(FakeResponse(payload={"team1_score": 2, "team2_score": 1}))
        source = RemotePredictorSource("http://predictor.local/", timeout=3, http=http)
        result = source.get_result(TEAMS["USA"], TEAMS["CUW"], Stage.group)

        assert result == MatchResult(home_score=2, away_score=1)
        call = http.calls[0]
        assert call["url"] == "http://predictor.local/predict-gemini"
        assert call["json"] == {"team1": "United States", "team2": "Curaçao", "is_knockout": False}
        assert call["timeout"] == 3

    def test_api_name_overrides(self):
        assert api_team_name(TEAMS["CPV"]) == "Cape Verde"
        assert api_team_name(TEAMS["MEX"]) == "Mexico"

    def test_knockout_draw_uses_qualified_team(self):
        http = FakeSession(
            FakeResponse(payload={"team1_score": 1, "team2_score": 1, "qualified_team": "Uruguay"})
        )
        result = RemotePredictorSource("http://p", http=http).get_result(
            TEAMS["ESP"], TEAMS["URU"], Stage.quarter_final
        )
        assert result.tie_break_winner_id == "URU"
        assert http.calls[0]["json"]["is_knockout"] is True

    def test_qualified_team_ignored_for_group_draw(self):
        http = FakeSession(
            FakeResponse(payload={"team1_score": 0, "team2_score": 0, "qualified_team": "Spain"})
        )
        result = RemotePredictorSource("http://p", http=http).get_result(TEAMS["ESP"], TEAMS["URU"], Stage.group)
        assert result.tie_break_winner_id is None

    @pytest.mark.parametrize(
        "response",
        [
            FakeResponse(status_code=503),
            FakeResponse(body_is_json=False),
            FakeResponse(payload=["not", "an", "object"]),
            FakeResponse(payload={"team1_score": "2", "team2_score": 1}),
            FakeResponse(payload={"team1_score": -1, "team2_score": 1}),
            FakeResponse(payload={"team2_score": 1}),
        ],
    )
    def test_bad_responses_raise_unavailable(self, response):
        source = RemotePredictorSource("http://p", http=FakeSession(response))
        with pytest.raises(ResultSourceUnavailable):
            source.get_result(TEAMS["MEX"], TEAMS["RSA"], Stage.group)

    def test_transport_error_raises_unavailable(self):
        source = RemotePredictorSource("http://p", http=FakeSession(error=requests.ConnectionError("refused")))
        with pytest.raises(ResultSourceUnavailable):
            source.get_result(TEAMS["MEX"], TEAMS["RSA"], Stage.group)


# ---------------------------------------------------------------------------
# resolve_result
# ---------------------------------------------------------------------------


class TestResolveResult:

    def test_uses_source_when_usable(self):
        fallback = StaticSource(MatchResult(0, 0))
        result = resolve_result(StaticSource(MatchResult(3, 1)), fallback, TEAMS["MEX"], TEAMS["RSA"], Stage.group)
        assert result == MatchResult(3, 1)

    def test_no_source_means_fallback(self):
        result = resolve_result(None, StaticSource(MatchResult(1, 0)), TEAMS["MEX"], TEAMS["RSA"], Stage.group)
        assert result == MatchResult(1, 0)

    def test_failure_falls_back_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="worldcup.services.result_source"):
            result = resolve_result(
                BrokenSource(), StaticSource(MatchResult(2, 0)), TEAMS["MEX"], TEAMS["RSA"], Stage.group
            )
        assert result == MatchResult(2, 0)
        assert "Result source unavailable for MEX v RSA (down); using fallback" in caplog.text
        record = caplog.records[-1]
        assert record.args[:2] == ("MEX", "RSA")

    def test_undecided_knockout_draw_falls_back(self):
        result = resolve_result(
            StaticSource(MatchResult(1, 1)),
            StaticSource(MatchResult(2, 1)),
            TEAMS["ESP"],
            TEAMS["URU"],
            Stage.semi_final,
        )
        assert result == MatchResult(2, 1)

    def test_decided_knockout_draw_kept(self):
        decided = MatchResult(1, 1, tie_break_winner_id="ESP")
        result = resolve_result(
            StaticSource(decided), StaticSource(MatchResult(0, 1)), TEAMS["ESP"], TEAMS["URU"], Stage.final
        )
        assert result == decided


# ---------------------------------------------------------------------------
# Batch predictions and resolve_results
# ---------------------------------------------------------------------------

PAIRS = [(TEAMS["MEX"], TEAMS["RSA"]), (TEAMS["USA"], TEAMS["PAR"]), (TEAMS["BRA"], TEAMS["MAR"])]


class RecordingFallback:
    def __init__(self, result):
        self.result = result
        self.asked = []

    def get_result(self, home, away, stage):
        self.asked.append((home.id, away.id))
        return self.result


class StaticBatchSource(StaticSource):
    def __init__(self, results):
        super().__init__(None)
        self.results = results

    def get_results(self, pairs, stage):
        return self.results


class TestRemoteBatch:

    def test_posts_all_fixtures_in_one_request(self):
        payload = [{"team1_score": i, "team2_score": 0} for i in range(3)]
        http = FakeSession(FakeResponse(payload=payload))
        results = RemotePredictorSource("http://p/", http=http).get_results(PAIRS, Stage.group)

        assert len(http.calls) == 1
        call = http.calls[0]
        assert call["url"] == "http://p/predict-batch-gemini"
        assert call["json"]["matches"][1] == {"team1": "United States", "team2": "Paraguay", "is_knockout": False}
        assert len(call["json"]["matches"]) == 3
        assert [r.home_score for r in results] == [0, 1, 2]

    @pytest.mark.parametrize("wrapper", ["results", "matches"])
    def test_wrapped_list_accepted(self, wrapper):
        payload = {wrapper: [{"team1_score": 1, "team2_score": 1}] * 3}
        http = FakeSession(FakeResponse(payload=payload))
        results = RemotePredictorSource("http://p", http=http).get_results(PAIRS, Stage.group)
        assert results == [MatchResult(1, 1)] * 3

    def test_missing_and_malformed_items_are_none(self):
        payload = [{"team1_score": 2, "team2_score": 0}, {"team1_score": "x"}]
        http = FakeSession(FakeResponse(payload=payload))
        results = RemotePredictorSource("http://p", http=http).get_results(PAIRS, Stage.group)
        assert results == [MatchResult(2, 0), None, None]

    def test_knockout_draw_item_uses_qualified_team(self):
        payload = [{"team1_score": 0, "team2_score": 0, "qualified_team": "Spain"}]
        http = FakeSession(FakeResponse(payload=payload))
        results = RemotePredictorSource("http://p", http=http).get_results(
            [(TEAMS["ESP"], TEAMS["URU"])], Stage.round_of_16
        )
        assert results[0].tie_break_winner_id == "ESP"
        assert http.calls[0]["json"]["matches"][0]["is_knockout"] is True

    @pytest.mark.parametrize(
        "response",
        [
            FakeResponse(status_code=500),
            FakeResponse(body_is_json=False),
            FakeResponse(payload={"predictions": []}),
            FakeResponse(payload="nope"),
        ],
    )
    def test_bad_batch_raises_unavailable(self, response):
        source = RemotePredictorSource("http://p", http=FakeSession(response))
        with pytest.raises(ResultSourceUnavailable):
            source.get_results(PAIRS, Stage.group)


class TestResolveResults:

    def test_short_batch_falls_back_per_item(self, caplog):
        http = FakeSession(FakeResponse(payload=[{"team1_score": 3, "team2_score": 0}]))
        fallback = RecordingFallback(MatchResult(0, 1))
        with caplog.at_level(logging.WARNING, logger="worldcup.services.result_source"):
            results = resolve_results(RemotePredictorSource("http://p", http=http), fallback, PAIRS, Stage.group)

        assert results == [MatchResult(3, 0), MatchResult(0, 1), MatchResult(0, 1)]
        assert fallback.asked == [("USA", "PAR"), ("BRA", "MAR")]
        assert "No usable batch result for USA v PAR" in caplog.text

    def test_failed_batch_falls_back_for_all(self):
        http = FakeSession(error=requests.Timeout("slow"))
        fallback = RecordingFallback(MatchResult(1, 0))
        results = resolve_results(RemotePredictorSource("http://p", http=http), fallback, PAIRS, Stage.group)
        assert results == [MatchResult(1, 0)] * 3
        assert len(fallback.asked) == 3
        assert len(http.calls) == 1

    def test_undecided_knockout_item_falls_back(self):
        pairs = [(TEAMS["ESP"], TEAMS["URU"])]
        source = StaticBatchSource([MatchResult(2, 2)])
        results = resolve_results(source, StaticSource(MatchResult(0, 1)), pairs, Stage.quarter_final)
        assert results == [MatchResult(0, 1)]

    def test_source_without_batch_resolved_one_by_one(self):
        results = resolve_results(StaticSource(MatchResult(2, 2)), StaticSource(MatchResult(0, 0)), PAIRS, Stage.group)
        assert results == [MatchResult(2, 2)] * 3

    def test_no_source_uses_fallback(self):
        fallback = RecordingFallback(MatchResult(4, 4))
        assert resolve_results(None, fallback, PAIRS, Stage.group) == [MatchResult(4, 4)] * 3
        assert len(fallback.asked) == 3
