"""Standings: pure recomputation from finished group matches, ranking order."""
import random

from worldcup.data.teams import GROUPS_BY_ID, TEAMS
from worldcup.models.stage import Stage
from worldcup.models.standing import Standing
from worldcup.services.bracket_builder import build_group_schedule
from worldcup.services.standings import compute_standings, group_tables, rank_group


def _finish(matches, code, home, away):
    m = next(m for m in matches if m.match_code == code)
    m.home_score = home
    m.away_score = away
    m.is_finished = True
    return m


def _standing(team_id, played, points, gd, gf):
    return Standing(team_id=team_id, played=played, points=points, goal_difference=gd, goals_for=gf)


class TestComputeStandings:

    def test_every_team_starts_at_zero(self):
        standings = compute_standings(build_group_schedule())
        assert set(standings) == set(TEAMS)
        assert all(s.played == 0 and s.points == 0 for s in standings.values())

    def test_win_draw_loss_points(self):
        matches = build_group_schedule()
        _finish(matches, "M01", 2, 0)  # MEX v RSA
        _finish(matches, "M02", 1, 1)  # KOR v DEN
        s = compute_standings(matches)

        assert (s["MEX"].points, s["MEX"].won, s["MEX"].goal_difference) == (3, 1, 2)
        assert (s["RSA"].points, s["RSA"].lost, s["RSA"].goals_against) == (0, 1, 2)
        assert s["KOR"].points == 1 and s["KOR"].drawn == 1
        assert s["DEN"].points == 1 and s["DEN"].drawn == 1

    def test_unfinished_and_knockout_matches_ignored(self):
        matches = build_group_schedule()
        m = next(m for m in matches if m.match_code == "M01")
        m.home_score, m.away_score = 3, 0  # scores typed but not finished

        knockout = _finish(build_group_schedule(), "M02", 4, 0)
        knockout.stage = Stage.round_of_32
        s = compute_standings(matches + [knockout])
        assert s["MEX"].played == 0
        assert s["KOR"].played == 0

    def test_closed_system_over_a_group(self):
        matches = build_group_schedule()
        for code, h, a in [("M01", 3, 1), ("M02", 0, 0), ("M25", 2, 2), ("M28", 0, 1), ("M53", 4, 0), ("M54", 1, 3)]:
            _finish(matches, code, h, a)
        s = compute_standings(matches)
        group = [s[tid] for tid in GROUPS_BY_ID["A"].team_ids]

        assert sum(t.goal_difference for t in group) == 0
        assert sum(t.goals_for for t in group) == sum(t.goals_against for t in group)
        assert all(t.played == 3 for t in group)
        assert all(t.won + t.drawn + t.lost == t.played for t in group)
        draws = sum(t.drawn for t in group) // 2
        assert sum(t.points for t in group) == 3 * (6 - draws) + 2 * draws

    def test_recomputed_from_scratch(self):
        matches = build_group_schedule()
        m = _finish(matches, "M01", 2, 0)
        assert compute_standings(matches)["MEX"].points == 3

        m.home_score, m.away_score = 0, 2
        s = compute_standings(matches)
        assert s["MEX"].points == 0
        assert s["RSA"].points == 3
        assert s["MEX"].played == 1

    def test_restricted_team_ids(self):
        s = compute_standings(build_group_schedule(), team_ids=["MEX", "RSA"])
        assert set(s) == {"MEX", "RSA"}

    def test_independent_of_match_order(self):
        rng = random.Random(7)
        matches = build_group_schedule()
        for m in matches[::3]:
            _finish(matches, m.match_code, rng.randint(0, 4), rng.randint(0, 4))
        expected = {tid: s.to_dict() for tid, s in compute_standings(matches).items()}
        assert any(row["played"] for row in expected.values())

        orders = [list(reversed(matches))]
        for seed in range(5):
            shuffled = list(matches)
            random.Random(seed).shuffle(shuffled)
            orders.append(shuffled)
        for order in orders:
            assert {tid: s.to_dict() for tid, s in compute_standings(order).items()} == expected


class TestRanking:

    def test_group_a_order(self):
        """Mexico 7 pts/+4, Korea 5/+1, Denmark 4/0, South Africa 1/-5."""
        standings = {
            "MEX": _standing("MEX", 3, 7, 4, 6),
            "KOR": _standing("KOR", 3, 5, 1, 4),
            "DEN": _standing("DEN", 3, 4, 0, 3),
            "RSA": _standing("RSA", 3, 1, -5, 1),
        }
        ranked = rank_group(GROUPS_BY_ID["A"], standings)
        assert ranked == ["MEX", "KOR", "DEN", "RSA"]
        assert ranked[2] == "DEN"

    def test_goal_difference_then_goals_for(self):
        standings = {
            "MEX": _standing("MEX", 3, 4, 1, 3),
            "RSA": _standing("RSA", 3, 4, 1, 5),
            "KOR": _standing("KOR", 3, 4, 2, 2),
            "DEN": _standing("DEN", 3, 4, 1, 4),
        }
        assert rank_group(GROUPS_BY_ID["A"], standings) == ["KOR", "RSA", "DEN", "MEX"]

    def test_exact_tie_keeps_draw_order(self):
        standings = {tid: _standing(tid, 3, 4, 0, 3) for tid in GROUPS_BY_ID["A"].team_ids}
        assert rank_group(GROUPS_BY_ID["A"], standings) == list(GROUPS_BY_ID["A"].team_ids)

    def test_group_tables_rows(self):
        tables = group_tables(compute_standings(build_group_schedule()))
        assert [t["group_id"] for t in tables] == list("ABCDEFGHIJKL")
        first = tables[0]["rows"][0]
        assert first["position"] == 1
        assert first["team_id"] == "MEX"
        assert first["team_name"] == "Mexico"
