"""
Fixture metadata: dates, kickoff times and venues.

Group fixtures pair group positions (draw order 0-3); knockout fixtures carry
metadata only, participants come from the bracket wiring.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from worldcup.models.stage import Stage

KICKOFF_TIMES = ("13:00", "16:00", "19:00", "21:00")


@dataclass(frozen=True)
class GroupFixture:
    number: int
    group_id: str
    venue: str
    match_date: date
    pairing: Tuple[int, int]  # (home position, away position) in the group's draw order

    @property
    def match_code(self) -> str:
        return match_code(self.number)

    @property
    def kickoff_time(self) -> str:
        return KICKOFF_TIMES[self.number % len(KICKOFF_TIMES)]


@dataclass(frozen=True)
class KnockoutFixture:
    number: int
    stage: Stage
    venue: str
    match_date: date
    kickoff_time: Optional[str] = None

    @property
    def match_code(self) -> str:
        return match_code(self.number)


def match_code(number: int) -> str:
    """1 -> 'M01', 104 -> 'M104'."""
    return f"M{number:02d}"


def match_number(code: str) -> int:
    """'M07' -> 7. Raises ValueError for anything else."""
    if not code or code[0] != "M" or not code[1:].isdigit():
        raise ValueError(f"Invalid match code: {code!r}")
    return int(code[1:])


def _june(day: int) -> date:
    return date(2026, 6, day)


def _july(day: int) -> date:
    return date(2026, 7, day)


# (number, group, venue, date, pairing)
_GROUP_ROWS = [
    # Matchday 1
    (1, "A", "Mexico City Stadium", _june(11), (0, 1)),
    (2, "A", "Guadalajara Stadium", _june(11), (2, 3)),
    (3, "B", "Toronto Stadium", _june(12), (0, 1)),
    (4, "D", "Los Angeles Stadium", _june(12), (0, 1)),
    (5, "C", "Boston Stadium", _june(13), (0, 1)),
    (6, "D", "BC Place Vancouver", _june(13), (2, 3)),
    (7, "C", "New York New Jersey Stadium", _june(13), (2, 3)),
    (8, "B", "San Francisco Bay Area Stadium", _june(13), (2, 3)),
    (9, "E", "Philadelphia Stadium", _june(14), (0, 1)),
    (10, "E", "Houston Stadium", _june(14), (2, 3)),
    (11, "F", "Dallas Stadium", _june(14), (0, 1)),
    (12, "F", "Monterrey Stadium", _june(14), (2, 3)),
    (13, "H", "Miami Stadium", _june(15), (0, 1)),
    (14, "H", "Atlanta Stadium", _june(15), (2, 3)),
    (15, "G", "Los Angeles Stadium", _june(15), (0, 1)),
    (16, "G", "Seattle Stadium", _june(15), (2, 3)),
    (17, "I", "New York New Jersey Stadium", _june(16), (0, 1)),
    (18, "I", "Boston Stadium", _june(16), (2, 3)),
    (19, "J", "Kansas City Stadium", _june(16), (0, 1)),
    (20, "J", "San Francisco Bay Area Stadium", _june(16), (2, 3)),
    (21, "L", "Toronto Stadium", _june(17), (0, 1)),
    (22, "L", "Dallas Stadium", _june(17), (2, 3)),
    (23, "K", "Houston Stadium", _june(17), (0, 1)),
    (24, "K", "Mexico City Stadium", _june(17), (2, 3)),
    # Matchday 2
    (25, "A", "Atlanta Stadium", _june(18), (1, 2)),
    (26, "B", "Los Angeles Stadium", _june(18), (1, 3)),
    (27, "B", "BC Place Vancouver", _june(18), (0, 2)),
    (28, "A", "Guadalajara Stadium", _june(18), (0, 3)),
    (29, "C", "Philadelphia Stadium", _june(19), (0, 2)),
    (30, "C", "Boston Stadium", _june(19), (1, 3)),
    (31, "D", "San Francisco Bay Area Stadium", _june(19), (1, 3)),
    (32, "D", "Seattle Stadium", _june(19), (0, 2)),
    (33, "E", "Toronto Stadium", _june(20), (0, 2)),
    (34, "E", "Kansas City Stadium", _june(20), (1, 3)),
    (35, "F", "Houston Stadium", _june(20), (0, 2)),
    (36, "F", "Monterrey Stadium", _june(20), (1, 3)),
    (37, "H", "Miami Stadium", _june(21), (0, 2)),
    (38, "H", "Atlanta Stadium", _june(21), (1, 3)),
    (39, "G", "Los Angeles Stadium", _june(21), (0, 2)),
    (40, "G", "BC Place Vancouver", _june(21), (1, 3)),
    (41, "I", "New York New Jersey Stadium", _june(22), (0, 2)),
    (42, "I", "Philadelphia Stadium", _june(22), (1, 3)),
    (43, "J", "Dallas Stadium", _june(22), (0, 2)),
    (44, "J", "San Francisco Bay Area Stadium", _june(22), (1, 3)),
    (45, "L", "Boston Stadium", _june(23), (0, 2)),
    (46, "L", "Toronto Stadium", _june(23), (1, 3)),
    (47, "K", "Houston Stadium", _june(23), (0, 2)),
    (48, "K", "Guadalajara Stadium", _june(23), (1, 3)),
    # Matchday 3
    (49, "C", "Miami Stadium", _june(24), (3, 0)),
    (50, "C", "Atlanta Stadium", _june(24), (1, 2)),
    (51, "B", "BC Place Vancouver", _june(24), (0, 3)),
    (52, "B", "Seattle Stadium", _june(24), (1, 2)),
    (53, "A", "Mexico City Stadium", _june(24), (0, 2)),
    (54, "A", "Monterrey Stadium", _june(24), (1, 3)),
    (55, "E", "Philadelphia Stadium", _june(25), (3, 0)),
    (56, "E", "New York New Jersey Stadium", _june(25), (1, 2)),
    (57, "F", "Dallas Stadium", _june(25), (3, 0)),
    (58, "F", "Kansas City Stadium", _june(25), (1, 2)),
    (59, "D", "Los Angeles Stadium", _june(25), (3, 0)),
    (60, "D", "San Francisco Bay Area Stadium", _june(25), (1, 2)),
    (61, "I", "Boston Stadium", _june(26), (3, 0)),
    (62, "I", "Toronto Stadium", _june(26), (1, 2)),
    (63, "G", "Seattle Stadium", _june(26), (3, 0)),
    (64, "G", "BC Place Vancouver", _june(26), (1, 2)),
    (65, "H", "Houston Stadium", _june(26), (3, 0)),
    (66, "H", "Guadalajara Stadium", _june(26), (1, 2)),
    (67, "L", "New York New Jersey Stadium", _june(27), (3, 0)),
    (68, "L", "Philadelphia Stadium", _june(27), (1, 2)),
    (69, "J", "Kansas City Stadium", _june(27), (3, 0)),
    (70, "J", "Dallas Stadium", _june(27), (1, 2)),
    (71, "K", "Miami Stadium", _june(27), (3, 0)),
    (72, "K", "Atlanta Stadium", _june(27), (1, 2)),
]

GROUP_FIXTURES: List[GroupFixture] = [
    GroupFixture(number=n, group_id=g, venue=v, match_date=d, pairing=p) for n, g, v, d, p in _GROUP_ROWS
]

GROUP_FIXTURES_BY_CODE: Dict[str, GroupFixture] = {f.match_code: f for f in GROUP_FIXTURES}

_KNOCKOUT_ROWS = [
    # Round of 32
    (73, Stage.round_of_32, "Los Angeles Stadium", _june(28)),
    (74, Stage.round_of_32, "Boston Stadium", _june(29)),
    (75, Stage.round_of_32, "Monterrey Stadium", _june(29)),
    (76, Stage.round_of_32, "Houston Stadium", _june(29)),
    (77, Stage.round_of_32, "New York New Jersey Stadium", _june(30)),
    (78, Stage.round_of_32, "Dallas Stadium", _june(30)),
    (79, Stage.round_of_32, "Mexico City Stadium", _june(30)),
    (80, Stage.round_of_32, "Atlanta Stadium", _july(1)),
    (81, Stage.round_of_32, "San Francisco Bay Area Stadium", _july(1)),
    (82, Stage.round_of_32, "Seattle Stadium", _july(1)),
    (83, Stage.round_of_32, "Toronto Stadium", _july(2)),
    (84, Stage.round_of_32, "Los Angeles Stadium", _july(2)),
    (85, Stage.round_of_32, "BC Place Vancouver", _july(2)),
    (86, Stage.round_of_32, "Miami Stadium", _july(3)),
    (87, Stage.round_of_32, "Kansas City Stadium", _july(3)),
    (88, Stage.round_of_32, "Dallas Stadium", _july(3)),
    # Round of 16
    (89, Stage.round_of_16, "Philadelphia Stadium", _july(4)),
    (90, Stage.round_of_16, "Houston Stadium", _july(4)),
    (91, Stage.round_of_16, "New York New Jersey Stadium", _july(5)),
    (92, Stage.round_of_16, "Mexico City Stadium", _july(5)),
    (93, Stage.round_of_16, "Dallas Stadium", _july(6)),
    (94, Stage.round_of_16, "Seattle Stadium", _july(6)),
    (95, Stage.round_of_16, "Atlanta Stadium", _july(7)),
    (96, Stage.round_of_16, "BC Place Vancouver", _july(7)),
    # Quarter-finals
    (97, Stage.quarter_final, "Boston Stadium", _july(9)),
    (98, Stage.quarter_final, "Los Angeles Stadium", _july(10)),
    (99, Stage.quarter_final, "Miami Stadium", _july(11)),
    (100, Stage.quarter_final, "Kansas City Stadium", _july(11)),
    # Semi-finals
    (101, Stage.semi_final, "Dallas Stadium", _july(14)),
    (102, Stage.semi_final, "Atlanta Stadium", _july(15)),
    # Third place and final
    (103, Stage.third_place, "Miami Stadium", _july(18)),
    (104, Stage.final, "New York New Jersey Stadium", _july(19)),
]

KNOCKOUT_FIXTURES: List[KnockoutFixture] = [
    KnockoutFixture(number=n, stage=s, venue=v, match_date=d, kickoff_time=KICKOFF_TIMES[n % len(KICKOFF_TIMES)])
    for n, s, v, d in _KNOCKOUT_ROWS
]

KNOCKOUT_FIXTURES_BY_CODE: Dict[str, KnockoutFixture] = {f.match_code: f for f in KNOCKOUT_FIXTURES}
