"""
Knockout bracket wiring.

R32_SLOTS maps each Round-of-32 match to the seed codes that feed it.
KNOCKOUT_LINKS maps every later match side to its source match and the role
taken from it (winner, or loser for the third-place playoff). Both tables are
configuration; propagation walks them, it never derives targets arithmetically.

Third-place allow-lists follow the FIFA 2026 match schedule and are kept as
given.
"""
from dataclasses import dataclass
from typing import List, Tuple

from worldcup.data.teams import GROUP_IDS

ROLE_WINNER = "WINNER"
ROLE_LOSER = "LOSER"

SIDE_HOME = "home"
SIDE_AWAY = "away"


@dataclass(frozen=True)
class SeedCode:
    """'1A' / '2B' name one group position; '3-CDFGH' is a third-place slot with its allow-list."""

    rank: int
    groups: Tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> "SeedCode":
        raw = raw.strip().upper()
        if raw.startswith("3-"):
            groups = tuple(raw[2:])
            if not groups or any(g not in GROUP_IDS for g in groups):
                raise ValueError(f"Invalid third-place seed code: {raw!r}")
            return cls(rank=3, groups=groups)
        if len(raw) != 2 or raw[0] not in "12" or raw[1] not in GROUP_IDS:
            raise ValueError(f"Invalid seed code: {raw!r}")
        return cls(rank=int(raw[0]), groups=(raw[1],))

    @property
    def is_third_place(self) -> bool:
        return self.rank == 3

    def __str__(self) -> str:
        if self.is_third_place:
            return "3-" + "".join(self.groups)
        return f"{self.rank}{self.groups[0]}"


@dataclass(frozen=True)
class R32Slot:
    match_code: str
    home: SeedCode
    away: SeedCode


@dataclass(frozen=True)
class SourceLink:
    target_code: str
    side: str  # SIDE_HOME | SIDE_AWAY
    source_code: str
    role: str  # ROLE_WINNER | ROLE_LOSER


_R32_ROWS = [
    ("M73", "2A", "2B"),
    ("M74", "1E", "3-ABCDF"),
    ("M75", "1F", "2C"),
    ("M76", "1C", "2F"),
    ("M77", "1I", "3-CDFGH"),
    ("M78", "2E", "2I"),
    ("M79", "1A", "3-CEFHI"),
    ("M80", "1L", "3-EHIJK"),
    ("M81", "1D", "3-BEFIJ"),
    ("M82", "1G", "3-AEHIJ"),
    ("M83", "2K", "2L"),
    ("M84", "1H", "2J"),
    ("M85", "1B", "3-EFGIJ"),
    ("M86", "1J", "2H"),
    ("M87", "1K", "3-DEIJL"),
    ("M88", "2D", "2G"),
]

R32_SLOTS: List[R32Slot] = [
    R32Slot(match_code=code, home=SeedCode.parse(home), away=SeedCode.parse(away)) for code, home, away in _R32_ROWS
]

# target: (home source, away source); "W" = winner of, "L" = loser of
_LATER_ROUND_ROWS = [
    # Round of 16
    ("M89", "W74", "W77"),
    ("M90", "W73", "W75"),
    ("M91", "W76", "W78"),
    ("M92", "W79", "W80"),
    ("M93", "W83", "W84"),
    ("M94", "W81", "W82"),
    ("M95", "W86", "W88"),
    ("M96", "W85", "W87"),
    # Quarter-finals
    ("M97", "W89", "W90"),
    ("M98", "W93", "W94"),
    ("M99", "W91", "W92"),
    ("M100", "W95", "W96"),
    # Semi-finals
    ("M101", "W97", "W98"),
    ("M102", "W99", "W100"),
    # Third place: semi-final losers
    ("M103", "L101", "L102"),
    # Final
    ("M104", "W101", "W102"),
]


def _link(target: str, side: str, ref: str) -> SourceLink:
    role = ROLE_WINNER if ref[0] == "W" else ROLE_LOSER
    return SourceLink(target_code=target, side=side, source_code=f"M{ref[1:]}", role=role)


KNOCKOUT_LINKS: List[SourceLink] = [
    link
    for target, home, away in _LATER_ROUND_ROWS
    for link in (_link(target, SIDE_HOME, home), _link(target, SIDE_AWAY, away))
]
