from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Team:
    id: str  # three-letter code, e.g. "MEX"
    name: str
    rating: int  # 1-100, only used by the fallback simulator
    confederation: str


@dataclass(frozen=True)
class Group:
    id: str  # "A".."L"
    team_ids: Tuple[str, str, str, str]  # draw order, positions 0-3
