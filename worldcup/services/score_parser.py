"""
Minimal score parser for football results entered by hand.

Supports formats like:
  "2-1"               → home 2, away 1
  "1-1 (4-3 pens)"    → draw, home wins the shootout 4-3
  "1-1 (4-3)"         → same, suffix optional
  "0 - 0 p 5-4"       → same, 'p'/'pen'/'pens'/'penalties' marker
  {"home": 1, "away": 1, "shootout": [4, 3]} → structured variant

Returns None on parse failure (non-fatal); callers decide how to report it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

_SCORE_RE = re.compile(
    r"^\s*(?P<home>\d+)\s*[-:]\s*(?P<away>\d+)"
    r"(?:\s*\(?\s*(?:p|pen|pens|penalties)?\s*(?P<sh_home>\d+)\s*[-:]\s*(?P<sh_away>\d+)"
    r"\s*(?:p|pen|pens|penalties)?\s*\)?)?\s*$",
    re.IGNORECASE,
)


@dataclass
class ParsedScore:
    home_goals: int
    away_goals: int
    shootout: Optional[Tuple[int, int]] = None  # (home, away) penalties, draws only

    @property
    def shootout_winner_side(self) -> Optional[str]:
        """'home' / 'away' when a decisive shootout was recorded."""
        if self.shootout is None:
            return None
        home, away = self.shootout
        if home > away:
            return "home"
        if away > home:
            return "away"
        return None


def parse_score(raw: Union[str, Dict[str, Any], None]) -> Optional[ParsedScore]:
    """Parse a score string or dict. Returns None if it cannot be parsed."""
    if not raw:
        return None
    if isinstance(raw, dict):
        return _parse_structured(raw)
    if isinstance(raw, str):
        return _parse_score_string(raw)
    return None


def _parse_structured(data: Dict[str, Any]) -> Optional[ParsedScore]:
    try:
        home = int(data["home"])
        away = int(data["away"])
    except (KeyError, TypeError, ValueError):
        return None
    if home < 0 or away < 0:
        return None

    shootout = None
    raw_shootout = data.get("shootout")
    if raw_shootout is not None:
        try:
            sh_home, sh_away = (int(v) for v in raw_shootout)
        except (TypeError, ValueError):
            return None
        shootout = (sh_home, sh_away)
    return _finish(home, away, shootout)


def _parse_score_string(raw: str) -> Optional[ParsedScore]:
    m = _SCORE_RE.match(raw)
    if not m:
        return None
    home = int(m.group("home"))
    away = int(m.group("away"))
    shootout = None
    if m.group("sh_home") is not None:
        shootout = (int(m.group("sh_home")), int(m.group("sh_away")))
    return _finish(home, away, shootout)


def _finish(home: int, away: int, shootout: Optional[Tuple[int, int]]) -> Optional[ParsedScore]:
    # A shootout only follows a draw and cannot itself end level
    if shootout is not None:
        if home != away or shootout[0] == shootout[1] or min(shootout) < 0:
            return None
    return ParsedScore(home_goals=home, away_goals=away, shootout=shootout)
