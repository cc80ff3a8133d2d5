from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class Standing:
    """Aggregate group-stage record for one team. Always derived, never stored."""

    team_id: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0

    def record(self, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        self.goal_difference += scored - conceded
        if scored > conceded:
            self.won += 1
            self.points += 3
        elif scored < conceded:
            self.lost += 1
        else:
            self.drawn += 1
            self.points += 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
