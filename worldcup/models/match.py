from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from worldcup.models.stage import Stage

if TYPE_CHECKING:
    from worldcup.models.tournament import Tournament


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "match_code", name="uq_match_tournament_code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    match_code: str  # "M01".."M104"
    match_number: int  # 1-72 group, 73-88 R32, 89-96 R16, 97-100 QF, 101-102 SF, 103 3rd, 104 final
    stage: Stage = Field(sa_column=Column(String, nullable=False))
    group_id: Optional[str] = Field(default=None)  # group stage only

    # Participants (nullable until the feeding standing/match resolves)
    home_team_id: Optional[str] = Field(default=None)
    away_team_id: Optional[str] = Field(default=None)

    # Result: both scores or neither; winner only once finished
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    is_finished: bool = Field(default=False)
    winner_team_id: Optional[str] = Field(default=None)

    # Static fixture metadata, never recomputed
    match_date: date
    kickoff_time: Optional[str] = Field(default=None)  # "HH:MM" local
    venue: str

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
