"""
FIFA World Cup 2026 roster and group draw.

Group membership is fixed for the lifetime of a tournament; a team's group is
derived from GROUPS, never stored on the team.
"""
from typing import Dict, List

from worldcup.models.team import Group, Team

_ROSTER = [
    # (code, name, rating, confederation)
    # Group A
    ("MEX", "Mexico", 84, "CONCACAF"),
    ("RSA", "South Africa", 76, "CAF"),
    ("KOR", "South Korea", 80, "AFC"),
    ("DEN", "Denmark", 81, "UEFA"),
    # Group B
    ("CAN", "Canada", 80, "CONCACAF"),
    ("ITA", "Italy", 87, "UEFA"),
    ("QAT", "Qatar", 74, "AFC"),
    ("SUI", "Switzerland", 82, "UEFA"),
    # Group C
    ("BRA", "Brazil", 92, "CONMEBOL"),
    ("MAR", "Morocco", 84, "CAF"),
    ("HAI", "Haiti", 72, "CONCACAF"),
    ("SCO", "Scotland", 79, "UEFA"),
    # Group D
    ("USA", "USA", 86, "CONCACAF"),
    ("PAR", "Paraguay", 77, "CONMEBOL"),
    ("AUS", "Australia", 77, "AFC"),
    ("TUR", "Turkey", 78, "UEFA"),
    # Group E
    ("GER", "Germany", 89, "UEFA"),
    ("CUW", "Curacao", 73, "CONCACAF"),
    ("CIV", "Ivory Coast", 78, "CAF"),
    ("ECU", "Ecuador", 81, "CONMEBOL"),
    # Group F
    ("NED", "Netherlands", 87, "UEFA"),
    ("JPN", "Japan", 83, "AFC"),
    ("UKR", "Ukraine", 79, "UEFA"),
    ("TUN", "Tunisia", 75, "CAF"),
    # Group G
    ("BEL", "Belgium", 88, "UEFA"),
    ("EGY", "Egypt", 78, "CAF"),
    ("IRN", "Iran", 78, "AFC"),
    ("NZL", "New Zealand", 74, "OFC"),
    # Group H
    ("ESP", "Spain", 91, "UEFA"),
    ("CPV", "Cabo Verde", 75, "CAF"),
    ("KSA", "Saudi Arabia", 76, "AFC"),
    ("URU", "Uruguay", 86, "CONMEBOL"),
    # Group I
    ("FRA", "France", 93, "UEFA"),
    ("SEN", "Senegal", 80, "CAF"),
    ("BOL", "Bolivia", 74, "CONMEBOL"),
    ("NOR", "Norway", 81, "UEFA"),
    # Group J
    ("ARG", "Argentina", 94, "CONMEBOL"),
    ("ALG", "Algeria", 78, "CAF"),
    ("AUT", "Austria", 79, "UEFA"),
    ("JOR", "Jordan", 74, "AFC"),
    # Group K
    ("POR", "Portugal", 89, "UEFA"),
    ("JAM", "Jamaica", 72, "CONCACAF"),
    ("UZB", "Uzbekistan", 72, "AFC"),
    ("COL", "Colombia", 85, "CONMEBOL"),
    # Group L
    ("ENG", "England", 90, "UEFA"),
    ("CRO", "Croatia", 85, "UEFA"),
    ("GHA", "Ghana", 77, "CAF"),
    ("PAN", "Panama", 73, "CONCACAF"),
]

TEAMS: Dict[str, Team] = {
    code: Team(id=code, name=name, rating=rating, confederation=confed)
    for code, name, rating, confed in _ROSTER
}

GROUP_IDS = "ABCDEFGHIJKL"

# Roster is listed group by group, four teams each, in draw order.
GROUPS: List[Group] = [
    Group(id=gid, team_ids=tuple(code for code, *_ in _ROSTER[i * 4 : i * 4 + 4]))
    for i, gid in enumerate(GROUP_IDS)
]

GROUPS_BY_ID: Dict[str, Group] = {g.id: g for g in GROUPS}

GROUP_OF_TEAM: Dict[str, str] = {tid: g.id for g in GROUPS for tid in g.team_ids}


def group_of(team_id: str) -> str:
    """Group letter of a team. Raises KeyError for codes outside the roster."""
    return GROUP_OF_TEAM[team_id]
