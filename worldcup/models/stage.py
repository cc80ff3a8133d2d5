from enum import Enum


class Stage(str, Enum):
    group = "Group"
    round_of_32 = "Round of 32"
    round_of_16 = "Round of 16"
    quarter_final = "Quarter-Final"
    semi_final = "Semi-Final"
    third_place = "Third Place"
    final = "Final"


class Phase(str, Enum):
    team_selection = "TEAM_SELECTION"
    group_stage = "GROUP_STAGE"
    knockout_stage = "KNOCKOUT_STAGE"


def is_knockout(stage) -> bool:
    """True for every stage except the group stage. Accepts Stage or its string value."""
    return Stage(stage) != Stage.group
