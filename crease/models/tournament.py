"""
Tournament record shapes stored under tournaments/{tournamentId}
"""
import enum
from typing import Optional

from pydantic import Field

from crease.models.match import CamelModel


class FixtureStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"


class Fixture(CamelModel):
    """
    A round-robin pairing within a group.
    Links to the match record once scoring starts.
    """
    id: str
    team_a_id: str
    team_b_id: str
    group: str
    status: FixtureStatus = FixtureStatus.SCHEDULED

    match_id: Optional[str] = None
    winner_id: Optional[str] = None
    result_str: Optional[str] = None

    def involves(self, team_id: str) -> bool:
        return team_id in (self.team_a_id, self.team_b_id)

    def __repr__(self):
        return f"<Fixture {self.id}: {self.team_a_id} vs {self.team_b_id} ({self.status.value})>"


class TournamentGroups(CamelModel):
    group_a: list[str] = Field(default_factory=list)
    group_b: list[str] = Field(default_factory=list)

    def teams_in(self, group: str) -> list[str]:
        if group == "A":
            return self.group_a
        if group == "B":
            return self.group_b
        raise ValueError(f"Unknown group: {group}")


class TournamentConfig(CamelModel):
    groups: TournamentGroups = Field(default_factory=TournamentGroups)
    is_setup_complete: bool = False


class TournamentState(CamelModel):
    config: TournamentConfig = Field(default_factory=TournamentConfig)
    fixtures: dict[str, Fixture] = Field(default_factory=dict)
