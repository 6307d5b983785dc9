"""
Pydantic schemas for API request/response models.

Field names are camelCase on the wire, matching the stored documents.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from crease.engine.ball_processor import DeliveryInput, ExtrasType
from crease.models.match import (
    Ball, BatsmanStats, BowlerStats, InningsData, MatchStatus, ResultType, WicketKind,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PlayerRoleEnum(str, Enum):
    STRIKER = "striker"
    NON_STRIKER = "non_striker"
    BOWLER = "bowler"


# Auth Schemas
class LoginRequest(ApiModel):
    username: str = Field(min_length=1)


class LoginResponse(ApiModel):
    admin_id: str
    username: str


# Match Schemas
class CreateMatchRequest(ApiModel):
    team_a: str
    team_b: str
    squad_a: list[str]
    squad_b: list[str]
    overs_per_innings: Optional[int] = None
    batting_first: Optional[str] = None  # Team name, defaults to team_a
    batting_order: Optional[list[str]] = None


class SelectPlayerRequest(ApiModel):
    role: PlayerRoleEnum
    name: str


class DeliveryRequest(ApiModel):
    runs: int = Field(default=0, ge=0, le=7)
    extras_type: ExtrasType = ExtrasType.NONE
    is_wicket: bool = False
    wicket_kind: Optional[WicketKind] = None
    player_out: Optional[str] = None  # Defaults to the striker
    fielder: Optional[str] = None

    def to_delivery(self) -> DeliveryInput:
        return DeliveryInput(
            runs=self.runs,
            extras_type=self.extras_type,
            is_wicket=self.is_wicket,
            wicket_kind=self.wicket_kind if self.is_wicket else None,
            player_out=self.player_out if self.is_wicket else None,
            fielder=self.fielder if self.is_wicket else None,
        )


class SecondInningsRequest(ApiModel):
    batting_order: Optional[list[str]] = None


class LockResponse(ApiModel):
    holder_id: Optional[str] = None
    holder_name: Optional[str] = None
    acquired_at_epoch_ms: Optional[int] = None


class MatchSummaryResponse(ApiModel):
    match_id: str
    team_a: str
    team_b: str
    status: MatchStatus
    innings: int
    score: str
    summary: str
    lock_holder: Optional[str] = None
    tournament_id: Optional[str] = None
    fixture_id: Optional[str] = None
    last_updated_at: int


class LiveScoreResponse(ApiModel):
    match_id: str
    status: MatchStatus
    innings: int
    batting_team: str
    bowling_team: str
    runs: int
    wickets: int
    overs: str
    overs_per_innings: int
    run_rate: float

    # Chase
    target: Optional[int] = None
    runs_needed: Optional[int] = None
    balls_remaining: Optional[int] = None
    required_rate: Optional[float] = None

    striker: Optional[BatsmanStats] = None
    non_striker: Optional[BatsmanStats] = None
    bowler: Optional[BowlerStats] = None
    last_over_bowler: Optional[str] = None
    next_batsman: Optional[str] = None

    is_free_hit: bool = False
    partnership_runs: int = 0
    partnership_balls: int = 0
    this_over: list[str] = Field(default_factory=list)

    summary: str
    winning_team: Optional[str] = None
    match_result: Optional[str] = None
    match_result_type: Optional[ResultType] = None


class StateChangesResponse(ApiModel):
    strike_changed: bool
    over_completed: bool
    wicket_fell: bool
    need_new_batsman: bool
    need_new_bowler: bool
    innings_completed: bool


class DeliveryResponse(ApiModel):
    ball: Ball
    changes: StateChangesResponse
    live: LiveScoreResponse


class ScorecardResponse(ApiModel):
    match_id: str
    team_a: str
    team_b: str
    status: MatchStatus
    summary: str
    innings: list[InningsData]
    match_result: Optional[str] = None


# Tournament Schemas
class TournamentSetupRequest(ApiModel):
    group_a: list[str]
    group_b: list[str]


class StartFixtureRequest(ApiModel):
    squad_a: list[str]
    squad_b: list[str]
    overs_per_innings: Optional[int] = None
    team_a_name: Optional[str] = None
    team_b_name: Optional[str] = None
    batting_first_id: Optional[str] = None


class StandingResponse(ApiModel):
    position: int
    team_id: str
    played: int
    won: int
    lost: int
    tied: int
    points: int
    nrr: float
