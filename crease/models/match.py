"""
Match record shapes stored under matches/{matchId}
"""
import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for stored records: snake_case in Python, camelCase in documents"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MatchStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    LIVE = "LIVE"
    INNINGS_BREAK = "INNINGS_BREAK"
    COMPLETED = "COMPLETED"


class WicketKind(str, enum.Enum):
    BOWLED = "bowled"
    CAUGHT = "caught"
    LBW = "lbw"
    RUN_OUT = "run_out"
    STUMPED = "stumped"
    HIT_WICKET = "hit_wicket"


# Dismissals that credit a fielder
FIELDER_WICKET_KINDS = {WicketKind.CAUGHT, WicketKind.RUN_OUT, WicketKind.STUMPED}

BALLS_PER_OVER = 6
MAX_WICKETS = 10


class ResultType(str, enum.Enum):
    RUNS = "runs"
    WICKETS = "wickets"
    TIE = "tie"
    NO_RESULT = "no_result"


class Ball(CamelModel):
    """One recorded delivery. Never edited once appended."""
    model_config = ConfigDict(frozen=True)

    ball_number: int  # Global index, 1-based
    innings: int = 1
    over_number: int
    ball_in_over: int  # 1-6 (extras repeat the position)

    # Scoring
    runs_scored: int  # Total runs to the team from this ball
    runs_by_batsman: int = 0
    extra_runs: int = 0

    # Extras
    is_wide: bool = False
    is_no_ball: bool = False
    is_bye: bool = False
    is_leg_bye: bool = False

    # Wicket
    is_wicket: bool = False
    wicket_kind: Optional[WicketKind] = None
    player_out: Optional[str] = None
    fielder: Optional[str] = None

    # Snapshot at the moment of delivery
    striker: str
    non_striker: str
    bowler: str
    is_free_hit: bool = False

    partnership_runs: int = 0

    @property
    def is_legal(self) -> bool:
        return not self.is_wide and not self.is_no_ball

    def __repr__(self):
        return f"<Ball {self.over_number}.{self.ball_in_over}: {self.runs_scored} runs>"


class MatchState(CamelModel):
    """Live state of the innings in progress"""
    total_runs: int = 0
    total_wickets: int = 0
    legal_balls: int = 0
    overs_bowled: int = 0
    balls_in_current_over: int = 0

    # None means the scorer still has to pick someone
    current_striker: Optional[str] = None
    current_non_striker: Optional[str] = None
    current_bowler: Optional[str] = None

    is_free_hit: bool = False

    batting_order: list[str] = Field(default_factory=list)
    next_batsman_index: int = 0

    last_over_bowler: Optional[str] = None

    current_partnership_runs: int = 0
    current_partnership_balls: int = 0

    @property
    def overs_display(self) -> str:
        return f"{self.overs_bowled}.{self.balls_in_current_over}"


class MatchMeta(CamelModel):
    team_a: str
    team_b: str
    batting_team: str
    bowling_team: str
    overs_per_innings: int
    innings: int = 1
    status: MatchStatus = MatchStatus.NOT_STARTED

    # Second innings
    target_score: Optional[int] = None

    # Result
    winning_team: Optional[str] = None
    match_result: Optional[str] = None
    match_result_type: Optional[ResultType] = None

    # Canonical team identifiers, set when the match comes from a fixture
    team_a_id: Optional[str] = None
    team_b_id: Optional[str] = None
    winning_team_id: Optional[str] = None

    def team_id_for(self, team_name: Optional[str]) -> Optional[str]:
        if team_name is None:
            return None
        if team_name == self.team_a:
            return self.team_a_id
        if team_name == self.team_b:
            return self.team_b_id
        return None


class Squads(CamelModel):
    team_a: list[str] = Field(default_factory=list)
    team_b: list[str] = Field(default_factory=list)


class BatsmanStats(CamelModel):
    name: str
    runs: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    strike_rate: float = 0.0
    is_out: bool = False
    how_out: Optional[str] = None


class BowlerStats(CamelModel):
    name: str
    overs: int = 0
    balls: int = 0
    runs: int = 0
    wickets: int = 0
    economy: float = 0.0
    maidens: int = 0
    wides: int = 0
    no_balls: int = 0

    @property
    def overs_display(self) -> str:
        return f"{self.overs}.{self.balls}"


class FallOfWicket(CamelModel):
    player_out: str
    score: int
    wicket_number: int
    overs_bowled: int
    balls_in_over: int
    wicket_kind: str
    bowler: str
    fielder: Optional[str] = None

    @property
    def over_display(self) -> str:
        return f"{self.overs_bowled}.{self.balls_in_over}"


class Partnership(CamelModel):
    batsman1: str
    batsman2: str
    runs: int = 0
    balls: int = 0
    start_wicket: int = 0
    end_wicket: Optional[int] = None
    is_active: bool = False


class Extras(CamelModel):
    wides: int = 0
    no_balls: int = 0
    byes: int = 0
    leg_byes: int = 0
    total: int = 0


class InningsData(CamelModel):
    """Frozen summary of a finished innings"""
    model_config = ConfigDict(frozen=True)

    batting_team: str
    bowling_team: str
    total_runs: int
    total_wickets: int
    overs_bowled: int
    balls_in_current_over: int
    legal_balls: int
    fall_of_wickets: list[FallOfWicket] = Field(default_factory=list)
    partnerships: list[Partnership] = Field(default_factory=list)
    batsman_stats: dict[str, BatsmanStats] = Field(default_factory=dict)
    bowler_stats: dict[str, BowlerStats] = Field(default_factory=dict)
    extras: Extras = Field(default_factory=Extras)

    @property
    def overs_display(self) -> str:
        return f"{self.overs_bowled}.{self.balls_in_current_over}"

    @property
    def score_display(self) -> str:
        return f"{self.total_runs}/{self.total_wickets} ({self.overs_display})"


class MatchData(CamelModel):
    meta: MatchMeta
    squads: Squads = Field(default_factory=Squads)
    state: MatchState = Field(default_factory=MatchState)
    balls: list[Ball] = Field(default_factory=list)

    innings1: Optional[InningsData] = None
    innings2: Optional[InningsData] = None

    last_updated_at: int = 0  # epoch ms

    @property
    def batting_squad(self) -> list[str]:
        if self.meta.batting_team == self.meta.team_a:
            return self.squads.team_a
        return self.squads.team_b

    @property
    def bowling_squad(self) -> list[str]:
        if self.meta.batting_team == self.meta.team_a:
            return self.squads.team_b
        return self.squads.team_a


class MatchLock(CamelModel):
    holder_id: Optional[str] = None
    holder_name: Optional[str] = None
    acquired_at_epoch_ms: Optional[int] = None

    @property
    def is_held(self) -> bool:
        return self.holder_id is not None


class MatchRecord(MatchData):
    """Everything stored at matches/{matchId}"""
    match_id: str
    created_by: str
    lock: MatchLock = Field(default_factory=MatchLock)

    # Set when created from a tournament fixture
    tournament_id: Optional[str] = None
    fixture_id: Optional[str] = None

    def __repr__(self):
        return f"<Match {self.match_id}: {self.meta.team_a} vs {self.meta.team_b} ({self.meta.status.value})>"
