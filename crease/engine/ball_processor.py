"""
Ball delivery processor.

Takes the live innings state plus one delivery as entered by the scorer and
derives the recorded Ball, the next state and the transitions that fired.
Pure: inputs are never mutated and nothing is persisted here.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from crease.models.match import (
    Ball, MatchState, MatchMeta, MatchStatus, WicketKind, FIELDER_WICKET_KINDS, BALLS_PER_OVER,
)
from crease.validators.cricket_rules import CricketRulesValidator


class ExtrasType(str, enum.Enum):
    NONE = "NONE"
    WIDE = "WD"
    NOBALL = "NB"
    BYE = "BYE"
    LEGBYE = "LB"


@dataclass
class DeliveryInput:
    """One delivery as entered by the scorer"""
    runs: int = 0  # Off the bat, or byes/leg-byes/wide runs depending on extras_type
    extras_type: ExtrasType = ExtrasType.NONE
    is_wicket: bool = False
    wicket_kind: Optional[WicketKind] = None
    player_out: Optional[str] = None  # Defaults to the striker
    fielder: Optional[str] = None

    @classmethod
    def from_ball(cls, ball: Ball) -> "DeliveryInput":
        """Rebuild the scorer's input from a recorded ball (used for replay)"""
        if ball.is_wide:
            extras_type = ExtrasType.WIDE
        elif ball.is_no_ball:
            extras_type = ExtrasType.NOBALL
        elif ball.is_bye:
            extras_type = ExtrasType.BYE
        elif ball.is_leg_bye:
            extras_type = ExtrasType.LEGBYE
        else:
            extras_type = ExtrasType.NONE
        return cls(
            runs=ball.runs_scored - ball.extra_runs,
            extras_type=extras_type,
            is_wicket=ball.is_wicket,
            wicket_kind=ball.wicket_kind,
            player_out=ball.player_out,
            fielder=ball.fielder,
        )


@dataclass
class StateChanges:
    """Transitions caused by a single delivery"""
    strike_changed: bool = False
    over_completed: bool = False
    wicket_fell: bool = False
    need_new_batsman: bool = False
    need_new_bowler: bool = False
    innings_completed: bool = False


@dataclass
class DeliveryResult:
    ball: Ball
    new_state: MatchState
    new_meta: MatchMeta
    changes: StateChanges


def rotate_strike(state: MatchState) -> MatchState:
    """Swap striker and non-striker"""
    return state.model_copy(update={
        "current_striker": state.current_non_striker,
        "current_non_striker": state.current_striker,
    })


def complete_over(state: MatchState) -> MatchState:
    """
    Close the current over: the bowler becomes last_over_bowler, a new
    bowler must be picked and the batsmen change ends.
    """
    closed = state.model_copy(update={
        "overs_bowled": state.overs_bowled + 1,
        "balls_in_current_over": 0,
        "last_over_bowler": state.current_bowler,
        "current_bowler": None,
    })
    return rotate_strike(closed)


def process_delivery(
    state: MatchState,
    meta: MatchMeta,
    delivery: DeliveryInput,
    ball_number: int,
    striker: str,
    non_striker: str,
    bowler: str,
) -> DeliveryResult:
    """
    Apply one delivery.

    The caller must have checked that striker, non-striker and bowler are
    all selected; this function assumes it.
    """
    # 1. Classify
    is_wide = delivery.extras_type == ExtrasType.WIDE
    is_no_ball = delivery.extras_type == ExtrasType.NOBALL
    is_bye = delivery.extras_type == ExtrasType.BYE
    is_leg_bye = delivery.extras_type == ExtrasType.LEGBYE
    is_legal = not is_wide and not is_no_ball

    # 2. Runs
    runs_by_batsman = 0 if (is_wide or is_bye or is_leg_bye) else delivery.runs
    extra_runs = 1 if (is_wide or is_no_ball) else 0
    total_ball_runs = delivery.runs + extra_runs

    # 3. Record, with the free-hit flag as it stood before this ball
    wicket_kind = delivery.wicket_kind or WicketKind.BOWLED
    player_out = (delivery.player_out or striker) if delivery.is_wicket else None
    fielder = None
    if delivery.is_wicket and wicket_kind in FIELDER_WICKET_KINDS and delivery.fielder:
        fielder = delivery.fielder

    ball = Ball(
        ball_number=ball_number,
        innings=meta.innings,
        over_number=state.overs_bowled,
        ball_in_over=state.balls_in_current_over + 1,
        runs_scored=total_ball_runs,
        runs_by_batsman=runs_by_batsman,
        extra_runs=extra_runs,
        is_wide=is_wide,
        is_no_ball=is_no_ball,
        is_bye=is_bye,
        is_leg_bye=is_leg_bye,
        is_wicket=delivery.is_wicket,
        wicket_kind=wicket_kind if delivery.is_wicket else None,
        player_out=player_out,
        fielder=fielder,
        striker=striker,
        non_striker=non_striker,
        bowler=bowler,
        is_free_hit=state.is_free_hit,
        partnership_runs=state.current_partnership_runs + total_ball_runs,
    )

    new_state = state.model_copy(update={
        "current_striker": striker,
        "current_non_striker": non_striker,
        "current_bowler": bowler,
    })
    changes = StateChanges()

    # 4. Totals
    new_state.total_runs += total_ball_runs
    new_state.current_partnership_runs += total_ball_runs

    # 5. Over progress and free hit
    if is_legal:
        new_state.legal_balls += 1
        new_state.balls_in_current_over += 1
        new_state.is_free_hit = False
        new_state.current_partnership_balls += 1
    elif is_no_ball:
        new_state.is_free_hit = True

    # 6. Wicket
    if delivery.is_wicket:
        new_state.total_wickets += 1
        changes.wicket_fell = True
        changes.need_new_batsman = True

        if player_out == new_state.current_striker:
            new_state.current_striker = None
        else:
            new_state.current_non_striker = None

        new_state.next_batsman_index += 1
        new_state.current_partnership_runs = 0
        new_state.current_partnership_balls = 0

    # 7. Odd runs off the bat change ends, unless a wicket fell
    if runs_by_batsman % 2 == 1 and not changes.wicket_fell:
        new_state = rotate_strike(new_state)
        changes.strike_changed = True

    # 8. End of over: always change ends, on top of any swap above
    if new_state.balls_in_current_over == BALLS_PER_OVER:
        new_state = complete_over(new_state)
        changes.over_completed = True
        changes.need_new_bowler = True
        changes.strike_changed = True

    # 9. Innings / match completion
    status = meta.status
    if CricketRulesValidator.is_innings_complete(new_state, meta):
        changes.innings_completed = True
        status = MatchStatus.INNINGS_BREAK if meta.innings == 1 else MatchStatus.COMPLETED

    if meta.innings == 2 and CricketRulesValidator.is_target_chased(new_state.total_runs, meta.target_score):
        changes.innings_completed = True
        status = MatchStatus.COMPLETED

    new_meta = meta.model_copy(update={"status": status})

    # 10.
    return DeliveryResult(ball=ball, new_state=new_state, new_meta=new_meta, changes=changes)
