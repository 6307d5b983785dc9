"""
Innings Manager - snapshots, second-innings setup and the match result
"""
from dataclasses import dataclass
from typing import Optional

from crease.engine import stats_engine
from crease.models.match import (
    MAX_WICKETS, Ball, InningsData, MatchData, MatchMeta, MatchState, MatchStatus, ResultType,
)


@dataclass
class MatchResult:
    """Outcome of a finished match"""
    winning_team: Optional[str]  # None for a tie or no result
    result_text: str
    result_type: ResultType


def initial_state(batting_order: Optional[list[str]] = None) -> MatchState:
    """Fresh state for the start of an innings"""
    return MatchState(batting_order=list(batting_order or []))


def snapshot_innings(match: MatchData, innings_number: int, balls: list[Ball]) -> InningsData:
    """
    Freeze the innings that just finished. `balls` may hold the whole match
    history; only the balls of `innings_number` are counted.
    """
    state, meta = match.state, match.meta
    balls = stats_engine.innings_balls(balls, innings_number)

    return InningsData(
        batting_team=meta.batting_team,
        bowling_team=meta.bowling_team,
        total_runs=state.total_runs,
        total_wickets=state.total_wickets,
        overs_bowled=state.overs_bowled,
        balls_in_current_over=state.balls_in_current_over,
        legal_balls=state.legal_balls,
        fall_of_wickets=stats_engine.fall_of_wickets(balls),
        partnerships=stats_engine.partnerships(balls),
        batsman_stats=stats_engine.all_batsman_stats(balls, match.batting_squad),
        bowler_stats=stats_engine.all_bowler_stats(balls, match.bowling_squad),
        extras=stats_engine.extras_breakdown(balls),
    )


def prepare_second_innings(match: MatchData) -> tuple[MatchMeta, MatchState]:
    """Swap sides and set the target (first-innings total + 1)"""
    meta, state = match.meta, match.state

    new_meta = meta.model_copy(update={
        "innings": 2,
        "batting_team": meta.bowling_team,
        "bowling_team": meta.batting_team,
        "target_score": state.total_runs + 1,
        "status": MatchStatus.LIVE,
    })
    return new_meta, initial_state(state.batting_order)


def compute_match_result(innings1: InningsData, innings2: InningsData) -> MatchResult:
    team1, team2 = innings1.batting_team, innings2.batting_team

    if innings1.total_runs == innings2.total_runs:
        return MatchResult(winning_team=None, result_text="Match tied", result_type=ResultType.TIE)

    if innings2.total_runs > innings1.total_runs:
        wickets = MAX_WICKETS - innings2.total_wickets
        return MatchResult(
            winning_team=team2,
            result_text=f"{team2} won by {wickets} wicket{'' if wickets == 1 else 's'}",
            result_type=ResultType.WICKETS,
        )

    runs = innings1.total_runs - innings2.total_runs
    return MatchResult(
        winning_team=team1,
        result_text=f"{team1} won by {runs} run{'' if runs == 1 else 's'}",
        result_type=ResultType.RUNS,
    )


def no_result() -> MatchResult:
    """Result recorded for an abandoned match"""
    return MatchResult(winning_team=None, result_text="No result", result_type=ResultType.NO_RESULT)


def match_summary(match: MatchData) -> str:
    """One-line status for lists and headers"""
    meta = match.meta

    if meta.status == MatchStatus.NOT_STARTED:
        return "Match not started"

    if meta.status == MatchStatus.LIVE:
        if meta.innings == 1:
            return f"{meta.batting_team} batting"
        return f"{meta.batting_team} chasing {meta.target_score}"

    if meta.status == MatchStatus.INNINGS_BREAK:
        if match.innings1:
            return (
                f"Innings break - {match.innings1.batting_team}: "
                f"{match.innings1.total_runs}/{match.innings1.total_wickets}"
            )
        return "Innings break"

    return meta.match_result or "Match completed"
