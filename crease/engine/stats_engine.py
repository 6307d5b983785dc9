"""
Statistics Engine - scorecard figures recomputed from the ball history.

Nothing here is cached: every figure is a fresh pass over the ordered list
of balls, so whatever the ball list says after an undo is what the
scorecard shows.
"""
from typing import Optional

from crease.engine.ball_processor import DeliveryInput, process_delivery
from crease.models.match import (
    Ball, MatchMeta, MatchState, WicketKind, BALLS_PER_OVER,
    BatsmanStats, BowlerStats, FallOfWicket, Partnership, Extras,
)


def innings_balls(balls: list[Ball], innings: int) -> list[Ball]:
    return [ball for ball in balls if ball.innings == innings]


def overs_display(legal_balls: int) -> str:
    """Cricket notation, e.g. 20 legal balls -> "3.2" """
    return f"{legal_balls // BALLS_PER_OVER}.{legal_balls % BALLS_PER_OVER}"


def dismissal_text(kind: Optional[WicketKind], bowler: str, fielder: Optional[str] = None) -> str:
    if kind == WicketKind.BOWLED:
        return f"b {bowler}"
    if kind == WicketKind.CAUGHT:
        return f"c {fielder} b {bowler}" if fielder else f"c & b {bowler}"
    if kind == WicketKind.LBW:
        return f"lbw b {bowler}"
    if kind == WicketKind.STUMPED:
        return f"st {fielder} b {bowler}" if fielder else f"st b {bowler}"
    if kind == WicketKind.RUN_OUT:
        return f"run out ({fielder})" if fielder else "run out"
    if kind == WicketKind.HIT_WICKET:
        return f"hit wicket b {bowler}"
    return "out"


def batsman_stats(balls: list[Ball], player: str) -> BatsmanStats:
    runs = 0
    balls_faced = 0
    fours = 0
    sixes = 0
    is_out = False
    how_out = None

    for ball in balls:
        if ball.striker == player:
            if ball.is_legal:
                balls_faced += 1

            runs += ball.runs_by_batsman
            if ball.runs_by_batsman == 4:
                fours += 1
            elif ball.runs_by_batsman == 6:
                sixes += 1

            if ball.is_wicket and ball.player_out == player:
                is_out = True
                how_out = dismissal_text(ball.wicket_kind, ball.bowler, ball.fielder)

        # Only a run out can remove the non-striker
        if ball.non_striker == player and ball.is_wicket and ball.player_out == player:
            is_out = True
            how_out = dismissal_text(WicketKind.RUN_OUT, ball.bowler, ball.fielder)

    strike_rate = (runs / balls_faced) * 100 if balls_faced > 0 else 0.0

    return BatsmanStats(
        name=player,
        runs=runs,
        balls=balls_faced,
        fours=fours,
        sixes=sixes,
        strike_rate=round(strike_rate, 2),
        is_out=is_out,
        how_out=how_out,
    )


def bowler_stats(balls: list[Ball], player: str) -> BowlerStats:
    """
    Figures for one bowler. Runs conceded are every run scored off their
    deliveries, byes and leg-byes included.
    """
    balls_bowled = 0
    runs = 0
    wickets = 0
    wides = 0
    no_balls = 0
    overs: dict[int, list[Ball]] = {}

    for ball in balls:
        if ball.bowler != player:
            continue
        if ball.is_legal:
            balls_bowled += 1
        runs += ball.runs_scored
        if ball.is_wicket and ball.wicket_kind != WicketKind.RUN_OUT:
            wickets += 1
        if ball.is_wide:
            wides += 1
        if ball.is_no_ball:
            no_balls += 1
        overs.setdefault(ball.over_number, []).append(ball)

    maidens = 0
    for over in overs.values():
        legal = sum(1 for b in over if b.is_legal)
        if legal == BALLS_PER_OVER and sum(b.runs_scored for b in over) == 0:
            maidens += 1

    economy = (runs / balls_bowled) * BALLS_PER_OVER if balls_bowled > 0 else 0.0

    return BowlerStats(
        name=player,
        overs=balls_bowled // BALLS_PER_OVER,
        balls=balls_bowled % BALLS_PER_OVER,
        runs=runs,
        wickets=wickets,
        economy=round(economy, 2),
        maidens=maidens,
        wides=wides,
        no_balls=no_balls,
    )


def all_batsman_stats(balls: list[Ball], squad: list[str]) -> dict[str, BatsmanStats]:
    """Stats for every squad member who faced a ball or was dismissed"""
    result = {}
    for player in squad:
        stats = batsman_stats(balls, player)
        if stats.balls > 0 or stats.is_out:
            result[player] = stats
    return result


def all_bowler_stats(balls: list[Ball], squad: list[str]) -> dict[str, BowlerStats]:
    """Stats for every squad member who bowled at least one legal ball"""
    result = {}
    for player in squad:
        stats = bowler_stats(balls, player)
        if stats.overs > 0 or stats.balls > 0:
            result[player] = stats
    return result


def fall_of_wickets(balls: list[Ball]) -> list[FallOfWicket]:
    result = []
    score = 0
    for ball in balls:
        score += ball.runs_scored
        if ball.is_wicket and ball.player_out:
            result.append(FallOfWicket(
                player_out=ball.player_out,
                score=score,
                wicket_number=len(result) + 1,
                overs_bowled=ball.over_number,
                balls_in_over=ball.ball_in_over,
                wicket_kind=ball.wicket_kind.value if ball.wicket_kind else "out",
                bowler=ball.bowler,
                fielder=ball.fielder,
            ))
    return result


def partnerships(balls: list[Ball]) -> list[Partnership]:
    """
    Split the innings into runs of balls with the same (unordered) pair at
    the crease. The last segment is the active partnership.
    """
    result = []
    pair: Optional[tuple[str, str]] = None
    runs = 0
    balls_faced = 0
    start_wicket = 0

    for ball in balls:
        if pair is None:
            pair = (ball.striker, ball.non_striker)

        if sorted((ball.striker, ball.non_striker)) != sorted(pair):
            result.append(Partnership(
                batsman1=pair[0],
                batsman2=pair[1],
                runs=runs,
                balls=balls_faced,
                start_wicket=start_wicket,
                end_wicket=start_wicket + 1,
                is_active=False,
            ))
            pair = (ball.striker, ball.non_striker)
            runs = 0
            balls_faced = 0
            start_wicket += 1

        runs += ball.runs_scored
        if ball.is_legal:
            balls_faced += 1

    if pair is not None:
        result.append(Partnership(
            batsman1=pair[0],
            batsman2=pair[1],
            runs=runs,
            balls=balls_faced,
            start_wicket=start_wicket,
            is_active=True,
        ))
    return result


def extras_breakdown(balls: list[Ball]) -> Extras:
    wides = 0
    no_balls = 0
    byes = 0
    leg_byes = 0
    for ball in balls:
        if ball.is_wide:
            wides += ball.runs_scored
        if ball.is_no_ball:
            no_balls += 1
        if ball.is_bye:
            byes += ball.runs_scored
        if ball.is_leg_bye:
            leg_byes += ball.runs_scored
    return Extras(
        wides=wides,
        no_balls=no_balls,
        byes=byes,
        leg_byes=leg_byes,
        total=wides + no_balls + byes + leg_byes,
    )


def run_rate(runs: int, legal_balls: int) -> float:
    if legal_balls == 0:
        return 0.0
    return round(runs / (legal_balls / BALLS_PER_OVER), 2)


def required_run_rate(target: int, runs_scored: int, balls_remaining: int) -> float:
    if balls_remaining <= 0:
        return 0.0
    runs_needed = target - runs_scored
    if runs_needed <= 0:
        return 0.0
    return round(runs_needed / (balls_remaining / BALLS_PER_OVER), 2)


def replay_innings(balls: list[Ball], meta: MatchMeta, initial_state: MatchState) -> tuple[MatchState, MatchMeta]:
    """
    Rebuild live state by feeding the innings' balls back through the
    delivery processor from `initial_state`. Used by undo.

    The returned state keeps the crease as the last ball left it, so after
    a wicket the dismissed batsman's slot is empty again.
    """
    state = initial_state
    for ball in balls:
        result = process_delivery(
            state,
            meta,
            DeliveryInput.from_ball(ball),
            ball.ball_number,
            ball.striker,
            ball.non_striker,
            ball.bowler,
        )
        state, meta = result.new_state, result.new_meta
    return state, meta
