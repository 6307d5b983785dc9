"""
Match API endpoints - creation, live scoring, scorecards and the live feed
"""
import asyncio
import contextlib
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, WebSocket
from fastapi.concurrency import run_in_threadpool

from crease.api.deps import http_error
from crease.api.schemas import (
    CreateMatchRequest, DeliveryRequest, DeliveryResponse, LiveScoreResponse, LockResponse,
    MatchSummaryResponse, ScorecardResponse, SecondInningsRequest, SelectPlayerRequest,
    StateChangesResponse,
)
from crease.auth.utils import get_current_admin
from crease.engine import innings_manager, stats_engine
from crease.engine.scoring_engine import ScoringEngine, create_match, list_matches
from crease.errors import CreaseError
from crease.models.admin import AdminRecord
from crease.models.match import BALLS_PER_OVER, Ball, MatchRecord, MatchStatus
from crease.store import DocumentStore, get_store
from crease.validators.cricket_rules import CricketRulesValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["Matches"])


def _ball_notation(ball: Ball) -> str:
    """Short form for the current-over strip: 4, W, 1wd, 2nb, 1lb"""
    if ball.is_wicket:
        return "W"
    if ball.is_wide:
        return f"{ball.runs_scored}wd"
    if ball.is_no_ball:
        return f"{ball.runs_scored}nb"
    if ball.is_bye:
        return f"{ball.runs_scored}b"
    if ball.is_leg_bye:
        return f"{ball.runs_scored}lb"
    return str(ball.runs_by_batsman)


def _get_live_score_response(match: MatchRecord) -> LiveScoreResponse:
    meta, state = match.meta, match.state
    balls = stats_engine.innings_balls(match.balls, meta.innings)

    striker = stats_engine.batsman_stats(balls, state.current_striker) if state.current_striker else None
    non_striker = stats_engine.batsman_stats(balls, state.current_non_striker) if state.current_non_striker else None
    bowler = stats_engine.bowler_stats(balls, state.current_bowler) if state.current_bowler else None

    # A finished over stays on show until the next ball is bowled
    last_over = balls[-1].over_number if balls else None
    this_over = [_ball_notation(b) for b in balls if b.over_number == last_over]

    response = LiveScoreResponse(
        match_id=match.match_id,
        status=meta.status,
        innings=meta.innings,
        batting_team=meta.batting_team,
        bowling_team=meta.bowling_team,
        runs=state.total_runs,
        wickets=state.total_wickets,
        overs=state.overs_display,
        overs_per_innings=meta.overs_per_innings,
        run_rate=stats_engine.run_rate(state.total_runs, state.legal_balls),
        striker=striker,
        non_striker=non_striker,
        bowler=bowler,
        last_over_bowler=state.last_over_bowler,
        is_free_hit=state.is_free_hit,
        partnership_runs=state.current_partnership_runs,
        partnership_balls=state.current_partnership_balls,
        this_over=this_over,
        summary=innings_manager.match_summary(match),
        winning_team=meta.winning_team,
        match_result=meta.match_result,
        match_result_type=meta.match_result_type,
    )

    if meta.status == MatchStatus.LIVE:
        batsmen = stats_engine.all_batsman_stats(balls, match.batting_squad)
        response.next_batsman = CricketRulesValidator.get_next_batsman(
            state.batting_order, state.next_batsman_index, batsmen,
            at_crease=(state.current_striker, state.current_non_striker),
            squad=match.batting_squad,
        )

    if meta.innings == 2 and meta.target_score:
        balls_remaining = max(meta.overs_per_innings * BALLS_PER_OVER - state.legal_balls, 0)
        response.target = meta.target_score
        response.runs_needed = max(meta.target_score - state.total_runs, 0)
        response.balls_remaining = balls_remaining
        response.required_rate = stats_engine.required_run_rate(meta.target_score, state.total_runs, balls_remaining)

    return response


def _get_summary_response(match: MatchRecord) -> MatchSummaryResponse:
    return MatchSummaryResponse(
        match_id=match.match_id,
        team_a=match.meta.team_a,
        team_b=match.meta.team_b,
        status=match.meta.status,
        innings=match.meta.innings,
        score=f"{match.state.total_runs}/{match.state.total_wickets} ({match.state.overs_display})",
        summary=innings_manager.match_summary(match),
        lock_holder=match.lock.holder_name,
        tournament_id=match.tournament_id,
        fixture_id=match.fixture_id,
        last_updated_at=match.last_updated_at,
    )


def _feed_message(value: dict) -> dict:
    live = _get_live_score_response(MatchRecord.model_validate(value))
    return live.model_dump(mode="json", by_alias=True)


def _load(store: DocumentStore, match_id: str) -> MatchRecord:
    try:
        return ScoringEngine(store, match_id).load()
    except CreaseError as e:
        raise http_error(e) from e


@router.get("", response_model=List[MatchSummaryResponse])
def get_matches(store: DocumentStore = Depends(get_store)):
    """All matches, most recently updated first"""
    return [_get_summary_response(m) for m in list_matches(store)]


@router.post("", response_model=MatchRecord, status_code=201)
def new_match(
    request: CreateMatchRequest,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    """Create a match. The creator holds the scoring lock."""
    try:
        return create_match(
            store,
            admin,
            request.team_a,
            request.team_b,
            request.squad_a,
            request.squad_b,
            overs_per_innings=request.overs_per_innings,
            batting_first=request.batting_first,
            batting_order=request.batting_order,
        )
    except CreaseError as e:
        raise http_error(e) from e


@router.get("/{match_id}", response_model=MatchRecord)
def get_match(match_id: str, store: DocumentStore = Depends(get_store)):
    return _load(store, match_id)


@router.get("/{match_id}/live", response_model=LiveScoreResponse)
def get_live_score(match_id: str, store: DocumentStore = Depends(get_store)):
    return _get_live_score_response(_load(store, match_id))


@router.get("/{match_id}/scorecard", response_model=ScorecardResponse)
def get_scorecard(match_id: str, store: DocumentStore = Depends(get_store)):
    """Completed innings from their snapshots, the one in progress computed from its balls"""
    match = _load(store, match_id)

    innings = []
    if match.innings1:
        innings.append(match.innings1)
    elif match.meta.innings == 1 and match.balls:
        innings.append(innings_manager.snapshot_innings(match, 1, match.balls))

    if match.innings2:
        innings.append(match.innings2)
    elif match.meta.innings == 2:
        innings.append(innings_manager.snapshot_innings(match, 2, match.balls))

    return ScorecardResponse(
        match_id=match.match_id,
        team_a=match.meta.team_a,
        team_b=match.meta.team_b,
        status=match.meta.status,
        summary=innings_manager.match_summary(match),
        innings=innings,
        match_result=match.meta.match_result,
    )


@router.post("/{match_id}/lock", response_model=LockResponse)
def acquire_lock(
    match_id: str,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    try:
        lock = ScoringEngine(store, match_id).acquire_lock(admin)
    except CreaseError as e:
        raise http_error(e) from e
    return LockResponse.model_validate(lock.model_dump())


@router.delete("/{match_id}/lock", status_code=204)
def release_lock(
    match_id: str,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    try:
        ScoringEngine(store, match_id).release_lock(admin)
    except CreaseError as e:
        raise http_error(e) from e


@router.post("/{match_id}/players", response_model=LiveScoreResponse)
def select_player(
    match_id: str,
    request: SelectPlayerRequest,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    """Set the striker, non-striker or bowler"""
    try:
        match = ScoringEngine(store, match_id).select_player(admin, request.role.value, request.name)
    except CreaseError as e:
        raise http_error(e) from e
    return _get_live_score_response(match)


@router.post("/{match_id}/balls", response_model=DeliveryResponse)
def submit_ball(
    match_id: str,
    request: DeliveryRequest,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    """Record one delivery"""
    engine = ScoringEngine(store, match_id)
    try:
        result = engine.submit_delivery(admin, request.to_delivery())
    except CreaseError as e:
        raise http_error(e) from e

    return DeliveryResponse(
        ball=result.ball,
        changes=StateChangesResponse.model_validate(result.changes),
        live=_get_live_score_response(engine.match),
    )


@router.delete("/{match_id}/balls/last", response_model=LiveScoreResponse)
def undo_last_ball(
    match_id: str,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    try:
        match = ScoringEngine(store, match_id).undo_last_ball(admin)
    except CreaseError as e:
        raise http_error(e) from e
    return _get_live_score_response(match)


@router.post("/{match_id}/innings2", response_model=LiveScoreResponse)
def start_second_innings(
    match_id: str,
    request: Optional[SecondInningsRequest] = None,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    try:
        match = ScoringEngine(store, match_id).start_second_innings(admin, request.batting_order if request else None)
    except CreaseError as e:
        raise http_error(e) from e
    return _get_live_score_response(match)


@router.post("/{match_id}/abandon", response_model=LiveScoreResponse)
def abandon_match(
    match_id: str,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    try:
        match = ScoringEngine(store, match_id).abandon(admin)
    except CreaseError as e:
        raise http_error(e) from e
    return _get_live_score_response(match)


@router.websocket("/{match_id}/feed")
async def match_feed(websocket: WebSocket, match_id: str, store: DocumentStore = Depends(get_store)):
    """
    Push the live score every time the match document changes. The first
    message is sent straight after connecting.
    """
    await websocket.accept()
    if await run_in_threadpool(store.get, f"matches/{match_id}") is None:
        await websocket.close(code=4404)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_change(value):
        # Store callbacks run on the writer's thread
        loop.call_soon_threadsafe(queue.put_nowait, value)

    async def pump():
        while True:
            value = await queue.get()
            if value is None:
                await websocket.send_json({"matchId": match_id, "deleted": True})
                continue
            live = await run_in_threadpool(_feed_message, value)
            await websocket.send_json(live)

    unsubscribe = await run_in_threadpool(store.subscribe, f"matches/{match_id}", on_change)
    sender = asyncio.create_task(pump())
    logger.info("Feed opened for %s (%d subscribers)", match_id, store.subscriber_count)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        unsubscribe()
        sender.cancel()
        try:
            with contextlib.suppress(asyncio.CancelledError):
                await sender
        except Exception:
            logger.exception("Feed for %s stopped sending", match_id)
        logger.info("Feed closed for %s", match_id)
