"""
Tournament API endpoints - group setup, fixtures and standings
"""
from typing import List

from fastapi import APIRouter, Depends

from crease.api.deps import http_error
from crease.api.schemas import StandingResponse, StartFixtureRequest, TournamentSetupRequest
from crease.auth.utils import get_current_admin
from crease.engine.tournament_engine import TournamentEngine
from crease.errors import CreaseError
from crease.models.admin import AdminRecord
from crease.models.match import MatchRecord
from crease.models.tournament import TournamentState
from crease.store import DocumentStore, get_store

router = APIRouter(prefix="/tournaments", tags=["Tournaments"])


@router.put("/{tournament_id}", response_model=TournamentState)
def setup_tournament(
    tournament_id: str,
    request: TournamentSetupRequest,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    """Set both groups and regenerate all fixtures"""
    try:
        return TournamentEngine(store, tournament_id).setup(admin, request.group_a, request.group_b)
    except CreaseError as e:
        raise http_error(e) from e


@router.get("/{tournament_id}", response_model=TournamentState)
def get_tournament(tournament_id: str, store: DocumentStore = Depends(get_store)):
    try:
        return TournamentEngine(store, tournament_id).load()
    except CreaseError as e:
        raise http_error(e) from e


@router.get("/{tournament_id}/standings/{group}", response_model=List[StandingResponse])
def get_standings(tournament_id: str, group: str, store: DocumentStore = Depends(get_store)):
    """Group table sorted by points, then net run rate"""
    try:
        standings = TournamentEngine(store, tournament_id).standings(group.upper())
    except CreaseError as e:
        raise http_error(e) from e

    return [
        StandingResponse(
            position=pos,
            team_id=s.team_id,
            played=s.played,
            won=s.won,
            lost=s.lost,
            tied=s.tied,
            points=s.points,
            nrr=round(s.nrr, 3),
        )
        for pos, s in enumerate(standings, 1)
    ]


@router.post("/{tournament_id}/fixtures/{fixture_id}/start", response_model=MatchRecord, status_code=201)
def start_fixture(
    tournament_id: str,
    fixture_id: str,
    request: StartFixtureRequest,
    admin: AdminRecord = Depends(get_current_admin),
    store: DocumentStore = Depends(get_store),
):
    """Create the fixture's match; the fixture goes LIVE in the same write"""
    try:
        return TournamentEngine(store, tournament_id).start_fixture_match(
            admin,
            fixture_id,
            request.squad_a,
            request.squad_b,
            overs_per_innings=request.overs_per_innings,
            team_a_name=request.team_a_name,
            team_b_name=request.team_b_name,
            batting_first_id=request.batting_first_id,
        )
    except CreaseError as e:
        raise http_error(e) from e
