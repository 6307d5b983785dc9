"""
Standings Engine - group fixtures and the points table
"""
from dataclasses import dataclass
from typing import Optional

from crease.models.match import InningsData, MatchData, ResultType
from crease.models.tournament import Fixture, FixtureStatus

WIN_POINTS = 2
SHARED_POINTS = 1


@dataclass
class GroupStanding:
    """Team row in a group table"""
    team_id: str
    played: int = 0
    won: int = 0
    lost: int = 0
    tied: int = 0  # Ties and no results
    points: int = 0
    nrr: float = 0.0


@dataclass
class _RunRateTally:
    runs_scored: int = 0
    overs_faced: float = 0.0
    runs_conceded: int = 0
    overs_bowled: float = 0.0


def overs_as_decimal(overs: int, balls: int) -> float:
    """4.3 overs -> 4.5"""
    return overs + balls / 6


def net_run_rate(runs_scored: int, overs_faced: float, runs_conceded: int, overs_bowled: float) -> float:
    if overs_faced <= 0 or overs_bowled <= 0:
        return 0.0
    return runs_scored / overs_faced - runs_conceded / overs_bowled


def generate_round_robin_fixtures(team_ids: list[str], group_label: str) -> list[Fixture]:
    """Every team plays every other team in the group once"""
    fixtures = []
    for i, team_a in enumerate(team_ids):
        for team_b in team_ids[i + 1:]:
            fixtures.append(Fixture(
                id=f"fix_{group_label}_{team_a}_{team_b}",
                team_a_id=team_a,
                team_b_id=team_b,
                group=group_label,
                status=FixtureStatus.SCHEDULED,
            ))
    return fixtures


def _side_ids(fixture: Fixture, match: MatchData) -> tuple[str, str]:
    """Fixture team ids ordered as (meta.team_a, meta.team_b)"""
    meta = match.meta
    if meta.team_a_id and meta.team_b_id:
        return meta.team_a_id, meta.team_b_id
    return fixture.team_a_id, fixture.team_b_id


def _winner_id(fixture: Fixture, match: MatchData) -> Optional[str]:
    meta = match.meta
    if meta.winning_team_id:
        return meta.winning_team_id
    if not meta.winning_team:
        return None
    side_a, side_b = _side_ids(fixture, match)
    return side_a if meta.winning_team == meta.team_a else side_b


def _batting_id(innings: InningsData, fixture: Fixture, match: MatchData) -> str:
    side_a, side_b = _side_ids(fixture, match)
    return side_a if innings.batting_team == match.meta.team_a else side_b


def compute_standings(
    team_ids: list[str],
    fixtures: list[Fixture],
    matches_by_id: dict[str, MatchData],
) -> list[GroupStanding]:
    """
    Points table for one group: 2 for a win, 1 each for a tie or no result.
    Sorted by points, then net run rate, both descending.
    """
    standings = {tid: GroupStanding(team_id=tid) for tid in team_ids}
    tallies = {tid: _RunRateTally() for tid in team_ids}

    for fixture in fixtures:
        if fixture.status != FixtureStatus.COMPLETED or not fixture.match_id:
            continue
        match = matches_by_id.get(fixture.match_id)
        if match is None:
            continue

        team_a, team_b = fixture.team_a_id, fixture.team_b_id
        for tid in (team_a, team_b):
            if tid in standings:
                standings[tid].played += 1

        if match.innings1 and match.innings2:
            first = _batting_id(match.innings1, fixture, match)
            second = team_b if first == team_a else team_a
            overs1 = overs_as_decimal(match.innings1.overs_bowled, match.innings1.balls_in_current_over)
            overs2 = overs_as_decimal(match.innings2.overs_bowled, match.innings2.balls_in_current_over)

            if first in tallies:
                tallies[first].runs_scored += match.innings1.total_runs
                tallies[first].overs_faced += overs1
                tallies[first].runs_conceded += match.innings2.total_runs
                tallies[first].overs_bowled += overs2
            if second in tallies:
                tallies[second].runs_scored += match.innings2.total_runs
                tallies[second].overs_faced += overs2
                tallies[second].runs_conceded += match.innings1.total_runs
                tallies[second].overs_bowled += overs1

        result_type = match.meta.match_result_type
        if result_type in (ResultType.TIE, ResultType.NO_RESULT):
            for tid in (team_a, team_b):
                if tid in standings:
                    standings[tid].points += SHARED_POINTS
                    standings[tid].tied += 1
            continue

        winner = _winner_id(fixture, match)
        if winner is None:
            continue
        loser = team_b if winner == team_a else team_a
        if winner in standings:
            standings[winner].won += 1
            standings[winner].points += WIN_POINTS
        if loser in standings:
            standings[loser].lost += 1

    for tid, tally in tallies.items():
        standings[tid].nrr = net_run_rate(
            tally.runs_scored, tally.overs_faced, tally.runs_conceded, tally.overs_bowled,
        )

    return sorted(standings.values(), key=lambda s: (s.points, s.nrr), reverse=True)
