"""
Tournament Engine - two-group round robin on top of the document store
"""
import logging
from typing import Optional

from crease.engine.scoring_engine import build_match, now_ms
from crease.engine.standings_engine import GroupStanding, compute_standings, generate_round_robin_fixtures
from crease.errors import TournamentNotFound, ValidationError
from crease.models.admin import AdminRecord
from crease.models.match import MatchRecord
from crease.models.tournament import (
    Fixture, FixtureStatus, TournamentConfig, TournamentGroups, TournamentState,
)
from crease.store import DocumentStore

logger = logging.getLogger(__name__)

GROUPS = ("A", "B")
MIN_GROUP_SIZE = 2


class TournamentEngine:
    """
    Manages a tournament: group setup, fixture generation, starting fixture
    matches and the group tables.
    """

    def __init__(self, store: DocumentStore, tournament_id: str):
        self.store = store
        self.tournament_id = tournament_id

    @property
    def path(self) -> str:
        return f"tournaments/{self.tournament_id}"

    def load(self) -> TournamentState:
        doc = self.store.get(self.path)
        if doc is None:
            raise TournamentNotFound(f"Tournament {self.tournament_id} not found")
        return TournamentState.model_validate(doc)

    def setup(self, admin: AdminRecord, group_a: list[str], group_b: list[str]) -> TournamentState:
        """
        Set the groups and generate every group fixture. Replaces any
        previous setup, including its fixtures.
        """
        group_a = [t.strip() for t in group_a if t.strip()]
        group_b = [t.strip() for t in group_b if t.strip()]
        for label, teams in (("A", group_a), ("B", group_b)):
            if len(teams) < MIN_GROUP_SIZE:
                raise ValidationError(f"Group {label} needs at least {MIN_GROUP_SIZE} teams")
            if len(set(teams)) != len(teams):
                raise ValidationError(f"Group {label} lists a team twice")
            for team in teams:
                if "/" in team:
                    raise ValidationError(f"Team id {team} cannot contain '/'")
        both = set(group_a) & set(group_b)
        if both:
            raise ValidationError(f"Teams in both groups: {', '.join(sorted(both))}")

        fixtures = generate_round_robin_fixtures(group_a, "A") + generate_round_robin_fixtures(group_b, "B")
        tournament = TournamentState(
            config=TournamentConfig(
                groups=TournamentGroups(group_a=group_a, group_b=group_b),
                is_setup_complete=True,
            ),
            fixtures={f.id: f for f in fixtures},
        )
        self.store.set(self.path, tournament.to_document())
        logger.info(
            "Tournament %s set up by %s: %d teams, %d fixtures",
            self.tournament_id, admin.username, len(group_a) + len(group_b), len(fixtures),
        )
        return tournament

    def fixtures(self, group: Optional[str] = None) -> list[Fixture]:
        """Fixtures in generation order, optionally for one group"""
        tournament = self.load()
        fixtures = list(tournament.fixtures.values())
        if group is not None:
            fixtures = [f for f in fixtures if f.group == group]
        return fixtures

    def start_fixture_match(
        self,
        admin: AdminRecord,
        fixture_id: str,
        squad_a: list[str],
        squad_b: list[str],
        overs_per_innings: Optional[int] = None,
        team_a_name: Optional[str] = None,
        team_b_name: Optional[str] = None,
        batting_first_id: Optional[str] = None,
    ) -> MatchRecord:
        """
        Create the fixture's match and mark the fixture LIVE in one write.
        Team names default to the team ids.
        """
        tournament = self.load()
        fixture = tournament.fixtures.get(fixture_id)
        if fixture is None:
            raise ValidationError(f"Fixture {fixture_id} not found")
        if fixture.status != FixtureStatus.SCHEDULED:
            raise ValidationError(f"Fixture {fixture_id} is {fixture.status.value}")

        team_a = team_a_name or fixture.team_a_id
        team_b = team_b_name or fixture.team_b_id
        batting_first = None
        if batting_first_id is not None:
            if not fixture.involves(batting_first_id):
                raise ValidationError(f"{batting_first_id} is not playing in {fixture_id}")
            batting_first = team_a if batting_first_id == fixture.team_a_id else team_b

        match = build_match(
            admin,
            team_a,
            team_b,
            squad_a,
            squad_b,
            overs_per_innings=overs_per_innings,
            batting_first=batting_first,
            match_id=f"match_{fixture_id}_{now_ms()}",
            team_a_id=fixture.team_a_id,
            team_b_id=fixture.team_b_id,
            tournament_id=self.tournament_id,
            fixture_id=fixture_id,
        )

        fixture_path = f"{self.path}/fixtures/{fixture_id}"
        self.store.update("", {
            f"matches/{match.match_id}": match.to_document(),
            f"{fixture_path}/status": FixtureStatus.LIVE.value,
            f"{fixture_path}/matchId": match.match_id,
        })
        logger.info("Fixture %s started as match %s by %s", fixture_id, match.match_id, admin.username)
        return match

    def standings(self, group: str) -> list[GroupStanding]:
        if group not in GROUPS:
            raise ValidationError(f"Unknown group: {group}")
        tournament = self.load()
        team_ids = tournament.config.groups.teams_in(group)
        fixtures = [f for f in tournament.fixtures.values() if f.group == group]

        matches = {}
        for fixture in fixtures:
            if fixture.status == FixtureStatus.COMPLETED and fixture.match_id:
                doc = self.store.get(f"matches/{fixture.match_id}")
                if doc is not None:
                    matches[fixture.match_id] = MatchRecord.model_validate(doc)

        return compute_standings(team_ids, fixtures, matches)
