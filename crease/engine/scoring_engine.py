"""
Scoring Engine - runs a live match on top of the document store.

Validates what the scorer asks for, feeds deliveries to the ball processor,
closes innings and records results. Every method reads the current match,
computes the next version and writes it back; the last write wins.
"""
import logging
import time
import uuid
from dataclasses import replace
from typing import Optional

from pydantic.alias_generators import to_camel

from crease.config import settings
from crease.engine import innings_manager, stats_engine
from crease.engine.ball_processor import DeliveryInput, DeliveryResult, process_delivery
from crease.errors import LockError, MatchNotFound, ValidationError
from crease.models.admin import AdminRecord
from crease.models.match import (
    MatchLock, MatchMeta, MatchRecord, MatchStatus, ResultType, Squads,
)
from crease.models.tournament import FixtureStatus
from crease.store import DocumentStore
from crease.validators.cricket_rules import CricketRulesValidator

logger = logging.getLogger(__name__)

MIN_SQUAD_SIZE = 2
PLAYER_ROLES = ("striker", "non_striker", "bowler")


def now_ms() -> int:
    return int(time.time() * 1000)


def new_match_id() -> str:
    return f"match_{now_ms()}_{uuid.uuid4().hex[:9]}"


def _check(result: dict, action: str) -> None:
    if not result["valid"]:
        logger.warning("Rejected %s: %s", action, result["error"])
        raise ValidationError(result["error"])


def build_match(
    admin: AdminRecord,
    team_a: str,
    team_b: str,
    squad_a: list[str],
    squad_b: list[str],
    overs_per_innings: Optional[int] = None,
    batting_first: Optional[str] = None,
    batting_order: Optional[list[str]] = None,
    match_id: Optional[str] = None,
    team_a_id: Optional[str] = None,
    team_b_id: Optional[str] = None,
    tournament_id: Optional[str] = None,
    fixture_id: Optional[str] = None,
) -> MatchRecord:
    """
    Build a new LIVE match record with `admin` holding the lock.
    Nothing is written.
    """
    team_a, team_b = team_a.strip(), team_b.strip()
    if not team_a or not team_b:
        raise ValidationError("Both team names are required")
    if team_a == team_b:
        raise ValidationError("Teams must be different")

    overs = overs_per_innings or settings.DEFAULT_OVERS_PER_INNINGS
    if not 1 <= overs <= settings.MAX_OVERS_PER_INNINGS:
        raise ValidationError(f"Overs per innings must be between 1 and {settings.MAX_OVERS_PER_INNINGS}")

    squad_a = [p.strip() for p in squad_a if p.strip()]
    squad_b = [p.strip() for p in squad_b if p.strip()]
    for team, squad in ((team_a, squad_a), (team_b, squad_b)):
        if len(squad) < MIN_SQUAD_SIZE:
            raise ValidationError(f"{team} needs at least {MIN_SQUAD_SIZE} players")
        if len(set(squad)) != len(squad):
            raise ValidationError(f"{team} has duplicate player names")
    shared = set(squad_a) & set(squad_b)
    if shared:
        raise ValidationError(f"Players in both squads: {', '.join(sorted(shared))}")

    batting_team = batting_first or team_a
    if batting_team not in (team_a, team_b):
        raise ValidationError(f"{batting_team} is not playing in this match")
    bowling_team = team_b if batting_team == team_a else team_a

    order = list(batting_order or [])
    batting_squad = squad_a if batting_team == team_a else squad_b
    for player in order:
        if player not in batting_squad:
            raise ValidationError(f"{player} is not in the {batting_team} squad")

    created_at = now_ms()
    return MatchRecord(
        match_id=match_id or new_match_id(),
        created_by=admin.admin_id,
        lock=MatchLock(holder_id=admin.admin_id, holder_name=admin.username, acquired_at_epoch_ms=created_at),
        meta=MatchMeta(
            team_a=team_a,
            team_b=team_b,
            batting_team=batting_team,
            bowling_team=bowling_team,
            overs_per_innings=overs,
            innings=1,
            status=MatchStatus.LIVE,
            team_a_id=team_a_id,
            team_b_id=team_b_id,
        ),
        squads=Squads(team_a=squad_a, team_b=squad_b),
        state=innings_manager.initial_state(order),
        balls=[],
        last_updated_at=created_at,
        tournament_id=tournament_id,
        fixture_id=fixture_id,
    )


def create_match(store: DocumentStore, admin: AdminRecord, team_a: str, team_b: str,
                 squad_a: list[str], squad_b: list[str], **kwargs) -> MatchRecord:
    """Create and store a standalone match"""
    match = build_match(admin, team_a, team_b, squad_a, squad_b, **kwargs)
    store.set(f"matches/{match.match_id}", match.to_document())
    logger.info(
        "Match %s created by %s: %s vs %s, %d overs",
        match.match_id, admin.username, match.meta.team_a, match.meta.team_b, match.meta.overs_per_innings,
    )
    return match


def list_matches(store: DocumentStore) -> list[MatchRecord]:
    """All matches, most recently updated first"""
    docs = store.get("matches") or {}
    matches = [MatchRecord.model_validate(doc) for doc in docs.values()]
    return sorted(matches, key=lambda m: m.last_updated_at, reverse=True)


class ScoringEngine:
    """
    Scoring actions for one match. Mutating actions need the caller to hold
    the match lock.
    """

    def __init__(self, store: DocumentStore, match_id: str):
        self.store = store
        self.match_id = match_id
        self.match: Optional[MatchRecord] = None

    @property
    def path(self) -> str:
        return f"matches/{self.match_id}"

    def load(self) -> MatchRecord:
        doc = self.store.get(self.path)
        if doc is None:
            raise MatchNotFound(f"Match {self.match_id} not found")
        self.match = MatchRecord.model_validate(doc)
        return self.match

    def _save(self, match: MatchRecord, extra_writes: Optional[dict] = None) -> None:
        match.last_updated_at = now_ms()
        if extra_writes:
            self.store.update("", {self.path: match.to_document(), **extra_writes})
        else:
            self.store.set(self.path, match.to_document())
        self.match = match

    def _require_lock(self, match: MatchRecord, admin: AdminRecord) -> None:
        if not match.lock.is_held:
            raise LockError("Acquire the match lock before scoring")
        if match.lock.holder_id != admin.admin_id:
            logger.warning("%s tried to score %s locked by %s", admin.username, self.match_id, match.lock.holder_name)
            raise LockError(f"Match is locked by {match.lock.holder_name}")

    def _require_status(self, match: MatchRecord, *allowed: MatchStatus) -> None:
        if match.meta.status not in allowed:
            raise ValidationError(f"Match is {match.meta.status.value}")

    # Lock

    def acquire_lock(self, admin: AdminRecord) -> MatchLock:
        """Take scoring rights if nobody else holds them"""
        match = self.load()
        if match.lock.is_held and match.lock.holder_id != admin.admin_id:
            raise LockError(f"Match is locked by {match.lock.holder_name}")

        lock = MatchLock(holder_id=admin.admin_id, holder_name=admin.username, acquired_at_epoch_ms=now_ms())
        self.store.update(self.path, {"lock": lock.to_document()})
        match.lock = lock
        logger.info("%s acquired lock on %s", admin.username, self.match_id)
        return lock

    def release_lock(self, admin: AdminRecord) -> None:
        match = self.load()
        if not match.lock.is_held:
            return
        self._require_lock(match, admin)
        self.store.update(self.path, {"lock": MatchLock().to_document()})
        match.lock = MatchLock()
        logger.info("%s released lock on %s", admin.username, self.match_id)

    # Scoring

    def select_player(self, admin: AdminRecord, role: str, name: str) -> MatchRecord:
        """Put a batsman at one end or hand the ball to a bowler"""
        if role not in PLAYER_ROLES:
            raise ValidationError(f"Unknown role {role}")

        match = self.load()
        self._require_lock(match, admin)
        self._require_status(match, MatchStatus.LIVE)
        state = match.state

        _check(CricketRulesValidator.validate_crease_selection(state, role, name), "selection")

        if role == "bowler":
            if name not in match.bowling_squad:
                raise ValidationError(f"{name} is not in the {match.meta.bowling_team} squad")
            _check(CricketRulesValidator.validate_bowler_selection(
                state.current_bowler, state.last_over_bowler, name,
            ), "bowler selection")
        else:
            balls = stats_engine.innings_balls(match.balls, match.meta.innings)
            batsmen = stats_engine.all_batsman_stats(balls, match.batting_squad)
            _check(CricketRulesValidator.validate_batting_order(
                match.batting_squad, state.batting_order, batsmen, name,
            ), "batsman selection")

        field_name = f"current_{role}"
        setattr(state, field_name, name)
        match.last_updated_at = now_ms()
        self.store.update(self.path, {
            f"state/{to_camel(field_name)}": name,
            "lastUpdatedAt": match.last_updated_at,
        })
        self.match = match
        return match

    def submit_delivery(self, admin: AdminRecord, delivery: DeliveryInput) -> DeliveryResult:
        """
        Record one ball. Closes the innings when the ball ends it and, at the
        end of the second innings, records the result.
        """
        match = self.load()
        self._require_lock(match, admin)
        self._require_status(match, MatchStatus.LIVE)
        state, meta = match.state, match.meta

        _check(CricketRulesValidator.can_progress_match(state), "delivery")
        if delivery.runs < 0:
            raise ValidationError("Runs cannot be negative")

        if delivery.is_wicket:
            player_out = delivery.player_out or state.current_striker
            if player_out not in (state.current_striker, state.current_non_striker):
                raise ValidationError(f"{player_out} is not at the crease")
            delivery = replace(delivery, player_out=player_out)
            _check(CricketRulesValidator.validate_free_hit_dismissal(state.is_free_hit, delivery.wicket_kind), "wicket")

        result = process_delivery(
            state,
            meta,
            delivery,
            len(match.balls) + 1,
            state.current_striker,
            state.current_non_striker,
            state.current_bowler,
        )

        match.meta = result.new_meta
        match.state = result.new_state
        match.balls = [*match.balls, result.ball]

        extra_writes = None
        if result.changes.innings_completed:
            extra_writes = self._close_innings(match)

        self._save(match, extra_writes)
        return result

    def _close_innings(self, match: MatchRecord) -> Optional[dict]:
        """Snapshot the finished innings; after the second one, settle the match"""
        meta = match.meta
        snapshot = innings_manager.snapshot_innings(match, meta.innings, match.balls)
        logger.info(
            "Match %s: %s finished innings %d on %s",
            self.match_id, snapshot.batting_team, meta.innings, snapshot.score_display,
        )

        if meta.innings == 1:
            match.innings1 = snapshot
            return None

        match.innings2 = snapshot
        result = innings_manager.compute_match_result(match.innings1, snapshot)
        self._record_result(match, result)
        return self._fixture_writes(match)

    def _record_result(self, match: MatchRecord, result: innings_manager.MatchResult) -> None:
        meta = match.meta
        meta.status = MatchStatus.COMPLETED
        meta.winning_team = result.winning_team
        meta.winning_team_id = meta.team_id_for(result.winning_team)
        meta.match_result = result.result_text
        meta.match_result_type = result.result_type
        logger.info("Match %s: %s", self.match_id, result.result_text)

    def _fixture_writes(self, match: MatchRecord) -> Optional[dict]:
        """Store writes that mirror the match outcome onto its tournament fixture"""
        if not (match.tournament_id and match.fixture_id):
            return None
        path = f"tournaments/{match.tournament_id}/fixtures/{match.fixture_id}"
        if match.meta.status == MatchStatus.COMPLETED:
            return {
                f"{path}/status": FixtureStatus.COMPLETED.value,
                f"{path}/winnerId": match.meta.winning_team_id,
                f"{path}/resultStr": match.meta.match_result,
            }
        return {
            f"{path}/status": FixtureStatus.LIVE.value,
            f"{path}/winnerId": None,
            f"{path}/resultStr": None,
        }

    def undo_last_ball(self, admin: AdminRecord) -> MatchRecord:
        """
        Drop the last ball of the current innings and rebuild the state by
        replaying the rest. If that ball had ended the innings (or the match)
        the innings is reopened.
        """
        match = self.load()
        self._require_lock(match, admin)
        meta = match.meta

        if meta.match_result_type == ResultType.NO_RESULT:
            raise ValidationError("Match was abandoned")
        current = stats_engine.innings_balls(match.balls, meta.innings)
        if not current:
            raise ValidationError("No balls to undo in this innings")

        undone = current[-1]
        remaining = current[:-1]

        if meta.innings == 1:
            match.innings1 = None
        else:
            match.innings2 = None
        reopened = meta.status != MatchStatus.LIVE

        live_meta = meta.model_copy(update={
            "status": MatchStatus.LIVE,
            "winning_team": None,
            "winning_team_id": None,
            "match_result": None,
            "match_result_type": None,
        })
        state, new_meta = stats_engine.replay_innings(
            remaining, live_meta, innings_manager.initial_state(match.state.batting_order),
        )
        if not remaining:
            # Back to the opening selection
            state.current_striker = undone.striker
            state.current_non_striker = undone.non_striker
            state.current_bowler = undone.bowler

        match.meta = new_meta
        match.state = state
        match.balls = [b for b in match.balls if b.ball_number != undone.ball_number]

        extra_writes = self._fixture_writes(match) if reopened and meta.innings == 2 else None
        self._save(match, extra_writes)
        logger.info(
            "Match %s: undid ball %d %r, now %d/%d",
            self.match_id, undone.ball_number, undone, state.total_runs, state.total_wickets,
        )
        return match

    def start_second_innings(self, admin: AdminRecord, batting_order: Optional[list[str]] = None) -> MatchRecord:
        match = self.load()
        self._require_lock(match, admin)
        self._require_status(match, MatchStatus.INNINGS_BREAK)
        if match.innings1 is None:
            match.innings1 = innings_manager.snapshot_innings(match, 1, match.balls)

        meta, state = innings_manager.prepare_second_innings(match)
        chasing_squad = match.squads.team_a if meta.batting_team == meta.team_a else match.squads.team_b
        if batting_order is not None:
            for player in batting_order:
                if player not in chasing_squad:
                    raise ValidationError(f"{player} is not in the {meta.batting_team} squad")
            state.batting_order = list(batting_order)
        elif not set(state.batting_order) <= set(chasing_squad):
            # The first innings order names the fielding side
            state.batting_order = []

        match.meta = meta
        match.state = state
        self._save(match)
        logger.info("Match %s: %s need %d to win", self.match_id, meta.batting_team, meta.target_score)
        return match

    def abandon(self, admin: AdminRecord) -> MatchRecord:
        """End the match with no result"""
        match = self.load()
        self._require_lock(match, admin)
        self._require_status(match, MatchStatus.LIVE, MatchStatus.INNINGS_BREAK)

        meta = match.meta
        if meta.status == MatchStatus.LIVE:
            snapshot = innings_manager.snapshot_innings(match, meta.innings, match.balls)
            if meta.innings == 1:
                match.innings1 = snapshot
            else:
                match.innings2 = snapshot

        self._record_result(match, innings_manager.no_result())
        self._save(match, self._fixture_writes(match))
        return match
