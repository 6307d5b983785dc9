from typing import Optional

from crease.models.match import MAX_WICKETS, Ball, BatsmanStats, MatchMeta, MatchState, WicketKind

CREASE_ROLES = ("striker", "non_striker", "bowler")


def _ok() -> dict:
    return {"valid": True, "error": None}


def _reject(error: str) -> dict:
    return {"valid": False, "error": error}


class CricketRulesValidator:
    @staticmethod
    def validate_bowler_selection(
        current_bowler: Optional[str],
        last_over_bowler: Optional[str],
        proposed_bowler: str,
    ) -> dict:
        """A bowler cannot bowl two overs in a row"""
        if not last_over_bowler:
            return _ok()
        if proposed_bowler == last_over_bowler:
            return _reject(f"{proposed_bowler} bowled the last over and cannot bowl consecutive overs.")
        return _ok()

    @staticmethod
    def validate_batting_order(
        squad: list[str],
        batting_order: list[str],
        batsman_stats: dict[str, BatsmanStats],
        proposed_batsman: str,
    ) -> dict:
        """
        Rules:
        1. The batsman must be in the batting side's squad
        2. A dismissed batsman cannot come back
        """
        if proposed_batsman not in squad:
            return _reject(f"{proposed_batsman} is not in the squad.")
        stats = batsman_stats.get(proposed_batsman)
        if stats is not None and stats.is_out:
            return _reject(f"{proposed_batsman} is already out and cannot bat again.")
        return _ok()

    @staticmethod
    def validate_crease_selection(state: MatchState, role: str, proposed: str) -> dict:
        """The same player cannot fill two of striker, non-striker and bowler"""
        if role not in CREASE_ROLES:
            return _reject(f"Unknown role {role}")
        for other in CREASE_ROLES:
            if other == role:
                continue
            if getattr(state, f"current_{other}") == proposed:
                return _reject(f"{proposed} is already selected as {other.replace('_', '-')}.")
        return _ok()

    @staticmethod
    def can_progress_match(state: MatchState) -> dict:
        if not state.current_striker:
            return _reject("Please select a striker")
        if not state.current_non_striker:
            return _reject("Please select a non-striker")
        if not state.current_bowler:
            return _reject("Please select a bowler")
        if state.current_striker == state.current_non_striker:
            return _reject("Striker and non-striker cannot be the same player")
        return _ok()

    @staticmethod
    def validate_free_hit_dismissal(is_free_hit: bool, wicket_kind: Optional[WicketKind]) -> dict:
        """Only a run out can dismiss a batsman on a free hit"""
        if is_free_hit and wicket_kind != WicketKind.RUN_OUT:
            kind = wicket_kind.value if wicket_kind else "bowled"
            return _reject(f"Cannot be out {kind} on a free hit.")
        return _ok()

    @staticmethod
    def get_next_batsman(
        batting_order: list[str],
        next_batsman_index: int,
        batsman_stats: dict[str, BatsmanStats],
        at_crease: tuple = (),
        squad: Optional[list[str]] = None,
    ) -> Optional[str]:
        """
        First player from next_batsman_index on who is neither out nor batting.
        When `squad` is given, players outside it are never suggested.
        """
        for player in batting_order[next_batsman_index:]:
            if player in at_crease or (squad is not None and player not in squad):
                continue
            stats = batsman_stats.get(player)
            if stats is None or not stats.is_out:
                return player
        return None

    @staticmethod
    def is_innings_complete(state: MatchState, meta: MatchMeta) -> bool:
        return state.overs_bowled >= meta.overs_per_innings or state.total_wickets >= MAX_WICKETS

    @staticmethod
    def is_target_chased(current_runs: int, target_score: Optional[int]) -> bool:
        if not target_score:
            return False
        return current_runs >= target_score

    @staticmethod
    def get_last_over_bowler(balls: list[Ball], current_over_number: int) -> Optional[str]:
        if current_over_number == 0:
            return None
        for ball in balls:
            if ball.over_number == current_over_number - 1:
                return ball.bowler
        return None
