from crease.models.document import Document
from crease.models.admin import AdminRecord
from crease.models.match import (
    Ball, MatchState, MatchMeta, MatchData, MatchRecord, MatchLock, Squads,
    InningsData, BatsmanStats, BowlerStats, FallOfWicket, Partnership, Extras,
    MatchStatus, WicketKind, ResultType,
)
from crease.models.tournament import Fixture, FixtureStatus, TournamentState, TournamentConfig, TournamentGroups

__all__ = [
    "Document",
    "AdminRecord",
    "Ball",
    "MatchState",
    "MatchMeta",
    "MatchData",
    "MatchRecord",
    "MatchLock",
    "Squads",
    "InningsData",
    "BatsmanStats",
    "BowlerStats",
    "FallOfWicket",
    "Partnership",
    "Extras",
    "MatchStatus",
    "WicketKind",
    "ResultType",
    "Fixture",
    "FixtureStatus",
    "TournamentState",
    "TournamentConfig",
    "TournamentGroups",
]
