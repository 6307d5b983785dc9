from crease.engine.scoring_engine import ScoringEngine
from crease.engine.tournament_engine import TournamentEngine

__all__ = ["ScoringEngine", "TournamentEngine"]
