"""
Match scoring services.

This module contains the ball-by-ball scoring core and its collaborators:
- ball_validator: admission checks for a proposed delivery
- ledger: totals, overs and run rates computed from the ball ledger
- stat_aggregator: MatchPlayerStats upkeep (apply, revert, rebuild)
- completion_monitor: innings completion rules
- result_engine: auto result and manual override
- standings_engine: points table fold, NRR and ranking
- commentary: generated commentary lines
- scoring_service: the unit-of-work orchestration of all of the above
- scorecard_service: read-only innings, over and scorecard views
- match_setup_service: toss and playing XI
"""
from app.services.scoring.ball_validator import BallEvent, BallValidator, WicketEvent
from app.services.scoring.match_setup_service import MatchSetupService, XIEntry
from app.services.scoring.scorecard_service import ScorecardService
from app.services.scoring.scoring_service import ScoringService

__all__ = [
    "BallEvent",
    "BallValidator",
    "WicketEvent",
    "MatchSetupService",
    "XIEntry",
    "ScorecardService",
    "ScoringService",
]
