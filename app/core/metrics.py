"""
Prometheus metrics for the cricket scoring service.

HTTP request metrics come from prometheus-fastapi-instrumentator (mounted at
/metrics in app.main). This module defines the scoring-specific series:

- Ball ledger activity (recorded, undone, rejected)
- Innings completions by reason
- Match results by kind
- Points table updates
"""
from prometheus_client import Counter

balls_recorded_total = Counter(
    "balls_recorded_total",
    "Total balls admitted to the ledger",
    ["legal"]
)

balls_undone_total = Counter(
    "balls_undone_total",
    "Total balls removed through undo"
)

ball_rejections_total = Counter(
    "ball_rejections_total",
    "Total ball events rejected before commit",
    ["error_code"]
)

innings_completed_total = Counter(
    "innings_completed_total",
    "Total innings flipped to completed",
    ["reason"]
)

matches_finished_total = Counter(
    "matches_finished_total",
    "Total matches reaching a terminal state",
    ["kind"]  # win, tie, no_result, abandoned
)

standings_updates_total = Counter(
    "standings_updates_total",
    "Total points table updates",
    ["mode"]  # fold, rebuild
)


def record_ball_recorded(is_legal: bool):
    """Record an admitted ball."""
    balls_recorded_total.labels(legal=str(bool(is_legal)).lower()).inc()


def record_ball_undone():
    """Record a ball removed via undo."""
    balls_undone_total.inc()


def record_ball_rejected(error_code: str = "unknown"):
    """Record a rejected ball event."""
    ball_rejections_total.labels(error_code=error_code).inc()


def record_innings_completed(reason: str):
    """Record an innings completion."""
    innings_completed_total.labels(reason=reason).inc()


def record_match_finished(kind: str):
    """Record a match reaching completed/abandoned."""
    matches_finished_total.labels(kind=kind).inc()


def record_standings_update(mode: str = "fold"):
    """Record a points table fold or full rebuild."""
    standings_updates_total.labels(mode=mode).inc()
