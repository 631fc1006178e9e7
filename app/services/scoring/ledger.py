"""
Ball ledger arithmetic.

Pure functions over a list of balls. Totals reported anywhere in the API are
computed here from the ledger, never read back from the stats cache.
"""
from dataclasses import dataclass
from typing import Iterable, List, Dict, Any

BALLS_PER_OVER = 6
ALL_OUT_WICKETS = 10


def overs_notation(legal_balls: int) -> str:
    """Render a legal ball count as cricket overs, e.g. 21 -> "3.3"."""
    return f"{legal_balls // BALLS_PER_OVER}.{legal_balls % BALLS_PER_OVER}"


def run_rate(runs: int, legal_balls: int) -> float:
    """Runs per over over the legal balls faced; 0 when no legal ball was bowled."""
    if legal_balls <= 0:
        return 0.0
    return round(runs / (legal_balls / BALLS_PER_OVER), 2)


def raw_run_rate(runs: int, legal_balls: int) -> float:
    """Unrounded runs per over, used for NRR accumulation."""
    if legal_balls <= 0:
        return 0.0
    return runs / (legal_balls / BALLS_PER_OVER)


@dataclass
class InningsSummary:
    """Totals of one innings derived from its ledger."""
    runs: int = 0
    wickets: int = 0
    legal_balls: int = 0
    extras: int = 0
    fours: int = 0
    sixes: int = 0
    dot_balls: int = 0
    deliveries: int = 0

    @property
    def overs(self) -> str:
        return overs_notation(self.legal_balls)

    @property
    def completed_overs(self) -> int:
        return self.legal_balls // BALLS_PER_OVER

    @property
    def run_rate(self) -> float:
        return run_rate(self.runs, self.legal_balls)

    def to_dict(self, with_boundaries: bool = False) -> Dict[str, Any]:
        data = {
            "total_runs": self.runs,
            "total_wickets": self.wickets,
            "legal_balls": self.legal_balls,
            "overs": self.overs,
            "run_rate": self.run_rate,
            "extras": self.extras,
        }
        if with_boundaries:
            data.update(fours=self.fours, sixes=self.sixes, dot_balls=self.dot_balls)
        return data


def summarize(balls: Iterable) -> InningsSummary:
    """Fold a sequence of balls into an InningsSummary."""
    summary = InningsSummary()
    for ball in balls:
        summary.deliveries += 1
        summary.runs += ball.runs_total
        summary.extras += ball.runs_extras
        if ball.is_wicket:
            summary.wickets += 1
        if ball.is_legal:
            summary.legal_balls += 1
            if ball.runs_total == 0:
                summary.dot_balls += 1
        if ball.runs_batsman == 4:
            summary.fours += 1
        elif ball.runs_batsman == 6:
            summary.sixes += 1
    return summary


def over_summary(balls: Iterable) -> Dict[str, int]:
    """Runs, wickets and extras of a group of deliveries."""
    totals = {"runs": 0, "wickets": 0, "extras": 0}
    for ball in balls:
        totals["runs"] += ball.runs_total
        totals["wickets"] += 1 if ball.is_wicket else 0
        totals["extras"] += ball.runs_extras
    return totals


def group_by_over(balls: Iterable) -> Dict[int, List]:
    """Group balls by over number, keeping their order within each over."""
    grouped: Dict[int, List] = {}
    for ball in balls:
        grouped.setdefault(ball.over, []).append(ball)
    return grouped


def maiden_overs(balls: Iterable) -> Dict[str, int]:
    """
    Count true maiden overs per bowler.

    An over is a maiden when it holds six legal deliveries, all by one bowler,
    and concedes no runs at all (extras included).
    """
    maidens: Dict[str, int] = {}
    for over_balls in group_by_over(balls).values():
        legal = [b for b in over_balls if b.is_legal]
        bowlers = {b.bowler_id for b in over_balls}
        if len(legal) == BALLS_PER_OVER and len(bowlers) == 1 and sum(b.runs_total for b in over_balls) == 0:
            bowler_id = bowlers.pop()
            maidens[bowler_id] = maidens.get(bowler_id, 0) + 1
    return maidens

