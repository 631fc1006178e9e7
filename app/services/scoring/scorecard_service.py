"""
Scorecard Service - read-only views derived from the ball ledger.

Innings totals come from the ledger; per-player figures come from the
MatchPlayerStats cache. Nothing here writes.
"""
import logging
import math
from typing import Dict, List, Optional, Any

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models import Inning
from app.models.models import MATCH_INNING1, MATCH_INNING2
from app.repositories.cricket import (
    BallRepository,
    InningRepository,
    MatchPlayerStatsRepository,
    MatchRepository,
    PlayerRepository,
)
from app.services.scoring.commentary import commentary_text
from app.services.scoring.ledger import (
    group_by_over,
    maiden_overs,
    over_summary,
    run_rate,
    summarize,
)
from app.services.scoring.serializers import ball_to_dict, inning_to_dict, match_to_dict, stats_to_dict

logger = logging.getLogger(__name__)


def _ball_player_ids(balls) -> set:
    ids = set()
    for ball in balls:
        ids.update(
            pid for pid in (ball.bowler_id, ball.batsman_id, ball.non_striker_id, ball.player_out_id, ball.fielder_id)
            if pid
        )
    return ids


class ScorecardService:
    """Innings, over, partnership, commentary and scorecard views."""

    def __init__(self, db: Session):
        self.db = db
        self.matches = MatchRepository(db)
        self.innings = InningRepository(db)
        self.balls = BallRepository(db)
        self.players = PlayerRepository(db)
        self.stats = MatchPlayerStatsRepository(db)

    def _names_for(self, balls) -> Dict[str, str]:
        return self.players.names_by_id(_ball_player_ids(balls))

    # ========================================================================
    # Ball Views
    # ========================================================================

    def get_inning_balls(
        self,
        inning_id: str,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "over",
        sort_order: str = "asc"
    ) -> Dict[str, Any]:
        """
        One page of an innings' balls, grouped by over, with innings statistics.

        Statistics always cover the whole innings, not just the page.
        """
        inning = self.innings.get_or_raise(inning_id)
        page_balls, total = self.balls.find_page(
            inning.id, page=page, limit=limit, sort_by=sort_by, descending=sort_order == "desc"
        )
        names = self._names_for(page_balls)
        serialized = [ball_to_dict(ball, names) for ball in page_balls]

        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for ball in serialized:
            grouped.setdefault(str(ball["over"]), []).append(ball)

        summary = summarize(self.balls.find_by_inning(inning.id))
        total_pages = math.ceil(total / limit) if limit else 0
        return {
            "balls": serialized,
            "grouped_by_over": grouped,
            "statistics": summary.to_dict(),
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "total_balls": total,
                "has_next_page": (page - 1) * limit + len(page_balls) < total,
                "has_prev_page": page > 1,
            },
        }

    def get_current_over(self, inning_id: str) -> Dict[str, Any]:
        """The over containing the latest ball, with its running totals."""
        inning = self.innings.get_or_raise(inning_id)
        last = self.balls.find_latest(inning.id)
        if last is None:
            return {
                "current_over": 0,
                "current_ball": 0,
                "balls": [],
                "bowler": None,
                "summary": {"runs": 0, "wickets": 0, "extras": 0},
            }

        over_balls = self.balls.find_in_over(inning.id, last.over)
        names = self._names_for(over_balls)
        return {
            "current_over": last.over,
            "current_ball": last.ball_in_over,
            "balls": [ball_to_dict(ball, names) for ball in over_balls],
            "bowler": {"id": last.bowler_id, "name": names.get(last.bowler_id)},
            "summary": over_summary(over_balls),
        }

    def get_batting_partners(self, inning_id: str) -> Dict[str, Any]:
        """Current striker and non-striker, and the partnership since the last wicket."""
        inning = self.innings.get_or_raise(inning_id)
        last = self.balls.find_latest(inning.id)
        if last is None:
            return {
                "striker": None,
                "non_striker": None,
                "partnership": {"runs": 0, "balls": 0, "current_run_rate": 0.0},
            }

        last_wicket = self.balls.find_last_wicket(inning.id)
        if last_wicket is not None:
            partnership = self.balls.find_after_position(inning.id, last_wicket.over, last_wicket.ball_in_over)
        else:
            partnership = self.balls.find_by_inning(inning.id)

        runs = sum(ball.runs_total for ball in partnership)
        legal = sum(1 for ball in partnership if ball.is_legal)
        names = self.players.names_by_id([last.batsman_id, last.non_striker_id])
        return {
            "striker": {"id": last.batsman_id, "name": names.get(last.batsman_id)},
            "non_striker": {"id": last.non_striker_id, "name": names.get(last.non_striker_id)},
            "partnership": {
                "runs": runs,
                "balls": legal,
                "current_run_rate": run_rate(runs, legal),
            },
        }

    def get_ball_commentary(
        self,
        inning_id: str,
        from_over: int = 0,
        to_over: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Commentary lines for an over range, generated where none was recorded."""
        inning = self.innings.get_or_raise(inning_id)
        balls = self.balls.find_over_range(inning.id, from_over, to_over)
        names = self._names_for(balls)

        lines = []
        for ball in balls:
            lines.append({
                "over": ball.over,
                "ball": ball.ball_in_over,
                "bowler": names.get(ball.bowler_id),
                "batsman": names.get(ball.batsman_id),
                "runs": ball.runs_total,
                "extra": ball.extra_type,
                "wicket": {
                    "type": ball.wicket_type,
                    "player_out": names.get(ball.player_out_id),
                    "fielder": names.get(ball.fielder_id),
                } if ball.is_wicket else None,
                "text": commentary_text(ball, names),
                "timestamp": ball.created_at.isoformat() if ball.created_at else None,
            })
        return lines

    # ========================================================================
    # Innings Views
    # ========================================================================

    def _inning_view(self, inning: Inning, with_balls: bool = False) -> Dict[str, Any]:
        balls = self.balls.find_by_inning(inning.id)
        summary = summarize(balls)
        data = inning_to_dict(inning, summary)
        data["summary"] = summary.to_dict(with_boundaries=True)
        if with_balls:
            names = self._names_for(balls)
            data["balls"] = [ball_to_dict(ball, names) for ball in balls]
        return data

    def get_match_innings(self, match_id: str) -> List[Dict[str, Any]]:
        """Both innings of a match with their totals."""
        match = self.matches.get_or_raise(match_id)
        return [self._inning_view(inning) for inning in self.innings.find_by_match(match.id)]

    def get_current_inning(self, match_id: str) -> Dict[str, Any]:
        """The innings in progress according to the match status."""
        match = self.matches.get_or_raise(match_id)
        number = {MATCH_INNING1: 1, MATCH_INNING2: 2}.get(match.status)
        inning = self.innings.find_by_match_and_number(match.id, number) if number else None
        if inning is None:
            raise NotFoundError("No active inning found", details={"match_id": match_id})
        return self._inning_view(inning)

    def get_inning_details(self, inning_id: str, with_balls: bool = False) -> Dict[str, Any]:
        """Innings totals with boundaries, optionally with the full ball list."""
        inning = self.innings.get_or_raise(inning_id)
        return self._inning_view(inning, with_balls=with_balls)

    # ========================================================================
    # Scorecard
    # ========================================================================

    def get_match_scorecard(self, match_id: str) -> Dict[str, Any]:
        """
        Full scorecard: innings totals plus per-player batting, bowling and
        fielding figures. Maiden overs are counted from the ledger per innings.
        """
        match = self.matches.get_or_raise(match_id)
        innings = self.innings.find_by_match(match.id)

        maidens: Dict[str, int] = {}
        for inning in innings:
            for bowler_id, count in maiden_overs(self.balls.find_by_inning(inning.id)).items():
                maidens[bowler_id] = maidens.get(bowler_id, 0) + count

        rows = self.stats.find_by_match(match.id)
        names = self.players.names_by_id(row.player_id for row in rows)
        players_by_team: Dict[str, List[Dict[str, Any]]] = {team_id: [] for team_id in match.team_ids()}
        for row in rows:
            entry = stats_to_dict(row, names.get(row.player_id))
            entry["bowling"]["maiden_overs"] = maidens.get(row.player_id, 0)
            players_by_team.setdefault(row.team_id, []).append(entry)

        return {
            "match": match_to_dict(match),
            "innings": [self._inning_view(inning) for inning in innings],
            "players": players_by_team,
        }
