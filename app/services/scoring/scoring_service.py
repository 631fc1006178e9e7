"""
Scoring Service - the match scoring state machine.

Every write here is one unit of work (see app.core.database.unit_of_work):

    record_ball:    validate -> append -> credit stats -> completion check
                    -> (innings 2 closed) result -> standings
    undo_last_ball: remove latest ball -> negate stats -> completion check
                    -> (match reopened) clear result -> rebuild standings

Either every effect of an operation is committed or none is.
"""
import logging
from typing import Dict, Optional, Tuple, Any

from sqlalchemy.orm import Session

from app.core import metrics
from app.core.config import resolve_overs_per_innings
from app.core.database import unit_of_work
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PreconditionError,
    ScoringError,
    ValidationError,
)
from app.models import Inning, Match
from app.models.models import (
    COMPLETION_MANUAL,
    MATCH_ABANDONED,
    MATCH_COMPLETED,
    MATCH_INNING1,
    MATCH_INNING2,
    MATCH_TOSS,
    RESULT_AUTO,
    RESULT_OVERRIDE,
)
from app.repositories.cricket import (
    BallRepository,
    InningRepository,
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    TournamentRepository,
)
from app.services.scoring import completion_monitor, result_engine
from app.services.scoring.ball_validator import BallEvent, BallValidator
from app.services.scoring.completion_monitor import CompletionChange
from app.services.scoring.ledger import InningsSummary, summarize
from app.services.scoring.serializers import (
    ball_to_dict,
    inning_to_dict,
    match_to_dict,
    result_to_dict,
    standing_to_dict,
    stats_to_dict,
)
from app.services.scoring.stat_aggregator import StatAggregator
from app.services.scoring.standings_engine import StandingsEngine

logger = logging.getLogger(__name__)

DEFAULT_ABANDON_REASON = "Match abandoned due to weather/other conditions"


class ScoringService:
    """Ball-by-ball scoring, innings and match transitions, and standings upkeep."""

    def __init__(self, db: Session):
        self.db = db
        self.matches = MatchRepository(db)
        self.innings = InningRepository(db)
        self.balls = BallRepository(db)
        self.players = PlayerRepository(db)
        self.teams = TeamRepository(db)
        self.tournaments = TournamentRepository(db)
        self.validator = BallValidator(db)
        self.aggregator = StatAggregator(db)
        self.standings = StandingsEngine(db)

    # ========================================================================
    # Helpers
    # ========================================================================

    def _overs_per_innings(self, match: Match) -> int:
        tournament = self.tournaments.find_by_id(match.tournament_id)
        return resolve_overs_per_innings(tournament.overs_per_innings if tournament else None)

    def _team_names(self, match: Match) -> Dict[str, str]:
        return {team.id: team.name for team in (match.team1, match.team2) if team is not None}

    def _summary(self, inning_id: str) -> InningsSummary:
        return summarize(self.balls.find_by_inning(inning_id))

    def _ball_names(self, *player_ids: Optional[str]) -> Dict[str, str]:
        return self.players.names_by_id(pid for pid in player_ids if pid)

    def _validate_man_of_the_match(self, match: Match, player_id: Optional[str]):
        if not player_id:
            return
        team_id = self.players.find_team_id(player_id)
        if team_id is None:
            raise NotFoundError("Player not found", details={"player_id": player_id})
        if team_id not in match.team_ids():
            raise ValidationError("Man of the match must be from one of the match teams")

    def _settle_innings(self, inning: Inning, match: Match) -> Tuple[CompletionChange, InningsSummary]:
        """Run the completion monitor and its result/standings follow-ups."""
        summary = self._summary(inning.id)
        change = completion_monitor.evaluate(inning, summary, self._overs_per_innings(match))

        if change.just_completed:
            metrics.record_innings_completed(change.reason)
            if inning.inning_number == 2 and match.status == MATCH_INNING2:
                self._finish_with_auto_result(match, inning, summary)
        elif change.reverted and inning.inning_number == 2 and match.status == MATCH_COMPLETED:
            self._reopen_match(match)

        self.db.flush()
        return change, summary

    def _finish_with_auto_result(self, match: Match, inning2: Inning, second: InningsSummary):
        inning1 = self.innings.find_by_match_and_number(match.id, 1)
        first = self._summary(inning1.id)
        result = result_engine.compute_auto_result(first, inning2, second, self._team_names(match))
        result_engine.apply_result(match, result, RESULT_AUTO)
        self.db.flush()
        self.standings.fold_match(match)
        metrics.record_match_finished(result.kind)

    def _reopen_match(self, match: Match):
        logger.info(f"Match {match.id} reopened after undo of the deciding ball")
        result_engine.clear_result(match)
        match.status = MATCH_INNING2
        applied = match.standings_applied
        match.standings_applied = False
        self.db.flush()
        if applied:
            self.standings.rebuild(match.tournament_id)

    # ========================================================================
    # Ball Ledger
    # ========================================================================

    def record_ball(self, inning_id: str, event: BallEvent) -> Dict[str, Any]:
        """
        Admit one ball to an innings.

        Returns:
            The created ball, the touched player stats and the innings state

        Raises:
            ValidationError, NotFoundError, ConflictError, PreconditionError
        """
        try:
            with unit_of_work(self.db, "record_ball"):
                inning = self.innings.get_or_raise(inning_id)
                match = self.matches.get_or_raise(inning.match_id)
                self.validator.validate(event, inning, match)

                wicket = event.wicket
                ball = self.balls.create(
                    match_id=match.id,
                    inning_id=inning.id,
                    over=event.over,
                    ball_in_over=event.ball_in_over,
                    is_legal=event.is_legal,
                    bowler_id=event.bowler,
                    batsman_id=event.batsman,
                    non_striker_id=event.non_striker,
                    runs_batsman=event.runs_batsman,
                    runs_extras=event.runs_extras,
                    runs_total=event.runs_total,
                    extra_type=event.extra_type,
                    is_wicket=event.is_wicket,
                    wicket_type=wicket.type if wicket else None,
                    player_out_id=wicket.player_out if wicket else None,
                    fielder_id=wicket.fielder if wicket else None,
                    commentary=event.commentary,
                )
                rows = self.aggregator.apply_ball(ball, inning)
                change, summary = self._settle_innings(inning, match)

                names = self._ball_names(
                    ball.bowler_id, ball.batsman_id, ball.non_striker_id, ball.player_out_id, ball.fielder_id
                )
                response = {
                    "ball": ball_to_dict(ball, names),
                    "stats": [stats_to_dict(row, names.get(row.player_id)) for row in rows],
                    "inning": inning_to_dict(inning, summary),
                    "match_status": match.status,
                    "result": result_to_dict(match),
                }
        except ScoringError as e:
            metrics.record_ball_rejected(e.code)
            raise

        metrics.record_ball_recorded(event.is_legal)
        logger.info(
            f"Recorded ball {event.position} in inning {inning_id}: "
            f"{summary.runs}/{summary.wickets} ({summary.overs})",
            extra={"inning_id": inning_id, "completed": change.completed},
        )
        return response

    def undo_last_ball(self, inning_id: str) -> Dict[str, Any]:
        """
        Remove the most recently recorded ball of an innings.

        Returns:
            The removed ball and the resulting innings/match state

        Raises:
            NotFoundError: Unknown innings
            PreconditionError: Nothing to undo, or the match no longer allows it
        """
        with unit_of_work(self.db, "undo_last_ball"):
            inning = self.innings.get_or_raise(inning_id)
            match = self.matches.get_or_raise(inning.match_id)

            if match.status == MATCH_ABANDONED:
                raise PreconditionError("Cannot undo. Match is abandoned")
            if match.result_source == RESULT_OVERRIDE:
                raise PreconditionError("Cannot undo. Match result was set manually")
            if inning.is_completed and inning.completion_reason == COMPLETION_MANUAL:
                raise PreconditionError("Cannot undo. Inning was completed manually")
            if inning.inning_number == 1 and self.innings.find_by_match_and_number(match.id, 2):
                raise PreconditionError("Cannot undo a first-inning ball after the second inning has started")

            ball = self.balls.find_latest(inning.id)
            if ball is None:
                raise PreconditionError("No balls recorded in this inning")

            names = self._ball_names(
                ball.bowler_id, ball.batsman_id, ball.non_striker_id, ball.player_out_id, ball.fielder_id
            )
            removed = ball_to_dict(ball, names)

            self.balls.delete_instance(ball)
            self.aggregator.revert_ball(ball, inning)
            change, summary = self._settle_innings(inning, match)

            response = {
                "removed_ball": removed,
                "inning": inning_to_dict(inning, summary),
                "inning_reopened": change.reverted,
                "match_status": match.status,
            }

        metrics.record_ball_undone()
        logger.info(
            f"Undid ball {removed['position']} in inning {inning_id}",
            extra={"inning_id": inning_id, "reopened": change.reverted},
        )
        return response

    # ========================================================================
    # Innings Transitions
    # ========================================================================

    def start_inning(
        self,
        match_id: str,
        inning_number: int,
        batting_team_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Open innings 1 or 2 of a match.

        Innings 1 batting side follows the toss, which must precede both playing
        XIs. Innings 2 inverts innings 1 and sets the target to the first-innings
        total plus one. A supplied ``batting_team_id`` must agree with the side
        resolved this way.
        """
        if inning_number not in (1, 2):
            raise ValidationError("inningNumber must be 1 or 2")

        with unit_of_work(self.db, "start_inning"):
            match = self.matches.get_or_raise(match_id)

            if match.status not in (MATCH_TOSS, MATCH_INNING1):
                raise PreconditionError(f"Cannot start inning. Match status is '{match.status}'")

            playing_xi = match.playing_xi or {}
            if not playing_xi.get("team1") or not playing_xi.get("team2"):
                raise PreconditionError("Playing XI must be set for both teams before starting an inning")

            if batting_team_id and batting_team_id not in match.team_ids():
                raise ValidationError("Batting team must be one of the match teams")

            target = None
            if inning_number == 1:
                if match.toss_decision == "bat":
                    batting = match.toss_winner_id
                else:
                    batting = match.opponent_of(match.toss_winner_id)
            else:
                first = self.innings.find_by_match_and_number(match.id, 1)
                if first is None or not first.is_completed:
                    raise PreconditionError("First inning must be completed before starting second inning")
                batting = first.bowling_team_id
                target = self._summary(first.id).runs + 1

            if batting_team_id and batting_team_id != batting:
                raise ValidationError(
                    f"Team {batting_team_id} does not bat in inning {inning_number}",
                    details={"expected_batting_team_id": batting},
                )

            if self.innings.find_by_match_and_number(match.id, inning_number):
                raise ConflictError(f"Inning {inning_number} already started")

            inning = self.innings.create(
                match_id=match.id,
                inning_number=inning_number,
                batting_team_id=batting,
                bowling_team_id=match.opponent_of(batting),
                target=target,
                is_completed=False,
            )
            match.status = MATCH_INNING1 if inning_number == 1 else MATCH_INNING2
            self.db.flush()
            response = inning_to_dict(inning, InningsSummary())

        logger.info(f"Started inning {inning_number} of match {match_id} (target={target})")
        return response

    def complete_inning(self, inning_id: str) -> Dict[str, Any]:
        """
        Close an innings by hand.

        Closing innings 2 computes the result from the totals at that point.
        Manually closed innings are never reopened by undo.
        """
        with unit_of_work(self.db, "complete_inning"):
            inning = self.innings.get_or_raise(inning_id)
            if inning.is_completed:
                raise ConflictError("Inning is already completed")

            match = self.matches.get_or_raise(inning.match_id)
            expected = MATCH_INNING1 if inning.inning_number == 1 else MATCH_INNING2
            if match.status != expected:
                raise PreconditionError(f"Cannot complete inning. Match status is '{match.status}'")

            summary = self._summary(inning.id)
            inning.is_completed = True
            inning.completion_reason = COMPLETION_MANUAL
            metrics.record_innings_completed(COMPLETION_MANUAL)
            if inning.inning_number == 2:
                self._finish_with_auto_result(match, inning, summary)
            self.db.flush()

            response = {
                "inning": inning_to_dict(inning, summary),
                "match_status": match.status,
                "result": result_to_dict(match),
            }

        logger.info(f"Inning {inning.inning_number} of match {inning.match_id} completed manually")
        return response

    # ========================================================================
    # Match Transitions
    # ========================================================================

    def complete_match(
        self,
        match_id: str,
        winner: Optional[str] = None,
        margin: Optional[str] = None,
        summary: Optional[str] = None,
        man_of_the_match: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Complete a match, either from its innings or with an explicit result.

        Without ``winner``/``summary`` both innings must be complete. With them
        the result is an override and may be set while innings are still open.
        """
        with unit_of_work(self.db, "complete_match"):
            match = self.matches.get_or_raise(match_id)
            if match.status in (MATCH_COMPLETED, MATCH_ABANDONED):
                raise ConflictError(f"Match is already {match.status}")

            names = self._team_names(match)
            if winner or summary:
                if match.status not in (MATCH_INNING1, MATCH_INNING2):
                    raise PreconditionError(f"Cannot complete match. Match status is '{match.status}'")
                result = result_engine.build_override(match, names, winner, margin, summary)
                source = RESULT_OVERRIDE
            else:
                if not self.innings.both_completed(match.id):
                    raise PreconditionError("Both innings must be completed before finishing the match")
                inning2 = self.innings.find_by_match_and_number(match.id, 2)
                inning1 = self.innings.find_by_match_and_number(match.id, 1)
                result = result_engine.compute_auto_result(
                    self._summary(inning1.id), inning2, self._summary(inning2.id), names
                )
                source = RESULT_AUTO

            self._validate_man_of_the_match(match, man_of_the_match)
            if man_of_the_match:
                match.man_of_the_match_id = man_of_the_match

            result_engine.apply_result(match, result, source)
            self.db.flush()
            self.standings.fold_match(match)
            response = match_to_dict(match)

        metrics.record_match_finished(result.kind)
        return response

    def abandon_match(self, match_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        """Abandon a match; both sides share the points."""
        with unit_of_work(self.db, "abandon_match"):
            match = self.matches.get_or_raise(match_id)
            if match.status == MATCH_COMPLETED:
                raise PreconditionError("Cannot abandon a completed match")
            if match.status == MATCH_ABANDONED:
                raise ConflictError("Match is already abandoned")

            match.status = MATCH_ABANDONED
            match.result_winner_id = None
            match.result_margin = None
            match.result_source = None
            match.result_summary = reason or DEFAULT_ABANDON_REASON
            self.db.flush()
            self.standings.fold_match(match)
            response = match_to_dict(match)

        metrics.record_match_finished("abandoned")
        logger.info(f"Match {match_id} abandoned: {response['result']['summary']}")
        return response

    def update_match_result(
        self,
        match_id: str,
        winner: Optional[str] = None,
        margin: Optional[str] = None,
        summary: Optional[str] = None,
        man_of_the_match: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Correct the result of a completed match.

        A changed winner triggers a full rebuild of the tournament points table.
        """
        with unit_of_work(self.db, "update_match_result"):
            match = self.matches.get_or_raise(match_id)
            if match.status != MATCH_COMPLETED:
                raise PreconditionError("Match must be completed before updating result")

            previous_winner = match.result_winner_id
            names = self._team_names(match)

            if winner:
                result = result_engine.build_override(
                    match,
                    names,
                    winner,
                    margin if margin is not None else (match.result_margin if winner == previous_winner else None),
                    summary or (match.result_summary if winner == previous_winner else None),
                )
                result_engine.apply_result(match, result, RESULT_OVERRIDE)
            elif summary or margin:
                if summary:
                    match.result_summary = summary
                if margin:
                    match.result_margin = margin
                match.result_source = RESULT_OVERRIDE

            self._validate_man_of_the_match(match, man_of_the_match)
            if man_of_the_match:
                match.man_of_the_match_id = man_of_the_match
            self.db.flush()

            if winner and winner != previous_winner:
                if match.standings_applied:
                    logger.warning(
                        f"Match {match_id} result changed after standings were applied, "
                        f"rebuilding points table for tournament {match.tournament_id}"
                    )
                self.standings.rebuild(match.tournament_id)

            response = match_to_dict(match)

        logger.info(f"Updated result of match {match_id}")
        return response

    def get_match_result(self, match_id: str) -> Dict[str, Any]:
        """Return a match's status, result and man of the match."""
        match = self.matches.get_or_raise(match_id)
        motm = self.players.find_by_id(match.man_of_the_match_id) if match.man_of_the_match_id else None
        return {
            "match_id": match.id,
            "status": match.status,
            "result": result_to_dict(match),
            "man_of_the_match": {"id": motm.id, "name": motm.name} if motm else None,
        }

    # ========================================================================
    # Cache and Standings Maintenance
    # ========================================================================

    def rebuild_match_stats(self, match_id: str) -> Dict[str, Any]:
        """Recompute a match's player stats from the ball ledger."""
        with unit_of_work(self.db, "rebuild_match_stats"):
            self.matches.get_or_raise(match_id)
            rows = self.aggregator.rebuild_match_stats(match_id)
            names = self.players.names_by_id(row.player_id for row in rows)
            response = {
                "match_id": match_id,
                "stats": [stats_to_dict(row, names.get(row.player_id)) for row in rows],
            }
        return response

    def rebuild_points_table(self, tournament_id: str) -> Dict[str, Any]:
        """Recompute a tournament's points table from its finished matches."""
        with unit_of_work(self.db, "rebuild_points_table"):
            self.tournaments.get_or_raise(tournament_id)
            self.standings.rebuild(tournament_id)
            response = self._points_table_view(tournament_id)
        return response

    def get_points_table(self, tournament_id: str) -> Dict[str, Any]:
        """Return the ranked standings of a tournament, seeding the table if needed."""
        with unit_of_work(self.db, "get_points_table"):
            self.tournaments.get_or_raise(tournament_id)
            response = self._points_table_view(tournament_id)
        return response

    def _points_table_view(self, tournament_id: str) -> Dict[str, Any]:
        tournament = self.tournaments.get_or_raise(tournament_id)
        table, rows = self.standings.standings(tournament_id)
        teams = {team.id: team for team in self.teams.find_by_tournament(tournament_id)}
        return {
            "tournament": {
                "id": tournament.id,
                "name": tournament.name,
                "season": tournament.season,
            },
            "standings": [standing_to_dict(row, teams.get(row.team_id)) for row in rows],
            "updated_at": table.updated_at.isoformat() if table.updated_at else None,
        }
