"""
Ball Validator.

Checks a proposed delivery against its innings, match and squads before it is
admitted to the ledger. Nothing here writes; the scoring service runs the
validator inside the same unit of work that appends the ball, so the position
check and the insert see one consistent snapshot.

Check order (first failure wins):
1. Field shape (positions, runs, extra/wicket types)
2. Innings open and match in the matching live state
3. Participants exist and belong to the right sides
4. Position free and sequencing respected
5. Wicket record consistent with the delivery

Over numbers have no upper bound. Wides and no-balls occupy ball-in-over slots,
so an innings can run into over numbers past the tournament limit; it is the
completion monitor closing the innings on the last legal ball that ends play.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, PreconditionError, ValidationError
from app.models import Inning, Match
from app.models.models import (
    EXTRA_TYPES,
    FIELDER_WICKET_TYPES,
    MATCH_INNING1,
    MATCH_INNING2,
    WICKET_TYPES,
)
from app.repositories.cricket import BallRepository, PlayerRepository

logger = logging.getLogger(__name__)

ILLEGAL_EXTRA_TYPES = ("wide", "no-ball")


@dataclass
class WicketEvent:
    """Dismissal part of a ball event."""
    type: Optional[str] = None
    player_out: Optional[str] = None
    fielder: Optional[str] = None


@dataclass
class BallEvent:
    """A proposed delivery, as submitted by the scorer."""
    over: int
    ball_in_over: int
    bowler: str
    batsman: str
    non_striker: str
    is_legal: bool = True
    runs_batsman: int = 0
    runs_extras: int = 0
    runs_total: Optional[int] = None
    extra_type: Optional[str] = None
    wicket: Optional[WicketEvent] = None
    commentary: Optional[str] = None

    def __post_init__(self):
        if self.runs_total is None:
            self.runs_total = (self.runs_batsman or 0) + (self.runs_extras or 0)

    @property
    def is_wicket(self) -> bool:
        return self.wicket is not None

    @property
    def position(self) -> str:
        return f"{self.over}.{self.ball_in_over}"


@dataclass
class ValidationResult:
    """Accumulated field-level problems for one event."""
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, error: str):
        self.errors.append(error)


class BallValidator:
    """
    Admission checks for the ball ledger.

    Raises the first failing category as a ScoringError; field-shape problems
    are collected and reported together.
    """

    def __init__(self, db: Session):
        self.db = db
        self.balls = BallRepository(db)
        self.players = PlayerRepository(db)

    def validate(self, event: BallEvent, inning: Inning, match: Match) -> None:
        """
        Validate ``event`` for ``inning``.

        Raises:
            ValidationError: Malformed fields, wrong sides, sequencing or wicket data
            PreconditionError: Innings completed or match not live for this innings
            NotFoundError: A referenced player does not exist
            ConflictError: The (over, ball_in_over) position is already taken
        """
        self._check_fields(event)
        self._check_state(inning, match)
        self._check_participants(event, inning)
        self._check_position(event, inning)
        self._check_wicket(event, inning)

    # ==================== Field shape ====================

    def _check_fields(self, event: BallEvent):
        result = ValidationResult()

        if not event.bowler or not event.batsman or not event.non_striker:
            result.add_error("bowler, batsman and nonStriker are required")
        elif event.batsman == event.non_striker:
            result.add_error("batsman and nonStriker must be different players")

        if event.over is None or event.over < 1:
            result.add_error("over must be 1 or greater")
        if event.ball_in_over is None or event.ball_in_over < 1 or event.ball_in_over > 6:
            result.add_error("ballInOver must be between 1 and 6")

        if event.runs_batsman < 0 or event.runs_extras < 0:
            result.add_error("runs cannot be negative")
        elif event.runs_total != event.runs_batsman + event.runs_extras:
            result.add_error("runs.total must equal runs.batsman + runs.extras")

        if event.extra_type is not None:
            if event.extra_type not in EXTRA_TYPES:
                result.add_error(f"extraType must be one of: {', '.join(EXTRA_TYPES)}")
            elif event.extra_type in ILLEGAL_EXTRA_TYPES and event.is_legal:
                result.add_error(f"a {event.extra_type} cannot be a legal delivery")

        if event.wicket is not None:
            if not event.wicket.type:
                result.add_error("Wicket type is required when isWicket is true")
            elif event.wicket.type not in WICKET_TYPES:
                result.add_error(f"wicket type must be one of: {', '.join(WICKET_TYPES)}")

        if not result.is_valid:
            raise ValidationError(result.errors[0], details={"errors": result.errors})

    # ==================== Match and innings state ====================

    def _check_state(self, inning: Inning, match: Match):
        if inning.is_completed:
            raise PreconditionError(
                "Cannot record ball. Inning is completed",
                details={"inning_id": inning.id},
            )

        expected = MATCH_INNING1 if inning.inning_number == 1 else MATCH_INNING2
        if match.status != expected:
            raise PreconditionError(
                f"Cannot record ball. Match is in '{match.status}' state",
                details={"match_id": match.id, "expected_status": expected},
            )

    # ==================== Participants ====================

    def _check_participants(self, event: BallEvent, inning: Inning):
        players = {p.id: p for p in self.players.find_many([event.bowler, event.batsman, event.non_striker])}
        missing = [pid for pid in (event.bowler, event.batsman, event.non_striker) if pid not in players]
        if missing:
            raise NotFoundError("One or more players not found", details={"player_ids": missing})

        if players[event.bowler].team_id != inning.bowling_team_id:
            raise ValidationError("Bowler must be from the bowling team")

        if (players[event.batsman].team_id != inning.batting_team_id
                or players[event.non_striker].team_id != inning.batting_team_id):
            raise ValidationError("Batsmen must be from the batting team")

    # ==================== Position and sequencing ====================

    def _check_position(self, event: BallEvent, inning: Inning):
        if self.balls.position_taken(inning.id, event.over, event.ball_in_over):
            raise ConflictError(
                f"Ball already exists for over {event.position}",
                details={"over": event.over, "ball_in_over": event.ball_in_over},
            )

        if event.is_legal and event.ball_in_over > 1:
            if not self.balls.position_taken(inning.id, event.over, event.ball_in_over - 1):
                raise ValidationError(
                    f"Previous ball {event.over}.{event.ball_in_over - 1} must be recorded first",
                    details={"over": event.over, "ball_in_over": event.ball_in_over},
                )

    # ==================== Wicket ====================

    def _check_wicket(self, event: BallEvent, inning: Inning):
        wicket = event.wicket
        if wicket is None:
            return

        if not wicket.player_out:
            raise ValidationError("playerOut is required for a wicket")

        if wicket.player_out != event.batsman:
            raise ValidationError("Wicket can only be of the current batsman")

        if wicket.type in FIELDER_WICKET_TYPES:
            if not wicket.fielder:
                raise ValidationError(f"fielder is required for {wicket.type} dismissal")
            if not self.players.belongs_to_team(wicket.fielder, inning.bowling_team_id):
                raise ValidationError("Fielder must be from the bowling team")


def event_from_payload(payload: Dict[str, Any]) -> BallEvent:
    """
    Build a BallEvent from a camelCase request payload.

    Accepts the nested ``runs`` and ``wicket`` objects the API exposes; a wicket
    object with ``isWicket`` false is treated as no wicket.
    """
    runs = payload.get("runs") or {}
    wicket_data = payload.get("wicket") or {}
    wicket = None
    if wicket_data.get("isWicket"):
        wicket = WicketEvent(
            type=wicket_data.get("type"),
            player_out=wicket_data.get("playerOut"),
            fielder=wicket_data.get("fielder"),
        )

    return BallEvent(
        over=payload.get("over"),
        ball_in_over=payload.get("ballInOver"),
        bowler=payload.get("bowler"),
        batsman=payload.get("batsman"),
        non_striker=payload.get("nonStriker"),
        is_legal=payload.get("isLegal", True),
        runs_batsman=runs.get("batsman") or 0,
        runs_extras=runs.get("extras") or 0,
        runs_total=runs.get("total"),
        extra_type=payload.get("extraType"),
        wicket=wicket,
        commentary=payload.get("commentary"),
    )
