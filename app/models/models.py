"""
Database models for the Cricket Scoring API.

Reference data (tournaments, teams, players) is owned by the registry; the
scoring core owns matches, innings, the ball ledger, per-player match stats and
the tournament points table.

The ball ledger (``balls``) is the single source of truth. ``match_player_stats``
is an incrementally maintained cache that can always be rebuilt from it.
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, Float, Integer, DateTime, ForeignKey, Boolean, Text, Index,
    UniqueConstraint, CheckConstraint, JSON,
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


# Match lifecycle
MATCH_UPCOMING = "upcoming"
MATCH_TOSS = "toss"
MATCH_INNING1 = "inning1"
MATCH_INNING2 = "inning2"
MATCH_COMPLETED = "completed"
MATCH_ABANDONED = "abandoned"

MATCH_STATUSES = (
    MATCH_UPCOMING, MATCH_TOSS, MATCH_INNING1, MATCH_INNING2, MATCH_COMPLETED, MATCH_ABANDONED,
)
MATCH_TYPES = ("league", "qualifier", "eliminator", "final")
TOSS_DECISIONS = ("bat", "bowl")

EXTRA_TYPES = ("wide", "no-ball", "bye", "leg-bye", "penalty")
WICKET_TYPES = ("bowled", "caught", "lbw", "run-out", "stumped", "hit-wicket")
FIELDER_WICKET_TYPES = ("caught", "run-out", "stumped")
PLAYER_ROLES = ("batsman", "bowler", "all-rounder", "wicket-keeper")

# How a result was set
RESULT_AUTO = "auto"
RESULT_OVERRIDE = "override"

# Why an innings was closed
COMPLETION_ALL_OUT = "all_out"
COMPLETION_OVERS = "overs"
COMPLETION_TARGET = "target"
COMPLETION_MANUAL = "manual"


def _utcnow() -> datetime:
    return datetime.utcnow()


class Tournament(Base):
    """Tournament carrying the overs-per-innings rule for its matches."""
    __tablename__ = "tournaments"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    season = Column(Integer, nullable=False)
    overs_per_innings = Column(Integer, nullable=False, default=20)
    status = Column(String(20), nullable=False, default="upcoming")  # upcoming, ongoing, completed
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    teams = relationship("Team", back_populates="tournament", cascade="all, delete-orphan")
    matches = relationship("Match", back_populates="tournament", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("name", "season", name="uq_tournaments_name_season"),
    )


class Team(Base):
    """Team entered in a tournament."""
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    short_name = Column(String(10), nullable=False)
    city = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    tournament = relationship("Tournament", back_populates="teams")
    players = relationship("Player", back_populates="team", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("tournament_id", "name", name="uq_teams_tournament_name"),
    )


class Player(Base):
    """Squad member; team membership drives ball validation."""
    __tablename__ = "players"

    id = Column(String(36), primary_key=True)
    team_id = Column(String(36), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    jersey_number = Column(Integer, nullable=False)
    role = Column(String(20), nullable=False, default="batsman")
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    team = relationship("Team", back_populates="players")

    __table_args__ = (
        UniqueConstraint("team_id", "jersey_number", name="uq_players_team_jersey"),
    )


class Match(Base):
    """
    A fixture between two teams of one tournament.

    Status moves upcoming -> toss -> inning1 -> inning2 -> completed, with
    abandoned reachable from any non-terminal state. ``playing_xi`` holds the
    locked rosters as {"team1": [...], "team2": [...]}.
    """
    __tablename__ = "matches"

    id = Column(String(36), primary_key=True)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    match_number = Column(Integer, nullable=False)
    team1_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    team2_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    venue = Column(String(255), nullable=True)
    match_date = Column(DateTime, nullable=True)
    match_type = Column(String(20), nullable=False, default="league")
    status = Column(String(20), nullable=False, default=MATCH_UPCOMING, index=True)

    # Toss
    toss_winner_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    toss_decision = Column(String(4), nullable=True)  # bat, bowl

    # Roster lock
    playing_xi = Column(JSON, nullable=True)

    # Result
    result_winner_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    result_margin = Column(String(50), nullable=True)
    result_summary = Column(Text, nullable=True)
    result_source = Column(String(10), nullable=True)  # auto, override
    man_of_the_match_id = Column(String(36), ForeignKey("players.id"), nullable=True)

    # Whether this match has been folded into the points table
    standings_applied = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    tournament = relationship("Tournament", back_populates="matches")
    team1 = relationship("Team", foreign_keys=[team1_id])
    team2 = relationship("Team", foreign_keys=[team2_id])
    toss_winner = relationship("Team", foreign_keys=[toss_winner_id])
    result_winner = relationship("Team", foreign_keys=[result_winner_id])
    man_of_the_match = relationship("Player", foreign_keys=[man_of_the_match_id])

    __table_args__ = (
        UniqueConstraint("tournament_id", "match_number", name="uq_matches_tournament_number"),
    )

    def team_ids(self) -> tuple:
        return (self.team1_id, self.team2_id)

    def opponent_of(self, team_id: str) -> str:
        return self.team2_id if team_id == self.team1_id else self.team1_id

    def has_result(self) -> bool:
        return self.result_source is not None


class Inning(Base):
    """One innings of a match; exactly one per (match, inning_number)."""
    __tablename__ = "innings"

    id = Column(String(36), primary_key=True)
    match_id = Column(String(36), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    inning_number = Column(Integer, nullable=False)  # 1 or 2
    batting_team_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    bowling_team_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    target = Column(Integer, nullable=True)  # inning 2 only
    is_completed = Column(Boolean, nullable=False, default=False)
    completion_reason = Column(String(10), nullable=True)  # all_out, overs, target, manual
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    match = relationship("Match")
    batting_team = relationship("Team", foreign_keys=[batting_team_id])
    bowling_team = relationship("Team", foreign_keys=[bowling_team_id])

    __table_args__ = (
        UniqueConstraint("match_id", "inning_number", name="uq_innings_match_number"),
        CheckConstraint("inning_number IN (1, 2)", name="ck_innings_number"),
    )


class Ball(Base):
    """
    One delivery in the ledger, unique per (inning, over, ball_in_over).

    Balls are immutable once written; only the latest ball of an innings may be
    removed (undo).
    """
    __tablename__ = "balls"

    id = Column(String(36), primary_key=True)
    match_id = Column(String(36), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    inning_id = Column(String(36), ForeignKey("innings.id", ondelete="CASCADE"), nullable=False, index=True)
    over = Column(Integer, nullable=False)  # starts at 1
    ball_in_over = Column(Integer, nullable=False)  # 1-6
    is_legal = Column(Boolean, nullable=False, default=True)

    bowler_id = Column(String(36), ForeignKey("players.id"), nullable=False)
    batsman_id = Column(String(36), ForeignKey("players.id"), nullable=False)
    non_striker_id = Column(String(36), ForeignKey("players.id"), nullable=False)

    runs_batsman = Column(Integer, nullable=False, default=0)
    runs_extras = Column(Integer, nullable=False, default=0)
    runs_total = Column(Integer, nullable=False, default=0)
    extra_type = Column(String(10), nullable=True)

    is_wicket = Column(Boolean, nullable=False, default=False)
    wicket_type = Column(String(15), nullable=True)
    player_out_id = Column(String(36), ForeignKey("players.id"), nullable=True)
    fielder_id = Column(String(36), ForeignKey("players.id"), nullable=True)

    commentary = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    inning = relationship("Inning")
    bowler = relationship("Player", foreign_keys=[bowler_id])
    batsman = relationship("Player", foreign_keys=[batsman_id])
    non_striker = relationship("Player", foreign_keys=[non_striker_id])
    player_out = relationship("Player", foreign_keys=[player_out_id])
    fielder = relationship("Player", foreign_keys=[fielder_id])

    __table_args__ = (
        UniqueConstraint("inning_id", "over", "ball_in_over", name="uq_balls_position"),
        CheckConstraint("runs_total = runs_batsman + runs_extras", name="ck_balls_runs_total"),
        Index("ix_balls_inning_position", "inning_id", "over", "ball_in_over"),
    )

    @property
    def position(self) -> str:
        return f"{self.over}.{self.ball_in_over}"


class MatchPlayerStats(Base):
    """
    Per-player totals for one match, derived from the ledger.

    Bowling is kept in balls so that undo is an exact negation; overs and the
    provisional maiden figure are derived from the integer counters.
    """
    __tablename__ = "match_player_stats"

    id = Column(String(36), primary_key=True)
    match_id = Column(String(36), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(String(36), ForeignKey("players.id"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=False)

    # Batting
    batting_runs = Column(Integer, nullable=False, default=0)
    batting_balls = Column(Integer, nullable=False, default=0)
    batting_fours = Column(Integer, nullable=False, default=0)
    batting_sixes = Column(Integer, nullable=False, default=0)
    batting_out = Column(Boolean, nullable=False, default=False)

    # Bowling
    bowling_balls = Column(Integer, nullable=False, default=0)
    bowling_runs_conceded = Column(Integer, nullable=False, default=0)
    bowling_wickets = Column(Integer, nullable=False, default=0)
    bowling_dot_balls = Column(Integer, nullable=False, default=0)

    # Fielding (catches, run-outs, stumpings)
    fielding_dismissals = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    player = relationship("Player")

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_player_stats"),
    )

    @property
    def bowling_overs(self) -> float:
        return self.bowling_balls / 6

    @property
    def bowling_maidens(self) -> float:
        # Provisional: one sixth per dot legal ball, not a true maiden-over count
        return self.bowling_dot_balls / 6


class PointsTable(Base):
    """Per-tournament standings container, created lazily on the first result."""
    __tablename__ = "points_tables"

    id = Column(String(36), primary_key=True)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    standings = relationship(
        "PointsTableStanding", back_populates="points_table", cascade="all, delete-orphan",
        order_by="PointsTableStanding.position",
    )


class PointsTableStanding(Base):
    """One team's row in a points table."""
    __tablename__ = "points_table_standings"

    id = Column(String(36), primary_key=True)
    points_table_id = Column(String(36), ForeignKey("points_tables.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=False)
    played = Column(Integer, nullable=False, default=0)
    won = Column(Integer, nullable=False, default=0)
    lost = Column(Integer, nullable=False, default=0)
    no_result = Column(Integer, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)
    net_run_rate = Column(Float, nullable=False, default=0.0)
    position = Column(Integer, nullable=True)
    qualified = Column(Boolean, nullable=False, default=False)

    points_table = relationship("PointsTable", back_populates="standings")
    team = relationship("Team")

    __table_args__ = (
        UniqueConstraint("points_table_id", "team_id", name="uq_standings_table_team"),
    )
