"""Unit tests for generated commentary."""
import pytest

from app.models import Ball
from app.services.scoring.commentary import commentary_text, generate_commentary

NAMES = {"p-out": "R Sharma", "p-field": "MS Dhoni"}


def _ball(**overrides):
    values = dict(
        runs_batsman=0, runs_extras=0, is_wicket=False, wicket_type=None,
        player_out_id=None, fielder_id=None, extra_type=None, commentary=None,
    )
    values.update(overrides)
    values["runs_total"] = values["runs_batsman"] + values["runs_extras"]
    return Ball(**values)


@pytest.mark.parametrize("overrides,expected", [
    ({}, "Dot ball."),
    ({"runs_batsman": 4}, "Four runs! Excellent shot."),
    ({"runs_batsman": 6}, "Six! Massive hit."),
    ({"runs_extras": 1, "extra_type": "wide"}, "Wide ball."),
    ({"runs_extras": 1, "extra_type": "no-ball"}, "No ball. Free hit coming up."),
    ({"runs_batsman": 1}, "1 run."),
    ({"runs_batsman": 2, "runs_extras": 1}, "3 runs."),
])
def test_generated_lines(overrides, expected):
    """Should describe each kind of delivery."""
    assert generate_commentary(_ball(**overrides), NAMES) == expected


def test_caught_names_the_fielder():
    """Should name both the dismissed batsman and the catcher."""
    ball = _ball(is_wicket=True, wicket_type="caught", player_out_id="p-out", fielder_id="p-field")

    assert generate_commentary(ball, NAMES) == "Caught! R Sharma is caught by MS Dhoni."


def test_stored_commentary_wins():
    """Should prefer the scorer's own text."""
    ball = _ball(runs_batsman=4, commentary="Driven through the covers")

    assert commentary_text(ball, NAMES) == "Driven through the covers"
