"""Tests for CLI commands: review, plan, personalize, analyze, config and version."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from kioku.consts import VERSION
from kioku.domain.cards.models import CardSummary, JlptLevel, VocabularyTopic
from kioku.domain.review.models import LearnerProfile, ReviewRecord
from kioku.infrastructure.json_store import JsonProfileStore
from kioku.interface.cli import app

runner = CliRunner()

LONG_AGO = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def profile_dir(tmp_path, mock_home):
    """A profile directory holding one learner with one overdue and two new cards."""
    root = tmp_path / "profiles"
    cards = [
        CardSummary("taberu", VocabularyTopic.FOOD, JlptLevel.N5),
        CardSummary("densha", VocabularyTopic.TRAVEL, JlptLevel.N5),
        CardSummary("kaigi", VocabularyTopic.DAILY_LIFE, JlptLevel.N3, difficulty=2.0),
    ]
    records = [
        ReviewRecord(
            user_id="u1",
            card_id="taberu",
            next_review_at=LONG_AGO,
            last_reviewed_at=LONG_AGO,
            total_reviews=2,
            correct_streak=1,
            repetition_count=1,
        )
    ]
    JsonProfileStore(root).save(LearnerProfile(user_id="u1", cards=cards, records=records))
    return root


def _args(profile_dir, *args):
    return [*args, "--profile-dir", str(profile_dir)]


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "review" in result.stdout
    assert "plan" in result.stdout
    assert "config" in result.stdout


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == VERSION


# --- Review ---


def test_review_reschedules_card(profile_dir):
    result = runner.invoke(
        app, ["review", *_args(profile_dir, "u1", "taberu", "--quality", "4")]
    )

    assert result.exit_code == 0
    assert "Next review" in result.stdout
    record = JsonProfileStore(profile_dir).load("u1").record_for("taberu")
    assert record.total_reviews == 3
    assert record.interval_days == 6


def test_review_json_output(profile_dir):
    result = runner.invoke(
        app,
        [
            "review",
            *_args(profile_dir, "u1", "densha", "-q", "5", "--response-time", "1800", "--json"),
        ],
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["card_id"] == "densha"
    assert data["repetition_count"] == 1
    assert data["average_response_time_ms"] == 1800


@pytest.mark.parametrize(
    "card,quality,message",
    [
        ("taberu", "7", "Quality must be between 0 and 5"),
        ("missing", "3", "Unknown card"),
    ],
    ids=["bad_quality", "unknown_card"],
)
def test_review_invalid_input_exits_2(profile_dir, card, quality, message):
    result = runner.invoke(app, ["review", *_args(profile_dir, "u1", card, "-q", quality)])

    assert result.exit_code == 2
    assert message in result.output


# --- Plan ---


def test_plan_json(profile_dir):
    result = runner.invoke(app, ["plan", *_args(profile_dir, "u1", "--seed", "1", "--json")])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["due"] == ["taberu"]
    assert sorted(data["new"]) == ["densha", "kaigi"]
    assert sorted(data["ordered"]) == ["densha", "kaigi", "taberu"]


def test_plan_is_reproducible_with_seed(profile_dir):
    args = ["plan", *_args(profile_dir, "u1", "--seed", "11", "--json")]
    first = runner.invoke(app, args)
    second = runner.invoke(app, args)
    assert json.loads(first.stdout)["ordered"] == json.loads(second.stdout)["ordered"]


def test_plan_text_output(profile_dir):
    result = runner.invoke(app, ["plan", *_args(profile_dir, "u1")])

    assert result.exit_code == 0
    assert "Due: 1  New: 2" in result.stdout
    assert "taberu" in result.stdout


def test_plan_for_unknown_learner_is_empty(profile_dir):
    result = runner.invoke(app, ["plan", *_args(profile_dir, "nobody")])

    assert result.exit_code == 0
    assert "Nothing to study" in result.stdout


def test_plan_rejects_zero_max_cards(profile_dir):
    result = runner.invoke(app, ["plan", *_args(profile_dir, "u1", "--max-cards", "0")])
    assert result.exit_code == 2


def test_plan_rejects_profile_with_naive_timestamps(profile_dir):
    path = profile_dir / "u1.json"
    data = json.loads(path.read_text())
    data["records"][0]["next_review_at"] = "2026-01-01T00:00:00"
    data["records"][0]["last_reviewed_at"] = "2025-12-31T00:00:00"
    path.write_text(json.dumps(data))

    result = runner.invoke(app, ["plan", *_args(profile_dir, "u1")])

    assert result.exit_code == 2
    assert "without UTC offset" in result.output


# --- Personalize & analyze ---


def test_personalize_text(profile_dir):
    result = runner.invoke(app, ["personalize", *_args(profile_dir, "u1")])

    assert result.exit_code == 0
    assert "Optimal session size" in result.stdout
    assert "Due for review" in result.stdout


def test_personalize_json(profile_dir):
    result = runner.invoke(app, ["personalize", *_args(profile_dir, "u1", "--json")])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert [rc["card"]["id"] for rc in data["review_cards"]] == ["taberu"]
    assert data["review_cards"][0]["kind"] == "review"


def test_analyze_json(profile_dir):
    result = runner.invoke(
        app, ["analyze", *_args(profile_dir, "u1", "--window-days", "36500", "--json")]
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["snapshot"]["total_reviews"] == 2
    assert data["snapshot"]["window_days"] == 36500
    assert data["summary"]["due_cards_count"] == 1


def test_analyze_rejects_bad_window(profile_dir):
    result = runner.invoke(app, ["analyze", *_args(profile_dir, "u1", "--window-days", "0")])
    assert result.exit_code == 2


# --- Config ---


@patch("kioku.interface.cli.resolve_config")
def test_config_show_command(mock_resolve_config, kioku_logger):
    """Test config show command displays JSON."""
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {
        "profile_dir": Path("/tmp/kioku"),
        "max_cards": 20,
        "verbose": 1,
    }
    mock_resolve_config.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    output_data = json.loads(result.stdout)
    assert output_data["profile_dir"] == str(Path("/tmp/kioku"))
    assert output_data["max_cards"] == 20


def test_config_reads_environment(mock_home, monkeypatch):
    monkeypatch.setenv("KIOKU_MAX_CARDS", "12")

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["max_cards"] == 12


def test_config_reads_toml_file(mock_home):
    config_dir = mock_home / ".config" / "kioku"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text("window_days = 14\n")

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["window_days"] == 14


@patch("kioku.interface.cli.StudyService")
def test_personalize_uses_configured_window(mock_service_cls, profile_dir, monkeypatch):
    monkeypatch.setenv("KIOKU_WINDOW_DAYS", "9")

    result = runner.invoke(app, ["personalize", *_args(profile_dir, "u1")])

    assert result.exit_code == 0
    args = mock_service_cls.return_value.personalize.call_args.args
    assert args[0] == "u1"
    assert args[2] == 9


@patch("kioku.interface.cli.StudyService")
def test_personalize_window_flag_overrides_config(mock_service_cls, profile_dir, monkeypatch):
    monkeypatch.setenv("KIOKU_WINDOW_DAYS", "9")

    runner.invoke(app, ["personalize", *_args(profile_dir, "u1", "--window-days", "3")])

    assert mock_service_cls.return_value.personalize.call_args.args[2] == 3


# --- Verbosity ---


@pytest.fixture
def kioku_logger():
    """Restores the package logger level changed by the CLI."""
    log = logging.getLogger("kioku")
    level = log.level
    yield log
    log.setLevel(level)


@pytest.mark.parametrize(
    "flags,env,expected_verbose,expected_level",
    [
        ([], None, 1, logging.INFO),
        (["-vv"], None, 2, logging.DEBUG),
        ([], "0", 0, logging.WARNING),
        (["-v"], "0", 1, logging.INFO),
    ],
    ids=["default", "flag", "env_quiet", "flag_beats_env"],
)
def test_verbosity_sets_log_level(
    mock_home, monkeypatch, kioku_logger, flags, env, expected_verbose, expected_level
):
    if env is not None:
        monkeypatch.setenv("KIOKU_VERBOSE", env)

    result = runner.invoke(app, [*flags, "config", "show"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["verbose"] == expected_verbose
    assert kioku_logger.level == expected_level
