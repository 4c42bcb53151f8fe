"""kioku CLI: drive the scheduling engine against locally stored learner profiles."""

import json
import logging
import random
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import TypeAdapter, ValidationError

from kioku.application.config import KiokuConfig, resolve_config
from kioku.application.study_service import StudyService
from kioku.consts import VERSION
from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import ReviewQuality
from kioku.infrastructure.json_store import JsonProfileStore

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="kioku: spaced-repetition scheduler for JLPT vocabulary.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage kioku configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

ProfileDirOption = Annotated[
    Path | None,
    typer.Option("--profile-dir", help="Directory of learner profiles. Defaults to config."),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for kioku."""
    ctx.ensure_object(dict)
    # 0 means "not given", so KIOKU_VERBOSE or the config file decide
    ctx.obj["verbose_bonus"] = verbose or None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _resolve(ctx: typer.Context, cli_overrides: dict[str, Any] | None = None) -> KiokuConfig:
    """Resolve config with the global -v count and apply its log level."""
    overrides = dict(cli_overrides or {})
    overrides["verbose"] = (ctx.obj or {}).get("verbose_bonus")
    config = resolve_config(overrides)
    logging.getLogger("kioku").setLevel(_LOG_LEVELS.get(config.verbose, logging.DEBUG))
    return config


def _build_service(config: KiokuConfig) -> StudyService:
    logger.debug(f"Using profiles in {config.profile_dir}")
    return StudyService(JsonProfileStore(config.profile_dir))


def _to_jsonable(value: Any) -> Any:
    return TypeAdapter(type(value)).dump_python(value, mode="json")


@contextmanager
def _invalid_input_exits() -> Iterator[None]:
    """Report bad input or bad settings as a red message and exit code 2."""
    try:
        yield
    except (InvalidInputError, ValidationError) as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(2) from e


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    card_id: Annotated[str, typer.Argument(help="Card that was reviewed.")],
    quality: Annotated[
        int, typer.Option("--quality", "-q", help="Answer quality, 0 (blackout) to 5 (perfect).")
    ],
    response_time: Annotated[
        int, typer.Option("--response-time", help="Answer latency in milliseconds.")
    ] = 0,
    profile_dir: ProfileDirOption = None,
    json_output: JsonOption = False,
):
    """[bold green]Record[/bold green] a review and reschedule the card."""
    with _invalid_input_exits():
        service = _build_service(_resolve(ctx, {"profile_dir": profile_dir}))
        record = service.record_review(user_id, card_id, quality, response_time, _now())

    if json_output:
        typer.echo(json.dumps(_to_jsonable(record), indent=2))
        return

    q = ReviewQuality(quality)
    typer.echo(f"{card_id}: {q.description}")
    typer.echo(
        f"Next review: {record.next_review_at.isoformat()} "
        f"(in {record.interval_days} day(s), ease {record.ease_factor:.2f})"
    )


@app.command()
def plan(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    max_cards: Annotated[int | None, typer.Option(help="Session size limit.")] = None,
    seed: Annotated[
        int | None, typer.Option(help="Random seed for reproducible ordering.")
    ] = None,
    profile_dir: ProfileDirOption = None,
    json_output: JsonOption = False,
):
    """Plan the next study session: due reviews first, then new cards."""
    with _invalid_input_exits():
        config = _resolve(
            ctx,
            {"profile_dir": profile_dir, "max_cards": max_cards, "random_seed": seed}
        )
        service = _build_service(config)
        session = service.plan_session(
            user_id, _now(), config.max_cards, random.Random(config.random_seed)
        )

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "due": [c.id for c in session.due_cards],
                    "new": [c.id for c in session.new_cards],
                    "ordered": session.card_ids,
                },
                indent=2,
            )
        )
        return

    if not session.ordered:
        typer.secho("Nothing to study right now.", fg="yellow")
        return

    typer.echo(f"Due: {len(session.due_cards)}  New: {len(session.new_cards)}")
    due_ids = {c.id for c in session.due_cards}
    for i, card in enumerate(session.ordered, start=1):
        tag = "review" if card.id in due_ids else "new"
        typer.echo(f"  {i:>2}. {card.id}  [{card.level.value} {card.topic.display_name}]  {tag}")


@app.command()
def personalize(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    window_days: Annotated[
        int | None, typer.Option(help="Look-back window for study advice, in days.")
    ] = None,
    profile_dir: ProfileDirOption = None,
    json_output: JsonOption = False,
):
    """Show personalized review, new, challenge and reinforcement picks."""
    with _invalid_input_exits():
        config = _resolve(ctx, {"profile_dir": profile_dir, "window_days": window_days})
        service = _build_service(config)
        result = service.personalize(user_id, _now(), config.window_days)

    if json_output:
        typer.echo(json.dumps(_to_jsonable(result), indent=2))
        return

    typer.echo(f"Optimal session size: {result.optimal_session_size}")
    sections = [
        ("Review", result.review_cards),
        ("New", result.new_cards),
        ("Challenge", result.challenge_cards),
        ("Reinforcement", result.reinforcement_cards),
    ]
    for title, picks in sections:
        typer.secho(f"\n{title}: {len(picks)}", bold=True)
        for pick in picks:
            typer.echo(f"  {pick.card.id}  ({pick.priority:.2f})  {pick.reason}")

    if result.study_recommendations:
        typer.secho("\nRecommendations:", bold=True)
        for rec in result.study_recommendations:
            typer.echo(f"  [{rec.priority.name}] {rec.title}: {rec.description}")


@app.command()
def analyze(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    window_days: Annotated[int | None, typer.Option(help="Look-back window in days.")] = None,
    profile_dir: ProfileDirOption = None,
    json_output: JsonOption = False,
):
    """Summarize recent performance and detected learning patterns."""
    with _invalid_input_exits():
        config = _resolve(ctx, {"profile_dir": profile_dir, "window_days": window_days})
        service = _build_service(config)
        now = _now()
        snapshot = service.snapshot(user_id, now, config.window_days)
        summary = service.summarize(user_id, now)

    if json_output:
        typer.echo(
            json.dumps(
                {"snapshot": _to_jsonable(snapshot), "summary": _to_jsonable(summary)},
                indent=2,
            )
        )
        return

    typer.echo(f"Window: {snapshot.window_days} days  Reviews: {snapshot.total_reviews}")
    typer.echo(
        f"Accuracy: {snapshot.accuracy:.0%}  Retention: {snapshot.retention_rate:.0%}"
        f"  Velocity: {snapshot.learning_velocity:.2f}/day"
    )
    typer.echo(
        f"Due: {summary.due_cards_count}  Mastered: {summary.mastered_cards_count}"
        f"  Struggling: {summary.struggling_cards_count}"
    )
    if snapshot.patterns:
        typer.echo("Patterns: " + ", ".join(p.value for p in snapshot.patterns))
    for message in summary.recommendations:
        typer.echo(f"  - {message}")


@app.command()
def version():
    """Print the kioku version."""
    typer.echo(VERSION)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
