"""
Market Sim — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Build the market (seeded engine + clock).
  4. Execute the action (simulate, predict, rank, export).
  5. Report result to stdout.

Install and run::

    pip install -e .
    market-sim --help
    market-sim validate-config
    market-sim simulate --hours 48
    market-sim predict --day 2 --hour 10 --stock S017
    market-sim rank --day 2 --hour 10 --top 5
    market-sim export-effects --out data/outputs/effects.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="market-sim",
    help="Seeded hourly securities market simulator with limit-up analytics.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None, seed: Optional[int] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from market_sim.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        config = load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)

    if seed is not None:
        session = config.session.model_copy(update={"seed": seed})
        config = config.model_copy(update={"session": session})
    return config


def _configure_logging(config):
    """Set up logging from config."""
    from market_sim.utils.logging import configure_logging
    configure_logging(config.logging)


def _build_market_or_exit(config):
    """Build the runtime, converting a missing seed into a CLI error."""
    from market_sim.simulation.clock import build_market
    from market_sim.simulation.engine import MissingSeedError

    try:
        return build_market(config)
    except MissingSeedError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _check_day_hour_or_exit(config, day: int, hour: int) -> int:
    """Validate (day, hour) and return the absolute hour index."""
    hours_per_day = config.market.hours_per_day
    if day < 1:
        typer.echo(f"[ERROR] --day must be >= 1, got {day}.", err=True)
        raise typer.Exit(code=1)
    if not 0 <= hour < hours_per_day:
        typer.echo(
            f"[ERROR] --hour must be in [0, {hours_per_day - 1}], got {hour}.", err=True
        )
        raise typer.Exit(code=1)
    return (day - 1) * hours_per_day + hour


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Seed:             {config.session.seed}")
    typer.echo(f"  Session stocks:   {config.session.session_stock_count}"
               f" of {config.session.candidate_stock_count}")
    typer.echo(f"  Horizon:          {config.market.num_days}d x "
               f"{config.market.hours_per_day}h")
    typer.echo(f"  Sector mode:      {config.market.sector_effect_mode.value}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("simulate")
def simulate(
    hours: int = typer.Option(24, "--hours", help="Hours to advance the clock."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override the session seed."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Advance the market clock and print every instrument's price."""
    from market_sim.reporting.formatters import format_market_table

    if hours < 0:
        typer.echo(f"[ERROR] --hours must be >= 0, got {hours}.", err=True)
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path, seed)
    _configure_logging(config)

    with _build_market_or_exit(config) as runtime:
        runtime.clock.advance(hours)
        engine = runtime.engine
        typer.echo(format_market_table(engine.session.instruments, engine.current_hour))
        typer.echo("")
        typer.echo(f"  Day {engine.current_day}, hour {engine.hour_of_day}")


@app.command("predict")
def predict_cmd(
    day: int = typer.Option(1, "--day", help="1-based game day."),
    hour: int = typer.Option(0, "--hour", help="Hour within the day."),
    stock: Optional[str] = typer.Option(None, "--stock", help="Instrument id (default: all)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override the session seed."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print limit-up predictions for one instrument or the whole session."""
    from market_sim.reporting.formatters import format_prediction

    config = _load_config_or_exit(config_path, seed)
    _configure_logging(config)
    target = _check_day_hour_or_exit(config, day, hour)

    with _build_market_or_exit(config) as runtime:
        runtime.clock.advance_to(max(target, runtime.clock.current_hour))
        engine = runtime.engine

        if stock is not None:
            result = engine.predict(stock, day, hour)
            if result is None:
                typer.echo(f"[ERROR] Unknown instrument '{stock}'.", err=True)
                raise typer.Exit(code=1)
            results = [result]
        else:
            results = engine.predict_all(day, hour)

        for result in results:
            typer.echo(format_prediction(result))
            typer.echo("")


@app.command("rank")
def rank_cmd(
    day: int = typer.Option(1, "--day", help="1-based game day."),
    hour: int = typer.Option(0, "--hour", help="Hour within the day."),
    top: Optional[int] = typer.Option(
        None, "--top", help="Show only the top N (default: [ranking].top_n, 0 = all)."
    ),
    csv_out: Optional[str] = typer.Option(None, "--csv", help="Also write the ranking to CSV."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override the session seed."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Rank the session's instruments and print recommendations."""
    from market_sim.recommendations.ranker import (
        RankingWeights,
        filter_buyable,
        find_sell_candidates,
        rank_stocks,
    )
    from market_sim.reporting.export import export_to_csv, flatten_ranked_for_export
    from market_sim.reporting.formatters import (
        format_rank_table,
        format_top_recommendations,
        generate_brief_summary,
    )

    config = _load_config_or_exit(config_path, seed)
    _configure_logging(config)
    target = _check_day_hour_or_exit(config, day, hour)

    top_n = config.ranking.top_n if top is None else top
    if top_n < 0:
        typer.echo(f"[ERROR] --top must be >= 0, got {top_n}.", err=True)
        raise typer.Exit(code=1)

    with _build_market_or_exit(config) as runtime:
        runtime.clock.advance_to(max(target, runtime.clock.current_hour))
        engine = runtime.engine
        ranked = rank_stocks(
            engine.predict_all(day, hour),
            engine.session.instruments,
            RankingWeights.from_config(config.ranking),
            top_n,
        )

    typer.echo(f"=== Ranking: day {day}, hour {hour} ===")
    typer.echo(format_rank_table(ranked))
    typer.echo("")
    typer.echo(format_top_recommendations(ranked))
    buyable = filter_buyable(ranked, config.ranking.buyable_min_score)
    sells = find_sell_candidates(ranked)
    typer.echo(f"  Buyable:         {', '.join(r.instrument_id for r in buyable) or '-'}")
    typer.echo(f"  Sell candidates: {', '.join(r.instrument_id for r in sells) or '-'}")
    typer.echo(f"  Summary:         {generate_brief_summary(ranked)}")

    if csv_out:
        path = export_to_csv(flatten_ranked_for_export(ranked), Path(csv_out))
        typer.echo(f"[OK] Ranking written to {path}")


@app.command("export-effects")
def export_effects(
    out: Optional[str] = typer.Option(
        None,
        "--out",
        help="Output file (.json or .csv). Default: <output_dir>/effects_<seed>.json.",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override the session seed."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Export the daily sector-effect cycle and instrument tags."""
    from market_sim.reporting.export import (
        build_effects_snapshot,
        export_to_csv,
        export_to_json,
        flatten_effects_for_export,
    )

    config = _load_config_or_exit(config_path, seed)
    _configure_logging(config)

    with _build_market_or_exit(config) as runtime:
        snapshot = build_effects_snapshot(runtime.engine.session)

    if out:
        path = Path(out)
    else:
        path = Path(config.export.output_dir) / f"effects_{snapshot['seed']}.json"

    if path.suffix.lower() == ".csv":
        export_to_csv(flatten_effects_for_export(snapshot), path)
    else:
        export_to_json(snapshot, path)

    typer.echo(f"  Days:        {len(snapshot['daily_effects'])}")
    typer.echo(f"  Instruments: {len(snapshot['instrument_tags'])}")
    typer.echo(f"[OK] Effects written to {path}")


if __name__ == "__main__":
    app()
