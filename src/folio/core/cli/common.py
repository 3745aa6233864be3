"""Shared setup logic for CLI commands."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from folio.core.utils.text import format_money, format_percent, truncate_text

if TYPE_CHECKING:
    from folio.core.config import Config
    from folio.portfolio.models import Position
    from folio.portfolio.session import PortfolioSession

FOLIO_DIR = Path.home() / ".folio-data"
CONFIG_PATH = FOLIO_DIR / "config.yaml"


def load_config(options: dict[str, Any]) -> Config:
    """Build the Config from the group options (config file, data dir, offline)."""
    from folio.core.config import Config
    from folio.core.exceptions import ConfigurationError

    config_file = options.get("config_file")
    if config_file is None and CONFIG_PATH.exists():
        config_file = str(CONFIG_PATH)

    try:
        config = Config(config_file=config_file, data_dir=options.get("data_dir"))
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if options.get("data_dir"):
        config.set("paths.data_dir", os.path.expanduser(options["data_dir"]))
    if options.get("offline"):
        config.set("gateway.enabled", False)
    return config


def setup_cli_logging(config: Config) -> None:
    from folio.core.utils.logging import setup_logging

    setup_logging(level=str(config.get("logging.level", "WARNING")).upper(), log_file=config.get("logging.file"))


async def open_session(options: dict[str, Any]) -> PortfolioSession:
    """Load the configured portfolio, seeding the demo set on first use."""
    from folio.core.exceptions import ConfigurationError
    from folio.portfolio.session import PortfolioSession

    config = load_config(options)
    config.ensure_directories()
    setup_cli_logging(config)
    try:
        session = PortfolioSession.from_config(config)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    await session.load()
    return session


def find_position(session: PortfolioSession, ref: str) -> Position:
    """Resolve a position by id or (case-insensitive) ticker."""
    position = session.get(ref)
    if position is not None:
        return position
    matches = [p for p in session.positions if p.ticker == ref.upper()]
    if not matches:
        raise click.ClickException(f"No position matches '{ref}'")
    if len(matches) > 1:
        ids = ", ".join(p.id for p in matches)
        raise click.ClickException(f"'{ref}' matches several positions, use an id: {ids}")
    return matches[0]


def render_positions(session: PortfolioSession) -> str:
    lines = [
        f"{'ID':<16}  {'TICKER':<6}  {'NAME':<24}  {'SHARES':>9}  {'AVG':>12}  {'PRICE':>12}  {'P/L':>9}  SRC",
    ]
    metrics = {m.position_id: m for m in session.metrics()}
    for p in session.positions:
        m = metrics[p.id]
        lines.append(
            f"{p.id:<16}  {p.ticker:<6}  {truncate_text(p.name, 24):<24}  {p.shares:>9g}  "
            f"{format_money(p.avg_price, p.currency):>12}  {format_money(p.current_price, p.currency):>12}  "
            f"{format_percent(m.profit_percent):>9}  {'real' if p.is_real_data else 'sim'}"
        )
    return "\n".join(lines)


def render_stats(session: PortfolioSession) -> str:
    stats = session.stats()
    return "\n".join(
        [
            f"Value:      {format_money(stats.total_value)}",
            f"Invested:   {format_money(stats.total_invested)}",
            f"Profit:     {format_money(stats.total_profit)} ({format_percent(stats.total_profit_percent)})",
            f"Day change: {format_money(stats.day_change)} ({format_percent(stats.day_change_percent)})",
        ]
    )


def render_sectors(session: PortfolioSession) -> str:
    slices = sorted(session.sector_breakdown(), key=lambda s: s.value, reverse=True)
    total = sum(s.value for s in slices)
    lines = []
    for s in slices:
        share = s.value / total * 100 if total > 0 else 0.0
        lines.append(f"{s.sector.label:<16} {format_money(s.value):>14}  {share:5.1f}%")
    return "\n".join(lines)


def render_top_performers(session: PortfolioSession) -> str:
    top = session.top_performers()
    lines = []
    for title, items in (("Top gainers", top.gainers), ("Top losers", top.losers)):
        entries = ", ".join(f"{m.ticker} {format_percent(m.profit_percent)}" for m in items) or "none"
        lines.append(f"{title}: {entries}")
    biggest = ", ".join(f"{m.ticker} {format_money(m.value)}" for m in top.biggest) or "none"
    lines.append(f"Largest: {biggest}")
    return "\n".join(lines)
