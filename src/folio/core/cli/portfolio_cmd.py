"""Portfolio commands: show, add, buy, sell, remove, refresh, reset."""

from __future__ import annotations

import asyncio
from datetime import date

import click

from folio.core.exceptions import InputValidationError
from folio.portfolio.models import CURRENCIES, Sector, TransactionType


def _fail_on_invalid(error: InputValidationError) -> None:
    lines = [f"  {name}: {msg}" for name, msg in sorted(error.errors.items())]
    raise click.ClickException("Invalid input:\n" + "\n".join(lines))


@click.command()
@click.pass_obj
def show(options: dict) -> None:
    """Show positions, totals, sector allocation and top performers."""
    from folio.core.cli.common import (
        open_session,
        render_positions,
        render_sectors,
        render_stats,
        render_top_performers,
    )

    async def _show() -> None:
        session = await open_session(options)
        try:
            click.echo(render_positions(session))
            click.echo()
            click.echo(render_stats(session))
            click.echo()
            click.echo(render_sectors(session))
            click.echo()
            click.echo(render_top_performers(session))
        finally:
            await session.stop()

    asyncio.run(_show())


@click.command()
@click.argument("ticker")
@click.option("--name", help="Display name (defaults to the ticker).")
@click.option("--shares", type=float, required=True, help="Number of shares bought.")
@click.option("--avg-price", type=float, required=True, help="Price paid per share.")
@click.option("--price", "current_price", type=float, help="Current price (defaults to the average price).")
@click.option(
    "--sector",
    type=click.Choice([s.value for s in Sector]),
    default=Sector.TECHNOLOGY.value,
    show_default=True,
)
@click.option("--currency", type=click.Choice(CURRENCIES, case_sensitive=False), default="USD", show_default=True)
@click.pass_obj
def add(
    options: dict,
    ticker: str,
    name: str | None,
    shares: float,
    avg_price: float,
    current_price: float | None,
    sector: str,
    currency: str,
) -> None:
    """Add a position, using a live quote for TICKER when one is available."""
    from folio.core.cli.common import open_session

    data = {
        "ticker": ticker,
        "name": name or ticker,
        "shares": shares,
        "avg_price": avg_price,
        "current_price": current_price if current_price is not None else avg_price,
        "sector": sector,
        "currency": currency,
    }

    async def _add() -> bool:
        session = await open_session(options)
        try:
            return await session.add_position(data)
        finally:
            await session.stop()

    try:
        used_real = asyncio.run(_add())
    except InputValidationError as e:
        _fail_on_invalid(e)
    click.echo(f"Added {ticker.upper()} ({'live quote' if used_real else 'simulated prices'}).")


def _transaction_command(tx_type: TransactionType):  # type: ignore[no-untyped-def]
    @click.command(name=tx_type.value)
    @click.argument("position")
    @click.option("--shares", type=float, required=True)
    @click.option("--price", type=float, required=True, help="Price per share.")
    @click.option("--date", "on", type=click.DateTime(formats=["%Y-%m-%d"]), help="Trade date (defaults to today).")
    @click.pass_obj
    def command(options: dict, position: str, shares: float, price: float, on) -> None:  # type: ignore[no-untyped-def]
        from folio.core.cli.common import find_position, open_session

        data = {"type": tx_type, "shares": shares, "price": price, "date": on.date() if on else date.today()}

        async def _record() -> str:
            session = await open_session(options)
            try:
                target = find_position(session, position)
                session.add_transaction(target.id, data)
                target = session.get(target.id)
                return f"{target.ticker}: {target.shares:g} shares, average cost {target.avg_price:.2f}"
            finally:
                await session.stop()

        try:
            click.echo(asyncio.run(_record()))
        except InputValidationError as e:
            _fail_on_invalid(e)

    command.help = f"Record a {tx_type.value} for POSITION (id or ticker)."
    return command


buy = _transaction_command(TransactionType.BUY)
sell = _transaction_command(TransactionType.SELL)


@click.command()
@click.argument("position")
@click.pass_obj
def remove(options: dict, position: str) -> None:
    """Remove POSITION (id or ticker) from the portfolio."""
    from folio.core.cli.common import find_position, open_session

    async def _remove() -> str:
        session = await open_session(options)
        try:
            target = find_position(session, position)
            session.delete_position(target.id)
            return target.ticker
        finally:
            await session.stop()

    click.echo(f"Removed {asyncio.run(_remove())}.")


@click.command()
@click.pass_obj
def refresh(options: dict) -> None:
    """Fetch live quotes for every position backed by real data."""
    from folio.core.cli.common import open_session

    async def _refresh():  # type: ignore[no-untyped-def]
        session = await open_session(options)
        try:
            return await session.refresh_real()
        finally:
            await session.stop()

    result = asyncio.run(_refresh())
    if result is None or not (result.refreshed or result.failed):
        click.echo("No positions with live data to refresh.")
        return
    click.echo(f"Refreshed: {', '.join(result.refreshed) or 'none'}")
    if result.failed:
        click.echo(f"Failed:    {', '.join(result.failed)}")


@click.command()
@click.confirmation_option(prompt="Replace every position with the demo portfolio?")
@click.pass_obj
def reset(options: dict) -> None:
    """Discard all positions and reload the demo portfolio."""
    from folio.core.cli.common import open_session

    async def _reset() -> None:
        session = await open_session(options)
        try:
            session.reset_to_demo()
        finally:
            await session.stop()

    asyncio.run(_reset())
    click.echo("Portfolio reset to demo positions.")
