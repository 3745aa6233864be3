"""folio run: keep the portfolio live, ticking prices on a schedule."""

from __future__ import annotations

import asyncio

import click


@click.command()
@click.option("--iterations", type=int, default=0, help="Stop after this many updates (0 runs until Ctrl+C).")
@click.pass_obj
def run(options: dict, iterations: int) -> None:
    """Run the tick loop and print portfolio totals after every tick."""
    try:
        asyncio.run(_run(options, iterations))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


async def _run(options: dict, iterations: int) -> None:
    from folio.core.cli.common import open_session, render_stats

    session = await open_session(options)
    scheduler = session.scheduler
    click.echo(f"Ticking every {scheduler.tick_seconds:g}s. Press Ctrl+C to stop.\n")
    session.start()
    try:
        if scheduler.refresh_enabled:
            await session.refresh_real()
        count = 0
        while iterations <= 0 or count < iterations:
            await asyncio.sleep(scheduler.tick_seconds)
            click.echo(render_stats(session))
            click.echo()
            count += 1
    finally:
        await session.stop()
