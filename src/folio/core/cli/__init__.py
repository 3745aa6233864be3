"""Folio CLI: inspect and edit the local portfolio, or run the live tick loop."""

import click

from folio import __version__


@click.group()
@click.version_option(version=__version__, package_name="folio-tracker")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="YAML or JSON config file.")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Where the portfolio snapshot is kept.")
@click.option("--offline", is_flag=True, help="Never contact the quote gateway; simulate every price.")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, data_dir: str | None, offline: bool) -> None:
    """Folio: a local portfolio tracker with simulated and real prices."""
    ctx.ensure_object(dict)
    ctx.obj.update(config_file=config_file, data_dir=data_dir, offline=offline)


# Register subcommands (lazy imports keep startup fast)
from .portfolio_cmd import add, buy, refresh, remove, reset, sell, show
from .run_cmd import run

main.add_command(show)
main.add_command(add)
main.add_command(buy)
main.add_command(sell)
main.add_command(remove)
main.add_command(refresh)
main.add_command(reset)
main.add_command(run)
