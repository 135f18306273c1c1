"""Command-line entry point for systop."""

from pathlib import Path

import click

from systop.config import Config


@click.command()
@click.version_option(package_name="systop")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to TOML config file (default: ~/.config/systop/config.toml).",
)
@click.option(
    "--background-refresh/--no-background-refresh",
    default=None,
    help="Read the process table in a worker thread instead of the draw loop.",
)
@click.option("--dump-config", is_flag=True, help="Print the default config and exit.")
def main(config_path: Path | None, background_refresh: bool | None, dump_config: bool) -> None:
    """Live process and CPU monitor for the terminal."""
    if dump_config:
        click.echo(Config().to_toml(), nl=False)
        return

    try:
        config = Config.load(config_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    if background_refresh is not None:
        config.monitor.background_refresh = background_refresh

    from systop.app import SystopApp
    from systop.logging import configure, get_logger

    log_path = configure(config)
    log = get_logger(__name__)
    log.info("session_started", log_path=str(log_path), **vars(config.monitor))

    app = SystopApp(config)
    app.run()
    if app.return_code:
        log.error("session_failed", return_code=app.return_code)
        raise SystemExit(app.return_code)
