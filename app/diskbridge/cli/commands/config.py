"""Configuration commands.

Provides commands to show, locate and create the diskbridge config file.
"""

from typing import Annotated

import tomli_w
import typer

from diskbridge.core.config import ConfigError, DiskBridgeConfig, load_config, save_config
from diskbridge.core.paths import get_config_path
from diskbridge.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and create the configuration file.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Print the effective configuration as TOML."""
    try:
        config = load_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not get_config_path().exists():
        print_info("No config file; showing defaults.")
    console.print(
        tomli_w.dumps(config.model_dump(mode="json", exclude_none=True)),
        markup=False,
        highlight=False,
    )


@app.command()
def path() -> None:
    """Print the config file location."""
    typer.echo(str(get_config_path()))


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with all default values."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_error(f"Config already exists: {config_path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        saved = save_config(DiskBridgeConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Config written to {saved}")
