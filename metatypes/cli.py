"""CLI entrypoint for metatypes."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import MetaTypesConfig, build_registry, find_config, load_config


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="metatypes")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to metatypes.toml (defaults to the nearest one above the cwd)",
)
@click.option("--verbose", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """metatypes - Runtime type registry and constraint engine.

    Inspect registered types and providers, and check placements and values
    against the bootstrapped registry.
    """
    ctx.ensure_object(dict)
    if config_path is None:
        config_path = find_config(Path.cwd())
    elif not config_path.exists():
        raise click.BadParameter(f"File '{config_path}' does not exist.", param_hint="--config / -c")

    try:
        config = load_config(config_path) if config_path is not None else MetaTypesConfig()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    _configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj["config"] = config


def _registry(ctx: click.Context):
    """Build the registry on first use so ``--help`` never bootstraps."""
    if "registry" not in ctx.obj:
        try:
            ctx.obj["registry"] = build_registry(ctx.obj["config"])
        except (OSError, ValueError) as e:
            raise click.ClickException(str(e)) from e
    return ctx.obj["registry"]


@cli.command()
@click.option("--family", "-f", default=None, help="Only list types of this family (e.g. field)")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def types(ctx: click.Context, family: str | None, output_json: bool) -> None:
    """List registered types.

    Examples:

        metatypes types

        metatypes types --family field --json
    """
    from .commands.types_cmd import run_types

    sys.exit(run_types(_registry(ctx), family=family, json_output=output_json))


@cli.command("type-info")
@click.argument("type_name")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def type_info(ctx: click.Context, type_name: str, output_json: bool) -> None:
    """Show lineage, child rules and attributes of TYPE_NAME (e.g. field.string)."""
    from .commands.types_cmd import run_type_info

    sys.exit(run_type_info(_registry(ctx), type_name, json_output=output_json))


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def providers(ctx: click.Context, output_json: bool) -> None:
    """Show provider load order and bootstrap status."""
    from .commands.types_cmd import run_providers

    sys.exit(run_providers(_registry(ctx), json_output=output_json))


@cli.command("check-placement")
@click.argument("parent")
@click.argument("child")
@click.argument("name", required=False)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def check_placement(ctx: click.Context, parent: str, child: str, name: str | None, output_json: bool) -> None:
    """Check whether CHILD named NAME may be placed under PARENT.

    Examples:

        metatypes check-placement object.pojo field.string email

        metatypes check-placement field.string attr.int maxLength
    """
    from .commands.types_cmd import run_check_placement

    sys.exit(run_check_placement(_registry(ctx), parent, child, name, json_output=output_json))


@cli.command("check-value")
@click.argument("type_name")
@click.argument("attribute")
@click.argument("value")
@click.option("--name", "node_name", default="", help="Name of the node being validated")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def check_value(
    ctx: click.Context, type_name: str, attribute: str, value: str, node_name: str, output_json: bool
) -> None:
    """Validate VALUE for ATTRIBUTE on a node of TYPE_NAME.

    Examples:

        metatypes check-value field.string maxLength -- -1
    """
    from .commands.types_cmd import run_check_value

    sys.exit(
        run_check_value(_registry(ctx), type_name, attribute, value, node_name=node_name, json_output=output_json)
    )


@cli.command()
@click.option("--strict", is_flag=True, help="Treat warnings as failures (for CI)")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def health(ctx: click.Context, strict: bool, output_json: bool) -> None:
    """Report structural health of the registry."""
    from .commands.types_cmd import run_health

    sys.exit(run_health(_registry(ctx), strict=strict, json_output=output_json))


if __name__ == "__main__":
    cli()
