"""Command line tool for inspecting and converting relation plans."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import click

from ..codec import RelationCodec
from ..config import Config, load_config
from ..errors import PlanError, StructuralError
from ..plan import Relation, explain
from ..utils.logging import get_contextual_logger, setup_logging_from_config
from ..validator import RelationValidator


class PlanTool:
    """Wraps codec and validator built from one configuration."""

    def __init__(self, config: Config):
        self.config = config
        self.codec = RelationCodec(config.codec)
        self.validator = RelationValidator(config.validator)

    def load(self, path: str) -> Relation:
        """Read a plan file; ``.json`` files are protobuf JSON, others binary."""
        logger = get_contextual_logger(__name__, {"plan_file": path})
        file_path = Path(path)
        if self._is_json(file_path):
            relation = self.codec.from_json(file_path.read_text())
        else:
            relation = self.codec.decode(file_path.read_bytes())
        logger.info(f"Loaded {relation.variant_name()} plan from {path}")
        return relation

    def write_binary(self, relation: Relation, path: str) -> int:
        data = self.codec.encode(relation)
        Path(path).write_bytes(data)
        return len(data)

    def _is_json(self, path: Path) -> bool:
        return path.suffix.lower() == ".json"


def _build_config(
    config_path: Optional[str], log_level: Optional[str], json_logs: bool
) -> Config:
    if config_path:
        config = load_config(config_path)
    else:
        config = Config()
    if log_level:
        config.logging.level = log_level
    if json_logs:
        config.logging.structured = True
    return config


def _report(ctx: click.Context, exc: PlanError) -> NoReturn:
    click.echo(f"error: {exc}", err=True)
    ctx.exit(1)


@click.group()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML config file.",
)
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.option("--json-logs", is_flag=True, help="Emit structured JSON logs.")
@click.pass_context
def cli(
    ctx: click.Context, config_path: Optional[str], log_level: Optional[str], json_logs: bool
) -> None:
    """Encode, decode, validate and explain relation plans."""
    config = _build_config(config_path, log_level, json_logs)
    setup_logging_from_config(config.logging)
    ctx.obj = PlanTool(config)


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o",
    "--output",
    required=True,
    type=click.Path(dir_okay=False, writable=True),
    help="Where to write the binary plan.",
)
@click.pass_context
def encode(ctx: click.Context, source: str, output: str) -> None:
    """Convert a plan file to the binary wire format."""
    tool: PlanTool = ctx.obj
    try:
        relation = tool.load(source)
        size = tool.write_binary(relation, output)
    except PlanError as exc:
        _report(ctx, exc)
    click.echo(f"Wrote {size} bytes to {output}")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def decode(ctx: click.Context, source: str) -> None:
    """Print a plan file as JSON."""
    tool: PlanTool = ctx.obj
    try:
        relation = tool.load(source)
        text = tool.codec.to_json(relation)
    except PlanError as exc:
        _report(ctx, exc)
    click.echo(text)


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx: click.Context, source: str) -> None:
    """Check a plan file for structural errors."""
    tool: PlanTool = ctx.obj
    try:
        relation = tool.load(source)
        tool.validator.validate(relation)
    except StructuralError as exc:
        click.echo(f"invalid: {exc}")
        ctx.exit(1)
    except PlanError as exc:
        _report(ctx, exc)
    click.echo("valid")


@cli.command(name="explain")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def explain_command(ctx: click.Context, source: str) -> None:
    """Print a plan file as an indented tree."""
    tool: PlanTool = ctx.obj
    try:
        relation = tool.load(source)
    except PlanError as exc:
        _report(ctx, exc)
    for line in explain(relation):
        click.echo(line)


if __name__ == "__main__":
    cli()
