"""CLI entry point — click group with the ``publish`` and ``resize`` commands."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import click

from imagemap_publisher.core.config import ConfigManager
from imagemap_publisher.core.events import EventBus
from imagemap_publisher.core.exceptions import ToolboxError
from imagemap_publisher.core.pipeline import Pipeline
from imagemap_publisher.core.registry import ToolRegistry
from imagemap_publisher.core.storage import GcsStorage
from imagemap_publisher.tools.variant_resizer.logic import (
    DEFAULT_RESAMPLE,
    DEFAULT_WIDTH_SET,
    RESAMPLE_FILTERS,
    scratch_dir_for,
)

logger = logging.getLogger(__name__)

# Not resolved: a symlinked source keeps its own directory and name.
_SOURCE_TYPE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _console_bus() -> EventBus:
    """Create an event bus that echoes tool events to the console."""
    bus = EventBus()
    bus.subscribe("progress", lambda **kw: click.echo(f"  [{kw['current']}/{kw['total']}] {kw['message']}"))
    bus.subscribe("error", lambda **kw: click.echo(f"  ERROR {kw['message']}", err=True))
    return bus


def _resizer_params(config: ConfigManager, source: Path, scratch_dir: Path, resample: str | None) -> dict:
    return {
        "source": source,
        "scratch_dir": scratch_dir,
        "width_set": config.get("width_set", tool="variant_resizer", default=DEFAULT_WIDTH_SET),
        "resample": config.resolve("resample", resample, tool="variant_resizer", default=DEFAULT_RESAMPLE),
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="imagemap-publisher")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output to stderr.")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Configuration directory (default: ~/.config/imagemap-publisher).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_dir: Path | None) -> None:
    """Imagemap Publisher — resize an image for imagemap messages and upload it."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = ConfigManager(config_dir=config_dir)
    try:
        config.load()
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc
    logger.debug("Using configuration directory %s", config.config_dir)
    ctx.obj = config


@cli.command(name="publish")
@click.option("-b", "--bucket", required=True, help="Bucket name.")
@click.option("-t", "--to", "prefix", required=True, help="Target path inside the bucket.")
@click.option("-f", "--from", "source", required=True, type=_SOURCE_TYPE, help="Image path.")
@click.option(
    "-r",
    "--resample",
    default=None,
    type=click.Choice(sorted(RESAMPLE_FILTERS)),
    help="Resampling filter (default: lanczos).",
)
@click.option(
    "--cleanup/--keep",
    default=None,
    help="Remove the tmp-<name> scratch directory when done (default: keep).",
)
@click.pass_obj
def publish_cmd(
    config: ConfigManager,
    bucket: str,
    prefix: str,
    source: Path,
    resample: str | None,
    cleanup: bool | None,
) -> None:
    """Resize an image to every imagemap width and upload the variants.

    Variants are staged in 'tmp-NAME/NAME/' next to the image and uploaded
    to gs://BUCKET/TO/WIDTH.
    """
    source_path = source.absolute()
    scratch_dir = scratch_dir_for(source_path)
    cleanup = config.resolve("cleanup", cleanup, default=False)

    bus = _console_bus()
    registry = ToolRegistry()
    registry.discover(event_bus=bus)

    storage = GcsStorage(project=config.get("project", tool="variant_uploader"))

    pipeline = Pipeline(name="imagemap")
    pipeline.add_stage("variant_resizer", _resizer_params(config, source_path, scratch_dir, resample))
    pipeline.add_stage("variant_uploader", {"bucket": bucket, "prefix": prefix, "storage": storage})

    try:
        result = pipeline.run()
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        if cleanup:
            logger.info("Removing scratch directory %s", scratch_dir)
            shutil.rmtree(scratch_dir, ignore_errors=True)

    if not result.ok:
        total = len(result.uploaded) + len(result.failed)
        msg = f"{len(result.failed)} of {total} uploads failed"
        raise click.ClickException(msg)

    click.echo(f"Published {len(result.uploaded)} variants to gs://{bucket}/{prefix.strip('/')}")


@cli.command(name="resize")
@click.option("-f", "--from", "source", required=True, type=_SOURCE_TYPE, help="Image path.")
@click.option(
    "-o",
    "--output",
    "scratch_dir",
    type=click.Path(file_okay=False, resolve_path=True),
    default=None,
    help="Scratch root (default: 'tmp-NAME/' next to the image).",
)
@click.option(
    "-r",
    "--resample",
    default=None,
    type=click.Choice(sorted(RESAMPLE_FILTERS)),
    help="Resampling filter (default: lanczos).",
)
@click.pass_obj
def resize_cmd(config: ConfigManager, source: Path, scratch_dir: str | None, resample: str | None) -> None:
    """Resize an image to every imagemap width without uploading."""
    from imagemap_publisher.tools.variant_resizer import VariantResizerTool

    source_path = source.absolute()
    scratch = Path(scratch_dir) if scratch_dir else scratch_dir_for(source_path)

    tool = VariantResizerTool(event_bus=_console_bus())
    try:
        result = tool.run(params=_resizer_params(config, source_path, scratch, resample))
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Converted {result.count} variants to {result.output_dir}")
