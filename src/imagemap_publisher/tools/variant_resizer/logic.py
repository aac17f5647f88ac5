"""Imagemap variant resizing — one source image, one file per target width."""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path

import anyio
import anyio.to_thread
from PIL import Image

from imagemap_publisher.core.datatypes import ImageData, VariantSet
from imagemap_publisher.core.events import EventBus
from imagemap_publisher.core.exceptions import ConversionError, ValidationError

logger = logging.getLogger(__name__)

# ── Constants ─────────────────────────────────────────────────────────────

# Widths required by the LINE Messaging API imagemap message.
WIDTH_SETS: dict[str, tuple[int, ...]] = {
    "line": (1040, 700, 460, 300, 240),
}

DEFAULT_WIDTH_SET = "line"

RESAMPLE_FILTERS: dict[str, Image.Resampling] = {
    "lanczos": Image.Resampling.LANCZOS,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "nearest": Image.Resampling.NEAREST,
}

DEFAULT_RESAMPLE = "lanczos"

_FALLBACK_FORMAT = "PNG"


# ── Layout ────────────────────────────────────────────────────────────────


def scratch_dir_for(source: Path) -> Path:
    """Return the default scratch root: ``tmp-<stem>`` beside the source."""
    return source.parent / f"tmp-{source.stem}"


def variant_dir_for(source: Path, scratch_dir: Path) -> Path:
    """Return the per-image directory ``<scratch_dir>/<stem>``."""
    return scratch_dir / source.stem


def widths_for(width_set: str) -> tuple[int, ...]:
    """Look up a named width set.

    Raises:
        ValidationError: If *width_set* is not a recognised name.
    """
    try:
        return WIDTH_SETS[width_set]
    except KeyError:
        msg = f"Invalid width set '{width_set}'. Choose from: {sorted(WIDTH_SETS)}"
        raise ValidationError(msg) from None


# ── Single variant ────────────────────────────────────────────────────────


def resize_variant(
    source: Path,
    output_path: Path,
    width: int,
    *,
    resample: str = DEFAULT_RESAMPLE,
) -> ImageData:
    """Resize *source* to *width* pixels wide and write it to *output_path*.

    The height follows the source aspect ratio.  Variant files carry no
    extension, so the encoder is chosen from the source's own format.

    Args:
        source: Path to the source image.
        output_path: Destination file, conventionally named by the width.
        width: Target width in pixels.
        resample: Resampling filter name.

    Returns:
        An ``ImageData`` describing the written variant.

    Raises:
        ConversionError: If the source cannot be decoded or the variant
            cannot be written.
    """
    if resample not in RESAMPLE_FILTERS:
        msg = f"Invalid resample filter '{resample}'. Choose from: {sorted(RESAMPLE_FILTERS)}"
        raise ValidationError(msg)

    try:
        with Image.open(source) as img:
            fmt = img.format or _FALLBACK_FORMAT
            height = max(1, round(img.height * width / img.width))
            resized = img.resize((width, height), resample=RESAMPLE_FILTERS[resample])
    except Exception as exc:
        msg = f"Image '{source}' could not be decoded"
        raise ConversionError(msg) from exc

    try:
        resized.save(output_path, format=fmt)
    except Exception as exc:
        msg = f"Failed to write variant '{output_path}'"
        raise ConversionError(msg) from exc

    return ImageData(path=output_path, width=resized.width, height=resized.height, format=fmt.lower())


# ── Whole width set ───────────────────────────────────────────────────────


async def convert_variants(
    source: Path,
    scratch_dir: Path,
    *,
    widths: tuple[int, ...] = WIDTH_SETS[DEFAULT_WIDTH_SET],
    resample: str = DEFAULT_RESAMPLE,
    event_bus: EventBus | None = None,
) -> VariantSet:
    """Produce one variant per width, all widths in flight at once.

    Every resize is allowed to finish before the outcome is decided; if
    any of them failed, the first failure in width order is raised and
    whatever was already written stays on disk.

    Args:
        source: Path to the source image.
        scratch_dir: Scratch root; variants go to ``<scratch_dir>/<stem>``.
        widths: Target widths, in the order results are returned.
        resample: Resampling filter name.
        event_bus: Optional event bus for progress events.

    Returns:
        A ``VariantSet`` whose variants follow the order of *widths*.

    Raises:
        ConversionError: If the directory cannot be created or any width fails.
        ValidationError: If *resample* or *widths* is invalid.
    """
    if resample not in RESAMPLE_FILTERS:
        msg = f"Invalid resample filter '{resample}'. Choose from: {sorted(RESAMPLE_FILTERS)}"
        raise ValidationError(msg)
    if not widths or any(width < 1 for width in widths):
        msg = f"Widths must be positive, got {widths}"
        raise ValidationError(msg)

    target_dir = variant_dir_for(source, scratch_dir)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Could not create variant directory '{target_dir}'"
        raise ConversionError(msg) from exc

    total = len(widths)
    results: list[ImageData | None] = [None] * total
    errors: list[ConversionError | None] = [None] * total
    finished = 0

    async def _convert(idx: int, width: int) -> None:
        nonlocal finished
        output_path = target_dir / str(width)
        logger.info("Converting %s to %s", source, output_path)
        try:
            results[idx] = await anyio.to_thread.run_sync(
                partial(resize_variant, source, output_path, width, resample=resample)
            )
        except ConversionError as exc:
            logger.error("Conversion to width %d failed: %s", width, exc)
            errors[idx] = exc
            return

        finished += 1
        if event_bus is not None:
            event_bus.emit(
                "progress",
                tool="variant_resizer",
                current=finished,
                total=total,
                message=f"Converted {source.name} to {output_path}",
            )

    async with anyio.create_task_group() as tg:
        for idx, width in enumerate(widths):
            tg.start_soon(_convert, idx, width)

    for error in errors:
        if error is not None:
            raise error

    variants = tuple(image for image in results if image is not None)

    if event_bus is not None:
        event_bus.emit(
            "completed",
            tool="variant_resizer",
            message=f"Done, {len(variants)} variants in {target_dir}",
        )

    return VariantSet(source=source, output_dir=target_dir, variants=variants)


def convert_image(
    source: Path,
    scratch_dir: Path,
    *,
    widths: tuple[int, ...] = WIDTH_SETS[DEFAULT_WIDTH_SET],
    resample: str = DEFAULT_RESAMPLE,
    event_bus: EventBus | None = None,
) -> VariantSet:
    """Blocking entry point for ``convert_variants``."""
    return anyio.run(
        partial(
            convert_variants,
            source,
            scratch_dir,
            widths=widths,
            resample=resample,
            event_bus=event_bus,
        )
    )
