"""VariantResizerTool — BaseTool wrapper for imagemap variant resizing."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from imagemap_publisher.core.base_tool import BaseTool, ToolParameter
from imagemap_publisher.core.datatypes import PathList, VariantSet
from imagemap_publisher.core.events import EventBus
from imagemap_publisher.core.exceptions import SourceNotFoundError, ValidationError
from imagemap_publisher.tools.variant_resizer.logic import (
    DEFAULT_RESAMPLE,
    DEFAULT_WIDTH_SET,
    RESAMPLE_FILTERS,
    WIDTH_SETS,
    convert_image,
    scratch_dir_for,
    widths_for,
)


class VariantResizerTool(BaseTool):
    """Resize one source image to every width of an imagemap width set."""

    name = "variant_resizer"
    display_name = "Variant Resizer"
    description = "Resize an image to the fixed imagemap widths"
    version = "0.1.0"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        super().__init__(event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for variant resizing."""
        return [
            # May come from a preceding PathList instead.
            ToolParameter(name="source"),
            ToolParameter(name="scratch_dir"),
            ToolParameter(name="width_set", default=DEFAULT_WIDTH_SET, choices=sorted(WIDTH_SETS)),
            ToolParameter(name="resample", default=DEFAULT_RESAMPLE, choices=sorted(RESAMPLE_FILTERS)),
        ]

    def input_types(self) -> list[type]:
        """Accept a ``PathList`` whose first path is the source image."""
        return [PathList]

    def output_types(self) -> list[type]:
        """Produce a ``VariantSet``."""
        return [VariantSet]

    def validate(self, params: dict[str, Any], input_data: Any = None) -> None:
        """Check the parameters and that the source image exists.

        Raises:
            ValidationError: If no source is given or a choice is invalid.
            SourceNotFoundError: If the source is not an existing file.
        """
        super().validate(params, input_data)

        source = self._source(params, input_data)
        if source is None:
            msg = "Parameter 'source' is required"
            raise ValidationError(msg)
        if not source.is_file():
            msg = f"Image file not found: {source}"
            raise SourceNotFoundError(msg)

    def _do_execute(self, params: dict[str, Any], input_data: Any) -> VariantSet:
        source = self._source(params, input_data)
        assert source is not None

        scratch_dir = params.get("scratch_dir")
        scratch_dir = Path(scratch_dir) if scratch_dir is not None else scratch_dir_for(source)

        return convert_image(
            source,
            scratch_dir,
            widths=widths_for(params["width_set"]),
            resample=params["resample"],
            event_bus=self.event_bus,
        )

    @staticmethod
    def _source(params: dict[str, Any], input_data: Any) -> Path | None:
        if isinstance(input_data, PathList) and input_data.paths:
            return Path(input_data.paths[0])
        source = params.get("source")
        return Path(source) if source is not None else None
