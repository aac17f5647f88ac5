"""VariantUploaderTool — BaseTool wrapper for publishing variants."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from imagemap_publisher.core.base_tool import BaseTool, ToolParameter
from imagemap_publisher.core.datatypes import PathList, UploadResult, VariantSet
from imagemap_publisher.core.events import EventBus
from imagemap_publisher.core.exceptions import ValidationError
from imagemap_publisher.core.storage import GcsStorage, ObjectStorage
from imagemap_publisher.tools.variant_uploader.logic import CONTENT_TYPE, upload_batch


class VariantUploaderTool(BaseTool):
    """Upload resized variants to ``gs://<bucket>/<prefix>/<width>``."""

    name = "variant_uploader"
    display_name = "Variant Uploader"
    description = "Upload imagemap variants to a Cloud Storage bucket"
    version = "0.1.0"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        super().__init__(event_bus=event_bus)

    def define_parameters(self) -> list[ToolParameter]:
        """Return the parameter schema for uploading."""
        return [
            ToolParameter(name="bucket", required=True),
            ToolParameter(name="prefix", required=True),
            ToolParameter(name="paths"),
            ToolParameter(name="storage"),
            ToolParameter(name="project"),
        ]

    def input_types(self) -> list[type]:
        """Accept a ``VariantSet`` from the resizer or a plain ``PathList``."""
        return [VariantSet, PathList]

    def output_types(self) -> list[type]:
        """Terminal stage: produce an ``UploadResult``."""
        return [UploadResult]

    def validate(self, params: dict[str, Any], input_data: Any = None) -> None:
        """Check bucket, prefix and that there is something to upload.

        Raises:
            ValidationError: If a required parameter is missing or no
                files were supplied.
        """
        super().validate(params, input_data)
        if not params["bucket"]:
            msg = "Parameter 'bucket' must not be empty"
            raise ValidationError(msg)
        if not self._paths(params, input_data):
            msg = "Nothing to upload: pass 'paths' or pipe in a VariantSet"
            raise ValidationError(msg)

    def _do_execute(self, params: dict[str, Any], input_data: Any) -> UploadResult:
        storage: ObjectStorage = params.get("storage") or GcsStorage(project=params.get("project"))
        return upload_batch(
            storage,
            params["bucket"],
            params["prefix"],
            self._paths(params, input_data),
            content_type=CONTENT_TYPE,
            event_bus=self.event_bus,
        )

    @staticmethod
    def _paths(params: dict[str, Any], input_data: Any) -> list[Path]:
        if isinstance(input_data, (VariantSet, PathList)):
            return list(input_data.paths)
        return [Path(p) for p in params.get("paths") or []]
