"""Variant Uploader tool — publishes imagemap variants to Cloud Storage."""

from imagemap_publisher.tools.variant_uploader.tool import VariantUploaderTool

__all__ = ["VariantUploaderTool"]
