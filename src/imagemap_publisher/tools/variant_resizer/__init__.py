"""Variant Resizer tool — renders a source image at every imagemap width."""

from imagemap_publisher.tools.variant_resizer.tool import VariantResizerTool

__all__ = ["VariantResizerTool"]
