"""Value objects passed between the resizer, the uploader and the CLI."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class PathList:
    """An immutable list of filesystem paths fed into a pipeline stage."""

    paths: tuple[Path, ...]

    @property
    def count(self) -> int:
        """Return the number of paths in the list."""
        return len(self.paths)


@dataclass(frozen=True)
class ImageData:
    """Reference to an image file with metadata."""

    path: Path
    width: int
    height: int
    format: str


@dataclass(frozen=True)
class VariantSet:
    """The resized copies of one source image, in width-set order."""

    source: Path
    output_dir: Path
    variants: tuple[ImageData, ...]

    @property
    def count(self) -> int:
        """Return the number of variants produced."""
        return len(self.variants)

    @property
    def paths(self) -> tuple[Path, ...]:
        """Return the variant file paths in width-set order."""
        return tuple(variant.path for variant in self.variants)


@dataclass(frozen=True)
class UploadFailure:
    """A single upload that the object store rejected."""

    path: Path
    destination: str
    error: str


@dataclass(frozen=True)
class UploadResult:
    """Outcome of publishing a batch of variants to a bucket."""

    bucket: str
    prefix: str
    uploaded: tuple[str, ...] = field(default_factory=tuple)
    failed: tuple[UploadFailure, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        """Return ``True`` when every upload succeeded."""
        return not self.failed
