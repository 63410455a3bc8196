from dataclasses import dataclass, field
from pathlib import Path

from django.db import models

from .utils import derive_base_path, parse_source_key


class JobStatus(models.TextChoices):
    # Literals are read by the status service; do not rename.
    TRANSCODING = "transcoding"
    COMPLETED = "completed"


class OutputMode(models.TextChoices):
    SINGLE_FILE = "single_file"
    SEGMENTED_STREAM = "segmented_stream"


@dataclass(frozen=True)
class RenditionProfile:
    name: str
    width: int
    height: int
    output_mode: str = OutputMode.SINGLE_FILE

    @property
    def size(self) -> str:
        return f"{self.width}x{self.height}"


# Ordered smallest first so cheap renditions land before expensive ones.
DEFAULT_CATALOG = (
    RenditionProfile("360p", 480, 360),
    RenditionProfile("480p", 858, 480),
    RenditionProfile("720p", 1280, 720),
    RenditionProfile("1080p", 1920, 1080),
)


@dataclass(frozen=True)
class JobDescriptor:
    bucket: str
    source_key: str
    job_id: str
    owner_id: str
    base_path: str
    status_endpoint: str = ""

    @classmethod
    def from_key(cls, bucket: str, key: str, *, status_endpoint: str = "", output_root: str = "") -> "JobDescriptor":
        """Build a descriptor, rejecting keys that do not carry owner and job ids."""
        parts = parse_source_key(key)
        return cls(
            bucket=bucket,
            source_key=key,
            job_id=parts.job_id,
            owner_id=parts.owner_id,
            base_path=derive_base_path(parts, output_root=output_root),
            status_endpoint=status_endpoint,
        )

    @property
    def source_name(self) -> str:
        return self.source_key.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class LocalArtifact:
    """One file on local disk waiting to be published."""

    path: Path
    # Key suffix below the rendition's published prefix.
    relative_name: str
    content_type: str


@dataclass
class JobResult:
    job_id: str
    published_keys: list = field(default_factory=list)
