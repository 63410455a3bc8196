import mimetypes
from typing import NamedTuple

from .errors import KeyFormatError

VIDEO_SEGMENT = "video"

MP4_CONTENT_TYPE = "video/mp4"
HLS_CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/MP2T",
    ".m2ts": "video/MP2T",
}


class SourceKey(NamedTuple):
    root: str
    owner_id: str
    job_id: str
    original_name: str


def parse_source_key(key: str) -> SourceKey:
    """
    Split <root>/<ownerId>/video/<jobId>/<originalName> into its parts.
    Anything else is rejected; ids are never guessed from a malformed key.
    """
    parts = (key or "").split("/")
    if len(parts) != 5 or any(not p for p in parts):
        raise KeyFormatError(
            f"Source key {key!r} must look like <root>/<ownerId>/video/<jobId>/<originalName>"
        )
    root, owner_id, marker, job_id, original_name = parts
    if marker != VIDEO_SEGMENT:
        raise KeyFormatError(f"Source key {key!r} has {marker!r} where {VIDEO_SEGMENT!r} was expected")
    return SourceKey(root, owner_id, job_id, original_name)


def derive_base_path(parts: SourceKey, output_root: str = "") -> str:
    root = output_root.strip("/") or parts.root
    return f"{root}/{parts.owner_id}/{VIDEO_SEGMENT}/{parts.job_id}"


def rendition_key(base_path: str, relative_name: str) -> str:
    """
    relative_name is "<name>.mp4" for single-file renditions and
    "<name>/<file>" for members of a segmented bundle.
    """
    return f"{base_path}/{relative_name}".replace("\\", "/")  # Windows safety


def guess_content_type(path: str, default: str = MP4_CONTENT_TYPE) -> str:
    """Content-Type for an artifact, with the HLS types mimetypes may not know."""
    lowered = path.lower()
    for suffix, ctype in HLS_CONTENT_TYPES.items():
        if lowered.endswith(suffix):
            return ctype
    mime, _ = mimetypes.guess_type(path)
    return mime or default
