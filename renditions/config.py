"""
Turn django.conf.settings into the explicit collaborators a job needs.

Nothing here is cached at module level; each job builds its own clients.
"""
import json

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .engine import FFmpegEngine
from .models import DEFAULT_CATALOG, JobDescriptor, OutputMode, RenditionProfile
from .s3 import BlobStore, get_s3_client
from .serializers import RenditionCatalogSerializer
from .status import StatusReporter


def load_catalog(raw: str = None, output_mode: str = None) -> list:
    """
    Parse RENDITION_CATALOG (JSON list) if set, otherwise return the default
    ladder in output_mode. Invalid catalogs fail the job before any I/O.
    """
    raw = settings.RENDITION_CATALOG if raw is None else raw
    output_mode = output_mode or settings.RENDITION_OUTPUT_MODE

    if raw and raw.strip():
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ImproperlyConfigured(f"RENDITION_CATALOG is not valid JSON: {e}")
        ser = RenditionCatalogSerializer(data=data)
        if not ser.is_valid():
            raise ImproperlyConfigured(f"RENDITION_CATALOG is invalid: {ser.errors}")
        return ser.save()

    if output_mode not in OutputMode.values:
        raise ImproperlyConfigured(
            f"RENDITION_OUTPUT_MODE must be one of {OutputMode.values}, got {output_mode!r}"
        )
    return [RenditionProfile(p.name, p.width, p.height, output_mode) for p in DEFAULT_CATALOG]


def build_job(bucket: str = None, key: str = None) -> JobDescriptor:
    bucket = bucket or settings.S3_BUCKET
    key = key or settings.KEY
    if not bucket:
        raise ImproperlyConfigured("Missing required setting: S3_BUCKET")
    if not key:
        raise ImproperlyConfigured("Missing required setting: KEY")
    return JobDescriptor.from_key(
        bucket,
        key,
        status_endpoint=settings.VIDEO_STATUS_API,
        output_root=settings.RENDITION_KEY_ROOT,
    )


def build_store(bucket: str) -> BlobStore:
    client = get_s3_client(
        access_key=settings.S3_ACCESS_KEY,
        secret_key=settings.S3_SECRET_KEY,
        region=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
    )
    return BlobStore(client, bucket, chunk_size=settings.FETCH_CHUNK_SIZE)


def build_reporter(endpoint: str) -> StatusReporter:
    return StatusReporter(
        endpoint,
        id_field=settings.STATUS_ID_FIELD,
        timeout=settings.STATUS_TIMEOUT_SECONDS,
    )


def build_engine() -> FFmpegEngine:
    return FFmpegEngine(settings.FFMPEG_BINARY)
