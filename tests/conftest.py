import io
import os
from pathlib import Path

import django
import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "transcode_worker.settings")
django.setup()

from renditions.errors import EngineError  # noqa: E402
from renditions.models import JobDescriptor, LocalArtifact, OutputMode  # noqa: E402
from renditions.utils import MP4_CONTENT_TYPE, guess_content_type  # noqa: E402

SOURCE_KEY = "vidsphere/owner-1/video/job-42/holiday.mp4"
SOURCE_BYTES = b"original-video-bytes" * 100


class FakeBody:
    def __init__(self, data: bytes):
        self._stream = io.BytesIO(data)
        self.closed = False

    def iter_chunks(self, chunk_size=1024):
        while True:
            chunk = self._stream.read(chunk_size)
            if not chunk:
                break
            yield chunk

    def close(self):
        self.closed = True


class FakeS3Client:
    """In-memory stand-in for the handful of boto3 S3 calls the worker makes."""

    def __init__(self):
        self.objects = {}
        self.content_types = {}
        self.fail_upload_keys = set()
        self.fail_get = False
        self.fail_delete = False
        self.calls = []
        self.bodies = []

    def get_object(self, Bucket, Key):
        self.calls.append(("get", Key))
        if self.fail_get or (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        body = FakeBody(self.objects[(Bucket, Key)])
        self.bodies.append(body)
        return {"Body": body}

    def upload_file(self, Filename, Bucket, Key, ExtraArgs=None):
        self.calls.append(("put", Key))
        if Key in self.fail_upload_keys:
            # boto3 transfers wrap the ClientError
            raise S3UploadFailedError(f"Failed to upload {Filename} to {Bucket}/{Key}: An error occurred (InternalError)")
        self.objects[(Bucket, Key)] = Path(Filename).read_bytes()
        self.content_types[(Bucket, Key)] = (ExtraArgs or {}).get("ContentType")

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete", Key))
        if self.fail_delete:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "nope"}}, "DeleteObject")
        self.objects.pop((Bucket, Key), None)

    def keys(self, bucket="media"):
        return sorted(k for b, k in self.objects if b == bucket)


class FakeEngine:
    """Writes tiny placeholder outputs instead of running ffmpeg."""

    def __init__(self, fail_on=None, segments=3):
        self.fail_on = fail_on
        self.segments = segments
        self.calls = []
        self.output_dirs = []

    def transcode(self, input_abs, profile, output_dir):
        self.calls.append(profile.name)
        self.output_dirs.append(Path(output_dir))
        assert Path(input_abs).read_bytes() == SOURCE_BYTES
        if profile.name == self.fail_on:
            raise EngineError(f"ffmpeg exited with 1 for {profile.name}", profile=profile.name, returncode=1)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        if profile.output_mode == OutputMode.SEGMENTED_STREAM:
            bundle = output_dir / profile.name
            bundle.mkdir()
            names = ["index.m3u8"] + [f"{profile.name}_{i:03d}.ts" for i in range(self.segments)]
            artifacts = []
            for name in names:
                p = bundle / name
                p.write_bytes(name.encode())
                artifacts.append(LocalArtifact(p, f"{profile.name}/{name}", guess_content_type(name)))
            return artifacts
        out = output_dir / f"{profile.name}.mp4"
        out.write_bytes(profile.name.encode())
        return [LocalArtifact(out, out.name, MP4_CONTENT_TYPE)]


class RecordingReporter:
    def __init__(self):
        self.calls = []

    def report(self, job_id, status):
        self.calls.append((job_id, str(status)))

    def close(self):
        pass


@pytest.fixture
def s3_client():
    client = FakeS3Client()
    client.objects[("media", SOURCE_KEY)] = SOURCE_BYTES
    return client


@pytest.fixture
def job():
    return JobDescriptor.from_key("media", SOURCE_KEY, status_endpoint="http://status.local/videos")


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def work_root(tmp_path):
    root = tmp_path / "work"
    root.mkdir()
    return root
