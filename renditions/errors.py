class JobError(RuntimeError):
    """Base class for failures that abort a transcoding job."""


class StoreError(JobError):
    """An object store call failed."""

    def __init__(self, message: str, *, bucket: str = "", key: str = ""):
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class FetchError(StoreError):
    """The source object could not be streamed to local storage."""


class PublishError(StoreError):
    """A rendition artifact could not be stored."""


class EngineError(JobError):
    """ffmpeg failed to produce a rendition."""

    def __init__(self, message: str, *, profile: str = "", returncode=None, stderr: str = ""):
        super().__init__(message)
        self.profile = profile
        self.returncode = returncode
        # Keep the tail; ffmpeg puts the actual cause last.
        self.stderr = stderr[-4000:]


class KeyFormatError(ValueError):
    """The source key does not follow <root>/<ownerId>/video/<jobId>/<name>."""
