import logging
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from celery import shared_task
from django.conf import settings

from . import config
from .errors import JobError, StoreError
from .models import JobDescriptor, JobResult, JobStatus
from .utils import guess_content_type, rendition_key

logger = logging.getLogger(__name__)

SOURCE_FILENAME = "original"


class TranscodeJob:
    """
    Runs one source object through the rendition catalog.

    All local files live in a private working directory created per run and
    removed on every exit path.
    """

    def __init__(self, store, engine, reporter, *, work_root=None, upload_concurrency: int = 4):
        self.store = store
        self.engine = engine
        self.reporter = reporter
        self.work_root = work_root
        self.upload_concurrency = max(1, upload_concurrency)

    def run(self, job: JobDescriptor, catalog) -> JobResult:
        result = JobResult(job_id=job.job_id)
        self.reporter.report(job.job_id, JobStatus.TRANSCODING)

        workdir = Path(tempfile.mkdtemp(prefix=f"transcode-{job.job_id}-", dir=self.work_root))
        try:
            source = self._fetch_source(job, workdir)
            self._reclaim_source(job)
            try:
                for profile in catalog:
                    result.published_keys.extend(self._process_profile(job, source, profile, workdir))
            except Exception:
                logger.exception("Transcoding %s failed; restoring the source object", job.source_key)
                self._restore_source(job, source)
                raise
            self.reporter.report(job.job_id, JobStatus.COMPLETED)
        finally:
            self._cleanup(workdir)

        logger.info("Published %d renditions for job %s", len(catalog), job.job_id)
        return result

    def _fetch_source(self, job: JobDescriptor, workdir: Path) -> Path:
        suffix = Path(job.source_name).suffix
        return self.store.fetch(job.source_key, workdir / f"{SOURCE_FILENAME}{suffix}")

    def _reclaim_source(self, job: JobDescriptor):
        # A failed run re-uploads the source from the local copy.
        try:
            self.store.delete(job.source_key)
        except StoreError as e:
            logger.error("Error deleting source object, continuing: %s", e)

    def _process_profile(self, job: JobDescriptor, source: Path, profile, workdir: Path) -> list:
        out_dir = workdir / "renditions" / profile.name
        try:
            artifacts = self.engine.transcode(source, profile, out_dir)
            keys = self._publish(job, artifacts)
        finally:
            shutil.rmtree(out_dir, ignore_errors=True)
        logger.info("Rendition %s published (%d objects)", profile.name, len(keys))
        return keys

    def _publish(self, job: JobDescriptor, artifacts) -> list:
        """
        Upload every artifact of one rendition. Bundles go up concurrently;
        the first failure is raised once all uploads have settled.
        """
        keyed = [(rendition_key(job.base_path, a.relative_name), a) for a in artifacts]
        if len(keyed) == 1:
            key, artifact = keyed[0]
            self.store.store(key, artifact.path, artifact.content_type)
            return [key]

        workers = min(self.upload_concurrency, len(keyed))
        errors = []
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_map = {
                executor.submit(self.store.store, key, artifact.path, artifact.content_type): key
                for key, artifact in keyed
            }
            for future in as_completed(future_map):
                try:
                    future.result()
                except JobError as e:
                    errors.append(e)
        if errors:
            logger.error("%d of %d uploads failed", len(errors), len(keyed))
            raise errors[0]
        return [key for key, _ in keyed]

    def _restore_source(self, job: JobDescriptor, source: Path):
        try:
            self.store.store(job.source_key, source, guess_content_type(job.source_name))
        except StoreError as e:
            logger.error("Error uploading original video back to S3: %s", e)
            return
        logger.info("Restored source object %s", job.source_key)

    def _cleanup(self, workdir: Path):
        try:
            shutil.rmtree(workdir)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Could not remove working directory %s: %s", workdir, e)


def run_job(bucket: str = None, key: str = None) -> JobResult:
    """Build collaborators from settings and run a single job."""
    job = config.build_job(bucket, key)
    catalog = config.load_catalog()
    reporter = config.build_reporter(job.status_endpoint)
    runner = TranscodeJob(
        config.build_store(job.bucket),
        config.build_engine(),
        reporter,
        work_root=settings.WORK_DIR,
        upload_concurrency=settings.UPLOAD_CONCURRENCY,
    )
    logger.info("Transcoding started for %s (job %s)", job.source_key, job.job_id)
    try:
        return runner.run(job, catalog)
    finally:
        reporter.close()


@shared_task(bind=True)
def transcode_source(self, bucket: str, key: str) -> dict:
    result = run_job(bucket, key)
    return {"job_id": result.job_id, "published": result.published_keys}
