import logging

from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from renditions.errors import JobError, KeyFormatError
from renditions.tasks import run_job

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Transcode one source object into the configured renditions and publish them. "
        "Bucket and key default to S3_BUCKET and KEY from the environment."
    )
    requires_system_checks = []

    def add_arguments(self, parser):
        parser.add_argument("--bucket", default=None, help="Bucket holding the source object.")
        parser.add_argument("--key", default=None, help="<root>/<ownerId>/video/<jobId>/<originalName>")

    def handle(self, *args, **options):
        try:
            result = run_job(options["bucket"], options["key"])
        except (ImproperlyConfigured, KeyFormatError) as e:
            raise CommandError(str(e))
        except JobError as e:
            raise CommandError(f"Transcoding failed: {e}")

        self.stdout.write(
            self.style.SUCCESS(
                f"Transcoding complete for job {result.job_id}: {len(result.published_keys)} objects published"
            )
        )
