from io import StringIO
from unittest.mock import Mock

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.core.management import CommandError, call_command

from renditions.errors import EngineError, KeyFormatError
from renditions.management.commands import transcode
from renditions.models import JobResult


def test_transcode_command_reports_success(monkeypatch):
    run_job = Mock(return_value=JobResult(job_id="job-42", published_keys=["a", "b"]))
    monkeypatch.setattr(transcode, "run_job", run_job)
    out = StringIO()

    call_command("transcode", "--bucket", "media", "--key", "r/o/video/job-42/in.mp4", stdout=out)

    run_job.assert_called_once_with("media", "r/o/video/job-42/in.mp4")
    assert "job-42: 2 objects published" in out.getvalue()


def test_transcode_command_defaults_to_settings(monkeypatch):
    run_job = Mock(return_value=JobResult(job_id="j"))
    monkeypatch.setattr(transcode, "run_job", run_job)

    call_command("transcode", stdout=StringIO())

    run_job.assert_called_once_with(None, None)


@pytest.mark.parametrize(
    "error",
    [
        EngineError("ffmpeg exited with 1 for 720p", profile="720p", returncode=1),
        KeyFormatError("bad key"),
        ImproperlyConfigured("Missing required setting: S3_BUCKET"),
    ],
)
def test_transcode_command_failure_is_command_error(monkeypatch, error):
    monkeypatch.setattr(transcode, "run_job", Mock(side_effect=error))

    with pytest.raises(CommandError):
        call_command("transcode", stdout=StringIO())
