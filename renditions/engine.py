"""
ffmpeg invocation for one source file and one rendition profile.

Single-file profiles produce <name>.mp4. Segmented profiles produce an HLS
bundle in <output_dir>/<name>/: MANIFEST_NAME plus <name>_000.ts,
<name>_001.ts, ... of roughly SEGMENT_SECONDS each.
"""
import logging
import re
import subprocess
from pathlib import Path

from .errors import EngineError
from .models import LocalArtifact, OutputMode, RenditionProfile
from .utils import MP4_CONTENT_TYPE, guess_content_type

logger = logging.getLogger(__name__)

MANIFEST_NAME = "index.m3u8"
SEGMENT_SECONDS = 10
AUDIO_SAMPLE_RATE = 48000
AUDIO_BITRATE = "128k"
SEGMENT_INDEX_DIGITS = 3


class FFmpegEngine:
    def __init__(self, binary: str = "ffmpeg"):
        self.binary = binary

    def transcode(self, input_abs: Path, profile: RenditionProfile, output_dir: Path) -> list:
        """Run ffmpeg for profile and return the artifacts it wrote, manifest first."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        if profile.output_mode == OutputMode.SEGMENTED_STREAM:
            bundle_dir = output_dir / profile.name
            bundle_dir.mkdir(parents=True, exist_ok=True)
            cmd = self.segmented_command(input_abs, profile, bundle_dir)
            self._run(cmd, profile)
            return self._collect_bundle(bundle_dir, profile)

        out_abs = output_dir / f"{profile.name}.mp4"
        cmd = self.single_file_command(input_abs, profile, out_abs)
        self._run(cmd, profile)
        if not out_abs.is_file():
            raise EngineError(f"ffmpeg reported success but {out_abs.name} is missing", profile=profile.name)
        return [LocalArtifact(out_abs, out_abs.name, MP4_CONTENT_TYPE)]

    def single_file_command(self, input_abs: Path, profile: RenditionProfile, out_abs: Path) -> list:
        return [
            self.binary,
            "-y",
            "-i", str(input_abs),
            "-vf", f"scale={profile.width}:{profile.height}",
            "-c:v", "libx264",
            "-c:a", "aac",
            "-f", "mp4",
            str(out_abs),
        ]

    def segmented_command(self, input_abs: Path, profile: RenditionProfile, bundle_dir: Path) -> list:
        segment_pattern = f"{profile.name}_%0{SEGMENT_INDEX_DIGITS}d.ts"
        return [
            self.binary,
            "-y",
            "-i", str(input_abs),
            "-vf", f"scale={profile.width}:{profile.height}",
            "-c:v", "libx264",
            "-c:a", "aac",
            "-ar", str(AUDIO_SAMPLE_RATE),
            "-b:a", AUDIO_BITRATE,
            "-f", "hls",
            "-hls_time", str(SEGMENT_SECONDS),
            "-hls_list_size", "0",
            "-hls_segment_filename", str(bundle_dir / segment_pattern),
            str(bundle_dir / MANIFEST_NAME),
        ]

    def _run(self, cmd: list, profile: RenditionProfile):
        logger.info("Transcoding %s (%s, %s)", profile.name, profile.size, profile.output_mode)
        logger.debug("ffmpeg command: %s", " ".join(cmd))
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except subprocess.CalledProcessError as e:
            err = e.stderr.decode("utf-8", errors="ignore") if e.stderr else str(e)
            raise EngineError(
                f"ffmpeg exited with {e.returncode} for {profile.name}",
                profile=profile.name,
                returncode=e.returncode,
                stderr=err,
            ) from e
        except OSError as e:
            raise EngineError(f"Could not start {self.binary}: {e}", profile=profile.name) from e

    def _collect_bundle(self, bundle_dir: Path, profile: RenditionProfile) -> list:
        manifest = bundle_dir / MANIFEST_NAME
        if not manifest.is_file():
            raise EngineError(f"ffmpeg wrote no {MANIFEST_NAME} for {profile.name}", profile=profile.name)

        pattern = re.compile(rf"^{re.escape(profile.name)}_(\d{{{SEGMENT_INDEX_DIGITS},}})\.ts$")
        indexed = []
        for p in bundle_dir.iterdir():
            m = pattern.match(p.name)
            if m and p.is_file():
                indexed.append((int(m.group(1)), p))
        indexed.sort()

        if not indexed:
            raise EngineError(f"ffmpeg wrote no segments for {profile.name}", profile=profile.name)
        for expected, (idx, p) in enumerate(indexed):
            if idx != expected:
                raise EngineError(
                    f"Segment sequence for {profile.name} has a gap at index {expected} (found {p.name})",
                    profile=profile.name,
                )

        artifacts = [LocalArtifact(manifest, f"{profile.name}/{MANIFEST_NAME}", guess_content_type(manifest.name))]
        for _, p in indexed:
            artifacts.append(LocalArtifact(p, f"{profile.name}/{p.name}", guess_content_type(p.name)))
        return artifacts
