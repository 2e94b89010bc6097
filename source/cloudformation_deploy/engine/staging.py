# ABOUTME: Stages build artifacts and templates in the artifact store
# ABOUTME: Seeds artifact bucket, key and hash outputs for the stacks that deploy them

"""Artifact and template staging."""

import base64
import hashlib
import logging
import time
from collections.abc import Callable
from pathlib import Path

from ..audit import AuditLog
from ..capabilities import ArtifactStore
from ..config import ArtifactSettings, split_artifact_regex
from ..errors import ConfigError

logger = logging.getLogger(__name__)

TEMPLATE_URL_BASE = "https://s3.amazonaws.com"


def sha256_base64(path: Path) -> str:
    """Base64 encoded SHA-256 digest of a file."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return base64.b64encode(digest.digest()).decode("ascii")


def select_artifact(candidates: list[Path], repository_filter: str | None = None) -> Path:
    """Pick the release artifact to deploy.

    Snapshot builds are ignored, the filter narrows by file name substring and
    the highest name in descending order wins.

    Raises:
        ConfigError: If no candidate survives the filtering.
    """
    eligible = [
        path
        for path in candidates
        if "-SNAPSHOT" not in path.name and (repository_filter is None or repository_filter in path.name)
    ]
    if not eligible:
        raise ConfigError("No artifacts found to deploy")
    return sorted(eligible, key=lambda path: path.name, reverse=True)[0]


class Stager:
    """Uploads artifacts and templates and records where they went."""

    def __init__(self, store: ArtifactStore, audit: AuditLog, clock: Callable[[], float] = time.time):
        self.store = store
        self.audit = audit
        self.clock = clock

    def find_artifacts(self, settings: ArtifactSettings) -> list[Path]:
        """List the candidate artifact files for the configured coordinates."""
        directory = settings.artifact_directory
        if not directory.is_dir():
            raise ConfigError(f"No artifacts found to deploy in {directory}")
        suffix = f".{settings.type.lower()}"
        return sorted(path for path in directory.iterdir() if path.name.lower().endswith(suffix))

    def store_artifact(
        self, path: Path, bucket: str, prefix: str | None, outputs: dict[str, str]
    ) -> None:
        """Upload one artifact and seed its location and hash into ``outputs``."""
        self.audit.write(f"About to copy {path.name} to S3.")
        key = f"{prefix}/{path.name}" if prefix else path.name

        self.store.upload(bucket, key, path)
        self.audit.write(f"{key} was copied to the s3 bucket ({bucket}).")

        digest = sha256_base64(path)
        self.audit.write(f"Base64 Encoded SHA256 HASH value: {digest}")

        outputs["ArtifactS3Bucket"] = bucket
        outputs["ArtifactS3Key"] = key
        outputs["CodeSHA256"] = digest

    def stage_artifact(
        self, settings: ArtifactSettings, repository_filter: str | None, outputs: dict[str, str]
    ) -> None:
        """Stage the configured build artifact for a sequence position."""
        candidates = self.find_artifacts(settings)
        count = len(candidates)
        self.audit.write(f"{count} {'artifact was' if count == 1 else 'artifacts were'} found.")
        for candidate in candidates:
            self.audit.write(str(candidate))

        path = select_artifact(candidates, repository_filter)
        self.store_artifact(path, settings.bucket, settings.prefix, outputs)

    def stage_override(
        self, expression: str, settings: ArtifactSettings, outputs: dict[str, str]
    ) -> None:
        """Stage a unit's own artifact, found by a directory plus file name pattern.

        Raises:
            ConfigError: If the pattern does not match exactly one file, or no
                artifact bucket is configured.
        """
        self.audit.write(f"Finding a deployment artifact using regex: {expression}")
        directory, pattern = split_artifact_regex(expression)

        matches = []
        if directory.is_dir():
            matches = [path for path in directory.iterdir() if pattern.fullmatch(path.name)]
        if len(matches) != 1:
            raise ConfigError(f"Couldn't find deployment artifact ({len(matches)} matches for {expression}).")
        if not settings.bucket:
            raise ConfigError("No artifact bucket.")

        self.audit.write(f"Deployment artifact: {matches[0].name}")
        self.store_artifact(matches[0], settings.bucket, settings.prefix, outputs)

    def template_key(self, template_path: str | Path, stack_name: str, prefix: str | None) -> str:
        name = f"{int(self.clock())}-{stack_name}-{Path(template_path).name}"
        return f"{prefix}/{name}" if prefix else name

    def stage_template(
        self, template_path: str | Path, stack_name: str, bucket: str, prefix: str | None
    ) -> str:
        """Upload a template under a time-qualified key and return its URL.

        Raises:
            ConfigError: If the template file does not exist.
        """
        path = Path(template_path)
        if not path.is_file():
            raise ConfigError(f"Template not found: {path}")

        key = self.template_key(path, stack_name, prefix)
        url = f"{TEMPLATE_URL_BASE}/{bucket}/{key}"
        self.audit.write(f"Template URL: {url}")
        self.store.upload(bucket, key, path)
        return url
