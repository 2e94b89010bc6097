# ABOUTME: Tests for artifact and template staging
# ABOUTME: Artifact selection, hash outputs, per-stack overrides and template keys

"""Tests for staging."""

import base64
import hashlib
from pathlib import Path

import pytest

from cloudformation_deploy.config import ArtifactSettings
from cloudformation_deploy.engine.staging import Stager, select_artifact, sha256_base64
from cloudformation_deploy.errors import ConfigError


@pytest.fixture
def stager(artifact_store, audit):
    return Stager(artifact_store, audit, clock=lambda: 1700000000.5)


@pytest.fixture
def repository(tmp_path):
    """A local repository holding three versions' worth of jars."""
    directory = tmp_path / "repo" / "com" / "example" / "service" / "1.2.0"
    directory.mkdir(parents=True)
    for name in ("service-1.2.0.jar", "service-1.2.0-east.jar", "service-1.2.0-SNAPSHOT.jar", "service-1.2.0.pom"):
        (directory / name).write_bytes(name.encode())
    return tmp_path / "repo"


@pytest.fixture
def settings(repository):
    return ArtifactSettings(
        enabled=True,
        bucket="artifacts",
        prefix="builds",
        repository_path=str(repository),
        group_id="com.example",
        artifact_id="service",
        version="1.2.0",
    )


class TestSelectArtifact:
    def test_snapshots_excluded_and_highest_name_wins(self):
        candidates = [Path("a-1.0.jar"), Path("a-1.1-SNAPSHOT.jar"), Path("a-1.0-east.jar")]
        assert select_artifact(candidates) == Path("a-1.0.jar")

    def test_filter(self):
        candidates = [Path("a-1.0.jar"), Path("a-1.0-east.jar")]
        assert select_artifact(candidates, "east") == Path("a-1.0-east.jar")

    def test_nothing_left(self):
        with pytest.raises(ConfigError):
            select_artifact([Path("a-1.0-SNAPSHOT.jar")])


class TestStageArtifact:
    def test_uploads_and_seeds_outputs(self, stager, settings, artifact_store, audit):
        outputs = {}

        stager.stage_artifact(settings, None, outputs)

        bucket, key, source = artifact_store.uploads[0]
        assert (bucket, key) == ("artifacts", "builds/service-1.2.0.jar")
        expected = base64.b64encode(hashlib.sha256(b"service-1.2.0.jar").digest()).decode()
        assert outputs == {"ArtifactS3Bucket": "artifacts", "ArtifactS3Key": key, "CodeSHA256": expected}
        assert audit.lines[0] == "3 artifacts were found."
        assert f"Base64 Encoded SHA256 HASH value: {expected}" in audit.lines

    def test_repository_filter(self, stager, settings, artifact_store):
        outputs = {}
        stager.stage_artifact(settings, "east", outputs)
        assert outputs["ArtifactS3Key"] == "builds/service-1.2.0-east.jar"

    def test_missing_directory(self, stager, settings):
        settings.version = "9.9.9"
        with pytest.raises(ConfigError):
            stager.stage_artifact(settings, None, {})

    def test_artifact_directory_layout(self, settings, repository):
        assert settings.artifact_directory == repository / "com" / "example" / "service" / "1.2.0"


class TestStageOverride:
    def test_single_match(self, stager, settings, tmp_path, artifact_store):
        (tmp_path / "lambda-2.0.zip").write_bytes(b"zip")
        (tmp_path / "readme.txt").write_bytes(b"text")
        outputs = {"ArtifactS3Key": "builds/service-1.2.0.jar"}

        stager.stage_override(f"{tmp_path}/lambda-.*\\.zip", settings, outputs)

        assert outputs["ArtifactS3Key"] == "builds/lambda-2.0.zip"
        assert artifact_store.uploads[0][2] == tmp_path / "lambda-2.0.zip"

    def test_multiple_matches(self, stager, settings, tmp_path):
        (tmp_path / "lambda-1.zip").write_bytes(b"1")
        (tmp_path / "lambda-2.zip").write_bytes(b"2")
        with pytest.raises(ConfigError, match="Couldn't find deployment artifact"):
            stager.stage_override(f"{tmp_path}/lambda-.*\\.zip", settings, {})

    def test_no_match(self, stager, settings, tmp_path):
        with pytest.raises(ConfigError):
            stager.stage_override(f"{tmp_path}/lambda-.*\\.zip", settings, {})


class TestStageTemplate:
    def test_key_and_url(self, stager, tmp_path, artifact_store, audit):
        template = tmp_path / "template.yaml"
        template.write_text("Resources: {}")

        url = stager.stage_template(template, "app", "templates", "cfn")

        assert url == "https://s3.amazonaws.com/templates/cfn/1700000000-app-template.yaml"
        assert artifact_store.uploads == [("templates", "cfn/1700000000-app-template.yaml", template)]
        assert audit.lines == [f"Template URL: {url}"]

    def test_without_prefix(self, stager, tmp_path):
        template = tmp_path / "template.yaml"
        template.write_text("Resources: {}")
        url = stager.stage_template(template, "app", "templates", None)
        assert url == "https://s3.amazonaws.com/templates/1700000000-app-template.yaml"

    def test_missing_template(self, stager, tmp_path):
        with pytest.raises(ConfigError, match="Template not found"):
            stager.stage_template(tmp_path / "missing.yaml", "app", "templates", None)


def test_sha256_base64(tmp_path):
    path = tmp_path / "file.bin"
    path.write_bytes(b"hello")
    assert sha256_base64(path) == "LPJNul+wow4m6DsqxbninhsWHlwfp0JecwQzYpOLmCQ="
