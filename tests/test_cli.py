"""CLI surface tests using typer.testing.CliRunner.

No K8s cluster required: cluster-facing commands run against a mocked
K8sClient.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import typer
import yaml
from typer.testing import CliRunner

from s3bench import __version__
from s3bench.cli import DEFAULT_MANIFEST, app, resolve_manifest_path
from s3bench.config import save_manifest
from tests.conftest import make_bench

runner = CliRunner()


@pytest.fixture
def manifest(tmp_path) -> Path:
    path = tmp_path / "bench.yaml"
    save_manifest(
        make_bench(
            name="bench-cli",
            options={"access_key": "AKIAEXAMPLE", "secret_key": "s3cr3t", "bucket": "b"},
        ),
        path,
    )
    return path


# =============================================================================
# Helpers
# =============================================================================


class TestResolveManifestPath:
    def test_explicit_path_returned(self, tmp_path):
        p = tmp_path / "custom.yaml"
        assert resolve_manifest_path(p) == p

    def test_none_finds_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / DEFAULT_MANIFEST).write_text("kind: S3Bench\n")
        assert resolve_manifest_path(None) == Path(DEFAULT_MANIFEST)

    def test_none_exits_when_missing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(typer.Exit):
            resolve_manifest_path(None)


# =============================================================================
# Offline commands
# =============================================================================


class TestVersionCommand:
    def test_version_output(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInitCommand:
    """Tests for 's3bench init'."""

    def test_init_creates_valid_manifest(self, tmp_path):
        output = tmp_path / "init.yaml"
        result = runner.invoke(app, ["init", "--output", str(output), "--name", "my-bench"])
        assert result.exit_code == 0
        assert output.exists()

        validated = runner.invoke(app, ["validate", str(output)])
        assert validated.exit_code == 0, validated.output
        assert "my-bench" in validated.output

    def test_init_refuses_overwrite(self, tmp_path):
        output = tmp_path / "init.yaml"
        output.write_text("existing")
        result = runner.invoke(app, ["init", "--output", str(output)])
        assert result.exit_code == 1
        assert output.read_text() == "existing"

    def test_init_force(self, tmp_path):
        output = tmp_path / "init.yaml"
        output.write_text("existing")
        result = runner.invoke(app, ["init", "--output", str(output), "--force"])
        assert result.exit_code == 0
        assert "kind: S3Bench" in output.read_text()


class TestValidateCommand:
    """Tests for 's3bench validate'."""

    def test_valid(self, manifest):
        result = runner.invoke(app, ["validate", str(manifest)])
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_violations_listed(self, tmp_path):
        path = tmp_path / "bad.yaml"
        save_manifest(
            make_bench(mode="mixed", host="nohost", mixed_dist={"put": 1, "delete": 3}),
            path,
        )
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "spec.host" in result.output
        assert "spec.mixed_dist.delete" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_schema_error(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text(
            yaml.safe_dump({"kind": "S3Bench", "metadata": {"name": "x"}, "spec": {"speed": 1}})
        )
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "spec.speed" in result.output


class TestCompileCommand:
    """Tests for 's3bench compile'."""

    def test_text(self, manifest):
        result = runner.invoke(app, ["compile", str(manifest)])
        assert result.exit_code == 0
        assert "warp put --host minio.minio.svc:9000" in result.output
        assert "--bucket b" in result.output
        assert "AKIAEXAMPLE" not in result.output
        assert "s3cr3t" not in result.output

    def test_yaml_manifests_redacted(self, manifest):
        result = runner.invoke(app, ["compile", str(manifest), "--format", "yaml"])
        assert result.exit_code == 0
        docs = list(yaml.safe_load_all(result.output))
        assert [d["kind"] for d in docs] == ["Secret", "Job"]
        assert docs[0]["stringData"] == {"access_key": "<redacted>", "secret_key": "<redacted>"}
        assert "s3cr3t" not in result.output

    def test_json(self, manifest):
        result = runner.invoke(app, ["compile", str(manifest), "--format", "json"])
        assert result.exit_code == 0
        docs = json.loads(result.output)
        assert docs[1]["spec"]["backoffLimit"] == 0

    def test_invalid_manifest(self, tmp_path):
        path = tmp_path / "bad.yaml"
        save_manifest(make_bench(mode="scan"), path)
        result = runner.invoke(app, ["compile", str(path)])
        assert result.exit_code == 1
        assert "spec.mode" in result.output


# =============================================================================
# Cluster commands
# =============================================================================


class TestRunCommand:
    """Tests for 's3bench run'."""

    def test_dry_run(self, manifest):
        with patch("s3bench.cli.get_k8s_client") as get_client:
            result = runner.invoke(app, ["run", str(manifest), "--dry-run"])
        assert result.exit_code == 0
        get_client.assert_not_called()
        assert "kind: Job" in result.output

    def test_no_wait(self, manifest, mock_k8s_client):
        with patch("s3bench.cli.get_k8s_client", return_value=mock_k8s_client):
            result = runner.invoke(app, ["run", str(manifest), "--no-wait", "-n", "perf"])
        assert result.exit_code == 0
        workload = mock_k8s_client.apply_workload.call_args[0][0]
        assert workload.namespace == "perf"
        assert "Submitted Job perf/bench-cli" in result.output

    def test_wait_success(self, manifest, mock_k8s_client):
        mock_k8s_client.get_job_status.return_value = {"succeeded": 1}
        with patch("s3bench.cli.get_k8s_client", return_value=mock_k8s_client):
            result = runner.invoke(app, ["run", str(manifest)])
        assert result.exit_code == 0
        assert "completed" in result.output

    def test_wait_failure(self, manifest, mock_k8s_client):
        mock_k8s_client.get_job_status.return_value = {"failed": 1}
        mock_k8s_client.get_job_logs.return_value = "warp: connection refused"
        with patch("s3bench.cli.get_k8s_client", return_value=mock_k8s_client):
            result = runner.invoke(app, ["run", str(manifest)])
        assert result.exit_code == 1
        assert "connection refused" in result.output

    def test_connection_error(self, manifest):
        from s3bench.k8s import K8sConnectionError

        with patch("s3bench.cli.get_k8s_client", side_effect=K8sConnectionError("no config")):
            result = runner.invoke(app, ["run", str(manifest)])
        assert result.exit_code == 1
        assert "Cannot connect" in result.output


class TestStatusCommand:
    def test_status_from_job(self, mock_k8s_client):
        from s3bench.k8s import ResourceStatus

        mock_k8s_client.get_s3bench.return_value = {"status": {"running": True, "completed": False}}
        mock_k8s_client.get_job_status.return_value = {"succeeded": 1}
        mock_k8s_client.get_job_pod_status.return_value = ResourceStatus(
            kind="Pod",
            name="bench-a-xyz",
            namespace="test-ns",
            exists=True,
            ready=False,
            message="Succeeded",
        )
        with patch("s3bench.cli.get_k8s_client", return_value=mock_k8s_client):
            result = runner.invoke(app, ["status", "bench-a"])
        assert result.exit_code == 0
        assert "completed" in result.output

    def test_status_not_found(self, mock_k8s_client):
        from s3bench.k8s import ResourceStatus

        mock_k8s_client.get_s3bench.return_value = None
        mock_k8s_client.get_job_status.return_value = None
        mock_k8s_client.get_job_pod_status.return_value = ResourceStatus(
            kind="Pod", name="bench-a", namespace="test-ns", exists=False, ready=False
        )
        with patch("s3bench.cli.get_k8s_client", return_value=mock_k8s_client):
            result = runner.invoke(app, ["status", "bench-a"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestDeleteCommand:
    def test_delete_confirmed(self, mock_k8s_client):
        mock_k8s_client.delete_workload.return_value = True
        with patch("s3bench.cli.get_k8s_client", return_value=mock_k8s_client):
            result = runner.invoke(app, ["delete", "bench-a", "--yes"])
        assert result.exit_code == 0
        mock_k8s_client.delete_workload.assert_called_once_with("bench-a", "test-ns")

    def test_delete_aborted(self, mock_k8s_client):
        with patch("s3bench.cli.get_k8s_client", return_value=mock_k8s_client):
            result = runner.invoke(app, ["delete", "bench-a"], input="n\n")
        assert result.exit_code == 1
        mock_k8s_client.delete_workload.assert_not_called()
