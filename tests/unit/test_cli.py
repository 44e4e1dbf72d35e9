"""Unit tests for the member-cluster CLI."""

from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import yaml
from typer.testing import CliRunner

from member_cluster.cli import app
from member_cluster.exceptions import MissingZoneLabelError, SecretFetchError
from member_cluster.health import not_offline_condition, not_ready_condition, ready_condition
from member_cluster.models.cluster import ClusterStatus, ClusterTopology

runner = CliRunner()

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


@pytest.fixture
def spec_file(tmp_path):
    path = tmp_path / "cluster.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "metadata": {"name": "us-east"},
                "spec": {
                    "serverAddressByClientCIDRs": [
                        {"clientCIDR": "10.0.0.0/8", "serverAddress": "https://10.0.0.1:6443"}
                    ],
                    "secretRef": {"name": "us-east"},
                },
            }
        )
    )
    return str(path)


def fake_cluster_client(status=None, topology=None, topology_error=None):
    cluster_client = Mock()
    cluster_client.__enter__ = Mock(return_value=cluster_client)
    cluster_client.__exit__ = Mock(return_value=False)
    cluster_client.get_cluster_health_status.return_value = status
    if topology_error is not None:
        cluster_client.get_cluster_zones.side_effect = topology_error
    else:
        cluster_client.get_cluster_zones.return_value = topology
    return cluster_client


def test_version():
    """Version command prints the package version."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.stdout


def test_health_help():
    """Health command help lists its options."""
    result = runner.invoke(app, ["health", "--help"])

    assert result.exit_code == 0
    assert "--kubeconfig" in result.stdout
    assert "--host-ip" in result.stdout


def test_endpoint_selects_matching_address(spec_file):
    """The endpoint command shows the address for the host's CIDR."""
    result = runner.invoke(app, ["endpoint", spec_file, "--host-ip", "10.20.30.40"])

    assert result.exit_code == 0
    assert "https://10.0.0.1:6443" in result.stdout


def test_endpoint_without_match(spec_file):
    """A host outside every CIDR is told no address applies."""
    result = runner.invoke(app, ["endpoint", spec_file, "--host-ip", "192.168.1.1"])

    assert result.exit_code == 0
    assert "No server address" in result.stdout


def test_endpoint_invalid_host_ip(spec_file):
    """A malformed --host-ip fails cleanly."""
    result = runner.invoke(app, ["endpoint", spec_file, "--host-ip", "not-an-ip"])

    assert result.exit_code == 1
    assert "Invalid host IP" in result.stdout


def test_missing_spec_file():
    """A missing spec fails with a helpful message."""
    result = runner.invoke(app, ["endpoint", "nonexistent.yaml", "--host-ip", "10.0.0.2"])

    assert result.exit_code == 1
    assert "Cluster spec not found" in result.stdout


def test_health_without_applicable_endpoint(spec_file):
    """No endpoint is not an error for the health command."""
    result = runner.invoke(app, ["health", spec_file, "--host-ip", "192.168.1.1"])

    assert result.exit_code == 0
    assert "No server address" in result.stdout


def test_health_prints_conditions(spec_file):
    """Health conditions are rendered in a table."""
    status = ClusterStatus(conditions=[not_ready_condition(NOW), not_offline_condition(NOW)])

    with patch(
        "member_cluster.cli.build_cluster_client", return_value=fake_cluster_client(status)
    ):
        result = runner.invoke(app, ["health", spec_file, "--host-ip", "10.0.0.2"])

    assert result.exit_code == 0
    assert "ClusterNotReady" in result.stdout
    assert "ClusterReachable" in result.stdout


def test_health_credential_failure(spec_file):
    """Credential errors exit non-zero with the error message."""
    with patch(
        "member_cluster.cli.build_cluster_client",
        side_effect=SecretFetchError("error in fetching secret: default/us-east"),
    ):
        result = runner.invoke(app, ["health", spec_file, "--host-ip", "10.0.0.2"])

    assert result.exit_code == 1
    assert "error in fetching secret" in result.stdout


def test_health_uses_kubeconfig_resolver(spec_file, tmp_path):
    """--kubeconfig selects the file-based resolver."""
    status = ClusterStatus(conditions=[ready_condition(NOW)])
    kubeconfig = tmp_path / "kubeconfig"

    with patch(
        "member_cluster.cli.build_cluster_client", return_value=fake_cluster_client(status)
    ) as build:
        result = runner.invoke(
            app, ["health", spec_file, "--host-ip", "10.0.0.2", "--kubeconfig", str(kubeconfig)]
        )

    assert result.exit_code == 0
    resolver = build.call_args[0][1]
    assert resolver.path == kubeconfig


def test_zones_prints_topology(spec_file):
    """Zones and region are printed."""
    topology = ClusterTopology(zones=["us-east-1a", "us-east-1b"], region="us-east-1")

    with patch(
        "member_cluster.cli.build_cluster_client",
        return_value=fake_cluster_client(topology=topology),
    ):
        result = runner.invoke(app, ["zones", spec_file, "--host-ip", "10.0.0.2"])

    assert result.exit_code == 0
    assert "us-east-1a" in result.stdout
    assert "us-east-1b" in result.stdout
    assert "Region: us-east-1" in result.stdout


def test_zones_discovery_failure(spec_file):
    """Discovery failures exit non-zero."""
    error = MissingZoneLabelError("node-b", "topology.kubernetes.io/zone")

    with patch(
        "member_cluster.cli.build_cluster_client",
        return_value=fake_cluster_client(topology_error=error),
    ):
        result = runner.invoke(app, ["zones", spec_file, "--host-ip", "10.0.0.2"])

    assert result.exit_code == 1
    assert "node-b" in result.stdout


def test_status_tolerates_topology_failure(spec_file):
    """A ready cluster without topology still reports its health."""
    status = ClusterStatus(conditions=[ready_condition(NOW)])
    error = MissingZoneLabelError("node-b", "topology.kubernetes.io/zone")

    with patch(
        "member_cluster.cli.build_cluster_client",
        return_value=fake_cluster_client(status, topology_error=error),
    ):
        result = runner.invoke(app, ["status", spec_file, "--host-ip", "10.0.0.2"])

    assert result.exit_code == 0
    assert "ClusterReady" in result.stdout
    assert "No topology available" in result.stdout


def test_status_skips_topology_when_not_ready(spec_file):
    """Topology is only discovered for ready clusters."""
    status = ClusterStatus(conditions=[not_ready_condition(NOW), not_offline_condition(NOW)])
    cluster_client = fake_cluster_client(status)

    with patch("member_cluster.cli.build_cluster_client", return_value=cluster_client):
        result = runner.invoke(app, ["status", spec_file, "--host-ip", "10.0.0.2"])

    assert result.exit_code == 0
    cluster_client.get_cluster_zones.assert_not_called()
