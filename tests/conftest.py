"""Pytest configuration and shared fixtures."""

import pytest
from hypothesis import Verbosity, settings

from member_cluster.models.cluster import ClientCredentials, ClusterSpec

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


@pytest.fixture
def sample_kubeconfig():
    """Token-authenticated kubeconfig for a member cluster."""
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [
            {
                "name": "member",
                "cluster": {
                    "server": "https://10.0.0.1:6443",
                    "insecure-skip-tls-verify": True,
                },
            }
        ],
        "users": [{"name": "controller", "user": {"token": "s3cr3t-token"}}],
        "contexts": [{"name": "member", "context": {"cluster": "member", "user": "controller"}}],
        "current-context": "member",
    }


@pytest.fixture
def sample_credentials(sample_kubeconfig):
    """Client credentials built from the sample kubeconfig."""
    return ClientCredentials(kubeconfig=sample_kubeconfig)


@pytest.fixture
def sample_spec():
    """Member cluster spec reachable from 192.168.0.0/16 and the public internet."""
    return ClusterSpec(
        name="us-east",
        server_address_by_client_cidrs=[
            {"client_cidr": "192.168.0.0/16", "server_address": "https://192.168.1.10:6443"},
            {"client_cidr": "0.0.0.0/0", "server_address": "https://us-east.example.com"},
        ],
        secret_ref={"name": "us-east-kubeconfig"},
    )
