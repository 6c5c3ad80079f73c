"""
Pytest fixtures for ingress-gen tests.
"""

import os
import sys
from pathlib import Path

import pytest
import yaml

# Add service directory to path so modules import the same way they do at runtime
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


@pytest.fixture
def write_backends(tmp_path):
    """Return a helper that writes a backends.yaml and returns its path."""

    def _write(backends, name="backends.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.dump({"backends": backends}, default_flow_style=False, sort_keys=False))
        return path

    return _write


@pytest.fixture
def sample_backends():
    return [
        {"namespace": "default", "name": "backend", "port": 80},
        {
            "namespace": "default",
            "name": "backend",
            "port": 80,
            "loadBalancerStrategy": "Maglev",
            "healthCheck": {
                "path": "/healthz",
                "intervalSeconds": 5,
                "timeoutSeconds": 30,
                "unhealthyThresholdCount": 3,
                "healthyThresholdCount": 1,
            },
        },
        {"namespace": "kube-system", "name": "dashboard", "port": 443, "loadBalancerStrategy": "Random"},
    ]
