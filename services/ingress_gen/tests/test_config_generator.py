"""
Tests for Envoy config generation from backends.yaml.
"""

import sys

import pytest
import yaml

import config_generator
from config_generator import ConfigGenerator
from constants import XDS_CLUSTER_NAME


def cluster_names(config: dict) -> list:
    return [c["name"] for c in config["static_resources"]["clusters"]]


class TestLoadConfig:
    """Test loading and change detection."""

    def test_missing_file(self, tmp_path):
        generator = ConfigGenerator(str(tmp_path / "missing.yaml"))
        assert generator.load_config() is False
        assert generator.get_backends() == []

    def test_change_detection(self, write_backends, sample_backends):
        """Unchanged content should not trigger a reload."""
        path = write_backends(sample_backends)
        generator = ConfigGenerator(str(path))
        assert generator.load_config() is True
        assert generator.load_config() is False

        write_backends(sample_backends[:1])
        assert generator.load_config() is True
        assert len(generator.get_backends()) == 1

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "backends.yaml"
        path.write_text("backends: [unclosed")
        generator = ConfigGenerator(str(path))
        assert generator.load_config() is False

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "backends.yaml"
        path.write_text("- just\n- a list\n")
        generator = ConfigGenerator(str(path))
        assert generator.load_config() is False

    def test_empty_file(self, tmp_path):
        path = tmp_path / "backends.yaml"
        path.write_text("")
        generator = ConfigGenerator(str(path))
        assert generator.load_config() is True
        assert generator.get_backends() == []

    @pytest.mark.parametrize("value", ["5", "true", "backend", "{namespace: default}"])
    def test_backends_not_a_list(self, tmp_path, value):
        """A scalar or mapping under backends is rejected, not loaded."""
        path = tmp_path / "backends.yaml"
        path.write_text(f"backends: {value}\n")
        generator = ConfigGenerator(str(path))
        assert generator.load_config() is False
        assert generator.get_backends() == []

    def test_fixed_file_loads_after_rejection(self, tmp_path):
        """A rejected file is not remembered as already loaded."""
        path = tmp_path / "backends.yaml"
        path.write_text("backends: 5\n")
        generator = ConfigGenerator(str(path))
        assert generator.load_config() is False
        assert generator.load_config() is False

        path.write_text("backends:\n  - {namespace: default, name: backend, port: 80}\n")
        assert generator.load_config() is True
        assert [b.name for b in generator.get_backends()] == ["backend"]

    def test_invalid_backends_are_skipped(self, write_backends):
        path = write_backends(
            [
                {"namespace": "default", "name": "backend", "port": 80},
                {"namespace": "default", "name": "no-port"},
                {"namespace": "default", "name": "bad-port", "port": 70000},
                "not-a-mapping",
            ]
        )
        generator = ConfigGenerator(str(path))
        generator.load_config()
        backends = generator.get_backends()
        assert [b.name for b in backends] == ["backend"]


class TestGenerateEnvoyConfig:
    """Test the generated Envoy config."""

    def test_clusters(self, write_backends, sample_backends):
        generator = ConfigGenerator(str(write_backends(sample_backends)))
        generator.load_config()
        config = generator.generate_envoy_config()

        assert cluster_names(config) == [
            XDS_CLUSTER_NAME,
            "default/backend/80/da39a3ee5e",
            "default/backend/80/32737eb011",
            "kube-system/dashboard/443/58d888c08a",
        ]

    def test_duplicate_backends_produce_one_cluster(self, write_backends):
        entry = {"namespace": "default", "name": "backend", "port": 80}
        generator = ConfigGenerator(str(write_backends([entry, dict(entry)])))
        generator.load_config()
        assert cluster_names(generator.generate_envoy_config()) == [XDS_CLUSTER_NAME, "default/backend/80/da39a3ee5e"]

    def test_names_stable_across_passes(self, write_backends, sample_backends):
        """Regenerating from the same input yields byte-identical names."""
        path = write_backends(sample_backends)
        first = ConfigGenerator(str(path))
        first.load_config()
        second = ConfigGenerator(str(path))
        second.load_config()
        assert cluster_names(first.generate_envoy_config()) == cluster_names(second.generate_envoy_config())

    def test_listeners(self, write_backends, sample_backends):
        generator = ConfigGenerator(str(write_backends(sample_backends)), access_log_path="/tmp/access.log")
        generator.load_config()
        listeners = generator.generate_envoy_config()["static_resources"]["listeners"]

        assert [l["name"] for l in listeners] == ["ingress_http", "ingress_https"]
        assert "listener_filters" not in listeners[0]
        assert listeners[1]["listener_filters"][0]["name"] == "envoy.filters.listener.tls_inspector"
        hcm = listeners[0]["filter_chains"][0]["filters"][0]["typed_config"]
        assert hcm["access_log"][0]["typed_config"]["path"] == "/tmp/access.log"

    def test_cluster_name_listing(self, write_backends, sample_backends):
        generator = ConfigGenerator(str(write_backends(sample_backends)))
        generator.load_config()
        names = generator.get_cluster_names()
        assert names[0]["cluster"] == "default/backend/80/da39a3ee5e"
        assert names[0]["backend"]["namespace"] == "default"


class TestWriteEnvoyConfig:
    """Test writing envoy.yaml."""

    def test_write(self, tmp_path, write_backends, sample_backends):
        generator = ConfigGenerator(str(write_backends(sample_backends)))
        generator.load_config()
        output = tmp_path / "envoy" / "envoy.yaml"

        assert generator.write_envoy_config(str(output)) is True

        content = output.read_text()
        assert content.startswith("# ====")
        assert "DO NOT EDIT" in content
        config = yaml.safe_load(content)
        assert "default/backend/80/32737eb011" in cluster_names(config)
        assert "admin" in config

    def test_write_failure(self, tmp_path, write_backends, sample_backends):
        """Writing below a regular file fails without raising."""
        generator = ConfigGenerator(str(write_backends(sample_backends)))
        generator.load_config()
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        assert generator.write_envoy_config(str(blocker / "envoy.yaml")) is False


class TestMain:
    """Test the CLI entrypoint."""

    def test_one_shot(self, monkeypatch, tmp_path, write_backends, sample_backends):
        config_path = write_backends(sample_backends)
        output = tmp_path / "out" / "envoy.yaml"
        monkeypatch.setattr(sys, "argv", ["config_generator", "--config", str(config_path), "--envoy", str(output)])

        config_generator.main()

        config = yaml.safe_load(output.read_text())
        assert "default/backend/80/32737eb011" in cluster_names(config)

    def test_one_shot_rejected_config(self, monkeypatch, tmp_path):
        """Nothing is written when the backends file is rejected."""
        config_path = tmp_path / "backends.yaml"
        config_path.write_text("backends: true\n")
        output = tmp_path / "envoy.yaml"
        monkeypatch.setattr(sys, "argv", ["config_generator", "--config", str(config_path), "--envoy", str(output)])

        config_generator.main()

        assert not output.exists()
