"""
Config Generator - Generates Envoy config from a backends file

Input: backends.yaml, one entry per Kubernetes service port

    backends:
      - namespace: default
        name: backend
        port: 80
        loadBalancerStrategy: Maglev
        healthCheck:
          path: /healthz
          intervalSeconds: 5

Output: envoy.yaml with the HTTP/HTTPS listeners and one EDS cluster per
backend. Cluster names come from naming.clustername() and are recomputed on
every pass; nothing about a previous pass is reused except the input hash
that decides whether a pass is needed.
"""

import hashlib
import logging
from datetime import datetime
from pathlib import Path

import yaml
from pydantic import ValidationError

import envoy
from constants import (
    CONFIG_WATCH_INTERVAL,
    ENVOY_ACCESS_LOG_PATH,
    ENVOY_CONFIG_PATH,
    HTTP_LISTENER_PORT,
    HTTPS_LISTENER_PORT,
    INGRESS_BACKENDS_PATH,
    XDS_ADDRESS,
    XDS_CLUSTER_NAME,
    XDS_PORT,
)
from models import BackendDescriptor
from naming import clustername

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


class ConfigGenerator:
    def __init__(self, config_path: str = INGRESS_BACKENDS_PATH, access_log_path: str = ENVOY_ACCESS_LOG_PATH):
        self.config_path = Path(config_path)
        self.access_log_path = access_log_path
        self.config = {}
        self.last_hash = None

    def load_config(self) -> bool:
        """Load backends.yaml. Returns True if config changed."""
        if not self.config_path.exists():
            logger.error(f"Config file not found: {self.config_path}")
            return False

        content = self.config_path.read_text()
        content_hash = hashlib.md5(content.encode()).hexdigest()

        if content_hash == self.last_hash:
            return False

        try:
            config = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in {self.config_path}: {e}")
            return False
        if not isinstance(config, dict):
            logger.error(f"Expected a mapping in {self.config_path}, got {type(config).__name__}")
            return False
        backends = config.get("backends")
        if backends is not None and not isinstance(backends, list):
            logger.error(f"Expected a list of backends in {self.config_path}, got {type(backends).__name__}")
            return False

        self.config = config
        self.last_hash = content_hash
        logger.info(f"Loaded config from {self.config_path}")
        return True

    def get_backends(self) -> list:
        """Get validated backend descriptors. Invalid entries are skipped."""
        backends = []
        for i, entry in enumerate(self.config.get("backends") or []):
            try:
                backends.append(BackendDescriptor.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping invalid backend #{i}: {e.error_count()} validation error(s)")
        return backends

    # =========================================================================
    # Envoy Generation
    # =========================================================================

    def get_cluster_names(self) -> list:
        """Get the generated cluster name for every backend, in file order."""
        return [{"backend": b.model_dump(), "cluster": clustername(b)} for b in self.get_backends()]

    def generate_envoy_config(self) -> dict:
        """Generate Envoy config from backends.yaml."""
        clusters = []
        cluster_names = set()

        for backend in self.get_backends():
            cluster = envoy.cluster(backend)
            if cluster["name"] in cluster_names:
                logger.debug(f"Duplicate backend {backend.namespace}/{backend.name}:{backend.port}")
                continue
            cluster_names.add(cluster["name"])
            clusters.append(cluster)

        logger.info(f"Generated {len(clusters)} clusters")
        return self._build_envoy_config(clusters)

    def _build_envoy_config(self, clusters: list) -> dict:
        """Build complete Envoy config."""
        return {
            "admin": {"address": {"socket_address": {"address": "127.0.0.1", "port_value": 9001}}},
            "static_resources": {
                "listeners": [
                    self._build_listener("ingress_http", HTTP_LISTENER_PORT),
                    self._build_listener("ingress_https", HTTPS_LISTENER_PORT, tls=True),
                ],
                "clusters": [self._build_xds_cluster(), *clusters],
            },
        }

    def _build_listener(self, name: str, port: int, tls: bool = False) -> dict:
        listener = {
            "name": name,
            "address": {"socket_address": {"address": "0.0.0.0", "port_value": port}},
            "filter_chains": [{"filters": [envoy.http_connection_manager(name, self.access_log_path)]}],
        }
        if tls:
            listener["listener_filters"] = [envoy.tls_inspector()]
        return listener

    def _build_xds_cluster(self) -> dict:
        """Build the static cluster pointing at the xDS server."""
        return {
            "name": XDS_CLUSTER_NAME,
            "type": "STRICT_DNS",
            "connect_timeout": "5s",
            "typed_extension_protocol_options": {
                "envoy.extensions.upstreams.http.v3.HttpProtocolOptions": {
                    "@type": "type.googleapis.com/envoy.extensions.upstreams.http.v3.HttpProtocolOptions",
                    "explicit_http_config": {"http2_protocol_options": {}},
                }
            },
            "load_assignment": {
                "cluster_name": XDS_CLUSTER_NAME,
                "endpoints": [
                    {
                        "lb_endpoints": [
                            {"endpoint": {"address": {"socket_address": {"address": XDS_ADDRESS, "port_value": XDS_PORT}}}}
                        ]
                    }
                ],
            },
        }

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_envoy_config(self, output_path: str) -> bool:
        """Write generated Envoy config."""
        try:
            config = self.generate_envoy_config()
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)

            yaml_content = yaml.dump(config, default_flow_style=False, sort_keys=False)

            header = f"""# =============================================================================
# Envoy Configuration - Auto-generated from {self.config_path.name}
# Generated: {datetime.utcnow().isoformat()}Z
# DO NOT EDIT - changes will be overwritten
# =============================================================================

"""
            Path(output_path).write_text(header + yaml_content)
            logger.info(f"Wrote Envoy config to {output_path}")
            return True
        except OSError as e:
            logger.error(f"Failed to write Envoy config: {e}")
            return False


def main():
    """CLI entrypoint."""
    import argparse

    parser = argparse.ArgumentParser(description="Generate Envoy config from backends.yaml")
    parser.add_argument("--config", default=INGRESS_BACKENDS_PATH, help="Path to backends.yaml")
    parser.add_argument("--envoy", default=ENVOY_CONFIG_PATH, help="Output path for Envoy config")
    parser.add_argument("--watch", action="store_true", help="Watch for config changes")

    args = parser.parse_args()

    generator = ConfigGenerator(args.config)

    if args.watch:
        import time

        logger.info(f"Watching {args.config} for changes...")
        while True:
            if generator.load_config():
                generator.write_envoy_config(args.envoy)
            time.sleep(CONFIG_WATCH_INTERVAL)
    else:
        if generator.load_config():
            generator.write_envoy_config(args.envoy)


if __name__ == "__main__":
    main()
