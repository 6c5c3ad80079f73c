"""Constants for ingress-gen."""

import os

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
INGRESS_BACKENDS_PATH = os.environ.get("INGRESS_BACKENDS_PATH", "/etc/ingress-gen/backends.yaml")
ENVOY_CONFIG_PATH = os.environ.get("ENVOY_CONFIG_PATH", "/etc/envoy/envoy.yaml")
ENVOY_ACCESS_LOG_PATH = os.environ.get("ENVOY_ACCESS_LOG_PATH", "/dev/stdout")

# ---------------------------------------------------------------------------
# Envoy
# ---------------------------------------------------------------------------
# Cluster serving RDS/EDS to Envoy over gRPC
XDS_CLUSTER_NAME = os.environ.get("XDS_CLUSTER_NAME", "contour")
XDS_ADDRESS = os.environ.get("XDS_ADDRESS", "127.0.0.1")
XDS_PORT = int(os.environ.get("XDS_PORT", "8001"))

HTTP_LISTENER_PORT = int(os.environ.get("HTTP_LISTENER_PORT", "8080"))
HTTPS_LISTENER_PORT = int(os.environ.get("HTTPS_LISTENER_PORT", "8443"))

# Health check defaults applied when a backend leaves a field unset
HEALTH_CHECK_TIMEOUT_SECONDS = 2
HEALTH_CHECK_INTERVAL_SECONDS = 10
HEALTH_CHECK_UNHEALTHY_THRESHOLD = 3
HEALTH_CHECK_HEALTHY_THRESHOLD = 2

# ---------------------------------------------------------------------------
# Cluster naming policy
# ---------------------------------------------------------------------------
# Ceiling for generated cluster names. Not checked at runtime: it holds by
# construction because namespace/name get half of it and the remainder fits
# "/" + port (5 digits) + "/" + fingerprint + the identity separator.
MAX_CLUSTER_NAME_LENGTH = 60
# Budget for the namespace/name part of a cluster name (15 chars per segment).
IDENTITY_NAME_BUDGET = MAX_CLUSTER_NAME_LENGTH // 2
# Length of the digest substituted into truncated segments.
SHORT_DIGEST_LENGTH = 6
# Length of the configuration fingerprint appended to every cluster name.
FINGERPRINT_LENGTH = 10

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------
CONFIG_WATCH_INTERVAL = int(os.environ.get("CONFIG_WATCH_INTERVAL", "5"))
WATCH_ENABLED = os.environ.get("WATCH_ENABLED", "true").lower() in ("1", "true", "yes")
