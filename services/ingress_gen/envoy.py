"""Envoy object builders for listeners, filters and backend clusters."""

from constants import (
    HEALTH_CHECK_HEALTHY_THRESHOLD,
    HEALTH_CHECK_INTERVAL_SECONDS,
    HEALTH_CHECK_TIMEOUT_SECONDS,
    HEALTH_CHECK_UNHEALTHY_THRESHOLD,
    XDS_CLUSTER_NAME,
)
from models import BackendDescriptor
from naming import clustername

HEALTH_CHECK_HOST = "contour-envoy-healthcheck"

LB_POLICIES = {
    "WeightedLeastRequest": "LEAST_REQUEST",
    "Random": "RANDOM",
    "RingHash": "RING_HASH",
    "Maglev": "MAGLEV",
}


def tls_inspector() -> dict:
    """Build the TLS inspector listener filter."""
    return {
        "name": "envoy.filters.listener.tls_inspector",
        "typed_config": {
            "@type": "type.googleapis.com/envoy.extensions.filters.listener.tls_inspector.v3.TlsInspector"
        },
    }


def _grpc_config_source(cluster_name: str) -> dict:
    return {
        "resource_api_version": "V3",
        "api_config_source": {
            "api_type": "GRPC",
            "transport_api_version": "V3",
            "grpc_services": [{"envoy_grpc": {"cluster_name": cluster_name}}],
        },
    }


def http_connection_manager(routename: str, access_log_path: str) -> dict:
    """Build an HTTP connection manager filter for the supplied route and access log.

    Routes are fetched over RDS from the xDS cluster.
    """
    return {
        "name": "envoy.filters.network.http_connection_manager",
        "typed_config": {
            "@type": "type.googleapis.com/envoy.extensions.filters.network.http_connection_manager.v3.HttpConnectionManager",
            "stat_prefix": routename,
            "rds": {
                "route_config_name": routename,
                "config_source": _grpc_config_source(XDS_CLUSTER_NAME),
            },
            "http_filters": [
                {
                    "name": "envoy.filters.http.compressor",
                    "typed_config": {
                        "@type": "type.googleapis.com/envoy.extensions.filters.http.compressor.v3.Compressor",
                        "compressor_library": {
                            "name": "gzip",
                            "typed_config": {
                                "@type": "type.googleapis.com/envoy.extensions.compression.gzip.compressor.v3.Gzip"
                            },
                        },
                    },
                },
                {
                    "name": "envoy.filters.http.grpc_web",
                    "typed_config": {
                        "@type": "type.googleapis.com/envoy.extensions.filters.http.grpc_web.v3.GrpcWeb"
                    },
                },
                {
                    "name": "envoy.filters.http.router",
                    "typed_config": {"@type": "type.googleapis.com/envoy.extensions.filters.http.router.v3.Router"},
                },
            ],
            "use_remote_address": True,
            "access_log": access_log(access_log_path),
        },
    }


def access_log(path: str) -> list:
    """Build a file access log writing to path."""
    return [
        {
            "name": "envoy.access_loggers.file",
            "typed_config": {
                "@type": "type.googleapis.com/envoy.extensions.access_loggers.file.v3.FileAccessLog",
                "path": path,
            },
        }
    ]


def _seconds(value: int, default: int) -> str:
    return f"{value if value > 0 else default}s"


def health_check(backend: BackendDescriptor) -> list:
    """Build the active HTTP health check for a backend, or [] if it has none."""
    hc = backend.health_check
    if hc is None:
        return []
    return [
        {
            "timeout": _seconds(hc.timeout_seconds, HEALTH_CHECK_TIMEOUT_SECONDS),
            "interval": _seconds(hc.interval_seconds, HEALTH_CHECK_INTERVAL_SECONDS),
            "unhealthy_threshold": hc.unhealthy_threshold_count or HEALTH_CHECK_UNHEALTHY_THRESHOLD,
            "healthy_threshold": hc.healthy_threshold_count or HEALTH_CHECK_HEALTHY_THRESHOLD,
            "http_health_check": {"path": hc.path or "/", "host": HEALTH_CHECK_HOST},
        }
    ]


def lb_policy(strategy) -> str:
    return LB_POLICIES.get(strategy or "", "ROUND_ROBIN")


def cluster(backend: BackendDescriptor) -> dict:
    """Build the EDS cluster for a backend, named by clustername()."""
    name = clustername(backend)
    result = {
        "name": name,
        "alt_stat_name": f"{backend.namespace}_{backend.name}_{backend.port}",
        "type": "EDS",
        "eds_cluster_config": {
            "eds_config": _grpc_config_source(XDS_CLUSTER_NAME),
            "service_name": f"{backend.namespace}/{backend.name}/{backend.port}",
        },
        "connect_timeout": "0.25s",
        "lb_policy": lb_policy(backend.load_balancer_strategy),
    }
    checks = health_check(backend)
    if checks:
        result["health_checks"] = checks
    return result
