"""
Cluster naming - stable, length-bounded Envoy resource names.

Envoy caps resource name length and xDS diffs resources by name, so a cluster
name must be short, identical across generation passes for an unchanged
backend, and different for backends whose clusters differ.

Names are built in two tiers:
  - identity: namespace/name, each segment clipped to its share of
    IDENTITY_NAME_BUDGET with a short SHA-256 digest substituted on overflow
  - fingerprint: first FINGERPRINT_LENGTH hex chars of the SHA-1 of the
    backend's load balancer strategy and health check settings

    default/backend/80/da39a3ee5e

Both digest algorithms are part of the naming contract; changing either one
renames every cluster.
"""

import hashlib
from typing import Optional

from constants import FINGERPRINT_LENGTH, IDENTITY_NAME_BUDGET, SHORT_DIGEST_LENGTH
from models import BackendDescriptor, HealthCheck

SEGMENT_DIGEST = hashlib.sha256
FINGERPRINT_DIGEST = hashlib.sha1


def truncate(max_len: int, text: str, suffix: str) -> str:
    """Clip text to max_len, replacing the tail with '-' + suffix when it does not fit.

    If even the suffix does not fit, the suffix itself is clipped to max_len.
    """
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    if max_len <= len(suffix):
        return suffix[:max_len]
    return text[: max_len - len(suffix) - 1] + "-" + suffix


def hashname(max_len: int, *segments: Optional[str]) -> str:
    """Join segments with '/' keeping each within max_len // len(segments).

    A lone segment may be replaced entirely by its full digest. With several
    segments every overflowing segment is clipped independently and tagged
    with the same short digest of the joined input; separators are not
    counted against the budget.
    """
    parts = [s or "" for s in segments]
    if not parts:
        return ""

    digest = SEGMENT_DIGEST("/".join(parts).encode("utf-8")).hexdigest()
    if len(parts) == 1:
        return truncate(max_len, parts[0], digest)

    budget = max_len // len(parts)
    short = digest[:SHORT_DIGEST_LENGTH]
    return "/".join(p if len(p) <= budget else truncate(budget, p, short) for p in parts)


def format_duration(seconds: int) -> str:
    """Render whole seconds as 5s, 1m30s, 1h0m0s."""
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


def canonical_config(load_balancer_strategy: Optional[str], health_check: Optional[HealthCheck]) -> str:
    """Serialize the non-identity fields of a backend in a fixed order.

    strategy, timeout, interval, unhealthy count, healthy count, path.
    Zero values are omitted; there is no separator between fields.
    """
    buf = load_balancer_strategy or ""
    hc = health_check
    if hc is None:
        return buf
    if hc.timeout_seconds > 0:
        buf += format_duration(hc.timeout_seconds)
    if hc.interval_seconds > 0:
        buf += format_duration(hc.interval_seconds)
    if hc.unhealthy_threshold_count > 0:
        buf += str(hc.unhealthy_threshold_count)
    if hc.healthy_threshold_count > 0:
        buf += str(hc.healthy_threshold_count)
    buf += hc.path or ""
    return buf


def fingerprint(backend: BackendDescriptor) -> str:
    buf = canonical_config(backend.load_balancer_strategy, backend.health_check)
    return FINGERPRINT_DIGEST(buf.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def clustername(backend: BackendDescriptor) -> str:
    """Return the Envoy cluster name for a backend."""
    identity = hashname(IDENTITY_NAME_BUDGET, backend.namespace, backend.name)
    return f"{identity}/{backend.port}/{fingerprint(backend)}"
