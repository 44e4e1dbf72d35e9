"""Single-shot health probing of member clusters."""

from datetime import datetime, timezone
from typing import Any

from kubernetes.client.rest import ApiException

from member_cluster.logging_config import get_logger
from member_cluster.models.cluster import (
    ClusterCondition,
    ClusterConditionType,
    ClusterStatus,
    ConditionStatus,
)

logger = get_logger(__name__)

HEALTHZ_PATH = "/healthz"


def _condition(
    condition_type: ClusterConditionType,
    status: ConditionStatus,
    reason: str,
    message: str,
    now: datetime,
) -> ClusterCondition:
    return ClusterCondition(
        type=condition_type,
        status=status,
        reason=reason,
        message=message,
        last_probe_time=now,
        last_transition_time=now,
    )


def ready_condition(now: datetime) -> ClusterCondition:
    return _condition(
        ClusterConditionType.READY,
        ConditionStatus.TRUE,
        "ClusterReady",
        "/healthz responded with ok",
        now,
    )


def not_ready_condition(now: datetime) -> ClusterCondition:
    return _condition(
        ClusterConditionType.READY,
        ConditionStatus.FALSE,
        "ClusterNotReady",
        "/healthz responded without ok",
        now,
    )


def offline_condition(now: datetime) -> ClusterCondition:
    return _condition(
        ClusterConditionType.OFFLINE,
        ConditionStatus.TRUE,
        "ClusterNotReachable",
        "cluster is not reachable",
        now,
    )


def not_offline_condition(now: datetime) -> ClusterCondition:
    return _condition(
        ClusterConditionType.OFFLINE,
        ConditionStatus.FALSE,
        "ClusterReachable",
        "cluster is reachable",
        now,
    )


def probe_cluster_health(cluster_client: Any, now: datetime | None = None) -> ClusterStatus:
    """
    Request /healthz once and fold the outcome into a ClusterStatus.

    Transport failures and error responses are not raised: an unreachable
    cluster is reported as Offline=True. A reachable cluster whose body is not
    "ok" (compared case-insensitively) is reported as Ready=False and
    Offline=False, and an "ok" body as Ready=True.

    Every condition carries the probe time as both its probe and transition
    time; comparing against earlier snapshots is left to the caller.

    Args:
        cluster_client: Anything with a ``discovery`` handle offering ``get_raw``
        now: Probe timestamp, defaults to the current UTC time

    Returns:
        A fresh ClusterStatus with one or two conditions.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        body = cluster_client.discovery.get_raw(HEALTHZ_PATH)
    except ApiException as e:
        logger.warning(f"Health probe got {e.status} {e.reason} from {HEALTHZ_PATH}")
        return ClusterStatus(conditions=[offline_condition(now)])
    except Exception as e:
        logger.warning(f"Health probe of {HEALTHZ_PATH} failed: {e}")
        return ClusterStatus(conditions=[offline_condition(now)])

    if body.lower() != "ok":
        logger.warning(f"{HEALTHZ_PATH} responded without ok: {body[:200]!r}")
        return ClusterStatus(conditions=[not_ready_condition(now), not_offline_condition(now)])

    logger.debug(f"{HEALTHZ_PATH} responded with ok")
    return ClusterStatus(conditions=[ready_condition(now)])
