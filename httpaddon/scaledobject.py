"""Build the scaled object manifest that drives the external scaler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

SO_POLLING_INTERVAL = 15
SO_TRIGGER_TYPE = "external-push"

SCALER_ADDRESS_KEY = "scalerAddress"
HTTP_SCALED_OBJECT_KEY = "httpScaledObject"

API_VERSION = "keda.sh/v1alpha1"
KIND = "ScaledObject"


@dataclass(frozen=True)
class ScaleTargetRef:
    """The workload that a scaled object scales."""

    name: str
    kind: str = ""
    api_version: str = ""


def new_scaled_object(
    namespace: str,
    name: str,
    labels: Optional[Mapping[str, str]],
    annotations: Optional[Mapping[str, str]],
    workload_ref: ScaleTargetRef,
    scaler_address: str,
    min_replicas: Optional[int] = None,
    max_replicas: Optional[int] = None,
    cooldown_period: Optional[int] = None,
    initial_cooldown_period: Optional[int] = None,
) -> dict[str, Any]:
    """Return a scaled object manifest; unset optional fields are left out."""
    metadata: dict[str, Any] = {"namespace": namespace, "name": name}
    if labels:
        metadata["labels"] = dict(labels)
    if annotations:
        metadata["annotations"] = dict(annotations)

    target: dict[str, Any] = {}
    if workload_ref.api_version:
        target["apiVersion"] = workload_ref.api_version
    if workload_ref.kind:
        target["kind"] = workload_ref.kind
    target["name"] = workload_ref.name

    spec: dict[str, Any] = {
        "scaleTargetRef": target,
        "pollingInterval": SO_POLLING_INTERVAL,
    }
    if initial_cooldown_period is not None:
        spec["initialCooldownPeriod"] = initial_cooldown_period
    if cooldown_period is not None:
        spec["cooldownPeriod"] = cooldown_period
    if min_replicas is not None:
        spec["minReplicaCount"] = min_replicas
    if max_replicas is not None:
        spec["maxReplicaCount"] = max_replicas
    spec["advanced"] = {"restoreToOriginalReplicaCount": True}
    spec["triggers"] = [
        {
            "type": SO_TRIGGER_TYPE,
            "metadata": {
                SCALER_ADDRESS_KEY: scaler_address,
                HTTP_SCALED_OBJECT_KEY: name,
            },
        }
    ]

    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": metadata,
        "spec": spec,
    }