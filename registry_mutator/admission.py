"""Build AdmissionReview responses that rewrite pod container images."""

import json
import logging
from base64 import b64encode
from typing import Any, Dict, List, Optional

from registry_mutator.config import MutatorConfig
from registry_mutator.errors import DecodeError
from registry_mutator.rewrite import rewrite_image

ADMISSION_API_VERSION = "admission.k8s.io/v1"
AUDIT_ANNOTATIONS = {
    "k8s-mutate-registry": "Container registry mutated by registry-mutator",
}
# Regular containers are always patched before init containers.
CONTAINER_FIELDS = ("containers", "initContainers")

log = logging.getLogger(__name__)


def decode_pod(raw: Any) -> Dict[str, Any]:
    """Return the pod from an admission request object.

    `raw` is either the decoded JSON object or its serialized form.
    """
    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Unable to unmarshal pod json: {e}") from e

    if not isinstance(raw, dict):
        raise DecodeError("pod must be a JSON object")
    spec = raw.get("spec") or {}
    if not isinstance(spec, dict):
        raise DecodeError("pod spec must be a JSON object")

    for field in CONTAINER_FIELDS:
        containers = spec.get(field)
        if containers is None:
            continue
        if not isinstance(containers, list):
            raise DecodeError(f"spec.{field} must be a list")
        for i, container in enumerate(containers):
            if container is None:
                continue
            if not isinstance(container, dict):
                raise DecodeError(f"spec.{field}[{i}] must be a JSON object")
            image = container.get("image")
            if image is not None and not isinstance(image, str):
                raise DecodeError(f"spec.{field}[{i}].image must be a string")
    return raw


def image_patches(pod: Dict[str, Any], config: MutatorConfig) -> List[Dict[str, str]]:
    patches = []
    spec = pod.get("spec") or {}
    for field in CONTAINER_FIELDS:
        for i, container in enumerate(spec.get(field) or []):
            image = (container or {}).get("image")
            if image is None:
                continue
            new_image, mutated = rewrite_image(image, config)
            if mutated:
                patches.append({
                    "op": "replace",
                    "path": f"/spec/{field}/{i}/image",
                    "value": new_image,
                })
    return patches


def mutate(request: Optional[Dict[str, Any]], config: MutatorConfig) -> Dict[str, Any]:
    """Return the AdmissionResponse for one admission request.

    The request is always allowed. Raises DecodeError if the embedded pod
    cannot be decoded.
    """
    if request is None:
        return {"allowed": True}
    if not isinstance(request, dict):
        raise DecodeError("admission request must be a JSON object")

    pod = decode_pod(request.get("object"))
    patches = image_patches(pod, config)
    log.info(f"Generated patch for {request.get('uid')}: {patches}")

    return {
        "uid": request.get("uid"),
        "allowed": True,
        "patchType": "JSONPatch",
        "patch": b64encode(json.dumps(patches).encode()).decode(),
        "auditAnnotations": dict(AUDIT_ANNOTATIONS),
        "status": {"status": "Success"},
    }


def review_response(review: Dict[str, Any], config: MutatorConfig) -> Dict[str, Any]:
    """Wrap `mutate` in an AdmissionReview envelope matching the inbound review."""
    return {
        "apiVersion": review.get("apiVersion") or ADMISSION_API_VERSION,
        "kind": "AdmissionReview",
        "response": mutate(review.get("request"), config),
    }
