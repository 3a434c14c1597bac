"""Resource store backed by the Kubernetes API server."""

from __future__ import annotations

import base64
import binascii
from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from endpointsync.domain.errors import (
    DependencyError,
    ResourceConflictError,
    ResourceNotFoundError,
    ResourceStoreError,
)
from endpointsync.domain.model import (
    ENDPOINT_KIND,
    KEYSTONE_API_KIND,
    KEYSTONE_SERVICE_KIND,
)
from endpointsync.domain.ports import ResourceStore

from .translator import (
    finalizers_patch,
    parse_keystone_api,
    parse_keystone_endpoint,
    parse_keystone_service,
    resource_version_of,
    status_patch,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from endpointsync.domain.model import (
        DependencyResource,
        KeystoneAPI,
        KeystoneEndpoint,
        KeystoneService,
        ObjectMeta,
    )

log = getLogger(__name__)

GROUP = "keystone.openstack.org"
VERSION = "v1beta1"
PLURALS = {
    ENDPOINT_KIND: "keystoneendpoints",
    KEYSTONE_API_KIND: "keystoneapis",
    KEYSTONE_SERVICE_KIND: "keystoneservices",
}


def load_kubernetes_config() -> None:
    """Prefer the in-cluster service account, fall back to the local kubeconfig."""

    try:
        config.load_incluster_config()
        log.info("Loaded in-cluster Kubernetes config")
    except config.ConfigException:
        config.load_kube_config()
        log.info("Loaded local Kubernetes config")


@contextmanager
def api_errors(kind: str, namespace: str, name: str | None = None) -> Iterator[None]:
    """Translate client failures into the store's error taxonomy."""

    target = f"{namespace}/{name}" if name else namespace
    try:
        yield
    except ApiException as exc:
        if exc.status == 404:
            raise ResourceNotFoundError(kind, namespace, name) from exc
        if exc.status == 409:
            raise ResourceConflictError(f"{kind} {target} was modified concurrently") from exc
        raise ResourceStoreError(
            f"Kubernetes API error for {kind} {target}: {exc.status} {exc.reason}"
        ) from exc
    except HTTPError as exc:
        raise ResourceStoreError(f"Kubernetes API unreachable for {kind} {target}: {exc}") from exc


@dataclass(slots=True)
class KubernetesResourceStore:
    custom_objects: client.CustomObjectsApi
    core: client.CoreV1Api

    @classmethod
    def from_environment(cls) -> KubernetesResourceStore:
        load_kubernetes_config()
        return cls(custom_objects=client.CustomObjectsApi(), core=client.CoreV1Api())

    def get_endpoint(self, namespace: str, name: str) -> KeystoneEndpoint:
        with api_errors(ENDPOINT_KIND, namespace, name):
            payload = self.custom_objects.get_namespaced_custom_object(
                GROUP, VERSION, namespace, PLURALS[ENDPOINT_KIND], name
            )
        return parse_keystone_endpoint(payload)

    def save_endpoint(self, endpoint: KeystoneEndpoint) -> None:
        namespace, name = endpoint.namespace, endpoint.name
        plural = PLURALS[ENDPOINT_KIND]
        with api_errors(ENDPOINT_KIND, namespace, name):
            updated = self.custom_objects.patch_namespaced_custom_object_status(
                GROUP, VERSION, namespace, plural, name, status_patch(endpoint.status)
            )
        endpoint.meta.resource_version = (
            resource_version_of(updated) or endpoint.meta.resource_version
        )

        if not endpoint.meta.finalizers.changed:
            return
        self._patch_finalizers(ENDPOINT_KIND, endpoint.meta)

    def get_keystone_api(self, namespace: str) -> KeystoneAPI:
        items = self._list(KEYSTONE_API_KIND, namespace)
        if not items:
            raise ResourceNotFoundError(KEYSTONE_API_KIND, namespace)
        if len(items) > 1:
            raise DependencyError(
                f"found {len(items)} {KEYSTONE_API_KIND} resources in {namespace}, expected one"
            )
        return parse_keystone_api(items[0])

    def get_keystone_service(self, namespace: str, service_name: str) -> KeystoneService:
        matches = [
            service
            for service in map(parse_keystone_service, self._list(KEYSTONE_SERVICE_KIND, namespace))
            if service.service_name == service_name
        ]
        if not matches:
            raise ResourceNotFoundError(KEYSTONE_SERVICE_KIND, namespace, service_name)
        if len(matches) > 1:
            raise DependencyError(
                f"found {len(matches)} {KEYSTONE_SERVICE_KIND} resources named "
                f"{service_name} in {namespace}"
            )
        return matches[0]

    def update_finalizers(self, resource: DependencyResource) -> None:
        self._patch_finalizers(resource.KIND, resource.meta)

    def read_secret(self, namespace: str, name: str) -> dict[str, str] | None:
        """Return the decoded data of a Secret, or ``None`` if it does not exist."""

        try:
            with api_errors("Secret", namespace, name):
                secret = self.core.read_namespaced_secret(name, namespace)
        except ResourceNotFoundError:
            return None

        decoded: dict[str, str] = {}
        for key, value in (secret.data or {}).items():
            try:
                decoded[key] = base64.b64decode(value).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as exc:
                raise ResourceStoreError(
                    f"Secret {namespace}/{name} holds an undecodable value for {key}"
                ) from exc
        return decoded

    def _list(self, kind: str, namespace: str) -> list[dict[str, Any]]:
        with api_errors(kind, namespace):
            response = self.custom_objects.list_namespaced_custom_object(
                GROUP, VERSION, namespace, PLURALS[kind]
            )
        return list(response.get("items") or [])

    def _patch_finalizers(self, kind: str, meta: ObjectMeta) -> None:
        with api_errors(kind, meta.namespace, meta.name):
            updated = self.custom_objects.patch_namespaced_custom_object(
                GROUP, VERSION, meta.namespace, PLURALS[kind], meta.name, finalizers_patch(meta)
            )
        meta.resource_version = resource_version_of(updated) or meta.resource_version
        meta.finalizers.changed = False
        log.debug("Patched finalizers of %s %s/%s", kind, meta.namespace, meta.name)


if TYPE_CHECKING:
    _store_check: ResourceStore = KubernetesResourceStore(
        custom_objects=client.CustomObjectsApi(), core=client.CoreV1Api()
    )
