"""Google Cloud Datastore credential provider."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import datastore

from epoxy_extensions.credentials.base import BMCCredential, CredentialProviderError

CREDENTIALS_KIND = "Credentials"

type DatastoreClientFactory = Callable[..., Any]


class DatastoreCredentialProvider:
    """Stores BMC credentials as ``Credentials`` entities keyed by BMC hostname."""

    def __init__(self, *, client: Any, namespace: str) -> None:
        self._client = client
        self._namespace = namespace

    def add_credentials(
        self,
        hostname: str,
        credential: BMCCredential,
        *,
        timeout_seconds: float,
    ) -> None:
        key = self._client.key(CREDENTIALS_KIND, hostname, namespace=self._namespace)
        entity = datastore.Entity(key=key, exclude_from_indexes=("Password",))
        entity.update(
            {
                "Address": credential.address,
                "Hostname": credential.hostname,
                "Model": credential.model,
                "Username": credential.username,
                "Password": credential.password,
            }
        )
        try:
            self._client.put(entity, timeout=timeout_seconds)
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as exc:
            raise CredentialProviderError(
                f"datastore write failed for {hostname} in namespace {self._namespace}: {exc}"
            ) from exc


def create_datastore_provider_factory(
    client_factory: DatastoreClientFactory = datastore.Client,
) -> Callable[[str, str], DatastoreCredentialProvider]:
    def _factory(project: str, namespace: str) -> DatastoreCredentialProvider:
        try:
            client = client_factory(project=project, namespace=namespace)
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as exc:
            raise CredentialProviderError(
                f"could not connect to Google Cloud Datastore for project {project}: {exc}"
            ) from exc
        return DatastoreCredentialProvider(client=client, namespace=namespace)

    return _factory
