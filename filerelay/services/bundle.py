from __future__ import annotations

from dataclasses import dataclass, field

from filerelay.common.config import Settings
from filerelay.infra.http.fetcher import RemoteFetcher
from filerelay.infra.storage import StorageClient, build_storage_client

from .gateway_service import GatewayService
from .ingest_service import IngestService
from .object_io import WritePolicy
from .retrieve_service import RetrieveService


@dataclass
class ServiceBundle:
    """Lazily constructs transfer services sharing the same backend handle.

    ``settings``, ``storage`` and ``fetcher`` are created once per process and
    never reconfigured; the services built from them hold no per-request state.
    """

    settings: Settings
    storage: StorageClient
    fetcher: RemoteFetcher
    _ingest: IngestService | None = field(default=None, init=False, repr=False)
    _retrieve: RetrieveService | None = field(default=None, init=False, repr=False)
    _gateway: GatewayService | None = field(default=None, init=False, repr=False)

    def ingest(self) -> IngestService:
        if self._ingest is None:
            self._ingest = IngestService(
                settings=self.settings,
                storage=self.storage,
                fetcher=self.fetcher,
            )
        return self._ingest

    def retrieve(self) -> RetrieveService:
        if self._retrieve is None:
            self._retrieve = RetrieveService(
                settings=self.settings, storage=self.storage
            )
        return self._retrieve

    def gateway(self) -> GatewayService:
        if self._gateway is None:
            gateway_ingest = IngestService(
                settings=self.settings,
                storage=self.storage,
                fetcher=self.fetcher,
                policy=WritePolicy.for_gateway(self.settings),
            )
            self._gateway = GatewayService(
                settings=self.settings,
                storage=self.storage,
                ingest=gateway_ingest,
                retrieve=self.retrieve(),
            )
        return self._gateway


def build_service_bundle(
    settings: Settings,
    *,
    storage: StorageClient | None = None,
    fetcher: RemoteFetcher | None = None,
) -> ServiceBundle:
    """Validate ``settings`` and wire the process-wide collaborators.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    settings.validate()
    return ServiceBundle(
        settings=settings,
        storage=storage or build_storage_client(settings),
        fetcher=fetcher
        or RemoteFetcher(
            timeout=settings.FETCH_TIMEOUT_SECONDS,
            require_success=settings.FETCH_REQUIRE_SUCCESS,
        ),
    )
