from .base import BaseService
from .bundle import ServiceBundle, build_service_bundle
from .gateway_service import FunctionType, GatewayService
from .ingest_service import IngestService
from .object_io import ObjectReader, ObjectWriter, WritePolicy
from .retrieve_service import RetrieveService

__all__ = [
    "BaseService",
    "FunctionType",
    "GatewayService",
    "IngestService",
    "ObjectReader",
    "ObjectWriter",
    "RetrieveService",
    "ServiceBundle",
    "WritePolicy",
    "build_service_bundle",
]
