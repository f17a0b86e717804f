from .content_type import sniff_content_type
from .results import (
    GatewayResult,
    IngestResult,
    RetrieveResult,
    build_public_url,
    encode_bytes,
)
from .staging import StagedPayload, stage_stream
from .validator import (
    SourceURL,
    derive_object_key,
    parse_source_url,
    validate_object_key,
)

__all__ = [
    "GatewayResult",
    "IngestResult",
    "RetrieveResult",
    "SourceURL",
    "StagedPayload",
    "build_public_url",
    "derive_object_key",
    "encode_bytes",
    "parse_source_url",
    "sniff_content_type",
    "stage_stream",
    "validate_object_key",
]
