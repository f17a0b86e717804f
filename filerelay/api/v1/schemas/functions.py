"""Pydantic schemas for the transfer functions.

The same models parse serverless events and HTTP request bodies, so both
surfaces accept identical field names.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from filerelay.pipeline.results import (
    GatewayResult,
    IngestResult,
    RetrieveResult,
    encode_bytes,
)


class IngestRequest(BaseModel):
    """Source URL to fetch and store. Older callers send `url` or `inputUrl`."""

    model_config = ConfigDict(extra="ignore")

    request_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("requestUrl", "url", "inputUrl", "request_url"),
        description="Absolute http(s) URL of the file to store.",
    )


class IngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input_url: str = Field(alias="inputUrl")
    s3_path: str = Field(
        alias="s3Path",
        description="Public object URL for AWS S3, otherwise the object key.",
    )

    @classmethod
    def from_result(cls, result: IngestResult) -> "IngestResponse":
        return cls(input_url=result.input_url, s3_path=result.s3_path)


class RetrieveRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    s3_file_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("s3FileKey", "s3_file_key"),
        description="Key of the object to return.",
    )


class RetrieveResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    size: int
    content: str = Field(description="Object bytes, base64 encoded.")

    @classmethod
    def from_result(cls, result: RetrieveResult) -> "RetrieveResponse":
        return cls(
            filename=result.filename,
            size=result.size,
            content=encode_bytes(result.content),
        )


class GatewayRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    function_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("functionType", "function_type"),
        description='Either "upload" or "download".',
    )
    data: str | None = Field(
        default=None,
        description="Source URL for upload, object key for download.",
    )


class GatewayResponse(BaseModel):
    message: str
    data: str = Field(default="", description="Downloaded bytes, base64 encoded.")

    @classmethod
    def from_result(cls, result: GatewayResult) -> "GatewayResponse":
        return cls(message=result.message, data=encode_bytes(result.data))
