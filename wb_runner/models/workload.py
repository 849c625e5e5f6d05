"""Workload file model."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AssetFormat(str, Enum):
    NDJSON = "NdJson"
    JSON = "Json"
    RAW = "Raw"

    @property
    def content_type(self) -> str:
        if self is AssetFormat.NDJSON:
            return "application/x-ndjson"
        if self is AssetFormat.JSON:
            return "application/json"
        return "application/octet-stream"


class Asset(BaseModel):
    """A file a workload sends as a request body, cached in the asset folder."""

    model_config = ConfigDict(extra="forbid")

    local_location: Optional[str] = Field(
        default=None, description="Path relative to the asset folder"
    )
    remote_location: Optional[str] = Field(
        default=None, description="URL to download the asset from"
    )
    sha256: Optional[str] = Field(default=None, description="Expected hex digest")
    format: AssetFormat = AssetFormat.RAW

    @field_validator("sha256")
    @classmethod
    def _lower_digest(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class SyncMode(str, Enum):
    DONT_WAIT = "DontWait"
    WAIT_FOR_RESPONSE = "WaitForResponse"


class Body(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inline: Any = None
    asset: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "Body":
        if (self.inline is None) == (self.asset is None):
            raise ValueError("body must set exactly one of 'inline' or 'asset'")
        return self


class Command(BaseModel):
    """One HTTP request sent to the target service."""

    model_config = ConfigDict(extra="forbid")

    route: str
    method: str = "POST"
    body: Optional[Body] = None
    synchronous: SyncMode = SyncMode.WAIT_FOR_RESPONSE

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        method = value.strip().upper()
        if method not in {"GET", "POST", "PUT", "PATCH", "DELETE"}:
            raise ValueError(f"unsupported method {value!r}")
        return method


class LogStreamConfig(BaseModel):
    """Request opened on the log stream client while commands run."""

    model_config = ConfigDict(extra="forbid")

    method: str = "POST"
    route: str = ""
    body: Optional[Dict[str, Any]] = None


class Workload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    run_count: int = Field(default=1, ge=1)
    assets: Dict[str, Asset] = Field(default_factory=dict)
    precommands: List[Command] = Field(default_factory=list)
    commands: List[Command] = Field(default_factory=list)
    log_stream: Optional[LogStreamConfig] = None

    @model_validator(mode="after")
    def _validate(self) -> "Workload":
        if not self.name.strip():
            raise ValueError("Workload: 'name' must be non-empty")
        for command in [*self.precommands, *self.commands]:
            if command.body and command.body.asset and command.body.asset not in self.assets:
                raise ValueError(
                    f"command {command.method} {command.route} references unknown asset "
                    f"{command.body.asset!r}"
                )
        return self
