"""Configuration models for the rack transports."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator

from .constants import DEFAULT_STATUS, ERROR_STATUS, MISSING_STATUS


def _status_field(default: int, description: str):
    return Field(default=default, ge=100, le=599, description=description)


class FinalizeConfig(BaseModel):
    """How a transport turns the final request state into a response."""

    default_status: int = _status_field(
        DEFAULT_STATUS,
        "Status applied when the chain ran to its end without setting one.",
    )
    missing_status: int = _status_field(
        MISSING_STATUS,
        "Status flushed when a middleware short-circuited without setting one.",
    )
    error_status: int = _status_field(
        ERROR_STATUS,
        "Status sent when the chain raised an unhandled exception.",
    )
    propagate_errors: bool = Field(
        default=False,
        description="Re-raise unhandled chain exceptions instead of answering with error_status.",
    )


class TLSConfig(BaseModel):
    """Certificate material for HTTPS listeners."""

    certfile: str = Field(..., min_length=1)
    keyfile: str = Field(..., min_length=1)


class ServerConfig(BaseModel):
    """Listener configuration for :mod:`therack.connection`."""

    host: str = Field(default="", description="Interface to bind; empty means all interfaces.")
    port: int = Field(default=0, ge=0, le=65535, description="Port to bind; 0 picks a free one.")
    tls: Optional[TLSConfig] = None
    finalize: FinalizeConfig = Field(default_factory=FinalizeConfig)
    request_queue_size: PositiveInt = Field(default=5)
    daemon_threads: bool = Field(
        default=True,
        description="Do not wait for in-flight request threads on shutdown.",
    )

    @field_validator("host")
    @classmethod
    def _strip_host(cls, value: str) -> str:
        return value.strip()

    @classmethod
    def from_address(cls, address: str, **kwargs) -> "ServerConfig":
        """Parse ``"host:port"`` or ``":port"`` into a config."""

        host, sep, port = address.rpartition(":")
        if not sep:
            raise ValueError(f"address {address!r} must look like 'host:port' or ':port'")
        try:
            port_number = int(port)
        except ValueError as exc:
            raise ValueError(f"address {address!r} has a non-numeric port") from exc
        return cls(host=host.strip("[]"), port=port_number, **kwargs)

    @property
    def address(self) -> tuple[str, int]:
        return self.host, self.port


__all__ = ["FinalizeConfig", "ServerConfig", "TLSConfig"]
