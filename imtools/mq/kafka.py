"""Kafka connection settings, TLS setup and context headers for messages."""

from __future__ import annotations

import ssl
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .. import mcontext


@dataclass
class TLSConfig:
    enable_tls: bool = False
    ca_crt: str = ""
    client_crt: str = ""
    client_key: str = ""
    client_key_pwd: str = ""
    insecure_skip_verify: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TLSConfig:
        """Build from configuration keys as written in YAML."""
        return cls(
            enable_tls=bool(data.get("enableTLS", False)),
            ca_crt=data.get("caCrt", ""),
            client_crt=data.get("clientCrt", ""),
            client_key=data.get("clientKey", ""),
            client_key_pwd=data.get("clientKeyPwd", ""),
            insecure_skip_verify=bool(data.get("insecureSkipVerify", False)),
        )


@dataclass
class KafkaConfig:
    username: str = ""
    password: str = ""
    producer_ack: str = ""
    compress_type: str = ""
    addr: list[str] = field(default_factory=list)
    tls: TLSConfig = field(default_factory=TLSConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> KafkaConfig:
        """Build from configuration keys as written in YAML."""
        return cls(
            username=data.get("username", ""),
            password=data.get("password", ""),
            producer_ack=data.get("producerAck", ""),
            compress_type=data.get("compressType", ""),
            addr=list(data.get("addr", [])),
            tls=TLSConfig.from_mapping(data.get("tls", {})),
        )


class EmptyMessageError(ValueError):
    """A message to be sent encoded to no bytes."""

    def __init__(self, message: str = "kafka binary msg is empty") -> None:
        super().__init__(message)


def new_tls_config(
    client_cert_file: str,
    client_key_file: str,
    ca_cert_file: str,
    key_pwd: Union[bytes, str, None],
    insecure_skip_verify: bool,
) -> ssl.SSLContext:
    """A client TLS context; missing files raise OSError, bad PEM raises ssl.SSLError."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    if client_cert_file and client_key_file:
        context.load_cert_chain(client_cert_file, client_key_file, key_pwd or None)
    if ca_cert_file:
        with open(ca_cert_file, "rb"):
            pass
        context.load_verify_locations(cafile=ca_cert_file)
    else:
        context.load_default_certs()
    if insecure_skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


_HEADER_KEYS = (
    mcontext.OPERATION_ID,
    mcontext.OP_USER_ID,
    mcontext.OP_USER_PLATFORM,
    mcontext.CONN_ID,
)


def get_mq_header_with_context(ctx: mcontext.Context) -> list[tuple[bytes, bytes]]:
    """Message headers for the context's operation, user, platform and connection."""
    values = mcontext.get_ctx_infos(ctx)
    return [(key.encode(), value.encode()) for key, value in zip(_HEADER_KEYS, values)]


def get_context_with_mq_header(
    headers: Iterable[tuple[Optional[bytes], Optional[bytes]]],
) -> mcontext.Context:
    """A context built from header values, in the order they were written."""
    values = [(value or b"").decode() for _, value in headers]
    return mcontext.with_must_info_ctx(values)