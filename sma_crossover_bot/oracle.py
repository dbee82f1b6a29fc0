#!/usr/bin/env python3
"""Price oracle abstractions: raw buffers decoded as little-endian u64 prices."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Protocol, Union

import requests
from requests import RequestException

from .errors import OracleDataError
from .state import U64_MAX

PRICE_WIDTH = 8

Buffer = Union[bytes, bytearray, memoryview]


def decode_price(buffer: Buffer) -> int:
    """Interpret the first 8 bytes of ``buffer`` as a little-endian unsigned price."""
    raw = bytes(buffer)
    if len(raw) < PRICE_WIDTH:
        raise OracleDataError(f"Oracle buffer holds {len(raw)} bytes, expected at least {PRICE_WIDTH}")
    return struct.unpack_from("<Q", raw, 0)[0]


def encode_price(price: int) -> bytes:
    if not 0 <= price <= U64_MAX:
        raise ValueError(f"Price {price} does not fit in an unsigned 64-bit integer")
    return struct.pack("<Q", price)


class PriceOracle(Protocol):
    """Protocol implemented by all price oracles."""

    name: str

    def read_price(self, source: str) -> int:
        """Return the current price exposed by ``source``."""


class OracleRegistry:
    """Simple registry so the runner can instantiate oracles by name."""

    _oracles: Dict[str, Callable[..., PriceOracle]] = {}

    @classmethod
    def register(cls, name: str, factory: Callable[..., PriceOracle]) -> None:
        cls._oracles[name] = factory

    @classmethod
    def create(cls, name: str, **kwargs) -> PriceOracle:
        if name not in cls._oracles:
            available = ", ".join(sorted(cls._oracles)) or "<none>"
            raise ValueError(f"Unknown oracle '{name}'. Available: {available}")
        return cls._oracles[name](**kwargs)

    @classmethod
    def available(cls) -> List[str]:
        return sorted(cls._oracles)


@dataclass
class BufferOracle:
    """In-memory oracle: each source handle maps to a raw data buffer."""

    name: str = "buffer"
    buffers: Dict[str, bytes] = field(default_factory=dict)

    def write_price(self, source: str, price: int) -> None:
        self.buffers[source] = encode_price(price)

    def write_raw(self, source: str, data: Buffer) -> None:
        self.buffers[source] = bytes(data)

    def read_price(self, source: str) -> int:
        try:
            data = self.buffers[source]
        except KeyError as exc:
            raise OracleDataError(f"Unknown oracle source '{source}'") from exc
        return decode_price(data)


@dataclass
class FileOracle:
    """Reads the raw price buffer from a file written by an external feeder."""

    name: str = "file"

    def read_price(self, source: str) -> int:
        try:
            with open(source, "rb") as handle:
                data = handle.read(PRICE_WIDTH)
        except OSError as exc:
            raise OracleDataError(f"Cannot read oracle file '{source}': {exc}") from exc
        return decode_price(data)


@dataclass
class HttpPriceOracle:
    """Fetches the raw price buffer from an HTTP endpoint."""

    base_url: str = "http://localhost:8899/oracle"
    timeout: float = 10.0

    name: str = "http"

    def read_price(self, source: str) -> int:
        url = f"{self.base_url.rstrip('/')}/{source.lstrip('/')}"
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except RequestException as exc:
            raise OracleDataError(f"Failed to fetch oracle data from {url}: {exc}") from exc
        return decode_price(response.content)


# Register built-in oracles.
OracleRegistry.register("buffer", BufferOracle)
OracleRegistry.register("file", FileOracle)
OracleRegistry.register("http", lambda **kwargs: HttpPriceOracle(**kwargs))
