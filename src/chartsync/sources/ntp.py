"""NTP control protocol (mode 6) client.

Only the two read operations are implemented: READSTAT (association ids)
and READVAR (system or peer variables). Replies may span several
fragments; they are reassembled by offset.
"""

from __future__ import annotations

import logging
import socket
import struct
from dataclasses import dataclass

from ..errors import BadPayloadError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 123

OP_READSTAT = 1
OP_READVAR = 2

_VERSION = 2
_MODE_CONTROL = 6
_HEADER = struct.Struct("!BBHHHHH")

_RESPONSE_BIT = 0x80
_ERROR_BIT = 0x40
_MORE_BIT = 0x20
_OPCODE_MASK = 0x1F

_MAX_FRAGMENTS = 64


@dataclass
class ControlPacket:
    """A decoded mode 6 packet."""

    opcode: int
    sequence: int
    status: int
    assoc_id: int
    offset: int
    data: bytes
    response: bool = False
    error: bool = False
    more: bool = False


def encode_request(opcode: int, sequence: int, assoc_id: int = 0, data: bytes = b"") -> bytes:
    header = _HEADER.pack(
        (_VERSION << 3) | _MODE_CONTROL,
        opcode & _OPCODE_MASK,
        sequence,
        0,
        assoc_id,
        0,
        len(data),
    )
    pad = (-len(data)) % 4
    return header + data + b"\x00" * pad


def decode_packet(buf: bytes) -> ControlPacket:
    if len(buf) < _HEADER.size:
        raise BadPayloadError(f"control packet too short: {len(buf)} bytes")
    li_vn_mode, rem_op, seq, status, assoc_id, offset, count = _HEADER.unpack_from(buf)
    if li_vn_mode & 0x07 != _MODE_CONTROL:
        raise BadPayloadError(f"not a control packet (mode {li_vn_mode & 0x07})")
    data = buf[_HEADER.size:_HEADER.size + count]
    if len(data) != count:
        raise BadPayloadError(f"truncated control packet: want {count} data bytes, got {len(data)}")
    return ControlPacket(
        opcode=rem_op & _OPCODE_MASK,
        sequence=seq,
        status=status,
        assoc_id=assoc_id,
        offset=offset,
        data=data,
        response=bool(rem_op & _RESPONSE_BIT),
        error=bool(rem_op & _ERROR_BIT),
        more=bool(rem_op & _MORE_BIT),
    )


def _split_variables(text: str) -> list[str]:
    items, current, quoted = [], [], False
    for ch in text:
        if ch == '"':
            quoted = not quoted
        if ch == "," and not quoted:
            items.append("".join(current))
            current = []
            continue
        current.append(ch)
    items.append("".join(current))
    return items


def parse_variables(data: bytes) -> dict[str, str]:
    """Parse a READVAR payload (``key=value, key="quoted, value"``)."""
    text = data.decode("ascii", errors="replace").rstrip("\x00")
    variables: dict[str, str] = {}
    for item in _split_variables(text):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        variables[key.strip()] = value.strip().strip('"') if sep else ""
    return variables


def parse_assoc_ids(data: bytes) -> list[int]:
    """Parse a READSTAT payload: (association id, status) word pairs."""
    if len(data) % 4:
        raise BadPayloadError(f"association list length {len(data)} is not a multiple of 4")
    return [assoc_id for assoc_id, _ in struct.iter_unpack("!HH", data)]


def split_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` / ``[v6]:port`` / ``host`` into host and port."""
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest.lstrip(":")
    elif address.count(":") == 1:
        host, _, port = address.partition(":")
    else:
        host, port = address, ""
    if not host:
        raise ValueError(f"no host in address {address!r}")
    return host, int(port) if port else DEFAULT_PORT


def assemble(fragments: dict[int, bytes]) -> bytes:
    out = b""
    for offset in sorted(fragments):
        if offset != len(out):
            raise BadPayloadError(f"missing reply fragment at offset {len(out)}")
        out += fragments[offset]
    return out


class NTPControlClient:
    """A connected UDP control-protocol client for one NTP daemon."""

    def __init__(self, address: str, *, timeout: float = 3.0) -> None:
        try:
            host, port = split_address(address)
        except ValueError as e:
            raise TransportError(f"invalid address '{address}': {e}") from e
        self.address = address
        try:
            family, socktype, proto, _, sockaddr = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0]
            self._sock = socket.socket(family, socktype, proto)
            self._sock.settimeout(timeout)
            self._sock.connect(sockaddr)
        except OSError as e:
            raise TransportError(f"connect to '{address}': {e}") from e
        self._sequence = 0

    def system_info(self) -> dict[str, str]:
        return parse_variables(self._request(OP_READVAR))

    def peer_ids(self) -> list[int]:
        return parse_assoc_ids(self._request(OP_READSTAT))

    def peer_info(self, assoc_id: int) -> dict[str, str]:
        return parse_variables(self._request(OP_READVAR, assoc_id))

    def close(self) -> None:
        self._sock.close()

    def _request(self, opcode: int, assoc_id: int = 0) -> bytes:
        self._sequence = self._sequence % 0xFFFF + 1
        sequence = self._sequence
        try:
            self._sock.send(encode_request(opcode, sequence, assoc_id))
            return self._receive(opcode, sequence)
        except OSError as e:
            raise TransportError(f"request to '{self.address}' (opcode {opcode}): {e}") from e

    def _receive(self, opcode: int, sequence: int) -> bytes:
        fragments: dict[int, bytes] = {}
        last_end: int | None = None
        for _ in range(_MAX_FRAGMENTS):
            pkt = decode_packet(self._sock.recv(4096))
            if not pkt.response or pkt.sequence != sequence or pkt.opcode != opcode:
                logger.debug("Dropping unrelated control packet (seq=%d, op=%d)", pkt.sequence, pkt.opcode)
                continue
            if pkt.error:
                raise TransportError(f"'{self.address}' returned error code {pkt.status >> 8}")
            fragments[pkt.offset] = pkt.data
            if not pkt.more:
                last_end = pkt.offset + len(pkt.data)
            if last_end is not None and sum(len(d) for d in fragments.values()) >= last_end:
                return assemble(fragments)
        raise BadPayloadError(f"reply from '{self.address}' exceeds {_MAX_FRAGMENTS} fragments")
