"""A FastCGI client speaking to a responder such as php-fpm or php-cgi."""

from __future__ import annotations

import io
import os
import re
import secrets
import socket
import struct
import threading
import urllib.parse
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, BinaryIO, Mapping

VERSION_1 = 1
HEADER_LEN = 8
NULL_REQUEST_ID = 0
KEEP_CONN = 1
MAX_WRITE = 65500
MAX_PAD = 255

FCGI_MAX_CONNS = "MAX_CONNS"
FCGI_MAX_REQS = "MAX_REQS"
FCGI_MPXS_CONNS = "MPXS_CONNS"

_HEADER = struct.Struct(">BBHHBB")
_COPY_CHUNK = 64 * 1024


class RecordType(IntEnum):
    BEGIN_REQUEST = 1
    ABORT_REQUEST = 2
    END_REQUEST = 3
    PARAMS = 4
    STDIN = 5
    STDOUT = 6
    STDERR = 7
    DATA = 8
    GET_VALUES = 9
    GET_VALUES_RESULT = 10
    UNKNOWN_TYPE = 11


class Role(IntEnum):
    RESPONDER = 1
    AUTHORIZER = 2
    FILTER = 3


class ProtocolStatus(IntEnum):
    REQUEST_COMPLETE = 0
    CANT_MPX_CONN = 1
    OVERLOADED = 2
    UNKNOWN_ROLE = 3


class FCGIError(Exception):
    """Raised on malformed or truncated FastCGI traffic."""


def encode_size(size: int) -> bytes:
    """Encode a name-value pair length (1 byte up to 127, else 4 bytes)."""
    if size > 127:
        return struct.pack(">I", size | 0x80000000)
    return bytes([size])


def encode_record(rec_type: int, request_id: int, content: bytes = b"") -> bytes:
    """Return a full record: header, content and padding to a multiple of 8."""
    if len(content) > 0xFFFF:
        raise ValueError("record content cannot exceed 65535 bytes")
    padding = -len(content) & 7
    header = _HEADER.pack(VERSION_1, rec_type, request_id, len(content), padding, 0)
    return header + bytes(content) + bytes(padding)


def extract_status(headers: dict[str, list[str]]) -> tuple[int, str]:
    """Remove the ``Status`` header and return ``(status_code, status)``."""
    values = headers.pop("Status", None)
    status = values[0] if values else ""
    if not status:
        return 200, ""
    code_text = status.split(" ", 1)[0]
    if not re.fullmatch(r"[+-]?\d+", code_text):
        raise FCGIError(f"invalid FastCGI status header {status!r}")
    return int(code_text), status


def _canonical_key(key: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _read_headers(reader: BinaryIO) -> dict[str, list[str]]:
    headers: dict[str, list[str]] = {}
    last: str | None = None
    while True:
        line = reader.readline()
        if not line.endswith(b"\n"):
            raise FCGIError("unexpected EOF while reading response headers")
        text = line.decode("utf-8", "replace").rstrip("\r\n")
        if not text:
            return headers
        if text[0] in " \t" and last is not None:
            headers[last][-1] += " " + text.strip()
            continue
        key, sep, value = text.partition(":")
        if not sep or not key or key != key.strip():
            raise FCGIError(f"malformed MIME header line: {text}")
        last = _canonical_key(key)
        headers.setdefault(last, []).append(value.strip(" \t"))


def _recv_exact(conn: socket.socket, size: int, allow_eof: bool = False) -> bytes | None:
    data = bytearray()
    while len(data) < size:
        chunk = conn.recv(size - len(data))
        if not chunk:
            if allow_eof and not data:
                return None
            raise FCGIError("unexpected EOF while reading a FastCGI record")
        data += chunk
    return bytes(data)


class _RecordReader(io.RawIOBase):
    """Turns the records sent by the responder into a plain byte stream."""

    def __init__(self, conn: socket.socket) -> None:
        self._conn = conn
        self._pending = b""
        self._done = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if not len(buffer):
            return 0
        while not self._pending:
            if self._done:
                return 0
            self._pending = self._next_record()
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def _next_record(self) -> bytes:
        header = _recv_exact(self._conn, HEADER_LEN, allow_eof=True)
        if header is None:
            self._done = True
            return b""
        version, rec_type, _, content_length, padding_length, _ = _HEADER.unpack(header)
        if version != VERSION_1:
            raise FCGIError("fcgi: invalid header version")
        if rec_type == RecordType.END_REQUEST:
            self._done = True
            return b""
        data = _recv_exact(self._conn, content_length + padding_length) or b""
        return data[:content_length]


class _ChunkedReader(io.RawIOBase):
    """Decodes an HTTP chunked transfer encoding."""

    def __init__(self, source: BinaryIO) -> None:
        self._source = source
        self._remaining = 0
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if not len(buffer):
            return 0
        while self._remaining == 0:
            if self._eof:
                return 0
            self._begin_chunk()
        data = self._source.read(min(len(buffer), self._remaining))
        if not data:
            raise FCGIError("unexpected EOF in chunked body")
        buffer[: len(data)] = data
        self._remaining -= len(data)
        if self._remaining == 0 and self._source.read(2) != b"\r\n":
            raise FCGIError("malformed chunked encoding")
        return len(data)

    def _begin_chunk(self) -> None:
        line = self._source.readline()
        if not line.endswith(b"\n"):
            raise FCGIError("unexpected EOF in chunked body")
        size_text = line.strip().split(b";", 1)[0].strip()
        if not re.fullmatch(rb"[0-9a-fA-F]+", size_text):
            raise FCGIError("malformed chunked encoding")
        size = int(size_text, 16)
        if size == 0:
            self._eof = True
        self._remaining = size


class _RecordWriter:
    """Buffers a stream and sends it as records of at most ``MAX_WRITE`` bytes."""

    def __init__(self, client: FCGIClient, rec_type: int) -> None:
        self._client = client
        self._type = rec_type
        self._buffer = bytearray()

    def write(self, data: bytes) -> None:
        self._buffer += data
        while len(self._buffer) >= MAX_WRITE:
            self._client._write_record(self._type, bytes(self._buffer[:MAX_WRITE]))
            del self._buffer[:MAX_WRITE]

    def flush(self) -> None:
        if self._buffer:
            self._client._write_record(self._type, bytes(self._buffer))
            self._buffer.clear()

    def close(self) -> None:
        self.flush()
        self._client._write_record(self._type, b"")


@dataclass
class FCGIResponse:
    """An HTTP response read from a FastCGI responder."""

    status_code: int
    status: str
    headers: dict[str, list[str]] = field(default_factory=dict)
    content_length: int = 0
    transfer_encoding: list[str] = field(default_factory=list)
    body: BinaryIO = field(default_factory=io.BytesIO)

    def header(self, name: str) -> str:
        """Return the first value of a header, or an empty string."""
        values = self.headers.get(_canonical_key(name))
        return values[0] if values else ""

    def read(self) -> bytes:
        """Read the whole body."""
        return self.body.read()


class FCGIClient:
    """A connection to a FastCGI responder."""

    def __init__(self, connection: socket.socket, request_id: int = 1) -> None:
        self._conn = connection
        self._lock = threading.Lock()
        self.keep_alive = False
        self.request_id = request_id

    def __enter__(self) -> FCGIClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection."""
        self._conn.close()

    def _write_record(self, rec_type: int, content: bytes) -> None:
        with self._lock:
            self._conn.sendall(encode_record(rec_type, self.request_id, content))

    def _write_begin_request(self, role: int, flags: int) -> None:
        content = bytes([(role >> 8) & 0xFF, role & 0xFF, flags, 0, 0, 0, 0, 0])
        self._write_record(RecordType.BEGIN_REQUEST, content)

    def _write_pairs(self, rec_type: int, pairs: Mapping[str, str]) -> None:
        writer = _RecordWriter(self, rec_type)
        used = 0
        for key, value in pairs.items():
            key_bytes = str(key).encode("utf-8")
            value_bytes = str(value).encode("utf-8")
            if HEADER_LEN + len(key_bytes) + len(value_bytes) > MAX_WRITE:
                value_bytes = value_bytes[: MAX_WRITE - HEADER_LEN - len(key_bytes)]
            sizes = encode_size(len(key_bytes)) + encode_size(len(value_bytes))
            size = len(sizes) + len(key_bytes) + len(value_bytes)
            if used + size > MAX_WRITE:
                writer.flush()
                used = 0
            used += size
            writer.write(sizes + key_bytes + value_bytes)
        writer.close()

    def do(self, params: Mapping[str, str], body: Any = None) -> io.BufferedReader:
        """Send a request and return a stream over the responder's output."""
        self._write_begin_request(Role.RESPONDER, 0)
        self._write_pairs(RecordType.PARAMS, params)
        stdin = _RecordWriter(self, RecordType.STDIN)
        if isinstance(body, str):
            body = body.encode("utf-8")
        if isinstance(body, (bytes, bytearray, memoryview)):
            stdin.write(bytes(body))
        elif body is not None:
            while chunk := body.read(_COPY_CHUNK):
                stdin.write(chunk)
        stdin.close()
        return io.BufferedReader(_RecordReader(self._conn))

    def request(self, params: Mapping[str, str], body: Any = None) -> FCGIResponse:
        """Send a request and parse the HTTP response the responder returns."""
        reader = self.do(params, body)
        headers = _read_headers(reader)
        transfer_encoding = headers.get("Transfer-Encoding", [])
        length_values = headers.get("Content-Length")
        length_text = length_values[0] if length_values else ""
        content_length = int(length_text) if re.fullmatch(r"[+-]?\d+", length_text) else 0
        status_code, status = extract_status(headers)
        stream: BinaryIO = reader
        if transfer_encoding and transfer_encoding[0] == "chunked":
            stream = io.BufferedReader(_ChunkedReader(reader))
        return FCGIResponse(
            status_code=status_code,
            status=status,
            headers=headers,
            content_length=content_length,
            transfer_encoding=transfer_encoding,
            body=stream,
        )

    def get(self, params: Mapping[str, str]) -> FCGIResponse:
        """Issue a GET request."""
        params = dict(params)
        params["REQUEST_METHOD"] = "GET"
        params["CONTENT_LENGTH"] = "0"
        return self.request(params, None)

    def post(
        self, params: Mapping[str, str], body_type: str, body: Any, length: int
    ) -> FCGIResponse:
        """Issue a POST request with a body of the given content type."""
        params = dict(params)
        if params.get("REQUEST_METHOD", "") in ("", "GET"):
            params["REQUEST_METHOD"] = "POST"
        params["CONTENT_LENGTH"] = str(length)
        params["CONTENT_TYPE"] = body_type or "application/x-www-form-urlencoded"
        return self.request(params, body)

    def post_form(self, params: Mapping[str, str], data: Mapping[str, Any]) -> FCGIResponse:
        """POST url-encoded form values."""
        items = [(key, value) for key in sorted(data) for value in _values(data[key])]
        encoded = urllib.parse.urlencode(items).encode("ascii")
        return self.post(params, "application/x-www-form-urlencoded", encoded, len(encoded))

    def post_file(
        self, params: Mapping[str, str], data: Mapping[str, Any], files: Mapping[str, str]
    ) -> FCGIResponse:
        """POST form values and files as multipart/form-data."""
        boundary = secrets.token_hex(30)
        parts: list[tuple[str, str | None, bytes]] = []
        for key, values in data.items():
            for value in _values(values):
                parts.append((f'form-data; name="{_escape_quotes(key)}"', None, value.encode("utf-8")))
        for key, path in files.items():
            with open(path, "rb") as handle:
                content = handle.read()
            disposition = (
                f'form-data; name="{_escape_quotes(key)}"; '
                f'filename="{_escape_quotes(os.path.basename(path))}"'
            )
            parts.append((disposition, "application/octet-stream", content))
        body = bytearray()
        for index, (disposition, content_type, content) in enumerate(parts):
            if index:
                body += b"\r\n"
            body += f"--{boundary}\r\nContent-Disposition: {disposition}\r\n".encode("utf-8")
            if content_type:
                body += f"Content-Type: {content_type}\r\n".encode("ascii")
            body += b"\r\n" + content
        if parts:
            body += b"\r\n"
        body += f"--{boundary}--\r\n".encode("ascii")
        body_type = f"multipart/form-data; boundary={boundary}"
        return self.post(params, body_type, bytes(body), len(body))


def _values(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def _escape_quotes(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _split_host_port(address: str) -> tuple[str, int]:
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ValueError(f"missing port in address {address}")
        port_text = rest[1:]
    else:
        host, sep, port_text = address.rpartition(":")
        if not sep:
            raise ValueError(f"missing port in address {address}")
    if not port_text.isdigit():
        raise ValueError(f"invalid port in address {address}")
    return host, int(port_text)


def _connect(network: str, address: str, timeout: float | None) -> socket.socket:
    if network in ("tcp", "tcp4", "tcp6"):
        host, port = _split_host_port(address)
        conn = socket.create_connection((host or "localhost", port), timeout=timeout)
    elif network == "unix":
        conn = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        conn.settimeout(timeout)
        try:
            conn.connect(address)
        except OSError:
            conn.close()
            raise
    else:
        raise ValueError(f"unknown network {network}")
    conn.settimeout(None)
    return conn


def dial(network: str, address: str) -> FCGIClient:
    """Connect to a FastCGI responder (``tcp`` or ``unix`` network)."""
    return FCGIClient(_connect(network, address, None))


def dial_timeout(network: str, address: str, timeout: float) -> FCGIClient:
    """Connect to a FastCGI responder, giving up after ``timeout`` seconds."""
    return FCGIClient(_connect(network, address, timeout))