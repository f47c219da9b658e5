"""Selection of body codecs by MIME type, and request binding and rendering."""

from __future__ import annotations

import email.parser
import email.policy
import io
import re
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qs, urlsplit

from zmicro.codec import FormCodec, Marshaler, UriEncoder

DEFAULT_MEMORY = 32 << 20
_MAX_VALUE_BYTES = DEFAULT_MEMORY + (10 << 20)

# Special pseudo MIME types for the query and URI codecs.
MIME_QUERY = "__MIME__/QUERY"
MIME_URI = "__MIME__/URI"

# Fallback used for requests that match no registered MIME type.
MIME_WILDCARD = "*"

MIME_JSON = "application/json"
MIME_HTML = "text/html"
MIME_XML = "application/xml"
MIME_XML2 = "text/xml"
MIME_PLAIN = "text/plain"
MIME_POST_FORM = "application/x-www-form-urlencoded"
MIME_MULTIPART_POST_FORM = "multipart/form-data"
MIME_PROTOBUF = "application/x-protobuf"
MIME_MSGPACK = "application/x-msgpack"
MIME_MSGPACK2 = "application/msgpack"
MIME_YAML = "application/x-yaml"
MIME_TOML = "application/toml"

_ACCEPT = "Accept"
_CONTENT_TYPE = "Content-Type"

Headers = MutableMapping[str, list[str]]


class EncodingError(ValueError):
    """Raised when a codec cannot be registered, chosen or applied."""


@dataclass
class Request:
    """An incoming HTTP request as seen by the binding functions."""

    method: str = "GET"
    url: str = ""
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""
    multipart_form: dict[str, list[str]] | None = None
    uri_params: dict[str, list[str]] | None = None


@dataclass
class Response:
    """An HTTP response whose body is to be decoded."""

    status_code: int = 200
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class ResponseWriter:
    """Collects the headers and body of a rendered response."""

    status_code: int = 200
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytearray = field(default_factory=bytearray)

    def write(self, data: bytes) -> int:
        """Append ``data`` to the body and return the number of bytes written."""
        self.body.extend(data)
        return len(data)


def _header_values(headers: Mapping[str, Sequence[str]], name: str) -> list[str]:
    wanted = name.lower()
    return [value for key, values in headers.items() if key.lower() == wanted for value in values]


def _set_header(headers: Headers, name: str, value: str) -> None:
    for key in [key for key in headers if key.lower() == name.lower()]:
        del headers[key]
    headers[name] = [value]


def request_with_uri(req: Request, uri: Mapping[str, Sequence[str]] | None) -> Request:
    """Return a copy of ``req`` carrying the URL path variables ``uri``."""
    params = {key: list(values) for key, values in (uri or {}).items()}
    return replace(req, uri_params=params)


def from_request_uri(req: Request) -> dict[str, list[str]] | None:
    """Return the URL path variables attached to ``req``, or None."""
    return req.uri_params


def parse_accept_header(header: str) -> list[str]:
    """Split an Accept header into its comma separated, trimmed entries."""
    return [value.strip() for value in header.split(",")]


_TSPECIALS = frozenset('()<>@,;:\\"/[]?=')
_PARAM = re.compile(r'\s*;\s*([^\s=;]+)\s*=\s*("(?:[^"\\]|\\.)*"|[^\s;"]+)\s*')
_QUOTED_ESCAPE = re.compile(r"\\(.)")


def _is_token(s: str) -> bool:
    return bool(s) and all(0x20 < ord(c) < 0x7F and c not in _TSPECIALS for c in s)


def _parse_media_type(value: str) -> tuple[str, dict[str, str]]:
    """Parse a media type and its parameters, raising ValueError when malformed."""
    base, _, _ = value.partition(";")
    media_type = base.strip().lower()
    main, slash, sub = media_type.partition("/")
    if not _is_token(main):
        raise ValueError("mime: no media type")
    if slash and not _is_token(sub):
        raise ValueError("mime: expected token after slash")
    params: dict[str, str] = {}
    rest = value[len(base):]
    while rest.strip() not in ("", ";"):
        match = _PARAM.match(rest)
        if match is None:
            raise ValueError("mime: invalid media parameter")
        key, raw = match.groups()
        if not _is_token(key):
            raise ValueError("mime: invalid media parameter")
        if raw.startswith('"'):
            param_value = _QUOTED_ESCAPE.sub(r"\1", raw[1:-1])
        elif _is_token(raw):
            param_value = raw
        else:
            raise ValueError("mime: invalid media parameter")
        key = key.lower()
        if key in params:
            raise ValueError("mime: duplicate parameter name")
        params[key] = param_value
        rest = rest[match.end():]
    return media_type, params


def _parse_multipart_form(req: Request) -> dict[str, list[str]]:
    """Parse the non-file fields of a multipart/form-data request body."""
    content_types = _header_values(req.headers, _CONTENT_TYPE)
    header = content_types[0] if content_types else ""
    if not header:
        raise EncodingError("request Content-Type isn't multipart/form-data")
    try:
        media_type, params = _parse_media_type(header)
    except ValueError:
        raise EncodingError("request Content-Type isn't multipart/form-data") from None
    if media_type != MIME_MULTIPART_POST_FORM:
        raise EncodingError("request Content-Type isn't multipart/form-data")
    if not params.get("boundary"):
        raise EncodingError("no multipart boundary param in Content-Type")

    head = f"Content-Type: {header}\r\nMIME-Version: 1.0\r\n\r\n".encode("latin-1", "replace")
    message = email.parser.BytesParser(policy=email.policy.default).parsebytes(head + req.body)
    if not message.is_multipart():
        raise EncodingError("multipart: malformed form data")

    values: dict[str, list[str]] = {}
    total = 0
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name or part.get_filename() is not None:
            continue
        data = part.get_payload(decode=True) or b""
        total += len(name) + len(data)
        if total > _MAX_VALUE_BYTES:
            raise EncodingError("multipart: message too large")
        values.setdefault(str(name), []).append(data.decode("utf-8", "replace"))
    return values


def _is_form_marshaler(m: Any) -> bool:
    return isinstance(m, Marshaler) and isinstance(m, FormCodec)


def _is_uri_marshaler(m: Any) -> bool:
    return _is_form_marshaler(m) and isinstance(m, UriEncoder)


class Encoding:
    """A mapping from MIME types to marshalers, plus the query and URI codecs."""

    def __init__(
        self,
        mime_map: Mapping[str, Marshaler],
        query: Marshaler,
        uri: Marshaler,
    ) -> None:
        if MIME_WILDCARD not in mime_map:
            raise EncodingError(f"a marshaler for MIME({MIME_WILDCARD}) is required")
        if not _is_form_marshaler(query):
            raise EncodingError("query marshaler should implement FormMarshaler")
        if not _is_uri_marshaler(uri):
            raise EncodingError("uri marshaler should implement UriMarshaler")
        self._mime_map: dict[str, Marshaler] = dict(mime_map)
        self._query = query
        self._uri = uri

    def register(self, mime: str, marshaler: Marshaler | None) -> None:
        """Register ``marshaler`` for the case-sensitive ``mime``, replacing any other."""
        if not mime:
            raise EncodingError("empty MIME type")
        if marshaler is None:
            raise EncodingError("marshaler should not be None")
        if mime == MIME_QUERY:
            if not _is_form_marshaler(marshaler):
                raise EncodingError("marshaler should implement FormMarshaler")
            self._query = marshaler
        elif mime == MIME_URI:
            if not _is_uri_marshaler(marshaler):
                raise EncodingError("marshaler should implement UriMarshaler")
            self._uri = marshaler
        else:
            if not isinstance(marshaler, Marshaler):
                raise EncodingError("marshaler should implement Marshaler")
            self._mime_map[mime] = marshaler

    def get(self, mime: str) -> Marshaler:
        """Return the marshaler for ``mime``, falling back to the wildcard one."""
        if mime == MIME_QUERY:
            return self._query
        if mime == MIME_URI:
            return self._uri
        marshaler = self._mime_map.get(mime)
        return marshaler if marshaler is not None else self._mime_map[MIME_WILDCARD]

    def delete(self, mime: str) -> None:
        """Remove the marshaler for ``mime``; the wildcard, query and URI ones stay."""
        if mime in (MIME_WILDCARD, MIME_QUERY, MIME_URI):
            raise EncodingError(f"MIME({mime}) can't delete, you can override")
        self._mime_map.pop(mime, None)

    def _inbound(self, headers: Mapping[str, Sequence[str]]) -> tuple[str, Marshaler]:
        content_type = ""
        for value in _header_values(headers, _CONTENT_TYPE):
            try:
                content_type, _ = _parse_media_type(value)
            except ValueError:
                continue
            marshaler = self._mime_map.get(content_type)
            if marshaler is not None:
                return content_type, marshaler
        return MIME_WILDCARD, self._mime_map[MIME_WILDCARD]

    def inbound_for_request(self, req: Request) -> tuple[str, Marshaler]:
        """Return the request's Content-Type and the marshaler chosen for it."""
        return self._inbound(req.headers)

    def outbound_for_request(self, req: Request) -> Marshaler:
        """Return the marshaler chosen by the request's Accept headers."""
        marshaler: Marshaler | None = None
        for accept in _header_values(req.headers, _ACCEPT):
            for value in parse_accept_header(accept):
                found = self._mime_map.get(value)
                if found is not None:
                    marshaler = found
                    break
        return marshaler if marshaler is not None else self._mime_map[MIME_WILDCARD]

    def bind(self, req: Request, v: Any) -> Any:
        """Decode the request into ``v``, choosing the codec by method and Content-Type."""
        if req.method == "GET":
            return self.bind_query(req, v)
        content_type, marshaler = self.inbound_for_request(req)
        if content_type == MIME_MULTIPART_POST_FORM:
            if not isinstance(marshaler, FormCodec):
                raise EncodingError(f"not supported marshaller({content_type})")
            if req.multipart_form is None:
                req.multipart_form = _parse_multipart_form(req)
            return marshaler.decode(req.multipart_form, v)
        return marshaler.new_decoder(io.BytesIO(req.body)).decode(v)

    def bind_query(self, req: Request, v: Any) -> Any:
        """Decode the request's query string into ``v``."""
        query = parse_qs(urlsplit(req.url).query, keep_blank_values=True)
        return self._query.decode(query, v)

    def bind_uri(self, req: Request, v: Any) -> Any:
        """Decode the URL path variables set with :func:`request_with_uri` into ``v``."""
        raws = from_request_uri(req)
        if raws is None:
            raise EncodingError("must be request with uri in context")
        return self._uri.decode(raws, v)

    def render(self, w: ResponseWriter, req: Request, v: Any) -> None:
        """Write ``v`` to ``w`` with the marshaler chosen by the request's Accept headers."""
        if v is None:
            return
        marshaler = self.outbound_for_request(req)
        data = marshaler.marshal(v)
        _set_header(w.headers, _CONTENT_TYPE, marshaler.content_type(v))
        w.write(data)

    def inbound_for_response(self, resp: Response) -> Marshaler:
        """Return the marshaler chosen by the response's Content-Type."""
        return self._inbound(resp.headers)[1]

    def encode(self, content_type: str, v: Any) -> bytes:
        """Serialise ``v`` with the marshaler for ``content_type``."""
        return self.get(content_type).marshal(v)

    def encode_query(self, v: Any) -> dict[str, list[str]]:
        """Encode ``v`` into query values."""
        return self._query.encode(v)

    def encode_url(self, path_template: str, msg: Any, need_query: bool) -> str:
        """Fill a path template such as ``/{name}/sub/{sub.name}`` from ``msg``."""
        return self._uri.encode_url(path_template, msg, need_query)