# zmicro

Building blocks for small HTTP/RPC services:

- **Codec selection** – `zmicro.encoding.Encoding` maps MIME types to
  marshalers, picks one from the `Content-Type` and `Accept` headers, binds
  request bodies, query strings and path parameters, and renders responses.
  The marshaler interfaces live in `zmicro.codec`.
- **Value conversion** – `zmicro.convert` turns strings taken from paths and
  query strings into booleans, integers, floats, bytes, enums and protobuf
  timestamps, durations and wrapper values.
- **Code generation helpers** – `zmicro.httprule`, `zmicro.gin`,
  `zmicro.resty`, `zmicro.errcodes` and `zmicro.writer` turn descriptions of
  services bound to HTTP routes into handler and client source text, and
  gather error codes from enum values.

## Installation

```
pip install zmicro
```

For running the test suite:

```
pip install "zmicro[test]"
pytest
```

## Encoding

`Encoding` is built from a mapping of MIME types to marshalers (it must
contain the `"*"` fallback), a query codec and a URI codec. Marshalers
implement the abstract classes of `zmicro.codec`: `Marshaler` for bodies,
`FormMarshaler` for the query codec and `UriMarshaler` for the URI codec.

```python
import json

from zmicro.codec import DecoderFunc, EncoderFunc, Marshaler, UriMarshaler
from zmicro.encoding import Encoding, Request, ResponseWriter, request_with_uri


class JsonMarshaler(Marshaler):
    def content_type(self, v):
        return "application/json"

    def marshal(self, v):
        return json.dumps(v).encode()

    def unmarshal(self, data, v):
        v.update(json.loads(data))
        return v

    def new_decoder(self, r):
        return DecoderFunc(lambda v: self.unmarshal(r.read(), v))

    def new_encoder(self, w):
        return EncoderFunc(lambda v: w.write(self.marshal(v)))


class FormValues(JsonMarshaler, UriMarshaler):
    def encode(self, v):
        return {key: [str(value)] for key, value in v.items()}

    def decode(self, vs, v):
        v.update({key: values[0] for key, values in vs.items()})
        return v

    def encode_url(self, path_template, v, need_query):
        return path_template.format_map(v)


form = FormValues()
enc = Encoding({"*": JsonMarshaler()}, query=form, uri=form)

req = Request(
    method="POST",
    url="http://example.com/users?page=2",
    headers={"Content-Type": ["application/json"]},
    body=b'{"name": "foo"}',
)
enc.bind(req, {})          # {'name': 'foo'}
enc.bind_query(req, {})    # {'page': '2'}
enc.bind_uri(request_with_uri(req, {"id": ["7"]}), {})  # {'id': '7'}

w = ResponseWriter()
enc.render(w, req, {"name": "foo"})
bytes(w.body)              # b'{"name": "foo"}'
```

- `register(mime, marshaler)` adds or replaces a marshaler; the special
  `MIME_QUERY` and `MIME_URI` names replace the query and URI codecs.
  `delete(mime)` removes one, except the wildcard, query and URI codecs.
- `get(mime)` falls back to the `"*"` marshaler for unknown types.
- `bind` decodes GET requests from the query string, `multipart/form-data`
  bodies through the marshaler's form decoding, and everything else through
  the marshaler's decoder.
- `inbound_for_request`, `outbound_for_request` and `inbound_for_response`
  expose the header-based choice; `encode`, `encode_query` and `encode_url`
  serialise values directly.
- `parse_accept_header("application/json,text/plain,   */*")` returns
  `['application/json', 'text/plain', '*/*']`.

Errors are raised as `zmicro.encoding.EncodingError`.

## Conversions

```python
from zmicro import convert

convert.parse_int32_slice("1,2,0x10", ",")        # [1, 2, 16]
convert.parse_bool("true")                         # True
convert.parse_timestamp("2016-05-10T10:19:13.123Z")
convert.parse_duration('"123.456s"')
convert.parse_enum("ONE", {"ZERO": 0, "ONE": 1})  # 1
convert.int64_value("42")                          # Int64Value(value=42)
```

Integers accept `0x`, `0o`, `0b` and leading-zero octal prefixes and are
range-checked for their width; bytes are padded standard or URL-safe base64.
Invalid input raises `convert.ConversionError`.

## Code generation

```python
from zmicro.httprule import HttpRule, MessageField, MethodDescBuilder, MethodInfo
from zmicro.gin import ServiceDesc, execute_service_desc
from zmicro.writer import CodeWriter

method = MethodInfo(
    go_name="GetUser",
    request="GetUserRequest",
    reply="User",
    fields={"id": MessageField("id")},
)
builder = MethodDescBuilder()
desc = builder.build_http_rule(method, HttpRule(method="GET", path="/users/{id}"))
desc.path   # '/users/:id'

w = CodeWriter()
execute_service_desc(w, ServiceDesc(service_type="Users", methods=[desc]))
print(w.text())
```

- `MethodDescBuilder` checks path variables against the request fields
  (raising `PathVarError` for unknown ones), numbers repeated bindings of one
  method, and records warnings about questionable bodies in `warnings`.
  Pass `transform_path=False` to keep `{name}` segments as they are.
- `zmicro.gin.execute_service_desc` writes a server interface, route
  registration and handlers; `zmicro.gin.execute_client_desc` writes a client
  interface, struct and registration.
- `zmicro.resty.execute_service_desc` writes an HTTP client for its own
  `ServiceDesc`.
- `zmicro.errcodes.collect_errors(enum_name, values, default_code)` turns
  `EnumValueSpec` entries into `ErrorInfo` records for every value with a
  non-zero code; `camel_case("user_not_found")` returns `"UserNotFound"`.

## What this package does not do

- It ships no concrete marshalers (JSON, XML, protobuf, msgpack, YAML, TOML,
  form): `Encoding` works only with the marshalers you give it.
- It has no configuration loading or file watching.
- It has no command-line tool and does not read `.proto` files: the
  generators work on `MethodInfo`, `HttpRule` and `ServiceDesc` values you
  build yourself, and they write declarations and handlers only, without a
  package clause or import list.