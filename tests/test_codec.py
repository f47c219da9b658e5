import io
import json
from urllib.parse import urlencode

import pytest

from zmicro.codec import (
    Decoder,
    DecoderFunc,
    Encoder,
    EncoderFunc,
    FormCodec,
    FormMarshaler,
    Marshaler,
    UriEncoder,
    UriMarshaler,
)


class JsonUriCodec(UriMarshaler):
    def content_type(self, v):
        return "application/json"

    def marshal(self, v):
        return json.dumps(v, sort_keys=True).encode()

    def unmarshal(self, data, v):
        v.update(json.loads(data))

    def new_decoder(self, r):
        return DecoderFunc(lambda v: self.unmarshal(r.read(), v))

    def new_encoder(self, w):
        return EncoderFunc(lambda v: w.write(self.marshal(v)))

    def encode(self, v):
        return {key: [str(value)] for key, value in v.items()}

    def decode(self, vs, v):
        v.update({key: values[0] for key, values in vs.items()})

    def encode_url(self, path_template, v, need_query):
        path = path_template
        used = set()
        for key, value in v.items():
            marker = "{" + key + "}"
            if marker in path:
                path = path.replace(marker, str(value))
                used.add(key)
        if need_query:
            rest = {k: val for k, val in v.items() if k not in used}
            if rest:
                path += "?" + urlencode(rest)
        return path


def test_decoder_func_delegates_to_function():
    seen = []
    decoder = DecoderFunc(seen.append)
    decoder.decode("payload")
    assert seen == ["payload"]
    assert isinstance(decoder, Decoder)


def test_encoder_func_returns_function_result():
    encoder = EncoderFunc(lambda v: ("seen", v))
    assert encoder.encode(3) == ("seen", 3)
    assert isinstance(encoder, Encoder)


def test_func_adapters_propagate_errors():
    def fail(_):
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        DecoderFunc(fail).decode(None)
    with pytest.raises(ValueError, match="boom"):
        EncoderFunc(fail).encode(None)


@pytest.mark.parametrize(
    "cls",
    [Marshaler, FormCodec, UriEncoder, FormMarshaler, UriMarshaler, Decoder, Encoder],
)
def test_interfaces_cannot_be_instantiated(cls):
    with pytest.raises(TypeError):
        cls()


def test_stream_round_trip_through_func_adapters():
    codec = JsonUriCodec()
    assert isinstance(codec, Marshaler)
    assert isinstance(codec, FormCodec)
    assert isinstance(codec, UriEncoder)

    buf = io.BytesIO()
    encoder = EncoderFunc(lambda v: buf.write(codec.marshal(v)))
    written = encoder.encode({"id": "foo", "name": "bar"})
    assert written == len(b'{"id": "foo", "name": "bar"}')
    buf.seek(0)
    target = {}
    DecoderFunc(lambda v: codec.unmarshal(buf.read(), v)).decode(target)
    assert target == {"id": "foo", "name": "bar"}


def test_form_round_trip_through_decoder_func():
    codec = JsonUriCodec()
    values = codec.encode({"id": "foo", "name": "bar"})
    target = {}
    DecoderFunc(lambda v: codec.decode(values, v)).decode(target)
    assert target == {"id": "foo", "name": "bar"}


def test_encode_url_through_encoder_func():
    codec = JsonUriCodec()
    msg = {"name": "foo", "page": "2"}
    without_query = EncoderFunc(lambda m: codec.encode_url("/{name}", m, False))
    with_query = EncoderFunc(lambda m: codec.encode_url("/{name}", m, True))
    assert without_query.encode(msg) == "/foo"
    assert with_query.encode(msg) == "/foo?page=2"