"""Interfaces shared by the encoding codecs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, BinaryIO

FormValues = Mapping[str, Sequence[str]]


class Decoder(ABC):
    """Decodes a byte sequence into a value."""

    @abstractmethod
    def decode(self, v: Any) -> Any:
        """Read the next payload and decode it into ``v``."""


class Encoder(ABC):
    """Encodes values into a byte sequence."""

    @abstractmethod
    def encode(self, v: Any) -> Any:
        """Encode ``v`` and write the result out."""


class Marshaler(ABC):
    """Converts between byte sequences and payload objects."""

    @abstractmethod
    def content_type(self, v: Any) -> str:
        """Return the Content-Type this marshaler produces for ``v``."""

    @abstractmethod
    def marshal(self, v: Any) -> bytes:
        """Serialise ``v`` into bytes."""

    @abstractmethod
    def unmarshal(self, data: bytes, v: Any) -> Any:
        """Deserialise ``data`` into the mutable target ``v``."""

    @abstractmethod
    def new_decoder(self, r: BinaryIO) -> Decoder:
        """Return a decoder reading from the binary stream ``r``."""

    @abstractmethod
    def new_encoder(self, w: BinaryIO) -> Encoder:
        """Return an encoder writing to the binary stream ``w``."""


class FormCodec(ABC):
    """Encodes values to, and decodes them from, form values."""

    @abstractmethod
    def encode(self, v: Any) -> dict[str, list[str]]:
        """Encode ``v`` into a mapping of names to lists of strings."""

    @abstractmethod
    def decode(self, vs: FormValues, v: Any) -> Any:
        """Decode the form values ``vs`` into the target ``v``."""


class UriEncoder(ABC):
    """Renders values into URL paths."""

    @abstractmethod
    def encode_url(self, path_template: str, v: Any, need_query: bool) -> str:
        """Fill ``path_template`` (such as ``/{name}/sub/{sub.name}``) from ``v``.

        When ``need_query`` is true, the fields not used by the path are
        appended as a query string.
        """


class FormMarshaler(Marshaler, FormCodec):
    """A marshaler that also handles form values."""


class UriMarshaler(Marshaler, FormCodec, UriEncoder):
    """A marshaler that handles form values and URL paths."""


@dataclass(frozen=True)
class DecoderFunc(Decoder):
    """Adapts a plain function into a :class:`Decoder`."""

    func: Callable[[Any], Any]

    def decode(self, v: Any) -> Any:
        return self.func(v)


@dataclass(frozen=True)
class EncoderFunc(Encoder):
    """Adapts a plain function into an :class:`Encoder`."""

    func: Callable[[Any], Any]

    def encode(self, v: Any) -> Any:
        return self.func(v)