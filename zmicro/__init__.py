"""Codec selection, value conversion and HTTP code generation helpers for microservices."""

__version__ = "0.1.0"

__all__ = [
    "codec",
    "convert",
    "encoding",
    "errcodes",
    "gin",
    "httprule",
    "resty",
    "writer",
]