"""Descriptions of service methods bound to HTTP routes by ``google.api.http`` rules."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

_log = logging.getLogger(__name__)

_GET = "GET"
_DELETE = "DELETE"
_PATCH = "PATCH"


class PathVarError(LookupError):
    """Raised when a path variable names a field the request message lacks."""


@dataclass(frozen=True)
class MessageField:
    """A field of a request message, as far as path variables care."""

    name: str
    is_map: bool = False
    is_list: bool = False
    message_fields: Mapping[str, MessageField] | None = None


@dataclass(frozen=True)
class MethodInfo:
    """A unary service method with its request and reply type names."""

    go_name: str
    request: str
    reply: str
    fields: Mapping[str, MessageField] = field(default_factory=dict)
    leading_comments: str = ""
    trailing_comments: str = ""


@dataclass(frozen=True)
class HttpRule:
    """One HTTP binding: method (or custom kind), path, body and response body."""

    method: str = ""
    path: str = ""
    body: str = ""
    response_body: str = ""
    additional_bindings: tuple[HttpRule, ...] = ()


@dataclass
class MethodDesc:
    """Everything a generator needs to emit one route of a method."""

    name: str
    num: int
    request: str
    reply: str
    comment: str
    path: str
    method: str
    has_vars: bool = False
    has_body: bool = False
    body: str = ""
    response_body: str = ""


def _is_ascii_lower(c: str) -> bool:
    return "a" <= c <= "z"


def _is_ascii_digit(c: str) -> bool:
    return "0" <= c <= "9"


def camel_case(s: str) -> str:
    """Return the CamelCased field name; ``_my_field_name_2`` becomes ``XMyFieldName_2``."""
    if not s:
        return ""
    out: list[str] = []
    i = 0
    if s[0] == "_":
        out.append("X")
        i = 1
    n = len(s)
    while i < n:
        c = s[i]
        if c == "_" and i + 1 < n and _is_ascii_lower(s[i + 1]):
            i += 1
            continue
        if _is_ascii_digit(c):
            out.append(c)
            i += 1
            continue
        out.append(c.upper() if _is_ascii_lower(c) else c)
        while i + 1 < n and _is_ascii_lower(s[i + 1]):
            i += 1
            out.append(s[i])
        i += 1
    return "".join(out)


def camel_case_vars(s: str) -> str:
    """CamelCase each dot-separated part of a field path."""
    return ".".join(camel_case(part) for part in s.split("."))


def transform_path_params(path: str) -> str:
    """Turn ``{name}`` path segments into router parameters ``:name``."""
    segments = []
    for seg in path.split("/"):
        if (seg.startswith("{") and seg.endswith("}")) or seg.startswith(":"):
            seg = ":" + seg[1:-1]
        segments.append(seg)
    return "/".join(segments)


def build_path_vars(path: str) -> list[str]:
    """Return the names inside the ``{...}`` segments of ``path``."""
    return [
        seg[1:-1]
        for seg in path.split("/")
        if seg.startswith("{") and seg.endswith("}") and len(seg) >= 2
    ]


def _format_comments(text: str) -> str:
    if not text:
        return ""
    lines = text[:-1] if text.endswith("\n") else text
    return "".join(f"//{line}\n" for line in lines.split("\n"))


class MethodDescBuilder:
    """Builds method descriptions, numbering repeated bindings of one method."""

    def __init__(
        self,
        allow_delete_body: bool = False,
        allow_empty_patch_body: bool = False,
        transform_path: bool = True,
    ) -> None:
        self.allow_delete_body = allow_delete_body
        self.allow_empty_patch_body = allow_empty_patch_body
        self.transform_path = transform_path
        self.method_sets: dict[str, int] = {}
        self.warnings: list[str] = []

    def _warn(self, message: str) -> None:
        self.warnings.append(message)
        _log.warning("%s", message)

    def build_method_desc(self, method: MethodInfo, http_method: str, path: str) -> MethodDesc:
        """Describe ``method`` served at ``http_method`` ``path``."""
        path_vars = build_path_vars(path)
        fields: Mapping[str, MessageField] = method.fields
        for var in path_vars:
            for name in var.split("."):
                if not name.strip():
                    continue
                if ":" in name:
                    name = name.split(":")[0]
                fd = fields.get(name)
                if fd is None:
                    raise PathVarError(
                        f"The corresponding field '{var}' declaration in message "
                        f"could not be found in '{path}'"
                    )
                if fd.is_map:
                    self._warn(f"The field in path:'{var}' shouldn't be a map.")
                elif fd.is_list:
                    self._warn(f"The field in path:'{var}' shouldn't be a list.")
                elif fd.message_fields is not None:
                    fields = fd.message_fields

        comment = _format_comments(method.leading_comments) + _format_comments(
            method.trailing_comments
        )
        if comment:
            comment = comment.removesuffix("\n").removeprefix("//")
            comment = "// " + method.go_name + comment
        else:
            comment = "// " + method.go_name

        desc = MethodDesc(
            name=method.go_name,
            num=self.method_sets.get(method.go_name, 0),
            request=method.request,
            reply=method.reply,
            comment=comment,
            path=transform_path_params(path) if self.transform_path else path,
            method=http_method,
            has_vars=bool(path_vars),
        )
        self.method_sets[method.go_name] = desc.num + 1
        return desc

    def build_http_rule(self, method: MethodInfo, rule: HttpRule) -> MethodDesc:
        """Describe ``method`` as bound by ``rule`` (its additional bindings excluded)."""
        http_method, path, body = rule.method, rule.path, rule.body
        md = self.build_method_desc(method, http_method, path)
        if http_method == _GET:
            if body:
                self._warn(f"{http_method} {path} body should not be declared.")
            md.has_body = False
        elif http_method == _DELETE:
            md.has_body = bool(body)
            if body and not self.allow_delete_body:
                md.has_body = False
                self._warn(f"{http_method} {path} body should not be declared.")
        elif http_method == _PATCH:
            md.has_body = bool(body)
            if not body and not self.allow_empty_patch_body:
                self._warn(f"{http_method} {path} is does not declare a body.")
        elif body == "*":
            md.has_body = True
            md.body = ""
        elif body:
            md.has_body = True
            md.body = "." + camel_case_vars(body)
        else:
            md.has_body = False
            self._warn(f"{http_method} {path} is does not declare a body.")

        if rule.response_body == "*":
            md.response_body = ""
        elif rule.response_body:
            md.response_body = "." + camel_case_vars(rule.response_body)
        return md