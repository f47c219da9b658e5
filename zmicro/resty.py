"""Source generation of typed HTTP clients for services bound to HTTP routes."""

from __future__ import annotations

from dataclasses import dataclass, field

from zmicro.httprule import MethodDesc
from zmicro.writer import CodeWriter

_CONTEXT = "context.Context"
_CLIENT = "http.Client"
_CALL_OPTION = "http.CallOption"
_DEFAULT_CALL_OPTION = "http.DefaultCallOption"
_WITH_VALUE_CALL_OPTION = "http.WithValueCallOption"


@dataclass
class ServiceDesc:
    """A service and the HTTP routes of its methods."""

    service_type: str
    service_name: str = ""
    metadata: str = ""
    methods: list[MethodDesc] = field(default_factory=list)


def client_interface_name(service_type: str) -> str:
    """Name of the HTTP client interface for ``service_type``."""
    return service_type + "HTTPClient"


def client_impl_struct_name(service_type: str) -> str:
    """Name of the struct implementing the HTTP client interface."""
    return service_type + "HTTPClientImpl"


def client_method_name(m: MethodDesc, is_declaration: bool) -> str:
    """Signature of a client method; declarations leave the parameters unnamed.

    Additional bindings of one method get a ``_<num>`` suffix to stay unique.
    """
    ctx_param, req_param, opts_param = ("", "", "") if is_declaration else ("ctx", "req", "opts")
    num = f"_{m.num}" if m.num != 0 else ""
    return (
        m.name + num + "(" + ctx_param + " " + _CONTEXT
        + ", " + req_param + " *" + m.request + ", "
        + opts_param + " ..." + _CALL_OPTION
        + ") (*" + m.reply + ", error)"
    )


def _write_method(w: CodeWriter, s: ServiceDesc, m: MethodDesc) -> None:
    w.p("func (c *", client_impl_struct_name(s.service_type), ")", client_method_name(m, False), " {")
    w.p("var err error")
    w.p("var resp ", m.reply)
    w.p()
    w.p("settings := ", _DEFAULT_CALL_OPTION, '("', m.path, '")')
    w.p("for _, opt := range opts {")
    w.p("opt(&settings)")
    w.p("}")
    if m.has_vars:
        w.p("path := c.cc.EncodeURL(settings.Path, req, ", not m.has_body, ")")
    elif m.has_body:
        w.p("path := settings.Path")
    else:
        w.p("var query string")
        w.p()
        w.p("query, err = c.cc.EncodeQuery(req)")
        w.p("if err != nil {")
        w.p("return nil, err")
        w.p("}")
        w.p("path := settings.Path")
        w.p('if query != "" {')
        w.p('path += "?" + query')
        w.p("}")
    w.p("ctx = ", _WITH_VALUE_CALL_OPTION, "(ctx, settings)")
    req_value = "req" + m.body if m.has_body else "nil"
    w.p('err = c.cc.Invoke(ctx, "', m.method, '", path, ', req_value, ", &resp", m.response_body, ")")
    w.p("if err != nil {")
    w.p("return nil, err")
    w.p("}")
    w.p("return &resp, nil")
    w.p("}")
    w.p()


def execute_service_desc(w: CodeWriter, s: ServiceDesc) -> None:
    """Write the client interface, its implementation, constructor and methods."""
    w.p("type ", client_interface_name(s.service_type), " interface {")
    for m in s.methods:
        w.p(m.comment)
        w.p(client_method_name(m, True))
    w.p("}")
    w.p()

    w.p("type ", client_impl_struct_name(s.service_type), " struct {")
    w.p("cc *", _CLIENT)
    w.p("}")
    w.p()

    w.p(
        "func New", s.service_type, "HTTPClient(c *", _CLIENT, ") ",
        client_interface_name(s.service_type), " {",
    )
    w.p("return &", client_impl_struct_name(s.service_type), " {")
    w.p("cc: c,")
    w.p("}")
    w.p("}")
    w.p()

    for m in s.methods:
        _write_method(w, s, m)