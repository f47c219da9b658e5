"""Source generation of gin HTTP server handlers and service clients."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from zmicro.httprule import MethodDesc
from zmicro.writer import CodeWriter

_CONTEXT = "context.Context"
_ROUTER_GROUP = "gin.RouterGroup"
_HANDLER_FUNC = "gin.HandlerFunc"
_GIN_CONTEXT = "gin.Context"
_FROM_CARRIER = "http.FromCarrier"
_RPCX = "rpcx"


@dataclass
class ServiceDesc:
    """A service and the HTTP routes of its methods."""

    service_type: str
    service_name: str = ""
    metadata: str = ""
    methods: list[MethodDesc] = field(default_factory=list)
    rpc_mode: str = _RPCX
    use_encoding: bool = False
    use_custom_response: bool = False
    allow_from_api: bool = False

    def unique_methods(self) -> Iterator[MethodDesc]:
        """Yield the first route of each method name, skipping additional bindings."""
        seen: set[str] = set()
        for m in self.methods:
            if m.name in seen:
                continue
            seen.add(m.name)
            yield m


def server_interface_name(service_type: str) -> str:
    """Name of the server interface for ``service_type``."""
    return service_type + "HTTPServer"


def server_method_name_for_rpcx(m: MethodDesc) -> str:
    """Server interface method signature in rpcx style (reply passed in)."""
    return m.name + "(" + _CONTEXT + ", *" + m.request + ", *" + m.reply + ")" + "error"


def server_method_name(m: MethodDesc) -> str:
    """Server interface method signature returning the reply."""
    return m.name + "(" + _CONTEXT + ", *" + m.request + ") (*" + m.reply + ", error)"


def server_handler_method_name(service_type: str, m: MethodDesc) -> str:
    """Name of the generated handler for one route of a method."""
    return "_" + service_type + "_" + m.name + str(m.num) + "_HTTP_Handler"


def _write_binding(w: CodeWriter, m: MethodDesc, use_encoding: bool) -> None:
    if use_encoding:
        bind, query, uri = "carrier.Bind(c, ", "carrier.BindQuery(c, ", "carrier.BindUri(c, "
    else:
        bind, query, uri = "c.ShouldBind(", "c.ShouldBindQuery(", "c.ShouldBindUri("
    w.p("shouldBind := func(req *", m.request, ") error {")
    if m.has_body:
        w.p("if err := ", bind, "req", m.body, "); err != nil {")
        w.p("return err")
        w.p("}")
        if m.body:
            w.p("if err := ", query, "req); err != nil {")
            w.p("return err")
            w.p("}")
    elif m.method != "PATCH":
        w.p("if err := ", query, "req", m.body, "); err != nil {")
        w.p("return err")
        w.p("}")
    if m.has_vars:
        w.p("if err := ", uri, "req); err != nil {")
        w.p("return err")
        w.p("}")
    w.p("return carrier.Validate(c.Request.Context(), req)")
    w.p("}")


def _write_handler(
    w: CodeWriter, s: ServiceDesc, m: MethodDesc, disable_error_bad_request: bool
) -> None:
    rpcx = s.rpc_mode == _RPCX
    w.p(
        "func ", server_handler_method_name(s.service_type, m),
        "(srv ", server_interface_name(s.service_type), ") ", _HANDLER_FUNC, " {",
    )
    w.p("return func(c *", _GIN_CONTEXT, ") {")
    w.p("carrier := ", _FROM_CARRIER, "(c.Request.Context())")
    if s.use_encoding and m.has_vars:
        w.p("c.Request = carrier.WithValueUri(c.Request, c.Params)")
    _write_binding(w, m, s.use_encoding)
    w.p()
    w.p("var err error")
    w.p("var req ", m.request)
    if rpcx:
        w.p("var reply *", m.reply, "= new(", m.reply, ")")
    else:
        w.p("var reply *", m.reply)
    w.p()
    w.p("if err = shouldBind(&req); err != nil {")
    if disable_error_bad_request:
        w.p("carrier.Error(c, err)")
    else:
        w.p("carrier.ErrorBadRequest(c, err)")
    w.p("return")
    w.p("}")
    if rpcx:
        w.p("err = srv.", m.name, "(c.Request.Context(), &req, reply)")
    else:
        w.p("reply, err = srv.", m.name, "(c.Request.Context(), &req)")
    w.p("if err != nil {")
    w.p("carrier.Error(c, err)")
    w.p("return")
    w.p("}")
    w.p("carrier.Render(c, reply", m.response_body, ")")
    w.p("}")
    w.p("}")
    w.p()


def execute_service_desc(
    w: CodeWriter, s: ServiceDesc, disable_error_bad_request: bool = False
) -> None:
    """Write the server interface, route registration and handlers of ``s``."""
    w.p("type ", server_interface_name(s.service_type), " interface {")
    for m in s.unique_methods():
        w.p(m.comment)
        if s.rpc_mode == _RPCX:
            w.p(server_method_name_for_rpcx(m))
        else:
            w.p(server_method_name(m))
    w.p("}")
    w.p()
    w.p(
        "func Register", s.service_type, "HTTPServer(g *", _ROUTER_GROUP,
        ", srv ", server_interface_name(s.service_type), ") {",
    )
    w.p('r := g.Group("")')
    w.p("{")
    for m in s.methods:
        w.p("r.", m.method, '("', m.path, '", ', server_handler_method_name(s.service_type, m), "(srv))")
    w.p("}")
    w.p("}")
    w.p()
    for m in s.methods:
        _write_handler(w, s, m, disable_error_bad_request)


def client_interface_name(service_type: str) -> str:
    """Name of the client interface for ``service_type``."""
    return "I" + service_type + "Client"


def client_struct_name(service_type: str) -> str:
    """Name of the client struct for ``service_type``."""
    return service_type + "Client"


def client_struct_options_name(service_type: str) -> str:
    """Name of the client options struct for ``service_type``."""
    return service_type + "ClientOptions"


def client_struct_options(service_type: str) -> str:
    """Declaration of the client options struct."""
    return (
        f"type {client_struct_options_name(service_type)} struct{{\n"
        "\t\tEnableValidation bool\n"
        "\t\tValidate func(context.Context, any) error\n"
        "\t}"
    )


def client_struct(service_type: str) -> str:
    """Declaration of the client struct."""
    return (
        f"type {client_struct_name(service_type)} struct{{\n"
        f"\t\tcc {client_interface_name(service_type)}\n"
        f"\t\toptions {client_struct_options_name(service_type)}\n"
        "\t}"
    )


def new_client_struct(service_type: str) -> str:
    """Constructor function of the client struct."""
    iface = client_interface_name(service_type)
    name = client_struct_name(service_type)
    options = client_struct_options_name(service_type)
    return (
        f"func New{name} (cc {iface}, options {options}) {iface} {{\n"
        f"\treturn &{name}{{cc: cc, options: options}}\n"
        "\t}"
    )


def client_method_name(m: MethodDesc) -> str:
    """Client interface method signature returning the reply."""
    return m.name + "(" + _CONTEXT + ", *" + m.request + ") (*" + m.reply + ", error)"


def client_method_name_for_rpcx(m: MethodDesc) -> str:
    """Client interface method signature in rpcx style (reply passed in)."""
    return m.name + "(" + _CONTEXT + ", *" + m.request + ", *" + m.reply + ")" + "error"


def client_method(m: MethodDesc, service_type: str) -> str:
    """Client method that validates the request and returns the reply."""
    return "".join(
        [
            "func (cli *", client_struct_name(service_type), ") ",
            m.name, "(ctx ", _CONTEXT, ", ", f"req *{m.request} ", ") ",
            "(reply *", m.reply, ", ", "err error ", ") ", " {\n",
            " if cli.options.EnableValidation {\n ",
            "if err = cli.options.Validate(ctx, req); err != nil {\n return nil, err \n}\n",
            "}\n",
            "return cli.cc.", m.name, "(ctx, req)", "}",
        ]
    )


def client_method_for_rpcx(m: MethodDesc, service_type: str) -> str:
    """Client method in rpcx style that validates the request and fills the reply."""
    return "".join(
        [
            "func (cli *", client_struct_name(service_type), ") ",
            m.name, "(ctx ", _CONTEXT, ", ", f"req *{m.request}, ", f"reply *{m.reply} ",
            ") ", "(err error) ", " {\n",
            " if cli.options.EnableValidation {\n ",
            "if err = cli.options.Validate(ctx, req); err != nil {\n return err \n}\n",
            "}\n",
            "return cli.cc.", m.name, "(ctx, req, reply)", "}",
        ]
    )


def register_client(s: ServiceDesc) -> str:
    """Registration function that installs a client factory once."""
    name = client_struct_name(s.service_type)
    iface = client_interface_name(s.service_type)
    options = client_struct_options_name(s.service_type)
    lines = [
        f"var Inner{name} func () {iface} ",
        f"func Register{name}(cc {iface}, options {options}) {{",
        f"if Inner{name}!= nil {{",
        f'panic("client already registered"+ " {iface}")',
        "}",
        f"Inner{name} = func() {iface} {{",
        f"return New{name}(cc, options)",
        "}",
        "}",
    ]
    return "\n".join(lines)


def execute_client_desc(w: CodeWriter, s: ServiceDesc) -> None:
    """Write the client interface, struct, constructor, methods and registration."""
    rpcx = s.rpc_mode == _RPCX
    w.p("type ", client_interface_name(s.service_type), " interface {")
    for m in s.unique_methods():
        w.p(m.comment)
        w.p(client_method_name_for_rpcx(m) if rpcx else client_method_name(m))
    w.p("}")
    w.p()
    w.p(client_struct(s.service_type))
    w.p()
    w.p(client_struct_options(s.service_type))
    w.p()
    w.p(new_client_struct(s.service_type))
    w.p()
    for m in s.unique_methods():
        if rpcx:
            w.p(client_method_for_rpcx(m, s.service_type))
        else:
            w.p(client_method(m, s.service_type))
        w.p()
    w.p(register_client(s))