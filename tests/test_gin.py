import pytest

from zmicro.gin import (
    ServiceDesc,
    client_interface_name,
    client_method,
    client_method_for_rpcx,
    client_method_name,
    client_method_name_for_rpcx,
    client_struct,
    client_struct_name,
    client_struct_options,
    client_struct_options_name,
    execute_client_desc,
    execute_service_desc,
    new_client_struct,
    register_client,
    server_handler_method_name,
    server_interface_name,
    server_method_name,
    server_method_name_for_rpcx,
)
from zmicro.httprule import MethodDesc
from zmicro.writer import CodeWriter


def _md(**kw):
    base = dict(
        name="SayHello",
        num=0,
        request="HelloRequest",
        reply="HelloReply",
        comment="// SayHello",
        path="/hello/:name",
        method="GET",
    )
    base.update(kw)
    return MethodDesc(**base)


def _service_text(s, disable_error_bad_request=False):
    w = CodeWriter()
    execute_service_desc(w, s, disable_error_bad_request)
    return w.text()


def _client_text(s):
    w = CodeWriter()
    execute_client_desc(w, s)
    return w.text()


def test_pinned_names():
    assert server_interface_name("Greeter") == "GreeterHTTPServer"
    assert client_interface_name("Greeter") == "IGreeterClient"
    assert server_handler_method_name("Greeter", _md()) == "_Greeter_SayHello0_HTTP_Handler"


def test_name_helpers_compose():
    assert client_struct_name("Greeter").startswith("Greeter")
    assert client_struct_options_name("Greeter").startswith(client_struct_name("Greeter"))
    assert client_interface_name("Greeter").endswith(client_struct_name("Greeter"))


def test_handler_name_uses_num():
    a = server_handler_method_name("Greeter", _md(num=0))
    b = server_handler_method_name("Greeter", _md(num=1))
    assert a != b
    assert "SayHello1" in b


def test_method_signatures():
    m = _md()
    assert server_method_name_for_rpcx(m).endswith(")error")
    assert "*HelloReply" in server_method_name_for_rpcx(m)
    assert server_method_name(m).endswith(", error)")
    assert client_method_name(m) == server_method_name(m)
    assert client_method_name_for_rpcx(m) == server_method_name_for_rpcx(m)


def test_interface_deduplicates_additional_bindings():
    s = ServiceDesc("Greeter", methods=[_md(num=0), _md(num=1, method="POST", path="/hello")])
    text = _service_text(s)
    assert text.count("// SayHello\n") == 1
    assert text.count("r.GET(") == 1
    assert text.count("r.POST(") == 1
    assert text.count("_HTTP_Handler(srv ") == 2


def test_route_registration_line():
    m = _md()
    text = _service_text(ServiceDesc("Greeter", methods=[m]))
    line = 'r.GET("/hello/:name", ' + server_handler_method_name("Greeter", m) + "(srv))"
    assert line in text.splitlines()


def test_rpcx_and_official_modes():
    rpcx = _service_text(ServiceDesc("Greeter", methods=[_md()]))
    official = _service_text(ServiceDesc("Greeter", methods=[_md()], rpc_mode="official"))
    assert "err = srv.SayHello(c.Request.Context(), &req, reply)" in rpcx
    assert "reply, err = srv.SayHello(c.Request.Context(), &req)" in official
    assert "= new(HelloReply)" in rpcx
    assert "= new(HelloReply)" not in official


def test_bad_request_toggle():
    s = ServiceDesc("Greeter", methods=[_md()])
    assert "carrier.ErrorBadRequest(c, err)" in _service_text(s)
    assert "carrier.ErrorBadRequest(c, err)" not in _service_text(s, True)


def test_gin_binding_with_body_field():
    m = _md(method="POST", has_body=True, body=".Book", has_vars=True)
    lines = _service_text(ServiceDesc("Greeter", methods=[m])).splitlines()
    assert "if err := c.ShouldBind(req.Book); err != nil {" in lines
    assert "if err := c.ShouldBindQuery(req); err != nil {" in lines
    assert "if err := c.ShouldBindUri(req); err != nil {" in lines


def test_encoding_binding():
    m = _md(has_vars=True)
    text = _service_text(ServiceDesc("Greeter", methods=[m], use_encoding=True))
    assert "c.Request = carrier.WithValueUri(c.Request, c.Params)" in text
    assert "carrier.BindQuery(c, req); err != nil {" in text
    assert "carrier.BindUri(c, req); err != nil {" in text
    assert "ShouldBind" not in text


def test_patch_without_body_skips_query():
    m = _md(method="PATCH", has_body=False)
    text = _service_text(ServiceDesc("Greeter", methods=[m]))
    assert "ShouldBindQuery" not in text
    assert "return carrier.Validate(c.Request.Context(), req)" in text


def test_response_body_rendered():
    text = _service_text(ServiceDesc("Greeter", methods=[_md(response_body=".Data")]))
    assert "carrier.Render(c, reply.Data)" in text


def test_client_struct_declarations():
    assert "EnableValidation bool" in client_struct_options("Greeter")
    assert client_struct_options("Greeter").startswith("type " + client_struct_options_name("Greeter"))
    assert "cc " + client_interface_name("Greeter") in client_struct("Greeter")
    assert new_client_struct("Greeter").startswith("func New" + client_struct_name("Greeter"))


def test_client_methods():
    m = _md()
    plain = client_method(m, "Greeter")
    rpcx = client_method_for_rpcx(m, "Greeter")
    assert "return nil, err" in plain
    assert plain.endswith("return cli.cc.SayHello(ctx, req)}")
    assert rpcx.endswith("return cli.cc.SayHello(ctx, req, reply)}")
    assert "return nil, err" not in rpcx


def test_register_client():
    text = register_client(ServiceDesc("Greeter"))
    assert "client already registered" in text
    assert "func Register" + client_struct_name("Greeter") + "(" in text
    assert text.endswith("}")


@pytest.mark.parametrize("mode", ["rpcx", "official"])
def test_execute_client_desc_deduplicates(mode):
    s = ServiceDesc("Greeter", methods=[_md(num=0), _md(num=1)], rpc_mode=mode)
    text = _client_text(s)
    assert text.count("func (cli *" + client_struct_name("Greeter") + ") SayHello(") == 1
    assert text.startswith("type " + client_interface_name("Greeter") + " interface {")
    assert register_client(s) in text