import pytest

from zmicro.httprule import (
    HttpRule,
    MessageField,
    MethodDescBuilder,
    MethodInfo,
    PathVarError,
    build_path_vars,
    camel_case,
    camel_case_vars,
    transform_path_params,
)


def _method(**kwargs):
    fields = kwargs.pop(
        "fields",
        {
            "id": MessageField("id"),
            "tags": MessageField("tags", is_list=True),
            "labels": MessageField("labels", is_map=True),
            "sub": MessageField("sub", message_fields={"name": MessageField("name")}),
        },
    )
    return MethodInfo(go_name="GetUser", request="GetReq", reply="GetReply", fields=fields, **kwargs)


def test_camel_case_documented_example():
    assert camel_case("_my_field_name_2") == "XMyFieldName_2"


def test_camel_case_edge_cases():
    assert camel_case("") == ""
    assert camel_case("Already") == "Already"
    assert camel_case("a") == "A"


def test_camel_case_vars_applies_per_part():
    assert camel_case_vars("sub.my_field") == camel_case("sub") + "." + camel_case("my_field")


def test_build_path_vars():
    assert build_path_vars("/v1/{id}/x/{sub.name}") == ["id", "sub.name"]
    assert build_path_vars("/v1/users") == []


def test_transform_path_params():
    assert transform_path_params("/v1/{id}/x") == "/v1/:id/x"
    assert transform_path_params("/a/b") == "/a/b"


def test_get_rule_has_no_body_and_warns_on_body():
    b = MethodDescBuilder()
    md = b.build_http_rule(_method(), HttpRule(method="GET", path="/v1/{id}", body="*"))
    assert md.has_body is False
    assert md.has_vars is True
    assert md.path == "/v1/:id"
    assert len(b.warnings) == 1


def test_post_star_body():
    b = MethodDescBuilder()
    md = b.build_http_rule(_method(), HttpRule(method="POST", path="/v1/users", body="*"))
    assert md.has_body is True
    assert md.body == ""
    assert md.has_vars is False
    assert b.warnings == []


def test_post_named_body_and_response_body():
    b = MethodDescBuilder()
    rule = HttpRule(method="POST", path="/v1/u", body="sub_field", response_body="data")
    md = b.build_http_rule(_method(), rule)
    assert md.body == "." + camel_case_vars("sub_field")
    assert md.response_body == "." + camel_case_vars("data")


def test_star_response_body_is_empty():
    b = MethodDescBuilder()
    md = b.build_http_rule(_method(), HttpRule(method="POST", path="/u", body="*", response_body="*"))
    assert md.response_body == ""


def test_delete_body_depends_on_flag():
    rule = HttpRule(method="DELETE", path="/v1/{id}", body="*")
    strict = MethodDescBuilder()
    assert strict.build_http_rule(_method(), rule).has_body is False
    assert len(strict.warnings) == 1
    lax = MethodDescBuilder(allow_delete_body=True)
    assert lax.build_http_rule(_method(), rule).has_body is True
    assert lax.warnings == []


def test_patch_without_body_warns_unless_allowed():
    rule = HttpRule(method="PATCH", path="/v1/{id}")
    strict = MethodDescBuilder()
    assert strict.build_http_rule(_method(), rule).has_body is False
    assert len(strict.warnings) == 1
    lax = MethodDescBuilder(allow_empty_patch_body=True)
    lax.build_http_rule(_method(), rule)
    assert lax.warnings == []


def test_post_without_body_warns():
    b = MethodDescBuilder()
    md = b.build_http_rule(_method(), HttpRule(method="POST", path="/u"))
    assert md.has_body is False
    assert len(b.warnings) == 1


def test_repeated_bindings_are_numbered():
    b = MethodDescBuilder()
    nums = [b.build_method_desc(_method(), "GET", "/u").num for _ in range(3)]
    assert nums == [0, 1, 2]


def test_missing_path_field_raises():
    b = MethodDescBuilder()
    with pytest.raises(PathVarError):
        b.build_method_desc(_method(), "GET", "/v1/{missing}")
    assert b.method_sets == {}


def test_nested_path_field_resolves():
    b = MethodDescBuilder()
    md = b.build_method_desc(_method(), "GET", "/v1/{sub.name}")
    assert md.has_vars is True
    with pytest.raises(PathVarError):
        MethodDescBuilder().build_method_desc(_method(), "GET", "/v1/{sub.other}")


def test_list_and_map_path_fields_warn():
    b = MethodDescBuilder()
    b.build_method_desc(_method(), "GET", "/v1/{tags}/{labels}")
    assert len(b.warnings) == 2


def test_untransformed_path_kept():
    b = MethodDescBuilder(transform_path=False)
    md = b.build_method_desc(_method(), "GET", "/v1/{id}")
    assert md.path == "/v1/{id}"


def test_comment_without_comments_is_method_name():
    md = MethodDescBuilder().build_method_desc(_method(), "GET", "/u")
    assert md.comment == "// GetUser"


def test_comment_includes_leading_text():
    m = _method(leading_comments=" fetches a user\n")
    md = MethodDescBuilder().build_method_desc(m, "GET", "/u")
    assert md.comment == "// GetUser fetches a user"
    assert md.request == "GetReq"
    assert md.reply == "GetReply"