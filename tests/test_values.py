from dataclasses import dataclass, field

import pytest

from loomrt.errors import LoomError
from loomrt.values import Environment, PathValue, as_path, as_string, get_member


@dataclass
class FakeFunction:
    name: str
    parameters: list = field(default_factory=list)
    body: object = None


@dataclass
class FakeLambda:
    param: str
    body: object = None


def test_integral_number_prints_without_fraction():
    assert as_string(42.0) == "42"
    assert as_string(-0.0) == "0"


def test_fractional_number_keeps_fraction():
    assert as_string(1.5) == str(1.5)


def test_small_number_has_no_exponent():
    assert "e" not in as_string(1e-7).lower()
    assert float(as_string(1e-7)) == 1e-7


def test_scalars():
    assert as_string(True) == "true"
    assert as_string(False) == "false"
    assert as_string(None) == "null"
    assert as_string("text") == "text"
    assert as_string(PathValue("a/b.txt")) == "a/b.txt"


def test_list_and_record_rendering():
    assert as_string([PathValue("a"), "b", 3.0]) == "[a, b, 3]"
    assert as_string({"k": 1.0}) == "{k: 1}"


def test_callables_render_with_their_names():
    assert as_string(FakeLambda("x")) == "<lambda x>"
    assert as_string(FakeFunction("greet")) == "<function greet>"


def test_as_path():
    assert as_path(PathValue("in.csv")) == "in.csv"
    assert as_path("raw.txt") == "raw.txt"
    assert as_path({"path": PathValue("p.txt")}) == "p.txt"
    assert as_path({"path": "s.txt"}) == "s.txt"
    assert as_path({"file": "f.txt"}) is None
    assert as_path(3.0) is None
    assert as_path(None) is None


def test_path_name_member():
    assert get_member(PathValue("dir/report.csv"), "name") == "report.csv"


def test_path_unknown_member():
    with pytest.raises(LoomError, match="No member 'size' on path"):
        get_member(PathValue("x"), "size")


def test_record_member_exact_and_case_insensitive():
    record = {"Price": "10", "price": "20"}
    assert get_member(record, "price") == "20"
    assert get_member({"Price": "10"}, "PRICE") == "10"


def test_record_missing_member():
    with pytest.raises(LoomError, match="No member 'id' found on record"):
        get_member({"name": "x"}, "id")


def test_string_length_counts_utf8_bytes():
    text = "héllo"
    assert get_member(text, "length") == float(len(text.encode("utf-8")))


def test_member_on_number_fails():
    with pytest.raises(LoomError, match="Cannot access member 'x'"):
        get_member(5.0, "x")


def test_environment_scopes_shadow_and_restore():
    env = Environment()
    env.set("x", "outer")
    env.push_scope()
    env.set("x", "inner")
    assert env.get("x") == "inner"
    env.pop_scope()
    assert env.get("x") == "outer"


def test_global_scope_is_never_popped():
    env = Environment()
    env.set("x", 1.0)
    env.pop_scope()
    env.pop_scope()
    assert env.get("x") == 1.0


def test_missing_variable_raises_key_error():
    env = Environment()
    with pytest.raises(KeyError):
        env.get("nope")
    assert "nope" not in env


def test_null_is_a_bound_value():
    env = Environment()
    env.set("null", None)
    assert "null" in env
    assert env.get("null") is None


def test_register_and_get_function():
    env = Environment()
    func = FakeFunction("greet", ["x"])
    env.register_function(func)
    assert env.get_function("greet") is func
    assert env.get("greet") is func


def test_get_function_ignores_non_functions():
    env = Environment()
    env.set("greet", "not a function")
    assert env.get_function("greet") is None
    assert env.get_function("missing") is None


def test_extract_globals_returns_copy_of_base_scope():
    env = Environment()
    env.set("g", "global")
    env.push_scope()
    env.set("l", "local")
    exported = env.extract_globals()
    assert exported == {"g": "global"}
    exported["g"] = "changed"
    assert env.get("g") == "global"