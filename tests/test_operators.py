import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from loomrt.errors import LoomError
from loomrt.operators import eval_binary_op, is_truthy, op_precedence
from loomrt.values import PathValue


@given(
    st.floats(min_value=-1_000_000, max_value=1_000_000),
    st.floats(min_value=-1_000_000, max_value=1_000_000),
)
def test_addition_is_commutative(a, b):
    left = eval_binary_op(a, "+", b)
    right = eval_binary_op(b, "+", a)
    assert isinstance(left, float) and isinstance(right, float)
    assert abs(left - right) < 2.220446049250313e-16


@given(
    st.floats(min_value=-10_000, max_value=10_000),
    st.floats(min_value=-10_000, max_value=10_000),
)
def test_multiplication_is_commutative(a, b):
    left = eval_binary_op(a, "*", b)
    right = eval_binary_op(b, "*", a)
    assert isinstance(left, float) and isinstance(right, float)
    assert abs(left - right) < 1e-9


@given(st.floats(min_value=-1_000, max_value=1_000))
def test_division_by_zero_always_fails(a):
    with pytest.raises(LoomError, match="Division by zero"):
        eval_binary_op(a, "/", 0.0)


def test_numeric_arithmetic():
    assert eval_binary_op(1.0, "+", 2.0) == 3.0
    assert eval_binary_op(5.0, "-", 2.0) == 3.0
    assert eval_binary_op(4.0, "*", 2.5) == 10.0
    assert eval_binary_op(9.0, "/", 2.0) == 4.5


def test_string_concatenation():
    assert eval_binary_op("hi", "+", " there") == "hi there"
    assert eval_binary_op("a", "+", 1.0) == "a1"
    assert eval_binary_op(PathValue("dir/"), "+", "file") == "dir/file"
    assert eval_binary_op(True, "+", None) == "truenull"


@pytest.mark.parametrize(
    "op, message",
    [
        ("-", "Cannot subtract non-numbers"),
        ("*", "Cannot multiply non-numbers"),
        ("/", "Cannot divide non-numbers"),
    ],
)
def test_arithmetic_on_strings_fails(op, message):
    with pytest.raises(LoomError, match=message):
        eval_binary_op("4", op, 2.0)


def test_equality_compares_string_forms():
    assert eval_binary_op(1.0, "==", "1") is True
    assert eval_binary_op(PathValue("a.txt"), "==", "a.txt") is True
    assert eval_binary_op("x", "!=", "y") is True
    assert eval_binary_op("x", "!=", "x") is False


def test_comparisons_parse_numeric_strings():
    assert eval_binary_op("1500", ">", 1000.0) is True
    assert eval_binary_op(" 3 ", "<", 4.0) is True
    assert eval_binary_op(PathValue("7"), ">=", 7.0) is True
    assert eval_binary_op(2.0, "<=", "1e0") is False


def test_comparison_rejects_non_numeric():
    with pytest.raises(LoomError, match="Cannot compare '>' for non-numbers"):
        eval_binary_op("abc", ">", 1.0)
    with pytest.raises(LoomError, match="Cannot compare '<=' for non-numbers"):
        eval_binary_op("1_000", "<=", 1.0)
    with pytest.raises(LoomError, match="Cannot compare '<' for non-numbers"):
        eval_binary_op(True, "<", 1.0)


def test_nan_string_compares_false():
    assert eval_binary_op("nan", ">", 0.0) is False


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (False, False),
        (0.0, False),
        (2.5, True),
        (None, False),
        ("", False),
        ("x", True),
        ([], True),
        (PathValue(""), False),
        (math.nan, True),
    ],
)
def test_is_truthy(value, expected):
    assert is_truthy(value) is expected


def test_op_precedence_values():
    assert op_precedence("||") == 1
    assert op_precedence("&&") == 2
    assert op_precedence("!=") == 3
    assert op_precedence("<=") == 4
    assert op_precedence("-") == 5
    assert op_precedence("/") == 6
    assert op_precedence("??") == 0


def test_op_precedence_ordering():
    chain = ["||", "&&", "==", ">", "+", "*"]
    levels = [op_precedence(op) for op in chain]
    assert levels == sorted(levels)
    assert len(set(levels)) == len(levels)