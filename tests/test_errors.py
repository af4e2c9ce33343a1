import pytest

from loomrt.errors import (
    DeniedByDenyGlobs,
    FilterRejected,
    LoomError,
    RestrictedOperation,
    UnauthorizedAccess,
)


def test_plain_message_is_the_string_form():
    assert str(LoomError("boom")) == "boom"


def test_filter_rejected_message():
    assert str(FilterRejected()) == "Filter condition failed"


def test_unauthorized_access_message_and_fields():
    err = UnauthorizedAccess("Network", "blocked.local")
    assert str(err) == "Unauthorized Network access to 'blocked.local'"
    assert err.capability == "Network"
    assert err.path == "blocked.local"


def test_deny_globs_message():
    err = DeniedByDenyGlobs("/srv/secret.txt")
    assert str(err) == "Path '/srv/secret.txt' is denied by deny_globs"


def test_restricted_operation_message():
    err = RestrictedOperation("Write")
    assert str(err) == "Write operation is disabled in restricted mode"


@pytest.mark.parametrize(
    "err, expected",
    [
        (LoomError("x"), False),
        (FilterRejected(), False),
        (UnauthorizedAccess("Read", "a"), True),
        (DeniedByDenyGlobs("a"), True),
        (RestrictedOperation("Move"), True),
    ],
)
def test_is_security_denial(err, expected):
    assert err.is_security_denial() is expected


def test_every_error_is_catchable_as_loom_error():
    err = UnauthorizedAccess("Read", "x")
    with pytest.raises(LoomError) as info:
        raise err
    caught = info.value
    assert caught is err
    assert str(caught) == "Unauthorized Read access to 'x'"
    assert caught.capability == "Read"
    assert caught.path == "x"
    assert caught.is_security_denial() is True


def test_equality_depends_on_kind_and_message():
    assert UnauthorizedAccess("Read", "a") == UnauthorizedAccess("Read", "a")
    assert UnauthorizedAccess("Read", "a") != UnauthorizedAccess("Write", "a")
    assert FilterRejected() != LoomError("Filter condition failed")
    assert len({FilterRejected(), FilterRejected()}) == 1