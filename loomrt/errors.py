"""Errors raised while running Loom programs."""


class LoomError(Exception):
    """A runtime failure carrying a human-readable message."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoomError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))

    def is_security_denial(self) -> bool:
        """Return True when the failure comes from the security policy."""
        return False


class FilterRejected(LoomError):
    """A filter step rejected the value flowing through the pipe."""

    def __init__(self) -> None:
        super().__init__("Filter condition failed")


class _SecurityDenial(LoomError):
    def is_security_denial(self) -> bool:
        return True


class UnauthorizedAccess(_SecurityDenial):
    """Access to a path or host outside the granted capability."""

    def __init__(self, capability: str, path: str) -> None:
        super().__init__(f"Unauthorized {capability} access to '{path}'")
        self.capability = capability
        self.path = path


class DeniedByDenyGlobs(_SecurityDenial):
    """A path matched one of the policy's deny globs."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Path '{path}' is denied by deny_globs")
        self.path = path


class RestrictedOperation(_SecurityDenial):
    """An operation that restricted trust mode does not allow."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} operation is disabled in restricted mode")
        self.operation = operation