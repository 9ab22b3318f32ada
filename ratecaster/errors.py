# ratecaster/errors.py
"""
Error taxonomy shared by every layer of the client.

Absence of a record (an unregistered dApp) is not an error: lookups return
``None`` for that case.
"""
from __future__ import annotations

from typing import Any, Optional


class RateCasterError(Exception):
    """Base class. Carries the operation, identifier and step that failed."""

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        identifier: Optional[str] = None,
        step: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.identifier = identifier
        self.step = step

    def __str__(self) -> str:
        prefix = []
        if self.operation:
            prefix.append(self.operation)
        if self.identifier:
            prefix.append(f"[{self.identifier}]")
        if self.step:
            prefix.append(f"({self.step})")
        if not prefix:
            return self.message
        return f"{' '.join(prefix)}: {self.message}"

    def with_context(
        self,
        operation: str,
        identifier: Optional[str] = None,
        step: Optional[str] = None,
    ) -> "RateCasterError":
        """Return a copy of this error annotated with call-site context.

        Subclass attributes (``chain_id``, revert ``data``) carry over.
        """
        err = type(self)(self.message)
        err.__dict__.update(vars(self))
        err.operation = operation
        if identifier is not None:
            err.identifier = identifier
        if step is not None:
            err.step = step
        err.__cause__ = self.__cause__ or self
        return err


class ConfigurationError(RateCasterError):
    """The connected network has no registered parameters (or none could be read)."""

    def __init__(self, message: str, *, chain_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.chain_id = chain_id


class ValidationError(RateCasterError, ValueError):
    """A caller-supplied argument failed a local precondition."""


class TransportError(RateCasterError):
    """The chain connection or index endpoint was unreachable or returned a non-success status."""


class RemoteError(RateCasterError):
    """The remote side answered with a structured error (revert reason, GraphQL errors).

    ``data`` holds the raw revert data when the chain returned any; for a
    custom error it starts with the 4-byte selector.
    """

    def __init__(self, message: str, *, data: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.data = data
