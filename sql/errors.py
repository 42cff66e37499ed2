"""
================================
Error taxonomy for query templates.
================================

Every failure raised by the templating core or the execution engine is a
subclass of SafeSQLError. Messages carry the engine identity as a prefix and,
when the caller passes one, the location that reached the engine.

Classes:
    SafeSQLError: Base class for all engine errors
    MalformedTemplate: Template cannot be scanned (unterminated quote)
    UnknownPlaceholderKind: Sigil outside the supported set
    ArityMismatch: Placeholders and arguments do not reconcile
    FormatError: Value has the wrong shape for its placeholder
    InvalidFormat / EmptyIdentifier / InconsistentRows: FormatError kinds
    ExecutionError: The driver rejected the rendered statement
    ConnectError: The driver could not open a connection

Example:
    >>> from sql.errors import ArityMismatch
    >>> err = ArityMismatch("Number of args (1) doesn't match number of placeholders (2) in [?s ?s]")
    >>> str(err)
    "SafeSQL: Number of args (1) doesn't match number of placeholders (2) in [?s ?s]"
"""

from typing import Any, Optional

ENGINE_NAME = "SafeSQL"


class SafeSQLError(Exception):
    """Base exception for all query templating and execution errors.

    Attributes:
        reason: Bare message without prefix or caller suffix
        caller: Optional call-site description supplied by the caller
    """

    def __init__(self, reason: str, *, caller: Optional[str] = None):
        self.reason = reason
        self.caller = caller
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """Full message with engine prefix and optional call-site suffix."""
        text = f"{ENGINE_NAME}: {self.reason}"
        if self.caller:
            text += f". Error initiated in {self.caller}"
        return text

    def with_caller(self, caller: Optional[str]) -> "SafeSQLError":
        """Attach call-site context and return self."""
        if caller and not self.caller:
            self.caller = caller
            self.args = (self.message,)
        return self

    def __str__(self) -> str:
        return self.message


class MalformedTemplate(SafeSQLError):
    """Template has an unterminated quoted span or cannot be scanned."""
    pass


class UnknownPlaceholderKind(SafeSQLError):
    """A placeholder marker is followed by an unsupported sigil letter."""
    pass


class ArityMismatch(SafeSQLError):
    """Placeholder count or names do not match the supplied arguments."""
    pass


class FormatError(SafeSQLError):
    """A value has the wrong shape for the placeholder it is bound to.

    Attributes:
        kind: Placeholder kind name (e.g. 'integer', 'in-list')
        value: Offending value
    """

    def __init__(self, kind: str, value: Any, reason: str, *, caller: Optional[str] = None):
        self.kind = kind
        self.value = value
        super().__init__(reason, caller=caller)


class InvalidFormat(FormatError):
    """Value type or shape is not accepted by the placeholder kind."""
    pass


class EmptyIdentifier(FormatError):
    """Identifier placeholder received None or an empty string."""
    pass


class InconsistentRows(FormatError):
    """Key/value rows disagree on their column set or arity."""
    pass


class ExecutionError(SafeSQLError):
    """The driver failed to execute a rendered statement.

    Attributes:
        query: Fully rendered SQL that was sent to the driver
        driver_error: Error text reported by the driver
    """

    def __init__(self, driver_error: str, query: str, *, caller: Optional[str] = None):
        self.driver_error = driver_error
        self.query = query
        super().__init__(f"{driver_error}. Full query: [{query}]", caller=caller)


class ConnectError(SafeSQLError):
    """The driver could not establish a connection."""
    pass
