"""Exception hierarchy for converge-all.

The core only defines exceptions; the transaction driver and the CLI decide
how they are reported.
"""

from __future__ import annotations


class ConvergeError(Exception):
    """Base exception for converge-all."""


# =============================================================================
# Registry misconfiguration (fatal at startup)
# =============================================================================


class RegistryError(ConvergeError):
    """Provider registry misconfiguration."""


class DuplicateProviderError(RegistryError):
    """A provider kind with the same name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Provider kind {name} already defined")
        self.name = name


class UnknownParentError(RegistryError):
    """The declared parent of a provider kind is not registered."""

    def __init__(self, name: str, parent: str) -> None:
        super().__init__(f"No parent kind {parent} for provider kind {name}")
        self.name = name
        self.parent = parent


class UnknownProviderError(RegistryError):
    """No provider kind is registered under the requested name."""

    def __init__(self, name: str | None) -> None:
        if name is None:
            message = "No provider kind given and no default for this platform"
        else:
            message = f"Invalid provider kind {name}"
        super().__init__(message)
        self.name = name


# =============================================================================
# Per-resource failures (become failure events)
# =============================================================================


class UnsupportedOperationError(ConvergeError):
    """The bound provider lacks a capability the desired value requires."""

    def __init__(self, kind: str, operation: str) -> None:
        super().__init__(f"Provider kind {kind} does not support {operation}")
        self.kind = kind
        self.operation = operation


class SyncActionError(ConvergeError):
    """A provider's corrective action failed.

    Attributes:
        action: Name of the corrective action (install, remove, update).
        cause: The original exception raised by the provider.
    """

    def __init__(self, action: str, cause: BaseException) -> None:
        super().__init__(f"Could not run {action}: {cause}")
        self.action = action
        self.cause = cause


class QueryError(ConvergeError):
    """A provider could not report the observed or latest value."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"Could not {operation}: {cause}")
        self.operation = operation
        self.cause = cause


class CommandError(ConvergeError):
    """An external command exited with a non-zero status."""

    def __init__(self, cmd: list[str], returncode: int, output: str = "") -> None:
        detail = output.strip().splitlines()[-1] if output.strip() else "no output"
        super().__init__(f"{' '.join(cmd)} exited with {returncode}: {detail}")
        self.cmd = cmd
        self.returncode = returncode
        self.output = output


class SourceError(ConvergeError):
    """A package source could not be resolved to a local file."""


# =============================================================================
# Contract violations (fatal)
# =============================================================================


class InvalidEventStatusError(ConvergeError):
    """An event with a status outside the recognized vocabulary was recorded."""

    def __init__(self, status: str) -> None:
        super().__init__(f"Event status {status!r} is invalid")
        self.status = status


class StatusFinalizedError(ConvergeError):
    """An event was recorded on a transaction status that is already final."""
