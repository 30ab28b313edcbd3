from __future__ import annotations


class DeployError(Exception):
    """Base class for every error surfaced by the CLI."""


class SchemaDefinitionError(DeployError):
    """The option registry is inconsistent; raised while the registry is built."""


class ParseError(DeployError):
    """The argument list could not be decoded."""

    def __init__(self, message: str, *, usage: str | None = None) -> None:
        super().__init__(message)
        self.usage = usage


class ValidationError(DeployError):
    """Resolved options are well typed but violate a semantic constraint."""

    def __init__(self, subcommand: str, message: str) -> None:
        super().__init__(f"{subcommand}: {message}")
        self.subcommand = subcommand


class HandlerError(DeployError):
    """A collaborator failed while a subcommand was running."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step


class ScopeCancelledError(HandlerError):
    pass
