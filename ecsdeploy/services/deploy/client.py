from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel

from ecsdeploy.services.deploy.scope import ExecutionScope


class EcsClient(Protocol):
    """Remote side of every subcommand.

    Implementations should honour ``scope.remaining()`` as the deadline of
    the call. The CLI never retries a failed call.
    """

    def register_task_definition(self, task_definition: dict[str, Any], *, scope: ExecutionScope) -> dict[str, Any]: ...

    def execute(self, subcommand: str, option: BaseModel, *, scope: ExecutionScope) -> Any: ...


class UnconfiguredClient:
    """Placeholder used when no ECS API client has been wired in."""

    def register_task_definition(self, task_definition: dict[str, Any], *, scope: ExecutionScope) -> dict[str, Any]:
        raise RuntimeError("no ECS API client is configured")

    def execute(self, subcommand: str, option: BaseModel, *, scope: ExecutionScope) -> Any:
        raise RuntimeError("no ECS API client is configured")
