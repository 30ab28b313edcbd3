from __future__ import annotations

import sys
from typing import Any, TextIO

import orjson
from pydantic import BaseModel

from ecsdeploy.core.errors import HandlerError
from ecsdeploy.core.logging import logger
from ecsdeploy.models.options import CLIOptions
from ecsdeploy.services.deploy.client import EcsClient, UnconfiguredClient
from ecsdeploy.services.deploy.config import DeployConfig
from ecsdeploy.services.deploy.definitions import DefinitionLoader, JsonDefinitionLoader
from ecsdeploy.services.deploy.scope import ExecutionScope


class DeployApp:
    """Collaborators shared by the subcommand handlers of one invocation."""

    def __init__(
        self,
        options: CLIOptions,
        *,
        config: DeployConfig | None = None,
        loader: DefinitionLoader | None = None,
        client: EcsClient | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.options = options
        self._config = config
        self._loader = loader or JsonDefinitionLoader()
        self._client = client or UnconfiguredClient()
        self._stdout = stdout
        self._logger = logger.bind(subcommand=options.subcommand)

    @property
    def config(self) -> DeployConfig:
        if self._config is None:
            raise HandlerError("load config", f"{self.options.subcommand} requires a config file")
        return self._config

    @property
    def timeout(self) -> int | None:
        if self.options.option.timeout is not None:
            return self.options.option.timeout
        return self._config.timeout if self._config is not None else None

    def start(self) -> ExecutionScope:
        return ExecutionScope(timeout=self.timeout)

    def log(self, message: str, **fields: Any) -> None:
        self._logger.info(message, **fields)

    def debug(self, message: str, **fields: Any) -> None:
        self._logger.debug(message, **fields)

    def emit_json(self, payload: Any) -> None:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", exclude_none=True)
        out = self._stdout or sys.stdout
        out.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")

    def load_task_definition(self, path: str | None = None) -> dict[str, Any]:
        path = path or self.config.task_definition
        self.debug("loading task definition", path=path)
        try:
            return self._loader.load_task_definition(path)
        except (OSError, ValueError) as exc:
            raise HandlerError("load task definition", f"{path}: {exc}") from exc

    def load_service_definition(self, path: str | None = None) -> dict[str, Any]:
        path = path or self.config.service_definition
        if not path:
            raise HandlerError("load service definition", "service_definition is not set in config")
        self.debug("loading service definition", path=path)
        try:
            return self._loader.load_service_definition(path)
        except (OSError, ValueError) as exc:
            raise HandlerError("load service definition", f"{path}: {exc}") from exc

    def register_task_definition(self, scope: ExecutionScope, task_definition: dict[str, Any]) -> dict[str, Any]:
        step = "register task definition"
        scope.raise_if_cancelled(step)
        try:
            return self._client.register_task_definition(task_definition, scope=scope)
        except HandlerError:
            raise
        except Exception as exc:
            raise HandlerError(step, str(exc)) from exc

    def execute(self, scope: ExecutionScope, subcommand: str, option: BaseModel) -> Any:
        scope.raise_if_cancelled(subcommand)
        try:
            return self._client.execute(subcommand, option, scope=scope)
        except HandlerError:
            raise
        except Exception as exc:
            raise HandlerError(subcommand, str(exc)) from exc
