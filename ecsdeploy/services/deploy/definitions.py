from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import orjson


class DefinitionLoader(Protocol):
    def load_task_definition(self, path: str) -> dict[str, Any]: ...

    def load_service_definition(self, path: str) -> dict[str, Any]: ...


class JsonDefinitionLoader:
    """Reads task and service definitions stored as plain JSON files.

    Output of ``aws ecs describe-task-definition`` is accepted as is: the
    ``taskDefinition`` wrapper is removed.
    """

    def load_task_definition(self, path: str) -> dict[str, Any]:
        payload = self._load(path)
        inner = payload.get("taskDefinition")
        if isinstance(inner, dict):
            return inner
        return payload

    def load_service_definition(self, path: str) -> dict[str, Any]:
        return self._load(path)

    @staticmethod
    def _load(path: str) -> dict[str, Any]:
        with Path(path).open("rb") as f:
            payload = orjson.loads(f.read())
        if not isinstance(payload, dict):
            raise ValueError(f"{path}: expected a JSON object")
        return payload
