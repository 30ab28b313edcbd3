from __future__ import annotations

from pathlib import Path

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field

from ecsdeploy.core.errors import HandlerError


class DeployConfig(BaseModel):
    """Contents of the deploy config file (``ecsdeploy.yml``)."""

    model_config = ConfigDict(extra="forbid")

    region: str = ""
    cluster: str = "default"
    service: str | None = None
    service_definition: str | None = None
    task_definition: str
    timeout: int | None = Field(default=None, ge=1)


def load_config(path: str | Path) -> DeployConfig:
    """Read and validate a config file.

    Definition paths are resolved against the directory holding the config file.
    """
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
    except OSError as exc:
        raise HandlerError("load config", f"cannot read {config_path}: {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise HandlerError("load config", f"{config_path} is not valid YAML: {exc}") from exc

    if not isinstance(payload, dict):
        raise HandlerError("load config", f"{config_path} must contain a mapping")
    try:
        config = DeployConfig.model_validate(payload)
    except pydantic.ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()[:3]
        )
        raise HandlerError("load config", f"{config_path}: {details}") from exc

    base_dir = config_path.parent
    updates: dict[str, str] = {"task_definition": str(base_dir / config.task_definition)}
    if config.service_definition:
        updates["service_definition"] = str(base_dir / config.service_definition)
    return config.model_copy(update=updates)
