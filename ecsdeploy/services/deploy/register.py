from __future__ import annotations

from typing import Any

import orjson

from ecsdeploy.core.logging import logger
from ecsdeploy.models.options import RegisterOption
from ecsdeploy.services.deploy.app import DeployApp

DRY_RUN_MARKER = " (DRY RUN)"


def dry_run_suffix(option: Any) -> str:
    return DRY_RUN_MARKER if getattr(option, "dry_run", None) else ""


def register(app: DeployApp, option: RegisterOption) -> dict[str, Any] | None:
    """Register the configured task definition.

    Returns the registered definition, or None for a dry run. No remote call
    is made when ``option.dry_run`` is set or when loading fails.
    """
    with app.start() as scope:
        app.log(f"Starting register task definition{dry_run_suffix(option)}")
        task_definition = app.load_task_definition()
        if option.dry_run:
            app.log("task definition:", task_definition=orjson.dumps(task_definition).decode("utf-8"))
            app.log("DRY RUN OK")
            return None

        registered = app.register_task_definition(scope, task_definition)
        app.log(
            "task definition is registered",
            family=registered.get("family"),
            revision=registered.get("revision"),
        )

    if option.output:
        try:
            app.emit_json(registered)
        except (OSError, TypeError) as exc:
            logger.warning("failed to output registered task definition", error=str(exc))
    return registered
