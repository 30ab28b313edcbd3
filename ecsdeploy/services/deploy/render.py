from __future__ import annotations

from ecsdeploy.models.options import RenderOption
from ecsdeploy.services.deploy.app import DeployApp


def render(app: DeployApp, option: RenderOption) -> None:
    """Print each target as JSON, in the order given."""
    for target in option.targets or []:
        if target == "config":
            app.emit_json(app.config)
        elif target == "taskdef":
            app.emit_json(app.load_task_definition())
        elif target == "servicedef":
            app.emit_json(app.load_service_definition())
        else:
            raise ValueError(f"unknown render target: {target}")
