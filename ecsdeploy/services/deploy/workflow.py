from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from ecsdeploy.services.deploy.app import DeployApp
from ecsdeploy.services.deploy.register import dry_run_suffix


def run_remote(app: DeployApp, subcommand: str, option: BaseModel) -> Any:
    """Run a subcommand whose workflow lives in the ECS client.

    A dry run stops after the start message; the client is not called.
    """
    with app.start() as scope:
        app.log(f"Starting {subcommand}{dry_run_suffix(option)}")
        if getattr(option, "dry_run", None):
            app.log("DRY RUN OK")
            return None
        result = app.execute(scope, subcommand, option)
        app.debug(f"{subcommand} finished")
        return result
