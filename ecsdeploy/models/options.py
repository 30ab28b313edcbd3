from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GlobalFlags(BaseModel):
    """Global flags exactly as they appeared on the command line."""

    model_config = ConfigDict(extra="forbid")

    config_file_path: str | None = None
    debug: bool | None = None
    envfiles: list[str] | None = None
    ext_str: dict[str, str] | None = None
    ext_code: dict[str, str] | None = None
    timeout: int | None = Field(default=None, ge=1)


class StatusOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    events: int | None = None


class DeployOption(BaseModel):
    """Shared by deploy, scale and refresh; each applies its own defaults."""

    model_config = ConfigDict(extra="forbid")

    dry_run: bool | None = None
    desired_count: int | None = None
    skip_task_definition: bool | None = None
    force_new_deployment: bool | None = None
    no_wait: bool | None = None
    suspend_auto_scaling: bool | None = None
    rollback_events: str | None = None
    update_service: bool | None = None
    latest_task_definition: bool | None = None


class CreateOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dry_run: bool | None = None
    desired_count: int | None = None
    no_wait: bool | None = None


class RollbackOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dry_run: bool | None = None
    deregister_task_definition: bool | None = None
    no_wait: bool | None = None
    rollback_events: str | None = None


class DeleteOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dry_run: bool | None = None
    force: bool | None = None


class RunOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dry_run: bool | None = None
    task_definition: str | None = None
    no_wait: bool | None = None
    count: int | None = None
    watch_container: str | None = None
    propagate_tags: str | None = None
    task_override_str: str | None = None
    task_override_file: str | None = None
    skip_task_definition: bool | None = None
    latest_task_definition: bool | None = None
    tags: str | None = None
    wait_until: str | None = None
    revision: int | None = None


class RegisterOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dry_run: bool | None = None
    output: bool | None = None


class DeregisterOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dry_run: bool | None = None
    revision: int | None = None
    keeps: int | None = None
    force: bool | None = None


class RevisionsOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    revision: int | None = None
    output: str | None = None


class WaitOption(BaseModel):
    model_config = ConfigDict(extra="forbid")


class InitOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    region: str | None = None
    cluster: str | None = None
    service: str | None = None
    config_file_path: str | None = None
    task_definition_path: str | None = None
    service_definition_path: str | None = None
    force_overwrite: bool | None = None
    jsonnet: bool | None = None


class DiffOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    unified: bool | None = None


class AppSpecOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    task_definition: str | None = None
    update_service: bool | None = None


class VerifyOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    get_secrets: bool | None = None
    put_logs: bool | None = None


class RenderOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    targets: list[str] | None = None


class TasksOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    output: str | None = None
    find: bool | None = None
    stop: bool | None = None
    force: bool | None = None
    trace: bool | None = None


class ExecOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    command: str | None = None
    container: str | None = None
    local_port: int | None = None
    port: int | None = None
    port_forward: bool | None = None


class VersionOption(BaseModel):
    model_config = ConfigDict(extra="forbid")


SubcommandOption = (
    StatusOption
    | DeployOption
    | CreateOption
    | RollbackOption
    | DeleteOption
    | RunOption
    | RegisterOption
    | DeregisterOption
    | RevisionsOption
    | WaitOption
    | InitOption
    | DiffOption
    | AppSpecOption
    | VerifyOption
    | RenderOption
    | TasksOption
    | ExecOption
    | VersionOption
)


class GlobalOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    config_file_path: str
    debug: bool = False
    envfiles: list[str] = Field(default_factory=list)
    ext_str: dict[str, str] = Field(default_factory=dict)
    ext_code: dict[str, str] = Field(default_factory=dict)
    timeout: int | None = Field(default=None, ge=1)
    init_option: InitOption | None = None


# Every subcommand the CLI knows, in help order.
SUBCOMMAND_NAMES: tuple[str, ...] = (
    "status",
    "deploy",
    "scale",
    "refresh",
    "create",
    "rollback",
    "delete",
    "run",
    "register",
    "deregister",
    "revisions",
    "wait",
    "init",
    "diff",
    "appspec",
    "verify",
    "render",
    "tasks",
    "exec",
    "version",
)


class CLIOptions(BaseModel):
    """Resolved state for one invocation.

    ``subcommands`` holds exactly one record, keyed by ``subcommand``.
    """

    model_config = ConfigDict(extra="forbid")

    subcommand: str
    option: GlobalOption
    subcommands: dict[str, SubcommandOption] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_selected(self) -> CLIOptions:
        if self.subcommand not in SUBCOMMAND_NAMES:
            raise ValueError(f"unknown subcommand: {self.subcommand}")
        if set(self.subcommands) != {self.subcommand}:
            raise ValueError(f"expected options for {self.subcommand} only, got {sorted(self.subcommands)}")
        return self

    def for_subcommand(self, name: str) -> SubcommandOption | None:
        if name not in SUBCOMMAND_NAMES:
            raise KeyError(f"unknown subcommand: {name}")
        return self.subcommands.get(name)

    @property
    def selected(self) -> SubcommandOption:
        return self.subcommands[self.subcommand]
