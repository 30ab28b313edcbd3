from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal, get_args

from pydantic import BaseModel

from ecsdeploy.core.config import DEFAULT_CONFIG_FILE
from ecsdeploy.core.errors import SchemaDefinitionError
from ecsdeploy.models.options import (
    SUBCOMMAND_NAMES,
    AppSpecOption,
    CreateOption,
    DeleteOption,
    DeployOption,
    DeregisterOption,
    DiffOption,
    ExecOption,
    GlobalFlags,
    InitOption,
    RegisterOption,
    RenderOption,
    RevisionsOption,
    RollbackOption,
    RunOption,
    StatusOption,
    SubcommandOption,
    TasksOption,
    VerifyOption,
    VersionOption,
    WaitOption,
)

FieldKind = Literal[
    "bool",
    "negatable_bool",
    "string",
    "string_list",
    "int",
    "int32",
    "int64",
    "seconds",
    "mapping",
    "positional_list",
]

BOOL_KINDS = frozenset({"bool", "negatable_bool"})
VALUE_KINDS = frozenset({"string", "string_list", "int", "int32", "int64", "seconds", "mapping"})

OUTPUT_FORMATS = ("table", "json", "tsv")
RENDER_TARGETS = ("config", "taskdef", "servicedef")


@dataclass(frozen=True)
class FieldSpec:
    """One option field: where it is stored and how it is spelled on the command line."""

    name: str
    flags: tuple[str, ...] = ()
    kind: FieldKind = "string"
    help: str = ""
    env: str | None = None
    choices: tuple[str, ...] | None = None
    negation: str | None = None
    metavar: str | None = None

    @property
    def takes_value(self) -> bool:
        return self.kind in VALUE_KINDS


@dataclass(frozen=True)
class SubcommandSpec:
    name: str
    model: type[BaseModel]
    fields: tuple[FieldSpec, ...]
    defaults: Mapping[str, Any]
    help: str = ""

    def field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def negated_flags(self, field: FieldSpec) -> tuple[str, ...]:
        """Negative spellings accepted for ``field``.

        Negatable fields declare theirs. Plain booleans get ``--no-<flag>``
        only when this subcommand defaults them to true.
        """
        if field.kind == "negatable_bool":
            return (field.negation,) if field.negation else ()
        if field.kind == "bool" and self.defaults.get(field.name) is True:
            return tuple(f"--no-{flag[2:]}" for flag in field.flags if flag.startswith("--"))
        return ()

    def spellings(self) -> set[str]:
        spelled: set[str] = set()
        for field in self.fields:
            spelled.update(field.flags)
            spelled.update(self.negated_flags(field))
        return spelled


def _bool(name: str, flag: str, help: str = "") -> FieldSpec:
    return FieldSpec(name, (flag,), "bool", help)


def _dry_run() -> FieldSpec:
    return _bool("dry_run", "--dry-run", "dry run, no changes are made")


GLOBAL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("config_file_path", ("--config",), help="config file path", metavar="PATH"),
    _bool("debug", "--debug", "enable debug log"),
    FieldSpec("envfiles", ("--envfile",), "string_list", "environment file to load", metavar="PATH"),
    FieldSpec("ext_str", ("--ext-str",), "mapping", "external string value for templates", metavar="KEY=VALUE"),
    FieldSpec("ext_code", ("--ext-code",), "mapping", "external code value for templates", metavar="KEY=EXPR"),
    FieldSpec("timeout", ("--timeout",), "seconds", "timeout for the whole command in seconds", metavar="SECONDS"),
)


_DEPLOY_SHAPE: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        _dry_run(),
        FieldSpec("desired_count", ("--tasks",), "int32", "desired count of tasks", metavar="N"),
        _bool("skip_task_definition", "--skip-task-definition", "skip register a new task definition"),
        _bool("force_new_deployment", "--force-new-deployment", "force a new deployment of the service"),
        _bool("no_wait", "--no-wait", "exit immediately after updating the service"),
        FieldSpec(
            "suspend_auto_scaling",
            ("--suspend-auto-scaling",),
            "negatable_bool",
            "suspend application auto-scaling attached with the ECS service",
            negation="--resume-auto-scaling",
        ),
        FieldSpec(
            "rollback_events",
            ("--rollback-events",),
            help="roll back when specified events happened (DEPLOYMENT_FAILURE,DEPLOYMENT_STOP_ON_ALARM)",
            metavar="EVENTS",
        ),
        _bool("update_service", "--update-service", "update service attributes by service definition"),
        _bool("latest_task_definition", "--latest-task-definition", "deploy with the latest task definition"),
    )
}


def _deploy_fields(*names: str) -> tuple[FieldSpec, ...]:
    return tuple(_DEPLOY_SHAPE[name] for name in names)


_SPECS: tuple[SubcommandSpec, ...] = (
    SubcommandSpec(
        name="status",
        model=StatusOption,
        help="show status of service",
        fields=(FieldSpec("events", ("--events",), "int", "show N events", metavar="N"),),
        defaults={"events": 2},
    ),
    SubcommandSpec(
        name="deploy",
        model=DeployOption,
        help="deploy service",
        fields=tuple(_DEPLOY_SHAPE.values()),
        defaults={
            "dry_run": False,
            "desired_count": -1,
            "skip_task_definition": False,
            "force_new_deployment": False,
            "no_wait": False,
            "suspend_auto_scaling": None,
            "rollback_events": "",
            "update_service": True,
            "latest_task_definition": False,
        },
    ),
    SubcommandSpec(
        name="scale",
        model=DeployOption,
        help="scale service, equivalent to deploy --skip-task-definition --no-update-service",
        fields=_deploy_fields("dry_run", "desired_count", "no_wait"),
        defaults={
            "dry_run": False,
            "desired_count": -1,
            "skip_task_definition": True,
            "force_new_deployment": False,
            "no_wait": False,
            "suspend_auto_scaling": None,
            "rollback_events": None,
            "update_service": False,
            "latest_task_definition": False,
        },
    ),
    SubcommandSpec(
        name="refresh",
        model=DeployOption,
        help="refresh service, equivalent to deploy --skip-task-definition --force-new-deployment --no-update-service",
        fields=_deploy_fields("dry_run", "no_wait"),
        defaults={
            "dry_run": False,
            "desired_count": None,
            "skip_task_definition": True,
            "force_new_deployment": True,
            "no_wait": False,
            "suspend_auto_scaling": None,
            "rollback_events": None,
            "update_service": False,
            "latest_task_definition": False,
        },
    ),
    SubcommandSpec(
        name="create",
        model=CreateOption,
        help="create service",
        fields=_deploy_fields("dry_run", "desired_count", "no_wait"),
        defaults={"dry_run": False, "desired_count": -1, "no_wait": False},
    ),
    SubcommandSpec(
        name="rollback",
        model=RollbackOption,
        help="roll back service",
        fields=(
            _dry_run(),
            _bool(
                "deregister_task_definition",
                "--deregister-task-definition",
                "deregister the rolled-back task definition",
            ),
            _DEPLOY_SHAPE["no_wait"],
            _DEPLOY_SHAPE["rollback_events"],
        ),
        defaults={
            "dry_run": False,
            "deregister_task_definition": True,
            "no_wait": False,
            "rollback_events": "",
        },
    ),
    SubcommandSpec(
        name="delete",
        model=DeleteOption,
        help="delete service",
        fields=(_dry_run(), _bool("force", "--force", "delete without confirmation")),
        defaults={"dry_run": False, "force": False},
    ),
    SubcommandSpec(
        name="run",
        model=RunOption,
        help="run task",
        fields=(
            _dry_run(),
            FieldSpec("task_definition", ("--task-def",), help="task definition file for run task", metavar="PATH"),
            _bool("no_wait", "--no-wait", "exit immediately after running the task"),
            FieldSpec("count", ("--count",), "int32", "number of tasks to run (max 10)", metavar="N"),
            FieldSpec("watch_container", ("--watch-container",), help="container name to watch its exit code", metavar="NAME"),
            FieldSpec(
                "propagate_tags",
                ("--propagate-tags",),
                help="propagate the tags for the task",
                choices=("SERVICE", "TASK_DEFINITION", "NONE"),
                metavar="SCOPE",
            ),
            FieldSpec("task_override_str", ("--overrides",), help="task overrides JSON string", metavar="JSON"),
            FieldSpec("task_override_file", ("--overrides-file",), help="task overrides JSON file path", metavar="PATH"),
            _bool("skip_task_definition", "--skip-task-definition", "skip register a new task definition"),
            _bool("latest_task_definition", "--latest-task-definition", "use the latest task definition"),
            FieldSpec("tags", ("--tags",), help="tags for the task: Key=Value,Key=Value", metavar="TAGS"),
            FieldSpec(
                "wait_until",
                ("--wait-until",),
                help="wait until the task reaches the state",
                choices=("running", "stopped"),
                metavar="STATE",
            ),
            FieldSpec("revision", ("--revision",), "int64", "revision of the task definition to run", metavar="N"),
        ),
        defaults={
            "dry_run": False,
            "task_definition": "",
            "no_wait": False,
            "count": 1,
            "watch_container": "",
            "propagate_tags": "",
            "task_override_str": "",
            "task_override_file": "",
            "skip_task_definition": False,
            "latest_task_definition": False,
            "tags": "",
            "wait_until": "stopped",
            "revision": 0,
        },
    ),
    SubcommandSpec(
        name="register",
        model=RegisterOption,
        help="register task definition",
        fields=(_dry_run(), _bool("output", "--output", "output the registered task definition as JSON")),
        defaults={"dry_run": False, "output": False},
    ),
    SubcommandSpec(
        name="deregister",
        model=DeregisterOption,
        help="deregister task definition",
        fields=(
            _dry_run(),
            FieldSpec("revision", ("--revision",), "int64", "revision number to deregister", metavar="N"),
            FieldSpec("keeps", ("--keeps",), "int", "number of revisions to keep, except in-use", metavar="N"),
            _bool("force", "--force", "deregister without confirmation"),
        ),
        defaults={"dry_run": False, "revision": 0, "keeps": 0, "force": False},
    ),
    SubcommandSpec(
        name="revisions",
        model=RevisionsOption,
        help="show revisions of task definitions",
        fields=(
            FieldSpec("revision", ("--revision",), "int64", "revision number to output", metavar="N"),
            FieldSpec("output", ("--output",), help="output format", choices=OUTPUT_FORMATS, metavar="FORMAT"),
        ),
        defaults={"revision": 0, "output": "table"},
    ),
    SubcommandSpec(
        name="wait",
        model=WaitOption,
        help="wait until service stable",
        fields=(),
        defaults={},
    ),
    SubcommandSpec(
        name="init",
        model=InitOption,
        help="create config file from existing ECS service",
        fields=(
            FieldSpec("region", ("--region",), help="AWS region", env="AWS_REGION", metavar="REGION"),
            FieldSpec("cluster", ("--cluster",), help="ECS cluster name", metavar="NAME"),
            FieldSpec("service", ("--service",), help="ECS service name", metavar="NAME"),
            FieldSpec("config_file_path", ("--config",), help="config file path to write", metavar="PATH"),
            FieldSpec("task_definition_path", ("--task-definition-path",), help="path to output task definition file", metavar="PATH"),
            FieldSpec("service_definition_path", ("--service-definition-path",), help="path to output service definition file", metavar="PATH"),
            _bool("force_overwrite", "--force-overwrite", "overwrite existing files"),
            _bool("jsonnet", "--jsonnet", "output files as jsonnet format"),
        ),
        defaults={
            "region": "",
            "cluster": "default",
            "service": None,
            "config_file_path": DEFAULT_CONFIG_FILE,
            "task_definition_path": "ecs-task-def.json",
            "service_definition_path": "ecs-service-def.json",
            "force_overwrite": False,
            "jsonnet": False,
        },
    ),
    SubcommandSpec(
        name="diff",
        model=DiffOption,
        help="show diff between task definition, service definition with current running service and task definition",
        fields=(_bool("unified", "--unified", "output in unified format"),),
        defaults={"unified": True},
    ),
    SubcommandSpec(
        name="appspec",
        model=AppSpecOption,
        help="output AppSpec YAML for CodeDeploy to STDOUT",
        fields=(
            FieldSpec(
                "task_definition",
                ("--task-definition",),
                help="use task definition arn in AppSpec",
                choices=("latest", "current"),
                metavar="WHICH",
            ),
            _bool("update_service", "--update-service", "update service definition with task definition arn"),
        ),
        defaults={"task_definition": "latest", "update_service": True},
    ),
    SubcommandSpec(
        name="verify",
        model=VerifyOption,
        help="verify resources in configurations",
        fields=(
            _bool("get_secrets", "--get-secrets", "get values from secrets manager and parameter store"),
            _bool("put_logs", "--put-logs", "put verification logs to CloudWatch logs"),
        ),
        defaults={"get_secrets": True, "put_logs": True},
    ),
    SubcommandSpec(
        name="render",
        model=RenderOption,
        help="render config, service definition or task definition file to STDOUT",
        fields=(
            FieldSpec(
                "targets",
                kind="positional_list",
                help="targets to render",
                choices=RENDER_TARGETS,
                metavar="TARGET",
            ),
        ),
        defaults={"targets": None},
    ),
    SubcommandSpec(
        name="tasks",
        model=TasksOption,
        help="list tasks that are in a service or having the same family",
        fields=(
            FieldSpec("id", ("--id",), help="task ID", metavar="ID"),
            FieldSpec("output", ("--output",), help="output format", choices=OUTPUT_FORMATS, metavar="FORMAT"),
            _bool("find", "--find", "find a task from tasks list and dump it as JSON"),
            _bool("stop", "--stop", "stop the task"),
            _bool("force", "--force", "stop the task without confirmation"),
            _bool("trace", "--trace", "trace the task"),
        ),
        defaults={"id": "", "output": "table", "find": False, "stop": False, "force": False, "trace": False},
    ),
    SubcommandSpec(
        name="exec",
        model=ExecOption,
        help="execute command on task",
        fields=(
            FieldSpec("id", ("--id",), help="task ID", metavar="ID"),
            FieldSpec("command", ("--command",), help="command to execute", metavar="CMD"),
            FieldSpec("container", ("--container",), help="container name", metavar="NAME"),
            FieldSpec("local_port", ("--local-port",), "int", "local port number", metavar="N"),
            FieldSpec("port", ("--port",), "int", "remote port number (required for --port-forward)", metavar="N"),
            _bool("port_forward", "--port-forward", "enable port forward"),
        ),
        defaults={"id": "", "command": "sh", "container": "", "local_port": 0, "port": 0, "port_forward": False},
    ),
    SubcommandSpec(
        name="version",
        model=VersionOption,
        help="show version",
        fields=(),
        defaults={},
    ),
)


def _check_spec(spec: SubcommandSpec) -> None:
    model_fields = set(spec.model.model_fields)
    schema_fields = [field.name for field in spec.fields]

    if len(schema_fields) != len(set(schema_fields)):
        raise SchemaDefinitionError(f"{spec.name}: duplicated field in schema")
    unknown = set(schema_fields) - model_fields
    if unknown:
        raise SchemaDefinitionError(f"{spec.name}: schema fields not in {spec.model.__name__}: {sorted(unknown)}")
    missing = model_fields - set(spec.defaults)
    if missing:
        raise SchemaDefinitionError(f"{spec.name}: no default declared for {sorted(missing)}")
    extra = set(spec.defaults) - model_fields
    if extra:
        raise SchemaDefinitionError(f"{spec.name}: defaults for unknown fields {sorted(extra)}")

    seen: set[str] = set()
    for field in spec.fields:
        if field.kind == "negatable_bool" and not field.negation:
            raise SchemaDefinitionError(f"{spec.name}.{field.name}: negatable flag without a negative spelling")
        if field.kind == "positional_list":
            if field.flags:
                raise SchemaDefinitionError(f"{spec.name}.{field.name}: positional field with flag spellings")
            continue
        if not field.flags:
            raise SchemaDefinitionError(f"{spec.name}.{field.name}: no flag spelling")
        for flag in field.flags + spec.negated_flags(field):
            if flag in seen:
                raise SchemaDefinitionError(f"{spec.name}: flag {flag} declared twice")
            seen.add(flag)


def _build_registry(specs: tuple[SubcommandSpec, ...]) -> Mapping[str, SubcommandSpec]:
    registry: dict[str, SubcommandSpec] = {}
    names = set(SUBCOMMAND_NAMES)
    record_types = set(get_args(SubcommandOption))
    for spec in specs:
        if spec.name in registry:
            raise SchemaDefinitionError(f"subcommand {spec.name} registered twice")
        if spec.name not in names:
            raise SchemaDefinitionError(f"subcommand {spec.name} is not in SUBCOMMAND_NAMES")
        if spec.model not in record_types:
            raise SchemaDefinitionError(f"{spec.name}: {spec.model.__name__} is not a SubcommandOption")
        _check_spec(spec)
        registry[spec.name] = spec

    unregistered = names - set(registry)
    if unregistered:
        raise SchemaDefinitionError(f"SUBCOMMAND_NAMES without a registered subcommand: {sorted(unregistered)}")

    global_fields = {field.name for field in GLOBAL_FIELDS}
    if global_fields != set(GlobalFlags.model_fields):
        raise SchemaDefinitionError("global schema does not match GlobalFlags")
    return MappingProxyType(registry)


SUBCOMMANDS: Mapping[str, SubcommandSpec] = _build_registry(_SPECS)


def get_subcommand(name: str) -> SubcommandSpec | None:
    return SUBCOMMANDS.get(name)
