from __future__ import annotations

import os
from pathlib import Path

import pytest

from ecsdeploy.core.config import Settings
from ecsdeploy.models.options import (
    AppSpecOption,
    DeleteOption,
    DeployOption,
    DeregisterOption,
    DiffOption,
    ExecOption,
    GlobalOption,
    InitOption,
    RegisterOption,
    RenderOption,
    RevisionsOption,
    RollbackOption,
    RunOption,
    StatusOption,
    TasksOption,
    VerifyOption,
    WaitOption,
)
from ecsdeploy.services.options.parser import parse_args
from ecsdeploy.services.options.pipeline import parse_cli
from ecsdeploy.services.options.resolver import OptionResolver

_ENV = {"AWS_REGION": "ap-northeast-1"}


def _parse(args: list[str]):  # noqa: ANN202
    return parse_cli(args, env=_ENV.get)


CASES = [
    (["status"], "status", StatusOption(events=2)),
    (["status", "--events=10"], "status", StatusOption(events=10)),
    (["status", "--events", "10"], "status", StatusOption(events=10)),
    (
        ["deploy"],
        "deploy",
        DeployOption(
            dry_run=False,
            desired_count=-1,
            skip_task_definition=False,
            force_new_deployment=False,
            no_wait=False,
            rollback_events="",
            update_service=True,
            latest_task_definition=False,
        ),
    ),
    (
        [
            "deploy",
            "--dry-run",
            "--tasks=10",
            "--skip-task-definition",
            "--force-new-deployment",
            "--no-wait",
            "--latest-task-definition",
        ],
        "deploy",
        DeployOption(
            dry_run=True,
            desired_count=10,
            skip_task_definition=True,
            force_new_deployment=True,
            no_wait=True,
            rollback_events="",
            update_service=True,
            latest_task_definition=True,
        ),
    ),
    (
        ["deploy", "--resume-auto-scaling"],
        "deploy",
        DeployOption(
            suspend_auto_scaling=False,
            dry_run=False,
            desired_count=-1,
            skip_task_definition=False,
            force_new_deployment=False,
            no_wait=False,
            rollback_events="",
            update_service=True,
            latest_task_definition=False,
        ),
    ),
    (
        ["deploy", "--suspend-auto-scaling"],
        "deploy",
        DeployOption(
            suspend_auto_scaling=True,
            dry_run=False,
            desired_count=-1,
            skip_task_definition=False,
            force_new_deployment=False,
            no_wait=False,
            rollback_events="",
            update_service=True,
            latest_task_definition=False,
        ),
    ),
    (
        ["scale", "--tasks=5"],
        "scale",
        DeployOption(
            dry_run=False,
            desired_count=5,
            skip_task_definition=True,
            force_new_deployment=False,
            no_wait=False,
            update_service=False,
            latest_task_definition=False,
        ),
    ),
    (
        ["refresh"],
        "refresh",
        DeployOption(
            dry_run=False,
            desired_count=None,
            skip_task_definition=True,
            force_new_deployment=True,
            no_wait=False,
            update_service=False,
            latest_task_definition=False,
        ),
    ),
    (
        ["rollback"],
        "rollback",
        RollbackOption(dry_run=False, deregister_task_definition=True, no_wait=False, rollback_events=""),
    ),
    (
        ["rollback", "--no-deregister-task-definition"],
        "rollback",
        RollbackOption(dry_run=False, deregister_task_definition=False, no_wait=False, rollback_events=""),
    ),
    (["delete"], "delete", DeleteOption(dry_run=False, force=False)),
    (["delete", "--force"], "delete", DeleteOption(dry_run=False, force=True)),
    (
        ["run"],
        "run",
        RunOption(
            dry_run=False,
            task_definition="",
            no_wait=False,
            count=1,
            watch_container="",
            propagate_tags="",
            task_override_str="",
            task_override_file="",
            skip_task_definition=False,
            latest_task_definition=False,
            tags="",
            wait_until="stopped",
            revision=0,
        ),
    ),
    (
        [
            "run",
            "--task-def=foo.json",
            "--count",
            "2",
            "--watch-container",
            "app",
            "--propagate-tags",
            "SERVICE",
            "--overrides",
            '{"foo":"bar"}',
            "--overrides-file",
            "overrides.json",
            "--latest-task-definition",
            "--tags",
            "KeyFoo=ValueFoo,KeyBar=ValueBar",
            "--wait-until",
            "running",
            "--revision",
            "1",
        ],
        "run",
        RunOption(
            dry_run=False,
            task_definition="foo.json",
            no_wait=False,
            count=2,
            watch_container="app",
            propagate_tags="SERVICE",
            task_override_str='{"foo":"bar"}',
            task_override_file="overrides.json",
            skip_task_definition=False,
            latest_task_definition=True,
            tags="KeyFoo=ValueFoo,KeyBar=ValueBar",
            wait_until="running",
            revision=1,
        ),
    ),
    (["register"], "register", RegisterOption(dry_run=False, output=False)),
    (["register", "--output", "--dry-run"], "register", RegisterOption(dry_run=True, output=True)),
    (["deregister"], "deregister", DeregisterOption(dry_run=False, revision=0, keeps=0, force=False)),
    (
        ["deregister", "--dry-run", "--revision", "123", "--keeps", "23", "--force"],
        "deregister",
        DeregisterOption(dry_run=True, revision=123, keeps=23, force=True),
    ),
    (["revisions"], "revisions", RevisionsOption(revision=0, output="table")),
    (
        ["revisions", "--revision", "123", "--output", "json"],
        "revisions",
        RevisionsOption(revision=123, output="json"),
    ),
    (["wait"], "wait", WaitOption()),
    (
        ["init", "--service", "myservice", "--config", "myconfig.yml"],
        "init",
        InitOption(
            region="ap-northeast-1",
            cluster="default",
            service="myservice",
            config_file_path="myconfig.yml",
            task_definition_path="ecs-task-def.json",
            service_definition_path="ecs-service-def.json",
            force_overwrite=False,
            jsonnet=False,
        ),
    ),
    (
        [
            "init",
            "--service",
            "myservice",
            "--config",
            "myconfig.jsonnet",
            "--cluster",
            "mycluster",
            "--task-definition-path",
            "taskdef.jsonnet",
            "--service-definition-path",
            "servicedef.jsonnet",
            "--force-overwrite",
            "--jsonnet",
        ],
        "init",
        InitOption(
            region="ap-northeast-1",
            cluster="mycluster",
            service="myservice",
            config_file_path="myconfig.jsonnet",
            task_definition_path="taskdef.jsonnet",
            service_definition_path="servicedef.jsonnet",
            force_overwrite=True,
            jsonnet=True,
        ),
    ),
    (["diff"], "diff", DiffOption(unified=True)),
    (["diff", "--no-unified"], "diff", DiffOption(unified=False)),
    (["appspec"], "appspec", AppSpecOption(task_definition="latest", update_service=True)),
    (
        ["appspec", "--task-definition", "current", "--no-update-service"],
        "appspec",
        AppSpecOption(task_definition="current", update_service=False),
    ),
    (["verify"], "verify", VerifyOption(get_secrets=True, put_logs=True)),
    (["verify", "--no-get-secrets", "--no-put-logs"], "verify", VerifyOption(get_secrets=False, put_logs=False)),
    (
        ["render", "config", "taskdef", "servicedef"],
        "render",
        RenderOption(targets=["config", "taskdef", "servicedef"]),
    ),
    (
        ["tasks"],
        "tasks",
        TasksOption(id="", output="table", find=False, stop=False, force=False, trace=False),
    ),
    (
        ["tasks", "--id", "abcdefff", "--output", "json", "--find", "--stop", "--force", "--trace"],
        "tasks",
        TasksOption(id="abcdefff", output="json", find=True, stop=True, force=True, trace=True),
    ),
    (
        ["exec"],
        "exec",
        ExecOption(id="", command="sh", container="", local_port=0, port=0, port_forward=False),
    ),
    (
        [
            "exec",
            "--id",
            "abcdefff",
            "--command",
            "ls -la",
            "--container",
            "mycontainer",
            "--local-port",
            "8080",
            "--port",
            "80",
            "--port-forward",
        ],
        "exec",
        ExecOption(
            id="abcdefff",
            command="ls -la",
            container="mycontainer",
            local_port=8080,
            port=80,
            port_forward=True,
        ),
    ),
]


@pytest.mark.parametrize(("args", "sub", "expected"), CASES, ids=["_".join(case[0]) for case in CASES])
def test_parse_cli_subcommand_options(args: list[str], sub: str, expected) -> None:  # noqa: ANN001
    options = _parse(args)
    assert options.subcommand == sub
    assert options.for_subcommand(sub) == expected


def test_global_flags_after_subcommand(tmp_path: Path) -> None:
    envfile = tmp_path / "envfile"
    envfile.write_text("ECSDEPLOY_TEST=ok\n", encoding="utf-8")

    options = _parse(
        [
            "status",
            "--config",
            "config.yml",
            "--debug",
            "--envfile",
            str(envfile),
            "--ext-str",
            "s1=v1",
            "--ext-str",
            "s2=v2",
            "--ext-code",
            "c1=123",
            "--ext-code",
            "c2=1+2",
        ]
    )
    assert options.option == GlobalOption(
        config_file_path="config.yml",
        debug=True,
        envfiles=[str(envfile)],
        ext_str={"s1": "v1", "s2": "v2"},
        ext_code={"c1": "123", "c2": "1+2"},
        init_option=None,
    )
    assert options.for_subcommand("status") == StatusOption(events=2)
    assert os.environ.get("ECSDEPLOY_TEST") == "ok"


def test_global_flags_before_subcommand() -> None:
    options = _parse(["--config", "config.yml", "--debug", "status", "--events=10"])
    assert options.option == GlobalOption(
        config_file_path="config.yml",
        debug=True,
        ext_str={},
        ext_code={},
        init_option=None,
    )
    assert options.for_subcommand("status") == StatusOption(events=10)


def test_global_defaults() -> None:
    options = _parse(["status"])
    assert options.option.config_file_path == "ecsdeploy.yml"
    assert options.option.debug is False
    assert options.option.ext_str == {}
    assert options.option.ext_code == {}
    assert options.option.timeout is None


def test_init_option_is_attached_to_global_option() -> None:
    options = _parse(["init", "--service", "myservice", "--config", "myconfig.yml"])
    expected = InitOption(
        region="ap-northeast-1",
        cluster="default",
        service="myservice",
        config_file_path="myconfig.yml",
        task_definition_path="ecs-task-def.json",
        service_definition_path="ecs-service-def.json",
        force_overwrite=False,
        jsonnet=False,
    )
    assert options.option == GlobalOption(
        config_file_path="myconfig.yml",
        debug=False,
        ext_str={},
        ext_code={},
        init_option=expected,
    )
    assert options.for_subcommand("init") == expected


def test_init_region_flag_wins_over_environment() -> None:
    options = _parse(["init", "--service", "s", "--region", "us-east-1"])
    assert options.for_subcommand("init").region == "us-east-1"


def test_init_region_without_environment_is_empty() -> None:
    options = parse_cli(["init", "--service", "s"], env={}.get)
    assert options.for_subcommand("init").region == ""


def test_config_from_settings_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ECSDEPLOY_CONFIG", "from-env.yml")
    options = _parse(["status"])
    assert options.option.config_file_path == "from-env.yml"

    options = _parse(["--config", "explicit.yml", "status"])
    assert options.option.config_file_path == "explicit.yml"


def test_timeout_flag() -> None:
    options = _parse(["--timeout", "30", "deploy"])
    assert options.option.timeout == 30


def test_init_config_follows_global_config_flag() -> None:
    options = _parse(["--config", "other.yml", "init", "--service", "s"])
    assert options.for_subcommand("init").config_file_path == "other.yml"
    assert options.option.config_file_path == "other.yml"
    assert options.option.init_option == options.for_subcommand("init")


def test_init_config_follows_settings_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ECSDEPLOY_CONFIG", "from-env.yml")
    options = _parse(["init", "--service", "s"])
    assert options.for_subcommand("init").config_file_path == "from-env.yml"
    assert options.option.config_file_path == "from-env.yml"


def test_init_config_flag_wins_over_global_config_flag() -> None:
    options = _parse(["--config", "other.yml", "init", "--service", "s", "--config", "mine.yml"])
    assert options.for_subcommand("init").config_file_path == "mine.yml"
    assert options.option.config_file_path == "mine.yml"


def test_global_options_resolve_before_subcommand_options() -> None:
    calls: list[str] = []

    class RecordingResolver(OptionResolver):
        def resolve_global(self, flags):  # noqa: ANN001, ANN202
            calls.append("global")
            return super().resolve_global(flags)

        def resolve_option(self, subcommand, raw):  # noqa: ANN001, ANN202
            calls.append("option")
            return super().resolve_option(subcommand, raw)

    RecordingResolver(env=_ENV.get).resolve(parse_args(["deploy", "--dry-run"]))
    assert calls == ["global", "option"]


def test_settings_fields() -> None:
    assert set(Settings.model_fields) == {"config", "debug", "log_level", "log_format"}
