from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from ecsdeploy.core.logging import configure_logging

_ISOLATED_VARIABLES = (
    "ECSDEPLOY_CONFIG",
    "ECSDEPLOY_DEBUG",
    "ECSDEPLOY_LOG_FORMAT",
    "ECSDEPLOY_LOG_LEVEL",
    "ECSDEPLOY_TEST",
    "AWS_REGION",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    for name in _ISOLATED_VARIABLES:
        # setenv first so teardown also removes values loaded from env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # Logging is bound to the captured stderr so tests can read log lines from capsys.
    configure_logging()


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    task_definition = {
        "family": "myapp",
        "containerDefinitions": [{"name": "app", "image": "nginx:latest", "essential": True}],
        "cpu": "256",
        "memory": "512",
    }
    service_definition = {"desiredCount": 1, "launchType": "FARGATE"}
    (tmp_path / "ecs-task-def.json").write_bytes(orjson.dumps({"taskDefinition": task_definition}))
    (tmp_path / "ecs-service-def.json").write_bytes(orjson.dumps(service_definition))
    (tmp_path / "ecsdeploy.yml").write_text(
        "\n".join(
            [
                "region: ap-northeast-1",
                "cluster: default",
                "service: myservice",
                "service_definition: ecs-service-def.json",
                "task_definition: ecs-task-def.json",
                "timeout: 600",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return tmp_path
