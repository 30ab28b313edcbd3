from __future__ import annotations

from pathlib import Path

import pytest

from ecsdeploy.core.errors import HandlerError
from ecsdeploy.services.deploy.config import load_config
from ecsdeploy.services.deploy.definitions import JsonDefinitionLoader


def test_load_config_resolves_paths(project_dir: Path) -> None:
    config = load_config(project_dir / "ecsdeploy.yml")
    assert config.region == "ap-northeast-1"
    assert config.service == "myservice"
    assert config.timeout == 600
    assert config.task_definition == str(project_dir / "ecs-task-def.json")
    assert config.service_definition == str(project_dir / "ecs-service-def.json")


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(HandlerError, match="cannot read") as excinfo:
        load_config(tmp_path / "nope.yml")
    assert excinfo.value.step == "load config"


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("region: [unclosed\n", "not valid YAML"),
        ("- a\n- b\n", "must contain a mapping"),
        ("region: us-east-1\n", "task_definition"),
        ("task_definition: a.json\nunknown: 1\n", "unknown"),
        ("task_definition: a.json\ntimeout: 0\n", "timeout"),
    ],
)
def test_load_config_rejects_bad_content(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "ecsdeploy.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(HandlerError, match=message):
        load_config(path)


def test_task_definition_wrapper_is_removed(project_dir: Path) -> None:
    loader = JsonDefinitionLoader()
    task_definition = loader.load_task_definition(str(project_dir / "ecs-task-def.json"))
    assert task_definition["family"] == "myapp"
    assert "taskDefinition" not in task_definition


def test_definition_must_be_object(tmp_path: Path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="expected a JSON object"):
        JsonDefinitionLoader().load_service_definition(str(path))
