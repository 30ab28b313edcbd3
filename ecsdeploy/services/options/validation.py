from __future__ import annotations

from typing import Any, Callable

from ecsdeploy.core.errors import ValidationError
from ecsdeploy.models.options import (
    DeregisterOption,
    ExecOption,
    InitOption,
    RunOption,
)

Validator = Callable[[Any], None]

_VALIDATORS: dict[str, list[Validator]] = {}


def validator(*subcommands: str) -> Callable[[Validator], Validator]:
    def decorator(func: Validator) -> Validator:
        for name in subcommands:
            _VALIDATORS.setdefault(name, []).append(func)
        return func

    return decorator


def validate(subcommand: str, option: Any) -> None:
    """Run every hook registered for ``subcommand`` on its resolved option record."""
    for func in _VALIDATORS.get(subcommand, ()):
        func(option)


def parse_tags(text: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    if not text:
        return tags
    for pair in text.split(","):
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"invalid tag {pair!r}, expected Key=Value")
        tags[key] = value
    return tags


@validator("run")
def _run_tags(option: RunOption) -> None:
    try:
        parse_tags(option.tags or "")
    except ValueError as exc:
        raise ValidationError("run", f"--tags: {exc}") from exc


@validator("run")
def _run_count(option: RunOption) -> None:
    if option.count is not None and not 1 <= option.count <= 10:
        raise ValidationError("run", f"--count must be between 1 and 10, got {option.count}")


@validator("deregister")
def _deregister_target(option: DeregisterOption) -> None:
    if (option.keeps or 0) < 0:
        raise ValidationError("deregister", "--keeps must not be negative")


@validator("exec")
def _exec_port_forward(option: ExecOption) -> None:
    if option.port_forward and not option.port:
        raise ValidationError("exec", "--port-forward requires --port")


@validator("init")
def _init_service(option: InitOption) -> None:
    if not option.service:
        raise ValidationError("init", "--service is required")
