from __future__ import annotations

import sys
from typing import Callable

from ecsdeploy.core.errors import HandlerError, ParseError, SchemaDefinitionError, ValidationError
from ecsdeploy.core.logging import configure_logging, logger
from ecsdeploy.models.options import CLIOptions
from ecsdeploy.services.deploy.app import DeployApp
from ecsdeploy.services.deploy.config import load_config
from ecsdeploy.services.deploy.register import register
from ecsdeploy.services.deploy.render import render
from ecsdeploy.services.deploy.workflow import run_remote
from ecsdeploy.services.options.parser import PROG
from ecsdeploy.services.options.pipeline import parse_cli
from ecsdeploy.services.options.schema import SUBCOMMANDS
from ecsdeploy.version import __version__

Handler = Callable[[CLIOptions, DeployApp], int]

# Subcommands that run without reading the config file.
_CONFIG_FREE = frozenset({"init", "version"})


def _create_runtime(options: CLIOptions) -> DeployApp:
    config = None
    if options.subcommand not in _CONFIG_FREE:
        config = load_config(options.option.config_file_path)
    return DeployApp(options, config=config)


def _run_register(options: CLIOptions, runtime: DeployApp) -> int:
    register(runtime, options.selected)
    return 0


def _run_render(options: CLIOptions, runtime: DeployApp) -> int:
    render(runtime, options.selected)
    return 0


def _run_version(options: CLIOptions, runtime: DeployApp) -> int:
    del options, runtime
    print(f"{PROG} v{__version__}")
    return 0


def _run_remote(options: CLIOptions, runtime: DeployApp) -> int:
    result = run_remote(runtime, options.subcommand, options.selected)
    if result is not None:
        runtime.emit_json(result)
    return 0


_HANDLERS: dict[str, Handler] = {
    "status": _run_remote,
    "deploy": _run_remote,
    "scale": _run_remote,
    "refresh": _run_remote,
    "create": _run_remote,
    "rollback": _run_remote,
    "delete": _run_remote,
    "run": _run_remote,
    "register": _run_register,
    "deregister": _run_remote,
    "revisions": _run_remote,
    "wait": _run_remote,
    "init": _run_remote,
    "diff": _run_remote,
    "appspec": _run_remote,
    "verify": _run_remote,
    "render": _run_render,
    "tasks": _run_remote,
    "exec": _run_remote,
    "version": _run_version,
}

if set(_HANDLERS) != set(SUBCOMMANDS):
    raise SchemaDefinitionError(
        f"handler table does not match registered subcommands: {sorted(set(_HANDLERS) ^ set(SUBCOMMANDS))}"
    )


def _report_usage_error(exc: ParseError | ValidationError, subcommand: str | None = None) -> None:
    usage = getattr(exc, "usage", None)
    if usage:
        print(usage.rstrip(), file=sys.stderr)
    print(f"{PROG}: error: {exc}", file=sys.stderr)
    target = f"{PROG} {subcommand}" if subcommand else PROG
    print(f"Run '{target} --help' for usage.", file=sys.stderr)


def _execute_handler(options: CLIOptions) -> int:
    handler = _HANDLERS[options.subcommand]
    try:
        runtime = _create_runtime(options)
        return int(handler(options, runtime))
    except HandlerError as exc:
        logger.debug("command failed", subcommand=options.subcommand, step=exc.step)
        print(f"{PROG}: error: {exc}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    try:
        options = parse_cli(argv)
    except ParseError as exc:
        _report_usage_error(exc)
        return 2
    except ValidationError as exc:
        _report_usage_error(exc, exc.subcommand)
        return 2
    except SystemExit as exc:
        # --help
        return int(exc.code or 0)

    configure_logging(debug=options.option.debug)
    logger.debug("options resolved", subcommand=options.subcommand, config=options.option.config_file_path)
    return _execute_handler(options)


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    raise SystemExit(main())
