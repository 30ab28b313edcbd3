from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from dotenv import load_dotenv

from ecsdeploy.core.errors import ParseError
from ecsdeploy.models.options import CLIOptions
from ecsdeploy.services.options.parser import parse_args
from ecsdeploy.services.options.resolver import EnvLookup, OptionResolver


def load_envfiles(paths: Iterable[str]) -> None:
    """Export variables from each env file into the process environment.

    Variables that are already set keep their value.
    """
    for path in paths:
        envfile = Path(path)
        if not envfile.is_file():
            raise ParseError(f"--envfile {path}: no such file")
        load_dotenv(envfile, override=False, encoding="utf-8")


def parse_cli(argv: Sequence[str], *, env: EnvLookup | None = None) -> CLIOptions:
    """Parse, load env files, then resolve defaults, in that order."""
    parsed = parse_args(argv)
    load_envfiles(parsed.global_flags.envfiles or [])
    return OptionResolver(env=env).resolve(parsed)
