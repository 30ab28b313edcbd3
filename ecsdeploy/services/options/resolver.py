from __future__ import annotations

import copy
import os
from typing import Callable

from ecsdeploy.core.config import Settings
from ecsdeploy.models.options import (
    CLIOptions,
    GlobalFlags,
    GlobalOption,
    InitOption,
    SubcommandOption,
)
from ecsdeploy.services.options import validation
from ecsdeploy.services.options.parser import ParsedCommand
from ecsdeploy.services.options.schema import SUBCOMMANDS

EnvLookup = Callable[[str], str | None]


class OptionResolver:
    """Fills unset option fields from the subcommand's default profile.

    Precedence per field: the flag as parsed, then the field's environment
    variable (looked up through ``env``), then the profile default.
    """

    def __init__(self, *, env: EnvLookup | None = None, settings: Settings | None = None) -> None:
        self._env = env or os.environ.get
        self._settings = settings

    def resolve(self, parsed: ParsedCommand) -> CLIOptions:
        global_option = self.resolve_global(parsed.global_flags)

        raw = parsed.option
        if isinstance(raw, InitOption) and raw.config_file_path is None:
            raw = raw.model_copy(update={"config_file_path": global_option.config_file_path})
        option = self.resolve_option(parsed.subcommand, raw)
        if isinstance(option, InitOption):
            # init writes the config file it resolves; later steps read the same path.
            global_option = global_option.model_copy(
                update={"config_file_path": option.config_file_path, "init_option": option}
            )

        validation.validate(parsed.subcommand, option)
        return CLIOptions(
            subcommand=parsed.subcommand,
            option=global_option,
            subcommands={parsed.subcommand: option},
        )

    def resolve_option(self, subcommand: str, raw: SubcommandOption) -> SubcommandOption:
        spec = SUBCOMMANDS[subcommand]
        values = raw.model_dump()
        for name, default in spec.defaults.items():
            if values.get(name) is not None:
                continue
            field = spec.field(name)
            if field is not None and field.env:
                from_env = self._env(field.env)
                if from_env is not None:
                    values[name] = from_env
                    continue
            values[name] = copy.deepcopy(default)
        return spec.model(**values)

    def resolve_global(self, flags: GlobalFlags) -> GlobalOption:
        settings = self._settings or Settings()
        return GlobalOption(
            config_file_path=flags.config_file_path or settings.config,
            debug=flags.debug if flags.debug is not None else settings.debug,
            envfiles=list(flags.envfiles or []),
            ext_str=dict(flags.ext_str or {}),
            ext_code=dict(flags.ext_code or {}),
            timeout=flags.timeout,
        )
