from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Callable, NoReturn

from ecsdeploy.core.errors import ParseError
from ecsdeploy.models.options import GlobalFlags, SubcommandOption
from ecsdeploy.services.options.schema import (
    BOOL_KINDS,
    GLOBAL_FIELDS,
    SUBCOMMANDS,
    FieldSpec,
    SubcommandSpec,
)

PROG = "ecsdeploy"

# Global flags given after the subcommand are stored under this prefix until merged.
_GLOBAL_DEST_PREFIX = "global__"


@dataclass(frozen=True)
class ParsedCommand:
    """Parser output: nothing here has been defaulted yet."""

    subcommand: str
    global_flags: GlobalFlags
    option: SubcommandOption


class OptionArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises ParseError instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise ParseError(message, usage=self.format_usage())


class KeyValueAction(argparse.Action):
    """Accumulates repeated ``key=value`` values into one dict; the last value of a key wins."""

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        key, sep, value = str(values).partition("=")
        if not sep or not key:
            raise argparse.ArgumentError(self, f"expected KEY=VALUE, got {values!r}")
        current = dict(getattr(namespace, self.dest, None) or {})
        current[key] = value
        setattr(namespace, self.dest, current)


_TRUE_WORDS = frozenset({"1", "t", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "f", "false", "no", "off"})


def _bool_type(text: str) -> bool:
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {text!r}")


_bool_type.__name__ = "bool"


class BoolFlagAction(argparse.Action):
    """Boolean flag, given bare or as ``--flag=true|false``.

    A negated spelling stores the inverse of its value.
    """

    def __init__(
        self,
        option_strings: Sequence[str],
        dest: str,
        *,
        negated: bool = False,
        default: Any = None,
        help: str | None = None,
    ) -> None:
        super().__init__(
            option_strings=option_strings,
            dest=dest,
            nargs="?",
            const=True,
            default=default,
            type=_bool_type,
            metavar="BOOL",
            help=help,
        )
        self.negated = negated

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        setattr(namespace, self.dest, not values if self.negated else bool(values))


def _explicit_bools(tokens: Sequence[str], spellings: set[str]) -> list[str]:
    """Rewrite bare boolean flags as ``--flag=true``.

    The optional value of a boolean flag is then never taken from the next token.
    """
    out: list[str] = []
    for index, token in enumerate(tokens):
        if token == "--":
            out.extend(tokens[index:])
            break
        out.append(f"{token}=true" if token in spellings else token)
    return out


def _bool_spellings(fields: Sequence[FieldSpec], spec: SubcommandSpec | None = None) -> set[str]:
    spelled: set[str] = set()
    for field in fields:
        if field.kind in BOOL_KINDS:
            spelled.update(field.flags)
            if spec is not None:
                spelled.update(spec.negated_flags(field))
    return spelled


def _int_type(label: str, bits: int, *, minimum: int | None = None) -> Callable[[str], int]:
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if minimum is not None:
        low = minimum

    def convert(text: str) -> int:
        try:
            value = int(text, 10)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid {label} value: {text!r}") from None
        if not low <= value <= high:
            raise argparse.ArgumentTypeError(f"{label} value out of range: {text!r}")
        return value

    convert.__name__ = label
    return convert


_INT_TYPES: dict[str, Callable[[str], int]] = {
    "int": _int_type("int", 64),
    "int32": _int_type("int32", 32),
    "int64": _int_type("int64", 64),
    "seconds": _int_type("seconds", 64, minimum=1),
}


def _add_field(
    target: argparse.ArgumentParser | argparse._ArgumentGroup,
    field: FieldSpec,
    *,
    dest: str,
    negations: tuple[str, ...] = (),
) -> None:
    if field.kind == "positional_list":
        target.add_argument(
            dest,
            nargs="+",
            choices=field.choices,
            metavar=field.metavar,
            help=field.help,
        )
        return

    if field.kind in BOOL_KINDS:
        target.add_argument(*field.flags, dest=dest, action=BoolFlagAction, default=None, help=field.help)
        if negations:
            target.add_argument(
                *negations,
                dest=dest,
                action=BoolFlagAction,
                negated=True,
                default=None,
                help=f"disable {field.flags[0]}",
            )
        return

    kwargs: dict[str, Any] = {"dest": dest, "default": None, "help": field.help, "metavar": field.metavar}
    if field.kind == "mapping":
        kwargs["action"] = KeyValueAction
    elif field.kind == "string_list":
        kwargs["action"] = "append"
    elif field.kind in _INT_TYPES:
        kwargs["type"] = _INT_TYPES[field.kind]
    if field.choices:
        kwargs["choices"] = field.choices
    target.add_argument(*field.flags, **kwargs)


def _subcommand_summary() -> str:
    width = max(len(name) for name in SUBCOMMANDS)
    lines = ["subcommands:"]
    lines.extend(f"  {name.ljust(width)}  {spec.help}" for name, spec in SUBCOMMANDS.items())
    return "\n".join(lines)


def build_global_parser() -> OptionArgumentParser:
    parser = OptionArgumentParser(
        prog=PROG,
        usage=f"{PROG} [global flags] <subcommand> [flags]",
        allow_abbrev=False,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_subcommand_summary(),
    )
    for field in GLOBAL_FIELDS:
        _add_field(parser, field, dest=field.name)
    return parser


def build_subcommand_parser(spec: SubcommandSpec) -> OptionArgumentParser:
    parser = OptionArgumentParser(
        prog=f"{PROG} {spec.name}",
        description=spec.help,
        allow_abbrev=False,
    )
    for field in spec.fields:
        _add_field(parser, field, dest=field.name, negations=spec.negated_flags(field))

    # A spelling the subcommand declares itself (init --config) is not a global flag here.
    own = spec.spellings()
    group = parser.add_argument_group("global flags")
    for field in GLOBAL_FIELDS:
        if own.intersection(field.flags):
            continue
        _add_field(group, field, dest=_GLOBAL_DEST_PREFIX + field.name)
    return parser


def _global_flag_arity() -> dict[str, bool]:
    arity = {"-h": False, "--help": False}
    for field in GLOBAL_FIELDS:
        for flag in field.flags:
            arity[flag] = field.takes_value
    return arity


def split_arguments(argv: Sequence[str]) -> tuple[list[str], str | None, list[str]]:
    """Split ``argv`` into (global prefix, subcommand name, subcommand arguments)."""
    arity = _global_flag_arity()
    index = 0
    while index < len(argv):
        token = argv[index]
        if not token.startswith("-"):
            return list(argv[:index]), token, list(argv[index + 1 :])
        name, sep, _ = token.partition("=")
        if name not in arity:
            raise ParseError(f"unknown global flag: {token}", usage=build_global_parser().format_usage())
        index += 2 if arity[name] and not sep else 1
    return list(argv), None, []


def _merge_global(earlier: Any, later: Any) -> Any:
    if later is None:
        return earlier
    if earlier is None:
        return later
    if isinstance(later, dict):
        return {**earlier, **later}
    if isinstance(later, list):
        return [*earlier, *later]
    return later


def parse_args(argv: Sequence[str]) -> ParsedCommand:
    """Decode ``argv`` (without the program name) into raw option records.

    Global flags are read up to the first non-flag token, which names the
    subcommand. The rest is parsed against that subcommand's schema; global
    flags are accepted there too. Fields whose flag was not given stay None.
    """
    prefix, name, rest = split_arguments(argv)
    if name is not None and name not in SUBCOMMANDS:
        raise ParseError(f"unknown subcommand: {name!r}", usage=build_global_parser().format_usage())

    global_bools = _bool_spellings(GLOBAL_FIELDS)
    global_values = vars(build_global_parser().parse_args(_explicit_bools(prefix, global_bools)))
    if name is None:
        raise ParseError("missing subcommand", usage=build_global_parser().format_usage())

    spec = SUBCOMMANDS[name]
    bools = _bool_spellings(spec.fields, spec) | (global_bools - spec.spellings())
    values = vars(build_subcommand_parser(spec).parse_args(_explicit_bools(rest, bools)))
    for key in list(values):
        if key.startswith(_GLOBAL_DEST_PREFIX):
            field_name = key[len(_GLOBAL_DEST_PREFIX) :]
            global_values[field_name] = _merge_global(global_values.get(field_name), values.pop(key))

    return ParsedCommand(
        subcommand=name,
        global_flags=GlobalFlags(**global_values),
        option=spec.model(**values),
    )
