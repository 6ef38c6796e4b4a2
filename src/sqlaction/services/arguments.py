"""Parsing of free-form ``dotnet build`` argument strings."""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlaction.errors import SqlActionError

PROPERTY_PREFIXES = ("--property:", "-property:", "/property:", "-p:", "/p:")
PROPERTY_KEY_PREFIX = "-p:"


@dataclass
class CommandArguments:
    """Named options (``None`` for bare flags) and positional tokens."""

    options: Dict[str, Optional[str]] = field(default_factory=dict)
    positionals: List[str] = field(default_factory=list)


def _split(text: str) -> List[str]:
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    # Windows paths keep their backslashes.
    lexer.escape = ""
    try:
        return list(lexer)
    except ValueError as exc:
        raise SqlActionError(f"Cannot parse build arguments '{text}': {exc}") from exc


def _property_name(token: str) -> Optional[str]:
    lowered = token.lower()
    for prefix in PROPERTY_PREFIXES:
        if lowered.startswith(prefix):
            return token[len(prefix):]
    return None


def _is_option(token: str) -> bool:
    if _property_name(token) is not None:
        return True
    return token.startswith("-") and token not in ("-", "--")


def _normalize_key(name: str) -> str:
    property_name = _property_name(name)
    if property_name is not None:
        return f"{PROPERTY_KEY_PREFIX}{property_name}".lower()
    return name.lower()


def parse_command_arguments(text: Optional[str]) -> CommandArguments:
    parsed = CommandArguments()
    if not text or not text.strip():
        return parsed

    tokens = _split(text)
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        property_body = _property_name(token)
        if property_body is not None:
            for assignment in property_body.split(";"):
                if not assignment:
                    continue
                name, separator, value = assignment.partition("=")
                parsed.options[f"{PROPERTY_KEY_PREFIX}{name.strip()}"] = value if separator else None
            continue

        if not _is_option(token):
            parsed.positionals.append(token)
            continue

        if "=" in token:
            name, _, value = token.partition("=")
            parsed.options[name] = value
            continue

        name, separator, value = token.partition(":")
        if separator:
            parsed.options[name] = value
            continue

        if index < len(tokens) and not _is_option(tokens[index]):
            parsed.options[token] = tokens[index]
            index += 1
        else:
            parsed.options[token] = None

    return parsed


def find_argument(parsed: CommandArguments, *names: str) -> Optional[str]:
    """Returns the value of the first of ``names`` present in ``parsed``.

    Matching ignores case and treats every MSBuild property spelling
    (``-p:``, ``/p:``, ``--property:``) as the same key.
    """
    lookup = {_normalize_key(key): value for key, value in parsed.options.items()}
    for name in names:
        value = lookup.get(_normalize_key(name))
        if value:
            return value
    return None
