import pytest

from sqlaction.errors import SqlActionError
from sqlaction.services.arguments import find_argument, parse_command_arguments


def test_parse_command_arguments_handles_flags_and_quoted_values():
    parsed = parse_command_arguments('--verbose --test "test value"')

    assert parsed.options == {"--verbose": None, "--test": "test value"}
    assert parsed.positionals == []


def test_parse_command_arguments_handles_equals_colon_and_properties():
    parsed = parse_command_arguments(
        "--output=out/bin -v:minimal /p:TargetName=Sales;Configuration=Release --no-restore"
    )

    assert parsed.options["--output"] == "out/bin"
    assert parsed.options["-v"] == "minimal"
    assert parsed.options["-p:TargetName"] == "Sales"
    assert parsed.options["-p:Configuration"] == "Release"
    assert parsed.options["--no-restore"] is None


def test_parse_command_arguments_keeps_windows_paths_and_positionals():
    parsed = parse_command_arguments(r"extra -o C:\build\out")

    assert parsed.options["-o"] == r"C:\build\out"
    assert parsed.positionals == ["extra"]


def test_parse_command_arguments_returns_empty_for_blank_input():
    parsed = parse_command_arguments("   ")

    assert parsed.options == {}
    assert parsed.positionals == []


def test_parse_command_arguments_rejects_unbalanced_quotes():
    with pytest.raises(SqlActionError, match="Cannot parse build arguments"):
        parse_command_arguments('--test "unterminated')


def test_find_argument_accepts_aliases_and_ignores_case():
    parsed = parse_command_arguments("-O ./artifacts --Property:targetname=Warehouse")

    assert find_argument(parsed, "--output", "-o") == "./artifacts"
    assert find_argument(parsed, "-p:TargetName") == "Warehouse"
    assert find_argument(parsed, "/p:TARGETNAME") == "Warehouse"


def test_find_argument_returns_none_when_missing_or_valueless():
    parsed = parse_command_arguments("--verbose")

    assert find_argument(parsed, "--verbose") is None
    assert find_argument(parsed, "--output", "-o") is None
