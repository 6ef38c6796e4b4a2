import os
import subprocess
from types import SimpleNamespace

import pytest

from sqlaction.core import SqlAction
from sqlaction.errors import CommandFailedError, SqlActionError
from sqlaction.models import (
    BuildAndPublishInputs,
    DacpacActionInputs,
    SqlActionInputs,
    SqlPackageAction,
)
from sqlaction.services.arguments import find_argument, parse_command_arguments
from sqlaction.services.connection import parse_connection_string

CONNECTION_STRING = (
    "Server=testServer.database.windows.net;Initial Catalog=testDB;"
    "User Id=testUser;Password=placeholder"
)


class FakeLocator:
    def __init__(self, path="SqlPackage.exe", error=None):
        self.path = path
        self.error = error
        self.calls = 0

    def get_sqlpackage_path(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.path


class FakeRunner:
    def __init__(self, fail_when=None):
        self.fail_when = fail_when
        self.commands = []

    def run(self, invocation, **_kwargs):
        self.commands.append(invocation.command_line)
        if self.fail_when and self.fail_when in invocation.command_line:
            raise CommandFailedError(f"Command failed (1): {invocation.display}", returncode=1)
        return subprocess.CompletedProcess(invocation.command_line, 0)


class FakeSqlExecutor:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def execute_sql(self, connection_config, sql_text):
        self.calls.append((connection_config, sql_text))
        if self.error:
            raise self.error


class FakeFilesystem:
    def __init__(self, content="select * from table1", error=None):
        self.content = content
        self.error = error
        self.reads = []

    def read_text(self, path):
        self.reads.append(path)
        if self.error:
            raise self.error
        return self.content


class CountingArguments:
    def __init__(self):
        self.parse_calls = 0
        self.find_calls = 0

    def parse(self, text):
        self.parse_calls += 1
        return parse_command_arguments(text)

    def find(self, parsed, *names):
        self.find_calls += 1
        return find_argument(parsed, *names)


def _connection():
    return parse_connection_string(CONNECTION_STRING)


def _dacpac_inputs(additional_arguments="/TargetTimeout:20", action=SqlPackageAction.PUBLISH):
    return DacpacActionInputs(
        connection_config=_connection(),
        dacpac_package="./TestPackage.dacpac",
        sqlpackage_action=action,
        additional_arguments=additional_arguments,
    )


def _build_inputs(build_arguments='--verbose --test "test value"'):
    return BuildAndPublishInputs(
        connection_config=_connection(),
        project_file="./TestProject.sqlproj",
        build_arguments=build_arguments,
    )


def build_action(inputs, **kwargs):
    kwargs.setdefault("toolchain_locator", FakeLocator())
    kwargs.setdefault("command_runner", FakeRunner())
    kwargs.setdefault("sql_executor", FakeSqlExecutor())
    kwargs.setdefault("filesystem_service", FakeFilesystem())
    return SqlAction(inputs, **kwargs)


def test_dacpac_action_runs_sqlpackage_with_additional_arguments():
    locator = FakeLocator()
    runner = FakeRunner()
    action = build_action(_dacpac_inputs(), toolchain_locator=locator, command_runner=runner)

    action.execute()

    assert locator.calls == 1
    assert runner.commands == [
        f'"SqlPackage.exe" /Action:Publish /TargetConnectionString:"{CONNECTION_STRING}" '
        '/SourceFile:"./TestPackage.dacpac" /TargetTimeout:20'
    ]


def test_dacpac_action_omits_empty_additional_arguments():
    runner = FakeRunner()
    action = build_action(
        _dacpac_inputs(additional_arguments="", action=SqlPackageAction.DRIFT_REPORT),
        command_runner=runner,
    )

    action.execute()

    assert runner.commands == [
        f'"SqlPackage.exe" /Action:DriftReport /TargetConnectionString:"{CONNECTION_STRING}" '
        '/SourceFile:"./TestPackage.dacpac"'
    ]


def test_dacpac_action_raises_when_sqlpackage_fails():
    locator = FakeLocator()
    action = build_action(
        _dacpac_inputs(),
        toolchain_locator=locator,
        command_runner=FakeRunner(fail_when="SqlPackage.exe"),
    )

    with pytest.raises(CommandFailedError) as exc_info:
        action.execute()

    assert exc_info.value.returncode == 1
    assert locator.calls == 1


def test_dacpac_action_propagates_tool_discovery_error():
    error = SqlActionError("SqlPackage is not installed")
    runner = FakeRunner()
    action = build_action(
        _dacpac_inputs(),
        toolchain_locator=FakeLocator(error=error),
        command_runner=runner,
    )

    with pytest.raises(SqlActionError) as exc_info:
        action.execute()

    assert exc_info.value is error
    assert runner.commands == []


def test_sql_action_reads_file_once_and_executes_sql():
    inputs = SqlActionInputs(connection_config=_connection(), sql_file="./TestFile.sql")
    filesystem = FakeFilesystem()
    executor = FakeSqlExecutor()
    action = build_action(inputs, filesystem_service=filesystem, sql_executor=executor)

    action.execute()

    assert filesystem.reads == ["./TestFile.sql"]
    assert executor.calls == [(inputs.connection_config, "select * from table1")]


def test_sql_action_raises_when_file_cannot_be_read():
    inputs = SqlActionInputs(connection_config=_connection(), sql_file="./TestFile.sql")
    filesystem = FakeFilesystem(error=OSError("Cannot read file"))
    executor = FakeSqlExecutor()
    action = build_action(inputs, filesystem_service=filesystem, sql_executor=executor)

    with pytest.raises(SqlActionError) as exc_info:
        action.execute()

    assert str(exc_info.value) == (
        "Cannot read contents of file ./TestFile.sql due to error 'Cannot read file'."
    )
    assert filesystem.reads == ["./TestFile.sql"]
    assert executor.calls == []


def test_sql_action_propagates_executor_error_unchanged():
    inputs = SqlActionInputs(connection_config=_connection(), sql_file="./TestFile.sql")
    error = SqlActionError("login failed")
    action = build_action(inputs, sql_executor=FakeSqlExecutor(error=error))

    with pytest.raises(SqlActionError) as exc_info:
        action.execute()

    assert exc_info.value is error


def test_build_and_publish_builds_then_publishes_default_output():
    arguments = CountingArguments()
    locator = FakeLocator()
    runner = FakeRunner()
    action = build_action(
        _build_inputs(),
        toolchain_locator=locator,
        command_runner=runner,
        parse_arguments=arguments.parse,
        find_argument=arguments.find,
    )
    expected_dacpac = os.path.join("bin", "Debug", "TestProject.dacpac")

    action.execute()

    assert arguments.parse_calls == 1
    assert arguments.find_calls == 2
    assert locator.calls == 1
    assert runner.commands == [
        'dotnet build "./TestProject.sqlproj" -p:NetCoreBuild=true --verbose --test "test value"',
        f'"SqlPackage.exe" /Action:Publish /TargetConnectionString:"{CONNECTION_STRING}" '
        f'/SourceFile:"{expected_dacpac}"',
    ]


@pytest.mark.skipif(os.sep != "/", reason="POSIX path separators")
def test_build_and_publish_normalizes_relative_package_path():
    runner = FakeRunner()
    action = build_action(_build_inputs(), command_runner=runner)

    action.execute()

    assert runner.commands[1].endswith('/SourceFile:"bin/Debug/TestProject.dacpac"')


def test_build_and_publish_uses_output_arguments_for_package_path():
    runner = FakeRunner()
    action = build_action(
        _build_inputs(build_arguments="-o ./out/release -p:TargetName=Warehouse"),
        command_runner=runner,
    )
    expected_dacpac = os.path.join("out", "release", "Warehouse.dacpac")

    action.execute()

    assert runner.commands[1].endswith(f'/SourceFile:"{expected_dacpac}"')


def test_build_and_publish_stops_when_build_fails():
    arguments = CountingArguments()
    locator = FakeLocator()
    runner = FakeRunner(fail_when="dotnet build")
    action = build_action(
        _build_inputs(),
        toolchain_locator=locator,
        command_runner=runner,
        parse_arguments=arguments.parse,
        find_argument=arguments.find,
    )

    with pytest.raises(CommandFailedError):
        action.execute()

    assert arguments.parse_calls == 1
    assert locator.calls == 0
    assert len(runner.commands) == 1


def test_build_and_publish_raises_when_publish_fails():
    locator = FakeLocator()
    runner = FakeRunner(fail_when="SqlPackage.exe")
    action = build_action(_build_inputs(), toolchain_locator=locator, command_runner=runner)

    with pytest.raises(CommandFailedError):
        action.execute()

    assert locator.calls == 1
    assert len(runner.commands) == 2


def test_resolve_build_output_defaults():
    action = build_action(_build_inputs())
    inputs = BuildAndPublishInputs(
        connection_config=_connection(),
        project_file=os.path.join("db", "Sales.Database.sqlproj"),
    )

    dacpac_path = action.resolve_build_output(inputs, parse_command_arguments("--verbose"))

    assert dacpac_path == os.path.join("db", "bin", "Debug", "Sales.Database.dacpac")


def test_execute_rejects_unknown_action_type():
    inputs = SimpleNamespace(action_type="Unknown", connection_config=_connection())
    action = build_action(inputs)

    with pytest.raises(SqlActionError, match="Unsupported action type"):
        action.execute()


def test_run_returns_exit_codes():
    assert build_action(_dacpac_inputs()).run() == 0
    assert build_action(_dacpac_inputs(), command_runner=FakeRunner(fail_when="SqlPackage")).run() == 1
