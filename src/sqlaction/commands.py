"""Command-line templates for the external toolchain.

Both templates are consumed by other tools and must stay byte-exact.
Arguments supplied by the caller are appended verbatim, without quoting.
"""

from typing import Union

from sqlaction.models import ConnectionConfig, SqlPackageAction, ToolInvocation


def format_sqlpackage_command(
    tool_path: str,
    action: Union[SqlPackageAction, str],
    connection_string: str,
    source_file: str,
    additional_arguments: str = "",
) -> str:
    action_name = action.value if isinstance(action, SqlPackageAction) else action
    command = (
        f'"{tool_path}" /Action:{action_name} '
        f'/TargetConnectionString:"{connection_string}" /SourceFile:"{source_file}"'
    )
    if additional_arguments:
        command = f"{command} {additional_arguments}"
    return command


def format_build_command(project_file: str, build_arguments: str) -> str:
    return f'dotnet build "{project_file}" -p:NetCoreBuild=true {build_arguments}'


def sqlpackage_invocation(
    tool_path: str,
    action: Union[SqlPackageAction, str],
    connection_config: ConnectionConfig,
    source_file: str,
    additional_arguments: str = "",
) -> ToolInvocation:
    return ToolInvocation(
        command_line=format_sqlpackage_command(
            tool_path,
            action,
            connection_config.connection_string,
            source_file,
            additional_arguments,
        ),
        display=format_sqlpackage_command(
            tool_path,
            action,
            connection_config.masked_connection_string,
            source_file,
            additional_arguments,
        ),
    )


def build_invocation(project_file: str, build_arguments: str) -> ToolInvocation:
    command_line = format_build_command(project_file, build_arguments)
    return ToolInvocation(command_line=command_line, display=command_line)
