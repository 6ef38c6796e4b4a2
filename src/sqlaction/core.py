import logging
import os
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console

from .commands import build_invocation, sqlpackage_invocation
from .constants import (
    DACPAC_EXTENSION,
    DEFAULT_BUILD_OUTPUT_PARTS,
    OUTPUT_DIR_ARGUMENTS,
    OUTPUT_NAME_ARGUMENTS,
)
from .errors import SqlActionError
from .models import (
    ActionInputs,
    ActionType,
    BuildAndPublishInputs,
    ConnectionConfig,
    DacpacActionInputs,
    SqlActionInputs,
    SqlPackageAction,
)
from .services.arguments import CommandArguments, find_argument, parse_command_arguments
from .services.command_runner import CommandRunner
from .services.filesystem import FileSystemService
from .services.sql_executor import SqlExecutor
from .services.toolchain import ToolchainLocator

console = Console()
logger = logging.getLogger("sqlaction")


class SqlAction:
    """Deploys one database artifact according to the type of its inputs."""

    def __init__(
        self,
        inputs: ActionInputs,
        toolchain_locator: Optional[ToolchainLocator] = None,
        command_runner: Optional[CommandRunner] = None,
        sql_executor: Optional[SqlExecutor] = None,
        filesystem_service: Optional[FileSystemService] = None,
        parse_arguments: Callable[[str], CommandArguments] = parse_command_arguments,
        find_argument: Callable[..., Optional[str]] = find_argument,
    ):
        self.inputs = inputs
        self.toolchain_locator = toolchain_locator or ToolchainLocator(logger=logger)
        self.command_runner = command_runner or CommandRunner(logger=logger)
        self.sql_executor = sql_executor or SqlExecutor(logger=logger, console=console)
        self.filesystem_service = filesystem_service or FileSystemService(logger=logger)
        self.parse_arguments = parse_arguments
        self.find_argument = find_argument

        self._handlers = {
            ActionType.DACPAC_ACTION: self._execute_dacpac_action,
            ActionType.SQL_ACTION: self._execute_sql_action,
            ActionType.BUILD_AND_PUBLISH: self._execute_build_and_publish,
        }

    def execute(self):
        handler = self._handlers.get(self.inputs.action_type)
        if handler is None:
            raise SqlActionError(f"Unsupported action type: {self.inputs.action_type}")
        handler(self.inputs)

    def _execute_dacpac_action(self, inputs: DacpacActionInputs):
        self._publish_dacpac(
            connection_config=inputs.connection_config,
            dacpac_package=inputs.dacpac_package,
            sqlpackage_action=inputs.sqlpackage_action,
            additional_arguments=inputs.additional_arguments,
        )

    def _publish_dacpac(
        self,
        connection_config: ConnectionConfig,
        dacpac_package: str,
        sqlpackage_action: SqlPackageAction,
        additional_arguments: str,
    ):
        tool_path = self.toolchain_locator.get_sqlpackage_path()
        invocation = sqlpackage_invocation(
            tool_path,
            sqlpackage_action,
            connection_config,
            dacpac_package,
            additional_arguments,
        )

        console.print(
            f"[blue]Running SqlPackage {sqlpackage_action.value} of '{dacpac_package}' "
            f"on server '{connection_config.server}'...[/blue]"
        )
        self.command_runner.run(invocation)
        console.print(f"[green]SqlPackage {sqlpackage_action.value} completed.[/green]")

    def _execute_sql_action(self, inputs: SqlActionInputs):
        try:
            sql_text = self.filesystem_service.read_text(inputs.sql_file)
        except (OSError, UnicodeDecodeError) as exc:
            raise SqlActionError(
                f"Cannot read contents of file {inputs.sql_file} due to error '{exc}'."
            ) from exc

        self.sql_executor.execute_sql(inputs.connection_config, sql_text)

    def resolve_build_output(self, inputs: BuildAndPublishInputs, parsed: CommandArguments) -> str:
        """Returns the path of the package ``dotnet build`` will produce."""
        output_dir = self.find_argument(parsed, *OUTPUT_DIR_ARGUMENTS)
        if not output_dir:
            output_dir = os.path.join(os.path.dirname(inputs.project_file), *DEFAULT_BUILD_OUTPUT_PARTS)

        output_name = self.find_argument(parsed, *OUTPUT_NAME_ARGUMENTS)
        if not output_name:
            output_name = Path(inputs.project_file).stem

        return os.path.normpath(os.path.join(output_dir, f"{output_name}{DACPAC_EXTENSION}"))

    def _execute_build_and_publish(self, inputs: BuildAndPublishInputs):
        parsed = self.parse_arguments(inputs.build_arguments)
        dacpac_path = self.resolve_build_output(inputs, parsed)

        console.print(f"[blue]Building database project '{inputs.project_file}'...[/blue]")
        self.command_runner.run(build_invocation(inputs.project_file, inputs.build_arguments))
        console.print(f"[green]Successfully built database project to {dacpac_path}[/green]")
        logger.info("Built %s to %s", inputs.project_file, dacpac_path)

        self._publish_dacpac(
            connection_config=inputs.connection_config,
            dacpac_package=dacpac_path,
            sqlpackage_action=SqlPackageAction.PUBLISH,
            additional_arguments="",
        )

    def run(self) -> int:
        server = self.inputs.connection_config.server
        try:
            logger.info(
                "Starting %s on server '%s'...",
                self.inputs.action_type.value,
                server,
            )
            self.execute()
            logger.info("%s completed successfully.", self.inputs.action_type.value)
            return 0
        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except SqlActionError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
