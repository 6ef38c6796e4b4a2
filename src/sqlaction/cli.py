import logging
import os

import click
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_FILE, DEFAULT_ODBC_DRIVER
from .core import SqlAction, SqlActionError, console
from .services.command_runner import CommandRunner
from .services.config_loader import ConfigLoader
from .services.filesystem import FileSystemService
from .services.inputs import InputResolver
from .services.sql_executor import SqlExecutor
from .services.toolchain import ToolchainLocator


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--connection-string",
    required=False,
    envvar="SQLACTION_CONNECTION_STRING",
    help="Connection string of the target database.",
)
@click.option(
    "--path",
    required=False,
    envvar="SQLACTION_PATH",
    help="Path or glob of the .sql script, .dacpac package or .sqlproj project to deploy.",
)
@click.option(
    "--action",
    required=False,
    envvar="SQLACTION_ACTION",
    help="SqlPackage action for .dacpac files: Publish, Script, DeployReport or DriftReport.",
)
@click.option(
    "--arguments",
    required=False,
    envvar="SQLACTION_ARGUMENTS",
    help="Extra SqlPackage arguments, appended verbatim (.dacpac only).",
)
@click.option(
    "--build-arguments",
    required=False,
    envvar="SQLACTION_BUILD_ARGUMENTS",
    help="Extra `dotnet build` arguments, appended verbatim (.sqlproj only).",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--sqlpackage-path",
    required=False,
    envvar="SQLPACKAGE_PATH",
    help="Explicit location of the SqlPackage executable.",
)
@click.option(
    "--odbc-driver",
    required=False,
    envvar="SQLACTION_ODBC_DRIVER",
    help=f"ODBC driver used for .sql scripts (default: {DEFAULT_ODBC_DRIVER}).",
)
@click.option(
    "--timeout",
    required=False,
    type=float,
    default=None,
    envvar="SQLACTION_TIMEOUT",
    help="Timeout in seconds for each external command.",
)
@click.option(
    "--verbose", is_flag=True, default=None, envvar="SQLACTION_VERBOSE", help="Enable verbose logging"
)
@click.option("--log-file", type=click.Path(), envvar="SQLACTION_LOG_FILE", help="Path to log file")
def main(
    connection_string,
    path,
    action,
    arguments,
    build_arguments,
    config,
    sqlpackage_path,
    odbc_driver,
    timeout,
    verbose,
    log_file,
):
    """Deploy a SQL script, DACPAC package or SQL project to a database."""
    logger = logging.getLogger("sqlaction")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except SqlActionError as exc:
        raise click.ClickException(str(exc)) from exc

    connection_string = _resolve_option(connection_string, config_values, "connection_string")
    path = _resolve_option(path, config_values, "path")
    action = _resolve_option(action, config_values, "action")
    arguments = _resolve_option(arguments, config_values, "arguments", default="")
    build_arguments = _resolve_option(build_arguments, config_values, "build_arguments", default="")
    sqlpackage_path = _resolve_option(sqlpackage_path, config_values, "sqlpackage_path")
    odbc_driver = _resolve_option(
        odbc_driver, config_values, "odbc_driver", default=DEFAULT_ODBC_DRIVER
    )
    timeout = _resolve_option(timeout, config_values, "timeout")
    timeout = float(timeout) if timeout is not None else None
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if not connection_string:
        raise click.ClickException(
            "Missing required option '--connection-string' (or provide it in config)."
        )
    if not path:
        raise click.ClickException("Missing required option '--path' (or provide it in config).")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    filesystem_service = FileSystemService(logger=logger)
    try:
        inputs = InputResolver(filesystem_service=filesystem_service, logger=logger).resolve(
            connection_string=connection_string,
            path=path,
            action=action,
            arguments=str(arguments or ""),
            build_arguments=str(build_arguments or ""),
        )
    except SqlActionError as exc:
        raise click.ClickException(str(exc)) from exc

    action_runner = SqlAction(
        inputs,
        toolchain_locator=ToolchainLocator(logger=logger, override_path=sqlpackage_path),
        command_runner=CommandRunner(logger=logger, default_timeout=timeout),
        sql_executor=SqlExecutor(logger=logger, console=console, driver=odbc_driver),
        filesystem_service=filesystem_service,
    )
    raise SystemExit(action_runner.run())


if __name__ == "__main__":
    main()
