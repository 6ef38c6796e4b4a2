"""SQL script execution service for sqlaction."""

import re
from typing import List

from sqlaction.constants import DEFAULT_ODBC_DRIVER
from sqlaction.errors import SqlActionError
from sqlaction.errors_catalog import actionable_error
from sqlaction.models import ConnectionConfig
from sqlaction.services.connection import build_odbc_connection_string

_BATCH_SEPARATOR = re.compile(r"^\s*GO\s*(?:--.*)?$", flags=re.IGNORECASE | re.MULTILINE)


def split_batches(sql_text: str) -> List[str]:
    chunks = _BATCH_SEPARATOR.split(sql_text)
    return [chunk.strip() for chunk in chunks if chunk.strip()]


class SqlExecutor:
    """Executes SQL scripts through pyodbc, one batch per ``GO`` separator.

    Batches run in autocommit mode like sqlcmd: a failing batch stops the
    script and leaves the batches before it applied.
    """

    def __init__(self, logger, console, driver: str = DEFAULT_ODBC_DRIVER, odbc_module=None):
        self.logger = logger
        self.console = console
        self.driver = driver
        self._odbc = odbc_module

    @property
    def odbc(self):
        if self._odbc is None:
            # pyodbc loads the unixODBC runtime on import; defer it until a
            # script actually has to run.
            import pyodbc

            self._odbc = pyodbc
        return self._odbc

    def execute_sql(self, connection_config: ConnectionConfig, sql_text: str):
        batches = split_batches(sql_text)
        if not batches:
            self.logger.warning("SQL script is empty. Nothing to execute.")
            return

        connection_string = build_odbc_connection_string(connection_config, self.driver)
        odbc = self.odbc
        server = connection_config.server

        self.console.print(f"[blue]Executing SQL script on server '{server}'...[/blue]")
        self.logger.info(
            "Executing %s batch(es) on server '%s', database '%s'",
            len(batches),
            server,
            connection_config.database,
        )

        try:
            connection = odbc.connect(connection_string, autocommit=True)
        except odbc.Error as exc:
            raise SqlActionError(
                actionable_error("sql_execution_failed", server=server, error=str(exc))
            ) from exc

        try:
            cursor = connection.cursor()
            for number, batch in enumerate(batches, start=1):
                self.logger.debug("Executing batch %s/%s", number, len(batches))
                cursor.execute(batch)
                while cursor.nextset():
                    pass
        except odbc.Error as exc:
            raise SqlActionError(
                actionable_error("sql_execution_failed", server=server, error=str(exc))
            ) from exc
        finally:
            connection.close()

        self.console.print("[green]SQL script executed successfully.[/green]")
