"""Shared constants for sqlaction."""

SQL_EXTENSION = ".sql"
DACPAC_EXTENSION = ".dacpac"
SQLPROJ_EXTENSION = ".sqlproj"

SQLPACKAGE_EXECUTABLE = "sqlpackage"
SQLPACKAGE_WINDOWS_EXECUTABLE = "SqlPackage.exe"
SQLPACKAGE_PATH_ENV = "SQLPACKAGE_PATH"

DEFAULT_BUILD_OUTPUT_PARTS = ("bin", "Debug")
OUTPUT_DIR_ARGUMENTS = ("--output", "-o")
OUTPUT_NAME_ARGUMENTS = ("-p:TargetName",)

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"
DEFAULT_SQL_PORT = 1433
DEFAULT_CONFIG_FILE = ".sqlaction.yml"
