"""Actionable error catalog for sqlaction."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "invalid_file_type": {
        "what": "Invalid file type '{path}'. Supported types are `.sql`, `.dacpac` and `.sqlproj`.",
        "next": "Point `--path` at a SQL script, a DACPAC package or a SQL project file.",
    },
    "path_not_found": {
        "what": "No file found matching '{path}'.",
        "next": "Check the path or glob pattern relative to the working directory.",
    },
    "path_ambiguous": {
        "what": "Multiple files found matching '{path}': {matches}.",
        "next": "Use a more specific path so that exactly one file matches.",
    },
    "invalid_sqlpackage_action": {
        "what": "Invalid SqlPackage action '{action}'. Supported actions are {choices}.",
        "next": "Set `--action` to one of the supported values.",
    },
    "sqlpackage_not_found": {
        "what": "SqlPackage is not installed or could not be found on this host.",
        "next": "Install SqlPackage (`dotnet tool install -g microsoft.sqlpackage`) "
        "or set `SQLPACKAGE_PATH` to its location.",
    },
    "sqlpackage_override_missing": {
        "what": "Configured SqlPackage path does not exist: {path}",
        "next": "Fix `sqlpackage_path` / `SQLPACKAGE_PATH` or remove it to use auto-detection.",
    },
    "invalid_connection_string": {
        "what": "Invalid connection string: {reason}",
        "next": "Provide a connection string such as "
        "`Server=<server>;Initial Catalog=<db>;User Id=<user>;Password=<password>`.",
    },
    "sql_execution_failed": {
        "what": "Failed to execute SQL script on server '{server}': {error}",
        "next": "Check the script, the firewall rules and the credentials of the connection string.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
