"""Shared domain models for sqlaction."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from sqlaction.constants import DEFAULT_SQL_PORT


class ActionType(str, Enum):
    DACPAC_ACTION = "DacpacAction"
    SQL_ACTION = "SqlAction"
    BUILD_AND_PUBLISH = "BuildAndPublish"


class SqlPackageAction(str, Enum):
    PUBLISH = "Publish"
    SCRIPT = "Script"
    DEPLOY_REPORT = "DeployReport"
    DRIFT_REPORT = "DriftReport"


@dataclass(frozen=True)
class ConnectionConfig:
    """Parsed connection string. Secrets are kept out of ``repr``."""

    connection_string: str = field(repr=False)
    server: str
    database: str
    port: int = DEFAULT_SQL_PORT
    user_id: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    authentication: Optional[str] = None
    masked_connection_string: str = field(default="", repr=False)


@dataclass(frozen=True)
class DacpacActionInputs:
    connection_config: ConnectionConfig
    dacpac_package: str
    sqlpackage_action: SqlPackageAction = SqlPackageAction.PUBLISH
    additional_arguments: str = ""
    action_type: ActionType = field(default=ActionType.DACPAC_ACTION, init=False)


@dataclass(frozen=True)
class SqlActionInputs:
    connection_config: ConnectionConfig
    sql_file: str
    action_type: ActionType = field(default=ActionType.SQL_ACTION, init=False)


@dataclass(frozen=True)
class BuildAndPublishInputs:
    connection_config: ConnectionConfig
    project_file: str
    build_arguments: str = ""
    action_type: ActionType = field(default=ActionType.BUILD_AND_PUBLISH, init=False)


ActionInputs = Union[DacpacActionInputs, SqlActionInputs, BuildAndPublishInputs]


@dataclass(frozen=True)
class ToolInvocation:
    """A single shell command line and the exit code that means success."""

    command_line: str = field(repr=False)
    display: str
    expected_returncode: int = 0
