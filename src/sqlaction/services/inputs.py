"""Resolution of raw option values into action inputs."""

from pathlib import Path
from typing import Optional

from sqlaction.constants import DACPAC_EXTENSION, SQL_EXTENSION, SQLPROJ_EXTENSION
from sqlaction.errors import SqlActionError
from sqlaction.errors_catalog import actionable_error
from sqlaction.models import (
    ActionInputs,
    BuildAndPublishInputs,
    DacpacActionInputs,
    SqlActionInputs,
    SqlPackageAction,
)
from sqlaction.services.connection import parse_connection_string


class InputResolver:
    """Builds the inputs of exactly one action from raw configuration values.

    The file extension of ``path`` selects the action: ``.sql`` scripts are
    executed, ``.dacpac`` packages are handed to SqlPackage and ``.sqlproj``
    projects are built before being published.
    """

    def __init__(self, filesystem_service, logger):
        self.filesystem_service = filesystem_service
        self.logger = logger

    def resolve_file_path(self, pattern: str) -> str:
        matches = self.filesystem_service.find_files(pattern)
        if not matches:
            raise SqlActionError(actionable_error("path_not_found", path=pattern))
        if len(matches) > 1:
            raise SqlActionError(
                actionable_error("path_ambiguous", path=pattern, matches=", ".join(matches))
            )
        return matches[0]

    @staticmethod
    def parse_sqlpackage_action(value: Optional[str]) -> SqlPackageAction:
        if not value or not value.strip():
            return SqlPackageAction.PUBLISH

        wanted = value.strip().lower()
        for action in SqlPackageAction:
            if action.value.lower() == wanted:
                return action

        choices = ", ".join(action.value for action in SqlPackageAction)
        raise SqlActionError(
            actionable_error("invalid_sqlpackage_action", action=value, choices=choices)
        )

    def resolve(
        self,
        connection_string: str,
        path: str,
        action: Optional[str] = None,
        arguments: Optional[str] = None,
        build_arguments: Optional[str] = None,
    ) -> ActionInputs:
        connection_config = parse_connection_string(connection_string)
        file_path = self.resolve_file_path(path)
        extension = Path(file_path).suffix.lower()

        if extension == SQL_EXTENSION:
            inputs: ActionInputs = SqlActionInputs(
                connection_config=connection_config,
                sql_file=file_path,
            )
        elif extension == DACPAC_EXTENSION:
            inputs = DacpacActionInputs(
                connection_config=connection_config,
                dacpac_package=file_path,
                sqlpackage_action=self.parse_sqlpackage_action(action),
                additional_arguments=(arguments or "").strip(),
            )
        elif extension == SQLPROJ_EXTENSION:
            inputs = BuildAndPublishInputs(
                connection_config=connection_config,
                project_file=file_path,
                build_arguments=(build_arguments or "").strip(),
            )
        else:
            raise SqlActionError(actionable_error("invalid_file_type", path=file_path))

        self.logger.debug("Resolved %s for %s", inputs.action_type.value, file_path)
        return inputs
