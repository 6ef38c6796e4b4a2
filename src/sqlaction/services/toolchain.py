"""SqlPackage discovery service for sqlaction."""

import os
import shutil
import sys
from typing import Callable, List, Mapping, Optional, Tuple

from packaging.version import InvalidVersion, Version

from sqlaction.constants import (
    SQLPACKAGE_EXECUTABLE,
    SQLPACKAGE_PATH_ENV,
    SQLPACKAGE_WINDOWS_EXECUTABLE,
)
from sqlaction.errors import SqlActionError
from sqlaction.errors_catalog import actionable_error


def _parse_version(value: str) -> Optional[Version]:
    try:
        return Version(value)
    except InvalidVersion:
        return None


class ToolchainLocator:
    """Finds the SqlPackage executable.

    Lookup order: explicit override, ``PATH``, the dotnet global tool
    folder, and on Windows the newest SQL Server or Visual Studio install.
    """

    def __init__(
        self,
        logger,
        override_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        platform: str = sys.platform,
        home_dir: Optional[str] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.logger = logger
        self.environ = os.environ if environ is None else environ
        self.override_path = override_path or self.environ.get(SQLPACKAGE_PATH_ENV)
        self.platform = platform
        self.home_dir = home_dir or os.path.expanduser("~")
        self.which = which
        self._cached_path: Optional[str] = None

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"

    def get_sqlpackage_path(self) -> str:
        if self._cached_path is None:
            self._cached_path = self._find_sqlpackage()
            self.logger.debug("Using SqlPackage at %s", self._cached_path)
        return self._cached_path

    def _find_sqlpackage(self) -> str:
        if self.override_path:
            if not os.path.isfile(self.override_path):
                raise SqlActionError(
                    actionable_error("sqlpackage_override_missing", path=self.override_path)
                )
            return self.override_path

        on_path = self.which(SQLPACKAGE_EXECUTABLE)
        if on_path:
            return on_path

        tool_name = f"{SQLPACKAGE_EXECUTABLE}.exe" if self.is_windows else SQLPACKAGE_EXECUTABLE
        dotnet_tool = os.path.join(self.home_dir, ".dotnet", "tools", tool_name)
        if os.path.isfile(dotnet_tool):
            return dotnet_tool

        if self.is_windows:
            installed = self._find_windows_install()
            if installed:
                return installed

        raise SqlActionError(actionable_error("sqlpackage_not_found"))

    @staticmethod
    def _list_dir(path: str) -> List[str]:
        if not os.path.isdir(path):
            return []
        return sorted(os.listdir(path))

    def _program_files_dirs(self) -> List[str]:
        dirs: List[str] = []
        for key, default in (
            ("ProgramFiles", r"C:\Program Files"),
            ("ProgramFiles(x86)", r"C:\Program Files (x86)"),
        ):
            value = self.environ.get(key, default)
            if value not in dirs:
                dirs.append(value)
        return dirs

    def _find_windows_install(self) -> Optional[str]:
        """Prefers the newest DAC shipped with SQL Server over Visual Studio ones."""
        sql_server_candidates: List[Tuple[Version, str]] = []
        visual_studio_candidates: List[Tuple[Version, str]] = []

        for program_files in self._program_files_dirs():
            sql_server_root = os.path.join(program_files, "Microsoft SQL Server")
            for entry in self._list_dir(sql_server_root):
                version = _parse_version(entry)
                executable = os.path.join(
                    sql_server_root, entry, "DAC", "bin", SQLPACKAGE_WINDOWS_EXECUTABLE
                )
                if version is not None and os.path.isfile(executable):
                    sql_server_candidates.append((version, executable))

            visual_studio_root = os.path.join(program_files, "Microsoft Visual Studio")
            for year in self._list_dir(visual_studio_root):
                year_version = _parse_version(year)
                if year_version is None:
                    continue
                for edition in self._list_dir(os.path.join(visual_studio_root, year)):
                    dac_root = os.path.join(
                        visual_studio_root,
                        year,
                        edition,
                        "Common7",
                        "IDE",
                        "Extensions",
                        "Microsoft",
                        "SQLDB",
                        "DAC",
                    )
                    executable = os.path.join(dac_root, SQLPACKAGE_WINDOWS_EXECUTABLE)
                    if os.path.isfile(executable):
                        visual_studio_candidates.append((year_version, executable))
                    for dac_version in self._list_dir(dac_root):
                        version = _parse_version(dac_version)
                        executable = os.path.join(
                            dac_root, dac_version, SQLPACKAGE_WINDOWS_EXECUTABLE
                        )
                        if version is not None and os.path.isfile(executable):
                            visual_studio_candidates.append((version, executable))

        for label, candidates in (
            ("SQL Server", sql_server_candidates),
            ("Visual Studio", visual_studio_candidates),
        ):
            if candidates:
                version, executable = max(candidates)
                self.logger.debug("Found SqlPackage %s from %s at %s", version, label, executable)
                return executable
        return None
