"""Connection-string parsing for sqlaction."""

from typing import Dict, List, Optional, Tuple

from sqlaction.constants import DEFAULT_ODBC_DRIVER, DEFAULT_SQL_PORT
from sqlaction.errors import SqlActionError
from sqlaction.errors_catalog import actionable_error
from sqlaction.models import ConnectionConfig

SERVER_KEYS = ("server", "data source", "address", "addr", "network address")
DATABASE_KEYS = ("initial catalog", "database")
USER_KEYS = ("user id", "uid", "user")
PASSWORD_KEYS = ("password", "pwd")
INTEGRATED_SECURITY_KEYS = ("integrated security", "trusted_connection")

PASSWORDLESS_AUTHENTICATION = {
    "activedirectoryintegrated",
    "activedirectorydefault",
    "activedirectorymanagedidentity",
    "activedirectorymsi",
    "activedirectoryinteractive",
}

_ODBC_AUTHENTICATION = {
    "sqlpassword": "SqlPassword",
    "activedirectorypassword": "ActiveDirectoryPassword",
    "activedirectoryintegrated": "ActiveDirectoryIntegrated",
    "activedirectoryinteractive": "ActiveDirectoryInteractive",
    "activedirectorymanagedidentity": "ActiveDirectoryMsi",
    "activedirectorymsi": "ActiveDirectoryMsi",
    "activedirectoryserviceprincipal": "ActiveDirectoryServicePrincipal",
}

_TRUE_VALUES = {"true", "yes", "sspi"}

Segment = Tuple[str, str, Tuple[int, int]]


def _invalid(reason: str) -> SqlActionError:
    return SqlActionError(actionable_error("invalid_connection_string", reason=reason))


def normalize_authentication(value: Optional[str]) -> str:
    if not value:
        return ""
    return "".join(value.split()).replace("-", "").lower()


def tokenize_connection_string(connection_string: str) -> List[Segment]:
    """Splits a connection string into ``(key, value, value_span)`` segments.

    Keys are lower-cased with inner whitespace collapsed. Values may be
    wrapped in single or double quotes, in which case ``;`` is allowed
    inside them and a doubled quote stands for a literal one.
    """
    text = connection_string
    length = len(text)
    segments: List[Segment] = []
    index = 0

    while index < length:
        while index < length and (text[index].isspace() or text[index] == ";"):
            index += 1
        if index >= length:
            break

        equals = text.find("=", index)
        semicolon = text.find(";", index)
        if equals == -1 or (semicolon != -1 and semicolon < equals):
            segment_end = semicolon if semicolon != -1 else length
            raise _invalid(f"segment '{text[index:segment_end].strip()}' has no '='")

        key = " ".join(text[index:equals].split()).lower()
        if not key:
            raise _invalid("found a value without a key")

        value_start = equals + 1
        while value_start < length and text[value_start] in " \t":
            value_start += 1

        if value_start < length and text[value_start] in "\"'":
            quote = text[value_start]
            cursor = value_start + 1
            chars: List[str] = []
            while True:
                if cursor >= length:
                    raise _invalid(f"unterminated quoted value for '{key}'")
                if text[cursor] == quote:
                    if cursor + 1 < length and text[cursor + 1] == quote:
                        chars.append(quote)
                        cursor += 2
                        continue
                    break
                chars.append(text[cursor])
                cursor += 1
            value = "".join(chars)
            span = (value_start, cursor + 1)
            index = cursor + 1
            while index < length and text[index].isspace():
                index += 1
            if index < length and text[index] != ";":
                raise _invalid(f"unexpected characters after quoted value for '{key}'")
        else:
            value_end = text.find(";", value_start)
            if value_end == -1:
                value_end = length
            value = text[value_start:value_end].strip()
            span = (value_start, value_end)
            index = value_end

        segments.append((key, value, span))

    return segments


def _first(values: Dict[str, str], keys) -> Optional[str]:
    for key in keys:
        if key in values and values[key] != "":
            return values[key]
    return None


def _split_server(raw_server: str) -> Tuple[str, int]:
    server = raw_server.strip()
    if server.lower().startswith("tcp:"):
        server = server[4:]

    port = DEFAULT_SQL_PORT
    if "," in server:
        server, raw_port = server.split(",", 1)
        try:
            port = int(raw_port.strip())
        except ValueError:
            raise _invalid(f"invalid port '{raw_port.strip()}' in server '{raw_server}'")

    server = server.strip()
    if not server:
        raise _invalid("server name is empty")
    return server, port


def mask_connection_string(connection_string: str, segments: List[Segment]) -> str:
    masked = connection_string
    password_spans = [span for key, _value, span in segments if key in PASSWORD_KEYS]
    for start, end in sorted(password_spans, reverse=True):
        masked = f"{masked[:start]}***{masked[end:]}"
    return masked


def parse_connection_string(connection_string: str) -> ConnectionConfig:
    if not connection_string or not connection_string.strip():
        raise _invalid("connection string is empty")

    segments = tokenize_connection_string(connection_string)
    values: Dict[str, str] = {}
    for key, value, _span in segments:
        values[key] = value

    raw_server = _first(values, SERVER_KEYS)
    if raw_server is None:
        raise _invalid("missing 'Server'")
    server, port = _split_server(raw_server)

    database = _first(values, DATABASE_KEYS)
    if database is None:
        raise _invalid("missing 'Initial Catalog'")

    user_id = _first(values, USER_KEYS)
    password = _first(values, PASSWORD_KEYS)
    authentication = _first(values, ("authentication",))

    normalized_auth = normalize_authentication(authentication)
    integrated = (_first(values, INTEGRATED_SECURITY_KEYS) or "").lower() in _TRUE_VALUES

    if normalized_auth and normalized_auth not in PASSWORDLESS_AUTHENTICATION | set(_ODBC_AUTHENTICATION):
        raise _invalid(f"unsupported authentication '{authentication}'")

    if not integrated and normalized_auth not in PASSWORDLESS_AUTHENTICATION:
        if user_id is None:
            raise _invalid("missing 'User Id'")
        if password is None:
            raise _invalid("missing 'Password'")

    return ConnectionConfig(
        connection_string=connection_string,
        server=server,
        database=database,
        port=port,
        user_id=user_id,
        password=password,
        authentication=authentication,
        masked_connection_string=mask_connection_string(connection_string, segments),
    )


def _odbc_value(value: str) -> str:
    if any(char in value for char in ";{}") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


def build_odbc_connection_string(config: ConnectionConfig, driver: str = DEFAULT_ODBC_DRIVER) -> str:
    """Builds a pyodbc connection string equivalent to ``config``."""
    parts = [
        f"DRIVER={{{driver}}}",
        f"SERVER=tcp:{config.server},{config.port}",
        f"DATABASE={_odbc_value(config.database)}",
    ]

    normalized_auth = normalize_authentication(config.authentication)
    if normalized_auth:
        if normalized_auth not in _ODBC_AUTHENTICATION:
            raise SqlActionError(
                f"Authentication '{config.authentication}' is not supported by the ODBC driver."
            )
        parts.append(f"Authentication={_ODBC_AUTHENTICATION[normalized_auth]}")
    elif config.user_id is None:
        parts.append("Trusted_Connection=yes")

    if config.user_id is not None:
        parts.append(f"UID={_odbc_value(config.user_id)}")
    if config.password is not None:
        parts.append(f"PWD={_odbc_value(config.password)}")

    parts.extend(["Encrypt=yes", "TrustServerCertificate=no", "Connection Timeout=30"])
    return ";".join(parts) + ";"
