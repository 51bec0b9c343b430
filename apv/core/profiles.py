"""
Deployment profiles and PDO-style DSN handling.

The application ships two bootstrap variants that differ only in where the
database lives and whether a session is started:

- ``local``: PostgreSQL on ``localhost``, session started on every page.
- ``vm``: the app runs inside a NAT'd virtual machine and reaches PostgreSQL
  on the host at ``10.0.2.2``; no session is started.
"""

from dataclasses import dataclass
from typing import Dict

from apv.core.exceptions import ConfigurationError

DEFAULT_PORT = 5432


@dataclass(frozen=True)
class DatabaseDSN:
    """Parts of a ``pgsql:host=...;dbname=...`` connection string"""

    host: str
    dbname: str
    port: int = DEFAULT_PORT

    def to_pdo(self) -> str:
        dsn = f"pgsql:host={self.host};dbname={self.dbname}"
        if self.port != DEFAULT_PORT:
            dsn += f";port={self.port}"
        return dsn


@dataclass(frozen=True)
class DeploymentProfile:
    name: str
    database_host: str
    session_start: bool
    database_name: str = "apv"


PROFILES: Dict[str, DeploymentProfile] = {
    "local": DeploymentProfile(name="local", database_host="localhost", session_start=True),
    "vm": DeploymentProfile(name="vm", database_host="10.0.2.2", session_start=False),
}


def get_profile(name: str) -> DeploymentProfile:
    """
    Look up a deployment profile by name.

    Raises:
        ConfigurationError: if no profile with that name exists
    """
    try:
        return PROFILES[name.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            message=f"Unknown deployment profile '{name}'",
            parameter="DEPLOYMENT_PROFILE",
        )


def parse_pdo_dsn(dsn: str) -> DatabaseDSN:
    """
    Parse a PDO-style PostgreSQL DSN.

    Args:
        dsn: e.g. ``pgsql:host=10.0.2.2;dbname=apv`` or with ``;port=5433``

    Returns:
        DatabaseDSN: host, database name and port

    Raises:
        ConfigurationError: on a foreign driver, missing keys or a bad port
    """
    driver, sep, body = dsn.partition(":")
    if not sep or driver.strip().lower() != "pgsql":
        raise ConfigurationError(
            message=f"Unsupported database DSN '{dsn}': expected a pgsql DSN",
            parameter="DATABASE_DSN",
        )

    params: Dict[str, str] = {}
    for pair in body.split(";"):
        pair = pair.strip()
        if not pair:
            continue
        key, eq, value = pair.partition("=")
        if not eq:
            raise ConfigurationError(
                message=f"Malformed DSN parameter '{pair}'", parameter="DATABASE_DSN"
            )
        params[key.strip().lower()] = value.strip()

    missing = [key for key in ("host", "dbname") if not params.get(key)]
    if missing:
        raise ConfigurationError(
            message=f"Database DSN is missing {', '.join(missing)}",
            parameter="DATABASE_DSN",
        )

    port = params.get("port", str(DEFAULT_PORT))
    if not port.isdigit():
        raise ConfigurationError(message=f"Invalid DSN port '{port}'", parameter="DATABASE_DSN")

    return DatabaseDSN(host=params["host"], dbname=params["dbname"], port=int(port))
