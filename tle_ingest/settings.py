# ============================== TLE INGEST STANDARD HEADER ==============================
# Script Name: settings.py
# Last Updated (UTC): 2026-10-19
# Update Summary:
# - Environment-driven settings for the poller, sinks and HTTP API.
# Description:
# - Purpose: one place that reads os.environ (after load_dotenv) and validates it.
# - Environment:
#   * SPACETRACK_USERNAME / SPACETRACK_PASSWORD (required when spacetrack is enabled)
#   * DATABASE_URL (optional; SQL sink when set, file sink otherwise)
#   * TLE_DATA_DIR (default data/tle), TLE_HTTP_TIMEOUT_S (45), TLE_CYCLE_DELAY_S (3600)
#   * TLE_SOURCES (comma list; default spacetrack,celestrak,satnogs), TLE_USER_AGENT
# - Data Handling Notes:
#   * Bad numbers / unknown sources raise ConfigError; nothing is silently defaulted.
# =========================================================================================

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from tle_engine.types import SourceId
from tle_ingest.app.errors import ConfigError

LOG = logging.getLogger(__name__)

CELESTRAK_URL = "https://celestrak.org/NORAD/elements/gp.php?GROUP=active&FORMAT=tle"
SATNOGS_URL = "https://db.satnogs.org/api/tle/?format=json"
SPACETRACK_LOGIN_URL = "https://www.space-track.org/ajaxauth/login"
SPACETRACK_QUERY_URL = (
    "https://www.space-track.org/basicspacedata/query/class/tle_latest/"
    "ORDINAL/1/NORAD_CAT_ID/%3E0/format/tle"
)

DEFAULT_USER_AGENT = "TLE-Ingest/0.3"

# Sources that cannot run without credentials, and the env vars they need.
CREDENTIAL_ENV = {
    SourceId.SPACETRACK: ("SPACETRACK_USERNAME", "SPACETRACK_PASSWORD"),
}


def _get_env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw in (None, ""):
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be > 0, got {raw!r}")
    return value


def _parse_sources(raw: Optional[str]) -> List[SourceId]:
    if raw is None or not raw.strip():
        return list(SourceId)
    out = []
    for token in raw.split(","):
        token = token.strip().lower()
        if not token:
            continue
        try:
            out.append(SourceId(token))
        except ValueError:
            known = ", ".join(s.value for s in SourceId)
            raise ConfigError(f"Unknown source {token!r} in TLE_SOURCES (known: {known})")
    return list(dict.fromkeys(out))  # unique order-preserving


@dataclass
class IngestSettings:
    spacetrack_username: Optional[str] = None
    spacetrack_password: Optional[str] = None
    database_url: Optional[str] = None
    data_dir: Path = Path("data/tle")
    http_timeout_s: float = 45.0
    cycle_delay_s: float = 3600.0
    user_agent: str = DEFAULT_USER_AGENT
    enabled_sources: List[SourceId] = field(default_factory=lambda: list(SourceId))
    celestrak_url: str = CELESTRAK_URL
    satnogs_url: str = SATNOGS_URL
    spacetrack_login_url: str = SPACETRACK_LOGIN_URL
    spacetrack_query_url: str = SPACETRACK_QUERY_URL

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "IngestSettings":
        env = os.environ if env is None else env
        return cls(
            spacetrack_username=env.get("SPACETRACK_USERNAME") or None,
            spacetrack_password=env.get("SPACETRACK_PASSWORD") or None,
            database_url=env.get("DATABASE_URL") or None,
            data_dir=Path(env.get("TLE_DATA_DIR") or "data/tle"),
            http_timeout_s=_get_env_float(env, "TLE_HTTP_TIMEOUT_S", 45.0),
            cycle_delay_s=_get_env_float(env, "TLE_CYCLE_DELAY_S", 3600.0),
            user_agent=env.get("TLE_USER_AGENT") or DEFAULT_USER_AGENT,
            enabled_sources=_parse_sources(env.get("TLE_SOURCES")),
        )

    def missing_credentials(self) -> List[str]:
        """Env var names required by enabled sources but not set."""
        present = {
            "SPACETRACK_USERNAME": self.spacetrack_username,
            "SPACETRACK_PASSWORD": self.spacetrack_password,
        }
        missing = []
        for source, names in CREDENTIAL_ENV.items():
            if source not in self.enabled_sources:
                continue
            missing.extend(n for n in names if not present.get(n))
        return missing

    def require_credentials(self) -> None:
        """Startup gate: refuse to run with a permanently failing source."""
        missing = self.missing_credentials()
        if missing:
            raise ConfigError(
                f"Missing credentials for credential-gated source: {', '.join(missing)}",
                missing=missing,
            )
