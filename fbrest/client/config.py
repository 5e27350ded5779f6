from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

FB_SERVER = "api.facebook.com/restserver.php"
DEFAULT_SERVER_URL = "http://" + FB_SERVER
DEFAULT_SECURE_SERVER_URL = "https://" + FB_SERVER

_TRUTHY = {"1", "true", "TRUE", "True", "yes", "YES"}


class ClientConfig(BaseModel):
    """Settings for one RestClient instance.

    Security notes:
    - `secret` is excluded from repr; do not log the model with `model_dump()`.
    - Debug output is per instance, never process-wide.

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: str = Field(min_length=1)
    secret: str = Field(min_length=1, repr=False)
    server_url: str = DEFAULT_SERVER_URL
    secure_server_url: str = DEFAULT_SECURE_SERVER_URL
    timeout_ms: Optional[int] = Field(default=None, gt=0, description="Connect timeout (ms).")
    desktop: bool = Field(default=False, description="Installed-application mode.")
    debug: bool = False
    session_key: Optional[str] = None

    @field_validator("server_url", "secure_server_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"not an http(s) URL: {value!r}")
        return value

    @field_validator("secure_server_url")
    @classmethod
    def _require_tls(cls, value: str) -> str:
        # auth.getSession answers with the session secret in desktop mode.
        if urlparse(value).scheme != "https":
            raise ValueError(f"secure_server_url must use https: {value!r}")
        return value

    @classmethod
    def from_env(
        cls,
        prefix: str = "FBREST_",
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "ClientConfig":
        """Build a config from `<prefix>*` environment variables.

        Keyword overrides that are not None take precedence.
        """

        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for name in ("api_key", "secret", "server_url", "secure_server_url", "session_key"):
            raw = env.get(prefix + name.upper())
            if raw:
                data[name] = raw
        raw_timeout = env.get(prefix + "TIMEOUT_MS")
        if raw_timeout:
            data["timeout_ms"] = raw_timeout
        for name in ("desktop", "debug"):
            raw = env.get(prefix + name.upper())
            if raw is not None:
                data[name] = raw.strip() in _TRUTHY
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)
