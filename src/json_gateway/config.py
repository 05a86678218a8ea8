import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_ASSETS_DIR = str(Path(__file__).parent / "assets")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(name: str, default: float) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None:
        return default
    if raw.strip() == "":
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass(frozen=True)
class GatewayConfig:
    host: str = "0.0.0.0"
    port: int = 9000
    backend_host: str = "localhost"
    backend_port: int = 8080
    backend_scheme: str = "http"
    backend_timeout: Optional[float] = 60.0
    cors_origins: Tuple[str, ...] = ("*",)
    rate_limit: str = "600 per minute"
    rate_limit_enabled: bool = True
    assets_dir: str = DEFAULT_ASSETS_DIR
    log_level: str = "INFO"

    @property
    def backend_url(self) -> str:
        return f"{self.backend_scheme}://{self.backend_host}:{self.backend_port}"

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Read the gateway settings from the environment, failing fast on bad numbers."""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("GATEWAY_HOST", "0.0.0.0"),
            port=int(os.getenv("GATEWAY_PORT", "9000")),
            backend_host=os.getenv("BACKEND_HOST", "localhost"),
            backend_port=int(os.getenv("BACKEND_PORT", "8080")),
            backend_scheme=os.getenv("BACKEND_SCHEME", "http"),
            backend_timeout=_env_timeout("BACKEND_TIMEOUT", 60.0),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
            rate_limit=os.getenv("RATE_LIMIT", "600 per minute"),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            assets_dir=os.getenv("ASSETS_DIR", DEFAULT_ASSETS_DIR),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
