import os
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class ReplicationMode(str, Enum):
    NONE = "none"  # single node, no replication options
    PREDIS = "predis"  # first node is master, the rest are replicas


def _as_addresses(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    return tuple(str(address) for address in value if str(address).strip())


class EngineConfig(BaseModel):
    """Immutable configuration snapshot for a cache engine"""
    server: Tuple[str, ...] = ()
    sentinel: Tuple[str, ...] = ()
    scheme: str = "tcp"
    port: int = 6379
    password: Optional[str] = None
    database: int = 0
    service: str = "mymaster"
    prefix: str = ""
    duration: int = Field(default=3600, ge=0, description="Default TTL in seconds, 0 disables expiry")
    groups: Tuple[str, ...] = ()
    persistent: bool = False
    exceptions: Optional[bool] = None
    replication: Optional[ReplicationMode] = None
    timeout: Optional[float] = None
    scan_count: int = Field(default=100, ge=1)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def infer_replication(cls, data: Any) -> Any:
        """A bare server address means a plain connection, a list means replication"""
        if not isinstance(data, dict) or data.get("replication") is not None:
            return data
        server = data.get("server")
        if isinstance(server, str) and server.strip():
            return {**data, "replication": ReplicationMode.NONE}
        if server and not isinstance(server, str):
            return {**data, "replication": ReplicationMode.PREDIS}
        return data

    @field_validator("server", "sentinel", "groups", mode="before")
    @classmethod
    def normalize_addresses(cls, value: Any) -> Tuple[str, ...]:
        return _as_addresses(value)

    @field_validator("scheme")
    @classmethod
    def normalize_scheme(cls, value: str) -> str:
        return value.lower()


def _split(value: Optional[str]) -> Union[str, List[str], None]:
    """Comma separated env values become lists, single values stay scalar"""
    if not value:
        return None
    if "," not in value:
        return value.strip()
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    PROJECT_NAME: str = "Sentinel Cache"
    VERSION: str = "0.1.0"

    # Cache settings
    CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "redis")  # "redis", "memory"
    CACHE_SERVER: Optional[str] = os.getenv("CACHE_SERVER")  # "host" or "host1,host2"
    CACHE_SENTINEL: Optional[str] = os.getenv("CACHE_SENTINEL")
    CACHE_SCHEME: str = os.getenv("CACHE_SCHEME", "tcp")
    CACHE_PORT: int = int(os.getenv("CACHE_PORT", "6379"))
    CACHE_PASSWORD: Optional[str] = os.getenv("CACHE_PASSWORD")
    CACHE_DATABASE: int = int(os.getenv("CACHE_DATABASE", "0"))
    CACHE_SERVICE: str = os.getenv("CACHE_SERVICE", "mymaster")
    CACHE_PREFIX: str = os.getenv("CACHE_PREFIX", "")
    CACHE_DURATION: int = int(os.getenv("CACHE_DURATION", "3600"))  # 1 hour default TTL
    CACHE_GROUPS: Optional[str] = os.getenv("CACHE_GROUPS")
    CACHE_PERSISTENT: bool = False
    CACHE_EXCEPTIONS: Optional[bool] = None
    CACHE_TIMEOUT: Optional[float] = None

    def engine_config(self) -> EngineConfig:
        """Build the engine configuration snapshot from settings"""
        values: Dict[str, Any] = {
            "server": _split(self.CACHE_SERVER),
            "sentinel": _split(self.CACHE_SENTINEL),
            "scheme": self.CACHE_SCHEME,
            "port": self.CACHE_PORT,
            "password": self.CACHE_PASSWORD or None,
            "database": self.CACHE_DATABASE,
            "service": self.CACHE_SERVICE,
            "prefix": self.CACHE_PREFIX,
            "duration": self.CACHE_DURATION,
            "groups": _split(self.CACHE_GROUPS),
            "persistent": self.CACHE_PERSISTENT,
            "exceptions": self.CACHE_EXCEPTIONS,
            "timeout": self.CACHE_TIMEOUT,
        }
        return EngineConfig(**values)

    class Config:
        env_file = ".env"


settings = Settings()
