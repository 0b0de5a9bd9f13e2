"""
Connection topology resolution

Turns an engine configuration into a connection plan: a direct connection
to one node, a replicated master/replica set, or a sentinel-monitored set.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from sentinel_cache.core.config import EngineConfig, ReplicationMode
from sentinel_cache.core.exceptions import ConfigurationError

SUPPORTED_SCHEMES = ("tcp", "tls", "unix")


@dataclass(frozen=True)
class Node:
    """One store endpoint"""
    scheme: str
    host: str
    port: int
    password: Optional[str] = None


@dataclass(frozen=True)
class ReplicationOptions:
    """Replication tag and the auth block applied to every replicated node"""
    mode: ReplicationMode
    password: Optional[str] = None
    database: int = 0


@dataclass(frozen=True)
class DirectPlan:
    """Connect straight to the listed nodes

    ``options`` is None for a plain single-node connection, which then
    selects ``database`` itself.
    """
    nodes: Tuple[Node, ...]
    options: Optional[ReplicationOptions] = None
    database: int = 0
    exceptions: Optional[bool] = None
    timeout: Optional[float] = None

    @property
    def replication(self) -> Optional[str]:
        return self.options.mode.value if self.options else None


@dataclass(frozen=True)
class SentinelPlan:
    """Ask the sentinels for the current master of ``service``

    ``password`` and ``database`` apply to the discovered master, the
    sentinel nodes use their own node password.
    """
    nodes: Tuple[Node, ...]
    service: str
    password: Optional[str] = None
    database: int = 0
    exceptions: Optional[bool] = None
    timeout: Optional[float] = None

    @property
    def replication(self) -> str:
        return "sentinel"


ConnectionPlan = Union[DirectPlan, SentinelPlan]


def _nodes(config: EngineConfig, addresses: Tuple[str, ...]) -> Tuple[Node, ...]:
    return tuple(
        Node(scheme=config.scheme, host=host, port=config.port, password=config.password)
        for host in addresses
    )


def resolve_plan(config: EngineConfig) -> ConnectionPlan:
    """Build a connection plan, raising ConfigurationError when the topology is ambiguous"""
    if not config.server and not config.sentinel:
        raise ConfigurationError("No redis server configured!")
    if config.server and config.sentinel:
        raise ConfigurationError("Both sentinel and server is set!")
    if config.scheme not in SUPPORTED_SCHEMES:
        raise ConfigurationError(f"Unsupported scheme '{config.scheme}'")

    if config.sentinel:
        if config.scheme == "unix":
            raise ConfigurationError("Sentinels cannot be reached over unix sockets")
        return SentinelPlan(
            nodes=_nodes(config, config.sentinel),
            service=config.service,
            password=config.password,
            database=config.database,
            exceptions=config.exceptions,
            timeout=config.timeout,
        )

    if config.replication == ReplicationMode.PREDIS:
        return DirectPlan(
            nodes=_nodes(config, config.server),
            options=ReplicationOptions(
                mode=ReplicationMode.PREDIS,
                password=config.password,
                database=config.database,
            ),
            exceptions=config.exceptions,
            timeout=config.timeout,
        )

    # Plain connections only ever talk to one node
    return DirectPlan(
        nodes=_nodes(config, config.server[:1]),
        database=config.database,
        exceptions=config.exceptions,
        timeout=config.timeout,
    )
