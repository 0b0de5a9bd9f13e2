"""
Connection management for the Redis engine
"""
import random
from typing import Any, Dict, List, Optional

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.sentinel import Sentinel

from sentinel_cache.cache.topology import ConnectionPlan, DirectPlan, Node, SentinelPlan
from sentinel_cache.core.exceptions import ConfigurationError, ConnectFailure
from sentinel_cache.core.logging_config import get_logger

logger = get_logger("sentinel_cache.cache.connection")

# Commands a replica may answer. SCAN stays on the master since cursors are per node.
READ_COMMANDS = frozenset({
    "get", "mget", "exists", "ttl", "pttl", "keys", "type", "strlen",
})


class ReplicationClient:
    """Routes reads to one replica and everything else to the master

    Once a write has been sent all later commands go to the master, so a
    caller always reads its own writes.
    """

    def __init__(self, master: redis.Redis, replicas: List[redis.Redis]):
        self.master = master
        self.replicas = replicas
        self._replica = random.choice(replicas) if replicas else None
        self._on_master = self._replica is None

    @property
    def on_master(self) -> bool:
        return self._on_master

    def _client_for(self, command: str) -> redis.Redis:
        if command in READ_COMMANDS and not self._on_master:
            return self._replica
        self._on_master = True
        return self.master

    def __getattr__(self, name: str) -> Any:
        return getattr(self._client_for(name), name)

    def ping(self) -> bool:
        return self.master.ping()

    def info(self, *args, **kwargs) -> Dict[str, Any]:
        return self.master.info(*args, **kwargs)

    def close(self):
        self.master.close()
        for replica in self.replicas:
            replica.close()


def _node_kwargs(node: Node, password: Optional[str], database: int,
                 timeout: Optional[float]) -> Dict[str, Any]:
    if node.scheme == "unix":
        kwargs: Dict[str, Any] = {"unix_socket_path": node.host}
    else:
        kwargs = {"host": node.host, "port": node.port}
        if node.scheme == "tls":
            kwargs["ssl"] = True
    kwargs.update(password=password, db=database, socket_timeout=timeout)
    return kwargs


def build_client(plan: ConnectionPlan) -> Any:
    """Create the client for a plan without touching the network"""
    if isinstance(plan, SentinelPlan):
        sentinel_kwargs: Dict[str, Any] = {
            "password": plan.nodes[0].password,
            "socket_timeout": plan.timeout,
        }
        master_kwargs: Dict[str, Any] = {
            "password": plan.password,
            "db": plan.database,
            "socket_timeout": plan.timeout,
        }
        if plan.nodes[0].scheme == "tls":
            sentinel_kwargs["ssl"] = True
            master_kwargs["ssl"] = True
        sentinel = Sentinel(
            [(node.host, node.port) for node in plan.nodes],
            sentinel_kwargs=sentinel_kwargs,
            **master_kwargs,
        )
        return sentinel.master_for(plan.service)

    if plan.options is None:
        node = plan.nodes[0]
        return redis.Redis(**_node_kwargs(node, node.password, plan.database, plan.timeout))

    clients = [
        redis.Redis(**_node_kwargs(
            node, plan.options.password or node.password, plan.options.database, plan.timeout
        ))
        for node in plan.nodes
    ]
    return ReplicationClient(clients[0], clients[1:])


def describe(plan: ConnectionPlan) -> str:
    """Short human readable summary of a plan for logs"""
    hosts = ", ".join(f"{node.scheme}://{node.host}:{node.port}" for node in plan.nodes)
    if isinstance(plan, SentinelPlan):
        return f"sentinel service '{plan.service}' via [{hosts}]"
    if isinstance(plan, DirectPlan) and plan.options is not None:
        return f"{plan.replication} replication [{hosts}]"
    return f"single node [{hosts}]"


def connect(plan: ConnectionPlan) -> Any:
    """Open the connection for a plan and verify it answers

    Raises ConnectFailure when the store (or its sentinels) cannot be reached
    and ConfigurationError when the store rejects the connection settings,
    e.g. a database index it does not have.
    """
    try:
        client = build_client(plan)
        client.ping()
    except (RedisConnectionError, RedisTimeoutError) as e:
        logger.error(f"Failed to connect to {describe(plan)}: {e}")
        raise ConnectFailure(str(e)) from e
    except ResponseError as e:
        logger.error(f"Redis rejected the connection to {describe(plan)}: {e}")
        raise ConfigurationError(f"Redis rejected the connection settings: {e}") from e
    except RedisError as e:
        logger.error(f"Failed to connect to {describe(plan)}: {e}")
        raise ConnectFailure(str(e)) from e

    logger.info(f"Redis connection established: {describe(plan)}")
    return client
