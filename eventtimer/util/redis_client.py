import threading

import redis

from eventtimer.conf.config_redis import ConfigRedis

_REDIS_POOLS: dict[str, redis.ConnectionPool] = {}
_POOLS_LOCK = threading.RLock()


def _pool_key(conf: ConfigRedis) -> str:
    if conf.redis_url:
        return conf.redis_url
    return f"{conf.redis_host}:{conf.redis_port}:{conf.redis_db}:{conf.redis_username or ''}"


def get_redis_client(conf: ConfigRedis) -> redis.Redis:
    """
    Get a Redis client, sharing one connection pool per server and database.

    :param ConfigRedis conf: Connection settings.
    :return: A client decoding responses to str.
    """
    pool_key = _pool_key(conf)
    with _POOLS_LOCK:
        if pool_key not in _REDIS_POOLS:
            common = dict(
                max_connections=conf.redis_pool_max_connections,
                socket_timeout=conf.socket_timeout,
                socket_connect_timeout=conf.socket_connect_timeout,
                socket_keepalive=True,
                health_check_interval=conf.redis_pool_health_check_interval,
                retry_on_timeout=True,
                decode_responses=True,
            )
            if conf.redis_url:
                _REDIS_POOLS[pool_key] = redis.ConnectionPool.from_url(
                    conf.redis_url, **common
                )
            else:
                _REDIS_POOLS[pool_key] = redis.ConnectionPool(
                    host=conf.redis_host,
                    port=conf.redis_port,
                    db=conf.redis_db,
                    username=conf.redis_username or None,
                    password=conf.redis_password or None,
                    **common,
                )
    return redis.Redis(connection_pool=_REDIS_POOLS[pool_key])
