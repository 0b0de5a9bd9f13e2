"""
Exception hierarchy for cache engines
"""


class CacheError(Exception):
    """Base class for all cache engine errors"""
    pass


class ConfigurationError(CacheError):
    """Engine configuration is invalid and cannot be used until it is changed"""
    pass


class ConnectFailure(CacheError):
    """The backing store could not be reached while connecting"""
    pass


class EngineNotReadyError(CacheError):
    """Operation called on an engine that is not connected"""

    def __init__(self, state: str):
        super().__init__(f"Cache engine is not ready (state: {state})")
        self.state = state


class InvalidKeyError(CacheError, ValueError):
    """Cache key is empty or not a string"""
    pass
