"""
Redis cache engine with single node, replication and sentinel topologies
"""
