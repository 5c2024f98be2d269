from .cassandra import Cassandra

__all__ = ["Cassandra"]
