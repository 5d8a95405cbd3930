"""Query engine: failover executor and multicall batcher."""
from .batch import MulticallBatcher
from .executor import QueryExecutor, RetryState

__all__ = ["MulticallBatcher", "QueryExecutor", "RetryState"]
