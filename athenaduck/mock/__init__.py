from .client import MockAthenaClient, ScriptedQuery
from .engine import DuckDBAthenaClient

__all__ = [
    "DuckDBAthenaClient",
    "MockAthenaClient",
    "ScriptedQuery",
]
