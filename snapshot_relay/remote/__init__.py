"""Remote task catalog and credential provider."""

from .auth import OAuth2ClientCredentials
from .catalog import ExecutionFileSource, RemoteTaskCatalog, TaskCatalog

__all__ = [
    "ExecutionFileSource",
    "OAuth2ClientCredentials",
    "RemoteTaskCatalog",
    "TaskCatalog",
]
