"""
statespine Logs - task log correlation.

models.py      ─ LogLine, LogLocator, LogWindow, LogQuery, TaskLogBundle, ExecutionLogs
locators.py    ─ log group resolution and console deep links
correlator.py  ─ LogCorrelator, per_node_budget, fetch_execution_logs
"""

from statespine.logs.correlator import (
    LogBackend,
    LogCorrelator,
    fetch_execution_logs,
    per_node_budget,
)
from statespine.logs.locators import (
    ContainerLogConfigLookup,
    cloudwatch_console_url,
    function_log_group,
    locator_from_container_definitions,
    log_group_from_arn,
    resolve_locator,
)
from statespine.logs.models import (
    ExecutionLogs,
    LogLine,
    LogLocator,
    LogQuery,
    LogWindow,
    TaskLogBundle,
)

__all__ = [
    "ContainerLogConfigLookup",
    "ExecutionLogs",
    "LogBackend",
    "LogCorrelator",
    "LogLine",
    "LogLocator",
    "LogQuery",
    "LogWindow",
    "TaskLogBundle",
    "cloudwatch_console_url",
    "fetch_execution_logs",
    "function_log_group",
    "locator_from_container_definitions",
    "log_group_from_arn",
    "per_node_budget",
    "resolve_locator",
]
