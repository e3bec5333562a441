"""
Log locations and console deep links.

Functions log to a group derived from their name.  Container tasks log
wherever their task definition's log driver points, so that lookup is
delegated to a :class:`ContainerLogConfigLookup` collaborator.  Every
resolved location also gets a CloudWatch console link whose fragment uses
the console's ``$``-escaping.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

from statespine.core.errors import UnresolvedLogLocationError
from statespine.core.logging import get_logger
from statespine.core.timestamps import to_epoch_ms
from statespine.logs.models import LogLocator
from statespine.orchestration.resources import (
    DEFAULT_REGION,
    FUNCTION_KIND,
    function_name_from_resource,
    is_container_kind,
)

logger = get_logger(__name__)

FUNCTION_LOG_GROUP_PREFIX = "/aws/lambda/"

NO_FUNCTION_LOG_GROUP = "No function log group found"
NO_CONTAINER_LOG_CONFIGURATION = "No container log configuration found"

_CONSOLE_URL = "https://console.aws.amazon.com/cloudwatch/home?region={region}#{fragment}"


@runtime_checkable
class ContainerLogConfigLookup(Protocol):
    """Finds the log configuration of a container task definition."""

    def describe_log_configuration(self, task_definition: str) -> LogLocator | None: ...


def function_log_group(resource: str | None) -> str | None:
    """``/aws/lambda/<name>`` for a function name or ARN."""
    name = function_name_from_resource(resource)
    if not name:
        return None
    return f"{FUNCTION_LOG_GROUP_PREFIX}{name}"


def locator_from_container_definitions(
    container_definitions: Iterable[Mapping[str, Any]] | None,
) -> LogLocator | None:
    """First container whose log configuration names an ``awslogs-group``.

    Helper for lookup implementations that receive a task definition's
    ``containerDefinitions`` list.
    """
    for container in container_definitions or ():
        if not isinstance(container, Mapping):
            continue
        config = container.get("logConfiguration")
        if not isinstance(config, Mapping):
            continue
        options = config.get("options")
        if not isinstance(options, Mapping):
            continue
        group = options.get("awslogs-group")
        if isinstance(group, str) and group.strip():
            return LogLocator(
                group=group,
                stream_prefix=options.get("awslogs-stream-prefix") or None,
                region=options.get("awslogs-region") or None,
            )
    return None


def resolve_locator(
    resource_kind: str | None,
    resource: str | None,
    container_lookup: ContainerLogConfigLookup | None = None,
) -> LogLocator:
    """Log location of a task resource.

    Raises:
        UnresolvedLogLocationError: No location can be determined; the
            message is the user-facing reason.
    """
    if resource_kind == FUNCTION_KIND:
        group = function_log_group(resource)
        if group is None:
            raise UnresolvedLogLocationError(NO_FUNCTION_LOG_GROUP).with_context(resource=resource)
        return LogLocator(group=group)

    if is_container_kind(resource_kind):
        locator = None
        if container_lookup is not None and resource:
            try:
                locator = container_lookup.describe_log_configuration(resource)
            except Exception:
                logger.warning("task_logs.container_lookup_failed", resource=resource, exc_info=True)
        if locator is None or not locator.group:
            raise UnresolvedLogLocationError(NO_CONTAINER_LOG_CONFIGURATION).with_context(
                resource=resource
            )
        return locator

    raise UnresolvedLogLocationError(f"Unsupported resource kind: {resource_kind}").with_context(
        resource=resource
    )


def log_group_from_arn(log_group_arn: str | None) -> str | None:
    """Log group name from a ``...:log-group:<name>[:log-stream:...]`` ARN.

    The ``:*`` wildcard suffix of logging destinations is dropped.

    Example:
        >>> log_group_from_arn("arn:aws:logs:us-east-1:123:log-group:/aws/states/etl:*")
        '/aws/states/etl'
    """
    if not log_group_arn or not log_group_arn.strip():
        return None
    marker = ":log-group:"
    index = log_group_arn.find(marker)
    if index < 0:
        return None
    remainder = log_group_arn[index + len(marker) :]
    stream = remainder.find(":log-stream:")
    if stream >= 0:
        remainder = remainder[:stream]
    if remainder.endswith(":*"):
        remainder = remainder[:-2]
    return remainder or None


def encode_console_component(value: str) -> str:
    """Form-encode ``value`` for the console fragment, then swap ``%`` for ``$``."""
    if not value:
        return value
    encoded = quote(value, safe="*").replace("~", "%7E")
    return encoded.replace("%", "$")


def cloudwatch_console_url(
    group: str | None,
    region: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    filter_pattern: str | None = None,
    stream_prefix: str | None = None,
) -> str | None:
    """Deep link to a log group's events in the CloudWatch console."""
    if not group or not group.strip():
        return None
    fragment = f"logsV2:log-groups/log-group/{encode_console_component(group)}"
    params = []
    if start is not None:
        params.append(f"start={to_epoch_ms(start)}")
    if end is not None:
        params.append(f"end={to_epoch_ms(end)}")
    if filter_pattern:
        params.append(f"filterPattern={filter_pattern}")
    if stream_prefix:
        params.append(f"logStreamNamePrefix={stream_prefix}")
    if params:
        fragment += "/log-events$3F" + encode_console_component("&".join(params))
    return _CONSOLE_URL.format(region=region or DEFAULT_REGION, fragment=fragment)


__all__ = [
    "FUNCTION_LOG_GROUP_PREFIX",
    "NO_CONTAINER_LOG_CONFIGURATION",
    "NO_FUNCTION_LOG_GROUP",
    "ContainerLogConfigLookup",
    "cloudwatch_console_url",
    "encode_console_component",
    "function_log_group",
    "locator_from_container_definitions",
    "log_group_from_arn",
    "resolve_locator",
]
