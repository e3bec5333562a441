"""
Resource resolution strategies for Task states.

A Task state names its external resource in a provider-specific way: a
direct function ARN, a service-integration ARN whose real target lives in
``Parameters``, or a container task definition. Each family gets its own
:class:`ResourceResolver` implementation. The graph builder talks only to
the protocol and composes families with :class:`CompositeResourceResolver`.

Resolvers return ``None`` when the resource is not theirs. When the family
matches but the concrete identity cannot be determined they raise
:class:`UnresolvedResourceError`; the graph builder turns that into a node
without resource metadata.

Example:
    >>> resolver = default_resolver("eu-west-1")
    >>> state = TaskState(name="Extract", resource="arn:aws:lambda:us-east-1:123:function:extract")
    >>> resolver.resolve(state).resource_kind
    'function'
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from urllib.parse import quote

from statespine.core.errors import UnresolvedResourceError
from statespine.orchestration.state_types import TaskState

DEFAULT_REGION = "us-east-1"

FUNCTION_KIND = "function"
CONTAINER_TASK_KIND = "container-task"
FARGATE_TASK_KIND = "fargate-task"
CONTAINER_KINDS = frozenset({CONTAINER_TASK_KIND, FARGATE_TASK_KIND})

_FUNCTION_INTEGRATION_PREFIX = "arn:aws:states:::lambda:"
_FUNCTION_ARN_PREFIX = "arn:aws:lambda:"
_CONTAINER_INTEGRATION_PREFIX = "arn:aws:states:::ecs:"
_CONTAINER_ARN_PREFIX = "arn:aws:ecs:"

_FUNCTION_CONSOLE_URL = "https://console.aws.amazon.com/lambda/home?region={region}#/functions/{name}"
_TASK_DEFINITION_CONSOLE_URL = "https://console.aws.amazon.com/ecs/home?region={region}#/taskDefinitions/{name}"
_CLUSTER_CONSOLE_URL = "https://console.aws.amazon.com/ecs/home?region={region}#/clusters/{name}/tasks"


@dataclass(frozen=True)
class ResolvedResource:
    """Concrete identity of a Task state's resource."""

    resource: str
    resource_kind: str
    resource_link: str | None = None


@runtime_checkable
class ResourceResolver(Protocol):
    """Maps a Task state to a concrete resource, or ``None`` when not handled."""

    def resolve(self, state: TaskState) -> ResolvedResource | None: ...


def is_container_kind(resource_kind: str | None) -> bool:
    return resource_kind in CONTAINER_KINDS


# ── ARN helpers ───────────────────────────────────────────────────


def arn_region(arn: str | None, fallback: str | None = None) -> str | None:
    """Region segment of an ARN, ``fallback`` when absent."""
    if not arn or not arn.startswith("arn:"):
        return fallback
    parts = arn.split(":", 5)
    if len(parts) >= 4 and parts[3].strip():
        return parts[3]
    return fallback


def arn_resource_name(arn: str | None) -> str | None:
    """Name after the ``/`` of an ARN's resource segment (task definition, cluster).

    Non-ARN values are returned unchanged.
    """
    if not arn or not arn.strip():
        return None
    if not arn.startswith("arn:"):
        return arn
    parts = arn.split(":", 5)
    if len(parts) < 6:
        return arn
    resource = parts[5]
    slash = resource.find("/")
    if 0 <= slash < len(resource) - 1:
        return resource[slash + 1 :]
    return resource


def function_name_from_resource(resource: str | None) -> str | None:
    """Bare function name from a function ARN or name.

    Strips the ``function:`` prefix and any alias or version suffix;
    non-ARN values are returned unchanged.

    Example:
        >>> function_name_from_resource("arn:aws:lambda:us-east-1:123:function:extract:live")
        'extract'
    """
    if not resource or not resource.strip():
        return None
    if not resource.startswith("arn:"):
        return resource
    parts = resource.split(":", 6)
    if len(parts) < 7:
        return resource
    rest = parts[6]
    if rest.startswith("function:"):
        rest = rest[len("function:") :]
    return rest.split(":", 1)[0]


def function_console_url(resource: str, region: str | None = None) -> str:
    """Console link for a function; the region in an ARN wins over ``region``."""
    name = resource
    if resource.startswith("arn:"):
        parts = resource.split(":", 6)
        if len(parts) >= 7 and parts[2] == "lambda":
            region = parts[3] or region
            name = function_name_from_resource(resource) or resource
    return _FUNCTION_CONSOLE_URL.format(region=region or DEFAULT_REGION, name=name)


def container_console_url(
    task_definition: str | None,
    cluster: str | None,
    region: str | None = None,
) -> str | None:
    """Console link to a task definition, else to a cluster's task list."""
    task_name = None
    if task_definition:
        region = arn_region(task_definition, region)
        task_name = arn_resource_name(task_definition)
    cluster_name = None
    if cluster:
        region = arn_region(cluster, region)
        cluster_name = arn_resource_name(cluster)
    region = region or DEFAULT_REGION
    if task_name:
        return _TASK_DEFINITION_CONSOLE_URL.format(region=region, name=quote(task_name, safe=""))
    if cluster_name:
        return _CLUSTER_CONSOLE_URL.format(region=region, name=quote(cluster_name, safe=""))
    return None


# ── Strategies ────────────────────────────────────────────────────


def _parameter(state: TaskState, *keys: str) -> str | None:
    for key in keys:
        value = state.parameters.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


class FunctionResourceResolver:
    """Serverless functions: direct ARNs and the invoke service integration."""

    def __init__(self, region: str | None = None):
        self.region = region

    def resolve(self, state: TaskState) -> ResolvedResource | None:
        resource = state.resource
        if not resource:
            return None
        if resource.startswith(_FUNCTION_INTEGRATION_PREFIX):
            target = _parameter(state, "FunctionName", "FunctionArn")
            if target is None:
                raise UnresolvedResourceError(
                    "Function integration without FunctionName"
                ).with_context(state=state.name, resource=resource)
        elif resource.startswith(_FUNCTION_ARN_PREFIX):
            target = resource
        else:
            return None
        return ResolvedResource(
            resource=target,
            resource_kind=FUNCTION_KIND,
            resource_link=function_console_url(target, self.region),
        )


class ContainerTaskResourceResolver:
    """Container tasks: resolved through TaskDefinition, else Cluster."""

    def __init__(self, region: str | None = None):
        self.region = region

    def resolve(self, state: TaskState) -> ResolvedResource | None:
        resource = state.resource
        if not resource or not resource.startswith((_CONTAINER_INTEGRATION_PREFIX, _CONTAINER_ARN_PREFIX)):
            return None
        task_definition = _parameter(state, "TaskDefinition", "TaskDefinitionArn")
        cluster = _parameter(state, "Cluster")
        link = container_console_url(task_definition, cluster, self.region)
        if link is None:
            raise UnresolvedResourceError(
                "Container task without TaskDefinition or Cluster"
            ).with_context(state=state.name, resource=resource)

        launch_type = _parameter(state, "LaunchType")
        kind = FARGATE_TASK_KIND if launch_type and launch_type.upper() == "FARGATE" else CONTAINER_TASK_KIND
        return ResolvedResource(
            resource=task_definition or cluster,
            resource_kind=kind,
            resource_link=link,
        )


class CompositeResourceResolver:
    """First non-``None`` result among its member resolvers."""

    def __init__(self, resolvers: Iterable[ResourceResolver]):
        self.resolvers = list(resolvers)

    def resolve(self, state: TaskState) -> ResolvedResource | None:
        for resolver in self.resolvers:
            resolved = resolver.resolve(state)
            if resolved is not None:
                return resolved
        return None


def default_resolver(region: str | None = None) -> CompositeResourceResolver:
    """Function and container-task resolution for ``region``."""
    return CompositeResourceResolver(
        [FunctionResourceResolver(region), ContainerTaskResourceResolver(region)]
    )


__all__ = [
    "CONTAINER_KINDS",
    "CONTAINER_TASK_KIND",
    "DEFAULT_REGION",
    "FARGATE_TASK_KIND",
    "FUNCTION_KIND",
    "CompositeResourceResolver",
    "ContainerTaskResourceResolver",
    "FunctionResourceResolver",
    "ResolvedResource",
    "ResourceResolver",
    "arn_region",
    "arn_resource_name",
    "container_console_url",
    "default_resolver",
    "function_console_url",
    "function_name_from_resource",
    "is_container_kind",
]
