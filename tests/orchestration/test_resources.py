"""
Tests for statespine.orchestration.resources.

Covers:
- ARN helpers (region, resource name, function name)
- console links for functions and container tasks
- FunctionResourceResolver: direct ARN and invoke integration
- ContainerTaskResourceResolver: task definition, cluster, Fargate
- CompositeResourceResolver ordering
"""

from __future__ import annotations

import pytest

from statespine.core.errors import UnresolvedResourceError
from statespine.orchestration.resources import (
    CONTAINER_TASK_KIND,
    FARGATE_TASK_KIND,
    FUNCTION_KIND,
    CompositeResourceResolver,
    ContainerTaskResourceResolver,
    FunctionResourceResolver,
    ResolvedResource,
    ResourceResolver,
    arn_region,
    arn_resource_name,
    container_console_url,
    default_resolver,
    function_console_url,
    function_name_from_resource,
    is_container_kind,
)
from statespine.orchestration.state_types import TaskState

FUNCTION_ARN = "arn:aws:lambda:eu-central-1:123456789012:function:extract"


def _task(resource: str | None, **parameters) -> TaskState:
    return TaskState(name="T", resource=resource, parameters=parameters)


class TestArnHelpers:
    def test_arn_region(self):
        assert arn_region(FUNCTION_ARN) == "eu-central-1"
        assert arn_region("arn:aws:states:::lambda:invoke", "us-west-2") == "us-west-2"
        assert arn_region("not-an-arn", "fallback") == "fallback"
        assert arn_region(None) is None

    def test_arn_resource_name(self):
        assert arn_resource_name("arn:aws:ecs:us-east-1:1:task-definition/etl:3") == "etl:3"
        assert arn_resource_name("arn:aws:ecs:us-east-1:1:cluster/main") == "main"
        assert arn_resource_name("family:2") == "family:2"
        assert arn_resource_name("  ") is None

    @pytest.mark.parametrize(
        ("resource", "expected"),
        [
            (FUNCTION_ARN, "extract"),
            (FUNCTION_ARN + ":live", "extract"),
            (FUNCTION_ARN + ":$LATEST", "extract"),
            ("extract", "extract"),
            ("arn:aws:lambda:us-east-1", "arn:aws:lambda:us-east-1"),
            ("", None),
            (None, None),
        ],
    )
    def test_function_name(self, resource, expected):
        assert function_name_from_resource(resource) == expected


class TestConsoleLinks:
    def test_function_link_uses_arn_region(self):
        assert function_console_url(FUNCTION_ARN, "us-east-1") == (
            "https://console.aws.amazon.com/lambda/home?region=eu-central-1#/functions/extract"
        )

    def test_function_link_for_bare_name(self):
        assert function_console_url("extract", "ap-south-1") == (
            "https://console.aws.amazon.com/lambda/home?region=ap-south-1#/functions/extract"
        )

    def test_function_link_default_region(self):
        assert "region=us-east-1" in function_console_url("extract")

    def test_task_definition_link(self):
        url = container_console_url("arn:aws:ecs:eu-west-1:1:task-definition/etl:3", None)
        assert url == "https://console.aws.amazon.com/ecs/home?region=eu-west-1#/taskDefinitions/etl%3A3"

    def test_cluster_link(self):
        url = container_console_url(None, "arn:aws:ecs:eu-west-1:1:cluster/main")
        assert url == "https://console.aws.amazon.com/ecs/home?region=eu-west-1#/clusters/main/tasks"

    def test_no_link(self):
        assert container_console_url(None, None) is None


class TestFunctionResolver:
    def test_direct_arn(self):
        resolved = FunctionResourceResolver("us-east-1").resolve(_task(FUNCTION_ARN))
        assert resolved == ResolvedResource(
            resource=FUNCTION_ARN,
            resource_kind=FUNCTION_KIND,
            resource_link="https://console.aws.amazon.com/lambda/home?region=eu-central-1#/functions/extract",
        )

    def test_integration_function_name(self):
        resolved = FunctionResourceResolver("us-west-2").resolve(
            _task("arn:aws:states:::lambda:invoke", FunctionName="load")
        )
        assert resolved.resource == "load"
        assert resolved.resource_link.endswith("region=us-west-2#/functions/load")

    def test_integration_function_arn(self):
        resolved = FunctionResourceResolver().resolve(
            _task("arn:aws:states:::lambda:invoke.waitForTaskToken", FunctionArn=FUNCTION_ARN)
        )
        assert resolved.resource == FUNCTION_ARN

    def test_integration_without_target_raises(self):
        with pytest.raises(UnresolvedResourceError) as exc_info:
            FunctionResourceResolver().resolve(_task("arn:aws:states:::lambda:invoke"))
        assert exc_info.value.context.state == "T"

    def test_not_a_function(self):
        assert FunctionResourceResolver().resolve(_task("arn:aws:states:::sqs:sendMessage")) is None
        assert FunctionResourceResolver().resolve(_task(None)) is None


class TestContainerResolver:
    def test_task_definition(self):
        resolved = ContainerTaskResourceResolver("us-east-1").resolve(
            _task("arn:aws:states:::ecs:runTask.sync", TaskDefinition="etl:3")
        )
        assert resolved.resource == "etl:3"
        assert resolved.resource_kind == CONTAINER_TASK_KIND
        assert resolved.resource_link.endswith("#/taskDefinitions/etl%3A3")

    def test_fargate(self):
        resolved = ContainerTaskResourceResolver().resolve(
            _task("arn:aws:states:::ecs:runTask", TaskDefinition="etl", LaunchType="FARGATE")
        )
        assert resolved.resource_kind == FARGATE_TASK_KIND
        assert is_container_kind(resolved.resource_kind)

    def test_cluster_only(self):
        resolved = ContainerTaskResourceResolver().resolve(
            _task("arn:aws:states:::ecs:runTask", Cluster="arn:aws:ecs:eu-west-1:1:cluster/main")
        )
        assert resolved.resource == "arn:aws:ecs:eu-west-1:1:cluster/main"
        assert resolved.resource_link.endswith("#/clusters/main/tasks")

    def test_neither_raises(self):
        with pytest.raises(UnresolvedResourceError):
            ContainerTaskResourceResolver().resolve(_task("arn:aws:states:::ecs:runTask"))

    def test_not_a_container(self):
        assert ContainerTaskResourceResolver().resolve(_task(FUNCTION_ARN)) is None


class TestComposite:
    def test_first_match_wins(self):
        class Always:
            def __init__(self, kind):
                self.kind = kind

            def resolve(self, state):
                return ResolvedResource(resource=state.name, resource_kind=self.kind)

        resolver = CompositeResourceResolver([Always("a"), Always("b")])
        assert resolver.resolve(_task("x")).resource_kind == "a"

    def test_no_match(self):
        assert default_resolver().resolve(_task("arn:aws:states:::sns:publish")) is None

    def test_default_resolver_is_a_resolver(self):
        assert isinstance(default_resolver("us-east-1"), ResourceResolver)
