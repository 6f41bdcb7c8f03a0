"""End-to-end behaviour of one block invocation with fake AWS collaborators."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

from aws_blocks.aws_credentials.sts_provider import CredentialResolver
from aws_blocks.config import Settings
from aws_blocks.domain.credentials import AWSCredentials
from aws_blocks.domain.invocation import InvocationConfig
from aws_blocks.domain.operations import OperationDescriptor
from aws_blocks.errors import (
    ConfigurationError,
    CredentialResolutionError,
    ErrorStage,
    OperationError,
)
from aws_blocks.execution import pipeline
from aws_blocks.execution.pipeline import run_operation, run_operation_async
from fakes import ROLE_ARN, FakeClientFactory, FakeServiceClient, FakeSTSClient

BASE = AWSCredentials(access_key_id="A", secret_access_key="S")

LIST_OBJECTS = OperationDescriptor(
    id="s3.listObjectsV2",
    group="s3",
    service="s3",
    operation="ListObjectsV2",
    name="List Objects V2",
    stream_bearing=True,
    required=("Bucket",),
)
UPDATE_STACK = OperationDescriptor(
    id="cloudformation.updateStack",
    group="cloudformation",
    service="cloudformation",
    operation="UpdateStack",
    name="Update Stack",
    required=("StackName",),
)


class _Recorder:
    def __init__(self) -> None:
        self.events: list[dict] = []

    def __call__(self, payload: dict) -> None:
        self.events.append(payload)


@pytest.fixture
def harness(monkeypatch: pytest.MonkeyPatch):
    sts = FakeSTSClient()
    s3 = FakeServiceClient(
        response={
            "Name": "b",
            "KeyCount": 1,
            "Contents": [
                {"Key": "k", "LastModified": datetime(2026, 1, 1, tzinfo=timezone.utc)}
            ],
        }
    )
    cloudformation = FakeServiceClient(response={"StackId": "stack-1"})
    factory = FakeClientFactory(
        clients={"sts": sts, "s3": s3, "cloudformation": cloudformation}
    )
    monkeypatch.setattr(pipeline, "create_client", factory)

    async def _create_client_async(*args, **kwargs):
        return factory(*args, **kwargs)

    monkeypatch.setattr(pipeline, "create_client_async", _create_client_async)
    resolver = CredentialResolver(Settings(), client_factory=factory)
    return sts, s3, cloudformation, factory, resolver


def test_direct_credentials_scenario(harness) -> None:
    sts, s3, _, factory, resolver = harness
    emit = _Recorder()
    invocation = InvocationConfig.from_input(
        {"region": "us-east-1", "operationParameters": {"Bucket": "b"}}
    )

    payload = run_operation(LIST_OBJECTS, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert sts.calls == []
    assert factory.calls_for("sts") == []
    s3_call = factory.calls_for("s3")[0]
    assert s3_call.region == "us-east-1"
    assert s3_call.credentials is BASE
    assert s3_call.endpoint is None
    assert s3.calls == [("list_objects_v2", {"Bucket": "b"})]
    assert emit.events == [payload]
    assert payload["Contents"] == [{"Key": "k", "LastModified": "2026-01-01T00:00:00+00:00"}]


def test_role_delegation_scenario(harness) -> None:
    sts, _, cloudformation, factory, resolver = harness
    emit = _Recorder()
    invocation = InvocationConfig.from_input(
        {"region": "eu-west-1", "assumeRoleArn": ROLE_ARN, "StackName": "app"}
    )

    run_operation(UPDATE_STACK, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert len(sts.calls) == 1
    assert sts.calls[0]["RoleArn"] == ROLE_ARN
    assert sts.calls[0]["RoleSessionName"].startswith("flows-session-")
    assert factory.calls_for("sts")[0].region == "eu-west-1"

    target = factory.calls_for("cloudformation")
    assert len(target) == 1
    assert target[0].region == "eu-west-1"
    assert target[0].credentials.access_key_id == "ASIATEMPORARYKEY01"
    assert target[0].credentials.session_token == "temp-token"
    assert target[0].credentials is not BASE
    assert cloudformation.calls == [("update_stack", {"StackName": "app"})]
    assert emit.events == [{"StackId": "stack-1"}]


def test_sts_rejection_scenario(monkeypatch: pytest.MonkeyPatch, harness) -> None:
    _, _, cloudformation, factory, _ = harness
    rejected = FakeSTSClient(
        error=ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "not authorized to perform sts:AssumeRole"}},
            "AssumeRole",
        )
    )
    factory.clients["sts"] = rejected
    resolver = CredentialResolver(Settings(), client_factory=factory)
    emit = _Recorder()
    invocation = InvocationConfig.from_input(
        {"region": "eu-west-1", "assumeRoleArn": ROLE_ARN, "StackName": "app"}
    )

    with pytest.raises(CredentialResolutionError) as excinfo:
        run_operation(UPDATE_STACK, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert excinfo.value.role_arn == ROLE_ARN
    assert excinfo.value.code == "access_denied"
    assert excinfo.value.to_dict()["stage"] == "credential"
    assert len(rejected.calls) == 1
    assert factory.calls_for("cloudformation") == []
    assert cloudformation.calls == []
    assert emit.events == []


def test_endpoint_override_reaches_both_clients(harness) -> None:
    _, _, _, factory, resolver = harness
    invocation = InvocationConfig.from_input(
        {
            "region": "us-east-1",
            "assumeRoleArn": ROLE_ARN,
            "endpointOverride": "http://localhost:4566",
            "StackName": "app",
        }
    )

    run_operation(
        UPDATE_STACK,
        invocation,
        BASE,
        _Recorder(),
        endpoint="https://ignored.example.com",
        resolver=resolver,
        settings=Settings(),
    )

    assert [call.endpoint for call in factory.calls] == [
        "http://localhost:4566",
        "http://localhost:4566",
    ]


def test_platform_endpoint_used_without_override(harness) -> None:
    _, _, _, factory, resolver = harness
    invocation = InvocationConfig.from_input({"region": "us-east-1", "StackName": "app"})

    run_operation(
        UPDATE_STACK,
        invocation,
        BASE,
        _Recorder(),
        endpoint="http://localhost:4566",
        resolver=resolver,
        settings=Settings(),
    )

    assert factory.calls_for("cloudformation")[0].endpoint == "http://localhost:4566"


def test_empty_result_emits_empty_object(harness) -> None:
    _, _, cloudformation, factory, resolver = harness
    factory.clients["cloudformation"] = FakeServiceClient(response=None)
    emit = _Recorder()
    invocation = InvocationConfig.from_input({"region": "us-east-1", "StackName": "app"})

    payload = run_operation(UPDATE_STACK, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert payload == {}
    assert emit.events == [{}]


def test_missing_required_parameter_fails_before_network(harness) -> None:
    sts, s3, _, factory, resolver = harness
    emit = _Recorder()
    invocation = InvocationConfig.from_input({"region": "us-east-1", "assumeRoleArn": ROLE_ARN})

    with pytest.raises(ConfigurationError) as excinfo:
        run_operation(LIST_OBJECTS, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert excinfo.value.code == "missing_parameters"
    assert excinfo.value.field == "Bucket"
    assert factory.calls == []
    assert sts.calls == []
    assert emit.events == []


def test_operation_error_propagates_without_emit(harness) -> None:
    _, _, _, factory, resolver = harness
    error = ClientError(
        {
            "Error": {"Code": "ValidationError", "Message": "No updates are to be performed."},
            "ResponseMetadata": {"HTTPStatusCode": 400},
        },
        "UpdateStack",
    )
    failing = FakeServiceClient(error=error)
    factory.clients["cloudformation"] = failing
    emit = _Recorder()
    invocation = InvocationConfig.from_input({"region": "us-east-1", "StackName": "app"})

    with pytest.raises(OperationError) as excinfo:
        run_operation(UPDATE_STACK, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert excinfo.value.stage is ErrorStage.OPERATION
    assert excinfo.value.to_dict() == {
        "type": "OperationError",
        "stage": "operation",
        "code": "ValidationError",
        "message": "No updates are to be performed.",
        "service": "cloudformation",
        "operation": "UpdateStack",
        "http_status": 400,
    }
    assert len(failing.calls) == 1
    assert emit.events == []


@pytest.mark.asyncio
async def test_run_operation_async_delegation(harness) -> None:
    sts, _, cloudformation, factory, resolver = harness
    events: list[dict] = []

    async def emit(payload: dict) -> None:
        events.append(payload)

    invocation = InvocationConfig.from_input(
        {"region": "eu-west-1", "assumeRoleArn": ROLE_ARN, "StackName": "app"}
    )

    payload = await run_operation_async(
        UPDATE_STACK, invocation, BASE, emit, resolver=resolver, settings=Settings()
    )

    assert payload == {"StackId": "stack-1"}
    assert events == [{"StackId": "stack-1"}]
    assert len(sts.calls) == 1
    assert len(cloudformation.calls) == 1
    assert factory.calls_for("cloudformation")[0].credentials.session_token == "temp-token"


@pytest.mark.parametrize(
    ("service", "operation", "code"),
    [
        ("nosuchservice", "ListThings", "unsupported_service"),
        ("s3", "NoSuchOp", "unsupported_operation"),
    ],
)
def test_unknown_service_or_operation_fails_before_sts(
    harness, service: str, operation: str, code: str
) -> None:
    sts, _, _, factory, resolver = harness
    emit = _Recorder()
    descriptor = OperationDescriptor(
        id="custom.block", group="custom", service=service, operation=operation, name="Custom"
    )
    invocation = InvocationConfig.from_input({"region": "eu-west-1", "assumeRoleArn": ROLE_ARN})

    with pytest.raises(ConfigurationError) as excinfo:
        run_operation(descriptor, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert excinfo.value.code == code
    assert sts.calls == []
    assert factory.calls == []
    assert emit.events == []


@pytest.mark.asyncio
async def test_unknown_operation_fails_before_sts_async(harness) -> None:
    sts, _, _, factory, resolver = harness
    descriptor = OperationDescriptor(
        id="s3.launch", group="s3", service="s3", operation="LaunchRockets", name="Launch"
    )
    invocation = InvocationConfig.from_input({"region": "eu-west-1", "assumeRoleArn": ROLE_ARN})

    with pytest.raises(ConfigurationError):
        await run_operation_async(
            descriptor, invocation, BASE, _Recorder(), resolver=resolver, settings=Settings()
        )

    assert sts.calls == []
    assert factory.calls == []


def test_plain_result_with_timestamps_emits_json(harness) -> None:
    _, _, _, factory, resolver = harness
    factory.clients["cloudformation"] = FakeServiceClient(
        response={"StackEvents": [{"Timestamp": datetime(2026, 1, 1, tzinfo=timezone.utc)}]}
    )
    emit = _Recorder()
    invocation = InvocationConfig.from_input({"region": "us-east-1", "StackName": "app"})

    run_operation(UPDATE_STACK, invocation, BASE, emit, resolver=resolver, settings=Settings())

    assert json.loads(json.dumps(emit.events[0])) == {
        "StackEvents": [{"Timestamp": "2026-01-01T00:00:00+00:00"}]
    }
