"""Pytest configuration and fixtures.

Stack tests run the Pulumi program in-process against mocks: every resource
registration is recorded so tests can assert on the declared inputs without
talking to AWS.
"""

import json

import pulumi
import pytest

from components.config import StackSettings

TEST_REGION = "us-east-1"
TEST_CERT_ARN = "arn:aws:acm:us-east-1:123456789012:certificate/0a1b2c3d-test"
TEST_ADMIN_PASSWORD = "admin-password-for-testing"

# Marker the Pulumi wire format uses for secret values
_SECRET_SIG = "1b47061264138c4ac30d75fd1eb44270"


def unwrap(value):
    """Strip the secret wrapper from a recorded input, if present."""
    if isinstance(value, dict) and _SECRET_SIG in value.values() and "value" in value:
        return value["value"]
    return value


class RecordingMocks(pulumi.runtime.Mocks):
    """Pulumi mocks that remember every resource registered."""

    def __init__(self):
        self.resources: list[pulumi.runtime.MockResourceArgs] = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.resources.append(args)

        outputs = {
            **args.inputs,
            "arn": f"arn:aws:mock:{TEST_REGION}:123456789012:{args.name}",
            "name": args.inputs.get("name", args.name),
        }
        if args.typ == "aws:rds/cluster:Cluster":
            outputs["endpoint"] = f"{args.name}.cluster-mock.{TEST_REGION}.rds.amazonaws.com"
            outputs["port"] = args.inputs.get("port", 5432)
        elif args.typ == "aws:lb/loadBalancer:LoadBalancer":
            outputs["dnsName"] = f"{args.name}.{TEST_REGION}.elb.amazonaws.com"
        elif args.typ == "random:index/randomPassword:RandomPassword":
            outputs["result"] = "x" * int(args.inputs.get("length", 16))

        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token == "aws:index/getAvailabilityZones:getAvailabilityZones":
            return {
                "names": ["us-east-1a", "us-east-1b", "us-east-1c"],
                "zoneIds": ["use1-az1", "use1-az2", "use1-az3"],
                "id": TEST_REGION,
            }
        return {}

    # Lookup helpers

    def of_type(self, typ: str) -> list[pulumi.runtime.MockResourceArgs]:
        return [r for r in self.resources if r.typ == typ]

    def named(self, name: str) -> pulumi.runtime.MockResourceArgs:
        matches = [r for r in self.resources if r.name == name]
        assert len(matches) == 1, f"expected one resource named {name}, got {len(matches)}"
        return matches[0]

    def container_definitions(self, task_name: str) -> list[dict]:
        raw = unwrap(self.named(task_name).inputs["containerDefinitions"])
        return json.loads(raw)

    def secret_string(self, version_name: str) -> dict:
        raw = unwrap(self.named(version_name).inputs["secretString"])
        return json.loads(raw)


def make_settings(**overrides) -> StackSettings:
    values = {
        "environment": "dev",
        "aws_region": TEST_REGION,
        "admin_password": TEST_ADMIN_PASSWORD,
        "ssl_cert_arn": TEST_CERT_ARN,
    }
    values.update(overrides)
    return StackSettings(**values)


def declare(build) -> RecordingMocks:
    """Run ``build`` under fresh mocks and wait for all registrations."""
    mocks = RecordingMocks()
    pulumi.runtime.set_mocks(mocks, project="keycloak-infra", stack="test", preview=False)

    @pulumi.runtime.test
    def run():
        component = build()
        return component.urn

    run()
    return mocks


@pytest.fixture
def settings():
    """Default dev stack settings."""
    return make_settings()


@pytest.fixture
def settings_factory():
    """Build stack settings with overrides."""
    return make_settings


@pytest.fixture(scope="session")
def declare_stack():
    """Declare a KeycloakStack under mocks and return the recorded resources."""
    from components.stack import KeycloakStack

    def _declare(name: str = "test", **overrides) -> RecordingMocks:
        settings = make_settings(**overrides)
        return declare(lambda: KeycloakStack(name, settings=settings))

    return _declare


@pytest.fixture(scope="session")
def declare_component():
    """Declare any component under mocks and return the recorded resources."""
    return declare
