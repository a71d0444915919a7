"""Stack configuration for the Keycloak deployment.

Values come from the Pulumi stack config (``Pulumi.<stack>.yaml``) and are
validated with Pydantic before any resource is declared.

Required:
    keycloakAdminPassword  Keycloak admin password (secret)
    sslCertArn             ACM certificate ARN for the HTTPS listener
    aws:region             Region for the awslogs driver
"""

import ipaddress
from typing import Any

import pulumi
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Aurora Serverless v1 capacity units accepted for PostgreSQL
AURORA_POSTGRES_CAPACITIES = (2, 4, 8, 16, 32, 64, 192, 384)


class StackSettings(BaseModel):
    """Validated deploy-time parameters and tuning knobs."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    environment: str = Field(..., min_length=1)
    aws_region: str = Field(..., min_length=1)

    # Deploy-time parameters
    admin_password: Any = Field(..., description="Keycloak admin password (pulumi secret)")
    ssl_cert_arn: str = Field(..., min_length=1)

    # Network
    vpc_cidr: str = "10.0.0.0/16"
    az_count: int = Field(2, ge=1, le=6)

    # Database
    db_engine_version: str = "10.12"
    db_name: str = "keycloak"
    db_username: str = "postgres"
    db_min_capacity: int = 2
    db_max_capacity: int = 2
    db_auto_pause_minutes: int = Field(5, ge=5, le=1440)

    # Container service
    keycloak_image: str = "jboss/keycloak"
    keycloak_admin_user: str = "admin"
    task_cpu: int = Field(512, gt=0)
    task_memory: int = Field(2048, gt=0)
    desired_count: int = Field(1, ge=0)
    health_check_grace_minutes: int = Field(5, ge=0)
    log_retention_days: int = Field(30, gt=0)

    # Load balancer
    ssl_policy: str = "ELBSecurityPolicy-2016-08"

    @field_validator("vpc_cidr")
    @classmethod
    def _validate_vpc_cidr(cls, value: str) -> str:
        try:
            network = ipaddress.ip_network(value)
        except ValueError as e:
            raise ValueError(f"vpc_cidr is not a valid network: {e}") from e
        if network.version != 4:
            raise ValueError("vpc_cidr must be an IPv4 network")
        return str(network)

    @field_validator("db_min_capacity", "db_max_capacity")
    @classmethod
    def _validate_capacity(cls, value: int) -> int:
        if value not in AURORA_POSTGRES_CAPACITIES:
            raise ValueError(
                f"capacity must be one of {AURORA_POSTGRES_CAPACITIES}, got {value}"
            )
        return value

    @model_validator(mode="after")
    def _validate_capacity_range(self) -> "StackSettings":
        if self.db_min_capacity > self.db_max_capacity:
            raise ValueError(
                f"db_min_capacity ({self.db_min_capacity}) must not exceed "
                f"db_max_capacity ({self.db_max_capacity})"
            )
        return self

    @property
    def tags(self) -> dict[str, str]:
        """Common tags for all resources."""
        return {
            "Project": "keycloak",
            "Environment": self.environment,
            "ManagedBy": "pulumi",
        }

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"


def load_settings(
    config: pulumi.Config,
    aws_config: pulumi.Config,
    environment: str,
) -> StackSettings:
    """Read and validate the stack configuration.

    Raises:
        pulumi.ConfigMissingError: If a required key is absent.
        pydantic.ValidationError: If a value is out of range.
    """
    overrides = {
        "vpc_cidr": config.get("vpc_cidr"),
        "az_count": config.get_int("az_count"),
        "db_engine_version": config.get("db_engine_version"),
        "db_min_capacity": config.get_int("db_min_capacity"),
        "db_max_capacity": config.get_int("db_max_capacity"),
        "db_auto_pause_minutes": config.get_int("db_auto_pause_minutes"),
        "keycloak_image": config.get("keycloak_image"),
        "task_cpu": config.get_int("task_cpu"),
        "task_memory": config.get_int("task_memory"),
        "desired_count": config.get_int("desired_count"),
        "log_retention_days": config.get_int("log_retention_days"),
        "ssl_policy": config.get("ssl_policy"),
    }

    settings = StackSettings(
        environment=environment,
        aws_region=aws_config.require("region"),
        admin_password=config.require_secret("keycloakAdminPassword"),
        ssl_cert_arn=config.require("sslCertArn"),
        # Unset keys fall back to model defaults
        **{key: value for key, value in overrides.items() if value is not None},
    )

    pulumi.log.info(
        f"Keycloak settings resolved for '{environment}': "
        f"{settings.az_count} AZs, image {settings.keycloak_image}, "
        f"db capacity {settings.db_min_capacity}-{settings.db_max_capacity} ACU"
    )
    return settings
