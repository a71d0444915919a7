"""Database Component - Aurora PostgreSQL Serverless for Keycloak.

Creates an Aurora Serverless (v1) cluster in the isolated subnets.
The cluster scales between fixed capacity bounds and pauses when idle.

Generated credentials are stored in Secrets Manager as JSON with the keys
``engine``, ``host``, ``port``, ``dbname``, ``username`` and ``password``.
The Keycloak container reads them individually as ECS secrets.
"""

import json

import pulumi
import pulumi_aws as aws
import pulumi_random as random

POSTGRES_PORT = 5432


class DatabaseComponent(pulumi.ComponentResource):
    """Aurora PostgreSQL Serverless cluster for Keycloak.

    Features:
    - Isolated subnet placement (one subnet per AZ)
    - Fixed capacity bounds with auto-pause
    - Generated master password, never set by hand
    - Secrets Manager secret with full connection details
    - Deletion protection and final snapshot in prod
    """

    def __init__(
        self,
        name: str,
        environment: str,
        vpc_id: pulumi.Input[str],
        subnet_ids: pulumi.Input[list[str]],
        database_name: str = "keycloak",
        master_username: str = "postgres",
        engine_version: str = "10.12",
        min_capacity: int = 2,
        max_capacity: int = 2,
        auto_pause_minutes: int = 5,
        is_production: bool = False,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("keycloak:database:AuroraServerless", name, None, opts)

        self.tags = tags or {}
        self.environment = environment
        self.database_name = database_name

        # DB subnet group (uses isolated subnets)
        self.subnet_group = aws.rds.SubnetGroup(
            f"{name}-subnet-group",
            subnet_ids=subnet_ids,
            description=f"Isolated subnets for {name} database",
            tags={**self.tags, "Name": f"{name}-subnet-group"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Security group for the cluster; access is granted per client group
        self.security_group = aws.ec2.SecurityGroup(
            f"{name}-sg",
            vpc_id=vpc_id,
            description="Security group for Keycloak Aurora cluster",
            egress=[
                aws.ec2.SecurityGroupEgressArgs(
                    protocol="-1",
                    from_port=0,
                    to_port=0,
                    cidr_blocks=["0.0.0.0/0"],
                    description="Allow all outbound",
                ),
            ],
            tags={**self.tags, "Name": f"{name}-sg"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Master password; no punctuation so it is safe in JDBC URLs
        self.master_password = random.RandomPassword(
            f"{name}-master-password",
            length=30,
            special=False,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.cluster = aws.rds.Cluster(
            f"{name}-cluster",
            engine=aws.rds.EngineType.AURORA_POSTGRESQL,
            engine_mode="serverless",
            engine_version=engine_version,
            database_name=database_name,
            master_username=master_username,
            master_password=self.master_password.result,
            port=POSTGRES_PORT,
            db_subnet_group_name=self.subnet_group.name,
            vpc_security_group_ids=[self.security_group.id],
            storage_encrypted=True,
            scaling_configuration=aws.rds.ClusterScalingConfigurationArgs(
                auto_pause=True,
                min_capacity=min_capacity,
                max_capacity=max_capacity,
                seconds_until_auto_pause=auto_pause_minutes * 60,
            ),
            skip_final_snapshot=not is_production,
            final_snapshot_identifier=f"keycloak-{environment}-final"
            if is_production
            else None,
            deletion_protection=is_production,
            tags={**self.tags, "Name": f"{name}-cluster"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.endpoint = self.cluster.endpoint
        self.port = self.cluster.port

        # Connection details, one JSON key per container secret
        self.secret = aws.secretsmanager.Secret(
            f"{name}-credentials",
            name_prefix=f"keycloak/{environment}/db-credentials-",
            description="Keycloak Aurora credentials and connection details",
            tags={**self.tags, "Name": f"{name}-credentials"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        credentials = pulumi.Output.all(
            host=self.endpoint,
            port=self.port,
            password=self.master_password.result,
        ).apply(
            lambda args: json.dumps(
                {
                    "engine": "postgres",
                    "host": args["host"],
                    "port": args["port"],
                    "dbname": database_name,
                    "username": master_username,
                    "password": args["password"],
                }
            )
        )

        self.secret_version = aws.secretsmanager.SecretVersion(
            f"{name}-credentials-value",
            secret_id=self.secret.id,
            secret_string=pulumi.Output.secret(credentials),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.register_outputs(
            {
                "endpoint": self.endpoint,
                "port": self.port,
                "database_name": database_name,
                "secret_arn": self.secret.arn,
                "security_group_id": self.security_group.id,
            }
        )

    def allow_default_port_from(
        self, name: str, source_security_group_id: pulumi.Input[str]
    ) -> aws.ec2.SecurityGroupRule:
        """Allow PostgreSQL connections from another security group."""
        return aws.ec2.SecurityGroupRule(
            name,
            type="ingress",
            from_port=POSTGRES_PORT,
            to_port=POSTGRES_PORT,
            protocol="tcp",
            security_group_id=self.security_group.id,
            source_security_group_id=source_security_group_id,
            description="Allow Keycloak tasks to connect to PostgreSQL",
            opts=pulumi.ResourceOptions(parent=self),
        )
