"""Keycloak Stack - full deployment topology for the identity server.

Declares, in order:
- VPC with ingress/application/data subnet tiers
- Data-access security group shared by the Keycloak tasks
- Aurora PostgreSQL Serverless cluster in the data tier
- Application Load Balancer in the ingress tier
- ECS Fargate service in the application tier
"""

import pulumi
import pulumi_aws as aws

from components.config import StackSettings
from components.database import DatabaseComponent
from components.load_balancer import LoadBalancerComponent
from components.service import CONTAINER_PORT, KeycloakServiceComponent
from components.subnets import DEFAULT_SUBNETS
from components.vpc import VPCComponent


class KeycloakStack(pulumi.ComponentResource):
    """Keycloak on ECS Fargate with Aurora Serverless and an HTTPS ALB."""

    def __init__(
        self,
        name: str,
        settings: StackSettings,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("keycloak:stack:Keycloak", name, None, opts)

        tags = settings.tags

        # =============================================================================
        # VPC - Network Foundation
        # =============================================================================
        self.vpc = VPCComponent(
            f"{name}-vpc",
            cidr_block=settings.vpc_cidr,
            availability_zones=settings.az_count,
            subnet_configuration=DEFAULT_SUBNETS,
            tags=tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        # =============================================================================
        # Data access - group joined by everything allowed to reach the database
        # =============================================================================
        self.data_access_security_group = aws.ec2.SecurityGroup(
            f"{name}-data-access-sg",
            vpc_id=self.vpc.vpc.id,
            description="Keycloak tasks with access to the Aurora cluster",
            egress=[
                aws.ec2.SecurityGroupEgressArgs(
                    protocol="-1",
                    from_port=0,
                    to_port=0,
                    cidr_blocks=["0.0.0.0/0"],
                    description="Allow all outbound",
                ),
            ],
            tags={**tags, "Name": f"{name}-data-access-sg"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # =============================================================================
        # Database - Aurora PostgreSQL Serverless
        # =============================================================================
        self.database = DatabaseComponent(
            f"{name}-database",
            environment=settings.environment,
            is_production=settings.is_production,
            vpc_id=self.vpc.vpc.id,
            subnet_ids=self.vpc.isolated_subnet_ids,
            database_name=settings.db_name,
            master_username=settings.db_username,
            engine_version=settings.db_engine_version,
            min_capacity=settings.db_min_capacity,
            max_capacity=settings.db_max_capacity,
            auto_pause_minutes=settings.db_auto_pause_minutes,
            tags=tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.database.allow_default_port_from(
            f"{name}-data-access-to-db", self.data_access_security_group.id
        )

        # =============================================================================
        # Load Balancer - HTTPS entry point
        # =============================================================================
        self.load_balancer = LoadBalancerComponent(
            f"{name}-lb",
            vpc_id=self.vpc.vpc.id,
            subnet_ids=self.vpc.public_subnet_ids,
            certificate_arn=settings.ssl_cert_arn,
            target_port=CONTAINER_PORT,
            ssl_policy=settings.ssl_policy,
            tags=tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        aws.ec2.SecurityGroupRule(
            f"{name}-lb-to-keycloak",
            type="ingress",
            from_port=CONTAINER_PORT,
            to_port=CONTAINER_PORT,
            protocol="tcp",
            security_group_id=self.data_access_security_group.id,
            source_security_group_id=self.load_balancer.security_group.id,
            description="Allow load balancer to reach Keycloak",
            opts=pulumi.ResourceOptions(parent=self),
        )

        # =============================================================================
        # Keycloak - ECS Fargate service
        # =============================================================================
        self.service = KeycloakServiceComponent(
            f"{name}-keycloak",
            aws_region=settings.aws_region,
            subnet_ids=self.vpc.private_subnet_ids,
            security_group_id=self.data_access_security_group.id,
            database_secret_arn=self.database.secret.arn,
            admin_password=settings.admin_password,
            target_group_arn=self.load_balancer.target_group.arn,
            image=settings.keycloak_image,
            admin_user=settings.keycloak_admin_user,
            cpu=settings.task_cpu,
            memory=settings.task_memory,
            desired_count=settings.desired_count,
            health_check_grace_minutes=settings.health_check_grace_minutes,
            log_retention_days=settings.log_retention_days,
            listener=self.load_balancer.https_listener,
            tags=tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        pulumi.log.info(f"Keycloak stack '{name}' declared", self)

        self.register_outputs(
            {
                "vpc_id": self.vpc.vpc.id,
                "load_balancer_dns_name": self.load_balancer.dns_name,
                "database_endpoint": self.database.endpoint,
                "database_secret_arn": self.database.secret.arn,
                "ecs_cluster_name": self.service.cluster.name,
                "ecs_service_name": self.service.service.name,
            }
        )
