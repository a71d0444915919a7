"""Keycloak Service Component - ECS Fargate service behind the load balancer."""

import json

import pulumi
import pulumi_aws as aws

CONTAINER_NAME = "keycloak"
CONTAINER_PORT = 8080

# Container variable -> key in the database credentials secret
DATABASE_SECRET_KEYS = {
    "DB_ADDR": "host",
    "DB_USER": "username",
    "DB_PORT": "port",
    "DB_DATABASE": "dbname",
    "DB_PASSWORD": "password",
    "DB_VENDOR": "engine",
}

ECS_TASKS_ASSUME_ROLE_POLICY = json.dumps(
    {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Action": "sts:AssumeRole",
                "Principal": {"Service": "ecs-tasks.amazonaws.com"},
                "Effect": "Allow",
            }
        ],
    }
)


def build_container_definitions(
    image: str,
    database_secret_arn: str,
    admin_user: str,
    admin_password: str,
    log_group_name: str,
    aws_region: str,
) -> str:
    """Render the Keycloak container definition JSON.

    Database settings are injected as ECS secrets, each pointing at one JSON
    key of the credentials secret (``<arn>:<key>::``). Everything else is a
    plain environment variable.
    """
    return json.dumps(
        [
            {
                "name": CONTAINER_NAME,
                "image": image,
                "essential": True,
                "portMappings": [
                    {"containerPort": CONTAINER_PORT, "protocol": "tcp"},
                ],
                "secrets": [
                    {"name": variable, "valueFrom": f"{database_secret_arn}:{key}::"}
                    for variable, key in DATABASE_SECRET_KEYS.items()
                ],
                "environment": [
                    {"name": "JDBC_PARAMS", "value": "useSSL=false"},
                    {"name": "KEYCLOAK_USER", "value": admin_user},
                    {"name": "KEYCLOAK_PASSWORD", "value": admin_password},
                    {"name": "PROXY_ADDRESS_FORWARDING", "value": "true"},
                ],
                "logConfiguration": {
                    "logDriver": "awslogs",
                    "options": {
                        "awslogs-group": log_group_name,
                        "awslogs-region": aws_region,
                        "awslogs-stream-prefix": "Keycloak",
                    },
                },
            }
        ]
    )


class KeycloakServiceComponent(pulumi.ComponentResource):
    """Keycloak running on ECS Fargate in the private subnets.

    This component:
    - Creates the ECS cluster, log group and task roles
    - Grants the execution role read access to the database secret
    - Registers the service with the load balancer target group
    """

    def __init__(
        self,
        name: str,
        aws_region: str,
        subnet_ids: pulumi.Input[list[str]],
        security_group_id: pulumi.Input[str],
        database_secret_arn: pulumi.Input[str],
        admin_password: pulumi.Input[str],
        target_group_arn: pulumi.Input[str],
        image: str = "jboss/keycloak",
        admin_user: str = "admin",
        cpu: int = 512,
        memory: int = 2048,
        desired_count: int = 1,
        health_check_grace_minutes: int = 5,
        log_retention_days: int = 30,
        listener: pulumi.Resource | None = None,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("keycloak:compute:Service", name, None, opts)

        self.tags = tags or {}

        # ECS Cluster
        self.cluster = aws.ecs.Cluster(
            f"{name}-cluster",
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        # CloudWatch Log Group for container logs
        self.log_group = aws.cloudwatch.LogGroup(
            f"{name}-logs",
            name=f"/ecs/{name}",
            retention_in_days=log_retention_days,
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        # IAM Role for Task Execution (pulling images, writing logs, reading secrets)
        self.execution_role = aws.iam.Role(
            f"{name}-exec-role",
            assume_role_policy=ECS_TASKS_ASSUME_ROLE_POLICY,
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        aws.iam.RolePolicyAttachment(
            f"{name}-exec-policy",
            role=self.execution_role.name,
            policy_arn="arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy",
            opts=pulumi.ResourceOptions(parent=self),
        )

        aws.iam.RolePolicy(
            f"{name}-exec-secrets",
            role=self.execution_role.id,
            policy=pulumi.Output.from_input(database_secret_arn).apply(
                lambda arn: json.dumps(
                    {
                        "Version": "2012-10-17",
                        "Statement": [
                            {
                                "Effect": "Allow",
                                "Action": [
                                    "secretsmanager:GetSecretValue",
                                    "secretsmanager:DescribeSecret",
                                ],
                                "Resource": [arn],
                            }
                        ],
                    }
                )
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        # IAM Role for Task (Keycloak itself calls no AWS APIs)
        self.task_role = aws.iam.Role(
            f"{name}-task-role",
            assume_role_policy=ECS_TASKS_ASSUME_ROLE_POLICY,
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.task_definition = aws.ecs.TaskDefinition(
            f"{name}-task",
            family=f"{name}-keycloak",
            cpu=str(cpu),
            memory=str(memory),
            network_mode="awsvpc",
            requires_compatibilities=["FARGATE"],
            execution_role_arn=self.execution_role.arn,
            task_role_arn=self.task_role.arn,
            container_definitions=pulumi.Output.all(
                database_secret_arn, admin_password, self.log_group.name
            ).apply(
                lambda args: build_container_definitions(
                    image=image,
                    database_secret_arn=args[0],
                    admin_user=admin_user,
                    admin_password=args[1],
                    log_group_name=args[2],
                    aws_region=aws_region,
                )
            ),
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self, depends_on=[self.log_group]),
        )

        self.service = aws.ecs.Service(
            f"{name}-service",
            cluster=self.cluster.arn,
            task_definition=self.task_definition.arn,
            launch_type="FARGATE",
            desired_count=desired_count,
            health_check_grace_period_seconds=health_check_grace_minutes * 60,
            network_configuration=aws.ecs.ServiceNetworkConfigurationArgs(
                subnets=subnet_ids,
                security_groups=[security_group_id],
                assign_public_ip=False,
            ),
            load_balancers=[
                aws.ecs.ServiceLoadBalancerArgs(
                    target_group_arn=target_group_arn,
                    container_name=CONTAINER_NAME,
                    container_port=CONTAINER_PORT,
                ),
            ],
            tags=self.tags,
            # Target group must be attached to a listener before registration
            opts=pulumi.ResourceOptions(
                parent=self, depends_on=[listener] if listener else None
            ),
        )

        self.register_outputs(
            {
                "cluster_name": self.cluster.name,
                "cluster_arn": self.cluster.arn,
                "service_name": self.service.name,
                "task_definition_arn": self.task_definition.arn,
                "log_group_name": self.log_group.name,
            }
        )
