"""Keycloak Infrastructure - Main Entry Point.

Deploys the Keycloak identity server on AWS using Pulumi.

Architecture:
- Network: VPC with public (ingress), private (application) and isolated (data) tiers
- Database: Aurora PostgreSQL Serverless with generated credentials in Secrets Manager
- Compute: ECS Fargate service running the Keycloak container
- Ingress: Application Load Balancer, HTTP redirected to HTTPS

Required config:
    pulumi config set --secret keycloakAdminPassword <password>
    pulumi config set sslCertArn <acm-certificate-arn>
    pulumi config set aws:region <region>
"""

import pulumi

from components.config import load_settings
from components.stack import KeycloakStack

# Get configuration
config = pulumi.Config()
aws_config = pulumi.Config("aws")
environment = pulumi.get_stack()  # dev, staging, or prod

settings = load_settings(config, aws_config, environment)

keycloak = KeycloakStack(f"{environment}-keycloak", settings=settings)

# =============================================================================
# Stack Outputs
# =============================================================================
pulumi.export("vpc_id", keycloak.vpc.vpc.id)
pulumi.export("load_balancer_dns_name", keycloak.load_balancer.dns_name)
pulumi.export("database_endpoint", keycloak.database.endpoint)
pulumi.export("database_secret_arn", keycloak.database.secret.arn)
pulumi.export("ecs_cluster_name", keycloak.service.cluster.name)
pulumi.export("ecs_service_name", keycloak.service.service.name)
