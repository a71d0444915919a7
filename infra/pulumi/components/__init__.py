"""Components package for the Keycloak Pulumi infrastructure.

- VPCComponent: Segmented network (public/private/isolated)
- DatabaseComponent: Aurora PostgreSQL Serverless + credentials secret
- LoadBalancerComponent: Internet-facing ALB with TLS termination
- KeycloakServiceComponent: ECS Fargate service running Keycloak
- KeycloakStack: Wires all of the above together
"""

from components.config import StackSettings, load_settings
from components.database import DatabaseComponent
from components.load_balancer import LoadBalancerComponent
from components.service import KeycloakServiceComponent
from components.stack import KeycloakStack
from components.subnets import SubnetConfiguration, SubnetType, with_subnet
from components.vpc import VPCComponent

__all__ = [
    "DatabaseComponent",
    "KeycloakServiceComponent",
    "KeycloakStack",
    "LoadBalancerComponent",
    "StackSettings",
    "SubnetConfiguration",
    "SubnetType",
    "VPCComponent",
    "load_settings",
    "with_subnet",
]
