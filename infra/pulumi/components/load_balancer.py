"""Load Balancer Component - Public HTTPS entry point for Keycloak.

Creates an internet-facing Application Load Balancer:
- Port 80: permanent redirect to HTTPS on 443
- Port 443: TLS termination with the supplied ACM certificate,
  forwarding to the Keycloak target group on port 8080
"""

import pulumi
import pulumi_aws as aws

HTTP_PORT = 80
HTTPS_PORT = 443


def http_redirect_action() -> aws.lb.ListenerDefaultActionArgs:
    """Permanent redirect from plain HTTP to HTTPS on 443."""
    return aws.lb.ListenerDefaultActionArgs(
        type="redirect",
        redirect=aws.lb.ListenerDefaultActionRedirectArgs(
            port=str(HTTPS_PORT),
            protocol="HTTPS",
            status_code="HTTP_301",
        ),
    )


def https_forward_action(
    target_group_arn: pulumi.Input[str],
) -> aws.lb.ListenerDefaultActionArgs:
    return aws.lb.ListenerDefaultActionArgs(
        type="forward",
        target_group_arn=target_group_arn,
    )


class LoadBalancerComponent(pulumi.ComponentResource):
    """Internet-facing ALB with HTTP->HTTPS redirect and TLS termination."""

    def __init__(
        self,
        name: str,
        vpc_id: pulumi.Input[str],
        subnet_ids: pulumi.Input[list[str]],
        certificate_arn: pulumi.Input[str],
        target_port: int = 8080,
        ssl_policy: str = "ELBSecurityPolicy-2016-08",
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("keycloak:network:LoadBalancer", name, None, opts)

        self.tags = tags or {}

        # Security Group - HTTP/HTTPS from anywhere
        self.security_group = aws.ec2.SecurityGroup(
            f"{name}-sg",
            vpc_id=vpc_id,
            description="Security group for Keycloak load balancer",
            ingress=[
                aws.ec2.SecurityGroupIngressArgs(
                    protocol="tcp",
                    from_port=HTTP_PORT,
                    to_port=HTTP_PORT,
                    cidr_blocks=["0.0.0.0/0"],
                    description="HTTP from anywhere (redirected)",
                ),
                aws.ec2.SecurityGroupIngressArgs(
                    protocol="tcp",
                    from_port=HTTPS_PORT,
                    to_port=HTTPS_PORT,
                    cidr_blocks=["0.0.0.0/0"],
                    description="HTTPS from anywhere",
                ),
            ],
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

        self.load_balancer = aws.lb.LoadBalancer(
            f"{name}-alb",
            internal=False,
            load_balancer_type="application",
            security_groups=[self.security_group.id],
            subnets=subnet_ids,
            tags={**self.tags, "Name": f"{name}-alb"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Fargate tasks register by IP (awsvpc networking)
        self.target_group = aws.lb.TargetGroup(
            f"{name}-tg",
            port=target_port,
            protocol="HTTP",
            target_type="ip",
            vpc_id=vpc_id,
            health_check=aws.lb.TargetGroupHealthCheckArgs(
                path="/",
                protocol="HTTP",
                matcher="200",
            ),
            tags={**self.tags, "Name": f"{name}-tg"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.http_listener = aws.lb.Listener(
            f"{name}-http",
            load_balancer_arn=self.load_balancer.arn,
            port=HTTP_PORT,
            protocol="HTTP",
            default_actions=[http_redirect_action()],
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.https_listener = aws.lb.Listener(
            f"{name}-https",
            load_balancer_arn=self.load_balancer.arn,
            port=HTTPS_PORT,
            protocol="HTTPS",
            ssl_policy=ssl_policy,
            certificate_arn=certificate_arn,
            default_actions=[https_forward_action(self.target_group.arn)],
            tags=self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.dns_name = self.load_balancer.dns_name

        self.register_outputs(
            {
                "dns_name": self.dns_name,
                "load_balancer_arn": self.load_balancer.arn,
                "target_group_arn": self.target_group.arn,
                "security_group_id": self.security_group.id,
            }
        )
