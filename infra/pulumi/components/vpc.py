"""VPC Component - Network foundation for Keycloak.

Creates a VPC with three subnet tiers across multiple availability zones.
- Public (ingress): Application Load Balancer and the NAT gateway
- Private (application): Keycloak Fargate tasks, outbound through NAT
- Isolated (data): Aurora cluster, no route out of the VPC
"""

import pulumi
import pulumi_aws as aws

from components.subnets import (
    DEFAULT_SUBNETS,
    SubnetConfiguration,
    SubnetType,
    allocate_subnet_cidrs,
)


class VPCComponent(pulumi.ComponentResource):
    """VPC with public/private/isolated subnets and a single NAT gateway."""

    def __init__(
        self,
        name: str,
        cidr_block: str = "10.0.0.0/16",
        availability_zones: int = 2,
        subnet_configuration: tuple[SubnetConfiguration, ...] = DEFAULT_SUBNETS,
        tags: dict | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("keycloak:network:VPC", name, None, opts)

        self.tags = tags or {}

        tiers = {config.subnet_type for config in subnet_configuration}
        if SubnetType.PUBLIC not in tiers:
            raise ValueError("VPC needs at least one PUBLIC subnet group")

        # Get available AZs in the region
        available_azs = aws.get_availability_zones(state="available")
        az_names = available_azs.names[:availability_zones]
        if len(az_names) < availability_zones:
            raise ValueError(
                f"Requested {availability_zones} availability zones, "
                f"region only offers {len(az_names)}"
            )
        pulumi.log.debug(f"{name}: using availability zones {az_names}", self)

        cidrs = allocate_subnet_cidrs(cidr_block, subnet_configuration, len(az_names))

        # Create VPC
        self.vpc = aws.ec2.Vpc(
            f"{name}-vpc",
            cidr_block=cidr_block,
            enable_dns_hostnames=True,
            enable_dns_support=True,
            tags={**self.tags, "Name": f"{name}-vpc"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Internet Gateway for public subnets
        self.igw = aws.ec2.InternetGateway(
            f"{name}-igw",
            vpc_id=self.vpc.id,
            tags={**self.tags, "Name": f"{name}-igw"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Create subnets, grouped by tier
        self.public_subnets: list[aws.ec2.Subnet] = []
        self.private_subnets: list[aws.ec2.Subnet] = []
        self.isolated_subnets: list[aws.ec2.Subnet] = []
        by_tier = {
            SubnetType.PUBLIC: self.public_subnets,
            SubnetType.PRIVATE: self.private_subnets,
            SubnetType.ISOLATED: self.isolated_subnets,
        }

        for config in subnet_configuration:
            for i, az in enumerate(az_names):
                subnet = aws.ec2.Subnet(
                    f"{name}-{config.name}-{i}",
                    vpc_id=self.vpc.id,
                    cidr_block=cidrs[config.name][i],
                    availability_zone=az,
                    map_public_ip_on_launch=config.subnet_type == SubnetType.PUBLIC,
                    tags={
                        **self.tags,
                        "Name": f"{name}-{config.name}-{az}",
                        "SubnetName": config.name,
                        "SubnetType": config.subnet_type.value,
                    },
                    opts=pulumi.ResourceOptions(parent=self),
                )
                by_tier[config.subnet_type].append(subnet)

        # Single NAT gateway in the first public subnet
        eip = aws.ec2.Eip(
            f"{name}-nat-eip",
            domain="vpc",
            tags={**self.tags, "Name": f"{name}-nat-eip-{az_names[0]}"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.nat_gateway = aws.ec2.NatGateway(
            f"{name}-nat",
            subnet_id=self.public_subnets[0].id,
            allocation_id=eip.id,
            tags={**self.tags, "Name": f"{name}-nat-{az_names[0]}"},
            opts=pulumi.ResourceOptions(parent=self, depends_on=[self.igw]),
        )

        # Route tables
        # Public route table - routes to Internet Gateway
        self.public_rt = aws.ec2.RouteTable(
            f"{name}-public-rt",
            vpc_id=self.vpc.id,
            routes=[
                aws.ec2.RouteTableRouteArgs(
                    cidr_block="0.0.0.0/0",
                    gateway_id=self.igw.id,
                ),
            ],
            tags={**self.tags, "Name": f"{name}-public-rt"},
            opts=pulumi.ResourceOptions(parent=self),
        )

        for i, subnet in enumerate(self.public_subnets):
            aws.ec2.RouteTableAssociation(
                f"{name}-public-rta-{i}",
                subnet_id=subnet.id,
                route_table_id=self.public_rt.id,
                opts=pulumi.ResourceOptions(parent=self),
            )

        # Private route tables - all share the one NAT gateway
        self.private_rts: list[aws.ec2.RouteTable] = []
        for i, subnet in enumerate(self.private_subnets):
            private_rt = aws.ec2.RouteTable(
                f"{name}-private-rt-{i}",
                vpc_id=self.vpc.id,
                routes=[
                    aws.ec2.RouteTableRouteArgs(
                        cidr_block="0.0.0.0/0",
                        nat_gateway_id=self.nat_gateway.id,
                    ),
                ],
                tags={**self.tags, "Name": f"{name}-private-rt-{i}"},
                opts=pulumi.ResourceOptions(parent=self),
            )
            self.private_rts.append(private_rt)

            aws.ec2.RouteTableAssociation(
                f"{name}-private-rta-{i}",
                subnet_id=subnet.id,
                route_table_id=private_rt.id,
                opts=pulumi.ResourceOptions(parent=self),
            )

        # Isolated route tables - local VPC traffic only
        self.isolated_rts: list[aws.ec2.RouteTable] = []
        for i, subnet in enumerate(self.isolated_subnets):
            isolated_rt = aws.ec2.RouteTable(
                f"{name}-isolated-rt-{i}",
                vpc_id=self.vpc.id,
                tags={**self.tags, "Name": f"{name}-isolated-rt-{i}"},
                opts=pulumi.ResourceOptions(parent=self),
            )
            self.isolated_rts.append(isolated_rt)

            aws.ec2.RouteTableAssociation(
                f"{name}-isolated-rta-{i}",
                subnet_id=subnet.id,
                route_table_id=isolated_rt.id,
                opts=pulumi.ResourceOptions(parent=self),
            )

        # Export subnet IDs as outputs
        self.public_subnet_ids = pulumi.Output.all(
            *[s.id for s in self.public_subnets]
        ).apply(lambda ids: list(ids))

        self.private_subnet_ids = pulumi.Output.all(
            *[s.id for s in self.private_subnets]
        ).apply(lambda ids: list(ids))

        self.isolated_subnet_ids = pulumi.Output.all(
            *[s.id for s in self.isolated_subnets]
        ).apply(lambda ids: list(ids))

        self.register_outputs(
            {
                "vpc_id": self.vpc.id,
                "public_subnet_ids": self.public_subnet_ids,
                "private_subnet_ids": self.private_subnet_ids,
                "isolated_subnet_ids": self.isolated_subnet_ids,
            }
        )
