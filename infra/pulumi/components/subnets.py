"""Subnet tier definitions for the Keycloak VPC.

Each tier is declared once and expanded into one subnet per availability zone:
- ingress (public): load balancer and NAT gateway
- application (private): Keycloak tasks, egress through NAT
- data (isolated): Aurora cluster, no route out of the VPC
"""

import ipaddress
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SubnetType(str, Enum):
    """Reachability tier of a subnet group."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    ISOLATED = "ISOLATED"


class SubnetConfiguration(BaseModel):
    """One named subnet group, repeated in every availability zone."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    cidr_mask: int = Field(..., ge=16, le=28)  # AWS subnet size limits
    subnet_type: SubnetType


def with_subnet(
    name: str, cidr_mask: int, subnet_type: SubnetType
) -> SubnetConfiguration:
    """Build a subnet group configuration."""
    return SubnetConfiguration(name=name, cidr_mask=cidr_mask, subnet_type=subnet_type)


DEFAULT_SUBNETS: tuple[SubnetConfiguration, ...] = (
    with_subnet("ingress", 24, SubnetType.PUBLIC),
    with_subnet("application", 24, SubnetType.PRIVATE),
    with_subnet("data", 24, SubnetType.ISOLATED),
)


def allocate_subnet_cidrs(
    vpc_cidr: str,
    configurations: list[SubnetConfiguration] | tuple[SubnetConfiguration, ...],
    az_count: int,
) -> dict[str, list[str]]:
    """Carve subnet CIDRs out of the VPC block.

    Groups are allocated in declaration order and, within a group, one block
    per availability zone. Blocks are packed from the start of the VPC range,
    aligned to their own size.

    Args:
        vpc_cidr: The VPC address block, e.g. ``10.0.0.0/16``.
        configurations: Subnet groups in allocation order.
        az_count: Number of availability zones to cover.

    Returns:
        Mapping of group name to the list of CIDRs, one per zone.

    Raises:
        ValueError: If a group is larger than the VPC, names repeat,
            or the VPC block is exhausted.
    """
    network = ipaddress.ip_network(vpc_cidr)
    names = [c.name for c in configurations]
    if len(set(names)) != len(names):
        raise ValueError(f"Subnet group names must be unique, got {names}")

    allocated: dict[str, list[str]] = {}
    cursor = int(network.network_address)
    end = int(network.broadcast_address) + 1

    for config in configurations:
        if config.cidr_mask < network.prefixlen:
            raise ValueError(
                f"Subnet group '{config.name}' (/{config.cidr_mask}) is larger "
                f"than the VPC block {vpc_cidr}"
            )
        size = 2 ** (network.max_prefixlen - config.cidr_mask)
        blocks = []
        for _ in range(az_count):
            # Align to block size
            if cursor % size:
                cursor += size - cursor % size
            if cursor + size > end:
                raise ValueError(
                    f"VPC block {vpc_cidr} has no room left for subnet group "
                    f"'{config.name}' across {az_count} availability zones"
                )
            blocks.append(f"{ipaddress.ip_address(cursor)}/{config.cidr_mask}")
            cursor += size
        allocated[config.name] = blocks

    return allocated
