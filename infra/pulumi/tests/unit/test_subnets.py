"""Unit tests for subnet tier configuration and CIDR allocation."""

import pytest
from pydantic import ValidationError

from components.subnets import (
    DEFAULT_SUBNETS,
    SubnetConfiguration,
    SubnetType,
    allocate_subnet_cidrs,
    with_subnet,
)


class TestWithSubnet:
    """Tests for the with_subnet helper."""

    def test_builds_record_with_given_fields(self):
        """Test that with_subnet returns a record with the given fields."""
        config = with_subnet("application", 24, SubnetType.PRIVATE)

        assert config == SubnetConfiguration(
            name="application", cidr_mask=24, subnet_type=SubnetType.PRIVATE
        )

    def test_accepts_subnet_type_by_value(self):
        """Test that the subnet type may be given by its string value."""
        config = with_subnet("data", 26, "ISOLATED")
        assert config.subnet_type is SubnetType.ISOLATED

    @pytest.mark.parametrize("mask", [15, 29, 0, 32])
    def test_rejects_mask_outside_aws_limits(self, mask):
        """Test that masks outside /16../28 are rejected."""
        with pytest.raises(ValidationError):
            with_subnet("ingress", mask, SubnetType.PUBLIC)

    def test_rejects_unknown_tier(self):
        """Test that an unknown subnet type is rejected."""
        with pytest.raises(ValidationError):
            with_subnet("ingress", 24, "DMZ")

    def test_record_is_immutable(self):
        """Test that subnet records cannot be changed."""
        config = with_subnet("ingress", 24, SubnetType.PUBLIC)
        with pytest.raises(ValidationError):
            config.cidr_mask = 20

    def test_default_layout(self):
        """Test that the default layout is ingress, application and data."""
        assert [(c.name, c.cidr_mask, c.subnet_type) for c in DEFAULT_SUBNETS] == [
            ("ingress", 24, SubnetType.PUBLIC),
            ("application", 24, SubnetType.PRIVATE),
            ("data", 24, SubnetType.ISOLATED),
        ]


class TestAllocateSubnetCidrs:
    """Tests for packing subnet groups into the VPC block."""

    def test_default_layout_two_zones(self):
        """Test that the default layout packs tiers then zones."""
        cidrs = allocate_subnet_cidrs("10.0.0.0/16", DEFAULT_SUBNETS, 2)

        assert cidrs == {
            "ingress": ["10.0.0.0/24", "10.0.1.0/24"],
            "application": ["10.0.2.0/24", "10.0.3.0/24"],
            "data": ["10.0.4.0/24", "10.0.5.0/24"],
        }

    def test_allocates_one_block_per_zone(self):
        """Test that each tier gets one block per zone."""
        cidrs = allocate_subnet_cidrs("10.0.0.0/16", DEFAULT_SUBNETS, 3)

        assert all(len(blocks) == 3 for blocks in cidrs.values())
        assert cidrs["data"] == ["10.0.6.0/24", "10.0.7.0/24", "10.0.8.0/24"]

    def test_aligns_larger_blocks(self):
        """Test that larger blocks are aligned to their own size."""
        configs = [
            with_subnet("small", 28, SubnetType.PUBLIC),
            with_subnet("big", 24, SubnetType.PRIVATE),
        ]

        cidrs = allocate_subnet_cidrs("10.1.0.0/16", configs, 1)

        assert cidrs == {"small": ["10.1.0.0/28"], "big": ["10.1.1.0/24"]}

    def test_raises_when_block_exhausted(self):
        """Test that running out of addresses raises ValueError."""
        with pytest.raises(ValueError, match="no room left"):
            allocate_subnet_cidrs("10.0.0.0/23", DEFAULT_SUBNETS, 2)

    def test_raises_when_group_larger_than_vpc(self):
        """Test that a group bigger than the VPC raises ValueError."""
        configs = [with_subnet("huge", 16, SubnetType.PUBLIC)]
        with pytest.raises(ValueError, match="larger than the VPC block"):
            allocate_subnet_cidrs("10.0.0.0/20", configs, 1)

    def test_raises_on_duplicate_names(self):
        """Test that duplicate group names raise ValueError."""
        configs = [
            with_subnet("ingress", 24, SubnetType.PUBLIC),
            with_subnet("ingress", 24, SubnetType.PRIVATE),
        ]
        with pytest.raises(ValueError, match="unique"):
            allocate_subnet_cidrs("10.0.0.0/16", configs, 2)
