"""Unit tests for the VPC component's input checks."""

import pytest

from components.subnets import SubnetType, with_subnet
from components.vpc import VPCComponent


class TestVPCComponentGuards:
    """Tests for layouts and zone counts the VPC refuses to declare."""

    def test_rejects_layout_without_public_tier(self, declare_component):
        """Test that a layout with no PUBLIC group raises ValueError."""
        layout = (
            with_subnet("application", 24, SubnetType.PRIVATE),
            with_subnet("data", 24, SubnetType.ISOLATED),
        )

        with pytest.raises(ValueError, match="at least one PUBLIC subnet group"):
            declare_component(lambda: VPCComponent("private-only", subnet_configuration=layout))

    def test_rejects_more_zones_than_region_offers(self, declare_component):
        """Test that asking for more zones than the region has raises ValueError."""
        with pytest.raises(ValueError, match="region only offers 3"):
            declare_component(lambda: VPCComponent("too-wide", availability_zones=4))

    def test_accepts_every_offered_zone(self, declare_component):
        """Test that using all offered zones declares one subnet per tier and zone."""
        mocks = declare_component(lambda: VPCComponent("wide", availability_zones=3))

        assert len(mocks.of_type("aws:ec2/subnet:Subnet")) == 9
