"""
Tests for capabilities, actors and the authorizer.
"""

import pytest

from cargoman import Actor, CargoError, Capability
from cargoman.adapters import CapabilityAuthorizer, get_authorizer, require
from cargoman.capabilities import TEMPLATES, expand
from cargoman.protocols.authorization import Authorizer


class DenyAllAuthorizer:
    def is_allowed(self, actor, capability):
        return False


class TestExpand:

    def test_wildcard_covers_resource(self):
        granted = expand(['scanning:*'])

        assert granted == {
            Capability.SCAN_OUT,
            Capability.SCAN_IN,
            Capability.CAPTURE_TRUCK_PHOTOS,
            Capability.VIEW_SCAN_PROGRESS,
        }

    def test_unknown_permissions_grant_nothing(self):
        assert expand(['orders:delete', 'nothing:*', 'garbage']) == frozenset()

    def test_admin_template_grants_everything(self):
        assert expand(TEMPLATES['PLATFORM_ADMIN']) == set(Capability)

    def test_client_cannot_price(self):
        granted = expand(TEMPLATES['CLIENT_USER'])

        assert Capability.QUOTES_APPROVE in granted
        assert Capability.PRICING_REVIEW not in granted
        assert Capability.ORDERS_CANCEL not in granted

    def test_staff_cannot_touch_margin(self):
        granted = expand(TEMPLATES['LOGISTICS_STAFF'])

        assert Capability.PRICING_ADJUST in granted
        assert Capability.PRICING_ADJUST_MARGIN not in granted
        assert Capability.PRICING_APPROVE not in granted


class TestAuthorizer:

    def test_default_authorizer(self):
        authorizer = get_authorizer()

        assert isinstance(authorizer, CapabilityAuthorizer)
        assert isinstance(authorizer, Authorizer)

    def test_inactive_actor_is_denied(self):
        actor = Actor.from_template('gone', 'PLATFORM_ADMIN', is_active=False)

        assert not CapabilityAuthorizer().is_allowed(actor, Capability.ORDERS_READ)

    def test_super_admin_bypasses_permissions(self):
        actor = Actor(id='root', is_super_admin=True)

        assert CapabilityAuthorizer().is_allowed(actor, 'pricing:pmg_approve')

    def test_require_raises_permission_denied(self, customer):
        with pytest.raises(CargoError) as exc:
            require(customer, Capability.SCAN_OUT)

        assert exc.value.code == 'PERMISSION_DENIED'
        assert exc.value.data == {'actor': 'client-1', 'capability': 'scanning:scan_out'}

    def test_authorizer_from_settings(self, settings, admin):
        settings.CARGOMAN = {**settings.CARGOMAN, 'AUTHORIZER': 'cargoman.tests.test_capabilities.DenyAllAuthorizer'}

        with pytest.raises(CargoError) as exc:
            require(admin, Capability.ORDERS_READ)

        assert exc.value.code == 'PERMISSION_DENIED'

    def test_actor_str_is_id(self, staff):
        assert str(staff) == 'staff-1'
