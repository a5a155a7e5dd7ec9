"""
Pytest fixtures for Cargoman tests.
"""

from decimal import Decimal

import pytest

from cargoman import Actor, cargo
from cargoman.adapters import reset_authorizer, reset_notifier, reset_tariff_backend
from cargoman.models import OrderStatus, PricingTier, ServiceType, TrackingMethod, TransportRate


@pytest.fixture(autouse=True)
def fresh_backends():
    """Collaborator singletons are rebuilt from settings for every test."""
    reset_tariff_backend()
    reset_authorizer()
    reset_notifier()
    yield
    reset_tariff_backend()
    reset_authorizer()
    reset_notifier()


# ══════════════════════════════════════════════════════════════
# ACTORS
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def admin():
    return Actor.from_template('admin-1', 'PLATFORM_ADMIN')


@pytest.fixture
def staff():
    return Actor.from_template('staff-1', 'LOGISTICS_STAFF')


@pytest.fixture
def customer():
    return Actor.from_template('client-1', 'CLIENT_USER', company_id='acme')


# ══════════════════════════════════════════════════════════════
# TARIFF
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def tariff(db):
    """Dubai tiers (0-10 m³ and 10+ m³) and a round-trip truck rate."""
    small = PricingTier.objects.create(
        city='Dubai',
        volume_min=Decimal('0'),
        volume_max=Decimal('10'),
        base_price=Decimal('500.00'),
        warehouse_ops_rate=Decimal('20.00'),
    )
    large = PricingTier.objects.create(
        city='Dubai',
        volume_min=Decimal('10'),
        volume_max=None,
        base_price=Decimal('900.00'),
        warehouse_ops_rate=Decimal('15.00'),
    )
    rate = TransportRate.objects.create(
        city='Dubai',
        trip_type='ROUND_TRIP',
        vehicle_type='STANDARD',
        rate=Decimal('200.00'),
    )
    return {'small': small, 'large': large, 'rate': rate}


@pytest.fixture
def assembly(db):
    return ServiceType.objects.create(
        name='Booth assembly',
        category='ASSEMBLY',
        unit='hour',
        default_rate=Decimal('75.00'),
    )


# ══════════════════════════════════════════════════════════════
# ASSETS
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def make_asset(db, admin):
    def factory(name='Stage deck', quantity=10, tracking_method=TrackingMethod.BATCH,
                volume=Decimal('0.500'), **fields):
        return cargo.create_asset(
            'acme', name, admin,
            quantity=quantity,
            tracking_method=tracking_method,
            volume_per_unit=volume,
            **fields,
        )
    return factory


@pytest.fixture
def stage_deck(make_asset):
    """Batch asset: 10 units of 0.5 m³."""
    return make_asset()


@pytest.fixture
def backdrop(make_asset):
    """Individually tracked asset, a single unit of 1 m³."""
    return make_asset('Branded backdrop', quantity=1, tracking_method=TrackingMethod.INDIVIDUAL,
                      volume=Decimal('1.000'))


# ══════════════════════════════════════════════════════════════
# ORDERS
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def make_order(db, customer):
    def factory(lines=(), actor=None, **details):
        actor = actor or customer
        order = cargo.create_order('acme', actor, venue_city='Dubai', venue_country='UAE', **details)
        for asset, quantity in lines:
            cargo.add_item(order, asset, quantity, actor)
        order.refresh_from_db()
        return order
    return factory


@pytest.fixture
def quote(tariff, admin, customer):
    """Drive an order from DRAFT to QUOTED."""
    def step(order):
        order = cargo.submit_order(order, customer)
        order = cargo.transition_status(order, OrderStatus.PENDING_APPROVAL, admin)
        return cargo.transition_status(order, OrderStatus.QUOTED, admin)
    return step


@pytest.fixture
def confirm(quote, customer):
    """Drive an order from DRAFT to CONFIRMED."""
    def step(order):
        return cargo.transition_status(quote(order), OrderStatus.CONFIRMED, customer)
    return step


@pytest.fixture
def prepared(confirm, staff):
    """Drive an order from DRAFT to IN_PREPARATION."""
    def step(order):
        return cargo.transition_status(confirm(order), OrderStatus.IN_PREPARATION, staff)
    return step
