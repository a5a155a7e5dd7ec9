"""
Tests for reskin requests.
"""

import pytest

from cargoman import CargoError, cargo
from cargoman.models import AssetStatus, OrderStatus, Reservation, ReservationStatus, ReskinStatus


pytestmark = pytest.mark.django_db


@pytest.fixture
def fabricating(backdrop, stage_deck, make_order, customer, confirm, staff):
    """Confirmed order with a backdrop to rebrand, waiting on fabrication."""
    order = make_order([(stage_deck, 2)])
    cargo.add_item(order, backdrop, 1, customer, requires_reskin=True, reskin_target_brand='Acme Cola')
    order = confirm(order)
    return cargo.transition_status(order, OrderStatus.AWAITING_FABRICATION, staff)


class TestCompleteReskin:

    def test_swaps_the_order_to_the_successor(self, fabricating, backdrop, staff):
        reskin = fabricating.reskin_requests.get()

        reskin = cargo.complete_reskin(reskin, staff, new_name='Acme Cola backdrop', completion_notes='Printed')

        successor = reskin.new_asset
        assert reskin.status == ReskinStatus.COMPLETE
        assert successor.name == 'Acme Cola backdrop'
        assert successor.metadata['transformed_from'] == backdrop.pk
        assert successor.metadata['target_brand'] == 'Acme Cola'

        backdrop.refresh_from_db()
        assert backdrop.status == AssetStatus.TRANSFORMED
        assert backdrop.transformed_to == successor
        assert cargo.snapshot(backdrop).total == 0

        item = fabricating.items.get(asset=successor)
        assert item.quantity == 1
        held = Reservation.objects.for_order(fabricating).filter(asset=successor).get()
        assert held.status == ReservationStatus.ACTIVE
        assert cargo.snapshot(successor).available == 0
        released = Reservation.objects.for_order(fabricating).get(asset=backdrop)
        assert released.status == ReservationStatus.RELEASED

    def test_last_reskin_moves_order_to_preparation(self, fabricating, staff):
        cargo.complete_reskin(fabricating.reskin_requests.get(), staff)

        fabricating.refresh_from_db()
        assert fabricating.status == OrderStatus.IN_PREPARATION

    def test_from_confirmed_order_stays_put(self, backdrop, make_order, customer, confirm, staff):
        order = make_order()
        cargo.add_item(order, backdrop, 1, customer, requires_reskin=True)
        order = confirm(order)

        cargo.complete_reskin(order.reskin_requests.get(), staff)

        order.refresh_from_db()
        assert order.status == OrderStatus.CONFIRMED
        order = cargo.transition_status(order, OrderStatus.IN_PREPARATION, staff)
        assert order.status == OrderStatus.IN_PREPARATION

    def test_original_booked_elsewhere(self, make_asset, make_order, customer, confirm, staff):
        panels = make_asset('Wall panel', quantity=6)
        order = make_order()
        cargo.add_item(order, panels, 2, customer, requires_reskin=True)
        order = confirm(order)
        other = confirm(make_order([(panels, 3)]))

        with pytest.raises(CargoError) as exc:
            cargo.complete_reskin(order.reskin_requests.get(), staff)

        assert exc.value.code == 'ASSET_IN_USE'
        assert cargo.snapshot(panels).booked == 5
        assert other.status == OrderStatus.CONFIRMED

    def test_completed_twice(self, fabricating, staff):
        reskin = cargo.complete_reskin(fabricating.reskin_requests.get(), staff)

        with pytest.raises(CargoError) as exc:
            cargo.complete_reskin(reskin, staff)

        assert exc.value.code == 'INVALID_TRANSITION'

    def test_requires_capability(self, fabricating, customer):
        with pytest.raises(CargoError) as exc:
            cargo.complete_reskin(fabricating.reskin_requests.get(), customer)

        assert exc.value.code == 'PERMISSION_DENIED'


class TestCancelReskin:

    def test_cancel_ships_the_original(self, fabricating, backdrop, staff):
        reskin = cargo.cancel_reskin(fabricating.reskin_requests.get(), staff, 'Artwork not delivered')

        assert reskin.status == ReskinStatus.CANCELLED
        fabricating.refresh_from_db()
        assert fabricating.status == OrderStatus.IN_PREPARATION
        assert fabricating.items.filter(asset=backdrop).exists()
        backdrop.refresh_from_db()
        assert backdrop.status == AssetStatus.ACTIVE

    def test_cancel_requires_reason(self, fabricating, staff):
        with pytest.raises(CargoError) as exc:
            cargo.cancel_reskin(fabricating.reskin_requests.get(), staff, ' ')

        assert exc.value.code == 'REASON_REQUIRED'
