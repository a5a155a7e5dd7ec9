"""
Tests for the order lifecycle.
"""

import logging
from decimal import Decimal

import pytest

from cargoman import Actor, CargoError, cargo
from cargoman.models import (
    FinancialStatus,
    Order,
    OrderStatus,
    PricingTier,
    Reservation,
    ReservationStatus,
    ReskinStatus,
    ScanDirection,
)


pytestmark = pytest.mark.django_db


class ExplodingNotifier:
    def notify(self, event):
        raise RuntimeError("mail server down")


class RecordingNotifier:
    events = []

    def notify(self, event):
        self.events.append(event)


LOCKED_STATUSES = [status for status in OrderStatus if status not in Order.EDITABLE_STATUSES]


class TestCreateAndEdit:
    """Tests for order creation and item edits."""

    def test_create_order(self, customer):
        order = cargo.create_order('acme', customer, venue_city='Dubai', venue_name='Expo Hall 4')

        assert order.status == OrderStatus.DRAFT
        assert order.reference.startswith('ORD-')
        assert order.requester_id == 'client-1'
        assert order.status_history.count() == 1

    def test_add_item_copies_dimensions(self, stage_deck, make_order):
        order = make_order([(stage_deck, 4)])

        item = order.items.get()
        assert item.quantity == 4
        assert item.volume_per_unit == stage_deck.volume_per_unit
        assert order.total_volume() == 4 * stage_deck.volume_per_unit

    def test_adding_same_asset_grows_the_line(self, stage_deck, make_order):
        order = make_order([(stage_deck, 2), (stage_deck, 3)])

        assert order.items.get().quantity == 5

    def test_item_edits_bump_revision(self, stage_deck, make_order, customer):
        order = make_order([(stage_deck, 2)])
        before = order.revision

        cargo.update_item(order.items.get(), 6, customer)

        order.refresh_from_db()
        assert order.revision == before + 1

    @pytest.mark.parametrize('status', LOCKED_STATUSES)
    def test_items_locked_from_confirmation(self, status, stage_deck, make_order, customer):
        order = make_order([(stage_deck, 2)])
        Order.objects.filter(pk=order.pk).update(status=status)

        with pytest.raises(CargoError) as exc:
            cargo.add_item(order, stage_deck, 1, customer)

        assert exc.value.code == 'ITEMS_LOCKED'

    def test_update_and_remove_locked_after_confirmation(self, stage_deck, make_order, confirm, customer):
        order = confirm(make_order([(stage_deck, 2)]))
        item = order.items.get()

        with pytest.raises(CargoError) as exc:
            cargo.update_item(item, 1, customer)
        assert exc.value.code == 'ITEMS_LOCKED'

        with pytest.raises(CargoError) as exc:
            cargo.remove_item(item, customer)
        assert exc.value.code == 'ITEMS_LOCKED'

    def test_transformed_asset_cannot_be_added(self, stage_deck, make_order, admin):
        cargo.transform_asset(stage_deck, admin, name='Stage deck (blue)')
        order = make_order()

        with pytest.raises(CargoError) as exc:
            cargo.add_item(order, stage_deck, 1, admin)

        assert exc.value.code == 'ASSET_TRANSFORMED'


class TestCommercialFlow:
    """Tests for DRAFT through CONFIRMED."""

    def test_submit_prices_the_order(self, tariff, stage_deck, make_order, customer):
        order = cargo.submit_order(make_order([(stage_deck, 4)]), customer)

        assert order.status == OrderStatus.PRICING_REVIEW
        assert order.pricing_result.ok
        assert not order.is_pricing_stale

    def test_submit_empty_order(self, make_order, customer):
        with pytest.raises(CargoError) as exc:
            cargo.submit_order(make_order(), customer)

        assert exc.value.code == 'EMPTY_ORDER'

    def test_missing_tariff_blocks_review(self, stage_deck, make_order, customer, admin):
        order = cargo.submit_order(make_order([(stage_deck, 4)]), customer)
        assert order.pricing['error']['code'] == 'NO_PRICING_TIER_MATCH'

        with pytest.raises(CargoError) as exc:
            cargo.transition_status(order, OrderStatus.PENDING_APPROVAL, admin)

        assert exc.value.code == 'PRICING_INCOMPLETE'
        assert exc.value.data['error_code'] == 'NO_PRICING_TIER_MATCH'
        order.refresh_from_db()
        assert order.status == OrderStatus.PRICING_REVIEW

    def test_adding_the_missing_tier_unblocks_review(self, stage_deck, make_order, customer, admin):
        order = cargo.submit_order(make_order([(stage_deck, 4)]), customer)
        PricingTier.objects.create(
            city='Dubai', volume_min=Decimal('0'), base_price=Decimal('500.00'),
            warehouse_ops_rate=Decimal('20.00'),
        )

        order = cargo.transition_status(order, OrderStatus.PENDING_APPROVAL, admin)

        assert order.status == OrderStatus.PENDING_APPROVAL
        assert order.pricing_result.ok
        assert order.pricing_result.base_ops_total > 0

    def test_quote_and_confirm(self, stage_deck, make_order, quote, customer):
        order = quote(make_order([(stage_deck, 6)]))
        assert order.status == OrderStatus.QUOTED
        assert order.financial_status == FinancialStatus.QUOTE_SENT

        order = cargo.transition_status(order, OrderStatus.CONFIRMED, customer)

        assert order.status == OrderStatus.CONFIRMED
        assert order.financial_status == FinancialStatus.QUOTE_ACCEPTED
        assert Reservation.objects.active().for_order(order).get().quantity == 6
        assert cargo.snapshot(stage_deck).available == 4

    def test_confirmation_is_all_or_nothing(self, stage_deck, backdrop, make_order, quote, customer):
        first = quote(make_order([(stage_deck, 6)]))
        cargo.transition_status(first, OrderStatus.CONFIRMED, customer)
        second = quote(make_order([(backdrop, 1), (stage_deck, 5)]))

        with pytest.raises(CargoError) as exc:
            cargo.transition_status(second, OrderStatus.CONFIRMED, customer)

        assert exc.value.code == 'INSUFFICIENT_AVAILABILITY'
        assert exc.value.available == 4
        second.refresh_from_db()
        assert second.status == OrderStatus.QUOTED
        assert not Reservation.objects.for_order(second).exists()
        assert cargo.snapshot(backdrop).available == 1
        assert cargo.snapshot(stage_deck).available == 4

    def test_stale_approval_recomputes_then_rejects(self, tariff, stage_deck, make_order, customer, admin):
        order = cargo.submit_order(make_order([(stage_deck, 2)]), customer)
        order = cargo.transition_status(order, OrderStatus.PENDING_APPROVAL, admin)
        cargo.add_item(order, stage_deck, 2, customer)

        with pytest.raises(CargoError) as exc:
            cargo.transition_status(order, OrderStatus.QUOTED, admin)

        assert exc.value.code == 'STALE_PRICING'
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING_APPROVAL
        assert not order.is_pricing_stale
        assert order.pricing_result.volume == 4 * stage_deck.volume_per_unit

        order = cargo.transition_status(order, OrderStatus.QUOTED, admin)
        assert order.status == OrderStatus.QUOTED

    def test_return_to_review_needs_note(self, tariff, stage_deck, make_order, customer, admin):
        order = cargo.submit_order(make_order([(stage_deck, 2)]), customer)
        order = cargo.transition_status(order, OrderStatus.PENDING_APPROVAL, admin)

        with pytest.raises(CargoError) as exc:
            cargo.transition_status(order, OrderStatus.PRICING_REVIEW, admin)
        assert exc.value.code == 'NOTE_REQUIRED'

        order = cargo.transition_status(order, OrderStatus.PRICING_REVIEW, admin, note='Check transport')
        assert order.status == OrderStatus.PRICING_REVIEW

    def test_decline_quote(self, stage_deck, make_order, quote, customer):
        order = quote(make_order([(stage_deck, 2)]))

        order = cargo.decline_quote(order, customer, 'Over budget')

        assert order.status == OrderStatus.DECLINED
        assert order.financial_status == FinancialStatus.CANCELLED

    def test_permission_denied(self, tariff, stage_deck, make_order, customer):
        order = cargo.submit_order(make_order([(stage_deck, 2)]), customer)

        with pytest.raises(CargoError) as exc:
            cargo.transition_status(order, OrderStatus.PENDING_APPROVAL, customer)

        assert exc.value.code == 'PERMISSION_DENIED'

    def test_invalid_transition(self, stage_deck, make_order, admin):
        order = make_order([(stage_deck, 2)])

        with pytest.raises(CargoError) as exc:
            cargo.transition_status(order, OrderStatus.CONFIRMED, admin)

        assert exc.value.code == 'INVALID_TRANSITION'
        assert exc.value.data['allowed'] == [OrderStatus.SUBMITTED, OrderStatus.CANCELLED]

    def test_terminal_status_has_no_way_out(self, stage_deck, make_order, quote, customer, admin):
        order = cargo.decline_quote(quote(make_order([(stage_deck, 2)])), customer, 'No')

        assert cargo.allowed_transitions(order) == []
        with pytest.raises(CargoError) as exc:
            cargo.transition_status(order, OrderStatus.QUOTED, admin)
        assert exc.value.code == 'INVALID_TRANSITION'

    def test_allowed_transitions_for_actor(self, stage_deck, make_order, quote, customer):
        order = quote(make_order([(stage_deck, 2)]))

        assert set(cargo.allowed_transitions(order, customer)) == {
            OrderStatus.CONFIRMED,
            OrderStatus.DECLINED,
        }

    def test_listing_transitions_needs_read_access(self, stage_deck, make_order):
        order = make_order([(stage_deck, 2)])

        with pytest.raises(CargoError) as exc:
            cargo.allowed_transitions(order, Actor(id='outsider'))

        assert exc.value.code == 'PERMISSION_DENIED'

    def test_history_records_every_step(self, stage_deck, make_order, confirm):
        order = confirm(make_order([(stage_deck, 2)]))

        steps = list(order.status_history.order_by('pk').values_list('from_status', 'to_status'))
        assert steps == [
            ('', OrderStatus.DRAFT),
            (OrderStatus.DRAFT, OrderStatus.SUBMITTED),
            (OrderStatus.SUBMITTED, OrderStatus.PRICING_REVIEW),
            (OrderStatus.PRICING_REVIEW, OrderStatus.PENDING_APPROVAL),
            (OrderStatus.PENDING_APPROVAL, OrderStatus.QUOTED),
            (OrderStatus.QUOTED, OrderStatus.CONFIRMED),
        ]


class TestCancellation:
    """Tests for cancel_order()."""

    def test_cancel_releases_reservations(self, stage_deck, backdrop, make_order, confirm, admin):
        order = confirm(make_order([(stage_deck, 6), (backdrop, 1)]))
        assert cargo.snapshot(stage_deck).available == 4

        order = cargo.cancel_order(order, admin, 'Event postponed')

        assert order.status == OrderStatus.CANCELLED
        assert order.financial_status == FinancialStatus.CANCELLED
        assert cargo.snapshot(stage_deck).available == 10
        assert cargo.snapshot(backdrop).available == 1
        statuses = set(Reservation.objects.for_order(order).values_list('status', flat=True))
        assert statuses == {ReservationStatus.RELEASED}

    def test_cancel_requires_note(self, stage_deck, make_order, admin):
        order = make_order([(stage_deck, 2)])

        with pytest.raises(CargoError) as exc:
            cargo.cancel_order(order, admin, '')

        assert exc.value.code == 'NOTE_REQUIRED'

    def test_cancel_requires_capability(self, stage_deck, make_order, customer):
        order = make_order([(stage_deck, 2)])

        with pytest.raises(CargoError) as exc:
            cargo.cancel_order(order, customer, 'Changed my mind')

        assert exc.value.code == 'PERMISSION_DENIED'

    def test_cannot_cancel_after_dispatch(self, stage_deck, make_order, prepared, staff, admin):
        order = prepared(make_order([(stage_deck, 2)]))
        order = cargo.transition_status(order, OrderStatus.READY_FOR_DELIVERY, staff)

        with pytest.raises(CargoError) as exc:
            cargo.cancel_order(order, admin, 'Too late')

        assert exc.value.code == 'CANNOT_CANCEL_AT_CURRENT_STAGE'

    def test_cannot_cancel_with_units_out(self, stage_deck, make_order, prepared, staff, admin):
        order = prepared(make_order([(stage_deck, 4)]))
        cargo.record_scan(order, stage_deck, ScanDirection.OUTBOUND, 2, staff)

        with pytest.raises(CargoError) as exc:
            cargo.cancel_order(order, admin, 'Client pulled out')

        assert exc.value.code == 'CANNOT_CANCEL_AT_CURRENT_STAGE'
        order.refresh_from_db()
        assert order.status == OrderStatus.IN_PREPARATION
        assert cargo.snapshot(stage_deck).out == 2


class TestFabrication:
    """Tests for orders with reskin requests."""

    def test_confirmation_opens_reskin_requests(self, backdrop, make_order, customer, confirm, staff):
        order = make_order()
        cargo.add_item(order, backdrop, 1, customer, requires_reskin=True, reskin_target_brand='Acme Cola')
        order = confirm(order)

        reskin = order.reskin_requests.get()
        assert reskin.status == ReskinStatus.PENDING
        assert reskin.target_brand == 'Acme Cola'

        with pytest.raises(CargoError) as exc:
            cargo.transition_status(order, OrderStatus.IN_PREPARATION, staff)
        assert exc.value.code == 'FABRICATION_PENDING'

    def test_cancel_drops_pending_reskins(self, backdrop, make_order, customer, confirm, admin):
        order = make_order()
        cargo.add_item(order, backdrop, 1, customer, requires_reskin=True)
        order = cargo.cancel_order(confirm(order), admin, 'Brand deal fell through')

        reskin = order.reskin_requests.get()
        assert reskin.status == ReskinStatus.CANCELLED
        assert reskin.cancellation_reason == 'Brand deal fell through'


class TestNotifications:
    """Status changes are published after commit."""

    def test_published_only_on_commit(self, settings, stage_deck, make_order, customer,
                                      django_capture_on_commit_callbacks):
        settings.CARGOMAN = {**settings.CARGOMAN, 'NOTIFIER': 'cargoman.tests.test_orders.RecordingNotifier'}
        RecordingNotifier.events = []
        order = make_order([(stage_deck, 2)])

        with django_capture_on_commit_callbacks() as callbacks:
            cargo.transition_status(order, OrderStatus.SUBMITTED, customer)

        assert RecordingNotifier.events == []
        assert len(callbacks) == 1

        callbacks[0]()
        event = RecordingNotifier.events[0]
        assert event.event_name == 'order.submitted'
        assert event.reference == order.reference
        assert event.actor_id == 'client-1'

    def test_failing_notifier_does_not_undo_transition(self, settings, caplog, stage_deck, make_order,
                                                       customer, django_capture_on_commit_callbacks):
        settings.CARGOMAN = {**settings.CARGOMAN, 'NOTIFIER': 'cargoman.tests.test_orders.ExplodingNotifier'}
        order = make_order([(stage_deck, 2)])

        with caplog.at_level(logging.ERROR, logger='cargoman'):
            with django_capture_on_commit_callbacks(execute=True):
                cargo.transition_status(order, OrderStatus.SUBMITTED, customer)

        order.refresh_from_db()
        assert order.status == OrderStatus.SUBMITTED
        assert 'cargo.notify.failed' in [record.getMessage() for record in caplog.records]
