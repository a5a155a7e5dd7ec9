"""
Tests for line item requests.
"""

from decimal import Decimal

import pytest

from cargoman import CargoError, cargo
from cargoman.models import LineItem, LineItemRequest, LineItemRequestStatus, LineItemType


pytestmark = pytest.mark.django_db

R = LineItemRequestStatus


@pytest.fixture
def order(tariff, stage_deck, make_order, admin):
    order = make_order([(stage_deck, 2)])
    cargo.recalculate_pricing(order, admin)
    order.refresh_from_db()
    return order


@pytest.fixture
def crane(order, staff):
    return cargo.request_line_item(order, 'Crane hire', 2, '225.00', staff, notes='Hall 4 rigging')


class TestRequest:

    def test_request_leaves_pricing_untouched(self, order, staff):
        revision = order.revision

        request = cargo.request_line_item(order, 'Crane hire', 2, '225.00', staff)

        assert request.status == R.REQUESTED
        assert request.requested_by == str(staff)
        assert request.unit_rate == Decimal('225.00')
        order.refresh_from_db()
        assert order.revision == revision
        assert not order.is_pricing_stale
        assert not order.line_items.exists()
        assert list(order.line_item_requests.pending()) == [request]

    def test_service_type_supplies_the_rate(self, order, staff, assembly):
        request = cargo.request_line_item(order, '', 3, None, staff, service_type=assembly)

        assert request.description == 'Booth assembly'
        assert request.unit_rate == Decimal('75.00')
        assert request.category == 'ASSEMBLY'
        assert request.unit == 'hour'

    def test_client_cannot_request(self, order, customer):
        with pytest.raises(CargoError) as exc:
            cargo.request_line_item(order, 'Crane hire', 1, '225.00', customer)

        assert exc.value.code == 'PERMISSION_DENIED'
        assert not LineItemRequest.objects.exists()

    def test_confirmed_order_takes_no_requests(self, stage_deck, make_order, confirm, staff):
        order = confirm(make_order([(stage_deck, 2)]))

        with pytest.raises(CargoError) as exc:
            cargo.request_line_item(order, 'Crane hire', 1, '225.00', staff)

        assert exc.value.code == 'ITEMS_LOCKED'

    @pytest.mark.parametrize('description, quantity, unit_rate, code', [
        ('  ', 1, '225.00', 'FIELD_REQUIRED'),
        ('Crane hire', 1, None, 'FIELD_REQUIRED'),
        ('Crane hire', 0, '225.00', 'INVALID_QUANTITY'),
        ('Crane hire', 'two', '225.00', 'INVALID_QUANTITY'),
        ('Crane hire', 1, '-5', 'INVALID_AMOUNT'),
        ('Crane hire', 1, 'cheap', 'INVALID_AMOUNT'),
    ])
    def test_rejects_bad_input(self, order, staff, description, quantity, unit_rate, code):
        with pytest.raises(CargoError) as exc:
            cargo.request_line_item(order, description, quantity, unit_rate, staff)

        assert exc.value.code == code


class TestApprove:

    def test_approval_adds_a_custom_item(self, order, crane, admin):
        request = cargo.approve_line_item_request(crane, admin, admin_note='Agreed with venue')

        assert request.status == R.APPROVED
        assert request.resolved_by == str(admin)
        assert request.resolved_at is not None
        item = request.line_item
        assert item.line_item_type == LineItemType.CUSTOM
        assert item.description == 'Crane hire'
        assert item.amount == Decimal('450.00')
        assert item.notes == 'Hall 4 rigging'
        assert f"Line item request {request.pk}" in item.justification
        order.refresh_from_db()
        assert order.is_pricing_stale

        result = cargo.recalculate_pricing(order, admin)
        assert result.line_items.custom_total == Decimal('450.00')

    def test_approval_with_service_type_adds_a_catalog_item(self, order, staff, admin, assembly):
        request = cargo.request_line_item(order, '', 2, None, staff, service_type=assembly)

        request = cargo.approve_line_item_request(request, admin)

        item = request.line_item
        assert item.line_item_type == LineItemType.CATALOG
        assert item.service_type == assembly
        assert item.amount == Decimal('150.00')

    def test_overrides_apply_before_the_item_exists(self, crane, admin):
        request = cargo.approve_line_item_request(crane, admin, quantity=1, description='Crane hire (half day)')

        assert request.quantity == Decimal('1')
        assert request.line_item.description == 'Crane hire (half day)'
        assert request.line_item.amount == Decimal('225.00')

    def test_unknown_override_rejected(self, crane, admin):
        with pytest.raises(CargoError) as exc:
            cargo.approve_line_item_request(crane, admin, colour='red')

        assert exc.value.code == 'UNKNOWN_FIELD'
        crane.refresh_from_db()
        assert crane.is_pending

    def test_staff_cannot_approve_their_own_request(self, crane, staff):
        with pytest.raises(CargoError) as exc:
            cargo.approve_line_item_request(crane, staff)

        assert exc.value.code == 'PERMISSION_DENIED'
        assert not LineItem.objects.exists()

    def test_approved_request_cannot_be_resolved_again(self, crane, admin):
        cargo.approve_line_item_request(crane, admin)

        with pytest.raises(CargoError) as exc:
            cargo.approve_line_item_request(crane, admin)
        assert exc.value.code == 'INVALID_TRANSITION'

        with pytest.raises(CargoError) as exc:
            cargo.reject_line_item_request(crane, admin, 'Changed my mind')
        assert exc.value.code == 'INVALID_TRANSITION'
        assert LineItem.objects.count() == 1

    def test_locked_order_refuses_approval(self, stage_deck, make_order, staff, admin, confirm):
        order = make_order([(stage_deck, 2)])
        request = cargo.request_line_item(order, 'Crane hire', 1, '225.00', staff)
        confirm(order)

        with pytest.raises(CargoError) as exc:
            cargo.approve_line_item_request(request, admin)

        assert exc.value.code == 'ITEMS_LOCKED'
        request.refresh_from_db()
        assert request.is_pending


class TestReject:

    def test_rejection_needs_a_note(self, crane, admin):
        with pytest.raises(CargoError) as exc:
            cargo.reject_line_item_request(crane, admin, '  ')

        assert exc.value.code == 'NOTE_REQUIRED'

    def test_rejection_keeps_the_request_for_audit(self, order, crane, admin):
        request = cargo.reject_line_item_request(crane, admin, 'Venue supplies the crane')

        assert request.status == R.REJECTED
        assert request.admin_note == 'Venue supplies the crane'
        assert request.line_item is None
        order.refresh_from_db()
        assert not order.is_pricing_stale
        assert not order.line_item_requests.pending().exists()


class TestInbound:

    def test_inbound_request_charges_go_through_approval(self, tariff, customer, staff, admin):
        inbound = cargo.create_inbound_request(
            'acme', customer, 'Dubai', [{'name': 'Pop-up booth', 'quantity': 1}],
        )

        request = cargo.request_line_item(inbound, 'Forklift unloading', 1, '120.00', staff)
        request = cargo.approve_line_item_request(request, admin)

        assert request.line_item.purpose == inbound
        assert inbound.line_items.get() == request.line_item
