"""
Tests for inbound requests.
"""

from decimal import Decimal

import pytest

from cargoman import CargoError, cargo
from cargoman.models import (
    Asset,
    FinancialStatus,
    InboundRequestStatus,
    LedgerKind,
    TrackingMethod,
)


pytestmark = pytest.mark.django_db

S = InboundRequestStatus

ITEMS = [
    {
        'name': 'Acme pop-up booth',
        'quantity': 2,
        'tracking_method': TrackingMethod.INDIVIDUAL,
        'volume_per_unit': '1.500',
        'weight_per_unit': '40.00',
        'category': 'Booth',
        'handling_tags': ['fragile'],
    },
    {
        'name': 'Folding chair',
        'quantity': 30,
        'tracking_method': TrackingMethod.BATCH,
    },
]


@pytest.fixture
def inbound(tariff, customer):
    return cargo.create_inbound_request('acme', customer, 'Dubai', ITEMS, venue_country='UAE')


@pytest.fixture
def confirmed(inbound, admin, customer):
    request = cargo.transition_inbound_status(inbound, S.PENDING_APPROVAL, admin)
    request = cargo.transition_inbound_status(request, S.QUOTED, admin)
    return cargo.transition_inbound_status(request, S.CONFIRMED, customer)


class TestCreate:

    def test_created_in_pricing_review_and_priced(self, inbound):
        assert inbound.status == S.PRICING_REVIEW
        assert inbound.reference.startswith('IR-')
        assert inbound.items.count() == 2

        result = inbound.pricing_result
        assert result.ok
        assert result.volume == Decimal('3.000')
        assert result.base_ops_total == Decimal('560.00')
        assert result.final_total == Decimal('616.00')

    def test_requires_items(self, customer):
        with pytest.raises(CargoError) as exc:
            cargo.create_inbound_request('acme', customer, 'Dubai', [])

        assert exc.value.code == 'EMPTY_ORDER'

    def test_rejects_bad_quantity(self, customer):
        with pytest.raises(CargoError) as exc:
            cargo.create_inbound_request('acme', customer, 'Dubai', [{'name': 'Crate', 'quantity': 0}])

        assert exc.value.code == 'INVALID_QUANTITY'

    @pytest.mark.parametrize('item, code', [
        ({'name': 'Crate', 'quantity': 1, 'colour': 'red'}, 'UNKNOWN_FIELD'),
        ({'name': '  ', 'quantity': 1}, 'FIELD_REQUIRED'),
        ({'name': 'Crate', 'quantity': 1, 'volume_per_unit': 'big'}, 'INVALID_AMOUNT'),
    ])
    def test_rejects_malformed_items(self, customer, item, code):
        with pytest.raises(CargoError) as exc:
            cargo.create_inbound_request('acme', customer, 'Dubai', [item])

        assert exc.value.code == code

    def test_requires_capability(self, staff):
        with pytest.raises(CargoError) as exc:
            cargo.create_inbound_request('acme', staff, 'Dubai', ITEMS)

        assert exc.value.code == 'PERMISSION_DENIED'

    def test_last_item_cannot_be_removed(self, tariff, customer):
        request = cargo.create_inbound_request('acme', customer, 'Dubai', ITEMS[:1])

        with pytest.raises(CargoError) as exc:
            cargo.remove_inbound_item(request.items.get(), customer)

        assert exc.value.code == 'EMPTY_ORDER'


class TestLifecycle:

    def test_quote_and_confirm(self, confirmed):
        assert confirmed.status == S.CONFIRMED
        assert confirmed.financial_status == FinancialStatus.QUOTE_ACCEPTED

    def test_edit_after_quote_blocks_confirmation(self, inbound, admin, customer):
        request = cargo.transition_inbound_status(inbound, S.PENDING_APPROVAL, admin)
        request = cargo.transition_inbound_status(request, S.QUOTED, admin)
        cargo.add_inbound_item(request, customer, 'Banner stand', 4, volume_per_unit='0.200')

        with pytest.raises(CargoError) as exc:
            cargo.transition_inbound_status(request, S.CONFIRMED, customer)

        assert exc.value.code == 'STALE_PRICING'
        request.refresh_from_db()
        assert request.status == S.QUOTED

    def test_items_locked_once_confirmed(self, confirmed, customer):
        with pytest.raises(CargoError) as exc:
            cargo.update_inbound_item(confirmed.items.first(), customer, quantity=5)

        assert exc.value.code == 'ITEMS_LOCKED'

    def test_decline(self, inbound, admin, customer):
        request = cargo.transition_inbound_status(inbound, S.PENDING_APPROVAL, admin)
        request = cargo.transition_inbound_status(request, S.QUOTED, admin)

        request = cargo.decline_inbound_quote(request, customer, 'Shipping ourselves')

        assert request.status == S.DECLINED

    def test_cancel_confirmed(self, confirmed, admin):
        request = cargo.cancel_inbound_request(confirmed, admin, 'Goods lost in customs')

        assert request.status == S.CANCELLED
        assert request.financial_status == FinancialStatus.CANCELLED


class TestCompletion:

    def test_completion_mints_assets(self, confirmed, staff):
        request = cargo.complete_inbound_request(confirmed, 'WH-1', 'Z-04', staff)

        assert request.status == S.COMPLETED
        assert request.financial_status == FinancialStatus.PENDING_INVOICE
        assert (request.warehouse_id, request.zone_id) == ('WH-1', 'Z-04')
        assert list(request.status_history.order_by('pk').values_list('to_status', flat=True))[-2:] == [
            S.IN_PROGRESS,
            S.COMPLETED,
        ]

        booth = request.items.get(name='Acme pop-up booth').created_asset
        assert booth.company_id == 'acme'
        assert booth.tracking_method == TrackingMethod.INDIVIDUAL
        assert booth.volume_per_unit == Decimal('1.500')
        assert booth.handling_tags == ['fragile']
        assert (booth.warehouse_id, booth.zone_id) == ('WH-1', 'Z-04')
        assert booth.metadata['inbound_request'] == request.reference
        assert cargo.snapshot(booth).available == 2
        assert booth.ledger_entries.get().kind == LedgerKind.INTAKE

        chairs = request.items.get(name='Folding chair').created_asset
        assert cargo.snapshot(chairs).total == 30

    def test_location_required(self, confirmed, staff):
        with pytest.raises(CargoError) as exc:
            cargo.complete_inbound_request(confirmed, 'WH-1', '', staff)

        assert exc.value.code == 'LOCATION_REQUIRED'
        assert not Asset.objects.exists()

    def test_cannot_complete_before_confirmation(self, inbound, staff):
        with pytest.raises(CargoError) as exc:
            cargo.complete_inbound_request(inbound, 'WH-1', 'Z-04', staff)

        assert exc.value.code == 'INVALID_TRANSITION'
        assert not Asset.objects.exists()

    def test_completion_requires_capability(self, confirmed, customer):
        with pytest.raises(CargoError) as exc:
            cargo.complete_inbound_request(confirmed, 'WH-1', 'Z-04', customer)

        assert exc.value.code == 'PERMISSION_DENIED'

    def test_completed_request_cannot_be_cancelled(self, confirmed, staff, admin):
        request = cargo.complete_inbound_request(confirmed, 'WH-1', 'Z-04', staff)

        with pytest.raises(CargoError) as exc:
            cargo.cancel_inbound_request(request, admin, 'Too late')

        assert exc.value.code == 'CANNOT_CANCEL_AT_CURRENT_STAGE'
