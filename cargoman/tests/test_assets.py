"""
Tests for the asset registry.
"""

import pytest

from cargoman import CargoError, cargo
from cargoman.models import AssetStatus, Condition, LedgerKind, TrackingMethod


pytestmark = pytest.mark.django_db


class TestCreate:

    def test_create_asset_records_intake(self, admin):
        asset = cargo.create_asset('acme', 'Truss segment', admin, quantity=12,
                                   tracking_method=TrackingMethod.BATCH, category='Rigging')

        assert asset.qr_code.startswith('ACME-')
        assert asset.status == AssetStatus.ACTIVE
        assert asset.condition == Condition.GREEN
        entry = asset.ledger_entries.get()
        assert (entry.kind, entry.delta) == (LedgerKind.INTAKE, 12)
        assert cargo.snapshot(asset).available == 12

    def test_explicit_qr_code(self, admin):
        asset = cargo.create_asset('acme', 'Lectern', admin, qr_code='LECTERN-001')

        assert asset.qr_code == 'LECTERN-001'

    def test_create_requires_capability(self, customer):
        with pytest.raises(CargoError) as exc:
            cargo.create_asset('acme', 'Lectern', customer)

        assert exc.value.code == 'PERMISSION_DENIED'

    def test_add_stock(self, stage_deck, staff):
        cargo.add_stock(5, stage_deck, staff, reason='Second batch delivered')

        assert cargo.snapshot(stage_deck).total == 15


class TestRetire:

    def test_partial_retire(self, stage_deck, admin):
        asset = cargo.retire_asset(stage_deck, admin, 'Water damage', quantity=3)

        assert asset.status == AssetStatus.ACTIVE
        assert cargo.snapshot(stage_deck).total == 7

    def test_partial_retire_limited_to_available(self, stage_deck, make_order, admin, staff):
        cargo.reserve(8, stage_deck, make_order(), staff)

        with pytest.raises(CargoError) as exc:
            cargo.retire_asset(stage_deck, admin, 'Water damage', quantity=3)

        assert exc.value.code == 'INSUFFICIENT_AVAILABILITY'

    def test_full_retire(self, stage_deck, admin):
        asset = cargo.retire_asset(stage_deck, admin, 'End of life')

        assert asset.status == AssetStatus.RETIRED
        assert cargo.snapshot(stage_deck).total == 0

    def test_full_retire_while_booked(self, stage_deck, make_order, admin, staff):
        cargo.reserve(1, stage_deck, make_order(), staff)

        with pytest.raises(CargoError) as exc:
            cargo.retire_asset(stage_deck, admin, 'End of life')

        assert exc.value.code == 'ASSET_IN_USE'

    def test_retire_requires_reason(self, stage_deck, admin):
        with pytest.raises(CargoError) as exc:
            cargo.retire_asset(stage_deck, admin, '')

        assert exc.value.code == 'REASON_REQUIRED'


class TestTransform:

    def test_successor_carries_units_and_attributes(self, stage_deck, admin):
        successor = cargo.transform_asset(stage_deck, admin, name='Stage deck (black)', qr_code='DECK-BLK')

        stage_deck.refresh_from_db()
        assert stage_deck.status == AssetStatus.TRANSFORMED
        assert stage_deck.successor() == successor
        assert successor.qr_code == 'DECK-BLK'
        assert successor.volume_per_unit == stage_deck.volume_per_unit
        assert successor.tracking_method == stage_deck.tracking_method
        assert cargo.snapshot(successor).total == 10
        assert cargo.snapshot(stage_deck).total == 0

    def test_transform_in_use(self, stage_deck, make_order, admin, staff):
        cargo.reserve(2, stage_deck, make_order(), staff)

        with pytest.raises(CargoError) as exc:
            cargo.transform_asset(stage_deck, admin)

        assert exc.value.code == 'ASSET_IN_USE'
        assert exc.value.data['booked'] == 2

    def test_transform_twice(self, stage_deck, admin):
        first = cargo.transform_asset(stage_deck, admin)

        with pytest.raises(CargoError) as exc:
            cargo.transform_asset(stage_deck, admin)

        assert exc.value.code == 'ASSET_TRANSFORMED'
        assert exc.value.data['successor_id'] == first.pk


class TestRecalculate:

    def test_recalculate_repairs_caches(self, stage_deck, make_order, staff):
        cargo.reserve(4, stage_deck, make_order(), staff)
        type(stage_deck).objects.filter(pk=stage_deck.pk).update(_booked=1)
        stage_deck.refresh_from_db()

        counters = stage_deck.recalculate()

        assert counters == {'total': 10, 'booked': 4, 'out': 0, 'in_maintenance': 0}
        stage_deck.refresh_from_db()
        assert stage_deck.available_quantity == 6
