"""
Tests for the reconcile_availability management command.
"""

from io import StringIO

import pytest
from django.core.management import call_command

from cargoman import cargo
from cargoman.models import Asset, AvailabilityCheckpoint


pytestmark = pytest.mark.django_db


def run(*args):
    out = StringIO()
    call_command('reconcile_availability', *args, stdout=out)
    return out.getvalue()


class TestReconcileCommand:

    def test_clean_ledger(self, stage_deck, backdrop):
        output = run()

        assert '2 asset(s) checked, 0 with drift' in output

    def test_reports_drift_without_fixing(self, stage_deck, make_order, staff):
        cargo.reserve(3, stage_deck, make_order(), staff)
        Asset.objects.filter(pk=stage_deck.pk).update(_booked=0)

        output = run()

        assert f'asset {stage_deck.pk}: drift' in output
        assert '1 asset(s) checked, 1 with drift' in output
        stage_deck.refresh_from_db()
        assert stage_deck.booked_quantity == 0

    def test_fix(self, stage_deck, make_order, staff):
        cargo.reserve(3, stage_deck, make_order(), staff)
        Asset.objects.filter(pk=stage_deck.pk).update(_booked=0)

        output = run('--fix')

        assert f'asset {stage_deck.pk}: fixed' in output
        stage_deck.refresh_from_db()
        assert stage_deck.booked_quantity == 3

    def test_single_asset_with_checkpoint(self, stage_deck, backdrop):
        output = run('--asset', str(backdrop.pk), '--checkpoint')

        assert '1 asset(s) checked' in output
        assert AvailabilityCheckpoint.objects.filter(asset=backdrop).exists()
        assert not AvailabilityCheckpoint.objects.filter(asset=stage_deck).exists()
