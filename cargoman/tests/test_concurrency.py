"""
Concurrent reservations against one asset.

Row locks are a no-op on SQLite, so these run only when DATABASES points
at PostgreSQL.
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest
from django.db import connection, connections

from cargoman import CargoError, cargo
from cargoman.models import Reservation


pytestmark = [
    pytest.mark.django_db(transaction=True),
    pytest.mark.skipif(connection.vendor != 'postgresql', reason='needs row locks'),
]


def contend(calls):
    """Start every call at the same time; return (successes, error codes)."""
    barrier = Barrier(len(calls))

    def attempt(call):
        try:
            barrier.wait()
            call()
            return None
        except CargoError as e:
            return e.code
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        results = list(pool.map(attempt, calls))
    return results.count(None), [code for code in results if code]


class TestConcurrentReserve:

    def test_no_overcommit(self, stage_deck, make_order, staff):
        """Ten orders race for 2 units each of a 10-unit asset: five win."""
        orders = [make_order() for _ in range(10)]

        wins, errors = contend([lambda o=o: cargo.reserve(2, stage_deck, o, staff) for o in orders])

        assert wins == 5
        assert errors == ['INSUFFICIENT_AVAILABILITY'] * 5
        snapshot = cargo.snapshot(stage_deck)
        assert snapshot.booked == 10
        assert snapshot.available == 0
        assert cargo.replay(stage_deck)['booked'] == 10

    def test_last_unit(self, backdrop, make_order, staff):
        orders = [make_order() for _ in range(4)]

        wins, errors = contend([lambda o=o: cargo.reserve(1, backdrop, o, staff) for o in orders])

        assert wins == 1
        assert errors == ['INSUFFICIENT_AVAILABILITY'] * 3
        assert Reservation.objects.filter(asset=backdrop).count() == 1

    def test_release_and_reserve_interleave(self, stage_deck, make_order, staff):
        held = [cargo.reserve(5, stage_deck, make_order(), staff) for _ in range(2)]
        newcomers = [make_order() for _ in range(2)]

        calls = [lambda r=r: cargo.release(r.reservation_id, staff) for r in held]
        calls += [lambda o=o: cargo.reserve(5, stage_deck, o, staff) for o in newcomers]
        contend(calls)

        snapshot = cargo.snapshot(stage_deck)
        assert 0 <= snapshot.available <= 10
        assert cargo.reconcile(stage_deck)['drift'] is False
