"""
Management command to compare asset counters with the ledger replay.

Usage:
    python manage.py reconcile_availability
    python manage.py reconcile_availability --fix
    python manage.py reconcile_availability --asset 42 --checkpoint
"""

from django.core.management.base import BaseCommand

from cargoman import cargo
from cargoman.models import Asset


class Command(BaseCommand):
    """Reconcile availability caches command."""

    help = 'Compares cached asset counters with the ledger replay'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Overwrite drifted caches with the replayed counters',
        )
        parser.add_argument(
            '--checkpoint',
            action='store_true',
            help='Write an availability checkpoint for every asset checked',
        )
        parser.add_argument(
            '--asset',
            type=int,
            help='Only check this asset id',
        )

    def handle(self, *args, **options):
        assets = Asset.objects.order_by('pk')
        if options['asset'] is not None:
            assets = assets.filter(pk=options['asset'])

        checked = drifted = 0
        for pk in assets.values_list('pk', flat=True).iterator():
            report = cargo.reconcile(pk, fix=options['fix'])
            checked += 1
            if report['drift']:
                drifted += 1
                action = 'fixed' if report['fixed'] else 'drift'
                self.stdout.write(self.style.WARNING(
                    f"asset {pk}: {action} cached={report['cached']} replayed={report['replayed']}"
                ))
            if options['checkpoint']:
                cargo.checkpoint(pk)

        style = self.style.WARNING if drifted and not options['fix'] else self.style.SUCCESS
        self.stdout.write(style(f'{checked} asset(s) checked, {drifted} with drift'))
