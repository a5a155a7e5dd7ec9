"""
Initial migration for Cargoman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


TRACKING = [('INDIVIDUAL', 'Individual'), ('BATCH', 'Batch')]
CONDITION = [('GREEN', 'Good'), ('ORANGE', 'Needs attention'), ('RED', 'Damaged')]
FINANCIAL = [
    ('PENDING_QUOTE', 'Pending quote'),
    ('QUOTE_SENT', 'Quote sent'),
    ('QUOTE_REVISED', 'Quote revised'),
    ('QUOTE_ACCEPTED', 'Quote accepted'),
    ('PENDING_INVOICE', 'Pending invoice'),
    ('INVOICED', 'Invoiced'),
    ('PAID', 'Paid'),
    ('CANCELLED', 'Cancelled'),
]
TRIP_TYPE = [('ONE_WAY', 'One way'), ('ROUND_TRIP', 'Round trip')]
SERVICE_CATEGORY = [
    ('ASSEMBLY', 'Assembly'),
    ('EQUIPMENT', 'Equipment'),
    ('HANDLING', 'Handling'),
    ('RESKIN', 'Reskin'),
    ('TRANSPORT', 'Transport'),
    ('OTHER', 'Other'),
]
SCAN_DIRECTION = [('OUTBOUND', 'Outbound'), ('INBOUND', 'Inbound')]


def fulfillable_fields():
    """Columns shared by Order and InboundRequest."""
    return [
        ('reference', models.CharField(blank=True, db_index=True, default='', max_length=32)),
        ('financial_status', models.CharField(choices=FINANCIAL, default='PENDING_QUOTE', max_length=20, verbose_name='Financial status')),
        ('company_id', models.CharField(db_index=True, max_length=64, verbose_name='Company')),
        ('requester_id', models.CharField(max_length=64, verbose_name='Requester')),
        ('venue_country', models.CharField(blank=True, default='', max_length=64)),
        ('venue_city', models.CharField(blank=True, default='', help_text='City or emirate used for tier and transport rate lookup', max_length=64)),
        ('revision', models.PositiveIntegerField(default=0)),
        ('margin_percent', models.DecimalField(blank=True, decimal_places=2, help_text='Empty = configured default', max_digits=5, null=True)),
        ('margin_override_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
        ('margin_override_reason', models.TextField(blank=True, default='')),
        ('pricing', models.JSONField(blank=True, null=True)),
        ('pricing_calculated_at', models.DateTimeField(blank=True, null=True)),
        ('note', models.TextField(blank=True, default='')),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):
    """Create Cargoman models: assets and ledger, orders, inbound requests, pricing, scanning."""

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
    ]

    operations = [
        migrations.CreateModel(
            name='Asset',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_id', models.CharField(db_index=True, max_length=64, verbose_name='Company')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('qr_code', models.CharField(max_length=100, unique=True, verbose_name='QR code')),
                ('category', models.CharField(blank=True, default='', max_length=50, verbose_name='Category')),
                ('tracking_method', models.CharField(choices=TRACKING, default='INDIVIDUAL', max_length=20, verbose_name='Tracking method')),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('TRANSFORMED', 'Transformed'), ('RETIRED', 'Retired')], db_index=True, default='ACTIVE', max_length=20, verbose_name='Status')),
                ('condition', models.CharField(choices=CONDITION, default='GREEN', max_length=10, verbose_name='Condition')),
                ('refurb_days_estimate', models.PositiveIntegerField(blank=True, null=True)),
                ('volume_per_unit', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10, verbose_name='Volume per unit (m³)')),
                ('weight_per_unit', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10, verbose_name='Weight per unit (kg)')),
                ('handling_tags', models.JSONField(blank=True, default=list)),
                ('warehouse_id', models.CharField(blank=True, default='', max_length=64)),
                ('zone_id', models.CharField(blank=True, default='', max_length=64)),
                ('_total', models.PositiveIntegerField(default=0, verbose_name='Total')),
                ('_booked', models.PositiveIntegerField(default=0, verbose_name='Booked')),
                ('_out', models.PositiveIntegerField(default=0, verbose_name='Out')),
                ('_in_maintenance', models.PositiveIntegerField(default=0, verbose_name='In maintenance')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('transformed_to', models.OneToOneField(blank=True, help_text='Successor asset after a reskin. Set exactly once.', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='transformed_from', to='cargoman.asset', verbose_name='Transformed to')),
            ],
            options={
                'verbose_name': 'Asset',
                'verbose_name_plural': 'Assets',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['company_id', 'status'], name='cargo_asset_company_status')],
                'constraints': [models.CheckConstraint(condition=models.Q(('_total__gte', models.F('_booked') + models.F('_out') + models.F('_in_maintenance'))), name='asset_available_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='PricingTier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_id', models.CharField(blank=True, db_index=True, default='', max_length=64)),
                ('country', models.CharField(blank=True, default='', max_length=64)),
                ('city', models.CharField(max_length=64, verbose_name='City')),
                ('volume_min', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10)),
                ('volume_max', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('base_price', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Base price')),
                ('warehouse_ops_rate', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Warehouse ops rate per m³')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Pricing tier',
                'verbose_name_plural': 'Pricing tiers',
                'ordering': ['city', 'volume_min'],
            },
        ),
        migrations.CreateModel(
            name='TransportRate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_id', models.CharField(blank=True, db_index=True, default='', max_length=64)),
                ('city', models.CharField(max_length=64)),
                ('trip_type', models.CharField(choices=TRIP_TYPE, max_length=12)),
                ('vehicle_type', models.CharField(max_length=32)),
                ('rate', models.DecimalField(decimal_places=2, max_digits=12)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Transport rate',
                'verbose_name_plural': 'Transport rates',
                'ordering': ['city', 'trip_type', 'vehicle_type'],
            },
        ),
        migrations.CreateModel(
            name='ServiceType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('category', models.CharField(choices=SERVICE_CATEGORY, default='OTHER', max_length=20)),
                ('unit', models.CharField(default='unit', max_length=20)),
                ('default_rate', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('description', models.TextField(blank=True, default='')),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'verbose_name': 'Service type',
                'verbose_name_plural': 'Service types',
                'ordering': ['category', 'name'],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *fulfillable_fields(),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('SUBMITTED', 'Submitted'), ('PRICING_REVIEW', 'Pricing review'), ('PENDING_APPROVAL', 'Pending approval'), ('QUOTED', 'Quoted'), ('DECLINED', 'Declined'), ('CONFIRMED', 'Confirmed'), ('AWAITING_FABRICATION', 'Awaiting fabrication'), ('IN_PREPARATION', 'In preparation'), ('READY_FOR_DELIVERY', 'Ready for delivery'), ('IN_TRANSIT', 'In transit'), ('DELIVERED', 'Delivered'), ('IN_USE', 'In use'), ('AWAITING_RETURN', 'Awaiting return'), ('RETURN_IN_TRANSIT', 'Return in transit'), ('CLOSED', 'Closed'), ('CANCELLED', 'Cancelled')], db_index=True, default='DRAFT', max_length=24, verbose_name='Status')),
                ('trip_type', models.CharField(choices=TRIP_TYPE, default='ROUND_TRIP', max_length=12)),
                ('venue_name', models.CharField(blank=True, default='', max_length=200)),
                ('event_start_date', models.DateField(blank=True, null=True)),
                ('event_end_date', models.DateField(blank=True, null=True)),
                ('special_instructions', models.TextField(blank=True, default='')),
            ],
            options={
                'verbose_name': 'Order',
                'verbose_name_plural': 'Orders',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['company_id', 'status'], name='cargo_order_company_status')],
            },
        ),
        migrations.CreateModel(
            name='InboundRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *fulfillable_fields(),
                ('status', models.CharField(choices=[('PRICING_REVIEW', 'Pricing review'), ('PENDING_APPROVAL', 'Pending approval'), ('QUOTED', 'Quoted'), ('CONFIRMED', 'Confirmed'), ('DECLINED', 'Declined'), ('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='PRICING_REVIEW', max_length=24, verbose_name='Status')),
                ('incoming_at', models.DateTimeField(blank=True, null=True, verbose_name='Incoming at')),
                ('warehouse_id', models.CharField(blank=True, default='', max_length=64)),
                ('zone_id', models.CharField(blank=True, default='', max_length=64)),
            ],
            options={
                'verbose_name': 'Inbound request',
                'verbose_name_plural': 'Inbound requests',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('volume_per_unit', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10)),
                ('weight_per_unit', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10)),
                ('requires_reskin', models.BooleanField(default=False)),
                ('reskin_target_brand', models.CharField(blank=True, default='', max_length=100)),
                ('reskin_notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='cargoman.asset')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='cargoman.order')),
            ],
            options={
                'verbose_name': 'Order item',
                'verbose_name_plural': 'Order items',
                'ordering': ['pk'],
                'constraints': [models.UniqueConstraint(fields=('order', 'asset'), name='unique_asset_per_order')],
            },
        ),
        migrations.CreateModel(
            name='InboundRequestItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('category', models.CharField(blank=True, default='', max_length=50)),
                ('tracking_method', models.CharField(choices=TRACKING, default='INDIVIDUAL', max_length=20)),
                ('quantity', models.PositiveIntegerField()),
                ('weight_per_unit', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10)),
                ('volume_per_unit', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=10)),
                ('dimensions', models.JSONField(blank=True, default=dict, help_text='{"length", "width", "height"} in cm')),
                ('handling_tags', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_asset', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='inbound_item', to='cargoman.asset')),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='cargoman.inboundrequest')),
            ],
            options={
                'verbose_name': 'Inbound request item',
                'verbose_name_plural': 'Inbound request items',
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('scanned_out', models.PositiveIntegerField(default=0, verbose_name='Scanned out')),
                ('scanned_in', models.PositiveIntegerField(default=0, verbose_name='Scanned in')),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('RELEASED', 'Released'), ('FULFILLED', 'Fulfilled')], db_index=True, default='ACTIVE', max_length=20, verbose_name='Status')),
                ('actor', models.CharField(blank=True, default='', max_length=64)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('resolved_at', models.DateTimeField(blank=True, null=True, verbose_name='Resolved at')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='cargoman.asset', verbose_name='Asset')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='cargoman.order', verbose_name='Order')),
            ],
            options={
                'verbose_name': 'Reservation',
                'verbose_name_plural': 'Reservations',
                'indexes': [
                    models.Index(fields=['asset', 'status'], name='cargo_resv_asset_status'),
                    models.Index(fields=['order', 'status'], name='cargo_resv_order_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('INTAKE', 'Intake'), ('RETIRE', 'Retire'), ('RESERVE', 'Reserve'), ('RELEASE', 'Release'), ('SCAN_OUT', 'Scan out'), ('SCAN_IN', 'Scan in'), ('MAINTENANCE_IN', 'Into maintenance'), ('MAINTENANCE_OUT', 'Out of maintenance')], max_length=20, verbose_name='Kind')),
                ('delta', models.PositiveIntegerField(help_text='Always positive; the kind decides which counters move and how.', verbose_name='Quantity')),
                ('actor', models.CharField(blank=True, default='', max_length=64, verbose_name='Actor')),
                ('reason', models.CharField(max_length=255, verbose_name='Reason')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='cargoman.asset', verbose_name='Asset')),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='cargoman.order')),
                ('reservation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='cargoman.reservation')),
            ],
            options={
                'verbose_name': 'Ledger entry',
                'verbose_name_plural': 'Ledger entries',
                'ordering': ['pk'],
                'indexes': [
                    models.Index(fields=['asset', 'id'], name='cargo_ledger_asset'),
                    models.Index(fields=['order', 'asset'], name='cargo_ledger_order_asset'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AvailabilityCheckpoint',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('last_entry_id', models.BigIntegerField()),
                ('total', models.IntegerField(default=0)),
                ('booked', models.IntegerField(default=0)),
                ('out', models.IntegerField(default=0)),
                ('in_maintenance', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='checkpoints', to='cargoman.asset')),
            ],
            options={
                'verbose_name': 'Availability checkpoint',
                'verbose_name_plural': 'Availability checkpoints',
                'ordering': ['-last_entry_id'],
                'constraints': [models.UniqueConstraint(fields=('asset', 'last_entry_id'), name='unique_checkpoint_per_entry')],
            },
        ),
        migrations.CreateModel(
            name='LineItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('purpose_id', models.PositiveIntegerField()),
                ('line_item_type', models.CharField(choices=[('CATALOG', 'Catalog'), ('CUSTOM', 'Custom')], max_length=10)),
                ('category', models.CharField(choices=SERVICE_CATEGORY, default='OTHER', max_length=20)),
                ('description', models.CharField(max_length=255)),
                ('quantity', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('unit', models.CharField(blank=True, default='', max_length=20)),
                ('unit_rate', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('billing_mode', models.CharField(choices=[('BILLABLE', 'Billable'), ('NON_BILLABLE', 'Non billable'), ('COMPLIMENTARY', 'Complimentary')], default='BILLABLE', max_length=16)),
                ('justification', models.TextField(blank=True, default='')),
                ('notes', models.TextField(blank=True, default='')),
                ('is_voided', models.BooleanField(default=False)),
                ('void_reason', models.TextField(blank=True, default='')),
                ('voided_by', models.CharField(blank=True, default='', max_length=64)),
                ('voided_at', models.DateTimeField(blank=True, null=True)),
                ('added_by', models.CharField(blank=True, default='', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('purpose_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='contenttypes.contenttype')),
                ('service_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='line_items', to='cargoman.servicetype')),
            ],
            options={
                'verbose_name': 'Line item',
                'verbose_name_plural': 'Line items',
                'ordering': ['pk'],
                'indexes': [models.Index(fields=['purpose_type', 'purpose_id'], name='cargo_lineitem_purpose')],
            },
        ),
        migrations.CreateModel(
            name='TransportTrip',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('purpose_id', models.PositiveIntegerField()),
                ('trip_type', models.CharField(choices=TRIP_TYPE, default='ROUND_TRIP', max_length=12)),
                ('vehicle_type', models.CharField(max_length=32)),
                ('leg', models.CharField(choices=[('DELIVERY', 'Delivery'), ('PICKUP', 'Pickup'), ('ACCESS', 'Access'), ('TRANSFER', 'Transfer')], default='DELIVERY', max_length=12)),
                ('city', models.CharField(blank=True, default='', help_text='Empty = venue city of the order', max_length=64)),
                ('sequence_no', models.PositiveIntegerField(default=0)),
                ('truck_plate', models.CharField(blank=True, default='', max_length=32)),
                ('driver_name', models.CharField(blank=True, default='', max_length=100)),
                ('driver_contact', models.CharField(blank=True, default='', max_length=32)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('purpose_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='contenttypes.contenttype')),
            ],
            options={
                'verbose_name': 'Transport trip',
                'verbose_name_plural': 'Transport trips',
                'ordering': ['sequence_no', 'pk'],
                'indexes': [models.Index(fields=['purpose_type', 'purpose_id'], name='cargo_trip_purpose')],
            },
        ),
        migrations.CreateModel(
            name='StatusHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('purpose_id', models.PositiveIntegerField()),
                ('from_status', models.CharField(blank=True, default='', max_length=24, verbose_name='From')),
                ('to_status', models.CharField(max_length=24, verbose_name='To')),
                ('actor', models.CharField(max_length=64, verbose_name='Actor')),
                ('note', models.TextField(blank=True, default='')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('purpose_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='contenttypes.contenttype')),
            ],
            options={
                'verbose_name': 'Status history',
                'verbose_name_plural': 'Status history',
                'ordering': ['pk'],
                'indexes': [models.Index(fields=['purpose_type', 'purpose_id', 'id'], name='cargo_history_purpose')],
            },
        ),
        migrations.CreateModel(
            name='ScanSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=SCAN_DIRECTION, max_length=10)),
                ('status', models.CharField(choices=[('NOT_STARTED', 'Not started'), ('IN_PROGRESS', 'In progress'), ('COMPLETE', 'Complete')], default='NOT_STARTED', max_length=12)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('truck_photos', models.JSONField(blank=True, default=list)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scan_sessions', to='cargoman.order')),
            ],
            options={
                'verbose_name': 'Scan session',
                'verbose_name_plural': 'Scan sessions',
                'constraints': [models.UniqueConstraint(fields=('order', 'direction'), name='unique_scan_session_per_direction')],
            },
        ),
        migrations.CreateModel(
            name='ScanEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=SCAN_DIRECTION, max_length=10)),
                ('quantity', models.PositiveIntegerField()),
                ('condition', models.CharField(blank=True, choices=CONDITION, default='', max_length=10)),
                ('notes', models.TextField(blank=True, default='')),
                ('discrepancy_reason', models.CharField(blank=True, choices=[('BROKEN', 'Broken'), ('LOST', 'Lost'), ('OTHER', 'Other')], default='', max_length=10)),
                ('scanned_by', models.CharField(max_length=64)),
                ('scanned_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('asset', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='scan_events', to='cargoman.asset')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='scan_events', to='cargoman.order')),
            ],
            options={
                'verbose_name': 'Scan event',
                'verbose_name_plural': 'Scan events',
                'ordering': ['pk'],
                'indexes': [models.Index(fields=['order', 'direction', 'asset'], name='cargo_scan_order_dir_asset')],
            },
        ),
        migrations.CreateModel(
            name='ReskinRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('target_brand', models.CharField(blank=True, default='', max_length=100)),
                ('client_notes', models.TextField(blank=True, default='')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('COMPLETE', 'Complete'), ('CANCELLED', 'Cancelled')], db_index=True, default='PENDING', max_length=10)),
                ('completion_notes', models.TextField(blank=True, default='')),
                ('completed_by', models.CharField(blank=True, default='', max_length=64)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.TextField(blank=True, default='')),
                ('cancelled_by', models.CharField(blank=True, default='', max_length=64)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('new_asset', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='reskin_origin', to='cargoman.asset')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reskin_requests', to='cargoman.order')),
                ('order_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reskin_requests', to='cargoman.orderitem')),
                ('original_asset', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reskin_requests', to='cargoman.asset')),
            ],
            options={
                'verbose_name': 'Reskin request',
                'verbose_name_plural': 'Reskin requests',
                'ordering': ['pk'],
            },
        ),
    ]
