"""
Line item requests: staff-proposed charges reviewed by an admin.
"""

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('cargoman', '0001_initial'),
        ('contenttypes', '0002_remove_content_type_name'),
    ]

    operations = [
        migrations.CreateModel(
            name='LineItemRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('purpose_id', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('REQUESTED', 'Requested'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], db_index=True, default='REQUESTED', max_length=10)),
                ('description', models.CharField(max_length=255)),
                ('category', models.CharField(choices=[('ASSEMBLY', 'Assembly'), ('EQUIPMENT', 'Equipment'), ('HANDLING', 'Handling'), ('RESKIN', 'Reskin'), ('TRANSPORT', 'Transport'), ('OTHER', 'Other')], default='OTHER', max_length=20)),
                ('quantity', models.DecimalField(decimal_places=2, max_digits=10)),
                ('unit', models.CharField(default='service', max_length=20)),
                ('unit_rate', models.DecimalField(decimal_places=2, max_digits=12)),
                ('notes', models.TextField(blank=True, default='')),
                ('admin_note', models.TextField(blank=True, default='')),
                ('requested_by', models.CharField(max_length=64)),
                ('resolved_by', models.CharField(blank=True, default='', max_length=64)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('purpose_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='contenttypes.contenttype')),
                ('service_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='cargoman.servicetype')),
                ('line_item', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='request', to='cargoman.lineitem')),
            ],
            options={
                'verbose_name': 'Line item request',
                'verbose_name_plural': 'Line item requests',
                'ordering': ['pk'],
                'indexes': [models.Index(fields=['purpose_type', 'purpose_id'], name='cargo_lirequest_purpose')],
            },
        ),
    ]
