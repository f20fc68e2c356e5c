import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('opticians', '0001_initial'),
        ('products', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='LoyaltyAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('balance', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('optician', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='loyalty_account', to='opticians.optician')),
            ],
            options={
                'verbose_name': 'Loyalty Account',
                'verbose_name_plural': 'Loyalty Accounts',
                'db_table': 'loyalty_accounts',
                'constraints': [models.CheckConstraint(condition=models.Q(('balance__gte', 0)), name='loyalty_account_balance_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='PointsLedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('delta', models.IntegerField()),
                ('reason', models.CharField(max_length=64)),
                ('reference_id', models.CharField(blank=True, help_text='Order item, redemption or adjustment this entry settles', max_length=64)),
                ('note', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='entries', to='loyalty.loyaltyaccount')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_points_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Points Ledger Entry',
                'verbose_name_plural': 'Points Ledger Entries',
                'db_table': 'points_ledger',
                'ordering': ('-created_at', '-id'),
                'indexes': [
                    models.Index(fields=['account', '-created_at'], name='points_account_recent_idx'),
                    models.Index(fields=['reason', 'reference_id'], name='points_reason_ref_idx'),
                ],
                'constraints': [models.CheckConstraint(condition=models.Q(('delta', 0), _negated=True), name='points_ledger_delta_non_zero')],
            },
        ),
        migrations.CreateModel(
            name='Redemption',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('total_points', models.PositiveIntegerField()),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('optician', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='redemptions', to='opticians.optician')),
                ('resolved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='resolved_redemptions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Redemption',
                'verbose_name_plural': 'Redemptions',
                'db_table': 'loyalty_redemptions',
                'ordering': ('-created_at',),
                'indexes': [
                    models.Index(fields=['optician', '-created_at'], name='redemption_optician_idx'),
                    models.Index(fields=['status', '-created_at'], name='redemption_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RedemptionItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product_name', models.CharField(max_length=200)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('points_cost', models.PositiveIntegerField()),
                ('total_points', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('loyalty_product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='redemption_items', to='products.loyaltyproduct')),
                ('redemption', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='items', to='loyalty.redemption')),
            ],
            options={
                'verbose_name': 'Redemption Item',
                'verbose_name_plural': 'Redemption Items',
                'db_table': 'loyalty_redemption_items',
                'ordering': ('created_at', 'id'),
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='redemption_item_quantity_positive')],
            },
        ),
    ]
