import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('reference', models.CharField(help_text='Supplier reference shown on orders', max_length=100, unique=True)),
                ('unit_price_cents', models.BigIntegerField(help_text='Catalog unit price in cents', validators=[django.core.validators.MinValueValidator(0)])),
                ('discount_pct', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Professional discount (remise) in percent', max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('stock_qty', models.PositiveIntegerField(default=0, help_text='Available units (authoritative)')),
                ('loyalty_points_reward', models.PositiveIntegerField(default=0, help_text='Points earned per confirmed unit')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'db_table': 'products',
                'ordering': ('name',),
                'indexes': [models.Index(fields=['is_active', 'name'], name='product_active_name_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('stock_qty__gte', 0)), name='product_stock_qty_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='LoyaltyProduct',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('points_cost', models.PositiveIntegerField(help_text='Points required per unit', validators=[django.core.validators.MinValueValidator(1)])),
                ('is_active', models.BooleanField(default=True)),
                ('own_stock_qty', models.PositiveIntegerField(default=0, help_text='Stock for rewards not linked to a catalog product')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(blank=True, help_text='Catalog product delivered for this reward, if any', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='loyalty_products', to='products.product')),
            ],
            options={
                'verbose_name': 'Loyalty Product',
                'verbose_name_plural': 'Loyalty Products',
                'db_table': 'loyalty_products',
                'ordering': ('points_cost', 'name'),
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('points_cost__gt', 0)), name='loyalty_product_points_cost_positive'),
                    models.CheckConstraint(condition=models.Q(('own_stock_qty__gte', 0)), name='loyalty_product_own_stock_non_negative'),
                ],
            },
        ),
    ]
