from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Motorcycle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('brand', models.CharField(help_text='Manufacturer name.', max_length=100)),
                ('model', models.CharField(help_text='Model name.', max_length=100)),
                ('year', models.PositiveIntegerField(help_text='Model year.')),
                ('chassis_number', models.CharField(help_text='Chassis (VIN) number.', max_length=64, unique=True)),
                ('retail_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='List price of the unit.', max_digits=15, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('organization_id', models.CharField(db_index=True, help_text='Organization (dealership) that owns this unit.', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'motorcycles',
                'ordering': ['-created_at'],
            },
        ),
    ]
