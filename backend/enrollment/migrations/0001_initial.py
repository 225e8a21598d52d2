import django.db.models.deletion
import enrollment.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('training', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Batch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_number', models.PositiveIntegerField()),
                ('capacity', models.PositiveIntegerField(default=enrollment.models._default_batch_capacity)),
                ('current_count', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('open', 'Open'), ('full', 'Full'), ('in_progress', 'In Progress'), ('completed', 'Completed')], db_index=True, default='open', max_length=16)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batches', to='training.location')),
                ('program', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batches', to='training.program')),
            ],
            options={
                'verbose_name': 'Batch',
                'verbose_name_plural': 'Batches',
                'ordering': ('program', 'location', 'batch_number'),
                'constraints': [
                    models.UniqueConstraint(fields=('program', 'location', 'batch_number'), name='unique_batch_number_per_program_location'),
                    models.CheckConstraint(condition=models.Q(('capacity__gt', 0)), name='batch_capacity_positive'),
                    models.CheckConstraint(condition=models.Q(('current_count__gte', 0), ('current_count__lte', models.F('capacity'))), name='batch_count_within_capacity'),
                    models.CheckConstraint(condition=models.Q(('status__in', ['open', 'full', 'in_progress', 'completed'])), name='batch_status_valid'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BatchSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('last_number', models.PositiveIntegerField(default=0)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='training.location')),
                ('program', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='training.program')),
            ],
            options={
                'constraints': [
                    models.UniqueConstraint(fields=('program', 'location'), name='unique_batch_sequence_per_program_location'),
                ],
            },
        ),
    ]
