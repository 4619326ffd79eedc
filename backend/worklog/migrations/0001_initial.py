import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='TaskLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('task_description', models.TextField(verbose_name='task description')),
                ('duration', models.PositiveIntegerField(default=0, help_text='Time spent, in minutes.', verbose_name='duration')),
                ('tags', models.JSONField(blank=True, default=list, verbose_name='tags')),
                ('points', models.PositiveIntegerField(default=0, help_text='XP awarded on completion, computed at creation time.', verbose_name='points')),
                ('ai_feedback', models.TextField(blank=True, default='', verbose_name='AI feedback')),
                ('scoring_method', models.CharField(blank=True, default='', help_text='Which layer produced the points: ai_scored, cached or fallback.', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed')], default='pending', max_length=10, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('completed_at', models.DateTimeField(blank=True, null=True, verbose_name='completed at')),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='task_logs', to='accounts.account', verbose_name='account')),
            ],
            options={
                'verbose_name': 'Task log',
                'verbose_name_plural': 'Task logs',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['account', 'status'], name='tasklog_account_status_idx')],
            },
        ),
    ]
