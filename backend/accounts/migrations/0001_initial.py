from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Account',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('external_id', models.CharField(help_text='Identifier issued by the identity provider.', max_length=255, unique=True, verbose_name='external identity')),
                ('email', models.EmailField(max_length=254, unique=True, verbose_name='email address')),
                ('display_name', models.CharField(blank=True, default='', max_length=150, verbose_name='display name')),
                ('total_points', models.PositiveIntegerField(default=0, verbose_name='total points')),
                ('daily_xp', models.PositiveIntegerField(default=0, help_text='XP earned on the UTC date of last_log_date.', verbose_name='daily XP')),
                ('daily_goal', models.PositiveIntegerField(default=500, verbose_name='daily goal')),
                ('streak', models.PositiveIntegerField(default=0, verbose_name='streak')),
                ('last_log_date', models.DateTimeField(blank=True, null=True, verbose_name='last activity')),
                ('last_insight_feedback', models.TextField(blank=True, default='')),
                ('last_insight_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('last_insight_generated_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
            ],
            options={
                'verbose_name': 'account',
                'verbose_name_plural': 'accounts',
                'ordering': ['created_at'],
            },
        ),
    ]
