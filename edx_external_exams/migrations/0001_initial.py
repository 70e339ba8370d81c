from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import model_utils.fields
import simple_history.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ExternalExam',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name='created')),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name='modified')),
                ('course_id', models.CharField(db_index=True, max_length=255)),
                ('content_id', models.CharField(db_index=True, max_length=255)),
                ('exam_name', models.TextField()),
                ('credentials_id', models.CharField(blank=True, max_length=255, null=True)),
                ('exam_module', models.CharField(blank=True, max_length=255, null=True)),
                ('remote_proctor', models.CharField(blank=True, max_length=255, null=True)),
                ('remote_proctor_options', models.JSONField(blank=True, default=dict)),
                ('use_remote_certificate', models.BooleanField(default=False)),
                ('import_external_attempts', models.BooleanField(default=False)),
                ('import_only', models.BooleanField(default=False, verbose_name='Import Only')),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'db_table': 'external_exams_externalexam',
                'unique_together': {('course_id', 'content_id')},
            },
        ),
        migrations.CreateModel(
            name='ExternalExamResultsCheck',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name='created')),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name='modified')),
                ('hook', models.CharField(max_length=255)),
                ('exam_id', models.IntegerField()),
                ('user_id', models.IntegerField()),
                ('attempt_id', models.CharField(max_length=255)),
                ('interval_seconds', models.IntegerField()),
                ('next_run_at', models.DateTimeField(db_index=True)),
                ('last_run_at', models.DateTimeField(null=True)),
            ],
            options={
                'db_table': 'external_exams_externalexamresultscheck',
                'unique_together': {('hook', 'exam_id', 'user_id', 'attempt_id')},
            },
        ),
        migrations.CreateModel(
            name='ExternalExamParticipant',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name='created')),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name='modified')),
                ('credentials_id', models.CharField(max_length=255)),
                ('participant_id', models.CharField(max_length=255)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'external_exams_externalexamparticipant',
                'unique_together': {('user', 'credentials_id')},
            },
        ),
        migrations.CreateModel(
            name='ExternalExamAttempt',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name='created')),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name='modified')),
                ('attempt_id', models.CharField(db_index=True, max_length=255)),
                ('secret_key', models.CharField(max_length=64)),
                ('status', models.CharField(max_length=64)),
                ('participant_id', models.CharField(blank=True, max_length=255, null=True)),
                ('booking_id', models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ('attendance_id', models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ('content_revision_id', models.CharField(max_length=255)),
                ('valid_until', models.DateTimeField(null=True)),
                ('started_at', models.DateTimeField(null=True)),
                ('completed_at', models.DateTimeField(null=True)),
                ('time_spent_seconds', models.IntegerField(null=True)),
                ('passed', models.BooleanField(null=True)),
                ('points', models.FloatField(null=True)),
                ('total_points', models.FloatField(null=True)),
                ('percentage', models.FloatField(null=True)),
                ('question_count', models.IntegerField(null=True)),
                ('correct_count', models.IntegerField(null=True)),
                ('certificate_url', models.CharField(blank=True, max_length=2048, null=True)),
                ('has_results', models.BooleanField(default=False)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to='edx_external_exams.externalexam')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'external exam attempt',
                'db_table': 'external_exams_externalexamattempt',
                'unique_together': {('user', 'attempt_id')},
            },
        ),
        migrations.CreateModel(
            name='HistoricalExternalExam',
            fields=[
                ('id', models.IntegerField(auto_created=True, blank=True, db_index=True, verbose_name='ID')),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name='created')),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name='modified')),
                ('course_id', models.CharField(db_index=True, max_length=255)),
                ('content_id', models.CharField(db_index=True, max_length=255)),
                ('exam_name', models.TextField()),
                ('credentials_id', models.CharField(blank=True, max_length=255, null=True)),
                ('exam_module', models.CharField(blank=True, max_length=255, null=True)),
                ('remote_proctor', models.CharField(blank=True, max_length=255, null=True)),
                ('remote_proctor_options', models.JSONField(blank=True, default=dict)),
                ('use_remote_certificate', models.BooleanField(default=False)),
                ('import_external_attempts', models.BooleanField(default=False)),
                ('import_only', models.BooleanField(default=False, verbose_name='Import Only')),
                ('is_active', models.BooleanField(default=True)),
                ('history_id', models.AutoField(primary_key=True, serialize=False)),
                ('history_date', models.DateTimeField(db_index=True)),
                ('history_change_reason', models.CharField(max_length=100, null=True)),
                ('history_type', models.CharField(choices=[('+', 'Created'), ('~', 'Changed'), ('-', 'Deleted')], max_length=1)),
                ('history_user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'historical external exam',
                'db_table': 'external_exams_externalexam_history',
                'ordering': ('-history_date', '-history_id'),
                'get_latest_by': ('history_date', 'history_id'),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name='HistoricalExternalExamAttempt',
            fields=[
                ('id', models.IntegerField(auto_created=True, blank=True, db_index=True, verbose_name='ID')),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name='created')),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name='modified')),
                ('attempt_id', models.CharField(db_index=True, max_length=255)),
                ('secret_key', models.CharField(max_length=64)),
                ('status', models.CharField(max_length=64)),
                ('participant_id', models.CharField(blank=True, max_length=255, null=True)),
                ('booking_id', models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ('attendance_id', models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ('content_revision_id', models.CharField(max_length=255)),
                ('valid_until', models.DateTimeField(null=True)),
                ('started_at', models.DateTimeField(null=True)),
                ('completed_at', models.DateTimeField(null=True)),
                ('time_spent_seconds', models.IntegerField(null=True)),
                ('passed', models.BooleanField(null=True)),
                ('points', models.FloatField(null=True)),
                ('total_points', models.FloatField(null=True)),
                ('percentage', models.FloatField(null=True)),
                ('question_count', models.IntegerField(null=True)),
                ('correct_count', models.IntegerField(null=True)),
                ('certificate_url', models.CharField(blank=True, max_length=2048, null=True)),
                ('has_results', models.BooleanField(default=False)),
                ('history_id', models.AutoField(primary_key=True, serialize=False)),
                ('history_date', models.DateTimeField(db_index=True)),
                ('history_change_reason', models.CharField(max_length=100, null=True)),
                ('history_type', models.CharField(choices=[('+', 'Created'), ('~', 'Changed'), ('-', 'Deleted')], max_length=1)),
                ('exam', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='edx_external_exams.externalexam')),
                ('history_user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('user', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'historical external exam attempt',
                'db_table': 'external_exams_externalexamattempt_history',
                'ordering': ('-history_date', '-history_id'),
                'get_latest_by': ('history_date', 'history_id'),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
