from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SyncConflictRecord",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=255)),
                ("entity_type", models.CharField(max_length=100)),
                ("entity_id", models.CharField(max_length=255)),
                ("local_version", models.JSONField(default=dict)),
                ("server_version", models.JSONField(default=dict)),
                (
                    "strategy",
                    models.CharField(
                        choices=[
                            ("LOCAL_WINS", "LOCAL_WINS"),
                            ("SERVER_WINS", "SERVER_WINS"),
                            ("LATEST_WINS", "LATEST_WINS"),
                            ("MERGE", "MERGE"),
                            ("MANUAL", "MANUAL"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("resolved_version", models.JSONField(null=True)),
                ("created_at", models.DateTimeField()),
                ("resolved_at", models.DateTimeField(null=True)),
                (
                    "conflict_type",
                    models.CharField(
                        choices=[
                            ("CREATE_CREATE", "CREATE_CREATE"),
                            ("UPDATE_UPDATE", "UPDATE_UPDATE"),
                            ("UPDATE_DELETE", "UPDATE_DELETE"),
                            ("DELETE_UPDATE", "DELETE_UPDATE"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="SyncQueueRecord",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=255)),
                ("operation_id", models.CharField(max_length=255)),
                (
                    "operation",
                    models.CharField(
                        choices=[
                            ("CREATE", "Create"),
                            ("UPDATE", "Update"),
                            ("DELETE", "Delete"),
                        ],
                        max_length=10,
                    ),
                ),
                ("entity_type", models.CharField(max_length=100)),
                ("entity_id", models.CharField(max_length=255)),
                ("payload", models.JSONField(default=dict)),
                ("timestamp", models.DateTimeField()),
                ("synced", models.BooleanField(default=False)),
                ("conflict_id", models.CharField(max_length=64, null=True)),
            ],
            options={
                "ordering": ["timestamp"],
            },
        ),
        migrations.AddIndex(
            model_name="syncconflictrecord",
            index=models.Index(fields=["user_id"], name="resync_sync_user_id_5f0c1e_idx"),
        ),
        migrations.AddIndex(
            model_name="syncconflictrecord",
            index=models.Index(
                fields=["entity_type", "entity_id"], name="resync_sync_entity__8a2d4b_idx"
            ),
        ),
        migrations.AddIndex(
            model_name="syncconflictrecord",
            index=models.Index(fields=["resolved_at"], name="resync_sync_resolve_3c7e90_idx"),
        ),
        migrations.AddIndex(
            model_name="syncqueuerecord",
            index=models.Index(
                fields=["user_id", "synced"], name="resync_sync_user_id_b41f27_idx"
            ),
        ),
        migrations.AddIndex(
            model_name="syncqueuerecord",
            index=models.Index(fields=["timestamp"], name="resync_sync_timesta_6e9a12_idx"),
        ),
        migrations.AddIndex(
            model_name="syncqueuerecord",
            index=models.Index(fields=["conflict_id"], name="resync_sync_conflic_d07b35_idx"),
        ),
    ]
