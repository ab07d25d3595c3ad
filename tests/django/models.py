from django.db import models


class Task(models.Model):
    id = models.CharField(primary_key=True, max_length=64)
    userId = models.CharField(max_length=64)
    title = models.TextField(null=True)
    priority = models.IntegerField(null=True)
    completed = models.BooleanField(default=False)
    createdAt = models.DateTimeField()
    updatedAt = models.DateTimeField()

    def __repr__(self):  # pragma: no cover
        return f"Task(id={self.id}, title={self.title})"


class WaterIntake(models.Model):
    id = models.CharField(primary_key=True, max_length=64)
    userId = models.CharField(max_length=64)
    amount = models.IntegerField(null=True)
    createdAt = models.DateTimeField()
    updatedAt = models.DateTimeField()
