from django.db import models
from django.conf import settings

class Disaster(models.Model):
    """
    A disaster event admins coordinate relief for.
    Urgency drives how the ranking engine weights volunteer scores.
    """
    class Urgency(models.TextChoices):
        CRITICAL = "critical", "Critical"
        HIGH = "high", "High"
        MEDIUM = "medium", "Medium"
        LOW = "low", "Low"

    name = models.CharField(max_length=255)
    disaster_type = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    urgency = models.CharField(max_length=20, choices=Urgency.choices, default=Urgency.MEDIUM)

    # Place names are geocoded into lat/lng on create when coordinates are missing
    city = models.CharField(max_length=120, blank=True)
    state = models.CharField(max_length=120, blank=True)
    country = models.CharField(max_length=120, blank=True)
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='disasters')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.urgency})"

class Task(models.Model):
    """
    A unit of relief work inside a disaster.
    Lifecycle: Open -> In Progress -> Completed (or Cancelled).
    """
    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        CRITICAL = "critical", "Critical"

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        IN_PROGRESS = "in_progress", "In Progress"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    disaster = models.ForeignKey(Disaster, on_delete=models.CASCADE, related_name='tasks')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    # Free-text labels, e.g. ["First Aid", "Driving"]. Empty = no specific skills needed.
    required_skills = models.JSONField(default=list, blank=True)
    priority = models.CharField(max_length=20, choices=Priority.choices, default=Priority.MEDIUM)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.OPEN)

    # Optional task-specific location; ranking falls back to the disaster's
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)
    address = models.TextField(blank=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_tasks')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Task #{self.id} - {self.title}"

class Volunteer(models.Model):
    """
    Volunteer profile the ranking engine scores.
    """
    class Availability(models.TextChoices):
        AVAILABLE = "available", "Available"
        BUSY = "busy", "Busy"
        OFFLINE = "offline", "Offline"

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, null=True, blank=True, related_name='volunteer_profile')
    name = models.CharField(max_length=255, default="Volunteer")
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=40, blank=True)

    skills = models.JSONField(default=list, blank=True)
    availability = models.CharField(max_length=20, choices=Availability.choices, default=Availability.AVAILABLE)

    city = models.CharField(max_length=120, blank=True)
    state = models.CharField(max_length=120, blank=True)
    country = models.CharField(max_length=120, blank=True)
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)

    # Starts at 100 and grows with completed tasks; not capped here, the ranker clamps it
    reliability_score = models.FloatField(default=100)
    total_assigned_tasks = models.PositiveIntegerField(default=0)
    total_completed_tasks = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.availability})"

class TaskAssignment(models.Model):
    """
    Links a volunteer to a task. ai_score is set only for auto-assignments.
    """
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ACCEPTED = "accepted", "Accepted"
        DECLINED = "declined", "Declined"
        COMPLETED = "completed", "Completed"

    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='assignments')
    volunteer = models.ForeignKey(Volunteer, on_delete=models.CASCADE, related_name='assignments')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    ai_score = models.IntegerField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Assignment #{self.id} - task {self.task_id} / volunteer {self.volunteer_id} ({self.status})"

class Update(models.Model):
    """
    Announcement on the coordination board. Admins publish them by hand and
    task creation posts one automatically.
    """
    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        CRITICAL = "critical", "Critical"

    title = models.CharField(max_length=255)
    message = models.TextField()
    priority = models.CharField(max_length=20, choices=Priority.choices)
    category = models.CharField(max_length=100, default="General")
    disaster = models.ForeignKey(Disaster, on_delete=models.SET_NULL, null=True, blank=True, related_name='updates')

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='updates')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} ({self.priority})"
