import logging

from django.db import DatabaseError, transaction
from rest_framework import mixins, viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from dispatch.assignment_service import (
    AssignmentService,
    AssignmentNotFoundError,
    DisasterNotFoundError,
    NoVolunteersError,
    TaskNotFoundError,
)
from dispatch.state_machines import AssignmentStateException, TaskStateException
from .models import Disaster, Task, Volunteer, TaskAssignment, Update
from .serializers import (
    DisasterSerializer,
    TaskSerializer,
    VolunteerSerializer,
    TaskAssignmentSerializer,
    UpdateSerializer,
    AvailabilityRequestSerializer,
    RankVolunteersRequestSerializer,
    AutoAssignRequestSerializer,
    AssignVolunteersRequestSerializer,
    StatusRequestSerializer,
)
from .store import DjangoRecordStore

logger = logging.getLogger(__name__)

def build_assignment_service():
    return AssignmentService(DjangoRecordStore())

def error_response(exc):
    """
    Maps workflow exceptions onto HTTP responses.
    """
    if isinstance(exc, (TaskNotFoundError, AssignmentNotFoundError, NoVolunteersError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (DisasterNotFoundError, AssignmentStateException, TaskStateException, ValueError)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        raise exc
    return Response({"error": str(exc)}, status=code)

def first_error(serializer):
    """Flatten DRF's field errors into the single-message body the dashboard expects."""
    field, messages = next(iter(serializer.errors.items()))
    if field == 'non_field_errors':
        return str(messages[0])
    return f"{field}: {messages[0]}"

def announce_new_task(task, user):
    """
    Posts a "New Task Created" update for the board. Best-effort: a failure is
    logged and the task creation still succeeds.
    """
    disaster = task.disaster
    try:
        with transaction.atomic():
            Update.objects.create(
                title=f"New Task Created: {task.title}",
                message=f"A new {task.priority} priority task has been created for {disaster.name}: {task.description or task.title}",
                priority=task.priority,
                category="Task Assignment",
                disaster=disaster,
                created_by=user,
            )
    except DatabaseError as exc:
        logger.warning("Automatic update for task %s failed (non-critical): %s", task.pk, exc)

class IsAdminOrReadOnly(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_staff

class IsProfileOwnerOrAdmin(permissions.BasePermission):
    def has_object_permission(self, request, view, obj):
        return request.user.is_staff or obj.user_id == request.user.id

class DisasterViewSet(viewsets.ModelViewSet):
    """
    - Authenticated: List/Retrieve
    - Admin: Create/Update/Delete
    """
    queryset = Disaster.objects.all().order_by('-created_at')
    serializer_class = DisasterSerializer
    permission_classes = [IsAdminOrReadOnly]

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

class TaskViewSet(viewsets.ModelViewSet):
    """
    Handles Task CRUD plus manual assignment and status changes.
    Optional filters: ?disaster_id=<id>&status=<status>
    """
    serializer_class = TaskSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        queryset = Task.objects.select_related('disaster').order_by('-created_at')
        disaster_id = self.request.query_params.get('disaster_id')
        task_status = self.request.query_params.get('status')
        if disaster_id:
            queryset = queryset.filter(disaster_id=disaster_id)
        if task_status:
            queryset = queryset.filter(status=task_status)
        return queryset

    def perform_create(self, serializer):
        task = serializer.save(created_by=self.request.user)
        announce_new_task(task, self.request.user)

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        """
        Admin action to assign hand-picked volunteers to this task.
        """
        payload = AssignVolunteersRequestSerializer(data=request.data)
        if not payload.is_valid():
            return Response({"error": "volunteer_ids array is required"}, status=status.HTTP_400_BAD_REQUEST)

        volunteer_ids = payload.validated_data['volunteer_ids']
        known = set(Volunteer.objects.filter(pk__in=volunteer_ids).values_list('pk', flat=True))
        missing = [volunteer_id for volunteer_id in volunteer_ids if volunteer_id not in known]
        if missing:
            return Response({"error": f"Unknown volunteer ids: {missing}"}, status=status.HTTP_400_BAD_REQUEST)

        logger.info("Admin %s assigning task %s to volunteers %s", request.user.pk, pk, volunteer_ids)
        try:
            assignments = build_assignment_service().assign_volunteers(pk, volunteer_ids)
        except (TaskNotFoundError, ValueError) as exc:
            return error_response(exc)

        return Response({
            "message": "Volunteers assigned successfully",
            "assignments": [assignment.to_dict() for assignment in assignments],
        })

    @action(detail=True, methods=['patch'], url_path='status')
    def update_status(self, request, pk=None):
        payload = StatusRequestSerializer(data=request.data)
        if not payload.is_valid():
            return Response({"error": "Invalid status"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            task = build_assignment_service().update_task_status(pk, payload.validated_data['status'])
        except (TaskNotFoundError, TaskStateException) as exc:
            return error_response(exc)

        return Response({"message": "Task status updated", "task": TaskSerializer(Task.objects.get(pk=task.id)).data})

class VolunteerViewSet(viewsets.ModelViewSet):
    """
    Volunteers register and manage their own profile; admins list and manage every profile.
    Non-admins only ever see their own row.
    """
    serializer_class = VolunteerSerializer
    permission_classes = [permissions.IsAuthenticated, IsProfileOwnerOrAdmin]

    def get_permissions(self):
        if self.action == 'list':
            return [permissions.IsAdminUser()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = Volunteer.objects.all().order_by('pk')
        if self.request.user.is_staff:
            return queryset
        return queryset.filter(user=self.request.user)

    def perform_create(self, serializer):
        user = self.request.user
        if user.is_staff:
            serializer.save()
            return
        if Volunteer.objects.filter(user=user).exists():
            raise ValidationError({"error": "Volunteer profile already exists"})
        serializer.save(user=user, email=serializer.validated_data.get('email') or user.email)

    @action(detail=False, methods=['get'])
    def me(self, request):
        volunteer = Volunteer.objects.filter(user=request.user).first()
        if volunteer is None:
            return Response({"error": "Profile not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"volunteer": self.get_serializer(volunteer).data})

    @action(detail=False, methods=['patch'])
    def availability(self, request):
        """
        The signed-in volunteer flips their own availability (available / busy / offline).
        """
        payload = AvailabilityRequestSerializer(data=request.data)
        if not payload.is_valid():
            return Response({"error": "Invalid availability status"}, status=status.HTTP_400_BAD_REQUEST)

        volunteer = Volunteer.objects.filter(user=request.user).first()
        if volunteer is None:
            return Response({"error": "Profile not found"}, status=status.HTTP_404_NOT_FOUND)

        volunteer.availability = payload.validated_data['availability']
        volunteer.save(update_fields=['availability'])
        return Response({"message": "Availability updated", "volunteer": self.get_serializer(volunteer).data})

class AssignmentViewSet(viewsets.GenericViewSet):
    """
    Volunteer-facing assignments: list my assignments, accept/decline/complete one.
    """
    serializer_class = TaskAssignmentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return TaskAssignment.objects.filter(volunteer__user=self.request.user).select_related('task').order_by('-created_at')

    def list(self, request):
        return Response({"assignments": self.get_serializer(self.get_queryset(), many=True).data})

    def partial_update(self, request, pk=None):
        payload = StatusRequestSerializer(data=request.data)
        if not payload.is_valid():
            return Response({"error": "Invalid status"}, status=status.HTTP_400_BAD_REQUEST)

        volunteer = Volunteer.objects.filter(user=request.user).first()
        if volunteer is None:
            return Response({"error": "Volunteer profile not found"}, status=status.HTTP_404_NOT_FOUND)

        try:
            assignment = build_assignment_service().update_assignment_status(pk, volunteer.pk, payload.validated_data['status'])
        except (AssignmentNotFoundError, AssignmentStateException) as exc:
            return error_response(exc)

        return Response({"message": "Assignment updated", "assignment": assignment.to_dict()})

class AIViewSet(viewsets.ViewSet):
    """
    Ranking endpoints (Admin only).
    """
    permission_classes = [permissions.IsAdminUser]

    @action(detail=False, methods=['post'], url_path='rank-volunteers')
    def rank_volunteers(self, request):
        """
        Ranked volunteer suggestions for a task, for human review.
        """
        payload = RankVolunteersRequestSerializer(data=request.data)
        if not payload.is_valid():
            return Response({"error": first_error(payload)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            suggestion = build_assignment_service().suggest_volunteers(
                payload.validated_data['task_id'],
                top_n=payload.validated_data['top_n'],
            )
        except (TaskNotFoundError, DisasterNotFoundError) as exc:
            return error_response(exc)

        body = suggestion.to_dict()
        if suggestion.total_volunteers == 0:
            body["message"] = "No volunteers available"
        else:
            body["message"] = "Volunteers ranked successfully"
        return Response(body)

    @action(detail=False, methods=['post'], url_path='auto-assign')
    def auto_assign(self, request):
        """
        Assign the top-ranked available volunteers to a task as pending assignments.
        """
        payload = AutoAssignRequestSerializer(data=request.data)
        if not payload.is_valid():
            return Response({"error": first_error(payload)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = build_assignment_service().auto_assign(
                payload.validated_data['task_id'],
                number_of_volunteers=payload.validated_data['number_of_volunteers'],
            )
        except (TaskNotFoundError, DisasterNotFoundError, NoVolunteersError) as exc:
            return error_response(exc)

        body = result.to_dict()
        body["message"] = "Task auto-assigned successfully"
        return Response(body)

class UpdateViewSet(mixins.CreateModelMixin,
                    mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    mixins.DestroyModelMixin,
                    viewsets.GenericViewSet):
    """
    Announcement board.
    - Authenticated: List/Retrieve, filters ?priority=&category=&disaster_id=
    - Admin: Publish/Delete
    """
    serializer_class = UpdateSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        queryset = Update.objects.select_related('disaster').order_by('-created_at')
        for param, field in (('priority', 'priority'), ('category', 'category'), ('disaster_id', 'disaster_id')):
            value = self.request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{field: value})
        return queryset

    def list(self, request):
        return Response({"updates": self.get_serializer(self.get_queryset(), many=True).data})

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": first_error(serializer)}, status=status.HTTP_400_BAD_REQUEST)
        serializer.save(created_by=request.user)
        return Response({"message": "Update published successfully", "update": serializer.data}, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        self.get_object().delete()
        return Response({"message": "Update deleted successfully"})
