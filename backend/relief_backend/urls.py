from django.contrib import admin
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from relief.views import DisasterViewSet, TaskViewSet, VolunteerViewSet, AssignmentViewSet, AIViewSet, UpdateViewSet

router = DefaultRouter()
router.register(r'disasters', DisasterViewSet)
router.register(r'tasks', TaskViewSet, basename='task')
router.register(r'volunteers', VolunteerViewSet, basename='volunteer')
router.register(r'assignments', AssignmentViewSet, basename='assignment')
router.register(r'updates', UpdateViewSet, basename='update')
router.register(r'ai', AIViewSet, basename='ai')

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include(router.urls)),
]
