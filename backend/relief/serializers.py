import logging

from rest_framework import serializers

from routing.nominatim_client import GeocodingError, NominatimClient
from .models import Disaster, Task, Volunteer, TaskAssignment, Update

logger = logging.getLogger(__name__)

class GeocodeOnCreateMixin:
    """
    Fills latitude/longitude from city/state/country when the client sent none.
    Geocoding is best-effort: a lookup failure never blocks the create.
    """
    geocoder_class = NominatimClient

    def create(self, validated_data):
        if validated_data.get('latitude') is None or validated_data.get('longitude') is None:
            city = validated_data.get('city')
            state = validated_data.get('state')
            country = validated_data.get('country')
            if city or state or country:
                try:
                    lat, lng = self.geocoder_class().geocode(city, state, country)
                    validated_data['latitude'] = lat
                    validated_data['longitude'] = lng
                except GeocodingError as exc:
                    logger.warning("Geocoding failed for %s, %s, %s: %s", city, state, country, exc)
        return super().create(validated_data)

class DisasterSerializer(GeocodeOnCreateMixin, serializers.ModelSerializer):
    class Meta:
        model = Disaster
        fields = '__all__'
        read_only_fields = ['created_by', 'created_at']

    def to_internal_value(self, data):
        # Accept "CRITICAL", "Critical", ... before choice validation runs
        if hasattr(data, 'copy') and isinstance(data.get('urgency'), str):
            data = data.copy()
            data['urgency'] = data['urgency'].lower()
        return super().to_internal_value(data)

class TaskSerializer(serializers.ModelSerializer):
    required_skills = serializers.ListField(child=serializers.CharField(), required=False, default=list)

    class Meta:
        model = Task
        fields = '__all__'
        read_only_fields = ['created_by', 'created_at', 'updated_at', 'status']

class VolunteerSerializer(GeocodeOnCreateMixin, serializers.ModelSerializer):
    skills = serializers.ListField(child=serializers.CharField(), required=False, default=list)

    class Meta:
        model = Volunteer
        fields = '__all__'
        # Counters and reliability are maintained by the assignment workflow
        read_only_fields = ['user', 'reliability_score', 'total_assigned_tasks', 'total_completed_tasks', 'created_at']

class TaskAssignmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskAssignment
        fields = '__all__'
        read_only_fields = ['task', 'volunteer', 'ai_score', 'created_at', 'updated_at']

class UpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Update
        fields = '__all__'
        read_only_fields = ['created_by', 'created_at']

class AvailabilityRequestSerializer(serializers.Serializer):
    availability = serializers.ChoiceField(choices=Volunteer.Availability.choices)

class RankVolunteersRequestSerializer(serializers.Serializer):
    task_id = serializers.IntegerField()
    top_n = serializers.IntegerField(required=False, default=5, min_value=1)

class AutoAssignRequestSerializer(serializers.Serializer):
    task_id = serializers.IntegerField()
    number_of_volunteers = serializers.IntegerField(required=False, default=3, min_value=1)

class AssignVolunteersRequestSerializer(serializers.Serializer):
    volunteer_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)

class StatusRequestSerializer(serializers.Serializer):
    status = serializers.CharField()
