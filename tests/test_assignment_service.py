import logging

import pytest

from disasters.models import AssignmentStatus, Disaster, Task, TaskStatus
from dispatch.assignment_service import (
    AssignmentNotFoundError,
    AssignmentService,
    DisasterNotFoundError,
    NoVolunteersError,
    TaskNotFoundError,
)
from dispatch.state_machines import AssignmentStateException, TaskStateException
from dispatch.store import InMemoryRecordStore
from volunteers.models import Volunteer

@pytest.fixture
def store():
    store = InMemoryRecordStore()
    store.add_disaster(Disaster.new("d1", "Canyon Wildfire", "critical", lat=34.06, lng=-118.25))
    store.add_task(Task.new("t1", "Evacuation transport", "d1", ["Driving"]))
    store.add_task(Task.new("t_orphan", "Lost task", "d_missing", []))

    store.add_volunteer(Volunteer.new("v_near", "Near", skills=["Driving"], availability="available", lat=34.05, lng=-118.24))
    store.add_volunteer(Volunteer.new("v_mid", "Mid", skills=["Driving"], availability="available", lat=34.30, lng=-118.25))
    store.add_volunteer(Volunteer.new("v_far", "Far", skills=["Cooking"], availability="available", lat=36.0, lng=-120.0))
    store.add_volunteer(Volunteer.new("v_busy", "Busy", skills=["Driving"], availability="busy", lat=34.06, lng=-118.25))
    store.add_volunteer(Volunteer.new("v_off", "Offline", skills=["Driving"], availability="offline", lat=34.06, lng=-118.25))
    return store

@pytest.fixture
def service(store):
    return AssignmentService(store)


# --- Suggestions ---

def test_suggest_volunteers_ranks_every_volunteer(service):
    suggestion = service.suggest_volunteers("t1", top_n=10)

    assert suggestion.total_volunteers == 5
    assert len(suggestion.ranked_volunteers) == 5
    assert suggestion.ranked_volunteers[0].volunteer_id == "v_near"

    payload = suggestion.to_dict()
    assert payload["task_title"] == "Evacuation transport"
    assert payload["disaster"] == {"name": "Canyon Wildfire", "urgency": "critical"}

def test_suggest_volunteers_defaults_to_top_five(service, store):
    for index in range(4):
        store.add_volunteer(Volunteer.new(f"extra_{index}", availability="available"))
    assert len(service.suggest_volunteers("t1").ranked_volunteers) == 5

def test_suggest_with_empty_pool():
    store = InMemoryRecordStore()
    store.add_disaster(Disaster.new("d1", "Quake", "high", lat=1.0, lng=1.0))
    store.add_task(Task.new("t1", "Search", "d1"))

    suggestion = AssignmentService(store).suggest_volunteers("t1")
    assert suggestion.ranked_volunteers == []
    assert suggestion.total_volunteers == 0

def test_suggest_unknown_task(service):
    with pytest.raises(TaskNotFoundError):
        service.suggest_volunteers("nope")

def test_suggest_task_without_disaster(service):
    with pytest.raises(DisasterNotFoundError):
        service.suggest_volunteers("t_orphan")

def test_task_location_is_preferred_over_disaster(service, store):
    store.add_task(Task.new("t_far", "Remote depot", "d1", ["Driving"], lat=36.0, lng=-120.0))
    ranked = service.suggest_volunteers("t_far", top_n=10).ranked_volunteers
    far = next(result for result in ranked if result.volunteer_id == "v_far")
    assert far.distance_km == 0.0

def test_missing_location_everywhere_is_logged(caplog):
    store = InMemoryRecordStore()
    store.add_disaster(Disaster.new("d1", "Unknown", "low"))
    store.add_task(Task.new("t1", "Anything", "d1"))
    store.add_volunteer(Volunteer.new("v1", availability="available", lat=1.0, lng=1.0))

    with caplog.at_level(logging.WARNING, logger="dispatch.assignment_service"):
        [result] = AssignmentService(store).suggest_volunteers("t1").ranked_volunteers

    assert result.distance_km == 9999.0
    assert "no location data" in caplog.text


# --- Auto assignment ---

def test_auto_assign_only_uses_available_volunteers(service, store):
    result = service.auto_assign("t1", number_of_volunteers=3)

    assigned_ids = [ranked.volunteer_id for ranked in result.assigned_volunteers]
    assert assigned_ids[0] == "v_near"
    assert set(assigned_ids) == {"v_near", "v_mid", "v_far"}

    # Pending rows carrying the final score
    assert len(result.assignments) == 3
    for assignment, ranked in zip(result.assignments, result.assigned_volunteers):
        assert assignment.status == AssignmentStatus.PENDING
        assert assignment.task_id == "t1"
        assert assignment.volunteer_id == ranked.volunteer_id
        assert assignment.ai_score == ranked.scores.final

    assert len(store.assignments_for_task("t1")) == 3
    assert result.counter_failures == []
    for volunteer_id in assigned_ids:
        assert store.get_volunteer(volunteer_id).total_assigned_tasks == 1
    assert store.get_volunteer("v_busy").total_assigned_tasks == 0

def test_auto_assign_caps_at_requested_number(service):
    result = service.auto_assign("t1", number_of_volunteers=1)
    assert [ranked.volunteer_id for ranked in result.assigned_volunteers] == ["v_near"]

def test_auto_assign_without_available_volunteers():
    store = InMemoryRecordStore()
    store.add_disaster(Disaster.new("d1", "Flood", "low", lat=1.0, lng=1.0))
    store.add_task(Task.new("t1", "Sandbags", "d1"))
    store.add_volunteer(Volunteer.new("v1", availability="busy"))

    with pytest.raises(NoVolunteersError):
        AssignmentService(store).auto_assign("t1")
    assert store.assignments_for_task("t1") == []

def test_auto_assign_unknown_task(service):
    with pytest.raises(TaskNotFoundError):
        service.auto_assign("nope")

class FlakyCounterStore(InMemoryRecordStore):
    def increment_assigned_tasks(self, volunteer_id):
        raise RuntimeError("counter service down")

def test_counter_failures_do_not_undo_assignments(caplog):
    store = FlakyCounterStore()
    store.add_disaster(Disaster.new("d1", "Flood", "low", lat=1.0, lng=1.0))
    store.add_task(Task.new("t1", "Sandbags", "d1"))
    store.add_volunteer(Volunteer.new("v1", availability="available", lat=1.0, lng=1.0))

    with caplog.at_level(logging.WARNING, logger="dispatch.assignment_service"):
        result = AssignmentService(store).auto_assign("t1")

    assert len(result.assignments) == 1
    assert result.counter_failures == ["v1"]
    assert len(store.assignments_for_task("t1")) == 1
    assert "non-critical" in caplog.text


# --- Manual assignment ---

def test_manual_assignment(service, store):
    assignments = service.assign_volunteers("t1", ["v_busy", "v_off"])

    assert [a.volunteer_id for a in assignments] == ["v_busy", "v_off"]
    assert all(a.status == AssignmentStatus.PENDING for a in assignments)
    assert all(a.ai_score is None for a in assignments)
    assert store.get_volunteer("v_busy").total_assigned_tasks == 1

@pytest.mark.parametrize("volunteer_ids", [[], None, "v_busy"])
def test_manual_assignment_needs_a_list(service, volunteer_ids):
    with pytest.raises(ValueError):
        service.assign_volunteers("t1", volunteer_ids)

def test_manual_assignment_unknown_task(service):
    with pytest.raises(TaskNotFoundError):
        service.assign_volunteers("nope", ["v_near"])


# --- Status updates ---

def test_volunteer_accepts_then_completes(service, store):
    [assignment] = service.assign_volunteers("t1", ["v_near"])

    accepted = service.update_assignment_status(assignment.id, "v_near", "accepted")
    assert accepted.status == AssignmentStatus.ACCEPTED
    assert store.get_volunteer("v_near").total_completed_tasks == 0

    completed = service.update_assignment_status(assignment.id, "v_near", "completed")
    assert completed.status == AssignmentStatus.COMPLETED
    assert store.get_assignment(assignment.id).status == AssignmentStatus.COMPLETED

    volunteer = store.get_volunteer("v_near")
    assert volunteer.total_completed_tasks == 1
    # Stored value is allowed past 100; ranking clamps it
    assert volunteer.reliability_score == 105

def test_other_volunteers_cannot_touch_an_assignment(service):
    [assignment] = service.assign_volunteers("t1", ["v_near"])
    with pytest.raises(AssignmentNotFoundError):
        service.update_assignment_status(assignment.id, "v_mid", "accepted")

def test_unknown_assignment(service):
    with pytest.raises(AssignmentNotFoundError):
        service.update_assignment_status("missing", "v_near", "accepted")

def test_invalid_assignment_transition(service):
    [assignment] = service.assign_volunteers("t1", ["v_near"])
    service.update_assignment_status(assignment.id, "v_near", "declined")
    with pytest.raises(AssignmentStateException):
        service.update_assignment_status(assignment.id, "v_near", "accepted")

def test_update_task_status(service, store):
    updated = service.update_task_status("t1", "in_progress")
    assert updated.status == TaskStatus.IN_PROGRESS
    assert store.get_task("t1").status == TaskStatus.IN_PROGRESS

    service.update_task_status("t1", "completed")
    with pytest.raises(TaskStateException):
        service.update_task_status("t1", "open")

def test_update_task_status_validation(service):
    with pytest.raises(TaskStateException):
        service.update_task_status("t1", "paused")
    with pytest.raises(TaskNotFoundError):
        service.update_task_status("nope", "completed")
