import pytest

from disasters.models import Disaster, Task
from volunteers.models import AvailabilityStatus, Volunteer
from volunteers.selection import (
    get_top_volunteers,
    rank_volunteers,
    resolve_target_location,
)

@pytest.fixture
def critical_disaster():
    return Disaster.new("d1", "Canyon Wildfire", "critical", lat=34.06, lng=-118.25)

@pytest.fixture
def driving_task():
    # No task-specific location: distances are measured from the disaster
    return Task.new("t1", "Evacuation transport", "d1", ["Driving"])

@pytest.fixture
def volunteer_pool():
    return [
        Volunteer.new("far", "Far Driver", skills=["Driving"], availability="available", lat=36.0, lng=-120.0),
        Volunteer.new("near", "Near Driver", skills=["Driving"], availability="available", lat=34.05, lng=-118.24),
        Volunteer.new("busy", "Busy Driver", skills=["Driving"], availability="busy", lat=34.05, lng=-118.24),
        Volunteer.new("cook", "Cook", skills=["Cooking"], availability="available", lat=34.05, lng=-118.24),
        Volunteer.new("ghost", "No Location", skills=["Driving"], availability="available"),
        Volunteer.new("off", "Offline Driver", skills=["Driving"], availability="offline", lat=34.05, lng=-118.24),
        Volunteer.new("shaky", "Unreliable", skills=["Driving"], availability="available", lat=34.05, lng=-118.24, reliability_score=10),
    ]

def test_end_to_end_critical_scenario(critical_disaster, driving_task):
    """
    Volunteer ~1.4 km from a critical disaster with the one required skill:
    every component maxes out except distance, final lands at 99-100.
    """
    volunteer = Volunteer.new(
        "v1", "Alex", "alex@example.org",
        skills=["First Aid", "Driving"],
        availability="available",
        lat=34.05, lng=-118.24,
        reliability_score=100,
    )

    [result] = rank_volunteers([volunteer], driving_task, critical_disaster)

    assert result.task_id == "t1"
    assert result.volunteer_id == "v1"
    assert result.volunteer_name == "Alex"
    assert result.volunteer_email == "alex@example.org"
    assert result.distance_km == 1.4
    assert result.scores.skill == 100
    assert result.scores.availability == 100
    assert result.scores.reliability == 100
    assert result.scores.distance == 99
    assert result.scores.final in (99, 100)
    assert result.volunteer is volunteer

def test_empty_candidate_list_returns_empty(critical_disaster, driving_task):
    assert rank_volunteers([], driving_task, critical_disaster) == []
    assert get_top_volunteers([], driving_task, critical_disaster, top_n=3) == []

def test_task_and_disaster_are_required(critical_disaster, driving_task, volunteer_pool):
    with pytest.raises(ValueError):
        rank_volunteers(volunteer_pool, None, critical_disaster)
    with pytest.raises(ValueError):
        rank_volunteers(volunteer_pool, driving_task, None)

def test_ranking_is_sorted_by_final_score(critical_disaster, driving_task, volunteer_pool):
    ranked = rank_volunteers(volunteer_pool, driving_task, critical_disaster)

    # 1. Every candidate is ranked, nothing filtered out
    assert len(ranked) == len(volunteer_pool)

    # 2. Non-increasing final scores
    finals = [result.scores.final for result in ranked]
    assert finals == sorted(finals, reverse=True)

    # 3. The close, available, skilled, reliable volunteer wins
    assert ranked[0].volunteer_id == "near"

    # 4. No coordinates means the unknown-distance sentinel
    ghost = next(result for result in ranked if result.volunteer_id == "ghost")
    assert ghost.distance_km == 9999.0
    assert ghost.scores.distance == 0

def test_all_scores_are_integers_in_range(critical_disaster, driving_task, volunteer_pool):
    for result in rank_volunteers(volunteer_pool, driving_task, critical_disaster):
        for value in result.scores.to_dict().values():
            assert isinstance(value, int)
            assert 0 <= value <= 100

def test_ties_keep_input_order(critical_disaster, driving_task):
    twins = [
        Volunteer.new(f"twin_{index}", skills=["Driving"], availability="available", lat=34.05, lng=-118.24)
        for index in range(4)
    ]
    ranked = rank_volunteers(twins, driving_task, critical_disaster)
    assert [result.volunteer_id for result in ranked] == ["twin_0", "twin_1", "twin_2", "twin_3"]

def test_top_volunteers_is_prefix_of_full_ranking(critical_disaster, driving_task, volunteer_pool):
    full = rank_volunteers(volunteer_pool, driving_task, critical_disaster)
    top = get_top_volunteers(volunteer_pool, driving_task, critical_disaster, top_n=3)

    assert len(top) == 3
    assert [r.volunteer_id for r in top] == [r.volunteer_id for r in full[:3]]

def test_top_volunteers_with_fewer_candidates_than_requested(critical_disaster, driving_task, volunteer_pool):
    top = get_top_volunteers(volunteer_pool[:2], driving_task, critical_disaster, top_n=3)
    assert len(top) == 2

def test_top_volunteers_defaults_to_five(critical_disaster, driving_task, volunteer_pool):
    assert len(get_top_volunteers(volunteer_pool, driving_task, critical_disaster)) == 5

def test_top_volunteers_with_non_positive_top_n(critical_disaster, driving_task, volunteer_pool):
    assert get_top_volunteers(volunteer_pool, driving_task, critical_disaster, top_n=0) == []
    assert get_top_volunteers(volunteer_pool, driving_task, critical_disaster, top_n=-2) == []

def test_task_without_required_skills_gives_neutral_skill_scores(critical_disaster, volunteer_pool):
    task = Task.new("t2", "General help", "d1", [])
    for result in rank_volunteers(volunteer_pool, task, critical_disaster):
        assert result.scores.skill == 50

def test_urgency_changes_the_order(driving_task):
    """
    A nearby volunteer with patchy skills vs a distant specialist:
    critical urgency favours proximity, low urgency favours skills/reliability.
    """
    task = Task.new("t3", "Medical support", "d1", ["First Aid", "CPR"])
    nearby = Volunteer.new("nearby", skills=["First Aid"], availability="available", lat=34.06, lng=-118.25, reliability_score=60)
    specialist = Volunteer.new("specialist", skills=["First Aid", "CPR"], availability="busy", lat=34.5, lng=-118.25, reliability_score=100)

    critical = Disaster.new("d1", "Quake", "critical", lat=34.06, lng=-118.25)
    low = Disaster.new("d1", "Quake", "low", lat=34.06, lng=-118.25)

    assert rank_volunteers([specialist, nearby], task, critical)[0].volunteer_id == "nearby"
    assert rank_volunteers([nearby, specialist], task, low)[0].volunteer_id == "specialist"

def test_reliability_above_100_is_clamped_but_not_mutated(critical_disaster, driving_task):
    veteran = Volunteer.new("vet", skills=["Driving"], availability="available", lat=34.06, lng=-118.25, reliability_score=150)

    [result] = rank_volunteers([veteran], driving_task, critical_disaster)

    assert result.scores.reliability == 100
    assert result.volunteer.reliability_score == 150

def test_availability_is_read_case_insensitively(critical_disaster, driving_task):
    volunteer = Volunteer.new("v", skills=["Driving"], availability="AVAILABLE", lat=34.06, lng=-118.25)
    assert volunteer.availability == AvailabilityStatus.AVAILABLE
    assert rank_volunteers([volunteer], driving_task, critical_disaster)[0].scores.availability == 100


# --- Target location resolution ---

def test_explicit_target_wins(critical_disaster, driving_task):
    assert resolve_target_location(driving_task, critical_disaster, (10.0, 20.0)) == (10.0, 20.0)

def test_task_location_beats_disaster_location(critical_disaster):
    task = Task.new("t4", "Shelter", "d1", [], lat=35.0, lng=-119.0)
    assert resolve_target_location(task, critical_disaster) == (35.0, -119.0)

def test_disaster_location_is_last_resort(critical_disaster, driving_task):
    assert resolve_target_location(driving_task, critical_disaster) == (34.06, -118.25)

def test_partial_pairs_are_skipped_as_a_whole(critical_disaster, driving_task):
    assert resolve_target_location(driving_task, critical_disaster, (12.0, None)) == (34.06, -118.25)

def test_no_location_anywhere(driving_task, volunteer_pool):
    disaster = Disaster.new("d9", "Unknown", "high")
    assert resolve_target_location(driving_task, disaster) is None

    for result in rank_volunteers(volunteer_pool, driving_task, disaster):
        assert result.distance_km == 9999.0
        assert result.scores.distance == 0

def test_zero_coordinates_are_valid(driving_task):
    """
    A disaster on the equator / prime meridian is still a real location.
    """
    disaster = Disaster.new("d0", "Gulf of Guinea storm", "medium", lat=0.0, lng=0.0)
    volunteer = Volunteer.new("v0", skills=["Driving"], availability="available", lat=0.0, lng=0.0)

    assert resolve_target_location(driving_task, disaster) == (0.0, 0.0)

    [result] = rank_volunteers([volunteer], driving_task, disaster)
    assert result.distance_km == 0.0
    assert result.scores.distance == 100

def test_explicit_target_location_is_used_for_distance(critical_disaster, driving_task, volunteer_pool):
    far_target = (36.0, -120.0)
    ranked = rank_volunteers(volunteer_pool, driving_task, critical_disaster, target_location=far_target)
    far = next(result for result in ranked if result.volunteer_id == "far")
    assert far.distance_km == 0.0


# --- Serialisation ---

def test_to_dict_shape(critical_disaster, driving_task, volunteer_pool):
    payload = rank_volunteers(volunteer_pool[:1], driving_task, critical_disaster)[0].to_dict()

    assert set(payload) == {
        "task_id", "volunteer_id", "volunteer_name", "volunteer_email",
        "distance", "scores", "volunteer_data",
    }
    assert set(payload["scores"]) == {"skill", "distance", "availability", "reliability", "final"}
    assert payload["volunteer_data"]["availability"] == "available"

@pytest.mark.parametrize("lat, lng", [(float("inf"), -118.24), ("nan", -118.24), (34.05, float("-inf"))])
def test_non_finite_volunteer_coordinates_count_as_unknown(critical_disaster, driving_task, lat, lng):
    volunteer = Volunteer.new("v_bad", skills=["Driving"], availability="available", lat=lat, lng=lng)
    assert volunteer.location is None

    [result] = rank_volunteers([volunteer], driving_task, critical_disaster)
    assert result.distance_km == 9999.0
    assert result.scores.distance == 0

def test_non_finite_record_coordinates_count_as_unknown(critical_disaster, driving_task):
    volunteer = Volunteer.from_record({"id": 7, "availability": "available", "latitude": "nan", "longitude": "1.5"})
    disaster = Disaster.new("d_bad", "Bad data", "high", lat=float("inf"), lng=0.0)

    assert volunteer.location is None
    assert disaster.location is None
    assert resolve_target_location(driving_task, disaster) is None

def test_non_finite_explicit_target_falls_through(critical_disaster, driving_task):
    assert resolve_target_location(driving_task, critical_disaster, (float("nan"), 1.0)) == (34.06, -118.25)
