import csv
import logging
import os
from typing import List

import pandas as pd

from disasters.models import Disaster, Task
from dispatch.assignment_service import AssignmentService, NoVolunteersError
from dispatch.store import InMemoryRecordStore
from volunteers.models import Volunteer

def load_volunteers(filepath="mock_volunteers.csv") -> List[Volunteer]:
    # Resolve the correct path depending on where the user runs the script from.
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    absolute_path = os.path.join(base_dir, filepath)

    df = pd.read_csv(absolute_path)
    volunteers = []
    for _, row in df.iterrows():
        skills = row["skills"] if isinstance(row["skills"], str) else ""
        volunteers.append(
            Volunteer.new(
                volunteer_id=row["volunteer_id"],
                name=row["name"],
                email=row["email"],
                skills=[skill for skill in skills.split(";") if skill],
                availability=row["availability"],
                lat=None if pd.isna(row["latitude"]) else float(row["latitude"]),
                lng=None if pd.isna(row["longitude"]) else float(row["longitude"]),
                reliability_score=float(row["reliability_score"]),
            )
        )
    return volunteers

def build_scenario(store: InMemoryRecordStore) -> List[Task]:
    wildfire = store.add_disaster(Disaster.new("d_wildfire", "Canyon Wildfire", "critical", 34.06, -118.25))
    flood = store.add_disaster(Disaster.new("d_flood", "River Flooding", "low", 34.40, -118.60))

    return [
        store.add_task(Task.new("t_evac", "Evacuation transport", wildfire.id, ["Driving"])),
        store.add_task(Task.new("t_triage", "Field triage", wildfire.id, ["First Aid", "CPR"], 34.10, -118.30)),
        store.add_task(Task.new("t_sandbags", "Sandbag line", flood.id, [])),
        store.add_task(Task.new("t_kitchen", "Shelter kitchen", flood.id, ["Cooking", "Logistics"])),
    ]

def run_simulation():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("=== STARTING VOLUNTEER RANKING SIMULATION ===")

    # 1. Load Data
    store = InMemoryRecordStore()
    for volunteer in load_volunteers():
        store.add_volunteer(volunteer)
    tasks = build_scenario(store)
    print(f"Loaded {len(store.list_volunteers())} Volunteers and {len(tasks)} Tasks.\n")

    service = AssignmentService(store)

    # Save next to the script
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_path = os.path.join(base_dir, "assignment_results.csv")

    with open(output_path, "w", newline='') as file:
        writer = csv.writer(file)
        writer.writerow(["task_id", "volunteer_id", "distance_km", "skill", "distance", "availability", "reliability", "final"])

        for task in tasks:
            # 2. Suggestions for review
            suggestion = service.suggest_volunteers(task.id, top_n=5)
            print(f"\n--- {task.title} ({suggestion.disaster.name}, {suggestion.disaster.urgency.value}) ---")
            for position, result in enumerate(suggestion.ranked_volunteers, 1):
                scores = result.scores
                print(
                    f"  {position}. {result.volunteer_name:<15} final {scores.final:>3} | "
                    f"skill {scores.skill:>3} dist {scores.distance:>3} ({result.distance_km} km) "
                    f"avail {scores.availability:>3} rel {scores.reliability:>3}"
                )

            # 3. Auto-assign the top 3 available volunteers
            try:
                result = service.auto_assign(task.id, number_of_volunteers=3)
            except NoVolunteersError as exc:
                print(f"[FAILED] {task.title}: {exc}")
                continue

            for ranked in result.assigned_volunteers:
                scores = ranked.scores
                writer.writerow([
                    task.id, ranked.volunteer_id, ranked.distance_km,
                    scores.skill, scores.distance, scores.availability, scores.reliability, scores.final,
                ])
            assigned = ", ".join(r.volunteer_name for r in result.assigned_volunteers)
            print(f"[SUCCESS] {task.title} -> {assigned}")

    print("\n=== SIMULATION COMPLETE ===")
    print(f"Results written to '{output_path}'.")

if __name__ == "__main__":
    run_simulation()
