import pandas as pd
import numpy as np
import uuid

SKILL_POOL = [
    "First Aid",
    "Basic First Aid Certified",
    "CPR",
    "Driving",
    "Heavy Vehicle Driving",
    "Search and Rescue",
    "Cooking",
    "Logistics",
    "Medical Aid",
    "Translation",
    "Counseling",
    "Construction",
]

def generate_mock_volunteers(num_volunteers=200, output_file="mock_volunteers.csv", center=(34.0522, -118.2437)):
    """
    Generates a realistic pool of volunteers scattered around a disaster area.
    Most volunteers are local (within ~25km), a tail is regional (~150km) so the
    distance brackets of the ranker all get exercised.
    """
    center_lat, center_lon = center

    data = []
    for volunteer_index in range(num_volunteers):
        # 80% local, 20% regional
        spread = 0.25 if np.random.random() < 0.8 else 1.5
        lat = center_lat + np.random.uniform(-spread, spread)
        lon = center_lon + np.random.uniform(-spread, spread)

        # ~5% of profiles never got geocoded
        has_location = np.random.random() > 0.05

        skill_count = np.random.randint(0, 4)
        skills = list(np.random.choice(SKILL_POOL, size=skill_count, replace=False))

        data.append({
            "volunteer_id": f"v_{str(uuid.uuid4())[:8]}",
            "name": f"Volunteer {volunteer_index+1}",
            "email": f"volunteer{volunteer_index+1}@relief.example",
            "skills": ";".join(skills),
            "availability": np.random.choice(["available", "busy", "offline"], p=[0.6, 0.3, 0.1]),
            "latitude": np.round(lat, 6) if has_location else None,
            "longitude": np.round(lon, 6) if has_location else None,
            # Stored scores drift past 100 with completion bonuses
            "reliability_score": int(np.clip(np.random.normal(100, 15), 40, 140)),
        })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {num_volunteers} volunteers and saved to '{output_file}'")

    print("\nAvailability mix:")
    for availability, count in df['availability'].value_counts().items():
        print(f"  {availability}: {count}")

if __name__ == "__main__":
    generate_mock_volunteers(num_volunteers=200)
