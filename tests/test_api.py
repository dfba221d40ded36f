from fastapi import status


def create_location(client):
    resp = client.post(
        "/locations/",
        json={"name": "Green Park", "region": "North", "latitude": 50.087, "longitude": 14.421},
    )
    assert resp.status_code == status.HTTP_201_CREATED
    return resp.json()["id"]


def create_user(client, email="alice@example.com"):
    resp = client.post("/users/", json={"full_name": "Alice", "email": email})
    assert resp.status_code == status.HTTP_201_CREATED
    return resp.json()["id"]


def create_event(client, location_id):
    resp = client.post(
        "/events/",
        json={
            "name": "Spring Birdwatch",
            "location_id": location_id,
            "start_date": "2025-04-01",
            "end_date": "2025-04-03",
        },
    )
    assert resp.status_code == status.HTTP_201_CREATED
    return resp.json()["id"]


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == status.HTTP_200_OK


def test_user_endpoints(client):
    user_id = create_user(client)

    dup = client.post("/users/", json={"full_name": "Alice", "email": "alice@example.com"})
    assert dup.status_code == status.HTTP_409_CONFLICT
    assert dup.json()["error"] == "duplicate_key"

    patched = client.patch(f"/users/{user_id}/email", json={"email": "alice2@example.com"})
    assert patched.status_code == status.HTTP_200_OK
    assert patched.json()["email"] == "alice2@example.com"

    assert client.delete(f"/users/{user_id}").json() == {"ok": True}
    missing = client.get(f"/users/{user_id}")
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["error"] == "not_found"


def test_invalid_email_is_rejected(client):
    resp = client.post("/users/", json={"full_name": "Nobody", "email": "not-an-email"})
    assert resp.status_code == 422


def test_event_participation_flow(client):
    location_id = create_location(client)
    user_id = create_user(client)
    event_id = create_event(client, location_id)

    duration = client.get(f"/events/{event_id}/duration")
    assert duration.json() == {"event_id": event_id, "days": 2}

    first = client.post(f"/events/{event_id}/participants", json={"user_id": user_id})
    assert first.status_code == status.HTTP_201_CREATED
    second = client.post(f"/events/{event_id}/participants", json={"user_id": user_id})
    assert second.status_code == status.HTTP_409_CONFLICT
    assert second.json()["error"] == "already_exists"

    blocked = client.delete(f"/users/{user_id}")
    assert blocked.status_code == status.HTTP_409_CONFLICT
    assert blocked.json()["error"] == "precondition_failed"

    removed = client.delete(f"/events/{event_id}/participants/{user_id}")
    assert removed.status_code == status.HTTP_200_OK
    again = client.delete(f"/events/{event_id}/participants/{user_id}")
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_event_ending_before_start(client):
    location_id = create_location(client)
    resp = client.post(
        "/events/",
        json={
            "name": "Backwards",
            "location_id": location_id,
            "start_date": "2025-04-03",
            "end_date": "2025-04-01",
        },
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "constraint_violation"


def test_sightings_and_most_common(client):
    assert client.get("/sightings/most-common").json() == {
        "common_name": "No sightings recorded"
    }

    location_id = create_location(client)
    user_id = create_user(client)
    event_id = create_event(client, location_id)
    species = client.post("/species/", json={"common_name": "Grey Heron"}).json()

    payload = {
        "user_id": user_id,
        "event_id": event_id,
        "bird_id": species["id"],
        "timestamp": "2025-04-01T07:30:00",
        "location_note": "Reed bed",
    }
    assert client.post("/sightings/", json=payload).status_code == status.HTTP_201_CREATED
    assert client.post("/sightings/", json=payload).status_code == status.HTTP_409_CONFLICT

    unknown = client.post("/sightings/", json={**payload, "bird_id": 9999})
    assert unknown.status_code == status.HTTP_404_NOT_FOUND
    assert unknown.json()["detail"] == "Bird species does not exist."

    assert client.get("/sightings/most-common").json() == {"common_name": "Grey Heron"}


def test_weather_and_notes(client):
    location_id = create_location(client)
    event_id = create_event(client, location_id)

    weather = client.put(
        f"/events/{event_id}/weather",
        json={"temperature": 14.0, "conditions": "Overcast", "wind_speed": 5.5},
    )
    assert weather.status_code == status.HTTP_200_OK
    assert weather.json()["conditions"] == "Overcast"

    note = client.post("/notes/", json={"note_text": "Lots of warblers", "event_id": event_id})
    assert note.status_code == status.HTTP_201_CREATED

    cancelled = client.delete(f"/events/{event_id}")
    assert cancelled.status_code == 422


def test_species_delete_with_actor(client):
    species = client.post(
        "/species/", json={"common_name": "Mallard", "scientific_name": "Anas platyrhynchos"}
    ).json()
    resp = client.delete(f"/species/{species['id']}", params={"deleted_by": "warden"})
    assert resp.json() == {"ok": True}
    assert client.delete(f"/species/{species['id']}").status_code == status.HTTP_404_NOT_FOUND
