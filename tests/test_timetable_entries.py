import pytest

from school_timetable.models.models import School, SchoolClass, Teacher, TimeSlot, Timetable


@pytest.fixture
def two_classes(db_session, seeded_school):
    """Adds class c2 next to c1, and a second school with its own teacher and slot."""
    db_session.add(SchoolClass(id="c2", school_id="s1", name="Grade 5B", academic_year="2025-2026"))
    db_session.add(School(id="s2", name="Riverside High", school_code="RSH"))
    db_session.add(Teacher(id="tx", school_id="s2", name="Lee Grant"))
    db_session.add(TimeSlot(id="x1", school_id="s2", day_of_week=1, start_time="08:00", end_time="09:00"))
    db_session.commit()
    return seeded_school


def _create(client, **overrides):
    payload = {"classId": "c1", "subjectId": "math", "teacherId": "t1", "timeSlotId": "d1p1"}
    payload.update(overrides)
    return client.post("/api/timetables", json=payload)


def test_create_entry(client, db_session, two_classes):
    response = _create(client)

    assert response.status_code == 201
    body = response.json()
    assert body["classId"] == "c1"
    assert body["timeSlotId"] == "d1p1"
    assert body["status"] == "draft"
    assert body["academicYear"] == "2025-2026"
    assert db_session.query(Timetable).filter(Timetable.id == body["id"]).count() == 1


def test_create_rejects_break_slot(client, two_classes):
    response = _create(client, timeSlotId="d1lunch")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot schedule teaching periods during break times"


def test_create_rejects_taken_class_slot(client, two_classes):
    _create(client)

    response = _create(client, subjectId="eng", teacherId="t2")

    assert response.status_code == 400
    assert response.json()["detail"] == "Time slot already scheduled for this class"


def test_create_rejects_booked_teacher(client, two_classes):
    _create(client)

    response = _create(client, classId="c2")

    assert response.status_code == 400
    assert response.json()["detail"] == "Teacher is already scheduled at this time slot"


def test_draft_may_share_slot_with_active_timetable(client, two_classes):
    assert _create(client, status="active").status_code == 201
    assert _create(client, classId="c2").status_code == 201


@pytest.mark.parametrize("overrides, detail", [
    ({"timeSlotId": "d9p9"}, "Time slot not found"),
    ({"timeSlotId": "x1"}, "Time slot not found"),
    ({"teacherId": "nobody"}, "Teacher not found"),
    ({"teacherId": "tx"}, "Teacher not found"),
    ({"subjectId": "art"}, "Subject not found"),
    ({"classId": "nope"}, "Class nope not found"),
])
def test_create_unknown_references(client, two_classes, overrides, detail):
    response = _create(client, **overrides)
    assert response.status_code == 404
    assert response.json()["detail"] == detail


def test_get_entry(client, two_classes):
    entry_id = _create(client).json()["id"]

    response = client.get(f"/api/timetables/{entry_id}")

    assert response.status_code == 200
    assert response.json()["teacherId"] == "t1"


def test_get_missing_entry(client, two_classes):
    response = client.get("/api/timetables/missing")
    assert response.status_code == 404
    assert response.json()["detail"] == "Timetable entry not found"


def test_move_entry_to_free_slot(client, two_classes):
    entry_id = _create(client).json()["id"]

    response = client.put(f"/api/timetables/{entry_id}", json={"timeSlotId": "d2p3"})

    assert response.status_code == 200
    assert response.json()["timeSlotId"] == "d2p3"
    assert client.get(f"/api/timetables/{entry_id}").json()["timeSlotId"] == "d2p3"


def test_update_keeping_own_slot(client, two_classes):
    entry_id = _create(client).json()["id"]

    response = client.put(f"/api/timetables/{entry_id}", json={"teacherId": "t2"})

    assert response.status_code == 200
    assert response.json()["teacherId"] == "t2"
    assert response.json()["timeSlotId"] == "d1p1"


def test_update_rejects_taken_class_slot(client, two_classes):
    _create(client)
    entry_id = _create(client, subjectId="eng", teacherId="t2", timeSlotId="d1p2").json()["id"]

    response = client.put(f"/api/timetables/{entry_id}", json={"timeSlotId": "d1p1"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Time slot already scheduled for this class"


def test_update_rejects_booked_teacher(client, two_classes):
    _create(client)
    entry_id = _create(client, classId="c2", teacherId="t2").json()["id"]

    response = client.put(f"/api/timetables/{entry_id}", json={"teacherId": "t1"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Teacher is already scheduled at this time slot"
    assert client.get(f"/api/timetables/{entry_id}").json()["teacherId"] == "t2"


def test_update_rejects_break_slot(client, two_classes):
    entry_id = _create(client).json()["id"]

    response = client.put(f"/api/timetables/{entry_id}", json={"timeSlotId": "d3lunch"})

    assert response.status_code == 400


def test_update_rejects_other_school_teacher(client, two_classes):
    entry_id = _create(client).json()["id"]

    response = client.put(f"/api/timetables/{entry_id}", json={"teacherId": "tx"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Teacher not found"


def test_delete_entry(client, two_classes):
    entry_id = _create(client).json()["id"]

    response = client.delete(f"/api/timetables/{entry_id}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Timetable entry deleted successfully"}
    assert client.get(f"/api/timetables/{entry_id}").status_code == 404
    assert client.delete(f"/api/timetables/{entry_id}").status_code == 404
