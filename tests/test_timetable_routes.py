from school_timetable.models.models import TeacherAvailability, Timetable
from school_timetable.services import class_locks


def _generate(client, **overrides):
    payload = {"classId": "c1", "seed": 7}
    payload.update(overrides)
    return client.post("/api/timetables/auto-generate", json=payload)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


def test_auto_generate_saves_drafts(client, db_session, seeded_school):
    response = _generate(client)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["summary"]["seed"] == 7
    assert body["summary"]["totalSubjects"] == 2
    assert body["summary"]["entriesSaved"] == 6
    assert body["result"]["statistics"]["slotsPlaced"] == 6
    assert body["result"]["multiTeacherSlots"]
    assert body["nextSteps"][0] == "Review multi-teacher selections"

    rows = db_session.query(Timetable).filter(Timetable.class_id == "c1").all()
    assert len(rows) == 6
    assert {row.status for row in rows} == {"draft"}
    assert {row.academic_year for row in rows} == {"2025-2026"}


def test_regenerating_replaces_drafts(client, db_session, seeded_school):
    first = _generate(client).json()
    second = _generate(client, seed=8, strategy="afternoon-heavy").json()

    assert first["summary"]["entriesSaved"] == second["summary"]["entriesSaved"] == 6
    assert db_session.query(Timetable).filter(Timetable.status == "draft").count() == 6


def test_same_seed_same_result(client, seeded_school):
    first = _generate(client, seed=99).json()
    second = _generate(client, seed=99).json()
    assert first["result"] == second["result"]


def test_list_entries(client, seeded_school):
    _generate(client)

    response = client.get("/api/timetables", params={"classId": "c1", "status": "draft"})

    assert response.status_code == 200
    entries = response.json()
    assert len(entries) == 6
    assert {"id", "classId", "subjectId", "teacherId", "timeSlotId", "status"} <= set(entries[0])


def test_resolve_teachers_updates_draft_row(client, db_session, seeded_school):
    generated = _generate(client).json()["result"]
    option = generated["multiTeacherSlots"][0]
    slot_id = option["timeSlotId"]
    current = next(e["teacherId"] for e in generated["timetable"] if e["timeSlotId"] == slot_id)
    other = next(t["teacherId"] for t in option["teachers"] if t["teacherId"] != current)

    response = client.post("/api/timetables/resolve-teachers", json={
        "classId": "c1",
        "result": generated,
        "selections": {slot_id: other},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["entriesUpdated"] == 1
    assert body["remainingChoices"] == len(generated["multiTeacherSlots"]) - 1
    resolved_entry = next(e for e in body["result"]["timetable"] if e["timeSlotId"] == slot_id)
    assert resolved_entry["teacherId"] == other

    db_session.expire_all()
    row = db_session.query(Timetable).filter(Timetable.time_slot_id == slot_id).one()
    assert row.teacher_id == other


def test_resolve_teachers_rejects_malformed_result(client, seeded_school):
    response = client.post("/api/timetables/resolve-teachers", json={
        "classId": "c1",
        "result": {"timetable": [{"classId": "c1"}]},
        "selections": {},
    })
    assert response.status_code == 400


def test_validate_generated_timetable(client, seeded_school):
    _generate(client)

    response = client.post("/api/timetables/validate", json={"classId": "c1"})

    assert response.status_code == 200
    assert response.json() == {"isValid": True, "totalEntries": 6, "totalConflicts": 0, "conflicts": []}


def test_validate_reports_hand_edited_double_booking(client, db_session, seeded_school):
    db_session.add_all([
        Timetable(id="x1", school_id="s1", class_id="c1", subject_id="math", teacher_id="t2",
                  time_slot_id="d1p1", academic_year="2025-2026", status="draft"),
        Timetable(id="x2", school_id="s1", class_id="c1", subject_id="eng", teacher_id="t2",
                  time_slot_id="d1p1", academic_year="2025-2026", status="draft"),
    ])
    db_session.commit()

    body = client.post("/api/timetables/validate", json={"classId": "c1"}).json()

    assert body["isValid"] is False
    assert [c["type"] for c in body["conflicts"]] == ["teacher_double_booked"]


def test_activate_then_nothing_left_to_discard(client, seeded_school):
    _generate(client)

    response = client.post("/api/timetables/activate", json={"classId": "c1", "academicYear": "2025-2026"})
    assert response.status_code == 200
    assert response.json()["summary"]["entriesActivated"] == 6

    active = client.get("/api/timetables", params={"classId": "c1", "status": "active"}).json()
    assert len(active) == 6

    response = client.post("/api/timetables/discard", json={"classId": "c1"})
    assert response.status_code == 404
    assert response.json()["detail"] == "No draft timetable found to discard"


def test_activate_without_drafts(client, seeded_school):
    response = client.post("/api/timetables/activate", json={"classId": "c1", "academicYear": "2025-2026"})
    assert response.status_code == 404


def test_discard_drafts(client, db_session, seeded_school):
    _generate(client)

    response = client.post("/api/timetables/discard", json={"classId": "c1"})

    assert response.status_code == 200
    assert response.json()["summary"]["entriesDiscarded"] == 6
    assert db_session.query(Timetable).count() == 0


def test_unknown_class(client, seeded_school):
    response = _generate(client, classId="nope")
    assert response.status_code == 404
    assert response.json()["detail"] == "Class nope not found"


def test_missing_availability_is_a_bad_request(client, db_session, seeded_school):
    db_session.query(TeacherAvailability).delete()
    db_session.commit()

    response = _generate(client)

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["reason"] == "No teacher availability schedules set"
    assert detail["missingData"]["teacherAvailability"] is True
    assert detail["suggestions"]


def test_invalid_strategy(client, seeded_school):
    response = _generate(client, strategy="evening-heavy")
    assert response.status_code == 422


def _lessons(client, status):
    entries = client.get("/api/timetables", params={"classId": "c1", "status": status}).json()
    return {(e["timeSlotId"], e["subjectId"], e["teacherId"]) for e in entries}, entries


def _activate(client):
    return client.post("/api/timetables/activate", json={"classId": "c1", "academicYear": "2025-2026"})


def test_preserving_run_keeps_active_lessons_through_activation(client, seeded_school):
    _generate(client, seed=7)
    assert _activate(client).status_code == 200
    active_before, _ = _lessons(client, "active")

    body = _generate(client, seed=9, preserveExisting=True).json()

    stats = body["result"]["statistics"]
    assert stats["slotsPlaced"] <= stats["totalSlotsNeeded"] + len(active_before)
    assert body["summary"]["entriesSaved"] == 12
    drafts, draft_rows = _lessons(client, "draft")
    assert len({e["timeSlotId"] for e in draft_rows}) == len(draft_rows) == 12
    assert active_before <= drafts

    assert _activate(client).json()["summary"]["entriesActivated"] == 12
    active_after, _ = _lessons(client, "active")
    assert active_before <= active_after


def test_preserving_run_uses_drafts_over_active(client, seeded_school):
    _generate(client, seed=7)
    _activate(client)
    _generate(client, seed=8)
    drafts_before, _ = _lessons(client, "draft")

    body = _generate(client, seed=9, preserveExisting=True).json()

    timetable = body["result"]["timetable"]
    slot_ids = [e["timeSlotId"] for e in timetable]
    assert len(slot_ids) == len(set(slot_ids)) == 12
    stats = body["result"]["statistics"]
    assert stats["slotsPlaced"] <= stats["totalSlotsNeeded"] + len(drafts_before)
    assert body["summary"]["entriesSaved"] == 6

    drafts_after, draft_rows = _lessons(client, "draft")
    assert len({e["timeSlotId"] for e in draft_rows}) == len(draft_rows) == 12
    assert drafts_before <= drafts_after
    assert len(_lessons(client, "active")[1]) == 6


def test_unknown_class_does_not_register_a_lock(client, seeded_school):
    for path in ("/api/timetables/auto-generate", "/api/timetables/discard"):
        response = client.post(path, json={"classId": "ghost-class"})
        assert response.status_code == 404
    assert "ghost-class" not in class_locks._class_locks
