from __future__ import annotations

from lesson_attendance.core.enums import AttendanceStatus


def test_login_sets_session_and_returns_user(client, login):
    resp = login("teacher", "teacher123")

    body = resp.get_json()
    assert body["success"] is True
    assert body["user"]["role"] == "teacher"
    with client.session_transaction() as sess:
        assert sess["user_id"] == 2
        assert sess["role"] == "teacher"
        assert sess["dept_id"] == 1


def test_login_failure_is_401(client):
    resp = client.post("/api/login", json={"username": "teacher", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Invalid username or password"}


def test_guards_return_json(client, login):
    assert client.get("/api/user").status_code == 401
    login("ADM010", "student123")
    resp = client.get("/api/teachers")
    assert resp.status_code == 403
    assert resp.get_json()["success"] is False


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_public_registration_lookups(client):
    depts = client.get("/api/departments").get_json()["departments"]
    classes = client.get("/api/classes?dept_id=1").get_json()["classes"]

    assert [d["dept_name"] for d in depts] == ["Arts", "Science"]
    assert [c["class_id"] for c in classes] == [1]
    assert client.get("/api/classes?dept_id=abc").status_code == 400


def test_register_then_login(client, login):
    resp = client.post(
        "/api/register",
        json={
            "full_name": "New Student",
            "username": "ADM300",
            "password": "secret1",
            "confirm_password": "secret1",
            "dept_id": 1,
            "level_id": 1,
            "class_id": 1,
        },
    )

    assert resp.status_code == 201
    login("ADM300", "secret1")
    assert client.get("/api/user").get_json()["user"]["class_id"] == 1


def test_student_marks_attendance_and_duplicate_is_conflict(client, login, repos):
    login("ADM010", "student123")

    first = client.post("/api/attendance", json={"lesson_id": 1, "student_id": 11})
    assert first.status_code == 201
    assert first.get_json()["record"]["student_id"] == 10
    assert repos["attendance_repo"].get_for_lesson_and_student(1, 10).status == AttendanceStatus.PRESENT

    second = client.post("/api/attendance", json={"lesson_id": 1})
    assert second.status_code == 409

    forced = client.post("/api/attendance?force=true", json={"lesson_id": 1})
    assert forced.status_code == 403


def test_student_lessons_endpoint(client, login):
    login("ADM011", "student123")

    body = client.get("/api/lessons/student").get_json()

    assert [item["lesson_id"] for item in body["today"]] == [1]
    assert body["today"][0]["window"]["status"] == "open"
    assert body["upcoming"] == [] and body["past"] == []


def test_teacher_creates_lesson_and_bulk_marks(client, login, repos):
    login("teacher", "teacher123")

    created = client.post(
        "/api/lessons",
        json={"class_id": 1, "subject": "Biology", "day_of_week": 1, "start_time_minutes": 540},
    )
    assert created.status_code == 201
    lesson_id = created.get_json()["lesson"]["lesson_id"]

    resp = client.post(
        "/api/attendance/bulk",
        json={"lesson_id": lesson_id, "entries": [{"student_id": 10, "status": "late"}, {"student_id": 12}]},
    )
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["successful"] == 1
    assert body["failed"] == 1
    assert body["errors"][0]["student_id"] == 12

    lesson = client.get(f"/api/attendance/lesson/{lesson_id}").get_json()
    assert [s["student_id"] for s in lesson["late"]] == [10]
    assert [s["student_id"] for s in lesson["unmarked"]] == [11]
    assert lesson["lesson"]["window"]["can_mark"] is True


def test_bulk_requires_entries(client, login):
    login("teacher", "teacher123")

    resp = client.post("/api/attendance/bulk", json={"lesson_id": 1, "entries": [{"status": "late"}]})

    assert resp.status_code == 400


def test_non_numeric_ids_are_rejected_with_400(client, login):
    login("ADM010", "student123")

    resp = client.post("/api/attendance", json={"lesson_id": "abc"})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
    assert "lesson_id" in resp.get_json()["message"]

    client.post("/api/logout")
    login("teacher", "teacher123")

    staff = client.post("/api/attendance", json={"lesson_id": 1, "student_id": "ten"})
    assert staff.status_code == 400
    assert "student_id" in staff.get_json()["message"]

    bulk = client.post("/api/attendance/bulk", json={"lesson_id": "x", "entries": [{"student_id": 10}]})
    assert bulk.status_code == 400


def test_lesson_update_rejects_other_teacher(client, login):
    login("arts", "teacher123")

    resp = client.put("/api/lessons/1", json={"subject": "Art"})

    assert resp.status_code == 403


def test_settings_read_and_update(client, login):
    login("teacher", "teacher123")
    assert client.get("/api/system-settings").get_json()["settings"]["default_attendance_window"] == 30
    assert client.put("/api/system-settings", json={"school_name": "X"}).status_code == 403

    client.post("/api/logout")
    login("admin", "admin123")
    resp = client.put("/api/system-settings", json={"school_name": "Hill School", "allow_teacher_override": False})
    assert resp.get_json()["settings"]["school_name"] == "Hill School"
    assert client.put("/api/system-settings", json={"bogus": 1}).status_code == 400


def test_stats_by_role(client, login, repos, fixed_now):
    repos["attendance_repo"].add(1, 10, AttendanceStatus.PRESENT, fixed_now)

    login("ADM010", "student123")
    assert client.get("/api/attendance/stats").get_json()["stats"]["present_count"] == 1
    client.post("/api/logout")

    login("admin", "admin123")
    stats = client.get("/api/admin/stats").get_json()["stats"]
    assert stats["total_students"] == 3
    recent = client.get("/api/admin/recent-attendance").get_json()["records"]
    assert recent[0]["student_id"] == 10


def test_student_report_formats(client, login, repos, fixed_now):
    repos["attendance_repo"].add(1, 10, AttendanceStatus.PRESENT, fixed_now)
    login("ADM010", "student123")

    report = client.get("/api/students/10/attendance-report").get_json()
    assert report["student"]["class_name"] == "Science 1A"
    assert report["stats"]["total_sessions"] == 1
    assert len(report["records"]) == 1

    csv_resp = client.get("/api/students/10/attendance-report?format=csv")
    assert csv_resp.mimetype == "text/csv"
    assert "attachment" in csv_resp.headers["Content-Disposition"]
    assert "Alice Student" in csv_resp.get_data().decode("utf-8-sig")

    pdf = client.get("/api/students/10/attendance-report?format=pdf")
    assert pdf.get_data().startswith(b"%PDF")

    assert client.get("/api/students/11/attendance-report").status_code == 403
    assert client.get("/api/students/10/attendance-report?format=docx").status_code == 400


def test_lesson_export_and_print(client, login):
    login("teacher", "teacher123")

    xlsx = client.get("/api/attendance/export?scope=lesson&lesson_id=1&format=xlsx")
    assert xlsx.status_code == 200
    assert xlsx.get_data()[:2] == b"PK"

    printed = client.get("/api/attendance/export?lesson_id=1&format=print")
    assert printed.mimetype == "text/html"
    assert "Not Marked" in printed.get_data(as_text=True)


def test_attendance_history_and_filters(client, login, repos, fixed_now):
    attendance = repos["attendance_repo"]
    attendance.add(1, 10, AttendanceStatus.PRESENT, fixed_now)
    attendance.add(1, 11, AttendanceStatus.ABSENT, fixed_now)
    login("teacher", "teacher123")

    rows = client.get("/api/attendance?status=absent").get_json()["records"]
    assert [r["student_id"] for r in rows] == [11]
    assert client.get("/api/attendance?start_date=15-01-2024").status_code == 400
    assert client.get("/api/attendance/history").status_code == 400
    history = client.get("/api/attendance/history?student_id=10").get_json()["records"]
    assert [r["lesson_id"] for r in history] == [1]


def test_backup_endpoints(client, login):
    login("admin", "admin123")

    created = client.post("/api/system/backups", json={"name": "weekly"})
    assert created.status_code == 201
    filename = created.get_json()["backup"]["filename"]

    listed = client.get("/api/system/backups").get_json()["backups"]
    assert [b["filename"] for b in listed] == [filename]
    assert client.post("/api/system/backups/restore", json={"filename": filename}).status_code == 400
    restored = client.post(
        "/api/system/backups/restore", json={"filename": filename, "confirm": "yes-restore-data"}
    )
    assert restored.status_code == 200
    assert client.delete(f"/api/system/backups/{filename}").status_code == 200
    assert client.delete(f"/api/system/backups/{filename}").status_code == 404


def test_teacher_department_endpoints(client, login):
    login("admin", "admin123")

    resp = client.put("/api/teachers/2/departments", json={"dept_ids": [2]})
    assert resp.get_json()["added"] == [2]
    depts = client.get("/api/teachers/2/departments").get_json()["departments"]
    assert [d["dept_id"] for d in depts] == [2]
    assert client.delete("/api/teachers/2/departments/2").status_code == 200
    assert client.delete("/api/teachers/2/departments/2").status_code == 404
