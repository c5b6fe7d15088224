from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)

HEADER = "ID,Name,Start Time,End Time,Category,Ticket/Activity Number,Number of Line Items,Duration"


def _start(name: str = "Test Task", **overrides) -> dict:
    payload = {
        "name": name,
        "category": "Ticket",
        "ticket_activity_number": "TICKET-1",
        "number_of_line_items": 2,
    }
    payload.update(overrides)
    r = client.post("/timesheet_entries/start", json=payload)
    assert r.status_code == 200, r.text
    return r.json()


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_start_and_stop_timer_flow(app_clock):
    started = _start()
    assert started["end_time"] is None
    assert started["duration_seconds"] is None
    assert started["start_time"] == "2024-01-15T09:00:00.000Z"
    assert started["created_at"] == "2024-01-15T09:00:00.000Z"

    active = client.get("/timesheet_entries/active")
    assert active.status_code == 200
    assert active.json()["id"] == started["id"]

    app_clock.advance(minutes=90)
    stopped = client.post(f"/timesheet_entries/{started['id']}/stop")
    assert stopped.status_code == 200, stopped.text
    body = stopped.json()
    assert body["end_time"] == "2024-01-15T10:30:00.000Z"
    assert body["duration_seconds"] == 5400

    no_active = client.get("/timesheet_entries/active")
    assert no_active.status_code == 200
    assert no_active.json() is None


def test_stop_twice_returns_404_with_id(app_clock):
    started = _start()
    app_clock.advance(seconds=10)
    assert client.post(f"/timesheet_entries/{started['id']}/stop").status_code == 200

    again = client.post(f"/timesheet_entries/{started['id']}/stop")
    assert again.status_code == 404
    assert f"No running timer found with id {started['id']}" in again.json()["detail"]


def test_start_rejects_unknown_category_and_negative_items(app_clock):
    bad_category = client.post(
        "/timesheet_entries/start",
        json={"name": "x", "category": "Lunch", "number_of_line_items": 0},
    )
    assert bad_category.status_code == 422

    bad_items = client.post(
        "/timesheet_entries/start",
        json={"name": "x", "category": "Other", "number_of_line_items": -1},
    )
    assert bad_items.status_code == 422

    blank_name = client.post(
        "/timesheet_entries/start",
        json={"name": "  ", "category": "Other", "number_of_line_items": 0},
    )
    assert blank_name.status_code == 422
    assert "non-empty" in blank_name.json()["detail"]

    assert client.get("/timesheet_entries").json() == []


def test_update_running_entry_returns_409(app_clock):
    started = _start()

    r = client.patch(f"/timesheet_entries/{started['id']}", json={"name": "Renamed"})
    assert r.status_code == 409
    assert "currently running" in r.json()["detail"]


def test_update_missing_entry_returns_404(app_clock):
    r = client.patch("/timesheet_entries/99999", json={"name": "Renamed"})
    assert r.status_code == 404
    assert "99999" in r.json()["detail"]


def test_partial_update_omitted_vs_null_ticket(app_clock):
    started = _start(ticket_activity_number="KEEP-ME", number_of_line_items=7)
    app_clock.advance(minutes=5)
    client.post(f"/timesheet_entries/{started['id']}/stop")

    renamed = client.patch(f"/timesheet_entries/{started['id']}", json={"name": "Renamed"})
    assert renamed.status_code == 200, renamed.text
    body = renamed.json()
    assert body["name"] == "Renamed"
    assert body["ticket_activity_number"] == "KEEP-ME"
    assert body["number_of_line_items"] == 7
    assert body["duration_seconds"] == 300

    cleared = client.patch(
        f"/timesheet_entries/{started['id']}",
        json={"ticket_activity_number": None, "category": "Meeting"},
    )
    assert cleared.status_code == 200, cleared.text
    body = cleared.json()
    assert body["ticket_activity_number"] is None
    assert body["category"] == "Meeting"
    assert body["name"] == "Renamed"


def test_update_rejects_null_name(app_clock):
    started = _start()
    app_clock.advance(minutes=1)
    client.post(f"/timesheet_entries/{started['id']}/stop")

    r = client.patch(f"/timesheet_entries/{started['id']}", json={"name": None})
    assert r.status_code == 422


def test_delete_entry_reports_outcome(app_clock):
    started = _start()

    deleted = client.delete(f"/timesheet_entries/{started['id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {
        "success": True,
        "message": f"Timesheet entry with ID {started['id']} has been deleted successfully.",
    }

    missing = client.delete(f"/timesheet_entries/{started['id']}")
    assert missing.status_code == 200
    assert missing.json() == {
        "success": False,
        "message": f"Timesheet entry with ID {started['id']} not found.",
    }


def test_list_and_search_orderings_differ(app_clock):
    first = _start("Fix login bug")
    app_clock.advance(minutes=1)
    second = _start("Weekly sync", category="Meeting", ticket_activity_number=None)
    app_clock.advance(minutes=1)
    third = _start("Bug investigation")

    listed = client.get("/timesheet_entries").json()
    assert [e["id"] for e in listed] == [third["id"], second["id"], first["id"]]

    searched = client.get("/timesheet_entries/search").json()
    assert [e["id"] for e in searched] == [first["id"], second["id"], third["id"]]

    bug = client.get("/timesheet_entries/search", params={"search_term": "BUG"}).json()
    assert [e["name"] for e in bug] == ["Fix login bug", "Bug investigation"]

    meeting = client.get("/timesheet_entries/search", params={"category": "Meeting"}).json()
    assert [e["id"] for e in meeting] == [second["id"]]


def test_search_rejects_unknown_category():
    r = client.get("/timesheet_entries/search", params={"category": "Lunch"})
    assert r.status_code == 422


def test_export_endpoints(app_clock):
    empty = client.get("/timesheet_entries/export")
    assert empty.status_code == 200
    assert empty.json() == {
        "csv_content": HEADER,
        "filename": "timesheet_export_2024-01-15.csv",
    }

    _start("Task with, comma")

    document = client.get("/timesheet_entries/export").json()
    assert '"Task with, comma"' in document["csv_content"]

    download = client.get("/timesheet_entries/export.csv")
    assert download.status_code == 200
    assert download.headers["content-type"].startswith("text/csv")
    assert 'filename="timesheet_export_2024-01-15.csv"' in download.headers["content-disposition"]
    assert download.text == document["csv_content"]


def test_entry_timestamps_match_export_format(app_clock):
    started = _start("Aligned")
    app_clock.advance(minutes=1)
    stopped = client.post(f"/timesheet_entries/{started['id']}/stop").json()

    document = client.get("/timesheet_entries/export").json()["csv_content"]
    row = document.split("\n")[1].split(",")

    assert row[2] == stopped["start_time"]
    assert row[3] == stopped["end_time"]
