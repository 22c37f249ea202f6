"""
Tests for main.py FastAPI endpoints.
"""
from unittest.mock import patch

from sqlalchemy import text


class TestBasicEndpoints:
    """Test basic FastAPI endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Project Gantt API"}

    def test_debug_ping(self, client):
        response = client.get("/debug/ping")
        assert response.status_code == 200
        assert response.json() == {"pong": True}


class TestGanttEndpoints:
    """Test Gantt data and critical path endpoints."""

    def test_gantt_data(self, client, seeded_project):
        response = client.get(f"/projects/{seeded_project['project']}/gantt")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        tasks = body["data"]["tasks"]
        assert tasks[0]["kind"] == "project"
        assert tasks[0]["parent_id"] == "0"
        assert tasks[0]["start_date"] == "2025-01-01"
        assert {link["relation_kind"] for link in body["data"]["links"]} == {"0"}

    def test_gantt_data_unknown_project(self, client):
        response = client.get("/projects/unknown/gantt")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"].lower()

    def test_critical_path(self, client, seeded_project):
        response = client.get(f"/projects/{seeded_project['project']}/gantt/critical-path")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_duration"] == 89
        assert data["critical_task_ids"] == [seeded_project["project"]]
        assert data["project_end_date"] == "2025-03-31"
        assert data["has_cycle"] is False
        assert len(data["tasks"]) == 6

    def test_critical_path_unknown_project(self, client):
        response = client.get("/projects/unknown/gantt/critical-path")
        assert response.status_code == 404

    def test_task_slack(self, client, seeded_project):
        ids = seeded_project
        response = client.get(f"/projects/{ids['project']}/gantt/tasks/{ids['p1']}/slack")
        assert response.status_code == 200
        assert response.json()["data"]["slack"] == 1

    def test_task_slack_unknown_task(self, client, seeded_project):
        response = client.get(f"/projects/{seeded_project['project']}/gantt/tasks/nope/slack")
        assert response.status_code == 404

    def test_missing_planned_date_is_422(self, client, db, seeded_project):
        db.execute(
            text("UPDATE work_packages SET planned_end_date = NULL WHERE id = :id"),
            {"id": seeded_project["wp1"]},
        )
        db.commit()
        response = client.get(f"/projects/{seeded_project['project']}/gantt/critical-path")
        assert response.status_code == 422
        assert "planned_end_date" in response.json()["detail"]

    def test_unexpected_error_is_500(self, client, seeded_project):
        with patch("backend.app.gantt_service.run_cpa_calc", side_effect=RuntimeError("boom")):
            response = client.get(f"/projects/{seeded_project['project']}/gantt/critical-path")
        assert response.status_code == 500
        assert response.json()["detail"] == "boom"


class TestTaskMutationEndpoints:
    """Test date and progress updates."""

    def test_update_dates(self, client, seeded_project):
        ids = seeded_project
        response = client.put(
            f"/projects/{ids['project']}/gantt/tasks/{ids['p2']}/dates",
            json={"task_type": "phase", "start_date": "2025-02-01", "end_date": "2025-05-01"},
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        data = client.get(f"/projects/{ids['project']}/gantt/critical-path").json()["data"]
        assert data["total_duration"] == 119

    def test_update_dates_rejects_project_kind(self, client, seeded_project):
        ids = seeded_project
        response = client.put(
            f"/projects/{ids['project']}/gantt/tasks/{ids['project']}/dates",
            json={"task_type": "project", "start_date": "2025-02-01", "end_date": "2025-05-01"},
        )
        assert response.status_code == 422

    def test_update_dates_invalid_date(self, client, seeded_project):
        ids = seeded_project
        response = client.put(
            f"/projects/{ids['project']}/gantt/tasks/{ids['p1']}/dates",
            json={"task_type": "phase", "start_date": "not-a-date", "end_date": "2025-05-01"},
        )
        assert response.status_code == 422

    def test_update_dates_unknown_task(self, client, seeded_project):
        response = client.put(
            f"/projects/{seeded_project['project']}/gantt/tasks/missing/dates",
            json={"task_type": "work_package", "start_date": "2025-02-01", "end_date": "2025-02-03"},
        )
        assert response.status_code == 404

    def test_update_progress_round_trip(self, client, seeded_project):
        ids = seeded_project
        response = client.put(
            f"/projects/{ids['project']}/gantt/tasks/{ids['wp3']}/progress",
            json={"task_type": "work_package", "progress": 0.5},
        )
        assert response.status_code == 200

        project = client.get(f"/projects/{ids['project']}").json()["data"]
        assert project["phases"][1]["work_packages"][0]["progress_percent"] == 50

        tasks = client.get(f"/projects/{ids['project']}/gantt").json()["data"]["tasks"]
        assert {t["id"]: t["progress"] for t in tasks}[ids["wp3"]] == 0.5

    def test_update_progress_out_of_range(self, client, seeded_project):
        ids = seeded_project
        response = client.put(
            f"/projects/{ids['project']}/gantt/tasks/{ids['wp3']}/progress",
            json={"task_type": "work_package", "progress": 1.5},
        )
        assert response.status_code == 422


class TestHierarchyEndpoints:
    """Test creating and reading a project hierarchy over HTTP."""

    def test_create_and_schedule(self, client):
        resp = client.post("/projects", json={
            "name": "Warehouse",
            "planned_start_date": "2025-01-01",
            "planned_end_date": "2025-01-21",
        })
        assert resp.status_code == 201
        project_id = resp.json()["data"]["id"]

        resp = client.post(f"/projects/{project_id}/phases", json={
            "phase_number": 1,
            "name": "Build",
            "planned_start_date": "2025-01-01",
            "planned_end_date": "2025-01-11",
        })
        assert resp.status_code == 201
        phase_id = resp.json()["data"]["id"]

        resp = client.post(f"/projects/{project_id}/phases/{phase_id}/work-packages", json={
            "package_number": "WP-1",
            "name": "Slab",
            "planned_start_date": "2025-01-01",
            "planned_end_date": "2025-01-06",
            "progress_percent": 40,
        })
        assert resp.status_code == 201

        project = client.get(f"/projects/{project_id}").json()["data"]
        assert project["progress_percent"] == 40
        assert project["phases"][0]["progress_percent"] == 40

        data = client.get(f"/projects/{project_id}/gantt/critical-path").json()["data"]
        assert data["total_duration"] == 20
        assert data["slack_by_task"][phase_id] == 10

    def test_create_phase_unknown_project(self, client):
        resp = client.post("/projects/missing/phases", json={
            "phase_number": 1,
            "name": "Build",
            "planned_start_date": "2025-01-01",
            "planned_end_date": "2025-01-11",
        })
        assert resp.status_code == 404

    def test_get_unknown_project(self, client):
        assert client.get("/projects/missing").status_code == 404
