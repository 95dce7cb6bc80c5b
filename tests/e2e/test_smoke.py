from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from codevault.api.app import create_app
from codevault.api.deps import get_history_manager
from tests.support.history_helpers import make_manager


def test_e2e_generate_edit_and_deploy(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    app = create_app()
    app.dependency_overrides[get_history_manager] = lambda: manager
    client = TestClient(app)

    assert client.get("/api/v1/health").json() == {"status": "ok"}

    resolved = client.post("/api/v1/sessions/e2e-session/project", json={"user_id": "u1"})
    project_id = resolved.json()["project_id"]

    for name in ("app/page.tsx", "app/layout.tsx", "package.json"):
        response = client.post(
            "/api/v1/sessions/e2e-session/files",
            json={"user_id": "u1", "files": [{"filename": name, "content": f"// {name}"}]},
        )
        assert response.status_code == 201

    edit = client.post(
        "/api/v1/sessions/e2e-session/edits",
        json={
            "user_id": "u1",
            "prompt": "remove the layout",
            "files": [{"filename": "app/layout.tsx", "change_type": "deleted"}],
        },
    )
    assert edit.json()["project_id"] == project_id

    deployed = client.post(
        f"/api/v1/projects/{project_id}/deployment",
        json={"url": "https://e2e.example.app"},
    )
    assert deployed.json()["recorded"] is True

    history = client.get("/api/v1/sessions/e2e-session/versions", params={"user_id": "u1"})
    versions = history.json()["versions"]
    assert [v["label"] for v in versions] == ["V2", "V1"]
    assert versions[0]["files_count"] == 2
    assert versions[0]["is_deployed"] is True

    stats = client.get(f"/api/v1/projects/{project_id}/stats").json()
    assert stats["total_files"] == 2
    assert stats["total_commits"] == 5
    assert stats["deployment_url"] == "https://e2e.example.app"
