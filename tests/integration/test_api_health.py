from __future__ import annotations

from fastapi.testclient import TestClient

from codevault.api.app import create_app


def test_health_endpoint_needs_no_store() -> None:
    app = create_app()
    client = TestClient(app)

    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_openapi_lists_history_surfaces() -> None:
    client = TestClient(create_app())

    schema = client.get("/openapi.json").json()

    assert schema["info"]["title"] == "codevault API"
    paths = set(schema["paths"])
    assert "/api/v1/projects/{project_id}/files" in paths
    assert "/api/v1/sessions/{session_id}/versions/{label}/files" in paths
    assert "/api/v1/projects/{project_id}/deployment" in paths
    assert "/api/v1/tools/call" in paths
