from fastapi.testclient import TestClient


def create_table(client: TestClient, name: str) -> dict:
    response = client.post("/api/v1/tables/", json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()


def create_field(client: TestClient, table_id: str, label: str, type: str = "text", **extra) -> dict:
    response = client.post(f"/api/v1/tables/{table_id}/fields/", json={"label": label, "type": type, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def field_names(client: TestClient, table_id: str) -> list[str]:
    response = client.get(f"/api/v1/tables/{table_id}/fields/")
    assert response.status_code == 200
    return [field["name"] for field in response.json()]
