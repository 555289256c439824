import pytest
from uuid import uuid4
from fastapi.testclient import TestClient

from helpers import create_field, create_table


@pytest.mark.integration
class TestTableEndpoints:

    def test_create_and_list_tables(self, client: TestClient):
        create_table(client, "projects")
        create_table(client, "clients")

        response = client.get("/api/v1/tables/")

        assert response.status_code == 200
        assert [table["name"] for table in response.json()] == ["clients", "projects"]

    def test_create_duplicate_table(self, client: TestClient):
        create_table(client, "projects")

        response = client.post("/api/v1/tables/", json={"name": "projects"})

        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_get_table(self, client: TestClient, sample_table):
        response = client.get(f"/api/v1/tables/{sample_table.id}/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == sample_table.name
        assert data["primary_field_name"] is None

    def test_get_table_not_found(self, client: TestClient):
        response = client.get(f"/api/v1/tables/{uuid4()}/")

        assert response.status_code == 404

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "fieldgrid-api"}


@pytest.mark.integration
class TestPrimaryFieldEndpoints:

    def test_table_without_fields_uses_id(self, client: TestClient):
        table = create_table(client, "projects")

        response = client.get(f"/api/v1/tables/{table['id']}/primary-field/")

        assert response.status_code == 200
        assert response.json() == {"primary_field_name": None, "effective_primary_field": "id"}

    def test_automatic_primary_is_first_regular_field(self, client: TestClient):
        table = create_table(client, "projects")
        create_field(client, table["id"], "Summary", "formula", options={"formula": "1 + 1"})
        create_field(client, table["id"], "Title")
        create_field(client, table["id"], "Budget", "number")

        response = client.get(f"/api/v1/tables/{table['id']}/primary-field/")

        assert response.json()["effective_primary_field"] == "title"

    def test_select_explicit_primary(self, client: TestClient):
        table = create_table(client, "projects")
        create_field(client, table["id"], "Title")
        create_field(client, table["id"], "Code")

        response = client.put(f"/api/v1/tables/{table['id']}/primary-field/", json={"primary_field": "code"})

        assert response.status_code == 200
        assert response.json() == {"primary_field_name": "code", "effective_primary_field": "code"}

    def test_select_id_and_back_to_auto(self, client: TestClient):
        table = create_table(client, "projects")
        create_field(client, table["id"], "Title")

        response = client.put(f"/api/v1/tables/{table['id']}/primary-field/", json={"primary_field": "id"})
        assert response.json() == {"primary_field_name": "id", "effective_primary_field": "id"}

        response = client.put(f"/api/v1/tables/{table['id']}/primary-field/", json={"primary_field": "auto"})
        assert response.json() == {"primary_field_name": None, "effective_primary_field": "title"}

    def test_select_unknown_field(self, client: TestClient):
        table = create_table(client, "projects")

        response = client.put(f"/api/v1/tables/{table['id']}/primary-field/", json={"primary_field": "missing"})

        assert response.status_code == 404

    def test_deleting_primary_falls_back_to_auto(self, client: TestClient):
        table = create_table(client, "projects")
        create_field(client, table["id"], "Title")
        code = create_field(client, table["id"], "Code")
        client.put(f"/api/v1/tables/{table['id']}/primary-field/", json={"primary_field": "code"})

        response = client.delete(f"/api/v1/tables/{table['id']}/fields/{code['id']}/")
        assert response.status_code == 204

        response = client.get(f"/api/v1/tables/{table['id']}/primary-field/")
        assert response.json() == {"primary_field_name": None, "effective_primary_field": "title"}

    def test_renaming_primary_field_follows_rename(self, client: TestClient):
        table = create_table(client, "projects")
        create_field(client, table["id"], "Title")
        code = create_field(client, table["id"], "Code")
        client.put(f"/api/v1/tables/{table['id']}/primary-field/", json={"primary_field": "code"})

        response = client.patch(
            f"/api/v1/tables/{table['id']}/fields/{code['id']}/", json={"internal_name": "project_code"}
        )
        assert response.status_code == 200

        response = client.get(f"/api/v1/tables/{table['id']}/primary-field/")
        assert response.json() == {"primary_field_name": "project_code", "effective_primary_field": "project_code"}
