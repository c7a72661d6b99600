"""
Tests for the chart of accounts endpoints.

These test the HTTP layer: status codes, response format
and error bodies. Business rules are tested in
test_account_service.py.
"""


def create(client, code, account_type, **extra):
    return client.post("/accounts", json={
        "code": code,
        "name": f"Account {code}",
        "account_type": account_type,
        **extra,
    })


class TestCreateAccount:

    def test_create_account_returns_201(self, client):
        response = create(client, "1000", "ASSET")
        assert response.status_code == 201

        data = response.json()
        assert data["code"] == "1000"
        assert data["normal_balance"] == "DEBIT"
        assert data["is_active"] is True

    def test_duplicate_code_returns_409(self, client):
        create(client, "1000", "ASSET")
        response = create(client, "1000", "ASSET")

        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "DUPLICATE_CODE"

    def test_invalid_account_type_returns_422(self, client):
        response = create(client, "1000", "REVENUE")
        assert response.status_code == 422

    def test_get_by_id_and_code(self, client):
        account_id = create(client, "4000", "INCOME").json()["id"]

        assert client.get(f"/accounts/{account_id}").json()["code"] == "4000"
        assert client.get("/accounts/by-code/4000").json()["id"] == account_id
        assert client.get("/accounts/9999").status_code == 404

    def test_list_accounts_by_type(self, client):
        create(client, "1000", "ASSET")
        create(client, "4000", "INCOME")

        response = client.get("/accounts", params={"account_type": "INCOME"})
        assert [a["code"] for a in response.json()] == ["4000"]


class TestTree:

    def test_set_parent(self, client):
        parent_id = create(client, "1000", "ASSET").json()["id"]
        child_id = create(client, "1010", "ASSET").json()["id"]

        response = client.patch(
            f"/accounts/{child_id}/parent", json={"parent_id": parent_id}
        )
        assert response.status_code == 200
        assert response.json()["parent_id"] == parent_id

    def test_cycle_returns_409(self, client):
        parent_id = create(client, "1000", "ASSET").json()["id"]
        child_id = create(client, "1010", "ASSET", parent_id=parent_id).json()["id"]

        response = client.patch(
            f"/accounts/{parent_id}/parent", json={"parent_id": child_id}
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "ACCOUNT_CYCLE"


class TestActivation:

    def test_deactivate_and_activate(self, client):
        account_id = create(client, "1000", "ASSET").json()["id"]

        response = client.post(f"/accounts/{account_id}/deactivate")
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        response = client.post(f"/accounts/{account_id}/activate")
        assert response.json()["is_active"] is True

    def test_system_account_deactivation_returns_409(self, client):
        account_id = create(client, "3000", "EQUITY", is_system=True).json()["id"]

        response = client.post(f"/accounts/{account_id}/deactivate")
        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "ACCOUNT_IN_USE"
