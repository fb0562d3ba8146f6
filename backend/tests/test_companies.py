from app.models import Review, User
from conftest import auth, make_company, register


def _create(client, token, **body):
    return client.post("/api/companies", json=body, headers=auth(token))


def test_create_company_requires_admin(client, admin_token, user_token):
    payload = {"name": "Acme", "description": "Widgets", "industry": "Manufacturing", "location": "UB"}

    r = client.post("/api/companies", json=payload)
    assert r.status_code == 401

    r = _create(client, user_token, **payload)
    assert r.status_code == 403
    assert r.json() == {"success": False, "error": "User role user is not authorized to access this route"}

    r = _create(client, admin_token, **payload)
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["name"] == "Acme"
    assert data["average_rating"] is None
    assert "created_at" in data


def test_create_company_validation(client, admin_token):
    assert _create(client, admin_token, name="  Acme  ").json()["data"]["name"] == "Acme"
    r = _create(client, admin_token, name="Acme")
    assert r.status_code == 400
    assert r.json()["success"] is False

    assert _create(client, admin_token, name="x" * 51).status_code == 400
    assert _create(client, admin_token, name="Long", description="d" * 501).status_code == 400
    assert _create(client, admin_token, description="no name").status_code == 400


def test_get_company_with_reviews(client, db, admin_token, user_token):
    company = make_company(db, "Acme")
    r = client.post(
        f"/api/companies/{company.id}/reviews",
        json={"rating": 4, "comment": "Good place"},
        headers=auth(user_token),
    )
    assert r.status_code == 201

    r = client.get(f"/api/companies/{company.id}")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Acme"
    assert data["average_rating"] == 4
    assert [rv["comment"] for rv in data["reviews"]] == ["Good place"]


def test_get_company_not_found(client):
    r = client.get("/api/companies/999")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Company not found"}


def test_list_select_limit_page(client, db):
    for name in ("Alpha", "Beta", "Gamma"):
        make_company(db, name, industry="IT")

    r = client.get("/api/companies", params={"select": "name", "limit": 2, "page": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert body["total"] == 3
    assert all(set(item) == {"id", "name"} for item in body["data"])
    assert body["pagination"] == {"next": {"page": 2, "limit": 2}}

    r = client.get("/api/companies", params={"select": "name", "limit": 2, "page": 2})
    body = r.json()
    assert body["count"] == 1
    assert body["pagination"] == {"prev": {"page": 1, "limit": 2}}


def test_list_without_next_page_when_all_fit(client, db):
    make_company(db, "Alpha")
    make_company(db, "Beta")
    body = client.get("/api/companies", params={"select": "name", "limit": 2}).json()
    assert body["count"] == 2
    assert body["pagination"] == {}


def test_list_defaults_newest_first_with_reviews(client, db):
    make_company(db, "Old")
    make_company(db, "New")
    body = client.get("/api/companies").json()
    assert [c["name"] for c in body["data"]] == ["New", "Old"]
    assert body["data"][0]["reviews"] == []


def test_list_filters_and_sort(client, db):
    make_company(db, "Alpha", location="UB", average_rating=4.5)
    make_company(db, "Beta", location="Darkhan", average_rating=2.0)
    make_company(db, "Gamma", location="UB", average_rating=3.0)
    make_company(db, "Delta", location="Erdenet")

    def names(**params):
        r = client.get("/api/companies", params=params)
        assert r.status_code == 200, r.text
        return [c["name"] for c in r.json()["data"]]

    assert names(location="UB", sort="name") == ["Alpha", "Gamma"]
    assert names(**{"average_rating[gte]": "3", "sort": "-average_rating"}) == ["Alpha", "Gamma"]
    assert names(**{"average_rating[lt]": "3"}) == ["Beta"]
    assert names(**{"name[in]": "Beta,Delta", "sort": "name"}) == ["Beta", "Delta"]
    assert names(**{"average_rating[gt]": "2", "average_rating[lte]": "3"}) == ["Gamma"]

    # total follows the filter
    body = client.get("/api/companies", params={"location": "UB", "limit": 1}).json()
    assert body["total"] == 2
    assert "next" in body["pagination"]


def test_list_operator_words_inside_values_are_literal(client, db):
    make_company(db, "Alpha", description="in gt lt")
    make_company(db, "Beta", description="other")
    body = client.get("/api/companies", params={"description": "in gt lt"}).json()
    assert [c["name"] for c in body["data"]] == ["Alpha"]


def test_list_rejects_bad_query(client, db):
    make_company(db, "Alpha")
    for params in (
        {"password": "x"},
        {"name[regex]": "A"},
        {"average_rating[gt]": "high"},
        {"select": "name,secret"},
        {"sort": "-nope"},
    ):
        r = client.get("/api/companies", params=params)
        assert r.status_code == 400, params
        assert r.json()["success"] is False


def test_update_company(client, db, admin_token, user_token):
    company = make_company(db, "Acme", location="UB")
    make_company(db, "Other")

    r = client.put(f"/api/companies/{company.id}", json={"location": "Darkhan"}, headers=auth(user_token))
    assert r.status_code == 403

    r = client.put(f"/api/companies/{company.id}", json={"location": "Darkhan"}, headers=auth(admin_token))
    assert r.status_code == 200
    assert r.json()["data"]["location"] == "Darkhan"
    assert r.json()["data"]["name"] == "Acme"

    r = client.put(f"/api/companies/{company.id}", json={"name": "Other"}, headers=auth(admin_token))
    assert r.status_code == 400

    r = client.put("/api/companies/999", json={"location": "x"}, headers=auth(admin_token))
    assert r.status_code == 404


def test_delete_company_cascades_reviews(client, db, admin_token):
    company = make_company(db, "Acme")
    keep = make_company(db, "Keep")
    review_ids = []
    for i, email in enumerate(("u1@example.com", "u2@example.com")):
        token = register(client, email)
        r = client.post(
            f"/api/companies/{company.id}/reviews",
            json={"rating": i + 3, "comment": "ok"},
            headers=auth(token),
        )
        review_ids.append(r.json()["data"]["id"])
        client.post(f"/api/companies/{keep.id}/reviews", json={"rating": 5, "comment": "ok"}, headers=auth(token))

    r = client.delete(f"/api/companies/{company.id}", headers=auth(admin_token))
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {}}

    assert client.get(f"/api/companies/{company.id}").status_code == 404
    for review_id in review_ids:
        assert client.get(f"/api/reviews/{review_id}").status_code == 404
    assert db.query(Review).filter(Review.company_id == keep.id).count() == 2
    assert db.query(User).count() == 3


def test_delete_company_not_found(client, admin_token):
    assert client.delete("/api/companies/42", headers=auth(admin_token)).status_code == 404
