from fastapi.testclient import TestClient

from banner_service.main import app

client = TestClient(app)


def create_media(headers, url="https://cdn.example.com/banner.png", alt_text="Banner"):
    r = client.post("/media", json={"url": url, "alt_text": alt_text}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def create_banner(headers, **overrides):
    payload = {"title": "Spring sale", "desktop_url": "https://shop.example.com/spring"}
    payload.update(overrides)
    r = client.post("/banners", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r


def test_create_and_fetch_banner(admin_headers):
    media_id = create_media(admin_headers)
    r = create_banner(admin_headers, desktop_image_id=media_id, weight=0, start_date="2030-01-01T10:00:00+02:00")
    data = r.json()
    assert r.headers["location"].endswith(f"/banners/{data['id']}")
    assert data["status"] == "active"
    assert data["weight"] == 1
    assert data["desktop_image_url"] == "https://cdn.example.com/banner.png"
    assert data["start_date"].startswith("2030-01-01T08:00:00")

    r = client.get(f"/banners/{data['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["title"] == "Spring sale"


def test_zero_image_id_means_no_image(admin_headers):
    data = create_banner(admin_headers, desktop_image_id=0, mobile_image_id="").json()
    assert data["desktop_image_id"] is None
    assert data["mobile_image_id"] is None


def test_invalid_payloads_are_400(admin_headers):
    r = client.post("/banners", json={"title": "x", "desktop_url": "javascript:alert(1)"}, headers=admin_headers)
    assert r.status_code == 400
    assert "desktop_url" in r.text
    r = client.post("/banners", json={"title": "x", "desktop_url": "https://a.example.com", "status": "deleted"}, headers=admin_headers)
    assert r.status_code == 400
    r = client.post(
        "/banners",
        json={"title": "x", "desktop_url": "https://a.example.com", "start_date": "2030-02-01T00:00:00", "end_date": "2030-01-01T00:00:00"},
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_list_paginates_filters_and_counts(admin_headers):
    for i in range(3):
        create_banner(admin_headers, title=f"Active {i}")
    create_banner(admin_headers, title="Paused", status="paused")

    r = client.get("/banners", params={"per_page": 2, "orderby": "id", "order": "asc"}, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.headers["x-total-count"] == "4"
    assert r.headers["x-total-pages"] == "2"
    assert [b["title"] for b in r.json()] == ["Active 0", "Active 1"]

    r = client.get("/banners", params={"status": "paused"}, headers=admin_headers)
    assert [b["title"] for b in r.json()] == ["Paused"]

    r = client.get("/banners", params={"orderby": "password"}, headers=admin_headers)
    assert r.status_code == 400


def test_partial_update_only_touches_given_fields(admin_headers):
    banner_id = create_banner(admin_headers, weight=5).json()["id"]
    r = client.put(f"/banners/{banner_id}", json={"status": "paused"}, headers=admin_headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["status"] == "paused"
    assert data["weight"] == 5
    assert data["title"] == "Spring sale"

    r = client.put(f"/banners/{banner_id}", json={"end_date": "2000-01-01T00:00:00", "start_date": "2001-01-01T00:00:00"}, headers=admin_headers)
    assert r.status_code == 400


def test_missing_banner_is_404(admin_headers):
    assert client.get("/banners/999", headers=admin_headers).status_code == 404
    assert client.put("/banners/999", json={"title": "x"}, headers=admin_headers).status_code == 404
    assert client.delete("/banners/999", headers=admin_headers).status_code == 404


def test_delete_removes_assignments(admin_headers):
    banner_id = create_banner(admin_headers).json()["id"]
    r = client.post("/placements", json={"slug": "sidebar", "name": "Sidebar"}, headers=admin_headers)
    placement_id = r.json()["id"]
    r = client.post(f"/placements/{placement_id}/banners", json={"banner_id": banner_id}, headers=admin_headers)
    assert r.status_code == 201, r.text

    r = client.get(f"/banners/{banner_id}/placements", headers=admin_headers)
    assert [p["slug"] for p in r.json()] == ["sidebar"]

    r = client.delete(f"/banners/{banner_id}", headers=admin_headers)
    assert r.status_code == 204
    r = client.get(f"/placements/{placement_id}/banners", headers=admin_headers)
    assert r.json() == []


def test_media_registry(admin_headers):
    media_id = create_media(admin_headers, url="/uploads/hero.png")
    banner_id = create_banner(admin_headers, desktop_image_id=media_id).json()["id"]
    assert client.get(f"/media/{media_id}", headers=admin_headers).json()["url"] == "/uploads/hero.png"
    r = client.post("/media", json={"url": "javascript:x"}, headers=admin_headers)
    assert r.status_code == 400

    assert client.delete(f"/media/{media_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/media/{media_id}", headers=admin_headers).status_code == 404
    assert client.get(f"/banners/{banner_id}", headers=admin_headers).json()["desktop_image_id"] is None


def test_unknown_image_reference_is_400(admin_headers):
    r = client.post(
        "/banners",
        json={"title": "x", "desktop_url": "https://e.example.com", "desktop_image_id": 999},
        headers=admin_headers,
    )
    assert r.status_code == 400, r.text
    assert "desktop_image_id" in r.text

    banner_id = create_banner(admin_headers).json()["id"]
    r = client.put(f"/banners/{banner_id}", json={"mobile_image_id": 555}, headers=admin_headers)
    assert r.status_code == 400, r.text
    assert "mobile_image_id" in r.text
    assert client.get(f"/banners/{banner_id}", headers=admin_headers).json()["mobile_image_id"] is None
