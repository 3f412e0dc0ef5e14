import uuid

from conftest import auth_header, make_place, register


def _seed_places(db):
    make_place(db, "Cascada El Salto", category="naturaleza", average_rating=4.7, total_ratings=12)
    make_place(db, "Cascada La Chorrera", category="naturaleza", average_rating=3.9, total_ratings=5)
    make_place(db, "Museo del Oro", category="cultura", average_rating=4.9, total_ratings=2)
    make_place(db, "Playa Blanca", category="playa", average_rating=4.2, total_ratings=7)


def test_places_filter_category_and_min_rating(client, db):
    _seed_places(db)

    r = client.get("/places", params={"category": "naturaleza", "min_rating": 4.5})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total"] == 1
    assert body["items"][0]["name"] == "Cascada El Salto"


def test_places_search_and_pagination(client, db):
    _seed_places(db)

    r1 = client.get("/places", params={"q": "cascada", "limit": 1, "offset": 0})
    assert r1.status_code == 200, r1.text
    body1 = r1.json()
    assert body1["total"] == 2
    assert len(body1["items"]) == 1

    r2 = client.get("/places", params={"q": "cascada", "limit": 1, "offset": 1})
    body2 = r2.json()
    assert len(body2["items"]) == 1
    assert body2["items"][0]["id"] != body1["items"][0]["id"]


def test_places_by_category(client, db):
    _seed_places(db)

    r = client.get("/places/category/cultura")
    assert r.status_code == 200
    assert [p["name"] for p in r.json()["items"]] == ["Museo del Oro"]


def test_place_crud(client):
    token, _ = register(client)

    r = client.post(
        "/places",
        json={"name": "  Parque Tayrona ", "category": "naturaleza", "location": "Santa Marta"},
        headers=auth_header(token),
    )
    assert r.status_code == 201, r.text
    place = r.json()
    assert place["name"] == "Parque Tayrona"
    assert place["average_rating"] == 0
    assert place["total_ratings"] == 0

    r = client.put(f"/places/{place['id']}", json={"description": "Playas y selva"}, headers=auth_header(token))
    assert r.status_code == 200, r.text
    assert r.json()["description"] == "Playas y selva"
    assert r.json()["location"] == "Santa Marta"

    assert client.delete(f"/places/{place['id']}", headers=auth_header(token)).status_code == 204
    assert client.get(f"/places/{place['id']}").status_code == 404


def test_place_writes_require_auth(client, db):
    place = make_place(db)

    assert client.post("/places", json={"name": "X"}).status_code == 401
    assert client.put(f"/places/{place.id}", json={"name": "Y"}).status_code == 401
    assert client.delete(f"/places/{place.id}").status_code == 401


def test_rating_aggregate_not_writable_through_update(client, db):
    place = make_place(db)
    token, _ = register(client)

    r = client.put(
        f"/places/{place.id}",
        json={"name": "Nuevo nombre", "average_rating": 5, "total_ratings": 100},
        headers=auth_header(token),
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "Nuevo nombre"
    assert body["average_rating"] == 0
    assert body["total_ratings"] == 0


def test_unknown_place(client):
    assert client.get(f"/places/{uuid.uuid4()}").status_code == 404


def test_upload_and_remove_place_image(client, db):
    place = make_place(db)
    token, _ = register(client)

    r = client.post(
        f"/places/{place.id}/upload-image",
        files={"file": ("salto.png", b"\x89PNG fake image", "image/png")},
        headers=auth_header(token),
    )
    assert r.status_code == 200, r.text
    url = r.json()["url"]
    assert url.startswith("/uploads/place-")
    assert url.endswith(".png")
    assert r.json()["place"]["image_url"] == url

    assert client.get(url).content == b"\x89PNG fake image"

    r = client.delete(f"/places/{place.id}/files/image", headers=auth_header(token))
    assert r.status_code == 200
    assert r.json()["place"]["image_url"] is None

    assert client.delete(f"/places/{place.id}/files/video", headers=auth_header(token)).status_code == 400


def test_upload_rejects_wrong_types(client, db):
    place = make_place(db)
    token, _ = register(client)

    r = client.post(
        f"/places/{place.id}/upload-image",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_header(token),
    )
    assert r.status_code == 400

    r = client.post(
        f"/places/{place.id}/upload-pdf",
        files={"file": ("salto.png", b"\x89PNG", "image/png")},
        headers=auth_header(token),
    )
    assert r.status_code == 400

    r = client.post(
        f"/places/{place.id}/upload-pdf",
        files={"file": ("guia.pdf", b"%PDF-1.4 guide", "application/pdf")},
        headers=auth_header(token),
    )
    assert r.status_code == 200, r.text
    assert r.json()["place"]["pdf_url"].endswith(".pdf")
