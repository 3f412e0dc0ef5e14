import uuid

from conftest import auth_header, make_place, register


def _comment(client, token, **payload):
    r = client.post("/comments", json=payload, headers=auth_header(token))
    assert r.status_code == 201, r.text
    return r.json()


def test_create_and_list_place_comments(client, db):
    place = make_place(db)
    token, user_id = register(client, "ana@example.com")

    c = _comment(client, token, content="  Muy bonito  ", place_id=place.id)
    assert c["content"] == "Muy bonito"
    assert c["user_id"] == user_id
    assert c["place_name"] == "Cascada El Salto"

    body = client.get(f"/comments/place/{place.id}").json()
    assert body["total"] == 1
    assert body["items"][0]["username"] == "ana"

    assert client.get(f"/comments/user/{user_id}").json()["total"] == 1
    assert client.get(f"/comments/{c['id']}").json()["reaction_count"] == 0


def test_reply_inherits_place(client, db):
    place = make_place(db)
    token, _ = register(client)

    parent = _comment(client, token, content="Pregunta", place_id=place.id)
    reply = _comment(client, token, content="Respuesta", parent_comment_id=parent["id"])
    assert reply["parent_comment_id"] == parent["id"]
    assert reply["place_id"] == place.id


def test_comment_validation(client, db):
    token, _ = register(client)

    r = client.post("/comments", json={"content": "   "}, headers=auth_header(token))
    assert r.status_code == 400
    r = client.post("/comments", json={"content": "hola", "place_id": str(uuid.uuid4())}, headers=auth_header(token))
    assert r.status_code == 404
    assert client.post("/comments", json={"content": "hola"}).status_code == 401


def test_only_author_edits_comment(client, db):
    author, _ = register(client, "author@example.com")
    other, _ = register(client, "other@example.com")
    c = _comment(client, author, content="Original")

    assert client.put(f"/comments/{c['id']}", json={"content": "X"}, headers=auth_header(other)).status_code == 403

    r = client.put(f"/comments/{c['id']}", json={"content": "Editado"}, headers=auth_header(author))
    assert r.status_code == 200
    assert r.json()["content"] == "Editado"

    assert client.delete(f"/comments/{c['id']}", headers=auth_header(other)).status_code == 403
    assert client.delete(f"/comments/{c['id']}", headers=auth_header(author)).status_code == 204
    assert client.get(f"/comments/{c['id']}").status_code == 404


def test_comment_reactions(client, db):
    place = make_place(db)
    author, _ = register(client, "author@example.com")
    fan, _ = register(client, "fan@example.com")
    c = _comment(client, author, content="Hermoso", place_id=place.id)

    r = client.post(f"/comments/{c['id']}/reactions", json={"reaction_type": "love"}, headers=auth_header(fan))
    assert r.status_code == 201, r.text
    reaction = r.json()
    assert reaction["target_id"] == c["id"]

    r = client.post(f"/comments/{c['id']}/reactions", json={"reaction_type": "like"}, headers=auth_header(fan))
    assert r.status_code == 409

    r = client.post(f"/comments/{c['id']}/reactions", json={"reaction_type": "meh"}, headers=auth_header(author))
    assert r.status_code == 422

    client.post(f"/comments/{c['id']}/reactions", json={"reaction_type": "like"}, headers=auth_header(author))

    counts = client.get(f"/comments/{c['id']}/reaction-count").json()
    assert counts["total"] == 2
    assert {x["reaction_type"]: x["count"] for x in counts["counts"]} == {"like": 1, "love": 1}

    listed = client.get(f"/comments/place/{place.id}", headers=auth_header(fan)).json()["items"][0]
    assert listed["reaction_count"] == 2
    assert listed["user_has_reacted"] is True
    anonymous = client.get(f"/comments/place/{place.id}").json()["items"][0]
    assert anonymous["user_has_reacted"] is False

    assert client.get(f"/comments/{c['id']}/reactions").json()["total"] == 2

    assert client.delete(f"/reactions/comments/id/{reaction['id']}", headers=auth_header(author)).status_code == 403
    assert client.delete(f"/reactions/comments/id/{reaction['id']}", headers=auth_header(fan)).status_code == 204

    assert client.delete(f"/comments/{c['id']}/reaction", headers=auth_header(author)).status_code == 204
    assert client.delete(f"/comments/{c['id']}/reaction", headers=auth_header(author)).status_code == 404
    assert client.get(f"/comments/{c['id']}/reaction-count").json()["total"] == 0


def test_deleting_comment_removes_reactions(client, db):
    author, _ = register(client, "author@example.com")
    c = _comment(client, author, content="Temporal")
    client.post(f"/comments/{c['id']}/reactions", json={"reaction_type": "sad"}, headers=auth_header(author))

    assert client.delete(f"/comments/{c['id']}", headers=auth_header(author)).status_code == 204
    assert client.get(f"/comments/{c['id']}/reaction-count").json()["total"] == 0
