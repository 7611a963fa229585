def send_request(client, headers, friend_id):
    return client.post("/connections", json={"friend_id": friend_id}, headers=headers)


def test_happy_path(client, alice, bob, auth_headers):
    as_alice = auth_headers(alice)
    as_bob = auth_headers(bob)

    r = send_request(client, as_alice, bob.id)
    assert r.status_code == 201
    created = r.json()
    assert created["status"] == "pending"
    assert created["user_id"] == alice.id
    assert created["friend_id"] == bob.id
    assert created["friend"]["id"] == bob.id

    r = client.get("/connections/pending", headers=as_bob)
    assert r.status_code == 200
    [incoming] = r.json()
    assert incoming["id"] == created["id"]
    assert incoming["friend"]["id"] == alice.id
    assert incoming["friend"]["email"] == "alice@example.com"

    r = client.patch(
        f"/connections/{created['id']}",
        json={"status": "accepted"},
        headers=as_bob,
    )
    assert r.status_code == 200
    assert r.json()["status"] == "accepted"

    r = client.get("/connections/friends", headers=as_alice)
    assert r.status_code == 200
    [friend] = r.json()
    assert friend["id"] == created["id"]
    assert friend["friend"]["id"] == bob.id


def test_duplicate_request_is_409_envelope(client, alice, bob, auth_headers):
    assert send_request(client, auth_headers(alice), bob.id).status_code == 201

    r = send_request(client, auth_headers(bob), alice.id)
    assert r.status_code == 409
    body = r.json()
    assert body["success"] is False
    assert body["statusCode"] == 409
    assert body["message"] == "Connection already exists"
    assert body["data"] is None
    assert body["error"]["kind"] == "conflict"


def test_self_request_is_400(client, alice, auth_headers):
    r = send_request(client, auth_headers(alice), alice.id)
    assert r.status_code == 400
    assert r.json()["error"]["kind"] == "invalid_operation"


def test_request_to_unknown_user_is_404(client, alice, auth_headers):
    r = send_request(client, auth_headers(alice), "nobody")
    assert r.status_code == 404
    assert r.json()["message"] == "Friend not found"


def test_missing_body_field_is_400(client, alice, auth_headers):
    r = client.post("/connections", json={}, headers=auth_headers(alice))
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_requester_cannot_accept(client, alice, bob, auth_headers):
    conn = send_request(client, auth_headers(alice), bob.id).json()

    r = client.patch(
        f"/connections/{conn['id']}",
        json={"status": "accepted"},
        headers=auth_headers(alice),
    )
    assert r.status_code == 403
    assert r.json()["message"] == "Only the receiver can update connection status"


def test_invalid_status_value_is_400(client, alice, bob, auth_headers):
    conn = send_request(client, auth_headers(alice), bob.id).json()

    r = client.patch(
        f"/connections/{conn['id']}",
        json={"status": "pending"},
        headers=auth_headers(bob),
    )
    assert r.status_code == 400


def test_second_transition_is_409(client, alice, bob, auth_headers):
    conn = send_request(client, auth_headers(alice), bob.id).json()
    url = f"/connections/{conn['id']}"

    assert client.patch(url, json={"status": "blocked"}, headers=auth_headers(bob)).status_code == 200

    r = client.patch(url, json={"status": "accepted"}, headers=auth_headers(bob))
    assert r.status_code == 409

    r = client.get(url, headers=auth_headers(alice))
    assert r.json()["status"] == "blocked"


def test_list_perspective_and_filter(client, alice, bob, carol, auth_headers):
    ab = send_request(client, auth_headers(alice), bob.id).json()
    send_request(client, auth_headers(carol), alice.id)

    r = client.get("/connections", headers=auth_headers(alice))
    assert r.status_code == 200
    friends = {c["friend"]["id"] for c in r.json()}
    assert friends == {bob.id, carol.id}

    r = client.get("/connections", headers=auth_headers(bob))
    [seen_by_bob] = r.json()
    assert seen_by_bob["id"] == ab["id"]
    assert seen_by_bob["friend"]["id"] == alice.id

    r = client.get("/connections", params={"status": "accepted"}, headers=auth_headers(alice))
    assert r.json() == []

    r = client.get("/connections", params={"status": "bogus"}, headers=auth_headers(alice))
    assert r.status_code == 400


def test_get_by_id_party_only(client, alice, bob, carol, auth_headers):
    conn = send_request(client, auth_headers(alice), bob.id).json()

    assert client.get(f"/connections/{conn['id']}", headers=auth_headers(bob)).status_code == 200

    r = client.get(f"/connections/{conn['id']}", headers=auth_headers(carol))
    assert r.status_code == 403

    r = client.get("/connections/9999", headers=auth_headers(alice))
    assert r.status_code == 404


def test_remove_by_receiver_and_outsider(client, alice, bob, carol, auth_headers):
    conn = send_request(client, auth_headers(alice), bob.id).json()
    url = f"/connections/{conn['id']}"

    assert client.delete(url, headers=auth_headers(carol)).status_code == 403

    r = client.delete(url, headers=auth_headers(bob))
    assert r.status_code == 200
    assert r.json() == {"message": "Connection removed successfully"}

    assert client.delete(url, headers=auth_headers(bob)).status_code == 404
    assert client.get("/connections", headers=auth_headers(alice)).json() == []


def test_connection_status_helper(client, alice, bob, auth_headers):
    r = client.get(f"/connections/status/{bob.id}", headers=auth_headers(alice))
    assert r.json() == {"status": "none", "connection_id": None}

    conn = send_request(client, auth_headers(alice), bob.id).json()

    r = client.get(f"/connections/status/{alice.id}", headers=auth_headers(bob))
    assert r.json() == {"status": "incoming_pending", "connection_id": conn["id"]}

    r = client.get(f"/connections/status/{alice.id}", headers=auth_headers(alice))
    assert r.json()["status"] == "self"


def test_connections_require_auth(client):
    r = client.get("/connections")
    assert r.status_code == 401
    assert r.json()["error"]["kind"] == "unauthorized"

    r = client.get("/connections", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
