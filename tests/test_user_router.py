def test_search_excludes_caller(client, alice, bob, carol, auth_headers):
    r = client.get("/users", headers=auth_headers(alice))
    assert r.status_code == 200
    assert [u["name"] for u in r.json()] == ["Bob", "Carol"]

    r = client.get("/users", params={"search": "car"}, headers=auth_headers(alice))
    assert [u["id"] for u in r.json()] == [carol.id]


def test_get_public_profile(client, alice, bob, auth_headers):
    r = client.get(f"/users/{bob.id}", headers=auth_headers(alice))
    assert r.status_code == 200
    assert r.json() == {
        "id": bob.id,
        "name": "Bob",
        "email": "bob@example.com",
        "profile_url": None,
    }

    assert client.get("/users/unknown", headers=auth_headers(alice)).status_code == 404


def test_update_me(client, alice, auth_headers):
    r = client.patch(
        "/users/me",
        json={"name": "Alicia", "profile_url": "https://cdn.example.com/a.png"},
        headers=auth_headers(alice),
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Alicia"
    assert r.json()["profile_url"] == "https://cdn.example.com/a.png"

    r = client.patch("/users/me", json={"name": "   "}, headers=auth_headers(alice))
    assert r.status_code == 400
