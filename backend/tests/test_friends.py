def test_friend_request_accept_and_unfriend(client, register):
    alice, alice_headers = register("alice", "Alice")
    bob, bob_headers = register("bobby", "Bob")

    res = client.post("/api/friends/request", json={"user_id": bob["id"]}, headers=alice_headers)
    assert res.status_code == 201
    request_id = res.json()["id"]
    assert res.json()["status"] == "pending"

    # a second request while one is pending is rejected
    assert client.post("/api/friends/request", json={"user_id": bob["id"]}, headers=alice_headers).status_code == 400

    pending = client.get("/api/friends/request", headers=bob_headers).json()
    assert [entry["id"] for entry in pending] == [request_id]
    assert pending[0]["from_user"]["username"] == "alice"

    # only the recipient answers
    res = client.patch(f"/api/friends/{request_id}", json={"action": "accepted"}, headers=alice_headers)
    assert res.status_code == 403

    res = client.patch(f"/api/friends/{request_id}", json={"action": "accepted"}, headers=bob_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "accepted"
    assert client.patch(f"/api/friends/{request_id}", json={"action": "declined"}, headers=bob_headers).status_code == 400

    friends = client.get("/api/friends", headers=alice_headers).json()["friends"]
    assert [friend["id"] for friend in friends] == [bob["id"]]
    assert client.get("/api/users/bobby", headers=alice_headers).json()["is_friend"] is True

    notifications = client.get("/api/notifications", headers=alice_headers).json()["notifications"]
    assert notifications[0]["type"] == "friend_accepted"

    assert client.post("/api/friends/request", json={"user_id": bob["id"]}, headers=alice_headers).status_code == 400

    assert client.delete(f"/api/friends/{bob['id']}", headers=alice_headers).status_code == 204
    assert client.get("/api/friends", headers=bob_headers).json()["friends"] == []
    assert client.delete(f"/api/friends/{bob['id']}", headers=alice_headers).status_code == 404


def test_declined_request_creates_no_friendship(client, register):
    _, alice_headers = register("alice")
    bob, bob_headers = register("bobby")
    request_id = client.post("/api/friends/request", json={"user_id": bob["id"]}, headers=alice_headers).json()["id"]

    res = client.patch(f"/api/friends/{request_id}", json={"action": "declined"}, headers=bob_headers)
    assert res.json()["status"] == "declined"
    assert client.get("/api/friends", headers=alice_headers).json()["friends"] == []


def test_friend_request_validation(client, register):
    alice, headers = register("alice")
    assert client.post("/api/friends/request", json={"user_id": alice["id"]}, headers=headers).status_code == 400
    assert client.post("/api/friends/request", json={"user_id": "usr_missing"}, headers=headers).status_code == 404
    assert client.patch("/api/friends/freq_missing", json={"action": "accepted"}, headers=headers).status_code == 404
    assert client.patch("/api/friends/freq_missing", json={"action": "pending"}, headers=headers).status_code == 400
