def _make_group(client, headers, name="Friday Crew"):
    res = client.post("/api/groups", json={"name": name}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["group"]


def _invite_and_accept(client, group_id, inviter_headers, invitee, invitee_headers):
    res = client.post(f"/api/groups/{group_id}/invite", json={"user_id": invitee["id"]}, headers=inviter_headers)
    assert res.status_code == 201, res.text
    invite_id = res.json()["id"]
    res = client.patch(
        "/api/groups/invites/respond",
        json={"invite_id": invite_id, "action": "accepted"},
        headers=invitee_headers,
    )
    assert res.status_code == 200, res.text
    return invite_id


def test_create_and_list_groups(client, register):
    alice, headers = register("alice")
    group = _make_group(client, headers)

    assert group["created_by"] == alice["id"]
    assert group["reveal_mode"] == "all_submitted"

    res = client.get("/api/groups", headers=headers)
    assert [entry["id"] for entry in res.json()] == [group["id"]]

    detail = client.get(f"/api/groups/{group['id']}", headers=headers).json()
    assert detail["admin_ids"] == [alice["id"]]
    assert [member["username"] for member in detail["members"]] == ["alice"]


def test_group_name_validation(client, register):
    _, headers = register("alice")
    assert client.post("/api/groups", json={"name": "x"}, headers=headers).status_code == 400
    assert client.post("/api/groups", json={"name": "x" * 51}, headers=headers).status_code == 400


def test_non_members_are_forbidden(client, register):
    _, alice_headers = register("alice")
    _, bob_headers = register("bobby")
    group = _make_group(client, alice_headers)

    assert client.get(f"/api/groups/{group['id']}", headers=bob_headers).status_code == 403
    assert client.get(f"/api/groups/{group['id']}/scores", headers=bob_headers).status_code == 403
    assert client.get("/api/groups/grp_missing", headers=bob_headers).status_code == 404


def test_invite_flow_adds_member_and_notifies(client, register):
    _, alice_headers = register("alice", "Alice")
    bob, bob_headers = register("bobby")
    group = _make_group(client, alice_headers)

    res = client.post(f"/api/groups/{group['id']}/invite", json={"user_id": bob["id"]}, headers=alice_headers)
    assert res.status_code == 201
    invite_id = res.json()["id"]

    pending = client.get("/api/groups/invites", headers=bob_headers).json()
    assert [invite["id"] for invite in pending] == [invite_id]
    assert pending[0]["group_name"] == "Friday Crew"
    assert pending[0]["from_user"]["display_name"] == "Alice"

    notifications = client.get("/api/notifications", headers=bob_headers).json()
    assert notifications["notifications"][0]["type"] == "group_invite"
    assert notifications["notifications"][0]["data"]["invite_id"] == invite_id

    res = client.patch(
        "/api/groups/invites/respond",
        json={"invite_id": invite_id, "action": "accepted"},
        headers=bob_headers,
    )
    assert res.status_code == 200
    assert res.json()["status"] == "accepted"

    members = client.get(f"/api/groups/{group['id']}/members", headers=bob_headers).json()
    assert {member["username"] for member in members["members"]} == {"alice", "bobby"}

    # answering twice is rejected
    res = client.patch(
        "/api/groups/invites/respond",
        json={"invite_id": invite_id, "action": "declined"},
        headers=bob_headers,
    )
    assert res.status_code == 404

    # already a member now
    res = client.post(f"/api/groups/{group['id']}/invite", json={"user_id": bob["id"]}, headers=alice_headers)
    assert res.status_code == 400


def test_invite_unknown_user(client, register):
    _, headers = register("alice")
    group = _make_group(client, headers)
    res = client.post(f"/api/groups/{group['id']}/invite", json={"user_id": "usr_missing"}, headers=headers)
    assert res.status_code == 404


def test_only_the_invitee_can_respond(client, register):
    _, alice_headers = register("alice")
    bob, _ = register("bobby")
    _, carol_headers = register("carol")
    group = _make_group(client, alice_headers)
    invite_id = client.post(
        f"/api/groups/{group['id']}/invite", json={"user_id": bob["id"]}, headers=alice_headers
    ).json()["id"]

    res = client.patch(
        "/api/groups/invites/respond",
        json={"invite_id": invite_id, "action": "accepted"},
        headers=carol_headers,
    )
    assert res.status_code == 404


def test_rename_delete_and_leave(client, register):
    _, alice_headers = register("alice")
    bob, bob_headers = register("bobby")
    group = _make_group(client, alice_headers)
    _invite_and_accept(client, group["id"], alice_headers, bob, bob_headers)

    assert client.patch(f"/api/groups/{group['id']}", json={"name": "Nope"}, headers=bob_headers).status_code == 403
    res = client.patch(f"/api/groups/{group['id']}", json={"name": "Weekend Crew"}, headers=alice_headers)
    assert res.status_code == 200
    assert res.json()["name"] == "Weekend Crew"

    # members may only remove themselves
    res = client.delete(f"/api/groups/{group['id']}/members", params={"user_id": "usr_other"}, headers=bob_headers)
    assert res.status_code == 403
    assert client.delete(f"/api/groups/{group['id']}/members", headers=bob_headers).status_code == 204
    assert client.get(f"/api/groups/{group['id']}", headers=bob_headers).status_code == 403

    assert client.delete(f"/api/groups/{group['id']}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/groups/{group['id']}", headers=alice_headers).status_code == 204
    assert client.get(f"/api/groups/{group['id']}", headers=alice_headers).status_code == 404


def test_og_group_cannot_be_deleted_or_left(client, legacy_import):
    summary = legacy_import()
    res = client.post(
        "/api/claim",
        json={"legacy_id": "legacy_james", "code": summary.claim_codes["legacy_james"], "password": "Secret123"},
    )
    headers = {"Authorization": f"Bearer {res.json()['access_token']}"}

    assert client.delete("/api/groups/grp_og", headers=headers).status_code == 400
    assert client.delete("/api/groups/grp_og/members", headers=headers).status_code == 400


def test_og_group_delete_by_non_admin_is_forbidden(client, register, legacy_import):
    legacy_import()
    _, headers = register("outsider")

    assert client.delete("/api/groups/grp_og", headers=headers).status_code == 403
