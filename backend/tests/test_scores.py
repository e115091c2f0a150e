from datetime import timedelta

from geoscore.game.calendar import format_date_key, today_key, utc_today

PAST_DAY = "2026-01-03"


def _group_of_two(client, register):
    alice, alice_headers = register("alice", "Alice")
    bob, bob_headers = register("bobby", "Bob")
    group = client.post("/api/groups", json={"name": "Daily Duel"}, headers=alice_headers).json()["group"]
    invite_id = client.post(
        f"/api/groups/{group['id']}/invite", json={"user_id": bob["id"]}, headers=alice_headers
    ).json()["id"]
    client.patch(
        "/api/groups/invites/respond",
        json={"invite_id": invite_id, "action": "accepted"},
        headers=bob_headers,
    )
    return group, (alice, alice_headers), (bob, bob_headers)


def test_scores_stay_hidden_until_everyone_submits(client, register):
    group, (alice, alice_headers), (bob, bob_headers) = _group_of_two(client, register)

    res = client.post("/api/scores/submit", json={"rounds": [5000, 5000, 5000], "date": PAST_DAY}, headers=alice_headers)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["revealed"] is False
    assert body["groups"][0]["submitted_count"] == 1
    assert body["groups"][0]["total_members"] == 2

    hidden = client.get(f"/api/groups/{group['id']}/scores", params={"date": PAST_DAY}, headers=bob_headers).json()
    assert hidden["result"]["revealed"] is False
    assert hidden["result"]["scores"] == {alice["id"]: None, bob["id"]: None}
    assert hidden["result"]["winner"] is None
    assert hidden["submitted_user_ids"] == [alice["id"]]
    assert hidden["my_scores"] is None

    res = client.post("/api/scores/submit", json={"rounds": [4000, 4000, 4000], "date": PAST_DAY}, headers=bob_headers)
    assert res.json()["revealed"] is True

    shown = client.get(f"/api/groups/{group['id']}/scores", params={"date": PAST_DAY}, headers=bob_headers).json()
    result = shown["result"]
    assert result["revealed"] is True
    assert result["winner"] == alice["id"]
    assert result["gd_winner"] == alice["id"]
    assert result["scores"][alice["id"]] == {"rounds": [5000, 5000, 5000], "total": 15000}
    assert shown["my_scores"] == [4000, 4000, 4000]

    for headers in (alice_headers, bob_headers):
        types = [n["type"] for n in client.get("/api/notifications", headers=headers).json()["notifications"]]
        assert types.count("scores_revealed") == 1


def test_new_member_hides_an_old_day_again(client, register):
    group, (_, alice_headers), (_, bob_headers) = _group_of_two(client, register)
    client.post("/api/scores/submit", json={"rounds": [1, 2, 3], "date": PAST_DAY}, headers=alice_headers)
    client.post("/api/scores/submit", json={"rounds": [3, 2, 1], "date": PAST_DAY}, headers=bob_headers)

    carol, carol_headers = register("carol")
    invite_id = client.post(
        f"/api/groups/{group['id']}/invite", json={"user_id": carol["id"]}, headers=alice_headers
    ).json()["id"]
    client.patch(
        "/api/groups/invites/respond",
        json={"invite_id": invite_id, "action": "accepted"},
        headers=carol_headers,
    )

    res = client.get(f"/api/groups/{group['id']}/scores", params={"date": PAST_DAY}, headers=alice_headers)
    assert res.json()["result"]["revealed"] is False


def test_submission_validation(client, register):
    _, headers = register("alice")
    tomorrow = format_date_key(utc_today() + timedelta(days=1))

    assert client.post("/api/scores/submit", json={"rounds": [1, 2]}, headers=headers).status_code == 400
    assert client.post("/api/scores/submit", json={"rounds": [1, 2, 5001]}, headers=headers).status_code == 400
    assert client.post("/api/scores/submit", json={"rounds": [1, 2, 3], "date": "2026/01/03"}, headers=headers).status_code == 400
    assert client.post("/api/scores/submit", json={"rounds": [1, 2, 3], "date": tomorrow}, headers=headers).status_code == 400

    assert client.post("/api/scores/submit", json={"rounds": [1, 2, 3]}, headers=headers).status_code == 200
    res = client.post("/api/scores/submit", json={"rounds": [1, 2, 3]}, headers=headers)
    assert res.status_code == 400
    assert "already submitted" in res.json()["detail"]


def test_today_and_history(client, register):
    _, headers = register("alice")

    before = client.get("/api/scores/today", headers=headers).json()
    assert before["date"] == today_key()
    assert before["submitted"] is False
    assert before["my_scores"] is None

    client.post("/api/scores/submit", json={"rounds": [100, 200, 300], "date": PAST_DAY}, headers=headers)
    client.post("/api/scores/submit", json={"rounds": [1000, 2000, 3000]}, headers=headers)

    after = client.get("/api/scores/today", headers=headers).json()
    assert after["submitted"] is True
    assert after["my_scores"] == [1000, 2000, 3000]

    history = client.get("/api/scores/history", headers=headers).json()["scores"]
    assert [entry["date"] for entry in history] == [today_key(), PAST_DAY]


def test_stats_history_and_dashboard(client, register):
    group, (alice, alice_headers), (bob, bob_headers) = _group_of_two(client, register)
    client.post("/api/scores/submit", json={"rounds": [5000, 5000, 5000]}, headers=alice_headers)
    client.post("/api/scores/submit", json={"rounds": [4000, 4000, 4000]}, headers=bob_headers)

    stats = client.get(f"/api/groups/{group['id']}/stats", headers=alice_headers).json()
    all_time = {entry["user_id"]: entry for entry in stats["all_time_stats"]}
    assert all_time[alice["id"]]["days_won"] == 1
    assert all_time[alice["id"]]["perfect_rounds"] == 3
    assert all_time[alice["id"]]["current_streak"] == 1
    assert all_time[bob["id"]]["games_played"] == 1
    assert stats["current_week"]["standings"][0]["user_id"] == alice["id"]
    assert stats["current_week"]["standings"][0]["is_week_winner"] is True
    records = {(r["user_id"], r["opponent_id"]): r for r in stats["head_to_head"]}
    assert records[(alice["id"], bob["id"])]["wins"] == 1
    assert records[(bob["id"], alice["id"])]["losses"] == 1

    history = client.get(f"/api/groups/{group['id']}/history", params={"weeks": 2}, headers=alice_headers).json()
    assert len(history["weeks"]) == 2
    assert [day["date"] for day in history["weeks"][0]["daily_results"]] == [today_key()]
    assert history["weeks"][1]["daily_results"] == []

    dashboard = client.get(f"/api/groups/{group['id']}/dashboard", headers=bob_headers).json()
    assert dashboard["group"]["id"] == group["id"]
    assert dashboard["result"]["winner"] == alice["id"]
    assert dashboard["my_score"]["rounds"] == [4000, 4000, 4000]
    assert today_key() in dashboard["current_week"]["dates"]
