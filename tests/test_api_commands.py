U = "user-1"


def test_run_command(app):
    client = app.test_client()
    resp = client.post("/api/commands", json={"user_id": U, "line": "pet adopt cat Tom"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["user_id"] == U
    assert data["frames"][0]["type"] == "text"
    assert "Tom" in data["frames"][0]["data"]


def test_run_command_validation(app):
    client = app.test_client()
    assert client.post("/api/commands", data="not json").status_code == 400
    resp = client.post("/api/commands", json={"user_id": U})
    assert resp.status_code == 400
    resp = client.post("/api/commands", json={"user_id": U, "line": "help", "admin": True})
    assert resp.status_code == 400


def test_pet_view(app, clock):
    client = app.test_client()
    assert client.get(f"/api/users/{U}/pet").status_code == 404
    client.post("/api/commands", json={"user_id": U, "line": "adopt seedling Sprout"})
    clock.advance(hours=5)
    resp = client.get(f"/api/users/{U}/pet")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["name"] == "Sprout"
    assert data["hunger"] == 95
    assert data["hunger_state"] == "full"


def test_bag_and_storage_views(app, services):
    services.inventory.add_item(U, "OMELETTE_PEPPER", 2, "bag")
    for i in range(25):
        services.inventory.add_item(U, f"ITEM_{i:02d}", 1, "storage")
    client = app.test_client()

    bag = client.get(f"/api/users/{U}/bag").get_json()
    assert bag["capacity"] == 50
    assert bag["items"] == [{
        "item_id": "OMELETTE_PEPPER",
        "name": "Pepper Omelette",
        "quantity": 2,
        "description": "Vibrant and zesty",
    }]

    page = client.get(f"/api/users/{U}/storage?page=2").get_json()
    assert page["current_page"] == 2
    assert page["total_pages"] == 2
    assert not page["has_more"]
    assert len(page["items"]) == 5
    assert page["items"][0]["description"] is None


def test_mentions_endpoint(app, services):
    services.timezones.save_user("ana", "Europe/Paris", "Paris")
    client = app.test_client()
    body = {"user_id": U, "mentioned_ids": ["ana"], "display_names": {"ana": "Ana"}}
    resp = client.post("/api/mentions", json=body)
    assert resp.status_code == 200
    assert resp.get_json()["frames"] == [{"type": "text", "data": "It is **Tue 23:13** for Ana."}]

    again = client.post("/api/mentions", json=body).get_json()
    assert again["frames"] == []

    assert client.post("/api/mentions", json={"user_id": U}).status_code == 400
