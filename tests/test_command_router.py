import pytest

import command_router as router

U = "user-1"


def _texts(frames):
    return [f["data"] for f in frames if f["type"] == "text"]


def test_resolve_aliases_and_two_word_names():
    assert router.resolve("feed").name == "pet feed"
    assert router.resolve("?").name == "help"
    assert router.resolve("pet info").name == "pet info"
    assert router.resolve("nope") is None


def test_unknown_command(services):
    frames = router.route("dance now", U, services)
    assert _texts(frames) == ["Unknown command: dance now"]


def test_line_guards(services):
    assert router.route("x" * (router.MAX_LINE_LEN + 1), U, services) == [
        {"type": "text", "data": "Line too long"}
    ]
    assert router.route("   ", U, services) == []
    assert router.route(None, U, services)[0]["data"] == "Invalid input"


def test_help_lists_commands_as_table(services):
    frames = router.route("help", U, services)
    assert frames[0]["type"] == "table"
    names = {r["command"] for r in frames[0]["data"]}
    assert {"pet adopt", "pet feed", "time all"} <= names


def test_help_for_one_command(services):
    data = _texts(router.route("help pet feed", U, services))[0]
    assert "Usage: pet feed [item]" in data


def test_adopt_and_info(services, clock):
    frames = router.route("/pet adopt seedling Sprout", U, services)
    assert "**Seedling** named **Sprout**" in _texts(frames)[0]

    clock.advance(hours=65)
    frames = router.route("pet info", U, services)
    assert _texts(frames)[0] == "**Sprout**"
    row = frames[1]["data"][0]
    assert row["species"] == "Seedling"
    assert row["hunger"].endswith("Hungry")
    assert row["age"] == "2 days"


def test_second_adopt_reports_error(services):
    router.route("adopt cat Tom", U, services)
    frames = router.route("adopt dog Rex", U, services)
    assert _texts(frames) == ["❌ You already have a pet."]


def test_commands_needing_a_pet(services):
    for line in ("pet info", "pet daily", "pet rename Bob"):
        data = _texts(router.route(line, U, services))[0]
        assert data.startswith("❌ You don't have a pet yet!")


def test_daily_then_feed_flow(services):
    router.route('pet adopt cat "Mister Tom"', U, services)
    frames = router.route("daily", U, services)
    assert "Daily Reward Claimed" in _texts(frames)[0]

    listing = router.route("feed", U, services)
    assert listing[0]["type"] == "table"
    item_id = listing[0]["data"][0]["item"]

    frames = router.route(f"feed {item_id}", U, services)
    assert _texts(frames)[0].startswith("🍽️ You fed Mister Tom")
    assert services.inventory.get_compartment(U, "bag") == []

    again = router.route("daily", U, services)
    assert _texts(again)[0].startswith("❌ Daily reward already claimed.")


def test_bag_and_storage_commands(services):
    services.inventory.add_item(U, "OMELETTE_PLAIN", 3, "bag")
    frames = router.route("bag store OMELETTE_PLAIN 2", U, services)
    assert _texts(frames) == ["📦 Moved 2x OMELETTE_PLAIN to storage."]

    frames = router.route("storage", U, services)
    assert _texts(frames)[0] == "🗄️ Storage (page 1/1)"
    assert frames[1]["data"] == [{"item": "OMELETTE_PLAIN", "name": "Plain Omelette", "qty": 2}]

    frames = router.route("storage withdraw OMELETTE_PLAIN 5", U, services)
    assert _texts(frames)[0].startswith("❌")

    frames = router.route("bag store OMELETTE_PLAIN lots", U, services)
    assert "Quantity must be a number" in _texts(frames)[0]

    frames = router.route("pet bag", U, services)
    assert _texts(frames)[0] == "🎒 Bag (1/50)"


@pytest.mark.parametrize("line", ["time get Europe/Paris", "time get UTC"])
def test_time_get_for_zone(services, line):
    data = _texts(router.route(line, U, services))[0]
    assert data.startswith("Time in **")


def test_time_set_get_all(services):
    frames = router.route('time set America/Chicago "Chicago, IL"', U, services)
    assert "`Chicago, IL`" in _texts(frames)[0]

    frames = router.route(f"time get <@{U}>", "someone-else", services,
                          display_names={U: "Ana"})
    assert _texts(frames)[0] == "Time for **Ana** (Chicago, IL)\n`Tue 16:13`"

    frames = router.route("time all", U, services, member_ids=[U, "ghost"])
    assert _texts(frames)[0] == "`Tue 16:13` - **CST**\n\tuser-1"

    frames = router.route("time get ghost", U, services)
    assert _texts(frames) == ["❌ That user hasn't set their timezone."]


def test_time_set_bad_zone(services):
    frames = router.route("time set Nowhere/Land", U, services)
    assert _texts(frames) == ["❌ Unknown timezone: Nowhere/Land"]


def test_unexpected_error_is_logged_and_hidden(services, monkeypatch, caplog):
    def boom(user_id):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(services.pets, "get_active_pet", boom)
    frames = router.route("pet info", U, services)
    assert _texts(frames) == ["There was an error executing this command!"]
    assert "command_failed cmd=pet info" in caplog.text


def test_storage_page_must_be_a_number(services):
    frames = router.route("pet storage view abc", U, services)
    assert _texts(frames) == ["❌ Page must be a number, got 'abc'"]
    frames = router.route("pet storage view 0", U, services)
    assert _texts(frames) == ["❌ Page must be 1 or more."]


def test_mentions_reply_with_local_time_once(services, clock):
    services.timezones.save_user("ana", "America/Chicago", "Chicago")
    frames = router.route_mentions(["ana", "ghost"], services, display_names={"ana": "Ana"})
    assert _texts(frames) == ["It is **Tue 16:13** for Ana."]
    assert router.route_mentions(["ana"], services) == []
    clock.advance(hours=2)
    assert _texts(router.route_mentions(["ana"], services)) == ["It is **Tue 18:13** for ana."]
    assert router.route_mentions([], services) == []
