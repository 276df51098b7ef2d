import pytest

from alarms.intent_router import CommandRouter
from conftest import MONDAY_7AM


@pytest.fixture
def router(manager):
    return CommandRouter(alarm_manager=manager, label_fn=lambda h, m: "Early Bird", default_snooze_minutes=7)


def test_add_and_list(router, manager):
    result = router.handle_text("add 6:30 weekdays smart", now=MONDAY_7AM)
    assert result.handled
    assert result.action == "add"
    (alarm,) = manager.list_alarms()
    assert (alarm.hour, alarm.minute, alarm.is_smart) == (6, 30, True)
    assert alarm.label == "Early Bird"
    assert alarm.snooze_interval == 7

    listing = router.handle_text("list", now=MONDAY_7AM).response_text
    assert listing.startswith("1) 6:30 AM | Weekdays | Early Bird | smart")
    assert "(next Tue 06:30)" in listing


def test_empty_list(router):
    assert router.handle_text("list", now=MONDAY_7AM).response_text == "No alarms set."


def test_toggle_delete_and_edit_by_index(router, manager):
    router.handle_text("add 7:00 Wake", now=MONDAY_7AM)
    router.handle_text("add 8:00 Late", now=MONDAY_7AM)

    assert router.handle_text("toggle 2", now=MONDAY_7AM).response_text == "Alarm 8:00 AM is off."
    assert manager.list_alarms()[1].is_enabled is False

    router.handle_text("edit 1 7:15 daily", now=MONDAY_7AM)
    first = manager.list_alarms()[0]
    assert (first.minute, first.label, len(first.repeat)) == (15, "Wake", 7)

    assert router.handle_text("delete 3", now=MONDAY_7AM).response_text == "No such alarm."
    router.handle_text("delete 1", now=MONDAY_7AM)
    assert [a.label for a in manager.list_alarms()] == ["Late"]


def test_label_suggestion_failure_uses_default(manager):
    def broken(hour, minute):
        raise RuntimeError("no network")

    router = CommandRouter(alarm_manager=manager, label_fn=broken)
    router.handle_text("add 7:00", now=MONDAY_7AM)
    assert manager.list_alarms()[0].label == "Alarm"


def test_session_commands(router, manager):
    assert router.handle_text("dismiss", now=MONDAY_7AM).response_text == "Nothing is ringing."
    router.handle_text("add 7:00 repeat", now=MONDAY_7AM)
    manager.tick(MONDAY_7AM)
    assert router.handle_text("snooze 3", now=MONDAY_7AM).response_text == "Snoozed for 3 minutes."
    assert router.handle_text("snooze", now=MONDAY_7AM).response_text == "Nothing is ringing, nothing to snooze."


def test_smart_dismiss_and_ack(router, manager):
    router.handle_text("add 7:00 smart daily", now=MONDAY_7AM)
    manager.tick(MONDAY_7AM)
    assert "morning message" in router.handle_text("stop", now=MONDAY_7AM).response_text
    assert manager.wait_for_greeting(2)
    assert router.handle_text("ok", now=MONDAY_7AM).response_text == "Have a great day!"
    assert router.handle_text("ok", now=MONDAY_7AM).response_text == "Nothing to acknowledge."


def test_unknown_text_is_not_handled(router):
    assert router.handle_text("hello there", now=MONDAY_7AM) is None
    result = router.handle_text("add", now=MONDAY_7AM)
    assert result.action == "unknown"
