import pytest

from fake_discord import FakeDiscordPage, FakeMessage
from wipecord.locator import MessageLocator


@pytest.fixture
def locator(resolver):
    return MessageLocator(resolver)


def test_only_owned_messages_are_candidates(locator):
    """Messages without owner action controls belong to someone else."""
    page = FakeDiscordPage([FakeMessage("1"), FakeMessage("2", own=False), FakeMessage("3")])

    candidates = locator.find_candidates(page.document(), set())

    assert [c.message_id for c in candidates] == ["chat-messages-1-1", "chat-messages-1-3"]


def test_processed_messages_are_skipped(locator):
    page = FakeDiscordPage([FakeMessage("1"), FakeMessage("2")])

    candidates = locator.find_candidates(page.document(), {"chat-messages-1-1"})

    assert [c.message_id for c in candidates] == ["chat-messages-1-2"]


def test_candidates_follow_dom_order(locator):
    page = FakeDiscordPage([FakeMessage(str(n)) for n in (5, 3, 9, 1)])

    candidates = locator.find_candidates(page.document(), set())

    assert [c.message_id[-1] for c in candidates] == ["5", "3", "9", "1"]


def test_empty_view_yields_no_candidates(locator):
    assert locator.find_candidates(FakeDiscordPage().document(), set()) == []


def test_owned_message_with_broken_more_button_is_still_a_candidate(locator):
    """Ownership is decided by the action container, not the More button."""
    page = FakeDiscordPage([FakeMessage("1", more=False)])

    assert len(locator.find_candidates(page.document(), set())) == 1


def test_locator_has_no_side_effects(locator):
    page = FakeDiscordPage([FakeMessage("1")])

    locator.find_candidates(page.document(), set())

    assert page.clicks == []
    assert page.keys == []
    assert page.rendered_ids() == ["1"]


def test_qualify_single_element(locator, resolver):
    page = FakeDiscordPage([FakeMessage("7"), FakeMessage("8", own=False)])
    own, other = resolver.resolve_all("message", page.document())

    assert locator.qualify(own, set()).message_id == "chat-messages-1-7"
    assert locator.qualify(own, {"chat-messages-1-7"}) is None
    assert locator.qualify(other, set()) is None
