from unittest.mock import MagicMock, patch

import pytest
import requests

from fake_discord import FakeDiscordPage
from wipecord.dom import OBJECT_GROUP
from wipecord.errors import AuthenticationTimeout, InteractionException, SessionError
from wipecord.session import BLOCKED_RESOURCE_TYPES, BrowserSession, find_chrome_executable
from wipecord.timing import SettleTimings, Settler

# --- Fixtures ---


class FakeClock:
    """Monotonic clock advanced by the settler's sleep"""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(clock):
    timings = SettleTimings(login_poll=1.0, login_settle=0.0, launch_poll=0.5)
    settler = Settler(timings, sleep=clock.sleep)
    return BrowserSession(port=9222, settler=settler, clock=clock)


def logged_out_page():
    page = FakeDiscordPage()
    page.soup.select_one(".sidebar_s1").decompose()
    page.soup.select_one("main").decompose()
    return page


# --- Login ---


def test_wait_for_login_returns_once_marker_appears(session, resolver, clock):
    page = logged_out_page()
    logged_in = FakeDiscordPage()
    documents = iter([page.document(), page.document(), logged_in.document()])
    session.document = lambda: next(documents)

    session.wait_for_login(resolver, timeout=60)

    assert clock.now == 2.0


def test_wait_for_login_times_out(session, resolver, clock):
    page = logged_out_page()
    session.document = page.document

    with pytest.raises(AuthenticationTimeout):
        session.wait_for_login(resolver, timeout=5)

    assert clock.now == 5.0


def test_wait_for_login_tolerates_page_errors(session, resolver):
    logged_in = FakeDiscordPage()
    calls = []

    def document():
        calls.append(1)
        if len(calls) == 1:
            raise InteractionException("Execution context was destroyed")
        return logged_in.document()

    session.document = document

    session.wait_for_login(resolver, timeout=10)

    assert len(calls) == 2


# --- Connection ---


def test_connect_failure_raises_session_error(session):
    with patch("wipecord.session.pychrome") as pychrome:
        refused = requests.exceptions.ConnectionError("refused")
        pychrome.Browser.return_value.list_tab.side_effect = refused

        with pytest.raises(SessionError, match="9222"):
            session.connect()


def test_connect_picks_first_page_tab(session):
    worker = MagicMock(type="service_worker")
    page = MagicMock(type="page", id="tab-1")

    with patch("wipecord.session.pychrome") as pychrome:
        pychrome.Browser.return_value.list_tab.return_value = [worker, page]
        session.connect()

    assert session.tab is page
    page.start.assert_called_once()
    worker.start.assert_not_called()


def test_connect_without_page_tabs(session):
    with patch("wipecord.session.pychrome") as pychrome:
        pychrome.Browser.return_value.list_tab.return_value = []

        with pytest.raises(SessionError):
            session.connect()


def test_close_stops_tab(session):
    tab = MagicMock()
    session.tab = tab

    session.close()

    tab.stop.assert_called_once()
    assert session.tab is None


# --- Navigation ---


def test_navigate_requires_connection(session):
    with pytest.raises(InteractionException):
        session.navigate("https://discord.com/channels/@me")


def test_navigate_error_text_raises(session):
    session.tab = MagicMock()
    session.tab.Page.navigate.return_value = {"errorText": "net::ERR_NAME_NOT_RESOLVED"}

    with pytest.raises(InteractionException, match="ERR_NAME_NOT_RESOLVED"):
        session.navigate("https://discord.invalid")


def test_current_url(session):
    session.tab = MagicMock()
    session.tab.Runtime.evaluate.return_value = {
        "result": {"value": "https://discord.com/channels/1/2"}
    }

    assert session.current_url() == "https://discord.com/channels/1/2"


def test_find_chrome_executable_missing(monkeypatch):
    monkeypatch.setattr("wipecord.session.shutil.which", lambda name: None)
    monkeypatch.setattr("wipecord.session.CHROME_CANDIDATES", ("/nonexistent/chrome",))

    with pytest.raises(SessionError):
        find_chrome_executable()


def test_connect_does_not_hide_programming_errors(session):
    with patch("wipecord.session.pychrome") as pychrome:
        pychrome.Browser.return_value.list_tab.side_effect = TypeError("bad call")

        with pytest.raises(TypeError):
            session.connect()


# --- Launch ---


def test_launch_polls_through_the_settler(session, clock, tmp_path):
    """Connection refusals are retried at the launch_poll interval until CDP answers."""
    refused = requests.exceptions.ConnectionError("refused")

    with patch("wipecord.session.subprocess.Popen") as popen, patch(
        "wipecord.session.pychrome"
    ) as pychrome:
        pychrome.Browser.return_value.version.side_effect = [refused, refused, {"Browser": "x"}]
        session.launch("/opt/chrome", tmp_path / "profile", "https://discord.com/app")

    assert popen.call_args.args[0][0] == "/opt/chrome"
    assert "--remote-debugging-port=9222" in popen.call_args.args[0]
    assert clock.now == 1.0
    assert session.process is popen.return_value


def test_launch_gives_up_after_attempts(session, clock, tmp_path):
    with patch("wipecord.session.subprocess.Popen"), patch("wipecord.session.pychrome") as pychrome:
        pychrome.Browser.return_value.version.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(SessionError):
            session.launch("/opt/chrome", tmp_path / "profile", "https://discord.com/app", attempts=4)

    assert clock.now == 2.0


def test_launch_missing_binary(session, tmp_path):
    with patch("wipecord.session.subprocess.Popen", side_effect=FileNotFoundError("chrome")):
        with pytest.raises(SessionError):
            session.launch("/nonexistent/chrome", tmp_path / "profile", "https://discord.com/app")


# --- Media blocking ---


def test_block_media_pauses_only_images_and_media(session):
    session.tab = MagicMock()

    session.block_media()

    patterns = session.tab.Fetch.enable.call_args.kwargs["patterns"]
    assert [p["resourceType"] for p in patterns] == list(BLOCKED_RESOURCE_TYPES)
    assert {p["urlPattern"] for p in patterns} == {"*"}


def test_paused_requests_are_failed(session):
    session.tab = MagicMock()
    session.block_media()

    handler = session.tab.Fetch.requestPaused
    handler(requestId="req-7", request={"url": "https://cdn.discordapp.com/a.png"})

    session.tab.Fetch.failRequest.assert_called_once_with(
        requestId="req-7", errorReason="BlockedByClient"
    )


def test_block_media_requires_connection(session):
    with pytest.raises(InteractionException):
        session.block_media()


def test_release_handles_frees_engine_group(session):
    session.tab = MagicMock()

    session.release_handles()

    session.tab.Runtime.releaseObjectGroup.assert_called_once_with(objectGroup=OBJECT_GROUP)


def test_release_handles_without_tab_is_a_no_op(session):
    session.release_handles()
