import pytest

from memberwatch.slack.platform import SlackPlatform
from memberwatch.storage.state import JsonStateFile, MemberStateStore


class FakeWebClient:
    """Records chat_postMessage calls and serves canned users.list pages."""

    def __init__(self, pages=None, fail_on_page=None, post_error=None):
        self.pages = pages or [{"members": []}]
        self.fail_on_page = fail_on_page
        self.post_error = post_error
        self.users_list_calls = []
        self.posted = []

    def users_list(self, **kwargs):
        self.users_list_calls.append(kwargs)
        index = len(self.users_list_calls) - 1
        if self.fail_on_page is not None and index == self.fail_on_page:
            raise ConnectionError("network down")
        return self.pages[index]

    def chat_postMessage(self, **kwargs):
        if self.post_error is not None:
            raise self.post_error
        self.posted.append(kwargs)
        return {"ok": True}


class CountingStateFile(JsonStateFile):
    def __init__(self, path):
        super().__init__(path)
        self.writes = 0

    def write(self, raw):
        self.writes += 1
        super().write(raw)


@pytest.fixture
def state_file(tmp_path):
    return CountingStateFile(tmp_path / "data" / "user-states.json")


@pytest.fixture
def store(state_file):
    s = MemberStateStore(state_file)
    s.load()
    return s


@pytest.fixture
def web_client():
    return FakeWebClient()


@pytest.fixture
def platform(web_client):
    return SlackPlatform(web_client)
