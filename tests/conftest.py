from pathlib import Path

import pytest
from selenium.common.exceptions import NoSuchElementException, WebDriverException

from AquaRank import config


PROFILE_URL = "https://www.swimcloud.com/swimmer/123456/"

PROFILE_HTML = """
<html>
<body>
  <h1> Jane Doe </h1>
  <ul class="c-list c-list--horizontal">
    <li>Age: 17, Region: X</li>
    <li>Class of 2027</li>
  </ul>
  <a class="c-list-item__meta-item" href="/team/42/"> Gator Swim Club </a>
  <a class="c-list-item__meta-item" href="/team/43/">High School</a>
  <nav>
    <a class="c-tabs__link" href="/swimmer/123456/">Profile</a>
    <a class="c-tabs__link" href="/team/42/women">Women</a>
  </nav>
  <table class="c-table-clean">
    <tr><th>Event</th><th>Time</th></tr>
    <tr><td><a href="#">100 Free SCY</a></td><td><a href="#">52.10</a></td></tr>
    <tr><td><a href="#">200 LCM</a></td><td><a href="#">2:10.00</a></td></tr>
    <tr><td><a href="#">200 Free SCY</a></td><td><a href="#">1:55.30</a></td></tr>
    <tr><td><a href="#">50 Back SCY</a></td><td></td></tr>
    <tr><td><a href="#">50 Fly SCY</a></td><td><a href="#">DQ</a></td></tr>
  </table>
</body>
</html>
"""


class FakeElement:
    def __init__(self, href):
        self._href = href

    def get_attribute(self, name):
        return self._href if name == "href" else None


class FakeDriver:
    """Just enough of a Chrome WebDriver for the lookup flow."""

    def __init__(self, pages=None, search_links=(), fail_on=None, screenshot_error=None):
        self.pages = pages or {}
        self.search_links = list(search_links)
        self.fail_on = fail_on
        self.screenshot_error = screenshot_error
        self.current_url = None
        self.visited = []
        self.screenshots = []
        self.quit_calls = 0

    def get(self, url):
        if self.fail_on and self.fail_on in url:
            raise WebDriverException("net::ERR_CONNECTION_RESET")
        self.visited.append(url)
        self.current_url = url

    def execute_script(self, script, *args):
        if "readyState" in script:
            return "complete"
        return 0

    def _results(self):
        if self.current_url and "/search?" in self.current_url:
            return [FakeElement(href) for href in self.search_links]
        return []

    def find_element(self, by, value):
        results = self._results()
        if not results:
            raise NoSuchElementException(value)
        return results[0]

    def find_elements(self, by, value):
        return self._results()

    @property
    def page_source(self):
        return self.pages.get(self.current_url, "<html><body></body></html>")

    def save_screenshot(self, path):
        if self.screenshot_error is not None:
            raise self.screenshot_error
        Path(path).write_bytes(b"\x89PNG")
        self.screenshots.append(str(path))
        return True

    def quit(self):
        self.quit_calls += 1


@pytest.fixture(autouse=True)
def fast_network_idle(monkeypatch):
    monkeypatch.setattr(config, "NETWORK_IDLE_QUIET", 0)
    monkeypatch.setattr(config, "NETWORK_IDLE_TIMEOUT", 2)


@pytest.fixture
def profile_driver():
    return FakeDriver(
        pages={PROFILE_URL: PROFILE_HTML},
        search_links=["/swimmer/123456/", "/swimmer/999/"],
    )
