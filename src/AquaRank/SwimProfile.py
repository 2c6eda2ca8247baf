import math
import re
import time as _time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup as bs
from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import TimeoutException
from webdriver_manager.chrome import ChromeDriverManager

from . import config


MALE = "Male"
FEMALE = "Female"

_DIGITS_RE = re.compile(r"\d+")


# ---------------------------------------------------------------------------
# ERRORS
# ---------------------------------------------------------------------------

class AquaRankError(Exception):
    """Base class for swimmer lookup failures."""


class SwimmerNotFound(AquaRankError):
    """No swimmer profile link could be located for the searched name."""

    def __init__(self, name: str, reason: str = "no search result") -> None:
        super().__init__(f"Swimmer not found: {name!r} ({reason})")
        self.name = name


class ScrapeFailure(AquaRankError):
    """Navigation, WebDriver or parsing fault while fetching a profile."""


class InvalidTimeFormat(ValueError):
    pass


# ---------------------------------------------------------------------------
# DATA
# ---------------------------------------------------------------------------

@dataclass
class TimedEvent:
    event: str
    time: Optional[float]


@dataclass
class SwimmerRecord:
    name: str
    age: int
    gender: str  # MALE | FEMALE
    club: str
    times: List[TimedEvent] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS (string parsing)
# ---------------------------------------------------------------------------

def timeToSeconds(display_time):
    """Convert race-clock strings like 'M:SS.ss' or 'SS.ss' to seconds (float).

    Returns None for anything that is not a non-empty string. Raises
    InvalidTimeFormat for more than one ':' or a segment that is not a
    finite number (e.g. 'DQ', 'NS').
    """
    if not isinstance(display_time, str):
        return None
    display_time = display_time.strip()
    if not display_time:
        return None

    parts = display_time.split(":")
    if len(parts) > 2:
        raise InvalidTimeFormat(f"Unexpected time format: {display_time!r}")

    try:
        numbers = [float(p) for p in parts]
    except ValueError:
        raise InvalidTimeFormat(f"Non-numeric time: {display_time!r}") from None
    if not all(math.isfinite(n) for n in numbers):
        raise InvalidTimeFormat(f"Non-numeric time: {display_time!r}")

    if len(numbers) == 2:
        minutes, seconds = numbers
        return minutes * 60 + seconds
    return numbers[0]


def parseAge(age_text: str) -> int:
    """First run of digits in age_text, or DEFAULT_AGE if there is none."""
    match = _DIGITS_RE.search(age_text or "")
    if match:
        age = int(match.group(0))
        if age > 0:
            return age
    return config.DEFAULT_AGE


def cleanEventName(event_label: str) -> str:
    """'100 Free SCY' -> '100 Free'."""
    return event_label.replace(f" {config.COURSE_QUALIFIER}", "", 1).strip()


def buildSearchURL(name: str) -> str:
    return f"{config.SEARCH_URL}?q={quote(name, safe='')}"


def _text(node) -> str:
    return node.get_text().strip() if node is not None else ""


# ---------------------------------------------------------------------------
# PROFILE PAGE PARSING (BeautifulSoup)
# ---------------------------------------------------------------------------

def getSwimmerTimes(soup):
    """
    Collect SCY best times from the profile's times table, in table order.

    Each row contributes a TimedEvent when both the event link (first
    column) and the time link (second column) have text and the event is a
    short-course-yards swim. Times that cannot be parsed are kept as None.
    """
    times = []
    for row in soup.select(config.TIMES_ROW_SELECTOR):
        event = "".join(a.get_text() for a in row.select("td:nth-child(1) a")).strip()
        display_time = "".join(a.get_text() for a in row.select("td:nth-child(2) a")).strip()

        if not (event and display_time and config.COURSE_QUALIFIER in event):
            continue

        try:
            seconds = timeToSeconds(display_time)
        except InvalidTimeFormat as e:
            print(f"[AquaRank] Warning: {e} for event {event!r}, storing no time.")
            seconds = None

        times.append(TimedEvent(event=cleanEventName(event), time=seconds))

    return times


def parseSwimmerProfile(soup) -> SwimmerRecord:
    """
    Map a rendered SwimCloud profile page to a SwimmerRecord.

    Gender only looks for the women's tab link: the page exposes no other
    marker, so anything without it is reported as MALE.
    """
    name = _text(soup.select_one(config.NAME_SELECTOR))
    club = _text(soup.select_one(config.CLUB_SELECTOR))
    age = parseAge(_text(soup.select_one(config.AGE_SELECTOR)))
    gender = FEMALE if soup.select_one(config.WOMEN_TAB_SELECTOR) is not None else MALE

    return SwimmerRecord(
        name=name,
        age=age,
        gender=gender,
        club=club,
        times=getSwimmerTimes(soup),
    )


def parseSwimmerProfileHTML(html: str) -> SwimmerRecord:
    return parseSwimmerProfile(bs(html, "html.parser"))


# ---------------------------------------------------------------------------
# BROWSER SESSION (Selenium)
# ---------------------------------------------------------------------------

# Injected before any page script runs; hides the usual headless giveaways.
_STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});
window.chrome = window.chrome || {runtime: {}};
"""

_READY_STATE_JS = "return document.readyState"
# Chrome stops recording resource timings once its buffer (250 entries) is
# full, so each poll takes the new entries and empties the buffer.
_NEW_RESOURCES_JS = """
const count = performance.getEntriesByType('resource').length;
performance.clearResourceTimings();
return count;
"""


def _chrome_service(chrome_options):
    chrome_bin, chromedriver_path = config.chrome_paths()
    if Path(chrome_bin).exists() and Path(chromedriver_path).exists():
        print("[AquaRank] Using system Chromium.")
        chrome_options.binary_location = chrome_bin
        return Service(chromedriver_path)
    return Service(ChromeDriverManager().install())


def _quit_driver(driver):
    # A dead chromedriver surfaces as urllib3/socket errors, not WebDriverException.
    try:
        driver.quit()
    except Exception as e:  # noqa: BLE001
        print(f"[AquaRank] Warning: browser did not quit cleanly: {e}")


def setup_driver(headless=True):
    """
    Start Chrome configured to look like a desktop browser.

    Fixed viewport and user agent, plus the usual anti-automation tweaks:
    no 'enable-automation' switch, no AutomationControlled blink feature,
    a CDP user-agent override (headless Chrome otherwise reports
    'HeadlessChrome') and a new-document script masking navigator.webdriver.
    """
    chrome_options = Options()
    if headless:
        chrome_options.add_argument("--headless=new")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-setuid-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument(f"--window-size={config.VIEWPORT_WIDTH},{config.VIEWPORT_HEIGHT}")
    chrome_options.add_argument(f"--user-agent={config.USER_AGENT}")
    chrome_options.add_argument("--disable-blink-features=AutomationControlled")
    chrome_options.add_experimental_option("excludeSwitches", ["enable-automation"])
    chrome_options.add_experimental_option("useAutomationExtension", False)

    driver = webdriver.Chrome(service=_chrome_service(chrome_options), options=chrome_options)
    try:
        driver.set_window_size(config.VIEWPORT_WIDTH, config.VIEWPORT_HEIGHT)
        driver.execute_cdp_cmd("Network.setUserAgentOverride", {"userAgent": config.USER_AGENT})
        driver.execute_cdp_cmd("Page.addScriptToEvaluateOnNewDocument", {"source": _STEALTH_JS})
    except Exception:
        _quit_driver(driver)
        raise
    return driver


@contextmanager
def browser_session(driver_factory=None):
    """Yield a WebDriver and quit it exactly once, however the block exits."""
    factory = driver_factory or setup_driver
    try:
        driver = factory()
    except Exception as e:  # noqa: BLE001
        raise ScrapeFailure(f"Could not start browser: {e}") from e

    try:
        yield driver
    finally:
        _quit_driver(driver)


class network_idle:
    """
    WebDriverWait condition: the document has finished loading and no new
    resource entries have been recorded for `quiet` seconds.
    """

    def __init__(self, quiet):
        self.quiet = quiet
        self._since = None

    def __call__(self, driver):
        if driver.execute_script(_READY_STATE_JS) != "complete":
            self._since = None
            return False

        new_resources = driver.execute_script(_NEW_RESOURCES_JS)
        now = _time.monotonic()
        if new_resources or self._since is None:
            self._since = now
            return False
        return now - self._since >= self.quiet


def _load_page(driver, url):
    """Navigate and wait for the network to settle."""
    print(f"[AquaRank] Navigating to {url}")
    driver.get(url)
    try:
        WebDriverWait(driver, config.NETWORK_IDLE_TIMEOUT, poll_frequency=0.1).until(
            network_idle(config.NETWORK_IDLE_QUIET)
        )
    except TimeoutException:
        print(f"[AquaRank] Warning: network never went idle on {url}, using page as-is.")


def _save_error_screenshot(driver, path):
    try:
        driver.save_screenshot(str(path))
        print(f"[AquaRank] Debug screenshot saved to {path}")
    except Exception as e:  # noqa: BLE001
        print(f"[AquaRank] Could not take screenshot: {e}")


# ---------------------------------------------------------------------------
# LOOKUP
# ---------------------------------------------------------------------------

def getProfileURL(driver, name, timeout=config.SEARCH_RESULT_TIMEOUT):
    """Search SwimCloud for `name` and return the first swimmer profile URL."""
    _load_page(driver, buildSearchURL(name))

    try:
        WebDriverWait(driver, timeout).until(
            EC.presence_of_element_located((By.CSS_SELECTOR, config.SEARCH_RESULT_SELECTOR))
        )
    except TimeoutException:
        raise SwimmerNotFound(name, f"no result within {timeout}s") from None

    links = driver.find_elements(By.CSS_SELECTOR, config.SEARCH_RESULT_SELECTOR)
    href = links[0].get_attribute("href") if links else None
    if not href:
        raise SwimmerNotFound(name, "result has no profile link")
    return urljoin(config.BASE_URL, href)


def lookupSwimmer(
    name,
    timeout=config.SEARCH_RESULT_TIMEOUT,
    driver_factory=None,
    screenshot_path=config.ERROR_SCREENSHOT_PATH,
):
    """
    Find a swimmer by name and scrape their SwimCloud profile.

    Two hops in one fresh browser session: the search page, then the first
    swimmer result's profile page. The session is always closed.

    Raises SwimmerNotFound when no profile link shows up within `timeout`
    seconds, and ScrapeFailure for anything else that goes wrong. On either
    failure a screenshot of the current page is written to
    `screenshot_path` when possible.
    """
    with browser_session(driver_factory) as driver:
        try:
            profile_url = getProfileURL(driver, name, timeout=timeout)
            _load_page(driver, profile_url)
            soup = bs(driver.page_source, "html.parser")
            return parseSwimmerProfile(soup)
        except SwimmerNotFound as e:
            print(f"[AquaRank] Scraping failed: {e}")
            _save_error_screenshot(driver, screenshot_path)
            raise
        except Exception as e:  # noqa: BLE001
            print(f"[AquaRank] Scraping failed: {e}")
            _save_error_screenshot(driver, screenshot_path)
            raise ScrapeFailure(str(e)) from e
