from __future__ import annotations

import os
from pathlib import Path


BASE_URL = "https://www.swimcloud.com"
SEARCH_URL = f"{BASE_URL}/search"

# Search results page
SEARCH_RESULT_SELECTOR = 'a.c-list-item__link[href*="/swimmer/"]'
SEARCH_RESULT_TIMEOUT = 15  # seconds

# Profile page
NAME_SELECTOR = "h1"
CLUB_SELECTOR = "a.c-list-item__meta-item"
AGE_SELECTOR = "ul.c-list--horizontal > li"
WOMEN_TAB_SELECTOR = 'a.c-tabs__link[href$="/women"]'
TIMES_ROW_SELECTOR = "table.c-table-clean tr"
COURSE_QUALIFIER = "SCY"
DEFAULT_AGE = 18

# Browser
VIEWPORT_WIDTH = 1280
VIEWPORT_HEIGHT = 800
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/108.0.0.0 Safari/537.36"
)
NETWORK_IDLE_QUIET = 0.5  # seconds without new resource entries
NETWORK_IDLE_TIMEOUT = 30  # seconds
ERROR_SCREENSHOT_PATH = "error_screenshot.png"

# HTTP
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"

MSG_NAME_REQUIRED = "Swimmer name is required"
MSG_NOT_FOUND = "Could not find the swimmer on SwimCloud. Please check the name and try again."
MSG_FETCH_FAILED = "Failed to fetch swimmer data. The server might be busy or blocked."


def default_port() -> int:
    return int(os.environ.get("PORT") or DEFAULT_PORT)


def default_host() -> str:
    return os.environ.get("HOST") or DEFAULT_HOST


def default_static_dir() -> Path:
    return Path(__file__).resolve().parent / "public"


def chrome_paths() -> tuple[str, str]:
    """(chrome binary, chromedriver) for a system Chromium, e.g. inside Docker."""
    return (
        os.environ.get("CHROME_BIN", "/usr/bin/chromium"),
        os.environ.get("CHROMEDRIVER_PATH", "/usr/bin/chromedriver"),
    )
