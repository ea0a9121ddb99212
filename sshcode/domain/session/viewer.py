"""
Local browser launcher (best effort)
"""
import os
import shutil
import subprocess
import threading
import webbrowser
from typing import List, Optional

from ...core.exceptions import ViewerLaunchError
from ...core.logging import get_logger

logger = get_logger(__name__)

CHROME_COMMANDS = ("google-chrome", "google-chrome-stable", "chromium", "chromium-browser")
MAC_CHROME_PATH = "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
WSL_CHROME_PATH = "/mnt/c/Program Files (x86)/Google/Chrome/Application/chrome.exe"


def chrome_options(url: str) -> List[str]:
    return [f"--app={url}", "--disable-extensions", "--disable-plugins", "--incognito"]


def find_chrome() -> Optional[str]:
    """First available Chrome/Chromium executable, or None"""
    for name in CHROME_COMMANDS:
        path = shutil.which(name)
        if path:
            return path
    for path in (MAC_CHROME_PATH, WSL_CHROME_PATH):
        if os.path.exists(path):
            return path
    return None


def launch_viewer(url: str) -> None:
    """
    Open url in a browser.

    Raises:
        ViewerLaunchError: If no browser could be started
    """
    chrome = find_chrome()
    if chrome is None:
        if not webbrowser.open(url):
            raise ViewerLaunchError(f"no browser available to open {url}")
        return

    # Never block on chrome: with no running instance it lives as long as the browser window
    try:
        process = subprocess.Popen(
            [chrome, *chrome_options(url)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        raise ViewerLaunchError(f"failed to start {chrome}: {e}") from e

    # Reap it in the background so it never lingers as a zombie
    threading.Thread(target=process.wait, daemon=True, name="viewer-reaper").start()


def open_browser(url: str) -> bool:
    """launch_viewer that logs failures instead of raising"""
    try:
        launch_viewer(url)
        return True
    except ViewerLaunchError as e:
        logger.error(f"failed to open browser: {e}")
        return False
