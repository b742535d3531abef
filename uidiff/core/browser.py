from __future__ import annotations

from selenium import webdriver
from selenium.webdriver import ChromeOptions, FirefoxOptions

from uidiff.config.schema import CaptureSettings


class BrowserSession:
    """Creates browser instances using Selenium Manager."""

    def __init__(self, settings: CaptureSettings | None = None) -> None:
        self.settings = settings or CaptureSettings()

    def start(self, browser_name: str | None = None):
        normalized = (browser_name or self.settings.browser).lower()
        width, height = self.settings.window_width, self.settings.window_height
        if normalized == "chrome":
            options = ChromeOptions()
            if self.settings.headless:
                options.add_argument("--headless=new")
            options.add_argument(f"--window-size={width},{height}")
            driver = webdriver.Chrome(options=options)
        elif normalized == "firefox":
            options = FirefoxOptions()
            if self.settings.headless:
                options.add_argument("-headless")
            options.add_argument(f"--width={width}")
            options.add_argument(f"--height={height}")
            driver = webdriver.Firefox(options=options)
        else:
            raise ValueError(f"Unsupported browser: {browser_name}")
        driver.set_page_load_timeout(self.settings.page_load_timeout_seconds)
        driver.implicitly_wait(0)
        return driver
