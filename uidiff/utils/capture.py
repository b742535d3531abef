from __future__ import annotations

import concurrent.futures
import logging
from typing import Callable

from selenium.common.exceptions import WebDriverException

from uidiff.config.schema import CaptureSettings
from uidiff.core.browser import BrowserSession
from uidiff.core.exceptions import CaptureError
from uidiff.core.models import ElementSnapshot
from uidiff.utils.dom_extract import extract_elements

logger = logging.getLogger(__name__)

DriverFactory = Callable[[], object]


def capture_snapshot(
    url: str,
    settings: CaptureSettings | None = None,
    prefix: str = "e",
    driver_factory: DriverFactory | None = None,
) -> list[ElementSnapshot]:
    """Loads ``url`` in a fresh browser and extracts its elements."""

    settings = settings or CaptureSettings()
    factory = driver_factory or (lambda: BrowserSession(settings).start())
    driver = None
    try:
        driver = factory()
        logger.info("Capturing %s", url)
        driver.get(url)
        return extract_elements(driver, settings, prefix)
    except WebDriverException as exc:
        raise CaptureError(f"Failed to capture {url}: {exc.msg or exc}") from exc
    finally:
        if driver is not None:
            driver.quit()


def capture_pair(
    baseline_url: str,
    current_url: str,
    settings: CaptureSettings | None = None,
    driver_factory: DriverFactory | None = None,
) -> tuple[list[ElementSnapshot], list[ElementSnapshot]]:
    """Captures baseline and current pages, in parallel when enabled."""

    settings = settings or CaptureSettings()
    if settings.parallel_capture:
        try:
            with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
                baseline_future = executor.submit(capture_snapshot, baseline_url, settings, "b", driver_factory)
                current_future = executor.submit(capture_snapshot, current_url, settings, "c", driver_factory)
                return baseline_future.result(), current_future.result()
        except CaptureError as exc:
            logger.warning("Parallel capture failed (%s), retrying sequentially", exc)

    baseline = capture_snapshot(baseline_url, settings, "b", driver_factory)
    current = capture_snapshot(current_url, settings, "c", driver_factory)
    return baseline, current
