"""
Canvas tool surface backed by Playwright.

Opens the canvas app in a browser and exposes its drawing functions
(``window.drawSquare``, ``window.addArrow`` ...) as tool handlers.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright

import flow_config
from tool_payloads import PAYLOAD_MODELS
from tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

# Calls a page-global function and returns the id of the element it made
CALL_TOOL_SCRIPT = """
([name, args]) => {
    const fn = window[name];
    if (typeof fn !== "function") {
        return {missing: true, id: null};
    }
    const element = fn(...args);
    return {missing: false, id: element && element.id ? element.id : null};
}
"""


class CanvasToolSurface:
    """Drives the canvas page. Use as an async context manager."""

    def __init__(self, url: Optional[str] = None, headless: Optional[bool] = None):
        self.url = url or flow_config.CANVAS_URL
        self.headless = flow_config.HEADLESS if headless is None else headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self.page: Optional[Page] = None

    async def __aenter__(self) -> "CanvasToolSurface":
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def open(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless, args=BROWSER_ARGS)
        ctx = await self._browser.new_context(viewport={"width": 1920, "height": 1080})
        self.page = await ctx.new_page()
        await self.page.goto(self.url, wait_until="domcontentloaded", timeout=60000)
        logger.info(f"Canvas opened at {self.url}")

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self.page = None

    async def call(self, tool_name: str, **payload: Any) -> Optional[str]:
        """Invoke one drawing function with the payload laid out as its arguments."""
        if self.page is None:
            raise RuntimeError("Canvas page is not open")
        model = PAYLOAD_MODELS[tool_name]
        args = model.model_validate(payload).call_args()
        result = await self.page.evaluate(CALL_TOOL_SCRIPT, [tool_name, args])
        if result.get("missing"):
            logger.warning(f"Canvas has no function {tool_name}, skipping")
            return None
        return result.get("id")

    def handler(self, tool_name: str):
        async def _handler(**payload: Any) -> Optional[str]:
            return await self.call(tool_name, **payload)
        _handler.__name__ = tool_name
        return _handler

    def register_all(self, registry: ToolRegistry) -> list[str]:
        """Register a handler for every known canvas tool."""
        for tool_name in PAYLOAD_MODELS:
            registry.register(tool_name, self.handler(tool_name))
        return list(PAYLOAD_MODELS)
