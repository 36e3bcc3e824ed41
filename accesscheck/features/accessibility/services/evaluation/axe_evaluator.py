"""
axe-core rules evaluator

Injects axe-core into the rendered page and runs it restricted to the WCAG
2.0/2.1 A and AA tags plus best practices. Results are returned as-is; the
reducer decides what they mean.
"""
import asyncio
from pathlib import Path
from typing import Optional, Sequence

import httpx

from accesscheck.features.accessibility.schemas.scan import RawEvaluation
from accesscheck.features.accessibility.services.browser.driver import PageHandle
from accesscheck.platform.config import Settings, settings as default_settings
from accesscheck.platform.logger import get_logger

logger = get_logger(__name__)

AXE_RULE_TAGS = ("wcag2a", "wcag2aa", "wcag21a", "wcag21aa", "best-practice")

AXE_RUN_SCRIPT = """
const tags = arguments[0];
const done = arguments[arguments.length - 1];
if (!window.axe || !window.axe.run) {
    done({error: 'axe not loaded'});
    return;
}
window.axe.run(document, {runOnly: {type: 'tag', values: tags}})
    .then(function (results) {
        done({
            violations: results.violations,
            passes: results.passes,
            incomplete: results.incomplete
        });
    })
    .catch(function (err) { done({error: String(err)}); });
"""


class AxeEvaluationError(Exception):
    pass


class AxeScriptSource:
    """Loads axe.min.js once per process, from disk if configured, else over HTTP."""

    def __init__(self, path: Optional[str] = None, url: Optional[str] = None, timeout: float = 15.0):
        self.path = path
        self.url = url
        self.timeout = timeout
        self._source: Optional[str] = None
        self._lock = asyncio.Lock()

    async def _fetch(self) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            return response.text

    async def load(self) -> str:
        if self._source is not None:
            return self._source

        async with self._lock:
            if self._source is None:
                if self.path:
                    source = await asyncio.to_thread(Path(self.path).read_text, encoding="utf-8")
                    logger.info(f"Loaded axe-core from {self.path}")
                elif self.url:
                    source = await self._fetch()
                    logger.info(f"Fetched axe-core from {self.url}")
                else:
                    raise AxeEvaluationError("No axe-core script path or URL configured")
                self._source = source

        return self._source


class AxeEvaluator:
    def __init__(self, script_source: AxeScriptSource, tags: Sequence[str] = AXE_RULE_TAGS):
        self.script_source = script_source
        self.tags = list(tags)

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "AxeEvaluator":
        return cls(AxeScriptSource(path=settings.AXE_SCRIPT_PATH, url=settings.AXE_SCRIPT_URL))

    async def evaluate(self, page: PageHandle, url: str) -> RawEvaluation:
        source = await self.script_source.load()
        await page.run_script(source)
        results = await page.run_async_script(AXE_RUN_SCRIPT, self.tags)

        if not isinstance(results, dict):
            raise AxeEvaluationError(f"Unexpected axe result of type {type(results).__name__}")
        if results.get("error"):
            raise AxeEvaluationError(f"axe-core failed: {results['error']}")

        raw = RawEvaluation(
            url=url,
            violations=results.get("violations") or [],
            passes=results.get("passes") or [],
            incomplete=results.get("incomplete") or [],
        )
        logger.info(
            f"axe-core finished for {url}: {len(raw.violations)} violations, "
            f"{len(raw.passes)} passes, {len(raw.incomplete)} incomplete"
        )
        return raw
