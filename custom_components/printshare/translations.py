"""
Locale-aware string lookup for labels and log messages.

Lookup order: exact locale, its base language ("zh-CN" -> "zh"), English,
then the key itself. Never raises.
"""
from __future__ import annotations

import logging

from .const import DEFAULT_LOCALE
from .locale_signal import LocaleSignal

_LOGGER = logging.getLogger(__name__)

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "status.online": "online",
        "status.offline": "offline",
        "button.share": "share",
        "button.stop_sharing": "stop sharing",
        "button.sharing": "sharing…",
        "button.stopping": "stopping…",
        "logs.fetching_printers": "Fetching printers...",
        "logs.found_printers": "Found {count} printer(s), {shared} shared",
        "logs.sharing_printer": "Sharing printer {id}...",
        "logs.stopping_printer": "Stopping printer {id}...",
        "logs.shared_printer": "Printer {id} is now shared",
        "logs.stopped_sharing": "Stopped sharing printer {id}",
        "messages.lang_switched": "Language switched to {code}",
        "errors.fetch_failed": "Failed to fetch printers: {error}",
        "errors.share_failed": "Failed to share printer: {error}",
        "errors.unshare_failed": "Failed to stop sharing printer: {error}",
        "errors.printer_not_found": "Printer not found: {id}",
        "errors.operation_in_progress": "Printer {id} is busy, please wait",
        "errors.printer_offline": "Printer {id} is offline and cannot be shared",
        "errors.invalid_locale": "Invalid language code: {code}",
        "errors.locale_sync_failed": "Could not notify backend of language change: {error}",
    },
    "zh": {
        "status.online": "在线",
        "status.offline": "离线",
        "button.share": "共享",
        "button.stop_sharing": "停止共享",
        "button.sharing": "共享中…",
        "button.stopping": "停止中…",
        "logs.fetching_printers": "正在获取打印机列表...",
        "logs.found_printers": "发现 {count} 台打印机，{shared} 台已共享",
        "logs.sharing_printer": "正在共享打印机 {id}...",
        "logs.stopping_printer": "正在停止打印机 {id}...",
        "logs.shared_printer": "打印机 {id} 已共享",
        "logs.stopped_sharing": "已停止共享打印机 {id}",
        "messages.lang_switched": "语言已切换为 {code}",
        "errors.fetch_failed": "获取打印机失败: {error}",
        "errors.share_failed": "共享打印机失败: {error}",
        "errors.unshare_failed": "停止共享失败: {error}",
        "errors.printer_not_found": "找不到打印机: {id}",
        "errors.operation_in_progress": "打印机 {id} 正在处理中，请稍候",
        "errors.printer_offline": "打印机 {id} 离线，无法共享",
        "errors.invalid_locale": "无效的语言代码: {code}",
        "errors.locale_sync_failed": "无法通知后端语言变更: {error}",
    },
}


class Translator:
    """Resolves translation keys against the active (or an explicit) locale."""

    def __init__(
        self,
        locale: LocaleSignal,
        catalogs: dict[str, dict[str, str]] | None = None,
        fallback: str = DEFAULT_LOCALE,
    ) -> None:
        self._locale = locale
        self._catalogs = TRANSLATIONS if catalogs is None else catalogs
        self._fallback = fallback

    def _candidates(self, locale: str) -> list[str]:
        candidates = [locale]
        base = locale.split("-")[0].split("_")[0]
        if base not in candidates:
            candidates.append(base)
        if self._fallback not in candidates:
            candidates.append(self._fallback)
        return candidates

    def translate(self, key: str, locale: str | None = None, **params) -> str:
        """Return the localised string for key, formatted with params."""
        template = key
        for candidate in self._candidates(locale or self._locale.current()):
            catalog = self._catalogs.get(candidate)
            if catalog and key in catalog:
                template = catalog[key]
                break
        else:
            _LOGGER.debug("Missing translation for %s", key)

        if not params:
            return template
        try:
            return template.format(**params)
        except (KeyError, IndexError, ValueError):
            _LOGGER.debug("Could not format %s with %s", key, params)
            return template

    __call__ = translate
