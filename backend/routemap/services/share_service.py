"""
Route Map Backend: Share Page and Frontend Config
================================================

What:  The two non-JSON responses the mapping tool needs from the backend.

    ShareService.render   /share(.html): fetches the static share template and
                          rewrites its <title> and social-preview <meta> tags
                          for the camp/route in the link, so link unfurlers
                          (messengers, SNS) show the right route.
    config_script         /config.js: the browser client's public config
                          (store URL + anon key + page paths).

How:   Tag rewriting is plain regex substitution on the template's <head>;
       every injected value is HTML-escaped. Tags missing from the template
       are inserted before </head>.
"""

import html
import json
import logging
import re
from typing import Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx

from routemap.config import Settings, settings
from routemap.exceptions import ConfigurationError, ExternalServiceError
from routemap.services.colors import route_color
from routemap.services.normalizer import clean_str

logger = logging.getLogger(__name__)

FRONTEND_PATHS = {
    "login": "/login.html",
    "index": "/index.html",
    "route": "/coupangRouteMap.html",
}

_TITLE = re.compile(r"<title[^>]*>.*?</title>", re.IGNORECASE | re.DOTALL)
_HEAD_END = re.compile(r"</head\s*>", re.IGNORECASE)


def _meta_pattern(attr: str, key: str) -> "re.Pattern[str]":
    return re.compile(
        r"<meta\b[^>]*\b" + attr + r"\s*=\s*[\"']" + re.escape(key) + r"[\"'][^>]*>",
        re.IGNORECASE,
    )


def _insert_into_head(document: str, tag: str) -> str:
    match = _HEAD_END.search(document)
    if match is None:
        return tag + "\n" + document
    return document[: match.start()] + tag + "\n" + document[match.start():]


def set_meta(document: str, attr: str, key: str, value: str) -> str:
    """Replace (or add) `<meta {attr}="{key}" content="...">`."""
    tag = f'<meta {attr}="{html.escape(key)}" content="{html.escape(value)}">'
    pattern = _meta_pattern(attr, key)
    if pattern.search(document):
        return pattern.sub(lambda _: tag, document, count=1)
    return _insert_into_head(document, tag)


def set_title(document: str, title: str) -> str:
    tag = f"<title>{html.escape(title)}</title>"
    if _TITLE.search(document):
        return _TITLE.sub(lambda _: tag, document, count=1)
    return _insert_into_head(document, tag)


def with_version(url: str, version: Optional[str]) -> str:
    """Append the cache-bust token as `v=` so unfurlers refetch the image."""
    if not url or not version:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode({'v': version})}"


def share_text(camp: Optional[str], code: Optional[str], site_name: str) -> Tuple[str, str]:
    """(title, description) for a share link."""
    if camp and code:
        return f"{camp} {code} | {site_name}", f"Delivery route {code} of camp {camp}"
    if camp:
        return f"{camp} | {site_name}", f"Delivery routes of camp {camp}"
    return site_name, "Delivery route map"


class ShareService:
    """Renders the share page for an optional camp / route code."""

    def __init__(self, config: Settings = settings):
        self.config = config

    async def fetch_template(self, client: httpx.AsyncClient) -> str:
        url = self.config.share_template_url
        if not url:
            raise ConfigurationError("SHARE_TEMPLATE_URL")
        try:
            response = await client.get(url, timeout=self.config.share_timeout)
        except httpx.HTTPError as e:
            logger.warning("Share template fetch failed: %s", e)
            raise ExternalServiceError(message="Share template could not be loaded", status_code=502)
        if response.is_error:
            raise ExternalServiceError(
                message="Share template could not be loaded",
                status_code=502,
                details={"status": response.status_code},
            )
        return response.text

    def rewrite(
        self,
        template: str,
        page_url: str,
        camp: Optional[str] = None,
        code: Optional[str] = None,
        version: Optional[str] = None,
    ) -> str:
        camp, code, version = clean_str(camp), clean_str(code), clean_str(version)
        title, description = share_text(camp, code, self.config.share_site_name)

        tags: Dict[Tuple[str, str], str] = {
            ("property", "og:type"): "website",
            ("property", "og:site_name"): self.config.share_site_name,
            ("property", "og:title"): title,
            ("property", "og:description"): description,
            ("property", "og:url"): page_url,
            ("name", "twitter:title"): title,
            ("name", "twitter:description"): description,
            ("name", "description"): description,
        }
        image = with_version(self.config.share_image_url, version)
        if image:
            tags[("property", "og:image")] = image
            tags[("name", "twitter:image")] = image
            tags[("name", "twitter:card")] = "summary_large_image"
        if camp and code:
            tags[("name", "theme-color")] = route_color(camp, code)

        document = set_title(template, title)
        for (attr, key), value in tags.items():
            document = set_meta(document, attr, key, value)
        return document

    async def render(
        self,
        client: httpx.AsyncClient,
        page_url: str,
        camp: Optional[str] = None,
        code: Optional[str] = None,
        version: Optional[str] = None,
    ) -> str:
        template = await self.fetch_template(client)
        return self.rewrite(template, page_url, camp=camp, code=code, version=version)


def config_script(config: Settings = settings) -> str:
    """
    `window.MARUWELL_CONFIG = {...};` for the browser client.

    Raises:
        ConfigurationError: store URL or anon key missing
    """
    if not config.supabase_url:
        raise ConfigurationError("SUPABASE_URL")
    if not config.supabase_anon_key:
        raise ConfigurationError("SUPABASE_ANON_KEY")
    body = {
        "SUPABASE_URL": config.supabase_url,
        "SUPABASE_ANON_KEY": config.supabase_anon_key,
        "PATHS": FRONTEND_PATHS,
    }
    return "window.MARUWELL_CONFIG = " + json.dumps(body, ensure_ascii=False, indent=2) + ";\n"


share_service = ShareService()
