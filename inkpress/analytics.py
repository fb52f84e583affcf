"""
Umami analytics API client.

Supports Umami Cloud (API key) and self-hosted instances (user id plus
secret). Every call degrades to ``None`` (or 0 active visitors) on
failure so the dashboard renders without analytics.
"""
import hashlib
import logging

import requests
from django.conf import settings

from .conf import blog_settings

logger = logging.getLogger(__name__)


class UmamiClient:
    def __init__(self, is_cloud=False, host_url=None, website_id=None,
                 api_key=None, api_user_id=None, api_secret=None):
        self.is_cloud = is_cloud
        self.host_url = host_url or ""
        self.website_id = website_id or ""
        self.api_key = api_key or ""
        self.api_user_id = api_user_id or ""
        self.api_secret = api_secret or ""
        if is_cloud:
            self.base_url = blog_settings.UMAMI_CLOUD_API
        else:
            self.base_url = self.host_url.rstrip("/")

    def is_configured(self):
        if not self.website_id:
            return False
        if self.is_cloud:
            return bool(self.api_key)
        return bool(self.host_url and self.api_user_id and self.api_secret)

    def self_hosted_token(self):
        """SHA-256 hex digest of ``user_id:secret``."""
        return hashlib.sha256(f"{self.api_user_id}:{self.api_secret}".encode("utf-8")).hexdigest()

    def auth_headers(self):
        if self.is_cloud:
            return {"x-umami-api-key": self.api_key}
        return {"Authorization": f"Bearer {self.self_hosted_token()}"}

    def _get(self, endpoint, params=None):
        response = requests.get(
            f"{self.base_url}/api/websites/{self.website_id}/{endpoint}",
            params=params,
            headers=self.auth_headers(),
            timeout=blog_settings.UMAMI_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()

    def get_stats(self, start_at, end_at):
        """Totals (pageviews, visitors, visits, bounces, totaltime) for a range in epoch ms."""
        if not self.is_configured():
            return None
        try:
            return self._get("stats", {"startAt": start_at, "endAt": end_at})
        except (requests.RequestException, ValueError):
            logger.warning("Umami stats request failed", exc_info=True)
            return None

    def get_pageviews(self, start_at, end_at, unit="day"):
        if not self.is_configured():
            return None
        params = {
            "startAt": start_at,
            "endAt": end_at,
            "unit": unit,
            "timezone": settings.TIME_ZONE,
        }
        try:
            return self._get("pageviews", params)
        except (requests.RequestException, ValueError):
            logger.warning("Umami pageviews request failed", exc_info=True)
            return None

    def get_active_visitors(self):
        if not self.is_configured():
            return 0
        try:
            data = self._get("active")
        except (requests.RequestException, ValueError):
            logger.warning("Umami active visitors request failed", exc_info=True)
            return 0
        if not isinstance(data, dict):
            return 0
        return data.get("visitors") or 0


def create_umami_client(config):
    """Build a client from a settings dict (see ``SiteSettings.as_dict``)."""
    return UmamiClient(
        is_cloud=bool(config.get("umami_cloud")),
        host_url=config.get("umami_host_url"),
        website_id=config.get("umami_website_id"),
        api_key=config.get("umami_api_key"),
        api_user_id=config.get("umami_api_user_id"),
        api_secret=config.get("umami_api_secret"),
    )


def fetch_tracker_script():
    """
    Download the Umami Cloud tracker script.

    Raises ``requests.RequestException`` on failure.
    """
    response = requests.get(
        blog_settings.UMAMI_SCRIPT_URL,
        headers={"User-Agent": "Mozilla/5.0 (compatible; UmamiProxy/1.0)"},
        timeout=blog_settings.UMAMI_TIMEOUT,
    )
    response.raise_for_status()
    return response.text
