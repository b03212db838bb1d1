#!/usr/bin/env python3
"""
📡 CPCB CAAQMS FEED COLLECTOR
=============================
Downloads the live CPCB station feed (XML) and converts it into the nested
document the feed parser expects.
"""

import logging
from typing import Any, Dict, Optional

import requests

from processors.feed_parser import xml_to_document
from utils.errors import FeedTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_FEED_URL = "https://airquality.cpcb.gov.in/caaqms/rss_feed"


class CPCBFeedCollector:
    """Fetches the CPCB feed over HTTP with an explicit timeout"""

    def __init__(self, feed_url: str = DEFAULT_FEED_URL, timeout_seconds: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.feed_url = feed_url
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def fetch_xml(self) -> str:
        """Download the raw feed text"""
        logger.info(f"📡 Fetching fresh AQI data from: {self.feed_url}")
        try:
            response = self.session.get(
                self.feed_url,
                headers={"accept": "application/xml"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout:
            logger.error(f"❌ CPCB feed timed out after {self.timeout_seconds}s")
            raise FeedTimeout()
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ CPCB feed fetch failed: {e}")
            raise UpstreamUnavailable(f"Failed to fetch AQI data: {e}")

        logger.info(f"✅ XML data fetched, length: {len(response.text)}")
        return response.text

    def fetch_document(self) -> Dict[str, Any]:
        """Download and convert the feed; MalformedFeed on invalid XML"""
        return xml_to_document(self.fetch_xml())
