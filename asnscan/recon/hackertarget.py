import logging

import requests

from asnscan.core.errors import NetworkError, RateLimited, RemoteServiceError
from asnscan.core.models import ResolvedInfo, format_asn
from asnscan.core.utils import API_URL

DESCRIPTION = "HackerTarget aslookup API (used instead of the local DB with --use-api)"


def _unquote(value):
    return value.strip().strip('"')


class HackerTargetClient:
    def __init__(self, api_url=API_URL, timeout=15, session=None, user_agent=None):
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self.logger = logging.getLogger("asnscan.api")

    def fetch(self, query):
        """GETs ?q=<query> and returns the body, checking for upstream error text."""
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        self.logger.debug(f"GET {self.api_url}?q={query}")
        try:
            r = self.session.get(self.api_url, params={"q": query}, timeout=self.timeout, headers=headers)
            r.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"API request failed: {e}") from e

        text = r.text
        if "API count exceeded" in text:
            raise RateLimited("API limit reached")
        if "error" in text or "Unable" in text:
            raise RemoteServiceError(f"API error: {text.strip()}")
        return text

    def ip_to_asn(self, query, ip):
        # Response: "ip","asn","range","description"
        parts = self.fetch(ip).strip("\n").split(",")
        if len(parts) < 4:
            raise RemoteServiceError("unexpected response")
        return ResolvedInfo(
            query=query,
            resolved_ip=ip,
            asn="AS" + _unquote(parts[1]),
            description=_unquote(",".join(parts[3:])),
        )

    def asn_to_prefixes(self, asn_identifier):
        # Response: "asn","description" then one prefix per line
        asn = format_asn(asn_identifier)
        lines = self.fetch(asn).strip("\n").split("\n")
        header = lines[0].split(",")
        if len(header) < 2:
            raise RemoteServiceError("unexpected response")
        return ResolvedInfo(
            query=asn,
            asn=asn,
            description=_unquote(",".join(header[1:])),
            prefixes=[line.strip() for line in lines[1:] if line.strip()],
        )
