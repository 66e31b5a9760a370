import ipaddress
import logging

import dns.exception
import dns.resolver

from asnscan.core.errors import NetworkError, UnresolvableDomain
from asnscan.core.index import RecordIndex
from asnscan.core.models import ResolvedInfo, format_asn, normalize_asn
from asnscan.recon.hackertarget import HackerTargetClient

__all__ = ["ResolutionService", "resolve_host", "parse_ip", "normalize_asn", "format_asn"]

logger = logging.getLogger("asnscan.resolver")


def parse_ip(text):
    """Returns an ipaddress object for a literal IP, None for anything else."""
    text = str(text).strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def resolve_host(name, lifetime=5.0):
    """A records first, then AAAA. Returns address strings in answer order."""
    addresses = []
    for rdtype in ("A", "AAAA"):
        try:
            answer = dns.resolver.resolve(name, rdtype, lifetime=lifetime)
        except dns.resolver.NXDOMAIN:
            break
        except (dns.resolver.NoAnswer, dns.resolver.NoNameservers):
            continue
        except (dns.exception.Timeout, dns.resolver.NoResolverConfiguration) as e:
            raise NetworkError(f"DNS lookup for {name} failed: {e}") from e
        except dns.exception.DNSException as e:
            # malformed names and similar
            logger.debug(f"DNS {rdtype} lookup for {name} failed: {e}")
            break
        addresses.extend(r.to_text() for r in answer)
        if addresses:
            break
    return addresses


class ResolutionService:
    def __init__(self, store, index=None, remote=None, resolve_host=resolve_host):
        self.store = store
        self.index = index or RecordIndex(store)
        self.remote = remote or HackerTargetClient()
        self.resolve_host = resolve_host

    def resolve_address(self, query):
        ip = parse_ip(query)
        if ip is not None:
            return ip

        name = str(query).strip().rstrip(".")
        addresses = self.resolve_host(name) if name else []
        if not addresses:
            raise UnresolvableDomain(f"cannot resolve domain {query!r}")
        logger.debug(f"{name} -> {addresses[0]} ({len(addresses)} addresses)")
        return ipaddress.ip_address(addresses[0])

    def resolve_ip_to_asn(self, query, use_remote=False):
        ip = self.resolve_address(query)
        if use_remote:
            return self.remote.ip_to_asn(query, str(ip))

        self.store.ensure_populated()
        record = self.index.find_owner(ip)
        return ResolvedInfo(
            query=query,
            resolved_ip=str(ip),
            asn=record.asn,
            description=record.description,
        )

    def resolve_asn_to_prefixes(self, asn_identifier, use_remote=False):
        asn = format_asn(asn_identifier)
        if use_remote:
            return self.remote.asn_to_prefixes(asn)

        self.store.ensure_populated()
        record = self.store.load_record(asn)
        return ResolvedInfo(
            query=asn_identifier,
            asn=record.asn,
            description=record.description,
            prefixes=record.prefixes,
        )
