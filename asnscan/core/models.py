# asnscan/core/models.py
from dataclasses import dataclass, field
from typing import List, Optional

from asnscan.core.errors import InvalidASN, RecordParseError


def normalize_asn(identifier):
    """'13335', 'AS13335', 'as13335' and ' AS 13335 ' all give 13335."""
    text = str(identifier).strip().upper()
    if text.startswith("AS"):
        text = text[2:].strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidASN(f"invalid ASN identifier: {identifier!r}")
    return int(text)


def format_asn(identifier):
    return f"AS{normalize_asn(identifier)}"


@dataclass
class ASNRecord:
    number: int
    handle: str = ""
    description: str = ""
    ipv4_prefixes: List[str] = field(default_factory=list)
    ipv6_prefixes: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data):
        """Builds a record from one aggregated.json document."""
        if not isinstance(data, dict):
            raise RecordParseError("record is not a JSON object")
        try:
            number = int(data["asn"])
        except (KeyError, TypeError, ValueError) as e:
            raise RecordParseError(f"invalid 'asn' field: {e}") from e

        subnets = data.get("subnets") or {}
        if not isinstance(subnets, dict):
            raise RecordParseError(f"AS{number}: 'subnets' is not an object")
        prefixes = {}
        for family in ("ipv4", "ipv6"):
            value = subnets.get(family) or []
            if not isinstance(value, list):
                raise RecordParseError(f"AS{number}: 'subnets.{family}' is not a list")
            prefixes[family] = list(value)

        return cls(
            number=number,
            handle=str(data.get("handle") or ""),
            description=str(data.get("description") or ""),
            ipv4_prefixes=prefixes["ipv4"],
            ipv6_prefixes=prefixes["ipv6"],
        )

    @property
    def asn(self):
        return f"AS{self.number}"

    @property
    def prefixes(self):
        # v4 first, then v6, each in source order
        return self.ipv4_prefixes + self.ipv6_prefixes


@dataclass
class ResolvedInfo:
    query: str
    asn: str
    description: str
    resolved_ip: Optional[str] = None
    prefixes: List[str] = field(default_factory=list)

    def to_dict(self):
        data = {
            "query": self.query,
            "asn": self.asn,
            "description": self.description,
        }
        if self.prefixes:
            data["prefixes"] = list(self.prefixes)
        if self.resolved_ip:
            data["ip"] = self.resolved_ip
        return data
