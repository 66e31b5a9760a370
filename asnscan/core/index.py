import ipaddress
import logging

from asnscan.core.errors import RecordNotFound


class RecordIndex:
    """
    Linear CIDR containment search over every cached record.

    The first record holding a containing prefix wins; no longest-prefix
    comparison is made across records.
    """

    def __init__(self, store):
        self.store = store
        self.logger = logging.getLogger("asnscan.index")

    def find_owner(self, address):
        if not isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            address = ipaddress.ip_address(str(address).strip())

        scanned = 0
        for record in self.store.list_all():
            scanned += 1
            for prefix in record.prefixes:
                try:
                    network = ipaddress.ip_network(prefix.strip(), strict=False)
                except (ValueError, TypeError, AttributeError):
                    continue
                if network.version == address.version and address in network:
                    self.logger.debug(f"{address} in {network} (AS{record.number}) after {scanned} records")
                    return record

        self.logger.debug(f"{address} not found in {scanned} records")
        raise RecordNotFound(f"IP {address} not found in local DB")
