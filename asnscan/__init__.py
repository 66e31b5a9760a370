"""asnscan: IP/domain to ASN mapping and ASN prefix listing."""

__version__ = "1.0.0"
