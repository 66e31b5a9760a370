class ASNScanError(Exception):
    """Base class for every failure raised by asnscan."""


class NetworkError(ASNScanError):
    pass


class FilesystemError(ASNScanError):
    pass


class ArchiveError(ASNScanError):
    pass


class RecordNotFound(ASNScanError):
    pass


class InvalidASN(RecordNotFound):
    pass


class RecordParseError(ASNScanError):
    pass


class UnresolvableDomain(ASNScanError):
    pass


class RemoteServiceError(ASNScanError):
    pass


class RateLimited(RemoteServiceError):
    pass
