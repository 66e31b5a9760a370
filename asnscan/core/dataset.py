"""
On-disk ASN dataset: one directory per ASN holding its aggregated.json.

The store bootstraps itself from the ipverse archive the first time it is
needed and is read-only afterwards until a full refresh.
"""
import json
import logging
import os
import shutil
import tempfile
import zipfile
import zlib
from contextlib import contextmanager

import requests

from asnscan.core.errors import (
    ArchiveError, FilesystemError, NetworkError, RecordNotFound, RecordParseError,
)
from asnscan.core.models import ASNRecord, normalize_asn
from asnscan.core.utils import DATASET_URL

RECORD_FILE = "aggregated.json"
CHUNK_SIZE = 8 * 1024


@contextmanager
def no_progress(description, total=None, unit="bytes"):
    yield lambda n: None


def content_length(headers):
    """Declared body size, or None when missing/garbage/zero."""
    try:
        size = int(headers.get("Content-Length") or 0)
    except (TypeError, ValueError):
        return None
    return size if size > 0 else None


class DatasetStore:
    def __init__(self, cache_dir, dataset_url=DATASET_URL, work_dir=None,
                 archive_prefix="asn-ip", records_subdir="as", timeout=30,
                 chunk_size=CHUNK_SIZE, session=None, user_agent=None, progress=None):
        self.cache_dir = cache_dir
        self.dataset_url = dataset_url
        self.work_dir = work_dir or os.getcwd()
        self.archive_prefix = archive_prefix
        self.records_subdir = records_subdir
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self.progress = progress or no_progress
        self.logger = logging.getLogger("asnscan.dataset")

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------
    def is_populated(self):
        return os.path.exists(self.cache_dir)

    def ensure_populated(self):
        """
        Downloads and unpacks the dataset unless the cache directory exists.
        Returns True when a download happened.
        """
        if self.is_populated():
            return False

        try:
            os.makedirs(self.cache_dir, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"failed to create cache directory: {e}") from e

        self.logger.info(f"ASN database missing, fetching {self.dataset_url}")
        try:
            self._populate()
        except BaseException:
            # An empty cache dir would pass is_populated() on the next run
            shutil.rmtree(self.cache_dir, ignore_errors=True)
            raise

        self.logger.info(f"ASN database ready at {self.cache_dir}")
        return True

    def refresh(self):
        """Full replace: drop the cache and fetch a fresh copy."""
        if os.path.exists(self.cache_dir):
            self.logger.info(f"Removing cached ASN database {self.cache_dir}")
            try:
                shutil.rmtree(self.cache_dir)
            except OSError as e:
                raise FilesystemError(f"failed to remove old ASN data: {e}") from e
        return self.ensure_populated()

    def _populate(self):
        # archive and unpacked tree live in one private directory under work_dir
        try:
            scaffold = tempfile.mkdtemp(prefix="asnscan-", dir=self.work_dir)
        except OSError as e:
            raise FilesystemError(f"cannot create download directory: {e}") from e

        archive_path = os.path.join(scaffold, "asn-ip.zip")
        extract_dir = os.path.join(scaffold, "extract")
        moved = False
        try:
            self._download(archive_path)
            self._extract(archive_path, extract_dir)
            moved = self._relocate(extract_dir)
        finally:
            self._cleanup(scaffold)

        if not moved:
            raise ArchiveError(
                f"failed to move ASN data: no '{self.archive_prefix}*/{self.records_subdir}' directory in archive"
            )

    def _download(self, archive_path):
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        try:
            response = self.session.get(self.dataset_url, stream=True, timeout=self.timeout, headers=headers)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"download failed: {e}") from e

        total = content_length(response.headers)
        if total is None:
            self.logger.warning("Content-Length unknown, progress will show bytes instead of percent.")

        received = 0
        try:
            with open(archive_path, "wb") as out, self.progress("Downloading ASN DB", total, "bytes") as advance:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if not chunk:
                        continue
                    out.write(chunk)
                    received += len(chunk)
                    advance(len(chunk))
        except requests.RequestException as e:
            raise NetworkError(f"download interrupted after {received} bytes: {e}") from e
        except OSError as e:
            raise FilesystemError(f"cannot write {archive_path}: {e}") from e
        finally:
            response.close()

        if total is not None and received != total:
            self.logger.warning(f"Expected {total} bytes, only received {received}")
        self.logger.debug(f"Downloaded {received} bytes to {archive_path}")

    def _extract(self, archive_path, extract_dir):
        try:
            zf = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveError(f"malformed archive: {e}") from e

        with zf:
            members = zf.infolist()
            with self.progress("Extracting ASN DB", len(members), "files") as advance:
                for info in members:
                    self._extract_member(zf, info, extract_dir)
                    advance(1)

    def _extract_member(self, zf, info, extract_dir):
        root = os.path.realpath(extract_dir)
        target = os.path.realpath(os.path.join(root, info.filename))
        if target != root and not target.startswith(root + os.sep):
            raise ArchiveError(f"archive member escapes extraction dir: {info.filename}")

        mode = (info.external_attr >> 16) & 0o777
        try:
            if info.is_dir():
                os.makedirs(target, exist_ok=True)
                if mode:
                    # owner keeps rwx so children can still be written
                    os.chmod(target, mode | 0o700)
                return
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst, self.chunk_size)
            if mode:
                os.chmod(target, mode)
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise ArchiveError(f"corrupt archive member {info.filename}: {e}") from e
        except OSError as e:
            raise FilesystemError(f"cannot extract {info.filename}: {e}") from e

    def _relocate(self, extract_dir):
        """Moves <archive_prefix>*/<records_subdir> from extract_dir to cache_dir."""
        try:
            names = sorted(os.listdir(extract_dir))
        except FileNotFoundError:
            # empty archive
            return False

        for name in names:
            src = os.path.join(extract_dir, name, self.records_subdir)
            if not (name.startswith(self.archive_prefix) and os.path.isdir(src)):
                continue
            try:
                if os.path.exists(self.cache_dir):
                    shutil.rmtree(self.cache_dir)
                shutil.move(src, self.cache_dir)
            except OSError as e:
                raise FilesystemError(f"failed to move ASN data: {e}") from e
            self.logger.debug(f"Moved {src} -> {self.cache_dir}")
            return True
        return False

    def _cleanup(self, scaffold):
        try:
            shutil.rmtree(scaffold)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove {scaffold}: {e}")

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------
    def record_path(self, number):
        return os.path.join(self.cache_dir, str(number), RECORD_FILE)

    def load_record(self, asn_identifier):
        number = normalize_asn(asn_identifier)
        path = self.record_path(number)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise RecordNotFound(f"ASN file not found for {asn_identifier}") from e
        except ValueError as e:
            raise RecordParseError(f"malformed record {path}: {e}") from e
        except OSError as e:
            raise FilesystemError(f"cannot read {path}: {e}") from e
        return ASNRecord.from_json(data)

    def list_all(self):
        """Yields every readable record; bad entries are skipped."""
        try:
            names = os.listdir(self.cache_dir)
        except OSError as e:
            raise FilesystemError(f"failed to read ASN data folder: {e}") from e

        # numeric directory names first, in ASN order
        names.sort(key=lambda n: (0, int(n), n) if n.isascii() and n.isdigit() else (1, 0, n))
        for name in names:
            if not os.path.isdir(os.path.join(self.cache_dir, name)):
                continue
            try:
                record = self.load_record(name)
            except (RecordNotFound, RecordParseError, FilesystemError) as e:
                self.logger.debug(f"Skipping {name}: {e}")
                continue
            yield record
