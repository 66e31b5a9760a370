"""Shared fixtures: on-disk datasets, in-memory archives and a fake HTTP session."""

import io
import json
import os
import zipfile

import pytest
import requests

from asnscan.core.dataset import DatasetStore


GOOGLE = {
    "asn": 15169,
    "handle": "GOOGLE",
    "description": "GOOGLE",
    "subnets": {"ipv4": ["8.8.8.0/24"], "ipv6": ["2001:4860::/32"]},
}

CLOUDFLARE = {
    "asn": 13335,
    "handle": "CLOUDFLARENET",
    "description": "Cloudflare, Inc.",
    "subnets": {"ipv4": ["1.1.1.0/24", "104.16.0.0/13"], "ipv6": ["2606:4700::/32"]},
}


def write_record(cache_dir, data, name=None):
    """Writes <cache_dir>/<name>/aggregated.json; raw strings are written verbatim."""
    name = str(name if name is not None else data["asn"])
    record_dir = os.path.join(str(cache_dir), name)
    os.makedirs(record_dir, exist_ok=True)
    with open(os.path.join(record_dir, "aggregated.json"), "w", encoding="utf-8") as f:
        if isinstance(data, str):
            f.write(data)
        else:
            json.dump(data, f)
    return record_dir


def make_archive(records, top="asn-ip-master", subdir="as", extra=None, mode=None):
    """Zip bytes laid out like the ipverse archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"{top}/", "")
        zf.writestr(f"{top}/README.md", "asn-ip\n")
        if subdir:
            zf.writestr(f"{top}/{subdir}/", "")
        for data in records:
            info = zipfile.ZipInfo(f"{top}/{subdir}/{data['asn']}/aggregated.json")
            if mode is not None:
                info.external_attr = mode << 16
            zf.writestr(info, json.dumps(data))
        for name, content in (extra or {}).items():
            zf.writestr(name, content)
    return buf.getvalue()


class FakeResponse:
    def __init__(self, body=b"", status_code=200, headers=None, fail_after=None):
        self.body = body if isinstance(body, bytes) else body.encode("utf-8")
        self.status_code = status_code
        self.headers = headers if headers is not None else {"Content-Length": str(len(self.body))}
        self.fail_after = fail_after
        self.closed = False

    @property
    def text(self):
        return self.body.decode("utf-8")

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            if self.fail_after is not None and i >= self.fail_after:
                raise requests.ConnectionError("connection reset")
            yield self.body[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Returns queued responses (or raises queued exceptions) from get()."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if not self.responses:
            raise AssertionError(f"unexpected GET {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingProgress:
    def __init__(self):
        self.bars = []

    def __call__(self, description, total=None, unit="bytes"):
        bar = {"description": description, "total": total, "unit": unit, "done": 0}
        self.bars.append(bar)
        return _Bar(bar)


class _Bar:
    def __init__(self, bar):
        self.bar = bar

    def __enter__(self):
        def advance(n):
            self.bar["done"] += n
        return advance

    def __exit__(self, *exc):
        return False


@pytest.fixture
def cache_dir(tmp_path):
    path = tmp_path / "cache" / "asn_scanner_db"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def populated_store(cache_dir, work_dir):
    """Store over a ready cache; any download attempt fails the test."""
    write_record(cache_dir, GOOGLE)
    write_record(cache_dir, CLOUDFLARE)
    return DatasetStore(str(cache_dir), work_dir=str(work_dir), session=FakeSession())
