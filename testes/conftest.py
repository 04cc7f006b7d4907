import os
import sys

import pytest

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


@pytest.fixture(autouse=True)
def run_in_tmp_dir(tmp_path, monkeypatch):
    # Reports and logs are written relative to the working directory.
    monkeypatch.chdir(tmp_path)
    return tmp_path


class FakeResponse:
    def __init__(self, payload=None, *, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else ("" if payload is None else str(payload))

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload


@pytest.fixture
def make_response():
    return FakeResponse
