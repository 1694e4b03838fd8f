from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest


@pytest.fixture
def valid_document() -> dict[str, Any]:
    return {
        "LocalRecords": [
            {"Name": "svc.local.", "Type": "A", "TTL": 300, "Target": "10.0.0.5"},
            {"Name": "v6.svc.local.", "Type": "AAAA", "TTL": 60, "Target": "2001:db8::5"},
            {"Name": "alias.local.", "Type": "CNAME", "TTL": 120, "Target": "svc.local."},
        ],
        "UpstreamNameservers": {
            "Primary": {"IPv4": "1.1.1.1"},
            "Secondary": {"IPv4": "8.8.8.8"},
        },
    }


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Any], str]:
    """Write a document (dict -> JSON, str -> as is) and return its path."""

    def _write(doc: Any, name: str = "config.json") -> str:
        path = tmp_path / name
        text = doc if isinstance(doc, str) else json.dumps(doc)
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write
