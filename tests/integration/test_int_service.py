# tests/integration/test_int_service.py — v1
"""Integration tests: real ImageHash fingerprints through cache, service and HTTP API.

Covers: hashing/imagehash_hasher.py, cache/hash_cache.py, index/scanner.py,
service/image_service.py, api/app.py
No network required.
"""

from __future__ import annotations

import base64
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from vismatch.api.app import create_app
from vismatch.cache.hash_cache import HashCache, sidecar_path
from vismatch.config.settings import Settings
from vismatch.core.models import HashKind
from vismatch.hashing.hasher_factory import create_hashers
from vismatch.index.scanner import scan_projects

pytestmark = pytest.mark.integration


def _gradient(horizontal: bool, size: int = 128) -> Image.Image:
    ramp = np.tile(np.linspace(0, 255, size).astype(np.uint8), (size, 1))
    return Image.fromarray(ramp if horizontal else np.ascontiguousarray(ramp.T)).convert("RGB")


def _checkerboard(size: int = 128, cell: int = 16) -> Image.Image:
    idx = np.indices((size, size)) // cell
    return Image.fromarray(((idx.sum(axis=0) % 2) * 255).astype(np.uint8)).convert("RGB")


def _b64(image: Image.Image) -> str:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def int_settings(tmp_path) -> Settings:
    return Settings(_env_file=None, project_root=tmp_path / "image_root", worker_threads=2)


class TestScanWithRealHashes:
    def test_sidecar_is_1024_bits(self, int_settings):
        root = int_settings.project_root
        (root / "shapes").mkdir(parents=True)
        _gradient(True).save(root / "shapes" / "h.png")
        _checkerboard().save(root / "shapes" / "c.png")

        cache = HashCache(create_hashers(int_settings))
        projects = scan_projects(root, HashKind.PHASH, cache)

        assert len(projects["shapes"]) == 2
        data = sidecar_path(root / "shapes" / "h.png", HashKind.PHASH).read_bytes()
        assert data[:3] == b"\xfb\x00\x04"
        assert len(data) == 1027

    def test_cached_value_matches_fresh_hash(self, int_settings):
        root = int_settings.project_root
        (root / "p").mkdir(parents=True)
        _checkerboard().save(root / "p" / "c.png")
        cache = HashCache(create_hashers(int_settings))

        first = scan_projects(root, HashKind.PHASH, cache)["p"][0]
        second = scan_projects(root, HashKind.PHASH, cache)["p"][0]
        assert first.hash == second.hash


class TestHttpRoundTrip:
    def test_upload_then_diff(self, int_settings):
        with TestClient(create_app(int_settings)) as client:
            for name, image in (
                ("horizontal.png", _gradient(True)),
                ("vertical.png", _gradient(False)),
                ("checker.png", _checkerboard()),
            ):
                resp = client.post("/upload", json={
                    "project_name": "shapes", "image_name": name, "data": _b64(image),
                })
                assert resp.status_code == 200, resp.text

            resp = client.post("/diff", json={
                "project_name": "shapes", "data": _b64(_gradient(True)),
            })

        assert resp.status_code == 200
        results = resp.json()["compare_result"]
        assert len(results) == 3
        assert results[0]["image_name"] == "horizontal.png"
        assert results[0]["distance"] == 0.0
        assert results[1]["distance"] > 0.0

    def test_restart_reloads_index(self, int_settings):
        with TestClient(create_app(int_settings)) as client:
            client.post("/upload", json={
                "project_name": "shapes", "image_name": "c.png", "data": _b64(_checkerboard()),
            })

        with TestClient(create_app(int_settings)) as client:
            assert client.get("/projects").json() == {"projects": {"shapes": 1}}
            resp = client.post("/diff", json={
                "project_name": "shapes", "data": _b64(_checkerboard()),
            })
        assert resp.json()["compare_result"][0]["distance"] == 0.0
