# tests/unit/index/test_unit_registry.py — v1
"""Tests for index/registry.py — shared project catalogue."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import grey_fingerprint
from vismatch.core.errors import ProjectNotFoundError
from vismatch.core.models import HashKind, ImageHashEntry
from vismatch.index.registry import ProjectRegistry


def _entry(name: str, grey: int = 0) -> ImageHashEntry:
    return ImageHashEntry(Path(name), HashKind.PHASH, grey_fingerprint(grey))


@pytest.fixture
def registry() -> ProjectRegistry:
    return ProjectRegistry({"cats": [_entry("a.png"), _entry("b.png")], "dogs": []})


class TestRead:
    @pytest.mark.asyncio
    async def test_with_read(self, registry):
        names = await registry.with_read("cats", lambda es: [e.image_name.name for e in es])
        assert names == ["a.png", "b.png"]

    @pytest.mark.asyncio
    async def test_unknown_project(self, registry):
        with pytest.raises(ProjectNotFoundError, match="<birds>"):
            await registry.with_read("birds", len)

    @pytest.mark.asyncio
    async def test_unknown_project_leaves_registry_unchanged(self, registry):
        with pytest.raises(ProjectNotFoundError):
            await registry.snapshot("birds")
        assert await registry.counts() == {"cats": 2, "dogs": 0}
        assert not await registry.has_project("birds")

    @pytest.mark.asyncio
    async def test_empty_project_is_known(self, registry):
        assert list(await registry.snapshot("dogs")) == []

    @pytest.mark.asyncio
    async def test_snapshot_is_stable(self, registry):
        snap = await registry.snapshot("cats")
        await registry.append_entry("cats", _entry("c.png"))
        assert len(snap) == 2
        assert len(await registry.snapshot("cats")) == 3

    @pytest.mark.asyncio
    async def test_empty_registry(self):
        registry = ProjectRegistry()
        assert await registry.counts() == {}


class TestWrite:
    @pytest.mark.asyncio
    async def test_append_existing_project(self, registry):
        assert await registry.append_entry("cats", _entry("c.png")) == 3
        names = await registry.with_read("cats", lambda es: [e.image_name.name for e in es])
        assert names == ["a.png", "b.png", "c.png"]

    @pytest.mark.asyncio
    async def test_append_creates_project(self, registry):
        assert await registry.append_entry("birds", _entry("x.png")) == 1
        assert await registry.has_project("birds")

    @pytest.mark.asyncio
    async def test_append_keeps_other_entries(self, registry):
        await registry.append_entry("cats", _entry("c.png"))
        await registry.append_entry("cats", _entry("d.png"))
        assert (await registry.counts())["cats"] == 4

    @pytest.mark.asyncio
    async def test_reupload_replaces(self, registry):
        assert await registry.append_entry("cats", _entry("a.png", 5)) == 2
        snap = await registry.snapshot("cats")
        assert snap[0].hash == grey_fingerprint(5)

    @pytest.mark.asyncio
    async def test_ensure_project(self, registry):
        assert await registry.ensure_project("birds") is True
        assert await registry.ensure_project("birds") is False
        assert (await registry.counts())["birds"] == 0

    @pytest.mark.asyncio
    async def test_with_write_sees_all_projects(self, registry):
        names = await registry.with_write(lambda projects: sorted(projects))
        assert names == ["cats", "dogs"]


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_appends_all_land(self, registry):
        await asyncio.gather(
            *(registry.append_entry("cats", _entry(f"n{i}.png")) for i in range(50))
        )
        snap = await registry.snapshot("cats")
        assert len(snap) == 52
        assert {e.image_name.name for e in snap} >= {f"n{i}.png" for i in range(50)}

    @pytest.mark.asyncio
    async def test_readers_during_appends(self, registry):
        async def read() -> int:
            return len(await registry.snapshot("cats"))

        results = await asyncio.gather(
            *(registry.append_entry("cats", _entry(f"n{i}.png")) for i in range(10)),
            *(read() for _ in range(10)),
        )
        sizes = results[10:]
        assert all(2 <= s <= 12 for s in sizes)
        assert len(await registry.snapshot("cats")) == 12

    @pytest.mark.asyncio
    async def test_concurrent_project_creation(self):
        registry = ProjectRegistry()
        await asyncio.gather(
            *(registry.append_entry("new", _entry(f"{i}.png")) for i in range(20))
        )
        assert await registry.counts() == {"new": 20}
