import asyncio
import importlib

import httpx
import pytest

from linktitles import journal
from linktitles.block_store import SqliteBlockStore


class DummyResolver:
    async def resolve(self, url):
        return {"http://a.co": "A", "http://x.co/v": "Vid"}.get(url, "")


@pytest.fixture
def server(tmp_path, monkeypatch):
    monkeypatch.setattr(journal, "LOG_PATH", str(tmp_path / "journal.json"))
    webhook_server = importlib.reload(importlib.import_module("webhook_server"))
    webhook_server.store = SqliteBlockStore(str(tmp_path / "blocks.sqlite"))
    webhook_server.resolver = DummyResolver()
    return webhook_server


def client_for(server):
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=server.app), base_url="http://test"
    )


async def drain():
    pending = [t for t in asyncio.all_tasks() if t.get_name().startswith("rewrite-")]
    await asyncio.gather(*pending)


@pytest.mark.asyncio
async def test_startup_registers_plugin(server):
    await server.startup()
    async with client_for(server) as client:
        resp = await client.get("/")
    assert resp.json() == {"status": "ok", "commands": ["format-url-titles"]}
    assert len(server.host.listeners) == 1


@pytest.mark.asyncio
async def test_command_rewrites_selected_blocks(server):
    await server.startup()
    await server.store.set_config("preferred_format", "markdown")
    block = await server.store.create_block("see http://a.co")

    async with client_for(server) as client:
        resp = await client.post(
            "/commands/format-url-titles", json={"selected": [block.uuid]}
        )
        assert resp.json() == {"ok": True, "dispatched": 1}
        await drain()
        resp = await client.get(f"/blocks/{block.uuid}")

    assert resp.json()["content"] == "see [A](http://a.co)"


@pytest.mark.asyncio
async def test_change_feed_adds_video_child(server):
    await server.startup()
    await server.store.set_config("preferred_format", "markdown")
    block = await server.store.create_block("{{video http://x.co/v}}")
    payload = {
        "tx_meta": {"outliner_op": "insertBlocks"},
        "blocks": [{"content": "", "left": {"id": block.uuid}}],
    }

    async with client_for(server) as client:
        for _ in range(2):
            resp = await client.post("/changes", json=payload)
            assert resp.json()["dispatched"] == 1
            await drain()
        resp = await client.get(f"/blocks/{block.uuid}")

    data = resp.json()
    assert data["content"] == "{{video http://x.co/v}}"
    assert [c["content"] for c in data["children"]] == ["[Vid](http://x.co/v)"]


@pytest.mark.asyncio
async def test_unknown_command_and_block(server):
    await server.startup()
    async with client_for(server) as client:
        assert (await client.post("/commands/nope", json={})).status_code == 404
        assert (await client.get("/blocks/missing")).status_code == 404


def test_host_rejects_duplicate_command(server):
    async def callback(event):
        return []

    server.host.register_command("x", "X", callback)
    with pytest.raises(ValueError):
        server.host.register_command("x", "X", callback)
