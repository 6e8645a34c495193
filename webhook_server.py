import os
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request

from linktitles import plugin
from linktitles.block_store import SqliteBlockStore
from linktitles.title_resolver import TitleResolver

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

BLOCKS_DB_PATH = os.getenv("BLOCKS_DB_PATH", "data/blocks.sqlite")


class WebhookHost:
    """Host side of the plugin: commands and change listeners fed over HTTP."""

    def __init__(self):
        self.commands = {}
        self.listeners = []

    def register_command(self, key, label, callback) -> None:
        if key in self.commands:
            raise ValueError(f"Command {key!r} already registered")
        self.commands[key] = (label, callback)

    def on_changed(self, callback) -> None:
        self.listeners.append(callback)

    async def run_command(self, key: str, event: dict) -> list:
        label, callback = self.commands[key]
        logger.info("Running command %s", label)
        return await callback(event)

    async def publish(self, payload: dict) -> list:
        tasks = []
        for listener in self.listeners:
            tasks.extend(await listener(payload) or [])
        return tasks


app = FastAPI()
host = WebhookHost()
store = None
resolver = TitleResolver()


@app.on_event("startup")
async def startup() -> None:
    global store
    if store is None:
        store = SqliteBlockStore(BLOCKS_DB_PATH)
    if host.commands or host.listeners:
        return
    if not plugin.register(host, store, resolver):
        logger.error("Command registration failed; change feed still active")
    logger.info("Webhook host started")


@app.get("/")
async def root() -> dict:
    return {"status": "ok", "commands": sorted(host.commands)}


@app.post("/commands/{key}")
async def run_command(key: str, request: Request) -> dict:
    if key not in host.commands:
        raise HTTPException(status_code=404, detail=f"Unknown command {key}")
    body = await request.json()
    await store.select(body.get("selected") or [])
    tasks = await host.run_command(key, body)
    return {"ok": True, "dispatched": len(tasks)}


@app.post("/changes")
async def changes(request: Request) -> dict:
    payload = await request.json()
    tasks = await host.publish(payload)
    return {"ok": True, "dispatched": len(tasks)}


@app.get("/blocks/{uuid}")
async def get_block(uuid: str) -> dict:
    block = await store.get_block(uuid)
    if block is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return {
        "uuid": block.uuid,
        "content": block.content,
        "children": [{"uuid": c.uuid, "content": c.content} for c in block.children],
    }
