"""Interfaces to the note application that owns the blocks."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterator, Optional, Protocol

INSERT_BLOCKS_OP = "insertBlocks"

CommandCallback = Callable[[dict], Awaitable[Any]]
ChangeCallback = Callable[[dict], Awaitable[Any]]


@dataclass
class Block:
    uuid: str
    content: str = ""
    children: list = field(default_factory=list)
    page_name: Optional[str] = None
    parent_uuid: Optional[str] = None

    def first_child(self) -> Optional["Block"]:
        return self.children[0] if self.children else None


class BlockStore(Protocol):
    async def get_user_configs(self) -> dict:
        ...

    async def get_block(self, uuid: str) -> Optional[Block]:
        ...

    async def update_block(self, uuid: str, content: str) -> None:
        ...

    async def insert_block(
        self,
        parent_uuid: str,
        content: str,
        *,
        before: bool = False,
        sibling: bool = False,
        focus: bool = True,
    ) -> Optional[Block]:
        ...

    async def get_selected_blocks(self) -> list:
        ...


class HostApp(Protocol):
    def register_command(self, key: str, label: str, callback: CommandCallback) -> None:
        ...

    def on_changed(self, callback: ChangeCallback) -> None:
        ...


@dataclass
class ChangeEvent:
    outliner_op: Optional[str]
    blocks: list

    @classmethod
    def from_payload(cls, payload: dict) -> "ChangeEvent":
        tx_meta = payload.get("tx_meta") or payload.get("txMeta") or {}
        op = tx_meta.get("outliner_op") or tx_meta.get("outlinerOp")
        return cls(outliner_op=op, blocks=list(payload.get("blocks") or []))

    def blocks_to_rewrite(self) -> Iterator[str]:
        """Yield the left neighbour of each freshly inserted empty block.

        A new empty block means the user just pressed enter after typing in
        the neighbour, so the neighbour is the one to rewrite.
        """
        if self.outliner_op != INSERT_BLOCKS_OP:
            return
        for block in self.blocks:
            if block.get("name"):
                continue
            if block.get("content"):
                continue
            left = block.get("left")
            if isinstance(left, dict):
                left = left.get("id") or left.get("uuid")
            if left:
                yield str(left)
