import pytest

from linktitles.block_store import SqliteBlockStore


@pytest.fixture
def store(tmp_path):
    return SqliteBlockStore(str(tmp_path / "blocks.sqlite"))


@pytest.mark.asyncio
async def test_get_block_with_ordered_children(store):
    parent = await store.create_block("parent", page_name=None)
    await store.create_block("one", parent_uuid=parent.uuid)
    await store.create_block("two", parent_uuid=parent.uuid)

    block = await store.get_block(parent.uuid)
    assert block.content == "parent"
    assert [c.content for c in block.children] == ["one", "two"]
    assert block.first_child().content == "one"


@pytest.mark.asyncio
async def test_missing_block_is_none(store):
    assert await store.get_block("missing") is None


@pytest.mark.asyncio
async def test_update_block(store):
    block = await store.create_block("old")
    await store.update_block(block.uuid, "new")
    assert (await store.get_block(block.uuid)).content == "new"


@pytest.mark.asyncio
async def test_insert_block_appends_or_prepends_children(store):
    parent = await store.create_block("parent")
    await store.create_block("existing", parent_uuid=parent.uuid)

    await store.insert_block(parent.uuid, "last", before=False, sibling=False)
    await store.insert_block(parent.uuid, "first", before=True, sibling=False)

    block = await store.get_block(parent.uuid)
    assert [c.content for c in block.children] == ["first", "existing", "last"]


@pytest.mark.asyncio
async def test_insert_block_as_sibling(store):
    page = await store.create_block("page", page_name="page")
    a = await store.create_block("a", parent_uuid=page.uuid)
    await store.create_block("c", parent_uuid=page.uuid)

    await store.insert_block(a.uuid, "b", sibling=True)

    block = await store.get_block(page.uuid)
    assert [c.content for c in block.children] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_insert_block_under_missing_parent(store):
    assert await store.insert_block("missing", "x") is None


@pytest.mark.asyncio
async def test_configs_and_selection(store):
    assert await store.get_user_configs() == {}
    await store.set_config("preferred_format", "org")
    assert await store.get_user_configs() == {"preferred_format": "org"}
    await store.set_config("preferred_format", None)
    assert await store.get_user_configs() == {}

    a = await store.create_block("a")
    b = await store.create_block("b")
    await store.select([b.uuid, "missing", a.uuid])
    assert [blk.uuid for blk in await store.get_selected_blocks()] == [b.uuid, a.uuid]
