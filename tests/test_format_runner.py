import pytest

import format_runner


class DummyResolver:
    async def resolve(self, url):
        return {"http://a.co": "A", "http://x.co/v": "Vid"}.get(url, "")


@pytest.mark.asyncio
async def test_run_prints_children_below_text(monkeypatch):
    monkeypatch.setattr(format_runner, "default_resolver", lambda: DummyResolver())
    out = await format_runner.run("http://a.co {{video http://x.co/v}}", "org")
    assert out == "[[http://a.co][A]] {{video http://x.co/v}}\n  - [[http://x.co/v][Vid]]"


def test_parse_args_defaults():
    args = format_runner.parse_args(["notes.md"])
    assert args.path == "notes.md"
    assert args.format == "markdown"
