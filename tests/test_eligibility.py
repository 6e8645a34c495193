import pytest

from linktitles.eligibility import (
    Decision,
    classify,
    command_at,
    is_image,
    scan_exclusions,
)
from linktitles.formats import FORMAT_SETTINGS
from linktitles.url_matcher import find_urls

MARKDOWN = FORMAT_SETTINGS["markdown"]
ORG = FORMAT_SETTINGS["org"]


def verdicts(text, fmt=MARKDOWN):
    return [classify(text, m, fmt) for m in find_urls(text)]


def test_plain_url_is_rewritten():
    (v,) = verdicts("read http://example.com/post today")
    assert v.decision is Decision.REWRITE_INLINE
    assert v.url == "http://example.com/post"


def test_markdown_link_is_skipped():
    (v,) = verdicts("[Example](http://example.com)")
    assert v.decision is Decision.SKIP


def test_org_link_is_skipped():
    (v,) = verdicts("[[http://example.com][Example]]", ORG)
    assert v.decision is Decision.SKIP


@pytest.mark.parametrize(
    "url",
    [
        "http://x.co/pic.PNG",
        "https://cdn.example.com/a/b.jpeg",
        "http://example.com/photo.webp?w=200",
        "www.example.com/scan.tiff",
    ],
)
def test_images_are_skipped(url):
    assert is_image(url)
    (v,) = verdicts(f"look {url}")
    assert v.decision is Decision.SKIP


def test_ai_domain_is_not_an_image():
    assert not is_image("https://example.ai")


@pytest.mark.parametrize(
    "text",
    [
        "run `curl http://example.com/api` first",
        "```\nGET http://example.com/api\n```",
        "```js fetch('http://example.com/api')```",
    ],
)
def test_code_wrapped_urls_are_skipped(text):
    (v,) = verdicts(text)
    assert v.decision is Decision.SKIP


def test_url_between_code_spans_is_rewritten():
    (v,) = verdicts("`a` http://example.com `b`")
    assert v.decision is Decision.REWRITE_INLINE


def test_command_wrapped_urls_are_skipped():
    (v,) = verdicts("{{embed http://example.com/page}}")
    assert v.decision is Decision.SKIP
    (v,) = verdicts("{{ tweet https://twitter.com/a/status/1 }}")
    assert v.decision is Decision.SKIP


def test_video_command_becomes_child_with_trimmed_url():
    (v,) = verdicts("{{video http://x.co/v}}")
    assert v.decision is Decision.REWRITE_AS_CHILD
    assert v.url == "http://x.co/v"


def test_video_command_with_spaces():
    (v,) = verdicts("{{ video https://youtube.com/watch?v=abc }}")
    assert v.decision is Decision.REWRITE_AS_CHILD
    assert v.url == "https://youtube.com/watch?v=abc"


def test_scan_exclusions_tags_spans_once():
    text = "`code` {{video http://x.co/v}} plain"
    found = scan_exclusions(text)
    assert found.code == [(0, 6)]
    assert found.command_names == ["video"]
    assert command_at(found, text.index("http")) == "video"
    assert command_at(found, text.index("plain")) is None


@pytest.mark.parametrize(
    "text, fmt",
    [
        ("see [Welcome to www.example.com](http://a.co)", MARKDOWN),
        ("see [[http://a.co][Welcome to www.example.com]]", ORG),
    ],
)
def test_urls_inside_existing_link_titles_are_skipped(text, fmt):
    assert all(v.decision is Decision.SKIP for v in verdicts(text, fmt))
    assert len(scan_exclusions(text).links) == 1


def test_bracketed_text_without_link_does_not_exclude():
    (v,) = verdicts("[note] http://example.com")
    assert v.decision is Decision.REWRITE_INLINE
