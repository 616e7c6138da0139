import pytest

from sfcli.link_push import (
    LinkResource,
    filter_proxied_headers,
    is_remote_resource,
    parse_link_header,
    preload_targets,
)


def test_parse_single_link():
    assert parse_link_header("</resource>; as=script") == [
        LinkResource(uri="/resource", params={"as": "script"})
    ]


def test_parse_multiple_links():
    resources = parse_link_header("</resource>; as=script,</resource2>; as=style")
    assert [r.uri for r in resources] == ["/resource", "/resource2"]
    assert [r.params["as"] for r in resources] == ["script", "style"]


def test_parse_semicolon_separated_links_keeps_first_uri():
    resources = parse_link_header("</resource>;</resource2>")
    assert len(resources) == 1
    assert resources[0].uri == "/resource"


def test_parse_flag_parameter():
    (resource,) = parse_link_header("</style.css>; rel=preload; nopush")
    assert resource.params["nopush"] == "nopush"
    assert resource.params["rel"] == "preload"


@pytest.mark.parametrize("header", ["", "no brackets here", "<only-left"])
def test_parse_without_links(header):
    assert parse_link_header(header) == []


@pytest.mark.parametrize(
    "uri,remote",
    [
        ("//cdn.example.com/a.js", True),
        ("http://example.com/a.js", True),
        ("https://example.com/a.js", True),
        ("/a.js", False),
        ("a.js", False),
    ],
)
def test_is_remote_resource(uri, remote):
    assert is_remote_resource(uri) is remote


def test_filter_proxied_headers():
    filtered = filter_proxied_headers(
        {"host": "localhost", "User-Agent": ["curl"], "Cookie": ["a=b"]}
    )
    assert filtered == {"Host": ["localhost"], "User-Agent": ["curl"]}


def test_preload_targets_skips_nopush_and_remote():
    links = ["</a.js>; as=script, </b.css>; nopush", "<https://example.com/c.js>"]
    assert preload_targets(links, {"Host": ["localhost"]}) == ["/a.js"]


def test_preload_targets_ignores_pushed_requests():
    assert preload_targets("</a.js>", {"x-push": ["1"]}) == []


def test_preload_targets_without_links():
    assert preload_targets(None, {}) == []
    assert preload_targets("</a.js>", {}) == ["/a.js"]