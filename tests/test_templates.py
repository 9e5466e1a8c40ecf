"""Tests for the bridging page and the landing page markup."""

import json
import re

from oauth.templates import (
    INDEX_PAGE,
    js_string,
    render_bridge_page,
    success_message,
    token_payload,
)


def _script_lines(page):
    script = re.search(r"<script>(.*)</script>", page, re.S).group(1)
    return [line.strip() for line in script.splitlines() if line.strip()]


def test_token_payload_exact_shape():
    assert token_payload("T") == '{"token": "T", "provider": "github"}'


def test_token_payload_round_trips():
    assert json.loads(token_payload("T")) == {"token": "T", "provider": "github"}


def test_success_message_format():
    assert success_message("abc") == 'authorization:github:success:{"token": "abc", "provider": "github"}'


def test_js_string_escapes_quotes_and_backslashes():
    assert js_string("it's") == "'it\\'s'"
    assert js_string("a\\b") == "'a\\\\b'"
    assert js_string('say "hi"') == "'say \"hi\"'"


def test_js_string_cannot_close_script_element():
    literal = js_string("</script><script>alert(1)</script>")
    assert "<" not in literal
    assert ">" not in literal
    assert "</script>" not in literal


def test_js_string_escapes_line_terminators():
    literal = js_string("a\nb\rc\u2028d\u2029e")
    assert "\n" not in literal
    assert "\r" not in literal
    assert "\u2028" not in literal
    assert "\u2029" not in literal


def test_bridge_page_contains_success_message():
    page = render_bridge_page("abc", r"^https://app\.example\.com$")
    assert 'authorization:github:success:{"token": "abc", "provider": "github"}' in page


def test_bridge_page_embeds_origin_pattern_as_regexp():
    page = render_bridge_page("abc", r"^https://app\.example\.com$")
    assert "new RegExp('^https://app\\\\.example\\\\.com$')" in page


def test_bridge_page_only_handshake_goes_to_wildcard_origin():
    """The token is posted only to event.origin, after the origin check."""
    # Checked on the rendered script text; no browser runs the message handler here
    lines = _script_lines(render_bridge_page("tok-123", "^https://app.example.com$"))

    wildcard = [line for line in lines if "'*'" in line]
    assert wildcard == ["window.opener.postMessage('authorizing:github', '*');"]

    token_lines = [i for i, line in enumerate(lines) if "tok-123" in line]
    assert len(token_lines) == 1
    delivery = lines[token_lines[0]]
    assert delivery.endswith(", event.origin);")

    check = next(i for i, line in enumerate(lines) if "originPattern.test(event.origin)" in line)
    assert lines[check].startswith("if (!")
    assert "return;" in lines[check:token_lines[0]]
    assert check < token_lines[0]


def test_bridge_page_hostile_token_is_escaped():
    page = render_bridge_page("x'</script><img src=x>", ".*")
    assert "</script><img" not in page
    assert page.count("</script>") == 1


def test_index_page_links_to_auth():
    assert '<a href="/auth" target="_self">Login</a>' in INDEX_PAGE
