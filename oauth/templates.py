"""HTML templates for the relay's landing page and bridging page.

The bridging page runs inside the login popup. It announces itself to the
opener with `authorizing:<provider>` and, once the opener answers from an
origin matching the configured pattern, hands over the token as
`authorization:<provider>:success:<json>`.
"""

import json

PROVIDER_NAME = "github"

# ============== Landing Page ==============

INDEX_PAGE = """<html>
<head>
    <title>OAuth Proxy</title>
</head>
<body>
    <a href="/auth" target="_self">Login</a>
</body>
</html>
"""

# ============== Bridging Page ==============

BRIDGE_PAGE = """<html>
<head>
    <title>OAuth Proxy</title>
</head>
<body>
<script>
(function() {{
    var originPattern = new RegExp({origin_pattern});
    function receiveMessage(event) {{
        if (!originPattern.test(event.origin)) {{
            console.log('Invalid origin: ' + event.origin);
            return;
        }}
        window.opener.postMessage({success_message}, event.origin);
    }}
    window.addEventListener('message', receiveMessage, false);
    window.opener.postMessage({handshake_message}, '*');
}})();
</script>
</body>
</html>
"""

_JS_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
    "<": "\\u003C",
    ">": "\\u003E",
    "&": "\\u0026",
}


def js_string(value: str) -> str:
    """Render `value` as a single-quoted JavaScript string literal.

    Safe inside an inline <script>: markup characters are escaped so the
    value can never close the script element.
    """
    return "'" + "".join(_JS_ESCAPES.get(ch, ch) for ch in value) + "'"


def token_payload(access_token: str, provider: str = PROVIDER_NAME) -> str:
    """JSON handed to the opener, e.g. {"token": "T", "provider": "github"}."""
    return json.dumps({"token": access_token, "provider": provider})


def handshake_message(provider: str = PROVIDER_NAME) -> str:
    return f"authorizing:{provider}"


def success_message(access_token: str, provider: str = PROVIDER_NAME) -> str:
    return f"authorization:{provider}:success:{token_payload(access_token, provider)}"


def render_bridge_page(access_token: str, origin_pattern: str, provider: str = PROVIDER_NAME) -> str:
    return BRIDGE_PAGE.format(
        origin_pattern=js_string(origin_pattern),
        success_message=js_string(success_message(access_token, provider)),
        handshake_message=js_string(handshake_message(provider)),
    )
