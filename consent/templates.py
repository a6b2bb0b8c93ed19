"""HTML rendering for the consent application's views.

Each render_* function takes the view-model produced by the flow controller
and returns a full HTML page. All interpolated values are escaped.
"""

from html import escape

from consent.models import ConsentView, IndexView, LoginView

BASE_STYLE = """
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
               background: #F4F6F8;
               min-height: 100vh; display: flex; align-items: center; justify-content: center; margin: 0; }}
        .container {{ background: white; padding: 40px; border-radius: 12px; box-shadow: 0 4px 24px rgba(0,0,0,0.08);
                     width: 100%; max-width: {width}px; border: 1px solid #E1E5EA; }}
        h1 {{ margin: 0 0 8px; color: #1B2733; font-size: 24px; font-weight: 600; }}
        p {{ color: #5B6B7A; margin: 0 0 24px; }}
        a {{ color: #1F6FB2; }}
        button {{ padding: 14px; border-radius: 8px; font-size: 15px; font-weight: 600; cursor: pointer; }}
        .primary {{ background: #1F6FB2; color: white; border: none; }}
        .primary:hover {{ background: #185A91; }}
        .error {{ background: #FEF2F2; color: #B91C1C; padding: 12px; border-radius: 8px; margin-bottom: 20px; border: 1px solid #FECACA; }}
"""


def _page(title: str, body: str, width: int = 400, extra_style: str = "") -> str:
    style = BASE_STYLE.format(width=width) + extra_style
    return f"""
<!DOCTYPE html>
<html>
<head>
    <title>{escape(title)} - Kong OAuth 2.0 Consent</title>
    <style>{style}    </style>
</head>
<body>
    <div class="container">
{body}
    </div>
</body>
</html>
"""


INDEX_BODY = """
        <h1>Kong OAuth 2.0 Consent</h1>
        <p>A client application starts the authorization code flow by sending the user here:</p>
        <p><a href="{consent_uri}">{consent_uri}</a></p>
        <p><a href="/logout">Log out</a></p>
"""

LOGIN_STYLE = """
        .form-group { margin-bottom: 20px; }
        label { display: block; margin-bottom: 8px; color: #1B2733; font-weight: 500; font-size: 14px; }
        input[type="text"], input[type="password"] {
            width: 100%; padding: 12px 14px; border: 1px solid #CBD2D9; border-radius: 8px;
            font-size: 15px; box-sizing: border-box; }
        button { width: 100%; }
"""

LOGIN_BODY = """
        <h1>Sign In</h1>
        <p>Sign in to review the application's access request</p>
        {error}
        <form method="POST" action="/login">
            <div class="form-group">
                <label for="username">Username</label>
                <input type="text" id="username" name="username" required>
            </div>
            <div class="form-group">
                <label for="password">Password</label>
                <input type="password" id="password" name="password" required>
            </div>
            <button type="submit" class="primary">Sign In</button>
        </form>
"""

CONSENT_STYLE = """
        .app-name { font-weight: 600; color: #1B2733; padding: 20px; background: #F4F6F8; border-radius: 8px; margin: 20px 0; }
        .scope { padding: 12px; background: #F4F6F8; border-radius: 8px; margin-bottom: 10px; }
        .scope-icon { color: #1F6FB2; font-weight: bold; margin-right: 8px; }
        .buttons { display: flex; gap: 12px; margin-top: 20px; }
        .buttons button, .buttons a { flex: 1; text-align: center; }
"""

CONSENT_BODY = """
        <h1>Authorize Access</h1>
        <div class="app-name">{application_name}</div>
        <p>is requesting access to:</p>
        <div class="scopes">
{scope_items}
        </div>
        <form method="POST" action="/consent">
            <input type="hidden" name="client_id" value="{client_id}">
            <input type="hidden" name="response_type" value="{response_type}">
            <input type="hidden" name="scopes" value="{scopes}">
            <div class="buttons">
                <a href="/logout">Cancel</a>
                <button type="submit" class="primary">Authorize</button>
            </div>
        </form>
"""

SCOPE_ITEM = '            <div class="scope"><span class="scope-icon">&#10003;</span>{scope}</div>'


def render_index(view: IndexView) -> str:
    return _page("Home", INDEX_BODY.format(consent_uri=escape(view.consent_uri)))


def render_login(view: LoginView) -> str:
    error = f'<div class="error">{escape(view.error)}</div>' if view.error else ""
    return _page("Sign In", LOGIN_BODY.format(error=error), extra_style=LOGIN_STYLE)


def render_consent(view: ConsentView) -> str:
    scope_items = "\n".join(SCOPE_ITEM.format(scope=escape(s)) for s in view.scopes)
    body = CONSENT_BODY.format(
        application_name=escape(view.application_name),
        scope_items=scope_items,
        client_id=escape(view.client_id),
        response_type=escape(view.response_type),
        scopes=escape(view.scope_param),
    )
    return _page("Authorize", body, width=450, extra_style=CONSENT_STYLE)


def render(view) -> str:
    """Render any view-model produced by the flow controller."""
    if isinstance(view, ConsentView):
        return render_consent(view)
    if isinstance(view, LoginView):
        return render_login(view)
    if isinstance(view, IndexView):
        return render_index(view)
    raise TypeError(f"No template for view {type(view).__name__}")
