"""Local development entry point.

Usage:
    python run.py
    PORT=8000 python run.py

Loads .env, builds the app for FLASK_ENV (default: development) and serves
it on 0.0.0.0:$PORT (default 5001).

To try a custom domain locally, point a hostname at 127.0.0.1 in /etc/hosts,
register it as an active Domain, and browse to http://<hostname>:5001/.
Anything not listed in APP_DOMAINS is served as a tenant site.
"""

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from sitepress import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=int(os.environ.get("PORT", 5001)))
