"""
asgi.py -- Application assembly for HelpBoard.

This is the ONLY file that imports from both api/ and web/. It joins the two
independent layers into a single ASGI app without coupling them to each other.
api/main.py knows nothing about the route gate; web/gate.py knows nothing
about api/.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app
from web.gate import install_route_gate

# Installed last so it is the outermost middleware: a blocked navigation is
# redirected before any other middleware or route runs.
install_route_gate(app)
