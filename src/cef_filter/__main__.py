"""Module entrypoint.

Allows:
    python -m cef_filter
"""

from __future__ import annotations

from cef_filter.server.cef_server import main

if __name__ == "__main__":
    main()
