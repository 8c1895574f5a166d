from __future__ import annotations

import aiohttp

async def maybe_text(resp: aiohttp.ClientResponse) -> str:
    """Response body for error logs; never raises."""
    try:
        return await resp.text()
    except Exception:
        return "<no body>"
