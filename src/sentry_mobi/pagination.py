from __future__ import annotations
import re
from typing import Mapping, Optional

import httpx

# rel="next" allein reicht nicht: Sentry liefert den Link auch ohne weitere Ergebnisse
LINK_REL_NEXT_RE = re.compile(r'<([^<>]+)>; rel="next"; results="true"')


def next_cursor(headers: httpx.Headers | Mapping[str, str] | None) -> Optional[str]:
    """Return the URL of the next page, or None when there is none."""
    if headers is None:
        return None
    link = headers.get("Link")
    if link is None and not isinstance(headers, httpx.Headers):
        link = headers.get("link")
    if not isinstance(link, str):
        return None
    m = LINK_REL_NEXT_RE.search(link)
    return m.group(1) if m else None
