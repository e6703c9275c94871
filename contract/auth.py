"""Auth scheme detection over the context window around a route declaration."""
import re
from typing import List, Tuple

# Checked in order; the first scheme with a marker in the window wins.
AUTH_MARKERS: List[Tuple[str, re.Pattern]] = [
    ("session", re.compile(r'@PreAuthorize|getServerSession|useSession|login_required')),
    ("jwt", re.compile(r'jwt|JWT|JwtAuth')),
    ("bearer", re.compile(r'Bearer|Authorization')),
    ("apikey", re.compile(r'apiKey|x-api-key|API_KEY')),
    ("oauth", re.compile(r'OAuth|oauth')),
    ("basic", re.compile(r'BasicAuth|basic auth')),
]


def detect_auth(window: str) -> str:
    """Return one of jwt, session, apikey, oauth, basic, bearer or none."""
    for scheme, marker in AUTH_MARKERS:
        if marker.search(window):
            return scheme
    return "none"
