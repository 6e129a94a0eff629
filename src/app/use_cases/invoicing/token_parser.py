"""FNE verification token parsing"""

import re
from typing import NamedTuple, Optional

DEFAULT_VERIFICATION_URL = "http://54.247.95.108/fr/verification"

_VERIFICATION_SEGMENT = re.compile(r"/verification/([^/]+)")


class FneToken(NamedTuple):
    url: str
    value: str


def parse_fne_token(
    token: Optional[str], verification_base_url: str = DEFAULT_VERIFICATION_URL
) -> FneToken:
    """
    Derive the verification URL and raw verification code of a token

    A token that is already a URL is kept as the URL; anything else is
    appended to the verification base URL. The code is the segment after
    /verification/, else the last path segment, else the token itself.
    """
    token = (token or "").strip()
    if not token:
        return FneToken(url="", value="")

    url = token
    if not token.startswith("http"):
        url = f"{verification_base_url.rstrip('/')}/{token}"

    match = _VERIFICATION_SEGMENT.search(url)
    if match:
        return FneToken(url=url, value=match.group(1))

    value = token.rstrip("/").split("/")[-1] or token
    return FneToken(url=url, value=value)
