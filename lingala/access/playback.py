"""Playable URL signing.

CDN token authentication: ``SHA256_HEX(signing_key + path + expires)``
appended to the manifest URL as ``token`` and ``expires`` query
parameters. Without a signing key the stored URL is returned as is.
"""

import hashlib
import time
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog


logger = structlog.get_logger(__name__)


class PlaybackSigner:
    """Builds time-limited playback URLs."""

    def __init__(self, signing_key: str | None, expiry_seconds: int = 600):
        self._signing_key = signing_key
        self.expiry_seconds = expiry_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self._signing_key)

    def _generate_token(self, path: str, expires: int) -> str:
        data = f"{self._signing_key}{path}{expires}"
        return hashlib.sha256(data.encode()).hexdigest()

    def sign(self, url: str, now: int | None = None) -> tuple[str, int]:
        """Sign a manifest URL.

        Args:
            url: Playable manifest URL produced by the transcoding service.
            now: UNIX timestamp to count the expiry from (defaults to now).

        Returns:
            (url, expires) where expires is a UNIX timestamp.
        """
        expires = (now if now is not None else int(time.time())) + self.expiry_seconds

        if not self._signing_key:
            return url, expires

        parts = urlsplit(url)
        query = parse_qsl(parts.query, keep_blank_values=True)
        query.extend(
            [
                ("token", self._generate_token(parts.path, expires)),
                ("expires", str(expires)),
            ]
        )
        signed = urlunsplit(parts._replace(query=urlencode(query)))

        logger.debug("playback_url_signed", path=parts.path, expires=expires)
        return signed, expires
