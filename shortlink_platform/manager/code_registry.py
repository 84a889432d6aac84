"""
CodeRegistry module for Shortlink Platform.

Responsibilities:
    - Turn a shorten request into a persisted, uniquely-coded ShortLink
    - Normalise target URLs (default scheme https://)
    - Honour custom codes verbatim, surfacing conflicts and reserved prefixes
    - Generate random codes and regenerate on collision
    - Mediate resolution, click accounting, listing and deletion

Design notes:
    - Stateless: the registry holds no locks and no caches. Uniqueness and
      increment atomicity come from the injected storage backend.
    - The existence pre-check before insert is advisory. It gives a friendly
      CodeConflictError up front; the insert-if-absent call is what actually
      guarantees uniqueness under concurrent writers.
    - Random-code collisions are retried internally and never surfaced.
      Retries are bounded: `max_attempts` candidates per length, widening the
      length by one up to `max_extra` times before giving up with StorageError.
    - Storage failures propagate as StorageError and are not retried here.

LLM Prompt Example:
    "Explain why a registry that pre-checks code availability must still
    tolerate a unique-constraint race at insert time, and how to keep
    generated-code collisions invisible to callers."
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..config import settings
from ..model.errors import CodeConflictError, InvalidInputError, LinkNotFoundError, StorageError
from ..model.link import ShortLink
from ..storage.base import BaseStorage
from .strategies import BaseStrategy, RandomStrategy

log = logging.getLogger(__name__)

_SCHEMES = ("http://", "https://")

# First path segments owned by the HTTP app's fixed routes. A custom code
# starting with one of these would be stored but could never be redirected.
RESERVED_PREFIXES = frozenset({"health", "api", "qr", "docs", "redoc", "openapi.json"})


def normalize_target(target: str) -> str:
    """
    Prefix `https://` when the target has no http/https scheme.

    Raises:
        InvalidInputError: If the target is empty or whitespace.
    """
    target = (target or "").strip()
    if not target:
        raise InvalidInputError("URL is required")
    if not target.startswith(_SCHEMES):
        target = "https://" + target
    return target


def check_custom_code(code: str) -> None:
    """
    Reject custom codes the redirect route could never serve.

    Raises:
        InvalidInputError: If the code starts with `/` or its first path
            segment is one of RESERVED_PREFIXES.
    """
    if code.startswith("/"):
        raise InvalidInputError(f"custom code '{code}' must not start with '/'")
    if code.split("/", 1)[0] in RESERVED_PREFIXES:
        raise InvalidInputError(f"custom code '{code}' is reserved")


class CodeRegistry:
    """
    Coordinates creation and lookup rules for short links.

    LLM Prompt Example:
        "Show how dependency inversion lets a URL shortener's business
        logic run against an in-memory fake in tests and Postgres in prod."
    """

    def __init__(
        self,
        storage: BaseStorage,
        strategy: Optional[BaseStrategy] = None,
        code_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
        max_extra: Optional[int] = None,
    ):
        """
        Initialize the registry with a storage backend.

        Args:
            storage (BaseStorage): Backend storage instance (shared, long-lived).
            strategy (Optional[BaseStrategy]): Code generator; RandomStrategy by default.
            code_length (Optional[int]): Length of generated codes (settings.CODE_LENGTH).
            max_attempts (Optional[int]): Candidates per length (settings.MAX_ATTEMPTS).
            max_extra (Optional[int]): Length widenings allowed (settings.MAX_EXTRA).
        """
        self.storage = storage
        self.strategy = strategy or RandomStrategy()
        self.code_length = code_length if code_length is not None else settings.CODE_LENGTH
        self.max_attempts = max_attempts if max_attempts is not None else settings.MAX_ATTEMPTS
        self.max_extra = max_extra if max_extra is not None else settings.MAX_EXTRA
        if self.code_length < 1:
            raise ValueError("code_length must be >= 1")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.max_extra < 0:
            raise ValueError("max_extra must be >= 0")

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------
    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _shorten_custom(self, target: str, code: str) -> ShortLink:
        check_custom_code(code)
        if self.storage.get_link(code) is not None:
            raise CodeConflictError(code)
        link = self.storage.save_link(code, target, self._now())
        if link is None:
            # Lost the race between pre-check and insert
            raise CodeConflictError(code)
        return link

    def _shorten_generated(self, target: str) -> ShortLink:
        for length in range(self.code_length, self.code_length + self.max_extra + 1):
            for _ in range(self.max_attempts):
                code = self.strategy.generate(length)
                if self.storage.get_link(code) is not None:
                    log.debug("Generated code %r already in use, regenerating", code)
                    continue
                link = self.storage.save_link(code, target, self._now())
                if link is not None:
                    return link
                log.debug("Generated code %r taken at insert time, regenerating", code)
            log.warning(
                "Exhausted %d attempts at code length %d; widening", self.max_attempts, length
            )
        raise StorageError("could not allocate a unique short code")

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def shorten(self, target: str, custom_code: Optional[str] = None) -> ShortLink:
        """
        Create a short link for `target`, optionally under a custom code.

        Rules:
            - Empty target -> InvalidInputError.
            - Missing http/https scheme -> `https://` prepended.
            - Custom code given:
                * used verbatim (no charset restriction).
                * leading `/` or a reserved route prefix -> InvalidInputError.
                * already stored -> CodeConflictError, never retried.
            - No custom code:
                * random Base62 code of `code_length`, regenerated on collision.

        Args:
            target (str): Long URL to shorten.
            custom_code (Optional[str]): Caller-chosen code; empty means generate.

        Returns:
            ShortLink: The stored record including its assigned id.

        Raises:
            InvalidInputError, CodeConflictError, StorageError
        """
        target = normalize_target(target)
        if custom_code:
            link = self._shorten_custom(target, custom_code)
        else:
            link = self._shorten_generated(target)
        log.info("Shortened %s -> %s (id=%s)", link.target, link.code, link.id)
        return link

    def resolve(self, code: str) -> Optional[ShortLink]:
        """
        Look up a code exactly (case-sensitive).

        Returns:
            Optional[ShortLink]: The record, or None when the code is unknown.
            Absence is a normal result; only storage failures raise.
        """
        return self.storage.get_link(code)

    def record_click(self, code: str) -> None:
        """
        Count one click on `code`.

        Raises:
            LinkNotFoundError: If the code does not exist. Fire-and-forget
                callers typically log and drop this.
        """
        if not self.storage.increment_click(code):
            raise LinkNotFoundError(code)

    def list_links(self) -> List[ShortLink]:
        """All links, newest first. Empty list when nothing is stored."""
        return self.storage.list_links()

    def delete(self, code: str) -> None:
        """Remove `code` permanently. Deleting an unknown code is not an error."""
        if self.storage.delete_link(code):
            log.info("Deleted short link %s", code)
        else:
            log.debug("Delete of unknown code %s ignored", code)
