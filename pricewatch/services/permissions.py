# pricewatch/services/permissions.py

"""Which domains the engine may fetch from."""

import logging
from collections.abc import Iterable

from pricewatch.config.settings import Settings

logger = logging.getLogger("pricewatch.permissions")


class PermissionChecker:
    """Built-in retailer allow-list plus domains the user granted.

    A domain is allowed when it equals an allowed entry or is a
    subdomain of one (``smile.amazon.com`` under ``amazon.com``).
    """

    def __init__(
        self,
        allowed_domains: Iterable[str] | None = None,
        granted: Iterable[str] | None = None,
    ) -> None:
        self.allowed_domains = {
            _clean(d) for d in (
                Settings.SUPPORTED_DOMAINS
                if allowed_domains is None else allowed_domains
            )
        }
        self.granted = {_clean(d) for d in granted or ()}

    def is_allowed(self, domain: str) -> bool:
        domain = _clean(domain)
        if not domain:
            return False
        return any(
            domain == entry or domain.endswith("." + entry)
            for entry in self.allowed_domains | self.granted
        )

    def grant(self, domain: str) -> None:
        self.granted.add(_clean(domain))
        logger.info("Granted fetch permission for %s", domain)

    def revoke(self, domain: str) -> None:
        self.granted.discard(_clean(domain))
        logger.info("Revoked fetch permission for %s", domain)


def _clean(domain: str) -> str:
    return domain.strip().lower().removeprefix("www.")
