# pricewatch/network/captcha_detector.py

"""Conservative recognition of bot-challenge pages.

A false positive stops an item from being checked, so the detector
stays silent whenever the body carries real product evidence and only
fires on phrases that are specific to a challenge page.
"""

import logging

from pricewatch.config.settings import Settings
from pricewatch.errors import CaptchaDetectedError

logger = logging.getLogger("pricewatch.captcha")

_PRODUCT_EVIDENCE: tuple[str, ...] = (
    "add to cart",
    "add to bag",
    "add to basket",
    "buy now",
    "addtocart",
    "product-price",
    '"price"',
)

# Cloudflare challenge page markers
_CF_CHALLENGE_MARKERS: tuple[str, ...] = (
    "cf-challenge-running",
    "challenges.cloudflare.com",
    "cdn-cgi/challenge-platform",
    "cf-turnstile",
    "cf_chl_opt",
)

_BLOCK_WORDS: tuple[str, ...] = ("blocked", "access denied")

_CAPTCHA_SCRIPTS: tuple[str, ...] = (
    "google.com/recaptcha/api.js",
    "hcaptcha.com/1/api.js",
)
_CAPTCHA_WIDGETS: tuple[str, ...] = ("g-recaptcha", "h-captcha")


def has_product_evidence(html: str) -> bool:
    lower = html.lower()
    return any(marker in lower for marker in _PRODUCT_EVIDENCE)


def find_challenge(html: str, url: str) -> str | None:
    """Return a short reason if *html* is a challenge page, else ``None``."""
    if not html:
        return None
    if has_product_evidence(html):
        return None
    lower = html.lower()

    site = url.lower()
    for retailer, phrases in Settings.CHALLENGE_PHRASES.items():
        if retailer not in site:
            continue
        for phrase in phrases:
            if phrase in lower and (
                retailer != "target" or "target" in lower
            ):
                return f"{retailer}: {phrase}"

    for marker in _CF_CHALLENGE_MARKERS:
        if marker in lower:
            return f"cloudflare: {marker}"
    if "cloudflare" in lower and "checking your browser" in lower:
        return "cloudflare: checking your browser"

    if len(html) < Settings.SHORT_BODY_LENGTH:
        for word in _BLOCK_WORDS:
            if word in lower:
                return f"short body: {word}"

    if any(s in lower for s in _CAPTCHA_SCRIPTS) and any(
        w in lower for w in _CAPTCHA_WIDGETS
    ):
        return "active captcha widget"
    return None


def detect_captcha(html: str, url: str) -> bool:
    return find_challenge(html, url) is not None


def raise_for_captcha(html: str, url: str) -> None:
    """Raise :class:`CaptchaDetectedError` when *html* is a challenge."""
    reason = find_challenge(html, url)
    if reason is not None:
        logger.warning("Bot challenge at %s (%s)", url, reason)
        raise CaptchaDetectedError(url, reason)
