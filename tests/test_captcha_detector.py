# tests/test_captcha_detector.py

"""Tests for bot-challenge page recognition."""

import unittest
from unittest.mock import MagicMock, patch

from pricewatch.errors import CaptchaDetectedError
from pricewatch.network.captcha_detector import (
    detect_captcha,
    find_challenge,
    has_product_evidence,
    raise_for_captcha,
)

AMAZON_URL = "https://www.amazon.com/dp/B08ZW875PR"


class TestFindChallenge(unittest.TestCase):
    """Challenge phrases, Cloudflare markers and captcha widgets."""

    def test_amazon_robot_check(self) -> None:
        """Amazon's robot check page is recognised."""
        html = (
            "<html><body><h4>Enter the characters you see below</h4>"
            "<p>Sorry, we just need to make sure you're not a robot.</p>"
            "</body></html>"
        )
        reason = find_challenge(html, AMAZON_URL)
        self.assertIsNotNone(reason)
        assert reason is not None
        self.assertTrue(reason.startswith("amazon: "))

    def test_retailer_phrase_needs_matching_url(self) -> None:
        """Walmart phrases do not fire on other sites."""
        html = "<html><body>" + "<p>Robot or human?</p>" * 40 + "</body></html>"
        self.assertIsNotNone(find_challenge(html, "https://www.walmart.com/ip/1"))
        self.assertIsNone(find_challenge(html, "https://shop.example/p/1"))

    def test_target_requires_brand_in_body(self) -> None:
        """Target's generic phrase counts only on a Target-branded body."""
        url = "https://www.target.com/p/kettle/-/A-12345678"
        filler = "<p>Please wait while we verify.</p>" * 20
        plain = f"<html><body>Security challenge {filler}</body></html>"
        branded = f"<html><body>Target security challenge {filler}</body></html>"
        self.assertIsNone(find_challenge(plain, url))
        self.assertEqual(
            find_challenge(branded, url), "target: security challenge",
        )

    def test_cloudflare_markers(self) -> None:
        """Cloudflare interstitials are recognised on any site."""
        html = (
            "<html><head><script src='/cdn-cgi/challenge-platform/h/b/orchestrate'>"
            "</script></head><body>Just a moment...</body></html>"
        )
        self.assertEqual(
            find_challenge(html, "https://shop.example/p/1"),
            "cloudflare: cdn-cgi/challenge-platform",
        )

    def test_cloudflare_browser_check(self) -> None:
        """The older 'checking your browser' page is recognised."""
        html = (
            "<html><body>Checking your browser before accessing. "
            "DDoS protection by Cloudflare" + " " * 600 + "</body></html>"
        )
        self.assertEqual(
            find_challenge(html, "https://shop.example/p/1"),
            "cloudflare: checking your browser",
        )

    def test_short_blocked_body(self) -> None:
        """A tiny 'access denied' body is a block page."""
        self.assertEqual(
            find_challenge("<h1>Access Denied</h1>", "https://shop.example/p/1"),
            "short body: access denied",
        )

    def test_long_body_mentioning_blocked(self) -> None:
        """The word 'blocked' in a normal-sized page is not a block."""
        html = "<p>Our blog about blocked drains.</p>" + "<p>text</p>" * 100
        self.assertIsNone(find_challenge(html, "https://shop.example/p/1"))

    def test_active_recaptcha_widget(self) -> None:
        """An embedded reCAPTCHA script plus widget is a challenge."""
        html = (
            '<html><head><script src="https://www.google.com/recaptcha/api.js">'
            '</script></head><body><div class="g-recaptcha" '
            'data-sitekey="x"></div>' + "<p>Verify</p>" * 60 + "</body></html>"
        )
        self.assertEqual(
            find_challenge(html, "https://shop.example/p/1"),
            "active captcha widget",
        )

    def test_recaptcha_mention_alone_is_not_a_challenge(self) -> None:
        """Login forms mentioning captcha without the widget stay quiet."""
        html = "<html><body><p>Protected by reCAPTCHA</p>" + "x" * 600 + "</body></html>"
        self.assertIsNone(find_challenge(html, "https://shop.example/p/1"))

    def test_product_evidence_suppresses_detection(self) -> None:
        """A real product page is never a challenge."""
        html = (
            "<html><body><script src='https://challenges.cloudflare.com/t.js'>"
            "</script><button>Add to Cart</button></body></html>"
        )
        self.assertTrue(has_product_evidence(html))
        self.assertIsNone(find_challenge(html, AMAZON_URL))

    @patch("pricewatch.network.captcha_detector.has_product_evidence")
    def test_evidence_check_gates_every_rule(
        self, mock_evidence: MagicMock,
    ) -> None:
        """Whatever counts as product evidence silences all challenge rules."""
        html = "<html><body>Access Denied</body></html>"
        mock_evidence.return_value = True
        self.assertIsNone(find_challenge(html, AMAZON_URL))
        mock_evidence.assert_called_once_with(html)

        mock_evidence.return_value = False
        self.assertEqual(
            find_challenge(html, AMAZON_URL), "short body: access denied",
        )

    def test_empty_body(self) -> None:
        """Empty bodies are not classified."""
        self.assertIsNone(find_challenge("", AMAZON_URL))
        self.assertFalse(detect_captcha("", AMAZON_URL))


class TestRaiseForCaptcha(unittest.TestCase):
    """The raising wrapper used by the fetcher."""

    def test_raises_with_reason(self) -> None:
        """The reason and URL travel on the exception."""
        with self.assertLogs("pricewatch.captcha", level="WARNING"):
            with self.assertRaises(CaptchaDetectedError) as ctx:
                raise_for_captcha("<p>Blocked</p>", "https://shop.example/p/1")
        self.assertEqual(ctx.exception.reason, "short body: blocked")
        self.assertEqual(ctx.exception.url, "https://shop.example/p/1")

    def test_normal_page_passes(self) -> None:
        """Product pages pass silently."""
        raise_for_captcha(
            '<div class="product-price">$10</div>', "https://shop.example/p/1",
        )


if __name__ == "__main__":
    unittest.main()
