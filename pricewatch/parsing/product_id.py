# pricewatch/parsing/product_id.py

"""Deterministic ids for tracked items, stable across URL variations."""

import hashlib
import re
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

# Retailer tracking params that vary per session
_TRACKING_PARAMS: frozenset[str] = frozenset({
    "ref", "ref_", "dib", "dib_tag", "qid", "sr", "spc",
    "sp_csd", "xpid", "aref", "sp_cr", "psc", "keywords",
    "pd_rd_i", "pd_rd_r", "pd_rd_w", "pd_rd_wg", "pf_rd_i",
    "pf_rd_m", "pf_rd_p", "pf_rd_r", "pf_rd_s", "pf_rd_t",
    "th", "hash", "_trkparms", "_trksid", "mkcid", "mkevt",
    "utm_source", "utm_medium", "utm_campaign", "utm_term",
    "utm_content", "gclid", "fbclid",
})

# (domain fragment, pattern whose first group is the retailer's id)
_IDENTIFIER_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("amazon", re.compile(r"/(?:dp|gp/product)/([A-Z0-9]{10})", re.I)),
    ("ebay", re.compile(r"/itm/(?:[^/]+/)?(\d+)")),
    ("walmart", re.compile(r"/ip/(?:[^/]+/)?(\d+)")),
    ("target", re.compile(r"/-/A-(\d+)")),
    ("bestbuy", re.compile(r"/(\d+)\.p\b")),
]


def normalize_url(raw_url: str) -> str:
    """Strip tracking/session query params to get a stable product URL."""
    parsed = urlparse(raw_url)

    # Amazon path-based tracking (e.g. /ref=sr_1_243)
    path = re.sub(r"/ref=[^/]*", "", parsed.path)

    params = parse_qs(parsed.query, keep_blank_values=True)
    cleaned = {
        k: v for k, v in params.items()
        if k.lower() not in _TRACKING_PARAMS
    }
    new_query = urlencode(cleaned, doseq=True) if cleaned else ""
    return urlunparse((
        parsed.scheme,
        parsed.netloc.lower(),
        path,
        parsed.params,
        new_query,
        "",
    ))


def extract_domain(url: str) -> str:
    """Host of *url* without a leading ``www.``."""
    host = urlparse(url).netloc.lower().split(":")[0]
    return host[4:] if host.startswith("www.") else host


def product_identifier(url: str, domain: str) -> str:
    """Retailer-native id (ASIN, eBay item number, ...) or the path."""
    if not url:
        return "unknown"
    for fragment, pattern in _IDENTIFIER_PATTERNS:
        if fragment in domain:
            match = pattern.search(url)
            if match:
                return match.group(1).upper()
    path = urlparse(normalize_url(url)).path.strip("/")
    return path.replace("/", "_")[:100] or "root"


def normalize_title(title: str) -> str:
    """Lower-case, collapse whitespace, keep ``[a-z0-9 -]``, max 50."""
    if not title:
        return "untitled"
    text = re.sub(r"\s+", " ", title.lower().strip())
    return re.sub(r"[^a-z0-9\s-]", "", text)[:50]


def generate_product_id(url: str, title: str, domain: str = "") -> str:
    """Hash ``domain|identifier|title`` into a 12-char hex id."""
    domain = domain or extract_domain(url)
    combined = "|".join((
        domain,
        product_identifier(url, domain),
        normalize_title(title),
    ))
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()[:12]
