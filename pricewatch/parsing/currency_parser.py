# pricewatch/parsing/currency_parser.py

"""Locale and currency aware conversion of price text into a PriceRecord.

The parser is deliberately forgiving about input and strict about output:
anything it cannot read with reasonable certainty comes back as ``None``
rather than a guess. Resolution runs through a fixed cascade, each tier
carrying its own base confidence:

====================  ==========
Tier                  Confidence
====================  ==========
ISO-4217 code         0.95
Unambiguous symbol    0.90
Ambiguous symbol      0.85 with hints, 0.75 without
Contextual ``R``      0.80
Domain TLD table      0.70
Locale table          0.65
Expected currency     0.60
Default (USD)         0.50
====================  ==========
"""

import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pricewatch.errors import ParseError
from pricewatch.models.detection import ExtractionContext
from pricewatch.models.price_record import PriceRecord
from pricewatch.parsing.currency_data import (
    AMBIGUOUS_SYMBOLS,
    CURRENCIES,
    UNAMBIGUOUS_SYMBOLS,
    currency_decimals,
    currency_for_domain,
    currency_for_locale,
    currency_symbol,
    guess_locale,
    number_format,
)

logger = logging.getLogger("pricewatch.parser")

DEFAULT_CURRENCY = "USD"
MAX_PRICE = Decimal("99999999")
PLAUSIBLE_CEILING = Decimal("9999999")

_SPACE_CHARS = re.compile(r"[\u00a0\u202f\u2009\u2007]")

_NOISE_RE = re.compile(
    r"\b(?:RRP|SRP|MSRP)\b"
    r"|\b(?:price|was|now|sale|from|only)\s*:"
    r"|\bapproximately\b"
    r"|\bapprox\.?"
    r"|~",
    re.IGNORECASE,
)

_NO_PRICE_RE = re.compile(r"\b(?:call|contact|quote)\b", re.IGNORECASE)

_FREE_RE = re.compile(r"^(?:free|0)$", re.IGNORECASE)

_RANGE_SPLIT_RE = re.compile(
    r"\s*[–—]\s*"
    r"|\s+-\s+"
    r"|(?<=\d)-(?=\D{0,4}\d)"
)

_ISO_RE = re.compile(r"(?<![A-Za-z])([A-Z]{3})(?![A-Za-z])")

_NUMBER_RE = re.compile(r"\d(?:[\d.,'’ ]*\d)?")

_ZERO_DECIMAL_TAIL_RE = re.compile(r"[.,]\d{1,2}$")

_CONTEXTUAL_RAND_RE = re.compile(r"^\s*R\s?\d")


def _symbol_pattern(symbol: str) -> re.Pattern[str]:
    """Match *symbol* without matching inside a longer word."""
    escaped = re.escape(symbol)
    prefix = r"(?<![^\W\d_])" if symbol[0].isalpha() else ""
    suffix = r"(?![^\W\d_])" if symbol[-1].isalpha() else ""
    flags = re.IGNORECASE if symbol == "kr" else 0
    return re.compile(prefix + escaped + suffix, flags)


# Longest first so "R$" wins over "$" and "CA$" over "A$"
_UNAMBIGUOUS_PATTERNS: list[tuple[str, str, re.Pattern[str]]] = [
    (symbol, code, _symbol_pattern(symbol))
    for symbol, code in sorted(
        UNAMBIGUOUS_SYMBOLS.items(), key=lambda kv: -len(kv[0])
    )
]

_AMBIGUOUS_PATTERNS: list[tuple[str, list[str], re.Pattern[str]]] = [
    (symbol, codes, _symbol_pattern(symbol))
    for symbol, codes in AMBIGUOUS_SYMBOLS.items()
]


def parse_price(
    text: str | None,
    context: ExtractionContext | None = None,
) -> PriceRecord | None:
    """Parse *text* into a :class:`PriceRecord`.

    Returns ``None`` for empty input, "call for price" style text,
    unreadable numbers and values outside ``0..99,999,999``.
    """
    if text is None:
        return None
    ctx = context or ExtractionContext()
    try:
        return _parse(str(text), ctx)
    except ParseError as exc:
        logger.debug("No price in %r: %s", str(text)[:80], exc)
        return None


def format_price(numeric: Decimal, currency_code: str) -> str:
    """Render *numeric* with the currency's symbol and decimals."""
    decimals = currency_decimals(currency_code)
    amount = f"{numeric:,.{decimals}f}"
    symbol = currency_symbol(currency_code)
    if not symbol:
        return amount
    if symbol[-1].isalpha():
        return f"{amount} {symbol}"
    return f"{symbol}{amount}"


def detect_currency(
    text: str, context: ExtractionContext,
) -> tuple[str, str, float, str]:
    """Resolve ``(code, symbol, base_confidence, method)`` for *text*."""
    for match in _ISO_RE.finditer(text):
        code = match.group(1)
        if code in CURRENCIES:
            return code, currency_symbol(code), 0.95, "iso_code"

    for symbol, code, pattern in _UNAMBIGUOUS_PATTERNS:
        if pattern.search(text):
            return code, symbol, 0.90, "symbol"

    has_context = bool(
        context.domain or context.locale_hint or context.expected_currency
    )
    for symbol, codes, pattern in _AMBIGUOUS_PATTERNS:
        if not pattern.search(text):
            continue
        code = _disambiguate(codes, context)
        confidence = 0.85 if has_context else 0.75
        method = "symbol_disambiguated" if code else "symbol_default"
        return code or codes[0], symbol, confidence, method

    if _CONTEXTUAL_RAND_RE.search(text) and (
        ".za" in context.domain.lower()
        or context.expected_currency == "ZAR"
    ):
        return "ZAR", "R", 0.80, "symbol_contextual"

    if context.domain:
        code = currency_for_domain(context.domain)
        if code:
            return code, currency_symbol(code), 0.70, "domain"

    if context.locale_hint:
        code = currency_for_locale(context.locale_hint)
        if code:
            return code, currency_symbol(code), 0.65, "locale"

    if context.expected_currency:
        code = context.expected_currency.upper()
        return code, currency_symbol(code), 0.60, "expected"

    return DEFAULT_CURRENCY, "$", 0.50, "default"


def parse_number(
    token: str, locale_hint: str, decimals: int,
) -> Decimal:
    """Convert a numeric token to a :class:`Decimal`.

    Raises:
        ParseError: If the token does not reduce to digits.
    """
    cleaned = re.sub(r"['’ ]", "", token)

    if decimals == 0:
        cleaned = _ZERO_DECIMAL_TAIL_RE.sub("", cleaned)
        cleaned = cleaned.replace(".", "").replace(",", "")
    else:
        fmt = number_format(locale_hint) if locale_hint else None
        if fmt:
            cleaned = _apply_locale_format(cleaned, *fmt)
        else:
            cleaned = _infer_separators(cleaned)

    if not re.fullmatch(r"\d+(?:\.\d+)?", cleaned):
        raise ParseError(f"unreadable number {token!r}")
    try:
        value = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ParseError(f"unreadable number {token!r}") from exc
    quantum = Decimal(1).scaleb(-decimals)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


# ── Private helpers ──────────────────────────────────


def _parse(text: str, context: ExtractionContext) -> PriceRecord:
    cleaned = _clean(text)
    if not cleaned:
        raise ParseError("empty text")
    if _NO_PRICE_RE.search(cleaned):
        raise ParseError("price on request")

    if _FREE_RE.match(cleaned):
        return _free_record(cleaned, context)

    number_part = _lower_bound(cleaned)
    code, symbol, confidence, method = detect_currency(cleaned, context)
    decimals = currency_decimals(code)

    token = _NUMBER_RE.search(number_part)
    if token is None:
        raise ParseError("no digits")
    numeric = parse_number(token.group(0), context.locale_hint, decimals)

    if numeric < 0 or numeric > MAX_PRICE:
        raise ParseError(f"value {numeric} out of range")

    if context.has_hints():
        confidence += 0.05
    if context.expected_currency and code == context.expected_currency:
        confidence += 0.05
    if not (0 < numeric < PLAUSIBLE_CEILING):
        confidence -= 0.15
    confidence = round(min(max(confidence, 0.0), 1.0), 4)

    return PriceRecord(
        numeric=numeric,
        currency_code=code,
        symbol=symbol,
        formatted_text=format_price(numeric, code),
        locale_hint=context.locale_hint or guess_locale(context.domain, code),
        confidence=confidence,
        detection_method=method,
    )


def _clean(text: str) -> str:
    text = _SPACE_CHARS.sub(" ", text)
    text = _NOISE_RE.sub(" ", text)
    return re.sub(r"\s+", " ", text).strip()


def _lower_bound(text: str) -> str:
    """Keep the first bound of a ``X - Y`` range."""
    parts = _RANGE_SPLIT_RE.split(text)
    if len(parts) > 1 and any(ch.isdigit() for ch in parts[0]):
        return parts[0]
    return text


def _free_record(text: str, context: ExtractionContext) -> PriceRecord:
    code = context.expected_currency or DEFAULT_CURRENCY
    return PriceRecord(
        numeric=Decimal(0).quantize(
            Decimal(1).scaleb(-currency_decimals(code))
        ),
        currency_code=code,
        symbol=currency_symbol(code),
        formatted_text="FREE",
        locale_hint=context.locale_hint or guess_locale(context.domain, code),
        confidence=0.5,
        detection_method="special",
    )


def _disambiguate(codes: list[str], context: ExtractionContext) -> str | None:
    """Pick one of *codes* using domain, then locale, then expected."""
    hints = (
        currency_for_domain(context.domain) if context.domain else None,
        currency_for_locale(context.locale_hint)
        if context.locale_hint else None,
        context.expected_currency or None,
    )
    for hint in hints:
        if hint in codes:
            return hint
    return None


def _apply_locale_format(token: str, decimal: str, thousands: str) -> str:
    other = "," if decimal == "." else "."
    token = token.replace(thousands, "")
    if other != thousands:
        token = token.replace(other, "")
    return token.replace(decimal, ".")


def _infer_separators(token: str) -> str:
    """Guess decimal vs. thousands separators without a locale.

    Both present: the rightmost is the decimal separator. One kind
    present: it is decimal only when it occurs once with exactly two
    digits after it; otherwise it groups thousands.
    """
    last_comma = token.rfind(",")
    last_dot = token.rfind(".")

    if last_comma >= 0 and last_dot >= 0:
        decimal = "," if last_comma > last_dot else "."
        thousands = "." if decimal == "," else ","
        return token.replace(thousands, "").replace(decimal, ".")

    separator = "," if last_comma >= 0 else "." if last_dot >= 0 else ""
    if not separator:
        return token
    head, _, tail = token.rpartition(separator)
    if token.count(separator) == 1 and len(tail) == 2:
        return f"{head}.{tail}"
    return token.replace(separator, "")
