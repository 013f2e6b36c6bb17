# pricewatch/parsing/currency_data.py

"""Static currency, domain and locale tables used by the price parser."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CurrencyInfo:
    """Display symbol, English name and canonical decimal count."""

    symbol: str
    name: str
    decimals: int = 2


CURRENCIES: dict[str, CurrencyInfo] = {
    # Americas
    "USD": CurrencyInfo("$", "US Dollar"),
    "CAD": CurrencyInfo("$", "Canadian Dollar"),
    "MXN": CurrencyInfo("$", "Mexican Peso"),
    "BRL": CurrencyInfo("R$", "Brazilian Real"),
    # Europe
    "EUR": CurrencyInfo("€", "Euro"),
    "GBP": CurrencyInfo("£", "British Pound"),
    "CHF": CurrencyInfo("CHF", "Swiss Franc"),
    "SEK": CurrencyInfo("kr", "Swedish Krona"),
    "NOK": CurrencyInfo("kr", "Norwegian Krone"),
    "DKK": CurrencyInfo("kr", "Danish Krone"),
    "PLN": CurrencyInfo("zł", "Polish Zloty"),
    "CZK": CurrencyInfo("Kč", "Czech Koruna"),
    "HUF": CurrencyInfo("Ft", "Hungarian Forint", 0),
    "RON": CurrencyInfo("lei", "Romanian Leu"),
    "BGN": CurrencyInfo("лв", "Bulgarian Lev"),
    # Asia-Pacific
    "JPY": CurrencyInfo("¥", "Japanese Yen", 0),
    "CNY": CurrencyInfo("¥", "Chinese Yuan"),
    "KRW": CurrencyInfo("₩", "South Korean Won", 0),
    "INR": CurrencyInfo("₹", "Indian Rupee"),
    "AUD": CurrencyInfo("$", "Australian Dollar"),
    "NZD": CurrencyInfo("$", "New Zealand Dollar"),
    "SGD": CurrencyInfo("$", "Singapore Dollar"),
    "HKD": CurrencyInfo("$", "Hong Kong Dollar"),
    "THB": CurrencyInfo("฿", "Thai Baht"),
    "PHP": CurrencyInfo("₱", "Philippine Peso"),
    "IDR": CurrencyInfo("Rp", "Indonesian Rupiah", 0),
    "MYR": CurrencyInfo("RM", "Malaysian Ringgit"),
    "VND": CurrencyInfo("₫", "Vietnamese Dong", 0),
    # Eastern Europe
    "RUB": CurrencyInfo("₽", "Russian Ruble"),
    "UAH": CurrencyInfo("₴", "Ukrainian Hryvnia"),
    # Middle East
    "AED": CurrencyInfo("د.إ", "UAE Dirham"),
    "SAR": CurrencyInfo("﷼", "Saudi Riyal"),
    "ILS": CurrencyInfo("₪", "Israeli Shekel"),
    # Africa
    "ZAR": CurrencyInfo("R", "South African Rand"),
    "EGP": CurrencyInfo("£", "Egyptian Pound"),
    # Other
    "TRY": CurrencyInfo("₺", "Turkish Lira"),
}

# Symbols that name exactly one currency. Longer entries must be matched
# first so that "R$" is not read as "$" and "US$" is not read as "$".
UNAMBIGUOUS_SYMBOLS: dict[str, str] = {
    "US$": "USD",
    "C$": "CAD",
    "CA$": "CAD",
    "A$": "AUD",
    "AU$": "AUD",
    "NZ$": "NZD",
    "S$": "SGD",
    "HK$": "HKD",
    "MX$": "MXN",
    "R$": "BRL",
    "Rp": "IDR",
    "RM": "MYR",
    "zł": "PLN",
    "Kč": "CZK",
    "Ft": "HUF",
    "lei": "RON",
    "лв": "BGN",
    "د.إ": "AED",
    "﷼": "SAR",
    "€": "EUR",
    "₩": "KRW",
    "₹": "INR",
    "฿": "THB",
    "₱": "PHP",
    "₫": "VND",
    "₽": "RUB",
    "₴": "UAH",
    "₪": "ILS",
    "₺": "TRY",
}

# Symbols shared between currencies; the first entry is the fallback
# when no hint narrows the choice.
AMBIGUOUS_SYMBOLS: dict[str, list[str]] = {
    "$": ["USD", "CAD", "AUD", "NZD", "SGD", "HKD", "MXN"],
    "£": ["GBP", "EGP"],
    "¥": ["JPY", "CNY"],
    "kr": ["SEK", "NOK", "DKK"],
}

DOMAIN_CURRENCY: dict[str, str] = {
    # Generic
    ".com": "USD",
    # Americas
    ".us": "USD",
    ".ca": "CAD",
    ".mx": "MXN",
    ".com.mx": "MXN",
    ".com.br": "BRL",
    ".br": "BRL",
    # Europe
    ".co.uk": "GBP",
    ".uk": "GBP",
    ".de": "EUR",
    ".fr": "EUR",
    ".es": "EUR",
    ".it": "EUR",
    ".nl": "EUR",
    ".be": "EUR",
    ".at": "EUR",
    ".pt": "EUR",
    ".ie": "EUR",
    ".fi": "EUR",
    ".gr": "EUR",
    ".ee": "EUR",
    ".lv": "EUR",
    ".lt": "EUR",
    ".sk": "EUR",
    ".si": "EUR",
    ".cy": "EUR",
    ".mt": "EUR",
    ".lu": "EUR",
    ".ch": "CHF",
    ".se": "SEK",
    ".no": "NOK",
    ".dk": "DKK",
    ".pl": "PLN",
    ".cz": "CZK",
    ".hu": "HUF",
    ".ro": "RON",
    ".bg": "BGN",
    # Asia-Pacific
    ".co.jp": "JPY",
    ".jp": "JPY",
    ".cn": "CNY",
    ".com.cn": "CNY",
    ".kr": "KRW",
    ".co.kr": "KRW",
    ".in": "INR",
    ".co.in": "INR",
    ".com.au": "AUD",
    ".au": "AUD",
    ".co.nz": "NZD",
    ".nz": "NZD",
    ".sg": "SGD",
    ".com.sg": "SGD",
    ".hk": "HKD",
    ".com.hk": "HKD",
    ".th": "THB",
    ".co.th": "THB",
    ".ph": "PHP",
    ".com.ph": "PHP",
    ".id": "IDR",
    ".co.id": "IDR",
    ".my": "MYR",
    ".com.my": "MYR",
    ".vn": "VND",
    ".com.vn": "VND",
    # Eastern Europe
    ".ru": "RUB",
    ".ua": "UAH",
    # Middle East
    ".ae": "AED",
    ".sa": "SAR",
    ".il": "ILS",
    ".co.il": "ILS",
    # Africa
    ".za": "ZAR",
    ".co.za": "ZAR",
    ".eg": "EGP",
    # Other
    ".tr": "TRY",
    ".com.tr": "TRY",
}

LOCALE_CURRENCY: dict[str, str] = {
    "en-US": "USD",
    "en-CA": "CAD",
    "fr-CA": "CAD",
    "es-MX": "MXN",
    "pt-BR": "BRL",
    "en-GB": "GBP",
    "de-DE": "EUR",
    "fr-FR": "EUR",
    "es-ES": "EUR",
    "it-IT": "EUR",
    "nl-NL": "EUR",
    "nl-BE": "EUR",
    "fr-BE": "EUR",
    "de-AT": "EUR",
    "pt-PT": "EUR",
    "en-IE": "EUR",
    "fi-FI": "EUR",
    "el-GR": "EUR",
    "et-EE": "EUR",
    "lv-LV": "EUR",
    "lt-LT": "EUR",
    "sk-SK": "EUR",
    "sl-SI": "EUR",
    "el-CY": "EUR",
    "mt-MT": "EUR",
    "lb-LU": "EUR",
    "de-LU": "EUR",
    "fr-LU": "EUR",
    "bg-BG": "BGN",
    "de-CH": "CHF",
    "fr-CH": "CHF",
    "it-CH": "CHF",
    "sv-SE": "SEK",
    "nb-NO": "NOK",
    "da-DK": "DKK",
    "pl-PL": "PLN",
    "cs-CZ": "CZK",
    "hu-HU": "HUF",
    "ro-RO": "RON",
    "ja-JP": "JPY",
    "zh-CN": "CNY",
    "ko-KR": "KRW",
    "hi-IN": "INR",
    "en-IN": "INR",
    "en-AU": "AUD",
    "en-NZ": "NZD",
    "en-SG": "SGD",
    "zh-HK": "HKD",
    "en-HK": "HKD",
    "th-TH": "THB",
    "fil-PH": "PHP",
    "en-PH": "PHP",
    "id-ID": "IDR",
    "ms-MY": "MYR",
    "vi-VN": "VND",
    "ru-RU": "RUB",
    "uk-UA": "UAH",
    "ar-AE": "AED",
    "ar-SA": "SAR",
    "he-IL": "ILS",
    "en-ZA": "ZAR",
    "ar-EG": "EGP",
    "tr-TR": "TRY",
}

# (decimal separator, thousands separator)
_POINT_DECIMAL = (".", ",")
_COMMA_DECIMAL = (",", ".")
_COMMA_SPACE = (",", " ")

NUMBER_FORMATS: dict[str, tuple[str, str]] = {
    "en-US": _POINT_DECIMAL,
    "en-GB": _POINT_DECIMAL,
    "en-AU": _POINT_DECIMAL,
    "en-NZ": _POINT_DECIMAL,
    "en-CA": _POINT_DECIMAL,
    "en-IN": _POINT_DECIMAL,
    "en-IE": _POINT_DECIMAL,
    "en-SG": _POINT_DECIMAL,
    "en-HK": _POINT_DECIMAL,
    "en-PH": _POINT_DECIMAL,
    "en-ZA": _POINT_DECIMAL,
    "hi-IN": _POINT_DECIMAL,
    "ja-JP": _POINT_DECIMAL,
    "zh-CN": _POINT_DECIMAL,
    "zh-HK": _POINT_DECIMAL,
    "ko-KR": _POINT_DECIMAL,
    "th-TH": _POINT_DECIMAL,
    "fil-PH": _POINT_DECIMAL,
    "ms-MY": _POINT_DECIMAL,
    "ar-AE": _POINT_DECIMAL,
    "ar-SA": _POINT_DECIMAL,
    "ar-EG": _POINT_DECIMAL,
    "he-IL": _POINT_DECIMAL,
    "de-DE": _COMMA_DECIMAL,
    "de-AT": _COMMA_DECIMAL,
    "de-CH": _COMMA_DECIMAL,
    "de-LU": _COMMA_DECIMAL,
    "nl-NL": _COMMA_DECIMAL,
    "nl-BE": _COMMA_DECIMAL,
    "es-ES": _COMMA_DECIMAL,
    "es-MX": _COMMA_DECIMAL,
    "pt-PT": _COMMA_DECIMAL,
    "pt-BR": _COMMA_DECIMAL,
    "it-IT": _COMMA_DECIMAL,
    "it-CH": _COMMA_DECIMAL,
    "pl-PL": _COMMA_DECIMAL,
    "cs-CZ": _COMMA_DECIMAL,
    "hu-HU": _COMMA_DECIMAL,
    "ro-RO": _COMMA_DECIMAL,
    "tr-TR": _COMMA_DECIMAL,
    "ru-RU": _COMMA_DECIMAL,
    "uk-UA": _COMMA_DECIMAL,
    "id-ID": _COMMA_DECIMAL,
    "vi-VN": _COMMA_DECIMAL,
    "el-GR": _COMMA_DECIMAL,
    "el-CY": _COMMA_DECIMAL,
    "sl-SI": _COMMA_DECIMAL,
    "fr-FR": _COMMA_SPACE,
    "fr-BE": _COMMA_SPACE,
    "fr-CH": _COMMA_SPACE,
    "fr-CA": _COMMA_SPACE,
    "fr-LU": _COMMA_SPACE,
    "sv-SE": _COMMA_SPACE,
    "nb-NO": _COMMA_SPACE,
    "da-DK": _COMMA_SPACE,
    "fi-FI": _COMMA_SPACE,
    "et-EE": _COMMA_SPACE,
    "lv-LV": _COMMA_SPACE,
    "lt-LT": _COMMA_SPACE,
    "sk-SK": _COMMA_SPACE,
    "bg-BG": _COMMA_SPACE,
    "mt-MT": _COMMA_SPACE,
    "lb-LU": _COMMA_SPACE,
}


def currency_decimals(code: str) -> int:
    """Canonical number of decimals for *code* (2 when unknown)."""
    info = CURRENCIES.get(code)
    return info.decimals if info else 2


def currency_symbol(code: str) -> str:
    info = CURRENCIES.get(code)
    return info.symbol if info else code


def currency_for_domain(domain: str) -> str | None:
    """Resolve a currency from the longest matching TLD suffix."""
    host = domain.lower().rstrip(".")
    if not host:
        return None
    best: str | None = None
    best_len = 0
    for suffix, code in DOMAIN_CURRENCY.items():
        if host.endswith(suffix) and len(suffix) > best_len:
            best, best_len = code, len(suffix)
    return best


def normalize_locale(locale: str) -> str:
    """Normalise ``de_de`` / ``DE-de`` style tags to ``de-DE``."""
    parts = locale.replace("_", "-").strip().split("-")
    if not parts or not parts[0]:
        return ""
    if len(parts) == 1:
        return parts[0].lower()
    return f"{parts[0].lower()}-{parts[1].upper()}"


def currency_for_locale(locale: str) -> str | None:
    return LOCALE_CURRENCY.get(normalize_locale(locale))


def number_format(locale: str) -> tuple[str, str] | None:
    """Return ``(decimal, thousands)`` separators for *locale*.

    A bare language tag (``"de"``) falls back to the first regional
    variant listed for that language.
    """
    tag = normalize_locale(locale)
    if not tag:
        return None
    if tag in NUMBER_FORMATS:
        return NUMBER_FORMATS[tag]
    language = tag.split("-")[0]
    for known, fmt in NUMBER_FORMATS.items():
        if known.split("-")[0] == language:
            return fmt
    return None


def guess_locale(domain: str, currency: str) -> str:
    """Best-effort locale for a domain, falling back to the currency."""
    host = domain.lower()
    by_suffix: dict[str, str] = {
        ".co.uk": "en-GB",
        ".de": "de-DE",
        ".fr": "fr-FR",
        ".es": "es-ES",
        ".it": "it-IT",
        ".nl": "nl-NL",
        ".ca": "en-CA",
        ".com.au": "en-AU",
        ".co.jp": "ja-JP",
        ".se": "sv-SE",
        ".pl": "pl-PL",
        ".com.br": "pt-BR",
        ".in": "en-IN",
    }
    for suffix, locale in by_suffix.items():
        if host.endswith(suffix):
            return locale
    for locale, code in LOCALE_CURRENCY.items():
        if code == currency:
            return locale
    return "en-US"
