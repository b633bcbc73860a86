"""
Translated page copy.

Each language has a YAML bundle in locales/ split into namespaces
(common, questions, video, ...) plus static HTML pages in pages/<lang>/.
English is the reference language: any key missing from another bundle
falls back to English.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from checkin.core.logging_config import logger


Language = str

SUPPORTED_LANGUAGES: List[Language] = ["en", "cy"]
DEFAULT_LANGUAGE: Language = "en"

CONTENT_DIR = Path(__file__).resolve().parent
LOCALES_DIR = CONTENT_DIR / "locales"
PAGES_DIR = CONTENT_DIR / "pages"

CONTENT_PAGE_TITLES: Dict[Language, Dict[str, str]] = {
    "en": {
        "accessibility": "Accessibility statement for Check in with your probation officer",
        "guidance": "About the Check in with your probation officer service",
        "privacy": "Probation Service Privacy Notice",
    },
    "cy": {
        "accessibility": "Datganiad hygyrchedd ar gyfer Cofrestru gyda'ch swyddog prawf",
        "guidance": "Ynglŷn â'r gwasanaeth Cofrestru gyda'ch swyddog prawf",
        "privacy": "Hysbysiad Preifatrwydd Gwasanaeth Prawf",
    },
}


@dataclass(frozen=True)
class ContentPage:
    page_title: str
    content: str


@lru_cache(maxsize=None)
def _load_bundle(lang: Language) -> Dict[str, Any]:
    path = LOCALES_DIR / f"{lang}.yml"
    with open(path, "r", encoding="utf-8") as f:
        bundle = yaml.safe_load(f) or {}
    logger.debug(f"[Content] Loaded {lang} bundle with {len(bundle)} namespaces")
    return bundle


def _get_keypath(data: Any, key: str) -> Any:
    current = data
    for part in key.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
        if current is None:
            return None
    return current


def is_valid_language(lang: Optional[str]) -> bool:
    return lang in SUPPORTED_LANGUAGES


def t(lang: Language, key: str, fallback: Optional[str] = None) -> str:
    """
    Translate a dot-notation key, e.g. ``questions.mentalHealth.title``.

    Falls back to English, then to ``fallback``, then to the key itself.
    """
    if not is_valid_language(lang):
        lang = DEFAULT_LANGUAGE

    value = _get_keypath(_load_bundle(lang), key)
    if value is not None:
        return str(value)

    if lang != DEFAULT_LANGUAGE:
        en_value = _get_keypath(_load_bundle(DEFAULT_LANGUAGE), key)
        if en_value is not None:
            return str(en_value)

    return fallback if fallback is not None else key


def get_content(lang: Language, key: str) -> Any:
    """Return a content object (dict, list or string) for templates, with English fallback"""
    if not is_valid_language(lang):
        lang = DEFAULT_LANGUAGE
    value = _get_keypath(_load_bundle(lang), key)
    if value is None and lang != DEFAULT_LANGUAGE:
        value = _get_keypath(_load_bundle(DEFAULT_LANGUAGE), key)
    return value


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_namespace(lang: Language, namespace: str) -> Dict[str, Any]:
    """All content for a namespace. Missing translations are filled from English."""
    if not is_valid_language(lang):
        lang = DEFAULT_LANGUAGE
    english = _load_bundle(DEFAULT_LANGUAGE).get(namespace) or {}
    if lang == DEFAULT_LANGUAGE:
        return english
    return _merge(english, _load_bundle(lang).get(namespace) or {})


LANG_PREFIX_RE = re.compile(r"^/(en|cy)(/|$)")

LANGUAGE_LABELS: Dict[Language, str] = {"en": "English", "cy": "Cymraeg"}


def get_lang_from_path(path: str) -> Optional[Language]:
    match = LANG_PREFIX_RE.match(path)
    return match.group(1) if match else None


def strip_lang_prefix(path: str) -> str:
    """/cy/abc?x=1 -> /abc?x=1, /cy -> /"""
    stripped = LANG_PREFIX_RE.sub(r"/\2", path, count=1)
    if stripped.startswith("//"):
        stripped = stripped[1:]
    return stripped or "/"


def build_language_toggle(lang: Language, current_path: str) -> Dict[str, str]:
    """Header link that switches language via the /{lang}/... redirect"""
    switch_lang = "cy" if lang == "en" else "en"
    return {
        "current_lang": lang,
        "switch_url": f"/{switch_lang}{current_path}",
        "switch_lang": switch_lang,
        "switch_label": LANGUAGE_LABELS[switch_lang],
    }


@lru_cache(maxsize=None)
def load_content_page(page_name: str, lang: Language = DEFAULT_LANGUAGE) -> ContentPage:
    """Load one of the static HTML content pages (accessibility, guidance, privacy)"""
    lang = lang if lang in CONTENT_PAGE_TITLES else DEFAULT_LANGUAGE
    title = CONTENT_PAGE_TITLES[lang].get(page_name)
    if not title:
        raise ValueError(f"Unknown content page: {page_name}")

    html_path = PAGES_DIR / lang / f"{page_name}.html"
    return ContentPage(page_title=title, content=html_path.read_text(encoding="utf-8"))


__all__ = [
    "Language",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    "ContentPage",
    "t",
    "get_content",
    "get_namespace",
    "is_valid_language",
    "load_content_page",
    "get_lang_from_path",
    "strip_lang_prefix",
    "build_language_toggle",
]
