"""
User-Agent based device detection.

Mirrors the pattern tables in static/js/detect-device.js so that a
submission still carries device details when the browser script did not
run (scripts blocked, old browser). Tables are checked in order and the
first match wins.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from checkin.schemas.checkin import DeviceInfo


UNKNOWN = "Unknown"


@dataclass(frozen=True)
class OsPattern:
    pattern: Pattern
    name: str
    version_regex: Optional[Pattern] = None
    underscores_to_dots: bool = False


# iOS is checked before macOS: iPhone agents also contain "like Mac OS X"
OS_PATTERNS: List[OsPattern] = [
    OsPattern(re.compile(r"Windows NT"), "Windows", re.compile(r"Windows NT ([\d.]+)")),
    OsPattern(re.compile(r"iPhone|iPad|iPod"), "iOS", re.compile(r"OS ([\d_]+)"), underscores_to_dots=True),
    OsPattern(re.compile(r"Mac OS X"), "macOS", re.compile(r"Mac OS X ([\d_]+)"), underscores_to_dots=True),
    OsPattern(re.compile(r"Android"), "Android", re.compile(r"Android ([\d.]+)")),
    OsPattern(re.compile(r"Linux"), "Linux"),
]

IPHONE_MODELS: Dict[float, Dict[str, str]] = {
    3: {
        "932x430": "iPhone 14 Pro Max / 15 Pro Max / 16 Pro Max",
        "926x428": "iPhone 12 Pro Max / 13 Pro Max / 14 Plus / 15 Plus / 16 Plus",
        "896x414": "iPhone 11 Pro Max / XS Max",
        "852x393": "iPhone 14 Pro / 15 Pro / 16 Pro",
        "844x390": "iPhone 12 / 12 Pro / 13 / 13 Pro / 14 / 15 / 16",
        "812x375": "iPhone X / XS / 11 Pro / 12 mini / 13 mini",
    },
    2: {
        "736x414": "iPhone 6 Plus / 6s Plus / 7 Plus / 8 Plus",
        "667x375": "iPhone 6 / 6s / 7 / 8 / SE (2nd/3rd gen)",
        "568x320": "iPhone 5 / 5s / 5c / SE (1st gen)",
    },
}

IPAD_MODELS: Dict[float, Dict[str, str]] = {
    2: {
        "1366x1024": 'iPad Pro 12.9"',
        "1194x834": 'iPad Pro 11"',
        "1112x834": 'iPad Pro 10.5"',
        "1024x768": "iPad / iPad Air / iPad Mini",
    },
}


@dataclass(frozen=True)
class AndroidPattern:
    test: Pattern
    manufacturer: str
    model_regex: Pattern
    model_transform: Callable[[re.Match], str]


ANDROID_PATTERNS: List[AndroidPattern] = [
    AndroidPattern(
        re.compile(r"Samsung|SM-", re.IGNORECASE), "Samsung",
        re.compile(r"SM-([A-Z0-9]+)", re.IGNORECASE), lambda m: f"Galaxy {m.group(1)}",
    ),
    AndroidPattern(
        re.compile(r"Pixel", re.IGNORECASE), "Google",
        re.compile(r"Pixel( \d+)?( XL)?( Pro)?", re.IGNORECASE), lambda m: m.group(0),
    ),
    AndroidPattern(
        re.compile(r"OnePlus", re.IGNORECASE), "OnePlus",
        re.compile(r"OnePlus([A-Z0-9]+)", re.IGNORECASE), lambda m: m.group(1),
    ),
    AndroidPattern(
        re.compile(r"Mi |Redmi|POCO", re.IGNORECASE), "Xiaomi",
        re.compile(r"(Mi [A-Z0-9]+|Redmi [A-Z0-9 ]+|POCO [A-Z0-9 ]+)", re.IGNORECASE), lambda m: m.group(1),
    ),
    AndroidPattern(
        re.compile(r"Huawei|Honor", re.IGNORECASE), "Huawei",
        re.compile(r"(Huawei|Honor) ([A-Z0-9-]+)", re.IGNORECASE), lambda m: m.group(2),
    ),
]

ANDROID_GENERIC_MODEL = re.compile(r"Android.*;\s*([^)]+)\s*Build")


@dataclass(frozen=True)
class BrowserPattern:
    name: str
    matches: Callable[[str], bool]
    version_regex: Pattern


BROWSER_PATTERNS: List[BrowserPattern] = [
    BrowserPattern("Edge", lambda ua: "Edg" in ua, re.compile(r"Edg/([\d.]+)")),
    BrowserPattern("Chrome", lambda ua: "Chrome" in ua and "Edg" not in ua, re.compile(r"Chrome/([\d.]+)")),
    BrowserPattern("Safari", lambda ua: "Safari" in ua and "Chrome" not in ua, re.compile(r"Version/([\d.]+)")),
    BrowserPattern("Firefox", lambda ua: "Firefox" in ua, re.compile(r"Firefox/([\d.]+)")),
]


def dimension_key(screen_width: int, screen_height: int) -> str:
    return f"{max(screen_width, screen_height)}x{min(screen_width, screen_height)}"


def detect_os(user_agent: str) -> Tuple[str, str]:
    for os_pattern in OS_PATTERNS:
        if not os_pattern.pattern.search(user_agent):
            continue
        version = UNKNOWN
        if os_pattern.version_regex:
            match = os_pattern.version_regex.search(user_agent)
            if match:
                version = match.group(1)
                if os_pattern.underscores_to_dots:
                    version = version.replace("_", ".")
        return os_pattern.name, version
    return UNKNOWN, UNKNOWN


def detect_apple_model(models: Dict[float, Dict[str, str]], default: str,
                       pixel_ratio: Optional[float], screen_width: int, screen_height: int) -> str:
    by_dimension = models.get(pixel_ratio or 1, {})
    return by_dimension.get(dimension_key(screen_width, screen_height), default)


def detect_android_device(user_agent: str) -> Tuple[str, str]:
    for android in ANDROID_PATTERNS:
        if android.test.search(user_agent):
            match = android.model_regex.search(user_agent)
            return android.manufacturer, android.model_transform(match) if match else UNKNOWN

    generic = ANDROID_GENERIC_MODEL.search(user_agent)
    model = generic.group(1).strip() if generic and generic.group(1).strip() else UNKNOWN
    return "Android", model


def detect_device_type(user_agent: str, pixel_ratio: Optional[float] = None,
                       screen_width: int = 0, screen_height: int = 0) -> Tuple[str, str, str]:
    """Return (device_type, manufacturer, model)"""
    if "iPhone" in user_agent:
        return "Smartphone", "Apple", detect_apple_model(
            IPHONE_MODELS, "iPhone", pixel_ratio, screen_width, screen_height)
    if "iPad" in user_agent:
        return "Tablet", "Apple", detect_apple_model(
            IPAD_MODELS, "iPad", pixel_ratio, screen_width, screen_height)
    if "Android" in user_agent:
        manufacturer, model = detect_android_device(user_agent)
        return ("Smartphone" if "Mobile" in user_agent else "Tablet"), manufacturer, model
    if "Macintosh" in user_agent:
        return "Desktop/Laptop", "Apple", "Mac"
    if "Windows" in user_agent:
        return "Desktop/Laptop", "PC", "Windows PC"
    if "Linux" in user_agent:
        return "Desktop/Laptop", UNKNOWN, "Linux PC"
    return UNKNOWN, UNKNOWN, UNKNOWN


def detect_browser(user_agent: str) -> Tuple[str, str]:
    for browser in BROWSER_PATTERNS:
        if browser.matches(user_agent):
            match = browser.version_regex.search(user_agent)
            return browser.name, match.group(1) if match else UNKNOWN
    return UNKNOWN, UNKNOWN


def detect_device(
    user_agent: Optional[str],
    platform: Optional[str] = None,
    screen_width: int = 0,
    screen_height: int = 0,
    pixel_ratio: Optional[float] = None,
    touch_support: bool = False,
) -> DeviceInfo:
    user_agent = user_agent or ""
    os_name, os_version = detect_os(user_agent)
    device_type, manufacturer, model = detect_device_type(user_agent, pixel_ratio, screen_width, screen_height)
    browser, browser_version = detect_browser(user_agent)

    return DeviceInfo(
        user_agent=user_agent or UNKNOWN,
        platform=platform or UNKNOWN,
        screen_resolution=f"{screen_width}x{screen_height}" if screen_width and screen_height else UNKNOWN,
        pixel_ratio=pixel_ratio,
        touch_support=touch_support,
        os=os_name,
        os_version=os_version,
        device_type=device_type,
        manufacturer=manufacturer,
        model=model,
        browser=browser,
        browser_version=browser_version,
    )
