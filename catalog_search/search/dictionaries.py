"""
Static vocabularies for attribute extraction and query expansion.

All tables are read-only after import and may be shared freely across
threads. Ordering is significant: extraction scans brands, models, colors
and categories in the order listed here and the first hit wins.
"""

from types import MappingProxyType
from typing import Mapping, Tuple

# Canonical brand display name -> aliases found in free text.
BRAND_ALIASES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Apple": ("apple", "iphone", "ipad", "macbook", "imac", "airpods", "apple watch", "mac"),
        "Samsung": ("samsung", "galaxy"),
        "Google": ("google", "pixel", "nest"),
        "Microsoft": ("microsoft", "surface", "xbox"),
        "Sony": ("sony", "playstation", "ps4", "ps5", "bravia", "walkman"),
        "Nintendo": ("nintendo", "nintendo switch"),
        "Dell": ("dell", "alienware", "inspiron", "xps"),
        "HP": ("hp", "hewlett packard", "pavilion", "elitebook"),
        "Lenovo": ("lenovo", "thinkpad", "ideapad"),
        "Asus": ("asus", "rog", "zenbook"),
        "Acer": ("acer", "predator"),
        "LG": ("lg",),
    }
)

# Brand -> canonical model name -> aliases. More specific models come first.
MODEL_ALIASES: Mapping[str, Mapping[str, Tuple[str, ...]]] = MappingProxyType(
    {
        "Apple": MappingProxyType(
            {
                "iPhone 15 Pro": (
                    "iphone 15 pro",
                    "iphone15pro",
                    "ip15pro",
                    "iphone 15pro",
                    "iphone fifteen pro",
                ),
                "iPhone 15": ("iphone 15", "iphone15", "ip15", "iphone fifteen"),
                "iPhone 14 Pro": ("iphone 14 pro", "iphone14pro", "ip14pro", "iphone 14pro"),
                "iPad Pro": ("ipad pro", "ipadpro"),
                "iPad Air": ("ipad air",),
                "MacBook Pro": ("macbook pro", "mbp"),
                "MacBook Air": ("macbook air", "mba"),
            }
        ),
        "Samsung": MappingProxyType(
            {
                "Galaxy S24 Ultra": (
                    "galaxy s24 ultra",
                    "s24 ultra",
                    "galaxy s 24 ultra",
                    "s24ultra",
                ),
                "Galaxy S24": ("galaxy s24", "galaxy s 24", "s24"),
                "Galaxy Note": ("galaxy note",),
            }
        ),
        "Google": MappingProxyType(
            {
                "Pixel 8 Pro": ("pixel 8 pro", "pixel8pro"),
                "Pixel 8": ("pixel 8", "pixel8"),
            }
        ),
        "Sony": MappingProxyType(
            {
                "PlayStation 5": ("playstation 5", "ps5"),
                "PlayStation 4": ("playstation 4", "ps4"),
            }
        ),
    }
)

# Product colors; multi-word names are matched before their last word.
COLORS: Tuple[str, ...] = (
    "space gray",
    "space grey",
    "rose gold",
    "sierra blue",
    "pacific blue",
    "alpine green",
    "deep purple",
    "product red",
    "arctic white",
    "forest green",
    "black",
    "white",
    "red",
    "blue",
    "green",
    "yellow",
    "pink",
    "purple",
    "gray",
    "grey",
    "silver",
    "gold",
    "midnight",
    "starlight",
    "champagne",
    "graphite",
    "cherry",
    "crimson",
    "violet",
)

CAPACITY_UNITS: Mapping[str, str] = MappingProxyType(
    {
        "gigabytes": "GB",
        "gigabyte": "GB",
        "gb": "GB",
        "terabytes": "TB",
        "terabyte": "TB",
        "tb": "TB",
    }
)

SIZE_UNITS: Mapping[str, str] = MappingProxyType(
    {"inches": "inch", "inch": "inch", "cm": "cm", "mm": "mm"}
)

# Garment sizes that are unambiguous anywhere in a product name.
GARMENT_SIZES: Tuple[str, ...] = (
    "extra large",
    "small",
    "medium",
    "large",
    "xxl",
    "2xl",
    "3xl",
    "xl",
    "xs",
)

# Single-letter sizes are only read when the category says it is apparel.
SINGLE_LETTER_SIZES: Tuple[str, ...] = ("s", "m", "l")

APPAREL_CATEGORIES = frozenset(
    {"apparel", "clothing", "fashion", "shoes", "footwear", "sportswear", "menswear", "womenswear"}
)

# Query word -> related words used to widen recall.
SYNONYMS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "phone": ("smartphone", "mobile", "cell phone", "cellphone", "iphone", "android"),
        "laptop": ("notebook", "computer", "pc", "macbook"),
        "tv": ("television", "smart tv", "led tv", "oled", "monitor"),
        "headphones": ("earphones", "earbuds", "headset", "airpods"),
        "tablet": ("ipad", "android tablet", "tab"),
        "gaming": ("game", "games", "video game", "console"),
        "wireless": ("bluetooth", "wifi", "cordless"),
        "storage": ("memory", "hard drive", "ssd", "hdd", "nvme"),
        "watch": ("smartwatch", "timepiece"),
        "speaker": ("audio", "sound", "bluetooth speaker"),
        "coupon": ("voucher", "promo code", "discount code", "deal"),
        "voucher": ("coupon", "promo code", "discount code"),
        "deal": ("offer", "sale", "discount"),
        "shoes": ("sneakers", "trainers", "footwear"),
    }
)

# Category -> keywords whose presence in the query hints at that category.
CATEGORY_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "smartphones": ("phone", "mobile", "smartphone", "iphone", "android", "cellular"),
        "laptops": ("laptop", "notebook", "computer", "macbook", "ultrabook"),
        "tablets": ("tablet", "ipad", "tab", "slate"),
        "headphones": ("headphones", "earbuds", "earphones", "airpods", "headset"),
        "tvs": ("tv", "television", "smart tv", "led tv", "oled"),
        "gaming": ("gaming", "console", "playstation", "xbox", "nintendo"),
        "watches": ("watch", "smartwatch", "timepiece", "apple watch"),
        "speakers": ("speaker", "audio", "bluetooth speaker", "sound"),
        "fashion": ("dress", "shirt", "jeans", "jacket", "clothing", "apparel"),
        "shoes": ("shoes", "sneakers", "trainers", "boots"),
    }
)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "new", "brand", "original", "genuine", "official",
        "unlocked", "factory", "sealed", "boxed", "warranty", "latest",
        "under", "below", "less", "than", "cheaper", "between", "from",
    }
)

# QWERTY layout neighbours for keyboard-proximity typos.
KEYBOARD_NEIGHBORS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "a": ("q", "s", "w", "z"),
        "b": ("v", "g", "h", "n"),
        "c": ("x", "d", "f", "v"),
        "d": ("s", "e", "f", "c", "x"),
        "e": ("w", "r", "d", "s"),
        "f": ("d", "r", "g", "c", "v"),
        "g": ("f", "t", "h", "b", "v"),
        "h": ("g", "y", "j", "n", "b"),
        "i": ("u", "o", "k", "j"),
        "j": ("h", "u", "k", "m", "n"),
        "k": ("j", "i", "l", "m"),
        "l": ("k", "o", "p"),
        "m": ("n", "j", "k"),
        "n": ("b", "h", "j", "m"),
        "o": ("i", "p", "l", "k"),
        "p": ("o", "l"),
        "q": ("w", "a"),
        "r": ("e", "t", "f", "d"),
        "s": ("a", "w", "d", "x", "z"),
        "t": ("r", "y", "g", "f"),
        "u": ("y", "i", "j", "h"),
        "v": ("c", "f", "g", "b"),
        "w": ("q", "e", "s", "a"),
        "x": ("z", "s", "d", "c"),
        "y": ("t", "u", "h", "g"),
        "z": ("a", "s", "x"),
    }
)

VOWEL_SUBSTITUTIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "a": ("e", "o"),
        "e": ("a", "i"),
        "i": ("e", "y"),
        "o": ("a", "u"),
        "u": ("o", "i"),
    }
)
