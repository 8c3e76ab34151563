"""
ARIA roles and the DOM elements that carry them natively.

Shared by generators (to pick a root element) and the validator (to accept
an implicit role in place of an explicit ``role`` attribute).
"""

# Role -> element that carries the role natively.
NATIVE_ELEMENTS: dict[str, str] = {
    "article": "article",
    "button": "button",
    "dialog": "dialog",
    "heading": "h2",
    "link": "a",
    "list": "ul",
    "listitem": "li",
    "navigation": "nav",
}

# Elements that take keyboard focus and fire click on Enter/Space by themselves.
NATIVE_FOCUSABLE = frozenset({"button"})

ACTIVATION_KEYS = ("Enter", "Space")
