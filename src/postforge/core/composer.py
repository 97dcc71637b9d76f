"""Post layout composition for the Postforge renderer.

The composer turns a validated :class:`PostContent` record into a complete
HTML document describing a fixed 1080x1080 social-media post.  The document
is assembled as a small tree of typed nodes (:class:`Element` for markup,
:class:`Rule` for styles) and then serialized in one place, so every user
supplied value passes through exactly one escaping function on its way into
the page.

Layer Order (back to front)
---------------------------
1. Background image, cover-fit, centered, dimmed to 70% brightness.
2. Top and bottom gradient scrims (100px each) for text legibility.
3. Logo badge, 100x100, top corner opposite the reading direction.
4. Text row 100px above the bottom edge: ``text01``, the highlighted
   ``focus_text`` pill, then ``text02``.
5. Two decorative diagonal lines in the bottom-right corner.

Escaping Policy
---------------
- Text nodes and attribute values: :func:`html.escape`.
- Values inside CSS strings (``url('...')``): :func:`css_string`.
- Bare CSS tokens (the accent colour): :func:`css_token`, which refuses
  anything able to close a declaration or a ``<style>`` element.

Usage
-----
::

    content = PostContent(
        image_url="https://example.com/a.jpg",
        logo_url="https://example.com/logo.png",
        text01="BREAKING",
        focus_text="NEWS",
        text02="TODAY",
    )
    document = compose_post(content)
    document.html  # -> "<!DOCTYPE html>..."
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field

CANVAS_WIDTH = 1080
CANVAS_HEIGHT = 1080

DEFAULT_DIRECTION = "ltr"
DEFAULT_LANGUAGE = "en"
DEFAULT_FOCUS_COLOR = "#FF4500"

# Hex colours, named colours and functional notation such as rgb(...),
# color-mix(...) or rgb(var(--x)), nested at most one level deep.
# Semicolons, braces, quotes and angle brackets never match.
_CSS_ARGS = r"[0-9a-zA-Z.,%/\s+-]"
_CSS_COLOR_RE = re.compile(
    rf"#[0-9a-fA-F]{{3,8}}|[a-zA-Z]+"
    rf"|[a-zA-Z-]+\((?:{_CSS_ARGS}|[a-zA-Z-]+\({_CSS_ARGS}*\))*\)",
    re.ASCII,
)

_VOID_TAGS = frozenset({"img", "meta", "br", "hr", "link"})


@dataclass(frozen=True)
class PostContent:
    """Normalized description of one post, ready for composition.

    Attributes:
        image_url: Background image URL (opaque, not validated).
        logo_url: Logo image URL (opaque, not validated).
        text01: Plain text shown before the focus text.
        focus_text: Highlighted text rendered as a coloured pill.
        text02: Plain text shown after the focus text.
        direction: Reading direction, ``"ltr"`` or ``"rtl"``.
        language: Locale tag for the document ``lang`` attribute.
        focus_text_color: CSS colour of the pill and the upper accent line.
    """

    image_url: str
    logo_url: str
    text01: str
    focus_text: str
    text02: str
    direction: str = DEFAULT_DIRECTION
    language: str = DEFAULT_LANGUAGE
    focus_text_color: str = DEFAULT_FOCUS_COLOR


@dataclass
class Element:
    """A markup node: tag, CSS classes, attributes, optional text and children."""

    tag: str
    classes: tuple[str, ...] = ()
    attrs: dict[str, str] = field(default_factory=dict)
    text: str | None = None
    children: list[Element] = field(default_factory=list)


@dataclass
class Rule:
    """A single CSS rule: selector plus ordered declarations."""

    selector: str
    declarations: dict[str, str]


@dataclass(frozen=True)
class ComposedDocument:
    """Serialized post document and the pixel size it must be captured at."""

    html: str
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT


# ---------------------------------------------------------------------------
# Escaping.
# ---------------------------------------------------------------------------


def is_css_color(value: str) -> bool:
    """Return ``True`` if *value* is a colour token safe to embed in CSS."""
    return bool(_CSS_COLOR_RE.fullmatch(value.strip()))


def css_token(value: str) -> str:
    """Return *value* for use as a bare CSS token.

    Raises:
        ValueError: If the value could break out of a declaration.
    """
    token = value.strip()
    if not is_css_color(token):
        raise ValueError(f"Unsafe CSS token: {value!r}")
    return token


def css_string(value: str) -> str:
    """Quote *value* as a single-quoted CSS string.

    Quotes and backslashes are backslash-escaped.  Control characters and
    angle brackets become hex escapes, which keeps the text from ending the
    enclosing ``<style>`` element.  Ordinary URLs come out unchanged.
    """
    escaped: list[str] = []
    for ch in value:
        if ch in ("\\", "'", '"'):
            escaped.append("\\" + ch)
        elif ch in "<>" or ord(ch) < 0x20 or ord(ch) == 0x7F:
            escaped.append(f"\\{ord(ch):x} ")
        else:
            escaped.append(ch)
    return "'" + "".join(escaped) + "'"


def css_url(value: str) -> str:
    return f"url({css_string(value)})"


# ---------------------------------------------------------------------------
# Serialization.
# ---------------------------------------------------------------------------


def render_element(element: Element) -> str:
    """Serialize an :class:`Element` tree to HTML, escaping text and attributes."""
    attrs = dict(element.attrs)
    if element.classes:
        attrs["class"] = " ".join(element.classes)
    attr_text = "".join(
        f' {name}="{html.escape(value, quote=True)}"' for name, value in attrs.items()
    )
    if element.tag in _VOID_TAGS:
        return f"<{element.tag}{attr_text}>"

    inner = html.escape(element.text, quote=False) if element.text is not None else ""
    inner += "".join(render_element(child) for child in element.children)
    return f"<{element.tag}{attr_text}>{inner}</{element.tag}>"


def render_stylesheet(rules: list[Rule]) -> str:
    """Serialize CSS rules, one per line."""
    lines = []
    for rule in rules:
        body = " ".join(f"{prop}: {value};" for prop, value in rule.declarations.items())
        lines.append(f"{rule.selector} {{ {body} }}")
    return "\n".join(lines)


def render_document(language: str, direction: str, rules: list[Rule], body: Element) -> str:
    """Serialize a full HTML document with an embedded stylesheet."""
    head = "".join(
        render_element(meta)
        for meta in (
            Element("meta", attrs={"charset": "UTF-8"}),
            Element(
                "meta",
                attrs={"name": "viewport", "content": "width=device-width, initial-scale=1.0"},
            ),
        )
    )
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{html.escape(language, quote=True)}" '
        f'dir="{html.escape(direction, quote=True)}">\n'
        f"<head>{head}<style>\n{render_stylesheet(rules)}\n</style></head>\n"
        f"{render_element(body)}\n"
        "</html>\n"
    )


# ---------------------------------------------------------------------------
# Layout.
# ---------------------------------------------------------------------------


def build_stylesheet(content: PostContent) -> list[Rule]:
    """Return the CSS rules for *content*.

    The logo badge is anchored on the right for ``ltr`` posts and on the left
    for ``rtl`` posts.
    """
    accent = css_token(content.focus_text_color)
    direction = "rtl" if content.direction == "rtl" else "ltr"
    logo_side = "left" if direction == "rtl" else "right"
    text_rules = {
        "color": "white",
        "font-size": "64px",
        "font-weight": "bold",
        "text-shadow": "2px 2px 10px rgba(0, 0, 0, 0.7)",
        "margin": "0 10px",
        "line-height": "1.2",
    }
    line_rules = {
        "width": "350px",
        "height": "8px",
        "margin": "10px 0",
        "transform": "rotate(-220deg)",
    }

    return [
        Rule(
            "body",
            {
                "margin": "0",
                "padding": "0",
                "font-family": "Arial, sans-serif",
                "position": "relative",
            },
        ),
        Rule(
            ".container",
            {
                "position": "relative",
                "width": f"{CANVAS_WIDTH}px",
                "height": f"{CANVAS_HEIGHT}px",
                "overflow": "hidden",
            },
        ),
        Rule(
            ".image",
            {
                "width": "100%",
                "height": "100%",
                "background-image": css_url(content.image_url),
                "background-size": "cover",
                "background-position": "center",
                "filter": "brightness(0.7)",
            },
        ),
        Rule(
            ".overlay-top, .overlay-bottom",
            {"position": "absolute", "left": "0", "right": "0", "height": "100px"},
        ),
        Rule(
            ".overlay-top",
            {"top": "0", "background": "linear-gradient(to bottom, rgba(0, 0, 0, 0.5), transparent)"},
        ),
        Rule(
            ".overlay-bottom",
            {"bottom": "0", "background": "linear-gradient(to top, rgba(0, 0, 0, 0.5), transparent)"},
        ),
        Rule(
            ".logo",
            {
                "position": "absolute",
                "top": "20px",
                logo_side: "20px",
                "width": "100px",
                "height": "100px",
                "background-image": css_url(content.logo_url),
                "background-size": "contain",
                "background-repeat": "no-repeat",
                "background-position": "center",
            },
        ),
        Rule(
            ".text-overlay",
            {
                "position": "absolute",
                "bottom": "100px",
                "left": "50%",
                "transform": "translateX(-50%)",
                "text-align": "center",
                "width": "90%",
                "display": "flex",
                "flex-wrap": "wrap",
                "justify-content": "center",
                "align-items": "center",
                "direction": direction,
            },
        ),
        Rule(".text", text_rules),
        Rule(
            ".focus-text",
            {
                "background-color": accent,
                "color": "white",
                "font-size": "64px",
                "font-weight": "bold",
                "padding": "15px 25px",
                "border-radius": "10px",
                "display": "inline-block",
                "margin": "0 20px",
                "box-shadow": "0 6px 8px rgba(0, 0, 0, 0.2)",
                "text-shadow": "3px 3px 15px rgba(0, 0, 0, 0.8)",
            },
        ),
        Rule(
            ".bottom-right-lines",
            {
                "position": "absolute",
                "bottom": "20px",
                "right": "-45px",
                "display": "flex",
                "flex-direction": "column",
                "align-items": "flex-end",
            },
        ),
        Rule(".line", {**line_rules, "background-color": accent}),
        Rule(".line-2", {**line_rules, "background-color": "#ffffff"}),
    ]


def build_body(content: PostContent) -> Element:
    """Return the ``<body>`` element tree for *content*."""
    return Element(
        "body",
        children=[
            Element(
                "div",
                classes=("container",),
                children=[
                    Element("div", classes=("image",)),
                    Element("div", classes=("overlay-top",)),
                    Element("div", classes=("overlay-bottom",)),
                    Element("div", classes=("logo",)),
                    Element(
                        "div",
                        classes=("text-overlay",),
                        children=[
                            Element("div", classes=("text",), text=content.text01),
                            Element("div", classes=("focus-text",), text=content.focus_text),
                            Element("div", classes=("text",), text=content.text02),
                        ],
                    ),
                    Element(
                        "div",
                        classes=("bottom-right-lines",),
                        children=[
                            Element("div", classes=("line",)),
                            Element("div", classes=("line-2",)),
                        ],
                    ),
                ],
            )
        ],
    )


def compose_post(content: PostContent) -> ComposedDocument:
    """Compose the full 1080x1080 post document for *content*.

    Args:
        content: Normalized post description.

    Returns:
        The serialized document together with its capture dimensions.

    Raises:
        ValueError: If ``focus_text_color`` is not a safe CSS colour token.
    """
    markup = render_document(
        content.language,
        content.direction,
        build_stylesheet(content),
        build_body(content),
    )
    return ComposedDocument(html=markup, width=CANVAS_WIDTH, height=CANVAS_HEIGHT)
