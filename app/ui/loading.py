"""Loading indicator: a spinner plus a label, full-page or inline.

`render_loading_state` is a pure function of `LoadingOptions` returning a small
component tree; `to_html` turns that tree into markup.
"""
from __future__ import annotations

import html
import re
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

__all__ = [
    "DEFAULT_HEIGHT",
    "FULL_PAGE_HEIGHT",
    "LoadingOptions",
    "Node",
    "render_loading_state",
    "render_page",
    "to_html",
]

DEFAULT_HEIGHT = 200
FULL_PAGE_HEIGHT = "100vh"
SPINNER_THICKNESS = 4
SPACING_PX = 8


class LoadingOptions(BaseModel):
    """Caller-supplied display options for one render."""

    text: str = "Loading..."
    size: int = Field(default=40, gt=0)
    full_page: bool = False
    height: Optional[Union[int, str]] = None


class Node(BaseModel):
    """One element of the rendered tree."""

    component: str
    props: dict[str, Any] = Field(default_factory=dict)
    sx: dict[str, Any] = Field(default_factory=dict)
    children: list[Union["Node", str]] = Field(default_factory=list)


Node.model_rebuild()


def render_loading_state(options: LoadingOptions | None = None) -> Node:
    """Build the component tree for the given options (no side effects)."""
    opts = options or LoadingOptions()
    if opts.full_page:
        height: Union[int, str] = FULL_PAGE_HEIGHT
        variant = "body1"
    else:
        height = opts.height if opts.height else DEFAULT_HEIGHT
        variant = "body2"
    return Node(
        component="Box",
        sx={
            "display": "flex",
            "flexDirection": "column",
            "alignItems": "center",
            "justifyContent": "center",
            "height": height,
            "width": "100%",
        },
        children=[
            Node(component="CircularProgress", props={"size": opts.size, "thickness": SPINNER_THICKNESS}),
            Node(component="Typography", props={"variant": variant}, sx={"mt": 2}, children=[opts.text]),
        ],
    )


# ------------------------
# HTML serialization
# ------------------------

_SPACING_KEYS = {"mt": "margin-top", "mb": "margin-bottom", "ml": "margin-left", "mr": "margin-right"}
_PX_KEYS = {"height", "width"}


def _kebab(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


def _css(sx: dict[str, Any]) -> str:
    parts: list[str] = []
    for key, value in sx.items():
        if key in _SPACING_KEYS:
            parts.append(f"{_SPACING_KEYS[key]}: {value * SPACING_PX}px")
        elif key in _PX_KEYS and isinstance(value, (int, float)):
            parts.append(f"{key}: {value}px")
        else:
            parts.append(f"{_kebab(key)}: {value}")
    return "; ".join(parts)


def _spinner_css(size: int, thickness: int) -> str:
    return (
        f"width: {size}px; height: {size}px; border: {thickness}px solid #e0e0e0; "
        f"border-top-color: #1976d2; border-radius: 50%; animation: spin 1s linear infinite"
    )


def to_html(node: Union[Node, str]) -> str:
    """Serialize a rendered tree into escaped HTML with inline styles."""
    if isinstance(node, str):
        return html.escape(node)
    inner = "".join(to_html(c) for c in node.children)
    if node.component == "CircularProgress":
        style = _spinner_css(node.props.get("size", 40), node.props.get("thickness", SPINNER_THICKNESS))
        return f'<div class="spinner" role="progressbar" style="{html.escape(style)}"></div>'
    if node.component == "Typography":
        variant = html.escape(str(node.props.get("variant", "body1")))
        return f'<p class="{variant}" style="{html.escape(_css(node.sx))}">{inner}</p>'
    return f'<div style="{html.escape(_css(node.sx))}">{inner}</div>'


def render_page(options: LoadingOptions | None = None) -> str:
    """Wrap the indicator in a minimal standalone HTML document."""
    body = to_html(render_loading_state(options))
    return (
        "<!DOCTYPE html><html lang=\"en\"><head><meta charset=\"utf-8\" />"
        "<style>@keyframes spin { to { transform: rotate(360deg); } } body { margin: 0; }</style>"
        f"</head><body>{body}</body></html>"
    )
