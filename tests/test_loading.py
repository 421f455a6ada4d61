from __future__ import annotations

from app.ui.loading import LoadingOptions, render_loading_state, render_page, to_html


def _label(tree):
    return tree.children[1]


def test_full_page_fills_viewport():
    tree = render_loading_state(LoadingOptions(full_page=True))
    assert tree.sx["height"] == "100vh"
    assert tree.sx["width"] == "100%"
    assert _label(tree).props["variant"] == "body1"


def test_inline_defaults_to_200():
    tree = render_loading_state(LoadingOptions())
    assert tree.sx["height"] == 200
    assert _label(tree).props["variant"] == "body2"


def test_explicit_height_is_used_verbatim():
    assert render_loading_state(LoadingOptions(height=320)).sx["height"] == 320
    assert render_loading_state(LoadingOptions(height="50%")).sx["height"] == "50%"


def test_full_page_ignores_height():
    assert render_loading_state(LoadingOptions(full_page=True, height=320)).sx["height"] == "100vh"


def test_text_defaults_and_overrides():
    assert _label(render_loading_state()).children == ["Loading..."]
    assert _label(render_loading_state(LoadingOptions(text="Fetching charts"))).children == ["Fetching charts"]


def test_spinner_size():
    spinner = render_loading_state(LoadingOptions(size=64)).children[0]
    assert spinner.component == "CircularProgress"
    assert spinner.props == {"size": 64, "thickness": 4}


def test_html_escapes_text_and_renders_styles():
    markup = to_html(render_loading_state(LoadingOptions(text="<b>wait</b>")))
    assert "&lt;b&gt;wait&lt;/b&gt;" in markup
    assert "height: 200px" in markup
    assert "flex-direction: column" in markup
    assert "margin-top: 16px" in markup
    assert 'role="progressbar"' in markup


def test_render_page_is_a_document():
    page = render_page(LoadingOptions(full_page=True))
    assert page.startswith("<!DOCTYPE html>")
    assert "height: 100vh" in page
