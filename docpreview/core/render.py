"""Render Tiptap-style document trees to PDF with PyMuPDF."""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import fitz  # PyMuPDF

from docpreview.core.content import extract_text
from docpreview.core.layout import Layout, get_layout

logger = logging.getLogger(__name__)


def wrap_text(text: str, max_width: float, fontname: str, fontsize: float) -> list[str]:
    """Greedy word wrap by measured width; explicit newlines always break."""

    lines: list[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            width = fitz.get_text_length(candidate, fontname=fontname, fontsize=fontsize)
            if width > max_width and current:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    # drop trailing blank produced by a final hard break
    while len(lines) > 1 and not lines[-1]:
        lines.pop()
    return lines


class _Canvas:
    """Tracks the current page and vertical cursor while rendering."""

    def __init__(self, layout: Layout) -> None:
        self.layout = layout
        self.doc = fitz.open()
        self.page = self._new_page()
        self.y = layout.top

    def _new_page(self) -> fitz.Page:
        return self.doc.new_page(width=self.layout.page_width, height=self.layout.page_height)

    def ensure_space(self, height: float) -> None:
        if self.y + height > self.layout.bottom and self.y > self.layout.top:
            self.page = self._new_page()
            self.y = self.layout.top

    def write_lines(
        self,
        lines: list[str],
        *,
        x: float,
        fontname: str,
        fontsize: float,
        line_height: float,
        color: tuple[float, float, float] = (0, 0, 0),
    ) -> None:
        for line in lines:
            self.ensure_space(line_height)
            if line:
                self.page.insert_text(
                    (x, self.y + fontsize),
                    line,
                    fontname=fontname,
                    fontsize=fontsize,
                    color=color,
                )
            self.y += line_height

    def vertical_rule(self, x: float, y0: float, y1: float, *, width: float, color: tuple[float, ...]) -> None:
        self.page.draw_line((x, y0), (x, y1), color=color, width=width)

    def skip(self, amount: float) -> None:
        self.y += amount

    def finish(self) -> bytes:
        try:
            return self.doc.tobytes(garbage=3, deflate=True)
        finally:
            self.doc.close()


def _regular(layout: Layout) -> str:
    return layout.section("fonts")["regular"]


def _render_paragraph(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float) -> None:
    style = canvas.layout.section("paragraph")
    fontname = _regular(canvas.layout)
    lines = wrap_text(extract_text(node), width, fontname, style["size"])
    canvas.write_lines(lines, x=x, fontname=fontname, fontsize=style["size"], line_height=style["line_height"])
    canvas.skip(style["spacing_after"])


def _render_heading(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float) -> None:
    style = canvas.layout.section("heading")
    attrs = node.get("attrs") or {}
    try:
        level = int(attrs.get("level") or 1)
    except (TypeError, ValueError):
        level = 1
    size = canvas.layout.heading_size(level)
    fontname = canvas.layout.section("fonts")["bold"]
    lines = wrap_text(extract_text(node), width, fontname, size)
    canvas.write_lines(lines, x=x, fontname=fontname, fontsize=size, line_height=size + style["line_gap"])
    canvas.skip(style["spacing_after"])


def _render_list(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float, *, ordered: bool) -> None:
    paragraph = canvas.layout.section("paragraph")
    bullet = canvas.layout.section("list")["bullet"]
    fontname = _regular(canvas.layout)
    attrs = node.get("attrs") or {}
    number = 0
    if ordered:
        try:
            number = int(attrs.get("start") or 1)
        except (TypeError, ValueError):
            number = 1

    for item in node.get("content") or []:
        if not isinstance(item, Mapping) or item.get("type") != "listItem":
            continue
        prefix = f"{number}. " if ordered else f"{bullet} "
        number += 1
        lines = wrap_text(prefix + extract_text(item), width, fontname, paragraph["size"])
        canvas.write_lines(lines, x=x, fontname=fontname, fontsize=paragraph["size"], line_height=paragraph["line_height"])
    canvas.skip(canvas.layout.section("list")["spacing_after"])


def _render_bullet_list(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float) -> None:
    _render_list(canvas, node, x, width, ordered=False)


def _render_ordered_list(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float) -> None:
    _render_list(canvas, node, x, width, ordered=True)


def _render_list_item(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float) -> None:
    paragraph = canvas.layout.section("paragraph")
    fontname = _regular(canvas.layout)
    lines = wrap_text(extract_text(node), width, fontname, paragraph["size"])
    canvas.write_lines(lines, x=x, fontname=fontname, fontsize=paragraph["size"], line_height=paragraph["line_height"])


def _render_blockquote(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float) -> None:
    style = canvas.layout.section("blockquote")
    paragraph = canvas.layout.section("paragraph")
    fontname = _regular(canvas.layout)
    indent = style["indent"]
    lines = wrap_text(extract_text(node), width - indent, fontname, paragraph["size"])

    # draw the rule per line so it follows the text across page breaks
    for line in lines:
        canvas.ensure_space(paragraph["line_height"])
        top = canvas.y
        canvas.write_lines(
            [line],
            x=x + indent,
            fontname=fontname,
            fontsize=paragraph["size"],
            line_height=paragraph["line_height"],
            color=tuple(style["text_color"]),
        )
        canvas.vertical_rule(
            x + indent - style["rule_offset"],
            top,
            canvas.y,
            width=style["rule_width"],
            color=tuple(style["rule_color"]),
        )
    canvas.skip(style["spacing_after"])


def _render_horizontal_rule(canvas: _Canvas, node: Mapping[str, Any], x: float, width: float) -> None:
    style = canvas.layout.section("horizontal_rule")
    canvas.ensure_space(style["spacing"])
    y = canvas.y + style["spacing"] / 2
    canvas.page.draw_line((x, y), (x + width, y), color=tuple(style["color"]), width=style["width"])
    canvas.skip(style["spacing"])


NodeRenderer = Callable[[_Canvas, Mapping[str, Any], float, float], None]

RENDERERS: dict[str, NodeRenderer] = {
    "paragraph": _render_paragraph,
    "heading": _render_heading,
    "bulletList": _render_bullet_list,
    "orderedList": _render_ordered_list,
    "listItem": _render_list_item,
    "blockquote": _render_blockquote,
    "horizontalRule": _render_horizontal_rule,
}


def render_pdf(tree: Mapping[str, Any], layout: Layout | None = None) -> bytes:
    """Render the top-level nodes of ``tree`` and return the PDF bytes."""

    layout = layout or get_layout()
    canvas = _Canvas(layout)
    skipped = 0
    for node in tree.get("content") or []:
        renderer = RENDERERS.get(node.get("type")) if isinstance(node, Mapping) else None
        if renderer is None:
            skipped += 1
            continue
        renderer(canvas, node, layout.left, layout.text_width)

    if skipped:
        logger.debug("Skipped %d unsupported nodes while rendering", skipped)
    return canvas.finish()


def page_count(pdf_bytes: bytes) -> int:
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        return doc.page_count


__all__ = ["RENDERERS", "page_count", "render_pdf", "wrap_text"]
