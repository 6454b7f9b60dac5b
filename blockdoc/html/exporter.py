"""Render block trees, inline content and table content to HTML."""

from __future__ import annotations

from typing import Iterable, Sequence

from blockdoc.model.blocks import (
    Block,
    InlineContent,
    Link,
    StyledText,
    TableContent,
    merge_runs,
)
from blockdoc.schema.defaults import default_schema
from blockdoc.schema.registry import BlockSpec, Schema
from blockdoc.schema.templates import data_attribute, escape_attr, escape_text, format_attributes

GROUP_OPEN = '<div class="bn-block-group" data-node-type="blockGroup">'
INLINE_CLASS = "bn-inline-content"


class HTMLExporter:
    """Exports blocks in internal (exact) or external (simplified) HTML.

    Internal HTML keeps the container/content/group wrappers together with
    ids and every non-default prop, so ``parse_html`` restores the exact
    tree. External HTML keeps only semantic tags for other applications.
    """

    def __init__(self, schema: Schema | None = None) -> None:
        self.schema = schema or default_schema()

    def export_blocks(self, blocks: Sequence[Block], *, simplify_blocks: bool = True) -> str:
        """Render ``blocks`` to HTML.

        Args:
            blocks: Top-level blocks to render, children included.
            simplify_blocks: When True, collapse the editor's wrapper markup to
                semantic tags (external HTML). When False, keep the wrappers
                so the output round-trips through ``parse_html``.

        Raises:
            StructuralError: If a block does not match its schema entry.
        """

        for block in blocks:
            self.schema.validate(block)
        if simplify_blocks:
            return self._external_blocks(blocks)
        return self._internal_group(blocks)

    def export_inline_content(self, content: Iterable[InlineContent]) -> str:
        """Render inline content without any block wrapper."""

        items = merge_runs(content)
        self.schema.check_inline_content(items)
        return "".join(self._inline(item) for item in items)

    def export_table_content(self, table: TableContent) -> str:
        """Render table content as a bare ``<table>``."""

        padded = table.padded()
        for row in padded.rows:
            for cell in row:
                self.schema.check_inline_content(cell)
        return f"<table><tbody>{self._table_rows(padded)}</tbody></table>"

    # Internal ---------------------------------------------------------

    def _internal_group(self, blocks: Sequence[Block]) -> str:
        return GROUP_OPEN + "".join(self._internal_block(block) for block in blocks) + "</div>"

    def _internal_block(self, block: Block) -> str:
        spec = self.schema.spec(block.type)
        attributes: dict[str, object] = {"data-content-type": block.type}
        for name, prop in spec.props.items():
            value = block.props.get(name, prop.default)
            if value != prop.default:
                attributes[data_attribute(name)] = _attribute_value(value)

        content_html = self._internal_content(spec, block)
        children_html = self._internal_group(block.children) if block.children else ""
        return (
            f'<div class="bn-block" data-node-type="blockContainer"'
            f' data-id="{escape_attr(block.id)}">'
            f'<div class="bn-block-content"{format_attributes(attributes)}>'
            f"{content_html}</div>{children_html}</div>"
        )

    def _internal_content(self, spec: BlockSpec, block: Block) -> str:
        if spec.content == "inline":
            tag = spec.template.inline_tag(block.props)
            inner = self.export_inline_content(block.content or ())  # type: ignore[arg-type]
            return f'<{tag} class="{INLINE_CLASS}">{inner}</{tag}>'
        if spec.content == "table":
            rows = self._table_rows(block.content)  # type: ignore[arg-type]
            return f'<table class="{INLINE_CLASS}"><tbody>{rows}</tbody></table>'
        return spec.template.render(block.props, "")

    # External ---------------------------------------------------------

    def _external_blocks(self, blocks: Sequence[Block]) -> str:
        parts: list[str] = []
        index = 0
        while index < len(blocks):
            block = blocks[index]
            spec = self.schema.spec(block.type)
            if spec.is_list_item:
                items: list[str] = []
                while index < len(blocks) and blocks[index].type == block.type:
                    items.append(self._external_block(blocks[index]))
                    index += 1
                list_tag = spec.template.list_tag
                parts.append(f"<{list_tag}>{''.join(items)}</{list_tag}>")
                continue
            parts.append(self._external_block(block))
            # Children of non-list blocks follow as siblings.
            parts.append(self._external_blocks(block.children))
            index += 1
        return "".join(parts)

    def _external_block(self, block: Block) -> str:
        spec = self.schema.spec(block.type)
        if spec.content == "inline":
            inner = self.export_inline_content(block.content or ())  # type: ignore[arg-type]
        elif spec.content == "table":
            inner = self._table_rows(block.content)  # type: ignore[arg-type]
        else:
            inner = ""
        children_html = self._external_blocks(block.children) if spec.is_list_item else ""
        return spec.template.render(block.props, inner, children_html)

    # Shared -----------------------------------------------------------

    def _table_rows(self, table: TableContent) -> str:
        rows = []
        for row in table.rows:
            cells = "".join(
                f"<td>{''.join(self._inline(item) for item in merge_runs(cell))}</td>"
                for cell in row
            )
            rows.append(f"<tr>{cells}</tr>")
        return "".join(rows)

    def _inline(self, item: InlineContent) -> str:
        if isinstance(item, Link):
            inner = "".join(self._run(run) for run in item.content)
            return f'<a href="{escape_attr(item.href)}">{inner}</a>'
        return self._run(item)

    def _run(self, run: StyledText) -> str:
        html = escape_text(run.text).replace("\n", "<br>")
        # Wrap innermost first so the first style in canonical order ends up outside.
        for style in reversed(self.schema.sorted_styles(run.styles)):
            style_spec = self.schema.style_spec(style.type)
            html = f"{style_spec.opening_tag(style)}{html}{style_spec.closing_tag()}"
        return html


def _attribute_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def blocks_to_html(
    blocks: Sequence[Block], schema: Schema | None = None, *, simplify_blocks: bool = True
) -> str:
    """Convenience wrapper around ``HTMLExporter.export_blocks``."""

    return HTMLExporter(schema).export_blocks(blocks, simplify_blocks=simplify_blocks)


__all__ = ["HTMLExporter", "blocks_to_html"]
