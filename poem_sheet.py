#!/usr/bin/env python3
"""
Poem Practice Sheet Generator
Lays a classical poem onto a 12-column grid of square cells and writes a
printable DOCX, with optional pinyin guide rows and a paginated translation
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from docx import Document
from docx.enum.section import WD_ORIENTATION
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.shared import Mm, Pt, RGBColor
from rich import box
from rich.console import Console
from rich.progress import Progress, BarColumn, TextColumn, TaskProgressColumn
from rich.table import Table

from grid_layout import (
    LineOverflowError,
    MissingPoemError,
    NoContentError,
    compose_layout,
)
from poem_data import DisplayOptions, load_poem
from sheet_helpers import (
    clear_row_borders,
    configure_row_height,
    configure_sheet_cell,
    configure_sheet_table,
)
from sizes import SheetSizeSelector

logger = logging.getLogger(__name__)

PLACEHOLDER_MESSAGE = "选择诗词"
PINYIN_COLOR = (115, 115, 115)


class SheetDocumentBuilder:
    """DOCX builder for poem practice sheets"""

    DEFAULT_FONT = 'KaiTi'
    PINYIN_FONT = 'Times New Roman'

    def __init__(self, font_name=None, page_format=None, header_label=None):
        self.doc = Document()
        self.font_name = font_name or self.DEFAULT_FONT
        self.page_format = page_format or SheetSizeSelector.get_format(SheetSizeSelector.DEFAULT_FORMAT)
        self.header_label = header_label

        self.cell_size = self.page_format['cell_size']
        if not self.cell_size:
            self.cell_size = SheetSizeSelector.calculate_cell_size(
                self.page_format['width'], self.page_format['margins'],
                self.page_format['grid']['columns'],
            )
        self.setup_page_layout()

    @property
    def font_size_points(self):
        return round(Mm(self.cell_size).pt * 0.7, 1)

    @property
    def pinyin_font_size_points(self):
        return max(6, round(self.font_size_points * 0.35, 1))

    def setup_page_layout(self):
        section = self.doc.sections[0]
        section.page_width = Mm(self.page_format['width'])
        section.page_height = Mm(self.page_format['height'])
        section.orientation = WD_ORIENTATION.PORTRAIT

        margins = self.page_format['margins']
        section.top_margin = Mm(margins['top'])
        section.bottom_margin = Mm(margins['bottom'])
        section.left_margin = Mm(margins['left'])
        section.right_margin = Mm(margins['right'])
        logger.debug("Sheet %s: %sx%smm, %smm cells",
                     self.page_format['name'], self.page_format['width'],
                     self.page_format['height'], self.cell_size)

    def _new_table(self, row_count, columns, border):
        table = self.doc.add_table(rows=row_count, cols=columns)
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        configure_sheet_table(table, Mm(self.cell_size), border=border)
        return table

    def _fill_row(self, row, cells, height, hidden=False, pinyin=False, border=True):
        configure_row_height(row, height)
        if pinyin:
            # Guide rows keep only the rule that closes the cell row above
            clear_row_borders(row, keep_top=border)
        for cell, value in zip(row.cells, cells):
            configure_sheet_cell(
                cell,
                value,
                self.pinyin_font_size_points if pinyin else self.font_size_points,
                self.PINYIN_FONT if pinyin else self.font_name,
                hidden=hidden,
                color=PINYIN_COLOR if pinyin else None,
            )

    def _validate_layout(self, layout):
        """Every row must be exactly as wide as the grid"""
        for kind, _align, cells, _visible in layout.rows():
            if kind == 'header':
                continue
            if len(cells) != layout.columns:
                raise ValueError(
                    f"{kind} row has {len(cells)} cells, expected {layout.columns}"
                )

    def build(self, layout, progress_callback=None):
        """
        Write the composed layout into the document.

        Pinyin rows keep their height when hidden so toggling them never
        moves the character rows.
        """
        self._validate_layout(layout)

        cell_height = Mm(self.cell_size)
        pinyin_height = Mm(self.cell_size * 0.6)
        total = len(layout.lines) + len(layout.translation_rows)
        done = 0

        poem_table = self._new_table(len(layout.lines) * 2, layout.columns, layout.show_borders)
        for index, composed in enumerate(layout.lines):
            self._fill_row(poem_table.rows[index * 2], composed.phonetic_row, pinyin_height,
                           hidden=not layout.show_phonetics, pinyin=True,
                           border=layout.show_borders)
            self._fill_row(poem_table.rows[index * 2 + 1], composed.row, cell_height)
            done += 1
            if progress_callback:
                progress_callback(done, total)

        if layout.translation_header:
            paragraph = self.doc.add_paragraph()
            paragraph.paragraph_format.space_before = Pt(12)
            run = paragraph.add_run(layout.translation_header)
            run.font.name = self.font_name
            run.font.size = Pt(self.font_size_points)
            if self.header_label:
                label = paragraph.add_run(f"    {self.header_label}")
                label.font.size = Pt(self.pinyin_font_size_points)
                label.font.color.rgb = RGBColor(163, 163, 163)

            translation_table = self._new_table(len(layout.translation_rows), layout.columns,
                                                layout.show_borders)
            for row, cells in zip(translation_table.rows, layout.translation_rows):
                self._fill_row(row, cells, cell_height)
                done += 1
                if progress_callback:
                    progress_callback(done, total)

        return self.doc

    def save(self, output_path):
        self.doc.save(str(output_path))


def render_preview(layout, console=None):
    """Print the sheet as a rich table, one grid cell per column"""
    console = console or Console()
    table = Table(
        show_header=False,
        box=box.SQUARE if layout.show_borders else None,
        show_lines=layout.show_borders,
        padding=(0, 0),
    )
    for _ in range(layout.columns):
        table.add_column(justify="center", min_width=4)

    for kind, _align, cells, visible in layout.rows():
        if kind == 'header':
            values = [f"[bold]{cells[0]}[/bold]"] + [""] * (layout.columns - 1)
        elif kind == 'phonetic':
            values = [f"[dim]{c}[/dim]" if visible else "" for c in cells]
        else:
            values = list(cells)
        table.add_row(*values)

    console.print(table)
    return table


def export_grid_metadata_json(layout, output_path=None):
    """Export composed rows as JSON"""
    metadata = [
        {'kind': kind, 'align': align, 'cells': list(cells), 'visible': visible}
        for kind, align, cells, visible in layout.rows()
    ]
    json_str = json.dumps(metadata, ensure_ascii=False, indent=2)
    if output_path:
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(json_str)
    return json_str


def sheet_height_mm(layout, cell_size):
    """Printed height of the composed rows, pinyin rows included"""
    height = len(layout.lines) * cell_size * 1.6
    if layout.translation_header:
        height += cell_size * 1.5 + len(layout.translation_rows) * cell_size
    return height


def build_parser():
    parser = argparse.ArgumentParser(description="Classical poem practice sheet generator")
    parser.add_argument("input", nargs="?", help="Poem JSON file (one record or a list)")
    parser.add_argument("--id", type=int, help="Poem identifier when the file holds several")
    parser.add_argument("--lang", help="Locale tag of the poem record")
    parser.add_argument("-o", "--output", help="Output DOCX file")
    parser.add_argument("--json", help="Export grid rows as JSON to file")
    parser.add_argument("--format", default=SheetSizeSelector.DEFAULT_FORMAT,
                        help="Sheet format (a4, a4_compact, letter, b5, custom)")
    parser.add_argument("--font", default=SheetDocumentBuilder.DEFAULT_FONT,
                        help="Font used for the character cells")
    parser.add_argument("--label", help="Text printed beside the translation header")
    parser.add_argument("--no-translation", action="store_true", help="Leave out the translation")
    parser.add_argument("--pinyin", action="store_true", help="Show pinyin above each character")
    parser.add_argument("--no-border", action="store_true", help="Do not draw cell borders")
    parser.add_argument("--preview", action="store_true", help="Print the grid to the terminal")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def show_placeholder(console, reason):
    console.print(f"[bold red]{reason}[/bold red]")
    console.print(f"[yellow]{PLACEHOLDER_MESSAGE}: pass a poem file, and --id when it holds several poems.[/yellow]")
    sys.exit(1)


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='[%(levelname)s] %(message)s')
    console = Console()

    console.print("[bold yellow]Poem Practice Sheet Generator[/bold yellow]")
    console.print()

    if not args.input:
        show_placeholder(console, "No poem file specified.")

    input_path = Path(args.input)
    if not input_path.exists():
        show_placeholder(console, f"Error: Poem file '{input_path}' not found.")

    try:
        poem = load_poem(input_path, poem_id=args.id, lang=args.lang)
    except MissingPoemError as e:
        show_placeholder(console, str(e))
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error reading poem file: {e}[/bold red]")
        sys.exit(1)

    if args.format.lower() == 'custom':
        page_format = SheetSizeSelector(console=console).select_sheet_size()
    else:
        page_format = SheetSizeSelector.get_format(args.format)
        if page_format is None:
            console.print(f"[bold red]Error: Unknown sheet format '{args.format}'.[/bold red]")
            sys.exit(1)

    opts = DisplayOptions(
        translation=not args.no_translation,
        py=args.pinyin,
        border=not args.no_border,
    )

    try:
        layout = compose_layout(poem, opts, columns=page_format['grid']['columns'])
    except NoContentError as e:
        show_placeholder(console, str(e))
    except LineOverflowError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        sys.exit(1)

    console.print("[bold cyan]Poem Analysis:[/bold cyan]")
    console.print(f"  [bold]Title:[/bold] {poem.title}")
    console.print(f"  [bold]Author:[/bold] {layout.lines[1].line.text}")
    console.print(f"  [bold]Lines:[/bold] {len(layout.lines) - 2}")
    console.print(f"  [bold]Translation rows:[/bold] {len(layout.translation_rows)}")
    for warning in layout.warnings:
        logger.warning(warning)

    needed_mm = sheet_height_mm(layout, page_format['cell_size'])
    usable_mm = page_format['height'] - page_format['margins']['top'] - page_format['margins']['bottom']
    if needed_mm > usable_mm:
        logger.info("Sheet needs %.0fmm of %smm, content will run onto a second page", needed_mm, usable_mm)

    builder = SheetDocumentBuilder(font_name=args.font, page_format=page_format,
                                   header_label=args.label)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Building sheet...", total=len(layout.lines) + len(layout.translation_rows))

        def progress_callback(current, total):
            progress.update(task, completed=current, description=f"Building sheet... row {current}/{total}")

        builder.build(layout, progress_callback=progress_callback)

        if args.output:
            output_path = Path(args.output)
        else:
            output_path = input_path.with_name(f"{input_path.stem}_{page_format['name'].replace(' ', '_')}.docx")
        builder.save(output_path)

    if args.preview:
        render_preview(layout, console=console)

    console.print()
    console.print(f"[bold green]✓ DOCX file saved:[/bold green] {output_path}")

    if args.json:
        export_grid_metadata_json(layout, args.json)
        console.print(f"[bold green]✓ Grid JSON saved:[/bold green] {args.json}")

    return 0


if __name__ == "__main__":
    main()
