"""
Interactive sheet size selector for poem practice sheets
Every format keeps the 12-column grid and derives the cell size from the page
"""
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table
from rich import box

from grid_layout import GRID_COLUMNS


class SheetSizeSelector:
    """Sheet size selector with pre-computed grid dimensions"""

    # Cells are square; a grid row is GRID_COLUMNS cells wide
    PAGE_FORMATS = {
        'a4': {
            'name': 'A4',
            'width': 210,
            'height': 297,
            'grid': {'columns': GRID_COLUMNS, 'rows': 17},
            'margins': {'top': 15, 'bottom': 15, 'left': 15, 'right': 15},
            'cell_size': 15,
            'description': 'Standard single-page practice sheet',
        },
        'a4_compact': {
            'name': 'A4 Compact',
            'width': 210,
            'height': 297,
            'grid': {'columns': GRID_COLUMNS, 'rows': 20},
            'margins': {'top': 18, 'bottom': 18, 'left': 27, 'right': 27},
            'cell_size': 13,
            'description': 'Smaller cells, room for longer translations',
        },
        'letter': {
            'name': 'Letter',
            'width': 216,
            'height': 279,
            'grid': {'columns': GRID_COLUMNS, 'rows': 16},
            'margins': {'top': 14, 'bottom': 14, 'left': 18, 'right': 18},
            'cell_size': 15,
            'description': 'US Letter practice sheet',
        },
        'b5': {
            'name': 'B5',
            'width': 176,
            'height': 250,
            'grid': {'columns': GRID_COLUMNS, 'rows': 18},
            'margins': {'top': 14, 'bottom': 14, 'left': 16, 'right': 16},
            'cell_size': 12,
            'description': 'Exercise book size',
        },
        'custom': {
            'name': 'Custom',
            'width': 0,
            'height': 0,
            'grid': {'columns': GRID_COLUMNS, 'rows': 0},
            'margins': {'top': 0, 'bottom': 0, 'left': 0, 'right': 0},
            'cell_size': 0,
            'description': 'Custom user-defined sheet',
        },
    }

    COMMON_SIZES = [
        PAGE_FORMATS['a4'],
        PAGE_FORMATS['a4_compact'],
        PAGE_FORMATS['letter'],
        PAGE_FORMATS['b5'],
        PAGE_FORMATS['custom'],
    ]

    DEFAULT_FORMAT = 'a4'

    _FORMAT_LOOKUP = {name.lower(): fmt for name, fmt in PAGE_FORMATS.items()}

    def __init__(self, console=None):
        self.console = console or Console()

    @classmethod
    def get_format(cls, format_name):
        """Case-insensitive format lookup, returns a copy or None"""
        fmt = cls._FORMAT_LOOKUP.get(format_name.lower())
        if fmt is None:
            return None
        return {**fmt, 'grid': dict(fmt['grid']), 'margins': dict(fmt['margins'])}

    @staticmethod
    def calculate_cell_size(page_width, margins, columns=GRID_COLUMNS):
        """Largest whole-millimetre square cell that fits the usable width"""
        text_width = page_width - margins['left'] - margins['right']
        if text_width <= 0 or columns <= 0:
            raise ValueError(f"No usable width for {columns} columns on a {page_width}mm page")
        return max(1, int(text_width // columns))

    @classmethod
    def calculate_grid_dimensions(cls, page_width, page_height, margins, columns=GRID_COLUMNS):
        """
        Grid dimensions for a custom sheet.

        Columns are fixed; rows are whatever fits under the chosen cell size.
        """
        cell_size = cls.calculate_cell_size(page_width, margins, columns)
        text_height = page_height - margins['top'] - margins['bottom']
        rows = max(1, int(text_height // cell_size))
        return {
            'columns': columns,
            'rows': rows,
            'cells_per_page': columns * rows,
            'cell_size': cell_size,
        }

    def show_sizes(self):
        table = Table(title="Practice Sheet Formats", box=box.ROUNDED, expand=False)

        table.add_column("#", style="cyan", width=3, justify="right")
        table.add_column("Format", style="green", width=12)
        table.add_column("Size", style="blue", width=12, justify="center")
        table.add_column("Grid", style="magenta", width=10, justify="center")
        table.add_column("Cell", style="magenta", width=6, justify="center")
        table.add_column("Description", style="yellow")

        for i, size in enumerate(self.COMMON_SIZES, 1):
            if size["name"] == "Custom":
                size_info = grid_info = cell_info = "Custom"
            else:
                size_info = f"{size['width']}×{size['height']}mm"
                grid_info = f"{size['grid']['columns']}×{size['grid']['rows']}"
                cell_info = f"{size['cell_size']}mm"
            table.add_row(str(i), size["name"], size_info, grid_info, cell_info, size["description"])

        self.console.print(table)

    def select_sheet_size(self):
        """Prompt for a format; custom sizes are derived from page and margins"""
        self.show_sizes()
        self.console.print("\n[bold cyan]Select a sheet format:[/bold cyan]")

        valid_choices = [str(i) for i in range(1, len(self.COMMON_SIZES) + 1)]
        choice = Prompt.ask("Enter selection", choices=valid_choices, default="1", console=self.console)

        selected = self.COMMON_SIZES[int(choice) - 1]

        if selected["name"] == "Custom":
            self.console.print("\n[bold cyan]Custom Sheet Dimensions:[/bold cyan]")
            width = int(Prompt.ask("Width (mm)", default="210", console=self.console))
            height = int(Prompt.ask("Height (mm)", default="297", console=self.console))

            self.console.print("\n[bold cyan]Margins:[/bold cyan]")
            top = int(Prompt.ask("Top margin (mm)", default="15", console=self.console))
            bottom = int(Prompt.ask("Bottom margin (mm)", default="15", console=self.console))
            left = int(Prompt.ask("Left margin (mm)", default="15", console=self.console))
            right = int(Prompt.ask("Right margin (mm)", default="15", console=self.console))

            margins = {'top': top, 'bottom': bottom, 'left': left, 'right': right}
            grid = self.calculate_grid_dimensions(width, height, margins)

            custom_size = {
                'name': 'Custom',
                'width': width,
                'height': height,
                'grid': {'columns': grid['columns'], 'rows': grid['rows']},
                'margins': margins,
                'cell_size': grid['cell_size'],
                'description': f'Custom {width}×{height}mm sheet',
            }
            self.console.print(f"\n[bold green]✓ Custom format created:[/bold green] {width}×{height}mm")
            self.console.print(f"[bold green]✓ Cell:[/bold green] {grid['cell_size']}mm, {grid['rows']} rows")
            return custom_size

        self.console.print(f"\n[bold green]✓ Selected:[/bold green] {selected['name']} ({selected['width']}×{selected['height']}mm)")
        return self.get_format(selected['name'].lower().replace(' ', '_'))
