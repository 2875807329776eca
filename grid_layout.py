"""
Grid layout engine for poem practice sheets
Converts a poem record into fixed-width rows of square cells
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

# Number of square cells in every grid row
GRID_COLUMNS = 12

ALIGN_LEFT = 'left'
ALIGN_RIGHT = 'right'
ALIGN_CENTER = 'center'
ALIGNMENTS = frozenset({ALIGN_LEFT, ALIGN_RIGHT, ALIGN_CENTER})

CLAUSE_PUNCTUATION = '。！？，；'
PINYIN_LINE_SEPARATOR = '.'

TRANSLATION_HEADER = '译文'
REGULATED_VERSE_WARNING = '律诗不适合开启拼音，不信你试试！'

GridRow = Tuple[str, ...]
PhoneticRow = Tuple[str, ...]


class PoemLayoutError(Exception):
    """Base exception for layout failures"""


class NoContentError(PoemLayoutError):
    """Raised when the poem body has no punctuated clause to lay out"""


class MissingPoemError(PoemLayoutError, LookupError):
    """Raised when an identifier resolves to no poem record"""


class LineOverflowError(PoemLayoutError, ValueError):
    """Raised when a line holds more units than the grid has columns"""

    def __init__(self, line, columns):
        self.line = line
        self.columns = columns
        super().__init__(
            f"Line too long for grid: {len(line)} > {columns} columns ({''.join(line)!r})"
        )


class PoemTextProcessor:
    """Clause segmentation with cached patterns"""

    _newline_pattern = re.compile(r'[\r\n]')
    _clause_pattern = re.compile(
        f'[^{CLAUSE_PUNCTUATION}]+[{CLAUSE_PUNCTUATION}]+'
    )

    @classmethod
    def strip_newlines(cls, text):
        return cls._newline_pattern.sub('', text or '')

    @classmethod
    def segment_content(cls, content):
        """
        Split poem content into punctuation-terminated clauses.

        Newlines are dropped first so line breaks never create rows.
        An empty list means there is nothing to render.
        """
        return cls._clause_pattern.findall(cls.strip_newlines(content))

    @staticmethod
    def split_pinyin_lines(content_pinyin):
        """Body phonetics use a period separator, never CJK punctuation"""
        if not content_pinyin:
            return []
        return content_pinyin.split(PINYIN_LINE_SEPARATOR)


def segment_content(content: str) -> List[str]:
    return PoemTextProcessor.segment_content(content)


def _check_align(align):
    if align not in ALIGNMENTS:
        raise ValueError(f"Unknown alignment: {align!r}")


def row_offset(length: int, align: str = ALIGN_CENTER, columns: int = GRID_COLUMNS) -> int:
    """
    Number of empty cells placed before a line of ``length`` units.

    Shared by the character and phonetic formatters so that a token always
    sits in the same column as its character.
    """
    _check_align(align)
    if align == ALIGN_LEFT:
        return 0
    if align == ALIGN_RIGHT:
        return columns - length
    # Odd remainders leave the extra empty cell on the right
    return (columns - length) // 2


def _place(units: Sequence[str], align: str, columns: int) -> Tuple[str, ...]:
    if len(units) > columns:
        raise LineOverflowError(units, columns)
    offset = row_offset(len(units), align, columns)
    cells = [''] * columns
    cells[offset:offset + len(units)] = units
    return tuple(cells)


def format_row(text: str, align: str = ALIGN_CENTER, columns: int = GRID_COLUMNS) -> GridRow:
    """Lay one text line into a row of ``columns`` single-character cells"""
    return _place(list(text), align, columns)


def format_phonetic_row(
    tokens: Union[str, Sequence[str], None],
    align: str = ALIGN_CENTER,
    columns: int = GRID_COLUMNS,
) -> PhoneticRow:
    """
    Lay transliteration tokens into a row aligned with the character row.

    ``tokens`` may be the raw whitespace separated string or a sequence of
    syllables. Slot ``i`` holds ``tokens[i - offset]`` when in range.
    """
    if tokens is None:
        tokens = []
    elif isinstance(tokens, str):
        tokens = tokens.split()
    return _place(list(tokens), align, columns)


def paginate_translation(translation: Optional[str], columns: int = GRID_COLUMNS) -> List[GridRow]:
    """Cut translation prose into consecutive left-aligned rows"""
    text = PoemTextProcessor.strip_newlines(translation)
    return [
        format_row(text[start:start + columns], ALIGN_LEFT, columns)
        for start in range(0, len(text), columns)
    ]


@dataclass(frozen=True)
class LogicalLine:
    """One unit of poem text paired with its transliteration"""
    text: str
    phonetics: Tuple[str, ...] = ()
    align: str = ALIGN_CENTER
    kind: str = 'body'


@dataclass(frozen=True)
class ComposedLine:
    line: LogicalLine
    row: GridRow
    phonetic_row: PhoneticRow


@dataclass(frozen=True)
class SheetLayout:
    """Fully computed practice sheet, independent of any output medium"""
    columns: int
    lines: Tuple[ComposedLine, ...]
    translation_rows: Tuple[GridRow, ...] = ()
    translation_header: Optional[str] = None
    show_phonetics: bool = False
    show_borders: bool = True
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def rows(self) -> Iterator[Tuple[str, str, Tuple[str, ...], bool]]:
        """
        Yield ``(kind, align, cells, visible)`` in print order.

        Phonetic rows are always yielded; ``visible`` carries the display
        option so hiding them never shifts the character rows.
        """
        for composed in self.lines:
            yield 'phonetic', composed.line.align, composed.phonetic_row, self.show_phonetics
            yield composed.line.kind, composed.line.align, composed.row, True
        if self.translation_header:
            yield 'header', ALIGN_LEFT, (self.translation_header,), True
        for row in self.translation_rows:
            yield 'translation', ALIGN_LEFT, row, True

    @property
    def row_count(self):
        return sum(1 for _ in self.rows())


def author_label(author) -> str:
    if author.dynasty:
        return f"{author.dynasty}·{author.name}"
    return author.name


def build_logical_lines(poem) -> List[LogicalLine]:
    """
    Build the fixed ``[title, author, clause...]`` sequence.

    Alignment and phonetics are picked by position here, once, and then
    travel with the line.
    """
    clauses = segment_content(poem.content)
    if not clauses:
        raise NoContentError(f"Poem {poem.title!r} has no punctuated content")

    body_pinyin = PoemTextProcessor.split_pinyin_lines(poem.content_pinyin)
    texts = [poem.title, author_label(poem.author)] + clauses
    pinyin = [poem.title_pinyin, poem.author.name_pinyin] + body_pinyin

    lines = []
    for index, text in enumerate(texts):
        raw = pinyin[index] if index < len(pinyin) else None
        tokens = tuple((raw or '').split())
        if index == 0:
            lines.append(LogicalLine(text, tokens, ALIGN_CENTER, 'title'))
        elif index == 1:
            lines.append(LogicalLine(text, tokens, ALIGN_RIGHT, 'author'))
        else:
            lines.append(LogicalLine(text, tokens, ALIGN_CENTER, 'body'))
    return lines


def compose_layout(poem, opts, columns: int = GRID_COLUMNS) -> SheetLayout:
    """Compose the whole sheet for ``poem`` under display options ``opts``"""
    lines = build_logical_lines(poem)
    composed = tuple(
        ComposedLine(
            line=line,
            row=format_row(line.text, line.align, columns),
            phonetic_row=format_phonetic_row(line.phonetics, line.align, columns),
        )
        for line in lines
    )

    warnings = []
    clause_count = sum(1 for line in lines if line.kind == 'body')
    if clause_count > 2:
        logger.debug("Poem %r has %d clauses, phonetics not advised", poem.title, clause_count)
        warnings.append(REGULATED_VERSE_WARNING)

    translation_rows = ()
    header = None
    if opts.translation and poem.translation:
        translation_rows = tuple(paginate_translation(poem.translation, columns))
        if translation_rows:
            header = TRANSLATION_HEADER

    logger.debug(
        "Composed %r: %d lines, %d translation rows",
        poem.title, len(composed), len(translation_rows),
    )
    return SheetLayout(
        columns=columns,
        lines=composed,
        translation_rows=translation_rows,
        translation_header=header,
        show_phonetics=opts.py,
        show_borders=opts.border,
        warnings=tuple(warnings),
    )
