"""
Poem records and display options for the practice sheet generator
Loads the upstream poem JSON shape with encoding detection
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import chardet

from grid_layout import MissingPoemError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Author:
    name: str
    dynasty: str = ''
    name_pinyin: Optional[str] = None


@dataclass(frozen=True)
class PoemRecord:
    """Immutable poem as supplied by the data layer"""
    title: str
    author: Author
    content: str
    translation: Optional[str] = None
    title_pinyin: Optional[str] = None
    content_pinyin: Optional[str] = None
    id: Optional[int] = None
    lang: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PoemRecord':
        """Build a record from the camelCase API payload"""
        author = data.get('author') or {}
        if isinstance(author, str):
            author = {'name': author}
        poem_id = data.get('id')
        return cls(
            title=data.get('title') or '',
            author=Author(
                name=author.get('name') or '',
                dynasty=author.get('dynasty') or '',
                name_pinyin=author.get('namePinYin'),
            ),
            content=data.get('content') or '',
            translation=data.get('translation'),
            title_pinyin=data.get('titlePinYin'),
            content_pinyin=data.get('contentPinYin'),
            id=int(poem_id) if poem_id is not None else None,
            lang=data.get('lang'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'lang': self.lang,
            'title': self.title,
            'titlePinYin': self.title_pinyin,
            'author': {
                'name': self.author.name,
                'dynasty': self.author.dynasty,
                'namePinYin': self.author.name_pinyin,
            },
            'content': self.content,
            'contentPinYin': self.content_pinyin,
            'translation': self.translation,
        }


@dataclass(frozen=True)
class DisplayOptions:
    """Toggles chosen by the user for one render"""
    translation: bool = True
    py: bool = False
    border: bool = True


def read_text(path) -> str:
    """
    Read a text file as UTF-8, falling back to chardet's guess.

    CJK legacy encodings such as GBK are detected with low confidence, so
    the guess is used whatever its score. Undecodable bytes raise
    ValueError rather than being dropped.
    """
    raw_data = Path(path).read_bytes()
    try:
        return raw_data.decode('utf-8-sig')
    except UnicodeDecodeError:
        pass

    encoding_result = chardet.detect(raw_data)
    detected_encoding = encoding_result['encoding']
    logger.debug("Detected %s (confidence %.2f) for %s",
                 detected_encoding, encoding_result['confidence'], path)
    if not detected_encoding:
        raise ValueError(f"Could not detect the encoding of {path}")
    try:
        return raw_data.decode(detected_encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise ValueError(f"Could not decode {path} as {detected_encoding}: {e}") from e


def select_poem(payload, poem_id: Optional[int] = None, lang: Optional[str] = None) -> PoemRecord:
    """
    Pick one record from a decoded payload.

    A single object is returned as-is when no identifier is requested.
    Lists are searched by ``id`` and, when given, ``lang``.
    """
    if isinstance(payload, dict):
        records = [payload]
    elif isinstance(payload, list):
        records = payload
    else:
        raise ValueError("Poem file must contain an object or a list of objects")

    if poem_id is None and lang is None:
        if len(records) == 1:
            return PoemRecord.from_dict(records[0])
        raise MissingPoemError(f"{len(records)} poems found, choose one with an id")

    for record in records:
        if poem_id is not None and str(record.get('id')) != str(poem_id):
            continue
        if lang is not None and record.get('lang') not in (None, lang):
            continue
        return PoemRecord.from_dict(record)

    raise MissingPoemError(f"No poem with id={poem_id} lang={lang}")


def load_poem(path, poem_id: Optional[int] = None, lang: Optional[str] = None) -> PoemRecord:
    text = read_text(path).strip()
    if not text:
        raise MissingPoemError(f"Poem file {path} is empty")
    return select_poem(json.loads(text), poem_id=poem_id, lang=lang)
