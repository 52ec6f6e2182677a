"""
Recital domain models.

This module defines the Composition and Recital records built from the
Recital Planning worksheet, plus the date stamp helpers used to turn Excel
serial dates into calendar dates.
"""

from datetime import date as calendar_date
from datetime import datetime, timedelta, timezone
from typing import Any, List, Sequence, Union

from openpyxl.utils.datetime import to_excel
from pydantic import BaseModel, Field, field_serializer

# Weekday names in datetime.weekday() order
DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December"
]

# Excel serial of 1970-01-01 (includes the 1900 leap year correction)
UNIX_EPOCH_SERIAL = 25569
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# [number, letter, id, title, composer, length, tab, cc]
COMPOSITION_ROW_WIDTH = 8
TITLE_COLUMN = 3

NO_VENUE = "None"


def _text(value: Any) -> str:
    """Return a cell value as text, with empty cells as ''."""
    if value is None:
        return ''
    return str(value)


def _whole(value: Union[int, float]) -> Union[int, float]:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def to_date_stamp(value: Any) -> Union[int, float]:
    """
    Normalize a date cell to an Excel serial day count.

    openpyxl returns datetime objects for date-formatted cells and numbers
    for cells formatted as General, so both are accepted.

    Raises:
        ValueError: If the value is not a date or a number
    """
    if isinstance(value, bool):
        raise ValueError(f"Unrecognized date stamp: {value!r}")
    if isinstance(value, (datetime, calendar_date)):
        return _whole(to_excel(value))
    if isinstance(value, (int, float)):
        return _whole(value)
    try:
        return _whole(float(str(value).strip()))
    except ValueError:
        raise ValueError(f"Unrecognized date stamp: {value!r}")


def date_stamp_to_date(date_stamp: Union[int, float]) -> datetime:
    """
    Convert an Excel date stamp to a UTC datetime.

    Raises:
        ValueError: If the stamp is outside the dates Python can represent
    """
    try:
        return UNIX_EPOCH + timedelta(days=date_stamp - UNIX_EPOCH_SERIAL)
    except OverflowError as e:
        raise ValueError(f"Date stamp out of range: {date_stamp!r}") from e


def has_venue(venue: str) -> bool:
    """Venues that are blank or the literal 'None' are not printed."""
    return venue != '' and venue != NO_VENUE


class Composition(BaseModel):
    """One piece on a recital program."""

    number: str = ''
    letter: str = ''
    id: int
    title: str
    composer: str = ''
    length: Union[int, float] = 0
    tab: Any = ''
    cc: Any = ''

    class Config:
        frozen = True

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Composition":
        """
        Build a composition from a Recital Planning row.

        Example row: ["1.", "a.", 87, "Carillon de Westminster", "Louis Vierne", 7, "25", "23A"]
        """
        cells = list(row)[:COMPOSITION_ROW_WIDTH]
        cells += [None] * (COMPOSITION_ROW_WIDTH - len(cells))
        number, letter, composition_id, title, composer, length, tab, cc = cells

        return cls(
            number=_text(number),
            letter=_text(letter),
            id=composition_id,
            title=_text(title),
            composer=_text(composer),
            length=length if length not in (None, '') else 0,
            tab=tab if tab is not None else '',
            cc=cc if cc is not None else ''
        )


def is_program_row(row: Sequence[Any]) -> bool:
    """A planning row holds a composition only when its title is filled in."""
    return len(row) > TITLE_COLUMN and _text(row[TITLE_COLUMN]) != ''


def normalize_letters(compositions: List[Composition]) -> List[Composition]:
    """
    Drop "a." designations where the letter group has only one piece.

    A letter "a." is cleared when it is the last piece on the recital or
    when the next piece also starts a new group with "a.". Decisions use
    the letters as read, so the pass never feeds into itself.
    """
    normalized = []
    last_index = len(compositions) - 1

    for index, composition in enumerate(compositions):
        if composition.letter == 'a.' and (
            index == last_index or compositions[index + 1].letter == 'a.'
        ):
            composition = composition.model_copy(update={'letter': ''})
        normalized.append(composition)

    return normalized


class Recital(BaseModel):
    """
    A scheduled performance with its program.

    Field aliases are the keys of the workflow log JSON, which other tools
    read back, so their names and order must not change.
    """

    date_stamp: Union[int, float] = Field(..., alias='dateStamp')
    date: datetime
    date_string: str = Field(..., alias='dateString')
    performer: str
    venue12: str = ''
    venue2: str = ''
    repertoire: List[Composition] = Field(default_factory=list)
    program: str = ''

    class Config:
        frozen = True
        populate_by_name = True

    @classmethod
    def create(
        cls,
        date_stamp: Any,
        performer: str,
        venue12: Any,
        venue2: Any,
        rows: Sequence[Sequence[Any]]
    ) -> "Recital":
        """
        Build a recital from its planning ranges.

        Args:
            date_stamp: Value of the recital date cell
            performer: Performer name from the workflow options
            venue12: Value of the 12:00 venue cell
            venue2: Value of the 2:00 venue cell
            rows: Repertoire block, one row per program slot

        Returns:
            Recital with normalized letters and its rendered program
        """
        stamp = to_date_stamp(date_stamp)
        recital_date = date_stamp_to_date(stamp)

        compositions = [Composition.from_row(row) for row in rows if is_program_row(row)]

        recital = cls(
            date_stamp=stamp,
            date=recital_date,
            date_string=recital_date.strftime('%Y-%m-%d'),
            performer=_text(performer),
            venue12=_text(venue12),
            venue2=_text(venue2),
            repertoire=normalize_letters(compositions)
        )
        return recital.model_copy(update={'program': recital.program_to_string()})

    @field_serializer('date', when_used='json')
    def _serialize_date(self, value: datetime) -> str:
        # Matches JavaScript's Date.toISOString()
        return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"

    def long_date(self) -> str:
        """Ex: Monday, November 4, 2019"""
        return f"{DAYS[self.date.weekday()]}, {MONTHS[self.date.month - 1]} {self.date.day}, {self.date.year}"

    def short_date(self) -> str:
        """Month/day without zero padding, ex: 11/4"""
        return f"{self.date.month}/{self.date.day}"

    def program_to_string(self) -> str:
        """
        Render the complete program.

        Example:

            Brian Mathias
            Monday, November 4, 2019
            12:00 - Tabernacle
            2:00 - Conference Center

            1. Venite! - John Leavitt
            2. a. Flute Solo - Thomas Arne
               b. My Shepherd Will Supply My Need - Dale Wood
            3. Carillon de Westminster - Louis Vierne
        """
        lines = [self.performer, self.long_date()]

        if has_venue(self.venue12):
            lines.append(f"12:00 - {self.venue12}")

        if has_venue(self.venue2):
            lines.append(f"2:00 - {self.venue2}")

        lines.append('')

        for composition in self.repertoire:
            line = f"{composition.number} " if composition.number != '' else '   '

            if composition.letter != '':
                line += f"{composition.letter} "

            line += f"{composition.title} - {composition.composer}"
            lines.append(line)

        return ''.join(f"{line}\n" for line in lines)

    def to_log_dict(self) -> dict:
        """Serialize with the workflow log's field names."""
        return self.model_dump(mode='json', by_alias=True)
