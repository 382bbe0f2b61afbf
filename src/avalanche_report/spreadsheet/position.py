"""Cell addresses in workbooks.

Addresses are stored zero indexed. The human ``A1`` form uses base 26
column letters where ``A`` is 1, so ``AA1`` is column 26, row 0.
"""

from dataclasses import dataclass

from avalanche_report.spreadsheet.errors import CellPositionParseError


def column_to_letters(column: int) -> str:
    """Convert a zero based column index to its letters, 0 -> A, 26 -> AA."""
    if column < 0:
        raise ValueError(f"column must not be negative, got {column}")
    letters = []
    while column >= 0:
        letters.append(chr(ord('A') + column % 26))
        column = column // 26 - 1
    return ''.join(reversed(letters))

@dataclass(frozen=True, order=True)
class CellPosition:
    """A zero indexed ``(column, row)`` cell address."""
    column: int
    row: int

    @classmethod
    def from_indices(cls, column: int, row: int) -> "CellPosition":
        if column < 0 or row < 0:
            raise ValueError(f"indices must not be negative, got ({column}, {row})")
        return cls(column, row)

    @classmethod
    def from_a1(cls, text: str) -> "CellPosition":
        """Parse an ``A1`` style address, letters are case insensitive."""
        column = 0
        row = 0
        letters = 0
        digits = 0
        for char in text:
            if char.isascii() and char.isalpha():
                if digits:
                    raise CellPositionParseError(text, "column letters after row number")
                column = column * 26 + (ord(char.upper()) - ord('A') + 1)
                letters += 1
            elif char.isascii() and char.isdigit():
                row = row * 10 + int(char)
                digits += 1
            else:
                raise CellPositionParseError(text, f"unexpected character {char!r}")

        if not letters:
            raise CellPositionParseError(text, "missing column letters")
        if not digits:
            raise CellPositionParseError(text, "missing row number")
        if row == 0:
            raise CellPositionParseError(text, "rows start at 1")
        return cls(column - 1, row - 1)

    def offset(self, other: "CellPosition") -> "CellPosition":
        """Position of ``other`` taken relative to this one."""
        return CellPosition(self.column + other.column, self.row + other.row)

    def __str__(self) -> str:
        return f"{column_to_letters(self.column)}{self.row + 1}"

@dataclass(frozen=True, order=True)
class SheetCellPosition:
    """A cell address qualified with its sheet, ``Sheet!A1``."""
    sheet: str
    position: CellPosition

    @classmethod
    def parse(cls, text: str) -> "SheetCellPosition":
        parts = text.split('!')
        if len(parts) != 2:
            raise CellPositionParseError(text, "expected exactly one '!' separating sheet and cell")
        sheet, cell = parts
        if not sheet:
            raise CellPositionParseError(text, "missing sheet name")
        return cls(sheet, CellPosition.from_a1(cell))

    def offset(self, other: CellPosition) -> "SheetCellPosition":
        return SheetCellPosition(self.sheet, self.position.offset(other))

    def __str__(self) -> str:
        return f"{self.sheet}!{self.position}"
