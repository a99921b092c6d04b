"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Squares are zero-indexed: rank 0 is White's back rank, file 0 is the a-file
BOARD_SIZE = 8

FILE_NAMES = "abcdefgh"


@dataclass(frozen=True, order=True)
class Square:
    rank: int
    file: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (0,0) - (7,7)"""
        file = ord(sq[0]) - ord("a")
        rank = int(sq[1:]) - 1
        return cls(rank, file)

    def to_algebraic(self) -> str:
        return f"{FILE_NAMES[self.file]}{self.rank + 1}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.rank < BOARD_SIZE) and (0 <= self.file < BOARD_SIZE)

    def offset(self, d_rank: int, d_file: int) -> Square:
        """Shifted copy. May fall off the board, so check `is_within_bounds()`"""
        return Square(self.rank + d_rank, self.file + d_file)

    @property
    def color_index(self) -> int:
        """0 or 1: two squares share a color on the board iff their indices match."""
        return (self.rank + self.file) % 2

    def __str__(self) -> str:
        return self.to_algebraic()
