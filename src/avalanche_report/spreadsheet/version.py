"""Template version numbers."""

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Version:
    """A ``major.minor.patch`` version of the forecast template."""
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse ``"a.b.c"``, raising ``ValueError`` for anything else."""
        parts = text.strip().split('.')
        if len(parts) != 3:
            raise ValueError(f"expected 3 version segments, found {len(parts)} in {text!r}")
        if not all(part.isascii() and part.isdigit() for part in parts):
            raise ValueError(f"version segments must be non-negative integers: {text!r}")
        return cls(*(int(part) for part in parts))

    def is_compatible(self, other: "Version") -> bool:
        """Whether both versions share the same major and minor number."""
        return (self.major, self.minor) == (other.major, other.minor)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"
