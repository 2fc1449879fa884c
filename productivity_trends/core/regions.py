"""
USFS administrative regions.

Region numbers arrive as integers from the upstream exports; they are mapped
onto a closed enumeration so that only known regions produce display labels.
"""

from enum import Enum


class Region(Enum):
    """Enumeration of USFS administrative regions (there is no Region 7)."""
    NORTHERN = 1
    ROCKY_MOUNTAIN = 2
    SOUTHWESTERN = 3
    INTERMOUNTAIN = 4
    PACIFIC_SOUTHWEST = 5
    PACIFIC_NORTHWEST = 6
    SOUTHERN = 8
    EASTERN = 9
    ALASKA = 10

    @property
    def label(self) -> str:
        """Short display label, e.g. 'R5'."""
        return f"R{self.value}"

    @property
    def display_name(self) -> str:
        return self.name.replace('_', ' ').title()

    @classmethod
    def from_number(cls, number) -> "Region":
        """
        Look up a region by its number.

        Args:
            number: Region number as int, float (e.g. 5.0) or numeric string

        Returns:
            Region: Matching region

        Raises:
            ValueError: If the number is not a known USFS region
        """
        try:
            as_float = float(number)
        except (TypeError, ValueError):
            raise ValueError(f"Region number is not numeric: {number!r}")

        if not as_float.is_integer():
            raise ValueError(f"Region number is not an integer: {number!r}")

        try:
            return cls(int(as_float))
        except ValueError:
            raise ValueError(f"Unknown USFS region number: {number!r}")


def region_label(number) -> str:
    """Display label for a region number, e.g. 5 -> 'R5'."""
    return Region.from_number(number).label
