"""RGBA colours with floating-point channels."""

from __future__ import annotations

from dataclasses import dataclass


def clamp_value(val: float, low: float, high: float) -> float:
    """Limit ``val`` to the closed range ``[low, high]``."""
    if val < low:
        return low
    if val > high:
        return high
    return val


@dataclass(frozen=True)
class Color:
    """An immutable RGBA colour; channels are nominally in ``[0, 1]``."""

    red: float
    green: float
    blue: float
    alpha: float

    def luminance(self) -> float:
        """Relative luminance using the Rec. 709 weights (alpha ignored)."""
        return 0.2126 * self.red + 0.7152 * self.green + 0.0722 * self.blue

    def clamped(self, low: float, high: float) -> Color:
        """Take the absolute value of every channel and limit it to ``[low, high]``."""
        return Color(
            *(
                clamp_value(abs(channel), low, high)
                for channel in (self.red, self.green, self.blue, self.alpha)
            )
        )

    def opaque(self) -> Color:
        """The same colour with full alpha."""
        return Color(self.red, self.green, self.blue, 1.0)

    def __mul__(self, other: object) -> Color:
        if isinstance(other, Color):
            return Color(
                other.red * self.red,
                other.green * self.green,
                other.blue * self.blue,
                other.alpha * self.alpha,
            )
        if isinstance(other, (int, float)):
            return Color(
                other * self.red,
                other * self.green,
                other * self.blue,
                other * self.alpha,
            )
        return NotImplemented

    def __truediv__(self, f: object) -> Color:
        if isinstance(f, (int, float)):
            return Color(self.red / f, self.green / f, self.blue / f, self.alpha / f)
        return NotImplemented

    def __add__(self, other: object) -> Color:
        if isinstance(other, Color):
            return Color(
                self.red + other.red,
                self.green + other.green,
                self.blue + other.blue,
                self.alpha + other.alpha,
            )
        if isinstance(other, (int, float)):
            return Color(
                self.red + other,
                self.green + other,
                self.blue + other,
                self.alpha + other,
            )
        return NotImplemented