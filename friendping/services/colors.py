from __future__ import annotations

import random
from collections.abc import Iterable, Sequence

from friendping.core.config import DEFAULT_COLOR_PALETTE
from friendping.core.errors import PaletteExhaustedError


def _normalize(color: str | None) -> str | None:
    if not isinstance(color, str):
        return None
    cleaned = color.strip().lower()
    return cleaned or None


def free_colors(reserved: Iterable[str | None], palette: Sequence[str] | None = None) -> list[str]:
    """Palette colors not in ``reserved``, in palette order."""
    taken = {c for c in (_normalize(r) for r in reserved) if c is not None}
    out: list[str] = []
    for color in palette or DEFAULT_COLOR_PALETTE:
        normalized = _normalize(color)
        if normalized is None or normalized in taken or normalized in out:
            continue
        out.append(normalized)
    return out


def allocate_color(
    reserved: Iterable[str | None],
    palette: Sequence[str] | None = None,
    rng: random.Random | None = None,
) -> str:
    """Pick a random palette color that is not reserved in the group.

    Raises PaletteExhaustedError when the group already uses every color.
    """
    candidates = free_colors(reserved, palette)
    if not candidates:
        raise PaletteExhaustedError()
    return (rng or random).choice(candidates)
