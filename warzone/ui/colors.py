"""Theme colors and color utilities for the UI."""


class WarColors:
    """Dark tactical palette."""

    BG_TOP = "#1b2128"
    BG_BOTTOM = "#0d1014"
    GRID = "#0ea5e9"

    PRIMARY = "#0ea5e9"
    PRIMARY_DARK = "#0369a1"
    DESTRUCTIVE = "#dc2626"
    DESTRUCTIVE_TEXT = "#fef2f2"

    CARD_BG = "rgba(30, 38, 46, 0.90)"
    CARD_BORDER = "rgba(14, 165, 233, 0.35)"
    CARD_LOCKED = "rgba(30, 38, 46, 0.45)"

    TEXT_PRIMARY = "#e5e7eb"
    TEXT_MUTED = "#94a3b8"

    EXPLOSION_CORE = "#fde047"
    EXPLOSION_EDGE = "#ea580c"


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    try:
        a = a.strip()
        b = b.strip()
        if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
            return a
        t = max(0.0, min(1.0, float(t)))
        channels = []
        for i in (1, 3, 5):
            ca, cb = int(a[i:i + 2], 16), int(b[i:i + 2], 16)
            channels.append(int(ca + (cb - ca) * t))
        return "#{:02X}{:02X}{:02X}".format(*channels)
    except ValueError:
        return a


def fade_alpha(elapsed_ms: int, duration_ms: int) -> int:
    """Opacity 0..255 for an effect that fades out linearly over *duration_ms*."""
    if duration_ms <= 0:
        return 0
    remaining = 1.0 - max(0, elapsed_ms) / float(duration_ms)
    return int(round(255 * max(0.0, min(1.0, remaining))))
