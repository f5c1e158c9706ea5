"""Interval string to seconds conversion."""


def interval_seconds(value) -> float:
    """Convert '3s', '1m', '1h' or a bare number to seconds."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower()
    try:
        if text.endswith("ms"):
            return int(text[:-2]) / 1000.0
        if text.endswith("s"):
            return float(text[:-1])
        if text.endswith("m"):
            return float(text[:-1]) * 60
        if text.endswith("h"):
            return float(text[:-1]) * 3600
        return float(text)
    except ValueError:
        raise ValueError(f"Unsupported interval: {value}") from None
