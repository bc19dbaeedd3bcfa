def strip_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_label(value: str | None) -> str | None:
    value = strip_text(value)
    return value.lower() if value else None
