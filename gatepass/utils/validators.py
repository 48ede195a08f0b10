# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Validation helpers shared by the services."""
import uuid


def is_uuid(value) -> bool:
    """True when value parses as a UUID; anything else can never resolve in the store."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def blank(value) -> bool:
    return value is None or not str(value).strip()
