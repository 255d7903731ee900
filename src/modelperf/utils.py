
__all__ = [
    "str_to_bool",
]


def str_to_bool(value: str | bool, default: bool = False) -> bool:
    """
    Convert strings that could be interpreted as booleans to a boolean value,
    with a default fallback.

    Args:
        value (str | bool): input string or boolean value.
        default (bool, optional): Defaults to False.

    Returns:
        bool: boolean interpretation of the input string

    Examples:
        >>> str_to_bool("yes")
        True
        >>> str_to_bool("0")
        False
        >>> str_to_bool("maybe", default=True)
        True
    """
    if isinstance(value, bool):
        return value
    if value.lower() in ("true", "t", "1", "yes", "y"):
        return True
    elif value.lower() in ("false", "f", "0", "no", "n"):
        return False
    else:
        return default
