from typing import Any, Sequence, TypeGuard


def is_str_any_dict(value: Any) -> TypeGuard[dict[str, Any]]:
    if not isinstance(value, dict):
        return False
    return all(isinstance(key, str) for key in value.keys())


def is_file_sequence(value: Any) -> TypeGuard[Sequence[Any]]:
    """True for list-shaped fragment code; plain strings do not count."""
    return isinstance(value, (list, tuple))
