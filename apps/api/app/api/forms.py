from __future__ import annotations

from typing import Any

from starlette.datastructures import FormData

ARRAY_SUFFIX = "[]"
BLOCKED_KEYS = frozenset({"__proto__", "prototype", "constructor"})


def form_data_to_object(form: FormData) -> dict[str, Any]:
    """Flatten submitted form data into a plain dict.

    Keys ending in ``[]`` lose the suffix and always map to a list, even for a
    single occurrence. A plain key seen more than once is promoted to a list
    on its second occurrence. Values are kept as submitted (``str`` or
    ``UploadFile``). Reserved keys such as ``__proto__`` are dropped.
    """
    obj: dict[str, Any] = {}
    for key, value in form.multi_items():
        is_array_key = key.endswith(ARRAY_SUFFIX)
        clean_key = key[: -len(ARRAY_SUFFIX)] if is_array_key else key

        if clean_key in BLOCKED_KEYS:
            continue

        if clean_key in obj:
            if not isinstance(obj[clean_key], list):
                obj[clean_key] = [obj[clean_key]]
            obj[clean_key].append(value)
        else:
            obj[clean_key] = [value] if is_array_key else value
    return obj
