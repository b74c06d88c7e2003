from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Union

# "  3: traffic light", "3: 'car'"
_ENTRY = re.compile(r"^\s*(\d+)\s*:\s*(.*?)\s*$")
_TOP_LEVEL_KEY = re.compile(r"^[A-Za-z_][\w-]*\s*:")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def load_class_names(metadata_path: Union[str, Path]) -> List[str]:
    """
    Class names from the `metadata.yaml` exported next to a model:

        names:
          0: person
          1: bicycle

    Indexed by class id; ids missing from the block become `class_<i>`.
    Only the `names:` block is read, so PyYAML is not needed.
    """

    names: Dict[int, str] = {}
    text = Path(metadata_path).read_text(encoding="utf-8")

    block = False
    for line in text.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        if line.strip() == "names:":
            block = True
            continue
        if not block:
            continue
        match = _ENTRY.match(line)
        if match is not None:
            names[int(match.group(1))] = _unquote(match.group(2))
        elif _TOP_LEVEL_KEY.match(line):
            # next top-level key closes the block
            block = False

    if not names:
        return []
    return [names.get(i, f"class_{i}") for i in range(max(names) + 1)]
