from __future__ import annotations

from pathlib import Path
from typing import List, Union


def load_labels(labels_path: Union[str, Path]) -> List[str]:
    """
    Load class labels from a plain `labels.txt`, one label per line.

        person
        bicycle
        car

    Blank lines are skipped and surrounding whitespace is stripped, so the class id of a label is
    its index among the non-blank lines.
    """

    path = Path(labels_path)
    if not path.exists():
        raise FileNotFoundError(f"Labels file not found: {path}")

    labels: List[str] = []
    with open(path, "r", encoding="utf-8-sig") as f:
        for raw in f:
            line = raw.strip()
            if not line:
                continue
            labels.append(line)

    return labels
