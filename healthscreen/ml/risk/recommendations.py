from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Tuple


def build_recommendations(
    label: str,
    record: Mapping[str, Any],
    base: Mapping[str, Sequence[str]],
    rules: Sequence[Tuple[str, str]],
) -> List[str]:
    """Base advice for the label, then one line per triggered flag.

    Rules are applied in their declared order, not the record's order, and
    no deduplication is done: two flags mapping to near-identical text both
    show up.
    """
    out = list(base[label])
    for flag, text in rules:
        if record.get(flag, False):
            out.append(text)
    return out
