from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..models import ActionItem, ContainerItem, InfoItem, ScreenItem


@dataclass
class SnapshotDiff:
    changed: bool
    summary: str
    score: Optional[float] = None


def structural_signature(items: Sequence[ScreenItem]) -> Tuple[tuple, ...]:
    """Id-independent shape of a snapshot.

    Ids are replaced by positions in the flat sequence, so two builds of the
    same page compare equal even when their ids differ.
    """

    position = {item.id: idx for idx, item in enumerate(items)}
    signature = []
    for item in items:
        parent = position.get(item.parent_id) if item.parent_id is not None else None
        entry: tuple = (item.type, item.tag_name, item.text_content, parent)
        if isinstance(item, ContainerItem):
            entry += (tuple(position.get(child) for child in item.child_ids),)
        elif isinstance(item, ActionItem):
            entry += (
                tuple(kind.value for kind in item.possible_interactions),
                tuple((opt.value, opt.text) for opt in item.select_options),
            )
        elif isinstance(item, InfoItem):
            entry += (item.alt,)
        signature.append(entry)
    return tuple(signature)


def _kind_counts(items: Sequence[ScreenItem]) -> Counter:
    return Counter((item.type, item.tag_name) for item in items)


def compute_snapshot_diff(
    prev_items: Optional[Sequence[ScreenItem]], new_items: Sequence[ScreenItem]
) -> Tuple[str, Optional[float]]:
    """
    Compare two snapshots and return a human-friendly summary and a heuristic score.

    The score ranges from 0 to 1, where higher values indicate more substantial change.
    """

    if not prev_items:
        return "Initial state", 1.0

    if structural_signature(prev_items) == structural_signature(new_items):
        return "Minor or no structural change", 0.0

    prev_counts = _kind_counts(prev_items)
    new_counts = _kind_counts(new_items)

    length_ratio = abs(len(new_items) - len(prev_items)) / max(len(new_items), len(prev_items), 1)

    kind_change_ratio = 0.0
    for key in set(prev_counts) | set(new_counts):
        denominator = max(prev_counts[key], new_counts[key], 1)
        kind_change_ratio = max(kind_change_ratio, abs(prev_counts[key] - new_counts[key]) / denominator)

    prev_texts = Counter(item.text_content for item in prev_items if item.text_content)
    new_texts = Counter(item.text_content for item in new_items if item.text_content)
    text_total = max(sum(prev_texts.values()), sum(new_texts.values()), 1)
    text_ratio = sum(((prev_texts - new_texts) + (new_texts - prev_texts)).values()) / (2 * text_total)

    score = min(1.0, max(length_ratio, kind_change_ratio, text_ratio, 0.01))

    if score > 0.3:
        summary = "New section or dialog likely appeared"
    elif score > 0.1:
        summary = "Notable interface changes detected"
    else:
        summary = "Minor content change"

    return summary, score


def diff_snapshots(prev_items: Optional[Sequence[ScreenItem]], new_items: Sequence[ScreenItem]) -> SnapshotDiff:
    summary, score = compute_snapshot_diff(prev_items, new_items)
    return SnapshotDiff(changed=bool(score and score > 0.0), summary=summary, score=score)
