import logging
from typing import Optional, Sequence

from learning_tree.schemas import LearningNode

logger = logging.getLogger(__name__)

EMPTY_ROOT_NAME = "Root"
MERGED_ROOT_NAME = "Materi Pembelajaran"
SECTION_NAME = "Bagian {number}"


def merge_trees(trees: Sequence[Optional[LearningNode]]) -> LearningNode:
    """
    Combine per-chunk trees into one hierarchy.

    Purely structural: each chunk with children becomes a "Bagian N"
    section (N is the 1-based chunk position), a childless named tree is
    attached as-is, anything else is skipped. No deduplication.
    """
    if len(trees) == 0:
        return LearningNode(name=EMPTY_ROOT_NAME, children=[])
    if len(trees) == 1:
        return trees[0] if trees[0] is not None else LearningNode(name=EMPTY_ROOT_NAME, children=[])

    merged = LearningNode(name=MERGED_ROOT_NAME, children=[])

    for index, tree in enumerate(trees):
        if tree is None:
            logger.debug(f"[MERGE] Skipping empty tree at position {index + 1}")
            continue
        if tree.children:
            merged.children.append(
                LearningNode(name=SECTION_NAME.format(number=index + 1), children=tree.children)
            )
        elif tree.name:
            merged.children.append(tree)

    return merged
