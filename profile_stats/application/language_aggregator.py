"""Language histogram merging and ranking."""
import logging
from dataclasses import replace
from typing import AbstractSet, Dict, Iterable, List, Optional, Tuple
from profile_stats.domain.models import Language, LanguageAggregate, LanguageEdge


logger = logging.getLogger(__name__)

LanguageMap = Dict[str, LanguageAggregate]


def merge_languages(
    existing: LanguageMap,
    edges: Iterable[LanguageEdge],
    excluded: AbstractSet[str] = frozenset()
) -> LanguageMap:
    """Merge language edges into a histogram keyed by language name.

    Sizes accumulate and the occurrence count grows by one per edge; the
    colour of the first edge seen for a language is kept. The input map is
    left untouched.

    Args:
        existing: Histogram accumulated so far
        edges: Language edges of one repository page
        excluded: Lower-cased language names to skip

    Returns:
        The updated histogram
    """
    merged = dict(existing)
    for edge in edges:
        if edge.name.lower() in excluded:
            continue
        current = merged.get(edge.name)
        if current is None:
            merged[edge.name] = LanguageAggregate(
                name=edge.name,
                size=edge.size,
                occurrences=1,
                color=edge.color
            )
        else:
            merged[edge.name] = replace(
                current,
                size=current.size + edge.size,
                occurrences=current.occurrences + 1
            )
    return merged


def compute_proportions(languages: LanguageMap) -> List[Language]:
    """Freeze every language with its percentage of the total size.

    Returns an empty list when there is nothing to divide by.
    """
    total_size = sum(language.size for language in languages.values())
    if total_size <= 0:
        return []
    return [
        Language(
            name=language.name,
            size=language.size,
            occurrences=language.occurrences,
            color=language.color,
            proportion=100 * language.size / total_size
        )
        for language in languages.values()
    ]


def finalize_languages(languages: LanguageMap, limit: Optional[int] = None) -> Tuple[Language, ...]:
    """Rank languages by size and keep the top ``limit``.

    Proportions are computed over the full histogram before truncation.
    Equal sizes keep their first-encountered order.

    Args:
        languages: Complete histogram after pagination
        limit: Number of languages to keep, None for all

    Returns:
        Ranked languages, largest first
    """
    ranked = sorted(compute_proportions(languages), key=lambda language: language.size, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    logger.debug(f"Ranked {len(languages)} languages, keeping {len(ranked)}")
    return tuple(ranked)
