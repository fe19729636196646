from __future__ import annotations

from collections import defaultdict
from typing import Iterable, TypeVar

from bisnorm.datatypes import AlignedRead, Interval
from bisnorm.types import ChromId

T = TypeVar("T", Interval, AlignedRead)


def chrom_of(item: Interval | AlignedRead) -> ChromId:
    if isinstance(item, AlignedRead):
        return item.interval.chrom
    return item.chrom


def separate_chromosomes(items: Iterable[T]) -> dict[ChromId, list[T]]:
    """Group intervals (or aligned reads) by chromosome id.

    Groups appear in order of each chromosome's first occurrence, not sorted
    by id, and each group keeps the relative input order of its members.
    """
    items_by_chr: dict[ChromId, list[T]] = defaultdict(list)
    for item in items:
        items_by_chr[chrom_of(item)].append(item)
    return dict(items_by_chr)


def partition_by_chromosome(items: Iterable[T]) -> list[list[T]]:
    return list(separate_chromosomes(items).values())
