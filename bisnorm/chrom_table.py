from __future__ import annotations

import logging

from bisnorm.errors import ChromosomeLookupError
from bisnorm.types import ChrName, ChromId

logger = logging.getLogger(__name__)


class ChromTable:
    """Registry interning chromosome names to small dense integer ids.

    Intervals only store the id; the table is built once per run and handed
    to every component that needs to go from ids back to names. Ids are
    allocated in first-seen order starting at 0 and are never reassigned.

    Mutation is not synchronized. To share a table between threads, intern
    every chromosome up front and `freeze()` it, after which unseen names
    raise instead of allocating.
    """

    def __init__(self, names: list[ChrName] | None = None) -> None:
        self._name_to_id: dict[ChrName, ChromId] = {}
        self._id_to_name: list[ChrName] = []
        self._frozen = False
        for name in names or []:
            self.assign(name)

    def __len__(self) -> int:
        return len(self._id_to_name)

    def __contains__(self, name: object) -> bool:
        return name in self._name_to_id

    def __repr__(self) -> str:
        return f"ChromTable({self._id_to_name!r})"

    @property
    def names(self) -> list[ChrName]:
        return list(self._id_to_name)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True
        logger.debug(f"Froze chromosome table with {len(self)} entries.")

    def get(self, name: ChrName) -> ChromId | None:
        return self._name_to_id.get(name)

    def assign(self, name: ChrName) -> ChromId:
        chrom_id = self._name_to_id.get(name)
        if chrom_id is not None:
            return chrom_id
        if self._frozen:
            raise ChromosomeLookupError(
                name, f"Cannot intern {name!r}: chromosome table is frozen"
            )
        chrom_id = len(self._id_to_name)
        self._name_to_id[name] = chrom_id
        self._id_to_name.append(name)
        return chrom_id

    def lookup(self, chrom_id: ChromId) -> ChrName:
        if not 0 <= chrom_id < len(self._id_to_name):
            raise ChromosomeLookupError(chrom_id)
        return self._id_to_name[chrom_id]
