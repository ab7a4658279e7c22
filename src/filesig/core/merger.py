"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/merger.py
Folds repository responses back onto signature records.

Every match object becomes its own output row: a copy of the signature with the
object's attributes namespaced as Repository<Key>. A (signature, algorithm) pair with
zero matches, or whose request failed, lands in the no-match partition instead.
Final order: all matched rows, then all no-match rows.
"""

import logging
from typing import Any, Dict, Iterable, List

from filesig.core.models import HashAlgorithm, MergedRecord, RepositoryMatch, SignatureRecord

logger = logging.getLogger(__name__)


class ResultMerger:
    """Two-partition accumulator. Owned by a single aggregator; not thread-safe."""

    def __init__(self):
        self._matched: List[MergedRecord] = []
        self._no_match: List[MergedRecord] = []

    @property
    def matched(self) -> List[MergedRecord]:
        return list(self._matched)

    @property
    def no_match(self) -> List[MergedRecord]:
        return list(self._no_match)

    def add_matches(
            self,
            signature: SignatureRecord,
            algorithm: HashAlgorithm,
            payloads: Iterable[Dict[str, Any]]
    ) -> int:
        """Add one row per payload; an empty payload list counts as no match."""
        added = 0
        for payload in payloads:
            match = RepositoryMatch(
                filename=signature.filename,
                algorithm=algorithm,
                attributes=dict(payload)
            )
            self._matched.append(MergedRecord(signature=signature, match=match))
            added += 1

        if added == 0:
            self.add_no_match(signature)
        return added

    def add_no_match(self, signature: SignatureRecord) -> None:
        self._no_match.append(MergedRecord(signature=signature))

    def results(self) -> List[MergedRecord]:
        logger.debug(f"Merged {len(self._matched)} matched and {len(self._no_match)} unmatched rows")
        return self._matched + self._no_match
