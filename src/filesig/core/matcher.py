"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/matcher.py
Compares computed signatures against locally supplied reference data.

MATCH RULES
-----------
  • Reference lookup is by filename. Equality is case-sensitive by default; signature
    filenames are always lowercase, so reference files should be too. Pass
    case_sensitive=False to fold both sides.
  • Several reference records with the same filename: the first in input order wins,
    and every later duplicate is logged as a warning.
  • Per algorithm: Matched / Mismatched when the reference supplies a non-empty digest
    (hex compared case-insensitively), otherwise Missing.
"""

import logging
from typing import Dict, Iterable, List, Optional

from filesig.core.config import SignatureConfig
from filesig.core.models import (
    HashAlgorithm, MatchedRecord, MatchResult, MatchState, ReferenceRecord, SignatureRecord)

logger = logging.getLogger(__name__)


class ReferenceMatcher:
    def __init__(
            self,
            missing_placeholder: str = SignatureConfig.DEFAULT_MISSING_PLACEHOLDER,
            case_sensitive: bool = True
    ):
        self.missing_placeholder = missing_placeholder
        self.case_sensitive = case_sensitive

    def _key(self, filename: str) -> str:
        return filename if self.case_sensitive else filename.lower()

    def index_references(self, references: Iterable[ReferenceRecord]) -> Dict[str, ReferenceRecord]:
        """Map filename -> first reference record with that filename."""
        index: Dict[str, ReferenceRecord] = {}
        for reference in references:
            key = self._key(reference.filename)
            if key in index:
                logger.warning(f"Duplicate reference entry for '{reference.filename}' ignored; first entry wins")
                continue
            index[key] = reference
        return index

    @staticmethod
    def compare(
            signature: SignatureRecord,
            reference: Optional[ReferenceRecord],
            algorithm: HashAlgorithm
    ) -> MatchResult:
        """Tri-state comparison of one algorithm's digest."""
        if reference is None or not reference.supplies(algorithm):
            return MatchResult(MatchState.MISSING)
        actual = signature.get_digest(algorithm)
        if not actual:
            return MatchResult(MatchState.MISSING)
        expected = reference.get_digest(algorithm).strip()
        if expected.upper() == actual.strip().upper():
            return MatchResult(MatchState.MATCHED)
        return MatchResult(MatchState.MISMATCHED)

    def match(
            self,
            signatures: Iterable[SignatureRecord],
            references: Iterable[ReferenceRecord]
    ) -> List[MatchedRecord]:
        """One MatchedRecord per signature, in input order."""
        index = self.index_references(references)
        results = []
        unmatched = 0
        for signature in signatures:
            reference = index.get(self._key(signature.filename))
            if reference is None:
                unmatched += 1
            matches = {
                algorithm: self.compare(signature, reference, algorithm)
                for algorithm in HashAlgorithm.get_all()
            }
            results.append(MatchedRecord(
                signature=signature,
                matches=matches,
                missing_placeholder=self.missing_placeholder
            ))

        if unmatched:
            logger.info(f"{unmatched} of {len(results)} signatures have no reference entry")
        return results

    @staticmethod
    def template() -> ReferenceRecord:
        """Empty-schema reference record for discovering the expected columns."""
        return ReferenceRecord.empty_template()
