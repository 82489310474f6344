# File: voxredact/features/pii/service/redactor.py
import logging
import re
from typing import Dict, List, Optional, Sequence

from ..data.detectors import DEFAULT_DETECTORS, RegexDetector
from ..domain.interfaces import IPiiDetector
from ..domain.models import AnonymizationResult, PiiMatch, make_placeholder

logger = logging.getLogger(__name__)


class PiiRedactor:
    """
    Reversible PII substitution.

    `anonymize` swaps each distinct sensitive value for a placeholder such as
    `<email 1>`; `reverse` restores them from the mapping alone, so the
    original transcript is never needed to undo redaction.
    """

    def __init__(self, detectors: Optional[Sequence[IPiiDetector]] = None):
        self.detectors = tuple(detectors) if detectors is not None else DEFAULT_DETECTORS

    def detect(self, text: str) -> List[PiiMatch]:
        """
        Distinct values in detector order. A case-insensitive value belongs to
        the first detector that reported it; each category numbers its own
        new values from 1.
        """
        matches = []
        claimed = set()
        counters: Dict[str, int] = {}

        for detector in self.detectors:
            for value in detector.find(text):
                key = value.lower()
                if key in claimed:
                    continue
                claimed.add(key)
                counters[detector.tag] = counters.get(detector.tag, 0) + 1
                matches.append(PiiMatch(
                    type=detector.tag,
                    value=value,
                    placeholder=make_placeholder(detector.tag, counters[detector.tag]),
                ))
        return matches

    def anonymize(self, text: str) -> AnonymizationResult:
        matches = self.detect(text)

        # Replace from the end of the text backwards so earlier values are
        # still intact when their turn comes.
        lowered = text.lower()
        ordered = sorted(
            matches,
            key=lambda m: (lowered.rfind(m.value.lower()), len(m.value)),
            reverse=True,
        )

        anonymized = text
        mapping: Dict[str, str] = {}
        for match in ordered:
            pattern = _boundary_pattern(match.value)
            anonymized, count = pattern.subn(lambda _m, p=match.placeholder: p, anonymized)
            if count:
                mapping[match.placeholder] = match.value

        logger.info(f"Anonymized {len(mapping)} distinct PII values ({len(matches)} detected)")
        return AnonymizationResult(anonymized_text=anonymized, mapping=mapping)

    def reverse(self, text: str, mapping: Dict[str, str]) -> str:
        """Literal placeholder -> value substitution. No-op for an empty mapping."""
        result = text
        for placeholder, original in mapping.items():
            result = result.replace(placeholder, original)
        return result

    def stats(self, text: str) -> Dict[str, int]:
        """Raw per-category match counts for this redactor's regex detectors; zeros omitted."""
        counts = {}
        for detector in self.detectors:
            if not isinstance(detector, RegexDetector):
                continue
            found = len(detector.find(text))
            if found:
                counts[detector.tag] = found
        return counts


def _boundary_pattern(value: str) -> "re.Pattern":
    # \b only makes sense next to a word character; "(555) 123-4567" starts
    # with "(" and would never match behind a space otherwise.
    prefix = r"\b" if re.match(r"\w", value[0], re.ASCII) else ""
    suffix = r"\b" if re.match(r"\w", value[-1], re.ASCII) else ""
    return re.compile(prefix + re.escape(value) + suffix, re.IGNORECASE | re.ASCII)
