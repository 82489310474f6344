# File: voxredact/features/pii/data/detectors.py
"""
The fixed, ordered detector set.

Order matters: placeholder numbering and first-claim deduplication both follow
this list, so reordering it changes which category wins a shared value.
All patterns use ASCII semantics for \\d, \\s and \\b.
"""
import re
from typing import List, Tuple

from ..domain.interfaces import IPiiDetector


class RegexDetector(IPiiDetector):
    def __init__(self, tag: str, pattern: str, flags: int = 0):
        self.tag = tag
        self.pattern = re.compile(pattern, flags | re.ASCII)

    def find(self, text: str) -> List[str]:
        return [m.group(0) for m in self.pattern.finditer(text)]

    def __repr__(self) -> str:
        return f"RegexDetector({self.tag!r})"


# Capitalized function words that start sentences without being names
COMMON_WORDS = frozenset({
    "The", "And", "Or", "But", "In", "On", "At", "To", "For", "Of", "With",
    "By", "From", "Is", "Are", "Was", "Were", "Been", "Be", "Have", "Has",
    "Had", "Do", "Does", "Did", "Will", "Would", "Should", "Could", "May",
    "Might", "Must", "Can",
})


class PersonNameDetector(IPiiDetector):
    """
    Heuristic: runs of two or more capitalized words.

    Stop-list words at either end of a run are trimmed off ("The Jan Smit"
    yields "Jan Smit"); what remains must still be at least two words.
    """
    tag = "person"
    pattern = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b", re.ASCII)
    _word = re.compile(r"\S+")

    def find(self, text: str) -> List[str]:
        names = []
        for m in self.pattern.finditer(text):
            name = self._trim(m.group(0))
            if name is not None:
                names.append(name)
        return names

    def _trim(self, run: str):
        words: List[Tuple[int, int, str]] = [(w.start(), w.end(), w.group(0)) for w in self._word.finditer(run)]
        while words and words[0][2] in COMMON_WORDS:
            words.pop(0)
        while words and words[-1][2] in COMMON_WORDS:
            words.pop()

        if len(words) < 2:
            return None
        if not all(w[0].isupper() and len(w) > 1 for _, _, w in words):
            return None
        return run[words[0][0]:words[-1][1]]


PHONE = RegexDetector("phone", r"\b(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b")
EMAIL = RegexDetector("email", r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
CREDIT_CARD = RegexDetector("creditCard", r"\b(?:\d{4}[-\s]?){3}\d{4}\b")
SSN = RegexDetector("ssn", r"\b\d{3}-\d{2}-\d{4}\b")
PASSPORT = RegexDetector("passport", r"\b[A-Z]{1,2}\d{6,9}\b")
ADDRESS = RegexDetector(
    "address",
    r"\b\d+\s+[A-Za-z\s]+(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Court|Ct"
    r"|Circle|Cir|Terrace|Ter|Way|Park|Parkway|Pkwy|Place|Pl|Square|Sq|Trail|Trl)\b",
    re.IGNORECASE,
)
# Context-gated: only digit runs followed later on the same line by "account"
BANK_ACCOUNT = RegexDetector("bankAccount", r"\b\d{9,17}\b(?=.*account)", re.IGNORECASE)
HEALTH_INSURANCE_ID = RegexDetector("healthInsuranceId", r"\b[A-Z]{2}\d{10}\b")
DATE_OF_BIRTH = RegexDetector("dateOfBirth", r"\b(?:0[1-9]|1[0-2])[-/](?:0[1-9]|[12]\d|3[01])[-/](?:19|20)\d{2}\b")
IP_ADDRESS = RegexDetector("ipAddress", r"\b(?:[0-9]{1,3}\.){3}[0-9]{1,3}\b")
PERSON = PersonNameDetector()

PATTERN_DETECTORS: Tuple[RegexDetector, ...] = (
    PHONE,
    EMAIL,
    CREDIT_CARD,
    SSN,
    PASSPORT,
    ADDRESS,
    BANK_ACCOUNT,
    HEALTH_INSURANCE_ID,
    DATE_OF_BIRTH,
    IP_ADDRESS,
)

DEFAULT_DETECTORS: Tuple[IPiiDetector, ...] = PATTERN_DETECTORS + (PERSON,)
