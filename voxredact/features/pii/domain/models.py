# File: voxredact/features/pii/domain/models.py
from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class PiiMatch:
    """
    One distinct sensitive value and the placeholder standing in for it.
    """
    type: str
    value: str
    placeholder: str


@dataclass(frozen=True)
class AnonymizationResult:
    """
    Redacted text plus the placeholder -> original table needed to undo it.
    Every key of `mapping` occurs literally in `anonymized_text`.
    """
    anonymized_text: str
    mapping: Dict[str, str] = field(default_factory=dict)


def make_placeholder(category: str, number: int) -> str:
    return f"<{category} {number}>"
