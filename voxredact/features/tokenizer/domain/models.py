# File: voxredact/features/tokenizer/domain/models.py
"""
Validated view of a HuggingFace-style `tokenizer.json`.

Parsing is strict: a structural defect raises MalformedDefinitionError
instead of silently falling back to an empty table. The byte-level BPE vs
WordPiece decision is made here, once.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from voxredact.core.errors import MalformedDefinitionError

BYTE_LEVEL = "ByteLevel"


@dataclass(frozen=True)
class AddedToken:
    content: str
    id: int
    special: bool = False


@dataclass(frozen=True)
class PreTokenizerFlags:
    is_byte_level_bpe: bool = False
    add_prefix_space: bool = False


@dataclass(frozen=True)
class TokenizerDefinition:
    vocab: Dict[str, int]
    merges: List[Tuple[str, str]] = field(default_factory=list)
    added_tokens: List[AddedToken] = field(default_factory=list)
    flags: PreTokenizerFlags = field(default_factory=PreTokenizerFlags)

    @property
    def is_byte_level_bpe(self) -> bool:
        return self.flags.is_byte_level_bpe

    @property
    def add_prefix_space(self) -> bool:
        return self.flags.add_prefix_space

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TokenizerDefinition":
        try:
            with open(path, "r", encoding="utf-8") as f:
                obj = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedDefinitionError(f"Tokenizer definition is not valid JSON: {e}") from e
        return cls.from_json(obj)

    @classmethod
    def from_json(cls, obj: Any) -> "TokenizerDefinition":
        if not isinstance(obj, dict):
            raise MalformedDefinitionError("Tokenizer definition must be a JSON object")

        model = obj.get("model")
        if not isinstance(model, dict):
            raise MalformedDefinitionError("Tokenizer definition has no 'model' object")

        vocab = _parse_vocab(model.get("vocab"))
        merges = _parse_merges(model.get("merges"))
        added = _parse_added_tokens(obj.get("added_tokens"))
        flags = _parse_flags(obj.get("pre_tokenizer"), model)

        return cls(vocab=vocab, merges=merges, added_tokens=added, flags=flags)


def _is_token_id(value: Any) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_vocab(raw: Any) -> Dict[str, int]:
    if not isinstance(raw, dict):
        raise MalformedDefinitionError("'model.vocab' must be an object of token -> id")
    for token, token_id in raw.items():
        if not _is_token_id(token_id):
            raise MalformedDefinitionError(f"Vocabulary id for {token!r} must be a non-negative integer")
    return dict(raw)


def _parse_merges(raw: Any) -> List[Tuple[str, str]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedDefinitionError("'model.merges' must be a list")

    merges = []
    for i, merge in enumerate(raw):
        # Two on-disk spellings: "a b" or ["a", "b"]
        if isinstance(merge, str):
            parts = merge.split(" ")
        elif isinstance(merge, list):
            parts = merge
        else:
            raise MalformedDefinitionError(f"Merge #{i} is neither a string nor a pair")

        if len(parts) != 2 or not all(isinstance(p, str) and p for p in parts):
            raise MalformedDefinitionError(f"Merge #{i} must name exactly two symbols: {merge!r}")
        merges.append((parts[0], parts[1]))
    return merges


def _parse_added_tokens(raw: Any) -> List[AddedToken]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedDefinitionError("'added_tokens' must be a list")

    tokens = []
    for entry in raw:
        if not isinstance(entry, dict) or not isinstance(entry.get("content"), str):
            raise MalformedDefinitionError(f"Added token without string 'content': {entry!r}")
        if not _is_token_id(entry.get("id")):
            raise MalformedDefinitionError(f"Added token {entry['content']!r} has no valid 'id'")
        tokens.append(AddedToken(entry["content"], entry["id"], bool(entry.get("special", False))))
    return tokens


def _parse_flags(pre_tokenizer: Any, model: Dict[str, Any]) -> PreTokenizerFlags:
    if pre_tokenizer is not None and not isinstance(pre_tokenizer, dict):
        raise MalformedDefinitionError("'pre_tokenizer' must be an object or null")
    pre_tokenizer = pre_tokenizer or {}

    nested = pre_tokenizer.get("pretokenizers") or []
    if not isinstance(nested, list):
        raise MalformedDefinitionError("'pre_tokenizer.pretokenizers' must be a list")
    nested = [p for p in nested if isinstance(p, dict)]

    is_byte_level = (
        pre_tokenizer.get("type") == BYTE_LEVEL
        or any(p.get("type") == BYTE_LEVEL for p in nested)
        or model.get("byte_fallback") is True
    )
    add_prefix_space = (
        pre_tokenizer.get("add_prefix_space") is True
        or any(p.get("type") == BYTE_LEVEL and p.get("add_prefix_space") is True for p in nested)
    )
    return PreTokenizerFlags(is_byte_level_bpe=is_byte_level, add_prefix_space=add_prefix_space)
