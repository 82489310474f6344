from pathlib import Path
from typing import Any, Dict, Union

from ..data.bpe_tokenizer import BpeTokenizer
from ..domain.models import TokenizerDefinition


def load_tokenizer(path: Union[str, Path]) -> BpeTokenizer:
    """
    Standalone API: builds a tokenizer from a `tokenizer.json` on disk.
    Raises MalformedDefinitionError on a structurally broken file.
    """
    return BpeTokenizer(TokenizerDefinition.from_file(path))


def tokenizer_from_json(obj: Dict[str, Any]) -> BpeTokenizer:
    return BpeTokenizer(TokenizerDefinition.from_json(obj))
