from abc import ABC, abstractmethod
from typing import List


class ITokenizer(ABC):
    """
    Word-level subword encoder feeding span-based entity models.
    """
    @abstractmethod
    def encode_word(self, word: str) -> List[int]:
        """Encodes one word into subword ids, without special tokens."""
        pass

    @abstractmethod
    def special_token_id(self, token: str) -> int:
        """Id of an added/special token, or the unknown id if absent."""
        pass
