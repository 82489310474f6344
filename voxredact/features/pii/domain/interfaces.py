from abc import ABC, abstractmethod
from typing import List


class IPiiDetector(ABC):
    """
    One category of sensitive data. `tag` becomes the placeholder prefix.
    """
    tag: str

    @abstractmethod
    def find(self, text: str) -> List[str]:
        """Returns every matched substring, in text order, duplicates included."""
        pass
