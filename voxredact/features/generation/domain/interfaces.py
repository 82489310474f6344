from abc import ABC, abstractmethod
from typing import Optional

from voxredact.core.cancellation import CancellationToken
from voxredact.features.recordings.domain.models import ApiKeys
from .models import ProviderConfig


class IGenerator(ABC):
    """
    Contract for the text-generation step run on the (redacted) transcript.
    """
    @abstractmethod
    def generate(
        self,
        text: str,
        config: ProviderConfig,
        api_keys: ApiKeys,
        token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Returns the model's output for `config.prompt` applied to `text`.

        Raises:
            MissingCredentialError: no key for `config.provider`.
            RemoteServiceError: the provider answered with a non-2xx status.
        """
        pass
