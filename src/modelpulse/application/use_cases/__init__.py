from .find_best import BestPick, FindBestEndpointUseCase
from .select_endpoint import SelectEndpointUseCase

__all__ = ["BestPick", "FindBestEndpointUseCase", "SelectEndpointUseCase"]
