from typing import Optional, Any
from abc import ABC, abstractmethod

from phoenix.repositories.base_repository import BaseRepository
from phoenix.core.exceptions import AppError
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService(ABC):
    """Base class for request-facing services.

    ``execute`` validates, runs, and wraps unexpected failures in AppError so
    endpoints only ever map AppError subclasses to HTTP responses.
    """

    def __init__(self, repository: Optional[BaseRepository] = None):
        self.repository = repository
        self.logger = LOGGER

    async def execute(self, *args, **kwargs) -> Any:
        """Validate input, then run the service logic.

        Raises:
            ValidationError: If input is invalid
            AppError: If execution fails
        """
        try:
            self.validate(*args, **kwargs)
            return await self.run(*args, **kwargs)

        except AppError:
            raise

        except Exception as e:
            self.logger.error(
                f"Service execution failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__}
            )
            raise AppError(f"Service execution failed: {str(e)}", original_error=e)

    def validate(self, *args, **kwargs):
        """Override to reject bad input with ValidationError before ``run``."""
        pass

    @abstractmethod
    async def run(self, *args, **kwargs) -> Any:
        pass
