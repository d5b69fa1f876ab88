# roleplay/core/service_base.py
"""
Base service class for platform-backed services.

Services wrap an optional platform capability (the "client"). They provide:
- Idempotent initialization
- Consistent error wrapping
- Health check interface
- Resource cleanup
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, TypeVar, Generic
import logging

from roleplay.core.exceptions import ServiceError, ConfigurationError

ConfigType = TypeVar('ConfigType')


class BaseService(ABC, Generic[ConfigType]):
    """
    Abstract base class for trainer services.

    A service whose platform capability is absent still initializes; it
    simply reports itself as degraded in its health check.
    """

    def __init__(
        self,
        config: Optional[ConfigType] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the service.

        Args:
            config: Service-specific configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._initialized = False
        self._client = None

        self.service_name = self.__class__.__name__

    @abstractmethod
    def _initialize_client(self) -> Any:
        """
        Set up the underlying platform capability.

        Returns:
            The initialized client, or None if the capability is absent
        """

    def initialize(self) -> None:
        """
        Initialize the service. Multiple calls are safe.

        Raises:
            ConfigurationError: If configuration is invalid
            ServiceError: If initialization fails
        """
        if self._initialized:
            self.logger.debug(f"{self.service_name} already initialized")
            return

        try:
            self.logger.info(f"Initializing {self.service_name}...")
            self._validate_config()
            self._client = self._initialize_client()
            self._initialized = True
            self.logger.info(f"{self.service_name} initialized successfully")

        except ConfigurationError:
            raise
        except Exception as e:
            error_msg = f"Failed to initialize {self.service_name}"
            self.logger.error(error_msg, exc_info=True)
            raise ServiceError(
                service_name=self.service_name,
                message=error_msg,
                details={'original_error': str(e), 'error_type': type(e).__name__}
            ) from e

    def _validate_config(self) -> None:
        """Override to add service-specific validation"""
        if self.config is None:
            self.logger.debug(f"No configuration provided for {self.service_name}")

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check on the service.

        Returns:
            Dict containing:
            - healthy: bool indicating if service is healthy
            - status: string status message
            - details: optional additional information
        """

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def shutdown(self) -> None:
        """Release the platform capability. Errors are logged, not raised."""
        if not self._initialized:
            return

        try:
            self.logger.info(f"Shutting down {self.service_name}...")
            self._cleanup()
            self._client = None
            self._initialized = False
            self.logger.info(f"{self.service_name} shut down successfully")

        except Exception:
            self.logger.error(f"Error during {self.service_name} shutdown", exc_info=True)

    def _cleanup(self) -> None:
        """Override to add cleanup for your service"""

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "initialized": self._initialized,
        }
