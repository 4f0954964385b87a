"""Local configuration store: repository interface, change bus, importer."""

from .events import ChangeNotificationBus
from .importer import (
    ConfigFileError,
    ImportedConfiguration,
    ImportResult,
    import_configuration,
    load_config_file,
    parse_config,
)
from .repository import (
    CannotRemoveLastVendorError,
    ConfigurationError,
    ConfigurationRepository,
    InMemoryConfigurationRepository,
    VendorAlreadyExistsError,
    VendorNotFoundError,
)

__all__ = [
    # Repository
    "ConfigurationRepository",
    "InMemoryConfigurationRepository",
    "ConfigurationError",
    "VendorNotFoundError",
    "VendorAlreadyExistsError",
    "CannotRemoveLastVendorError",
    # Change bus
    "ChangeNotificationBus",
    # Import
    "ConfigFileError",
    "ImportedConfiguration",
    "ImportResult",
    "import_configuration",
    "load_config_file",
    "parse_config",
]
