from shared.helper.HelperConfig import HelperConfig
from shared.clients.storage.StorageClientInterface import StorageClientInterface


class StorageClientManager:
    """
    Manager class to instantiate the configured storage client.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the storage engine from ENV configuration.

        Returns:
            str: Capitalised engine name (e.g. "Acronis").

        Raises:
            ValueError: If STORAGE_ENGINE is empty.
        """
        engine = self.helper_config.get_string_val("STORAGE_ENGINE", default="Acronis")
        if not engine:
            raise ValueError("No storage engine specified in configuration (STORAGE_ENGINE).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> StorageClientInterface:
        """
        Instantiates the storage client for the configured engine.

        Returns:
            StorageClientInterface: The instantiated client.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"StorageClient{engine}"
        try:
            module = __import__(
                f"shared.clients.storage.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported storage engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated storage client for engine: %s", engine)
        return client

    def get_client(self) -> StorageClientInterface:
        """
        Returns the instantiated storage client.
        """
        return self.client
