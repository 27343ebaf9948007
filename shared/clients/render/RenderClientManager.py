from shared.helper.HelperConfig import HelperConfig
from shared.clients.render.RenderClientInterface import RenderClientInterface
from shared.clients.render.basic.RenderClientBasic import RenderClientBasic


class RenderClientManager:
    """
    Manager class to instantiate the configured Markdown renderer and the basic fallback renderer.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()
        self.fallback_client = RenderClientBasic(helper_config=helper_config)

    def _get_engine_from_env(self) -> str:
        """
        Reads the render engine from ENV configuration.

        Returns:
            str: Capitalised engine name (e.g. "Markdownit").
        """
        engine = self.helper_config.get_string_val("RENDER_ENGINE", default="Markdownit")
        if not engine:
            raise ValueError("No render engine specified in configuration (RENDER_ENGINE).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> RenderClientInterface:
        """
        Instantiates the renderer for the configured engine.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"RenderClient{engine}"
        try:
            module = __import__(
                f"shared.clients.render.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported render engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated render client for engine: %s", engine)
        return client

    def get_client(self) -> RenderClientInterface:
        """Returns the configured renderer."""
        return self.client

    def get_fallback_client(self) -> RenderClientInterface:
        """Returns the basic renderer used when the configured one fails."""
        return self.fallback_client
