"""Exception types raised by the bundle linter."""


class BundleLintError(Exception):
    """Base class for every linter failure that is not a finding."""


class BundleLoadError(BundleLintError, ValueError):
    """Raised when a bundle manifest is missing or malformed."""


class PluginConfigError(BundleLintError, ValueError):
    """Raised when the lint configuration or a rule option is invalid."""


class PluginLoadError(BundleLintError, ImportError):
    """Raised when an external plugin module cannot be imported."""


class PluginExecutionError(BundleLintError, RuntimeError):
    """Wrap an unexpected failure raised inside a fatal plugin."""

    def __init__(self, plugin_id: str, message: str) -> None:
        super().__init__(f"{plugin_id}: {message}")
        self.plugin_id = plugin_id


class FormatterNotFoundError(BundleLintError, KeyError):
    """Raised when no formatter matches the requested name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
