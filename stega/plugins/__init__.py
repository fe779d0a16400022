from .plugin import *
from .sources import *
from .registry import *
from .loader import *

__all__ = ()

# Load the exposed API of the plugin model
__all__ += plugin.__all__  # type: ignore[attr-defined]
# Load the exposed API of the plugin sources
__all__ += sources.__all__  # type: ignore[attr-defined]
# Load the exposed API of the static registry
__all__ += registry.__all__  # type: ignore[attr-defined]
# Load the exposed API of the plugin loader
__all__ += loader.__all__  # type: ignore[attr-defined]
