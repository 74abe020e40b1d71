# mac_audit
# Interactive, read-only audit of a used Mac: hardware identity, ownership
# locks, component health and a CPU stress test, folded into a risk verdict.

from .config import TOOL_VERSION as __version__

__all__ = ["__version__"]
