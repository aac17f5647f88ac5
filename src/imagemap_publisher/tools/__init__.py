"""Publishing tools, discovered by ``ToolRegistry``."""
