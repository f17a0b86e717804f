from .runtime import FunctionRuntime

__all__ = ["FunctionRuntime"]
