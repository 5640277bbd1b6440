from .environment import BehaveHookEnvironment, get_environment
from .steps import bind_decorator_steps

__all__ = ["BehaveHookEnvironment", "bind_decorator_steps", "get_environment"]
