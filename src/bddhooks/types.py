from typing import Any, Callable, Dict, List

Fixtures = Dict[str, Any]
TagSet = List[str]
HookFn = Callable[..., Any]
StepFn = Callable[..., Any]
EnvironmentValues = Dict[str, str]
