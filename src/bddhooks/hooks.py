"""Scenario and worker hooks: declaration and registry.

A hook can be declared in three shapes::

    @before
    def setup(context): ...

    @before("@ui and not @headless")
    def open_browser(context, page): ...

    @after(name="close db", tags="@db", timeout=5000)
    def close_db(context, db): ...

The plain call forms ``before(fn)``, ``before("@ui", fn)`` and
``before({"tags": "@ui"}, fn)`` are accepted as well.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, NamedTuple, Optional, Tuple

from .exceptions import DeclarationError
from .fixtures import SCENARIO, WORKER
from .location import Location, get_caller_location
from .tag_expression import TagExpression, compile_tag_expression
from .types import HookFn, TagSet

__all__ = [
    "Hook",
    "HookOptions",
    "HookPhase",
    "HookRegistry",
    "Hooks",
    "after",
    "after_all",
    "before",
    "before_all",
    "create_hooks",
    "default_registry",
    "hook_factory",
    "parse_hook_args",
]


class HookPhase(str, Enum):
    BEFORE = "before"
    AFTER = "after"

    def __str__(self):
        return self.value


class HookOptions(NamedTuple):
    name: Optional[str] = None
    tags: Optional[str] = None
    timeout: Optional[float] = None


@dataclass(frozen=True)
class Hook:
    """A declared unit of before/after behavior."""

    phase: HookPhase
    fn: HookFn
    scope: str = SCENARIO
    options: HookOptions = HookOptions()
    location: Location = Location()
    tags_expression: Optional[TagExpression] = field(init=False, default=None)

    def __post_init__(self):
        # Compiled once, so a malformed expression fails at declaration time
        if self.options.tags:
            object.__setattr__(self, "tags_expression", compile_tag_expression(self.options.tags))

    @property
    def name(self) -> Optional[str]:
        return self.options.name

    @property
    def timeout(self) -> Optional[float]:
        return self.options.timeout

    @property
    def kind(self) -> str:
        """Hook kind as shown in messages: before, after, before_all or after_all."""
        if self.scope == WORKER:
            return f"{self.phase.value}_all"
        return self.phase.value

    @property
    def title(self) -> str:
        return f"{self.kind} hook {self.name!r}" if self.name else f"{self.kind} hook"

    def matches(self, tags: TagSet) -> bool:
        return self.tags_expression is None or self.tags_expression.evaluate(tags)


class HookRegistry:
    """Ordered storage of declared hooks.

    Before hooks are kept in declaration order. After hooks are inserted at the
    head, so they unwind in reverse declaration order. The registry is append-only.
    """

    def __init__(self):
        self._hooks: List[Hook] = []

    def register(self, hook: Hook) -> Hook:
        if hook.phase == HookPhase.BEFORE:
            self._hooks.append(hook)
        else:
            self._hooks.insert(0, hook)
        return hook

    def query(self, phase: HookPhase, tags: Optional[TagSet] = None, scope: str = SCENARIO) -> List[Hook]:
        """Returns the hooks to run for a phase, in execution order.

        Args:
            phase (HookPhase): Before or after.
            tags (Optional[TagSet]): Tags of the running scenario.
            scope (str): ``"scenario"`` or ``"worker"``.

        Returns:
            List[Hook]: Matching hooks in registry order.
        """
        phase = HookPhase(phase)
        tags = tags or []
        return [hook for hook in self._hooks if hook.phase == phase and hook.scope == scope and hook.matches(tags)]

    def hooks(self, scope: Optional[str] = None) -> List[Hook]:
        return [hook for hook in self._hooks if scope is None or hook.scope == scope]

    def __iter__(self) -> Iterator[Hook]:
        return iter(list(self._hooks))

    def __len__(self) -> int:
        return len(self._hooks)


def _make_options(value: Any) -> HookOptions:
    if isinstance(value, HookOptions):
        options = value
    elif isinstance(value, str):
        options = HookOptions(tags=value)
    elif isinstance(value, dict):
        unknown = set(value) - set(HookOptions._fields)
        if unknown:
            raise DeclarationError(
                f"Unknown hook option(s): {', '.join(sorted(unknown))}. "
                f"Expected any of: {', '.join(HookOptions._fields)}."
            )
        options = HookOptions(**value)
    else:
        raise DeclarationError(
            "Hook options must be a tag expression string, a dict or HookOptions, "
            f"got {type(value).__name__}: {value!r}"
        )

    if options.name is not None and not isinstance(options.name, str):
        raise DeclarationError(f"Hook name must be a string, got {options.name!r}")

    if options.timeout is not None:
        if isinstance(options.timeout, bool) or not isinstance(options.timeout, (int, float)) or options.timeout <= 0:
            raise DeclarationError(f"Hook timeout must be a positive number of milliseconds, got {options.timeout!r}")

    return options


def parse_hook_args(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Tuple[HookOptions, Optional[HookFn]]:
    """Resolves the declaration arguments into hook options and the hook function.

    Args:
        args (Tuple[Any, ...]): Positional declaration arguments.
        kwargs (Dict[str, Any]): Keyword options (name, tags, timeout).

    Raises:
        DeclarationError: If the arguments match none of the accepted shapes.

    Returns:
        Tuple[HookOptions, Optional[HookFn]]: The options, and the function when it
        was passed (``None`` means the declaration is used as a decorator factory).
    """
    if len(args) > 2:
        raise DeclarationError(f"Hook declaration accepts at most 2 positional arguments, got {len(args)}.")

    if len(args) == 2:
        options_arg, fn = args
        if not callable(fn):
            raise DeclarationError(f"Hook function must be callable, got {type(fn).__name__}: {fn!r}")
    elif len(args) == 1 and callable(args[0]) and not isinstance(args[0], HookOptions):
        options_arg, fn = None, args[0]
    elif len(args) == 1:
        options_arg, fn = args[0], None
    else:
        options_arg, fn = None, None

    if options_arg is not None and kwargs:
        raise DeclarationError("Hook options must be passed either positionally or as keywords, not both.")

    if options_arg is None:
        options_arg = kwargs

    return _make_options(options_arg), fn


def hook_factory(phase: HookPhase, scope: str, registry: HookRegistry) -> Callable[..., Any]:
    """Returns a declaration function (e.g. ``before``) bound to a registry.

    Args:
        phase (HookPhase): Phase of the declared hooks.
        scope (str): ``"scenario"`` or ``"worker"``.
        registry (HookRegistry): Registry the hooks are added to.

    Returns:
        Callable[..., Any]: The declaration function.
    """
    phase = HookPhase(phase)

    def declare(*args: Any, **kwargs: Any):
        options, fn = parse_hook_args(args, kwargs)
        location = get_caller_location()

        def register(hook_fn: HookFn) -> HookFn:
            if not callable(hook_fn):
                raise DeclarationError(f"Hook function must be callable, got {type(hook_fn).__name__}: {hook_fn!r}")
            registry.register(Hook(phase=phase, fn=hook_fn, scope=scope, options=options, location=location))
            return hook_fn

        if fn is not None:
            return register(fn)
        return register

    declare.__name__ = f"{phase.value}_all" if scope == WORKER else phase.value
    declare.__qualname__ = declare.__name__
    return declare


class Hooks(NamedTuple):
    before: Callable[..., Any]
    after: Callable[..., Any]
    before_all: Callable[..., Any]
    after_all: Callable[..., Any]


def create_hooks(registry: HookRegistry) -> Hooks:
    """Returns the four declaration functions bound to ``registry``."""
    return Hooks(
        before=hook_factory(HookPhase.BEFORE, SCENARIO, registry),
        after=hook_factory(HookPhase.AFTER, SCENARIO, registry),
        before_all=hook_factory(HookPhase.BEFORE, WORKER, registry),
        after_all=hook_factory(HookPhase.AFTER, WORKER, registry),
    )


default_registry = HookRegistry()
"""Process-wide registry used by the module-level declaration functions."""

before, after, before_all, after_all = create_hooks(default_registry)
