"""Steps declared as methods of page-object classes.

The methods are decorated with ``given``/``when``/``then``/``step`` and the class
is linked with the fixture providing its instances::

    @step_fixture("todo_page")
    class TodoPage:
        @when('I add todo "{text}"')
        def add_todo(self, text):
            ...

At call time the single non auto-injected fixture of the step is the ``self``
of the method.
"""

import functools
import weakref
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, List, Optional

from .exceptions import DeclarationError, ResolutionError
from .fixtures import is_auto_inject_fixture
from .location import Location, get_caller_location
from .types import Fixtures, StepFn

__all__ = [
    "StepConfig",
    "StepDefinition",
    "StepRegistry",
    "default_step_registry",
    "get_first_non_auto_inject_fixture",
    "given",
    "link_steps_with_fixture",
    "step",
    "step_decorator_factory",
    "step_fixture",
    "then",
    "when",
]

STEP_KEYWORDS = ("given", "when", "then", "step")


@dataclass(frozen=True)
class StepConfig:
    keyword: str
    pattern: str
    fn: StepFn
    location: Location = Location()
    fixture_name: Optional[str] = None


@dataclass(frozen=True)
class StepDefinition:
    """A step ready to be bound into a step registry.

    ``fn`` is called as ``fn(fixtures_arg, *args, **kwargs)``.
    """

    keyword: str
    pattern: str
    fn: Callable[..., Any]
    location: Location
    fixture_name: Optional[str] = None


# Step configuration of decorated methods, until their class is linked with a fixture
_decorated_steps: "weakref.WeakKeyDictionary[Callable[..., Any], StepConfig]" = weakref.WeakKeyDictionary()


def get_first_non_auto_inject_fixture(fixtures_arg: Fixtures, pattern: str) -> Any:
    """Returns the single fixture of a decorator step that is not auto-injected.

    Args:
        fixtures_arg (Fixtures): Fixtures of the step call.
        pattern (str): Step pattern, for error messages.

    Raises:
        ResolutionError: If there is no such fixture, or more than one.

    Returns:
        Any: The fixture value.
    """
    fixture_names = [name for name in fixtures_arg if not is_auto_inject_fixture(name)]

    if not fixture_names:
        raise ResolutionError(f'No suitable fixtures found for decorator step "{pattern}"')

    if len(fixture_names) > 1:
        raise ResolutionError(
            f'Several suitable fixtures found for decorator step "{pattern}": {", ".join(fixture_names)}'
        )

    return fixtures_arg[fixture_names[0]]


def dispatch_decorator_step(config: StepConfig, fixtures_arg: Fixtures, *args: Any, **kwargs: Any) -> Any:
    fixture = get_first_non_auto_inject_fixture(fixtures_arg, config.pattern)
    return config.fn(fixture, *args, **kwargs)


class StepRegistry:
    """Decorator steps linked with their fixture, in registration order."""

    def __init__(self):
        self._definitions: List[StepDefinition] = []

    def register_decorator_step(self, config: StepConfig) -> StepDefinition:
        definition = StepDefinition(
            keyword=config.keyword,
            pattern=config.pattern,
            fn=functools.partial(dispatch_decorator_step, config),
            location=config.location,
            fixture_name=config.fixture_name,
        )
        self._definitions.append(definition)
        return definition

    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(list(self._definitions))

    def __len__(self) -> int:
        return len(self._definitions)


default_step_registry = StepRegistry()


def step_decorator_factory(keyword: str) -> Callable[[str], Callable[[StepFn], StepFn]]:
    """Creates the ``given``, ``when``, ``then`` and ``step`` method decorators."""
    if keyword not in STEP_KEYWORDS:
        raise DeclarationError(f"Unknown step keyword {keyword!r}. Expected any of: {', '.join(STEP_KEYWORDS)}.")

    def decorator_factory(pattern: str) -> Callable[[StepFn], StepFn]:
        if not isinstance(pattern, str) or not pattern:
            raise DeclarationError(f"Step pattern must be a non-empty string, got {pattern!r}")

        location = get_caller_location()

        def decorator(method: StepFn) -> StepFn:
            _decorated_steps[method] = StepConfig(keyword=keyword, pattern=pattern, fn=method, location=location)
            return method

        return decorator

    decorator_factory.__name__ = keyword
    decorator_factory.__qualname__ = keyword
    return decorator_factory


given = step_decorator_factory("given")
when = step_decorator_factory("when")
then = step_decorator_factory("then")
step = step_decorator_factory("step")


def link_steps_with_fixture(
    cls: type, fixture_name: str, registry: Optional[StepRegistry] = None
) -> List[StepDefinition]:
    """Registers the decorated methods defined on ``cls`` against ``fixture_name``.

    Only the class's own methods are linked; properties and other attributes are skipped.

    Args:
        cls (type): Page-object class.
        fixture_name (str): Fixture providing instances of ``cls``.
        registry (Optional[StepRegistry]): Target registry (defaults to the process registry).

    Raises:
        DeclarationError: If ``fixture_name`` is empty or names an auto-injected fixture.

    Returns:
        List[StepDefinition]: The registered definitions.
    """
    if not isinstance(fixture_name, str) or not fixture_name:
        raise DeclarationError(f"Step fixture name must be a non-empty string, got {fixture_name!r}")

    if is_auto_inject_fixture(fixture_name):
        raise DeclarationError(
            f"Step fixture name {fixture_name!r} is auto-injected and cannot provide the steps of {cls.__name__}."
        )

    if registry is None:
        registry = default_step_registry

    definitions = []
    for value in vars(cls).values():
        if not callable(value):
            continue
        try:
            config = _decorated_steps.get(value)
        except TypeError:
            # Not weak-referenceable, so never decorated
            continue
        if config is None:
            continue
        definitions.append(registry.register_decorator_step(replace(config, fixture_name=fixture_name)))

    return definitions


def step_fixture(fixture_name: str, registry: Optional[StepRegistry] = None) -> Callable[[type], type]:
    """Class decorator linking the class's decorator steps with ``fixture_name``."""

    def decorator(cls: type) -> type:
        link_steps_with_fixture(cls, fixture_name, registry)
        return cls

    return decorator
