"""Fixture dependency resolution.

Hooks declare the fixtures they need by parameter name. The first positional
parameter receives the world object (behave's ``context``), every other named
parameter is a fixture name::

    @before("@ui")
    def open_browser(context, page, test_info):
        ...

Here ``page`` must be supplied by the caller, ``test_info`` is auto-injected.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set, Tuple

from .constants import AUTO_INJECT_FIXTURES, BDD_CONTEXT_FIXTURE, WORKER_AUTO_INJECT_FIXTURES
from .exceptions import ResolutionError
from .types import Fixtures, HookFn, TagSet

__all__ = [
    "BddContext",
    "SCENARIO",
    "WORKER",
    "auto_inject_fixture_names",
    "bind_fixture_arguments",
    "fixture_names_for_hooks",
    "fixture_names_needed_by",
    "fixture_parameter_names",
    "get_auto_inject_fixtures",
    "get_bdd_context",
    "is_auto_inject_fixture",
]

SCENARIO = "scenario"
WORKER = "worker"

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
_NAMED = (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)


@dataclass
class BddContext:
    """State of the running scenario (or worker) shared by all hooks and steps."""

    world: Any = None
    """Object the behaviors execute against (the behave Context)."""

    tags: TagSet = field(default_factory=list)
    """Tags of the running scenario, each with the '@' prefix."""

    test: Any = None
    """Handle of the test type owning the scenario (the behave Feature)."""

    test_info: Any = None
    """Handle of the running test (the behave Scenario)."""

    worker_info: Any = None
    """Handle of the worker (the behave Configuration)."""


def get_bdd_context(fixtures: Fixtures) -> BddContext:
    """Returns the BddContext stored in a resource bag, or an empty one."""
    bdd_context = fixtures.get(BDD_CONTEXT_FIXTURE)
    if bdd_context is None:
        return BddContext()
    return bdd_context


def auto_inject_fixture_names(scope: str = SCENARIO) -> Tuple[str, ...]:
    if scope == WORKER:
        return WORKER_AUTO_INJECT_FIXTURES
    return AUTO_INJECT_FIXTURES


def is_auto_inject_fixture(name: str, scope: str = SCENARIO) -> bool:
    return name in auto_inject_fixture_names(scope)


def get_auto_inject_fixtures(bdd_context: BddContext, scope: str = SCENARIO) -> Fixtures:
    """Builds the auto-injected fixtures from the current BddContext.

    Args:
        bdd_context (BddContext): State of the running scenario or worker.
        scope (str): Either ``"scenario"`` or ``"worker"``.

    Returns:
        Fixtures: Auto-injected names mapped to their current values.
    """
    if scope == WORKER:
        return {"worker_info": bdd_context.worker_info}

    return {
        "test_info": bdd_context.test_info,
        "test": bdd_context.test,
        "tags": list(bdd_context.tags),
    }


def fixture_parameter_names(fn: HookFn) -> List[str]:
    """Returns the fixture names a callable requests through its parameters.

    The first positional parameter is the receiver and is not a fixture. ``*args``
    and ``**kwargs`` do not name anything and are ignored.

    Args:
        fn (HookFn): The hook or step behavior.

    Returns:
        List[str]: Fixture names in declaration order.
    """
    try:
        parameters = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        # Builtins and some C callables have no introspectable signature
        return []

    if parameters and parameters[0].kind in _POSITIONAL:
        parameters = parameters[1:]

    return [parameter.name for parameter in parameters if parameter.kind in _NAMED]


def fixture_names_needed_by(fn: HookFn, scope: str = SCENARIO) -> Set[str]:
    """Returns the fixtures a caller must provide before ``fn`` can run.

    Auto-injected fixtures are always available and therefore excluded.

    Examples:
        >>> fixture_names_needed_by(lambda context, page, test_info: None)
        {'page'}
    """
    return {name for name in fixture_parameter_names(fn) if not is_auto_inject_fixture(name, scope)}


def fixture_names_for_hooks(hooks: Iterable[Any]) -> List[str]:
    """Returns the deduplicated fixture names needed by several hooks, in first-use order."""
    names: Dict[str, None] = {}
    for hook in hooks:
        for name in fixture_parameter_names(hook.fn):
            if not is_auto_inject_fixture(name, hook.scope):
                names.setdefault(name, None)
    return list(names)


def bind_fixture_arguments(fn: HookFn, world: Any, fixtures_arg: Fixtures) -> Tuple[list, Dict[str, Any]]:
    """Builds the positional and keyword arguments to call ``fn`` with.

    Args:
        fn (HookFn): The behavior to call.
        world (Any): Receiver passed as the first positional argument, when declared.
        fixtures_arg (Fixtures): Every fixture available to this call.

    Raises:
        ResolutionError: If a fixture without a default value is missing from ``fixtures_arg``.

    Returns:
        Tuple[list, Dict[str, Any]]: Positional and keyword arguments.
    """
    try:
        parameters = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return [world], {}

    args: list = []
    kwargs: Dict[str, Any] = {}
    accepts_any = False
    receiver = None

    if parameters and parameters[0].kind in _POSITIONAL:
        args.append(world)
        receiver = parameters[0].name
        parameters = parameters[1:]
    elif parameters and parameters[0].kind == inspect.Parameter.VAR_POSITIONAL:
        args.append(world)

    for parameter in parameters:
        if parameter.kind == inspect.Parameter.VAR_KEYWORD:
            accepts_any = True
            continue
        if parameter.kind not in _NAMED:
            continue

        if parameter.name in fixtures_arg:
            kwargs[parameter.name] = fixtures_arg[parameter.name]
        elif parameter.default is inspect.Parameter.empty:
            name = getattr(fn, "__qualname__", repr(fn))
            raise ResolutionError(f"Fixture {parameter.name!r} requested by {name!r} is not available.")

    if accepts_any:
        for name, value in fixtures_arg.items():
            if name != receiver:
                kwargs.setdefault(name, value)

    return args, kwargs
