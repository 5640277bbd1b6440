"""Binds decorator steps into behave's step registry."""

import logging
from typing import Any, Callable, Optional

from behave import step_registry as behave_step_registry
from behave.runner import Context

from ..exceptions import ResolutionError
from ..fixtures import get_auto_inject_fixtures
from ..steps import StepDefinition

__all__ = ["bind_decorator_steps", "current_behave_step_registry", "get_environment", "make_behave_step"]

logger = logging.getLogger(__name__)

ENVIRONMENT_ATTR = "bdd_environment"

BOUND_ATTR = "_bddhooks_bound"


def get_environment(context: Context):
    """Returns the BehaveHookEnvironment installed on the behave context by ``before_all``.

    Raises:
        ResolutionError: If no environment was installed.
    """
    environment = getattr(context, ENVIRONMENT_ATTR, None)
    if environment is None:
        raise ResolutionError(
            "No bddhooks environment found on the behave context. "
            "Assign BehaveHookEnvironment.before_all as 'before_all' in environment.py."
        )
    return environment


def current_behave_step_registry(context: Optional[Context] = None) -> Any:
    """Returns the step registry behave matches steps against.

    The runner's registry is preferred. behave replaces the module level registry
    when it resets its runtime, so it is looked up at call time.
    """
    runner = getattr(context, "_runner", None) if context is not None else None
    registry = getattr(runner, "step_registry", None)
    if registry is None:
        registry = behave_step_registry.registry
    return registry


def make_behave_step(definition: StepDefinition) -> Callable[..., Any]:
    """Creates the behave step function calling a decorator step.

    The step's fixture is resolved through the environment installed on the
    context, and passed together with the auto-injected fixtures. Awaitable
    results run on the environment's event loop.
    """

    def behave_step(context: Context, *args: Any, **kwargs: Any) -> Any:
        environment = get_environment(context)
        bdd_context = environment.get_bdd_context(context)
        fixtures_arg = {
            definition.fixture_name: environment.resolve_fixture(context, definition.fixture_name),
            **get_auto_inject_fixtures(bdd_context),
        }
        return environment.settle(definition.fn(fixtures_arg, *args, **kwargs))

    behave_step.__doc__ = f"Decorator step {definition.pattern!r} of fixture {definition.fixture_name!r}."
    return behave_step


def bind_decorator_steps(environment, context: Optional[Context] = None) -> int:
    """Adds the environment's decorator steps to behave's step registry, once per registry.

    Args:
        environment (BehaveHookEnvironment): Environment owning the decorator steps.
        context (Optional[Context]): Behave context, used to find the runner's registry.

    Returns:
        int: Number of step definitions added.
    """
    registry = current_behave_step_registry(context)
    if getattr(registry, BOUND_ATTR, None) is environment:
        return 0

    count = 0
    for definition in environment.step_registry:
        registry.add_step_definition(definition.keyword, definition.pattern, make_behave_step(definition))
        logger.debug("Bound %s step %r (%s)", definition.keyword, definition.pattern, definition.location)
        count += 1

    setattr(registry, BOUND_ATTR, environment)
    return count
