"""
Wires bddhooks into behave's environment file functions.

Usage in a suite's ``environment.py``::

    from behave import fixture
    from bddhooks.bddhooks_behave import BehaveHookEnvironment
    from bddhooks.hooks import after, before

    @fixture
    def browser_page(context):
        page = open_page()
        yield page
        page.close()

    @before("@ui")
    def login(context, page):
        page.login()

    environment = BehaveHookEnvironment(fixtures={"page": browser_page})
    before_all = environment.before_all
    after_all = environment.after_all
    before_scenario = environment.before_scenario
    after_scenario = environment.after_scenario

Official Behave documentation: https://behave.readthedocs.io/en/latest/api/#environment-file-functions
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from behave.fixture import use_fixture
from behave.model import Scenario
from behave.runner import Context

from ..configuration import Settings, load_settings
from ..constants import BDD_CONTEXT_FIXTURE
from ..exceptions import ResolutionError
from ..fixtures import SCENARIO, WORKER, BddContext, fixture_names_for_hooks
from ..hooks import Hook, HookPhase, HookRegistry, default_registry
from ..runner import FixtureResolver, HookRunner
from ..steps import StepRegistry, default_step_registry
from ..types import Fixtures
from .steps import ENVIRONMENT_ATTR, bind_decorator_steps, get_environment

__all__ = ["BehaveHookEnvironment", "get_environment"]

logger = logging.getLogger(__name__)

BDD_CONTEXT_ATTR = "bdd_context"


def make_tags(scenario: Scenario) -> list:
    """Returns the scenario's effective tags with the '@' prefix used by tag expressions."""
    return [tag if tag.startswith("@") else f"@{tag}" for tag in map(str, scenario.effective_tags)]


class BehaveHookEnvironment:
    """
    Runs the registered hooks from behave's environment file functions and
    provides their fixtures.

    Fixtures are resolved by name, in this order: fixtures already resolved for
    the running scenario, worker fixtures, scenario fixtures (behave fixture
    functions, set up with ``use_fixture`` so behave cleans them up), and finally
    attributes already set on the behave context.
    """

    registry: HookRegistry
    """Registry the hooks are selected from."""

    step_registry: StepRegistry
    """Decorator steps bound into behave's step registry in ``before_all``."""

    fixtures: Dict[str, Callable[..., Any]]
    """Scenario fixtures: name mapped to a behave fixture function."""

    worker_fixtures: Dict[str, Callable[..., Any]]
    """Worker fixtures: set up in ``before_all``, cleaned up after ``after_all``."""

    def __init__(
        self,
        registry: Optional[HookRegistry] = None,
        step_registry: Optional[StepRegistry] = None,
        fixtures: Optional[Dict[str, Callable[..., Any]]] = None,
        worker_fixtures: Optional[Dict[str, Callable[..., Any]]] = None,
        settings: Optional[Settings] = None,
    ):
        self.registry = default_registry if registry is None else registry
        self.step_registry = default_step_registry if step_registry is None else step_registry
        self.fixtures = dict(fixtures or {})
        self.worker_fixtures = dict(worker_fixtures or {})
        self.settings = load_settings() if settings is None else settings
        self.runner = HookRunner(self.registry, self.settings.default_timeout)

        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.worker_cache: Fixtures = {}
        self.scenario_cache: Fixtures = {}

    # --- Event loop ---

    def run(self, awaitable: Awaitable[Any]) -> Any:
        """Runs an awaitable to completion on the environment's event loop."""
        if self.loop is None or self.loop.is_closed():
            self.loop = asyncio.new_event_loop()
        return self.loop.run_until_complete(awaitable)

    def settle(self, result: Any) -> Any:
        if inspect.isawaitable(result):
            return self.run(result)
        return result

    def close(self) -> None:
        if self.loop is not None and not self.loop.is_closed():
            self.loop.close()
        self.loop = None

    # --- Fixtures ---

    def make_bdd_context(self, context: Context, scenario: Scenario) -> BddContext:
        return BddContext(
            world=context,
            tags=make_tags(scenario),
            test=scenario.feature,
            test_info=scenario,
            worker_info=context.config,
        )

    def get_bdd_context(self, context: Context) -> BddContext:
        bdd_context = getattr(context, BDD_CONTEXT_ATTR, None)
        if bdd_context is None:
            bdd_context = self.make_bdd_context(context, context.scenario)
        return bdd_context

    def resolve_fixture(self, context: Context, name: str, scope: str = SCENARIO) -> Any:
        """Returns the value of fixture ``name`` for the running scenario or worker.

        Raises:
            ResolutionError: If no source provides the fixture.
        """
        if scope == SCENARIO and name in self.scenario_cache:
            return self.scenario_cache[name]

        if name in self.worker_cache:
            return self.worker_cache[name]

        if scope == SCENARIO and name in self.fixtures:
            logger.debug("Set up fixture %r", name)
            value = use_fixture(self.fixtures[name], context)
            self.scenario_cache[name] = value
            return value

        if hasattr(context, name):
            return getattr(context, name)

        raise ResolutionError(
            f"Unknown fixture {name!r}. Register it with BehaveHookEnvironment(fixtures=...) "
            "or set it as attribute on the behave context."
        )

    def make_fixture_resolver(self, context: Context, scope: str) -> FixtureResolver:
        """Returns the resolver the runner calls for the fixtures of each hook.

        Fixtures are resolved per hook, so one unresolvable fixture only fails the
        hook requesting it.
        """

        def resolve_fixtures(hook: Hook) -> Fixtures:
            return {name: self.resolve_fixture(context, name, scope) for name in fixture_names_for_hooks([hook])}

        return resolve_fixtures

    def run_hooks(self, context: Context, bdd_context: BddContext, phase: HookPhase, scope: str) -> None:
        fixtures: Fixtures = {BDD_CONTEXT_FIXTURE: bdd_context}
        self.run(self.runner.run_phase(phase, fixtures, scope, self.make_fixture_resolver(context, scope)))

    # --- Environment file functions ---

    def before_all(self, context: Context) -> None:
        """Installs the environment, binds the decorator steps and runs the worker before hooks."""
        self.settings.apply_logging()
        setattr(context, ENVIRONMENT_ATTR, self)
        bind_decorator_steps(self, context)

        for name, fixture_func in self.worker_fixtures.items():
            logger.debug("Set up worker fixture %r", name)
            self.worker_cache[name] = use_fixture(fixture_func, context)

        bdd_context = BddContext(world=context, worker_info=context.config)
        self.run_hooks(context, bdd_context, HookPhase.BEFORE, WORKER)

    def after_all(self, context: Context) -> None:
        try:
            bdd_context = BddContext(world=context, worker_info=context.config)
            self.run_hooks(context, bdd_context, HookPhase.AFTER, WORKER)
        finally:
            self.worker_cache = {}
            self.close()

    def before_scenario(self, context: Context, scenario: Scenario) -> None:
        self.scenario_cache = {}
        bdd_context = self.make_bdd_context(context, scenario)
        setattr(context, BDD_CONTEXT_ATTR, bdd_context)

        self.run_hooks(context, bdd_context, HookPhase.BEFORE, SCENARIO)

    def after_scenario(self, context: Context, scenario: Scenario) -> None:
        # behave calls this even when before_scenario failed
        try:
            bdd_context = getattr(context, BDD_CONTEXT_ATTR, None) or self.make_bdd_context(context, scenario)
            self.run_hooks(context, bdd_context, HookPhase.AFTER, SCENARIO)
        finally:
            self.scenario_cache = {}
