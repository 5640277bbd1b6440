"""Execution of scenario and worker hooks."""

import functools
import logging
from typing import Callable, Optional

from .exceptions import HookTimeoutError
from .fixtures import SCENARIO, WORKER, bind_fixture_arguments, get_auto_inject_fixtures, get_bdd_context
from .hooks import Hook, HookPhase, HookRegistry, default_registry
from .types import Fixtures
from .utils import call_with_timeout

__all__ = ["FixtureResolver", "HookRunner"]

logger = logging.getLogger(__name__)

FixtureResolver = Callable[[Hook], Fixtures]
"""Returns the fixtures one hook needs, set up on demand. May raise for that hook."""


def _add_note(error: BaseException, note: str) -> None:
    if hasattr(error, "add_note"):  # 3.11+
        error.add_note(note)


def _format_ms(timeout: float) -> str:
    if float(timeout).is_integer():
        return str(int(timeout))
    return str(timeout)


class HookRunner:
    """Selects the hooks of a phase and runs them in order.

    Before hooks fail fast: the first error aborts the phase. After hooks always
    run to the end, and the first error is raised once all of them ran.
    """

    registry: HookRegistry
    """Registry the hooks are selected from."""

    default_timeout: Optional[float]
    """Timeout in milliseconds for hooks declared without one. None disables it."""

    def __init__(self, registry: Optional[HookRegistry] = None, default_timeout: Optional[float] = None):
        self.registry = default_registry if registry is None else registry
        self.default_timeout = default_timeout

    async def run_phase(
        self,
        phase: HookPhase,
        fixtures: Fixtures,
        scope: str = SCENARIO,
        resolve_fixtures: Optional[FixtureResolver] = None,
    ) -> None:
        """Runs every hook of ``phase`` whose tag expression matches the running scenario.

        Args:
            phase (HookPhase): Before or after.
            fixtures (Fixtures): Resource bag of the scenario or worker. Its
                ``bdd_context`` entry supplies the tags and the world.
            scope (str): ``"scenario"`` or ``"worker"``.
            resolve_fixtures (Optional[FixtureResolver]): Called right before each
                hook for the fixtures it needs. A failure counts as that hook's error.

        Raises:
            Exception: The failure of the phase, unchanged (see class docstring).
        """
        phase = HookPhase(phase)
        bdd_context = get_bdd_context(fixtures)
        hooks = self.registry.query(phase, bdd_context.tags, scope)

        if hooks:
            logger.debug("Running %d %s hook(s) for tags %r", len(hooks), hooks[0].kind, bdd_context.tags)

        error: Optional[BaseException] = None
        for hook in hooks:
            try:
                await self.run_hook(hook, fixtures, resolve_fixtures)
            except Exception as e:
                if phase == HookPhase.BEFORE:
                    raise
                if error is None:
                    error = e

        if error is not None:
            raise error

    async def run_scenario_hooks(
        self, phase: HookPhase, fixtures: Fixtures, resolve_fixtures: Optional[FixtureResolver] = None
    ) -> None:
        await self.run_phase(phase, fixtures, SCENARIO, resolve_fixtures)

    async def run_worker_hooks(
        self, phase: HookPhase, fixtures: Fixtures, resolve_fixtures: Optional[FixtureResolver] = None
    ) -> None:
        await self.run_phase(phase, fixtures, WORKER, resolve_fixtures)

    async def run_hook(
        self, hook: Hook, fixtures: Fixtures, resolve_fixtures: Optional[FixtureResolver] = None
    ) -> None:
        """Runs a single hook with its fixtures and timeout.

        On Python 3.11+ a failure gets a note naming the hook and its declaration
        location. On older versions they are only in the error log record.
        """
        bdd_context = get_bdd_context(fixtures)
        timeout = hook.timeout or self.default_timeout

        logger.debug("Start %s (%s)", hook.title, hook.location)
        try:
            if resolve_fixtures is not None:
                fixtures = {**fixtures, **resolve_fixtures(hook)}
            fixtures_arg = {**fixtures, **get_auto_inject_fixtures(bdd_context, hook.scope)}
            args, kwargs = bind_fixture_arguments(hook.fn, bdd_context.world, fixtures_arg)
            await call_with_timeout(
                functools.partial(hook.fn, *args, **kwargs),
                timeout,
                self.get_timeout_message(hook, timeout),
            )
        except HookTimeoutError as e:
            e.hook = hook
            logger.error("%s (%s)", e, hook.location)
            raise
        except Exception as e:
            _add_note(e, f"in {hook.title} declared at {hook.location}")
            logger.error("%s failed (%s): %r", hook.title, hook.location, e)
            raise
        logger.debug("Finish %s", hook.title)

    @staticmethod
    def get_timeout_message(hook: Hook, timeout: Optional[float]) -> str:
        name = f'"{hook.name}" ' if hook.name else ""
        if timeout:
            return f"{hook.kind} hook {name}timeout ({_format_ms(timeout)} ms)"
        return f"{hook.kind} hook {name}timeout"
