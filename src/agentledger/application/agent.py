"""
CoordinatedAgent: an agent that records every step it takes in the ledger.

Runs declare -> context -> attempt -> output -> validate, retrying failed
attempts within the same execution and handing off with a stop signal once
an output passes validation.
"""

import logging
from typing import Any

from agentledger.application.execution_engine import ExecutionEngine
from agentledger.application.knowledge import KnowledgeQueryService
from agentledger.domain.interfaces import ValidatorInterface, WorkUnitInterface
from agentledger.domain.models import AgentContext, ExecutionOutcome

logger = logging.getLogger(__name__)


class CoordinatedAgent:
    """
    Executor for a single unit of work and its validator.

    Holds no execution state of its own: everything it does is an event,
    so another process can observe or resume from the log.
    """

    def __init__(
        self,
        agent_id: str,
        engine: ExecutionEngine,
        knowledge: KnowledgeQueryService,
        work_unit: WorkUnitInterface,
        validator: ValidatorInterface,
        rmax: int = 0,
    ):
        """
        Args:
            agent_id: Identity the agent acts as
            engine: Engine that records the agent's events
            knowledge: Query layer consulted before acting
            work_unit: The work performed on each attempt
            validator: Judge of each attempt's output
            rmax: Further attempts allowed after the first fails (default: 0)
        """
        if rmax < 0:
            raise ValueError(f"rmax must be non-negative, got {rmax}")
        self.agent_id = agent_id
        self._engine = engine
        self._knowledge = knowledge
        self._work_unit = work_unit
        self._validator = validator
        self._rmax = rmax

    @property
    def rmax(self) -> int:
        return self._rmax

    def declare_intent(self, intent: str, context: dict[str, Any] | None = None) -> str:
        return self._engine.declare_intent(self.agent_id, intent, context)

    def get_context(self, intent: str) -> AgentContext:
        return self._knowledge.get_context_for_agent(self.agent_id, intent)

    def start_attempt(
        self,
        execution_id: str,
        action: str,
        parameters: dict[str, Any] | None = None,
    ) -> str:
        return self._engine.start_attempt(execution_id, self.agent_id, action, parameters)

    def produce_output(
        self,
        execution_id: str,
        attempt_id: str,
        output: str,
        artifacts: dict[str, Any] | None = None,
    ) -> str:
        return self._engine.produce_output(execution_id, attempt_id, output, artifacts)

    def validate_output(
        self,
        execution_id: str,
        attempt_id: str,
        passed: bool,
        criteria: list[str] | tuple[str, ...] = (),
        errors: list[str] | tuple[str, ...] = (),
    ) -> str:
        return self._engine.validate_output(
            execution_id,
            attempt_id,
            passed,
            validator=self._validator.name,
            criteria=criteria,
            errors=errors,
            agent_id=self.agent_id,
        )

    def send_stop_signal(
        self,
        reason: str,
        next_agent: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> str | None:
        return self._engine.send_stop_signal(self.agent_id, reason, next_agent, context)

    def execute(
        self,
        intent: str,
        action: str,
        parameters: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
        next_agent: str | None = None,
    ) -> ExecutionOutcome:
        """
        Run one execution end to end.

        Args:
            intent: What the agent is about to do
            action: Description recorded on each AttemptStarted
            parameters: Parameters passed to the work unit
            context: Extra context recorded on IntentDeclared
            next_agent: Agent to hand off to after a passing validation

        Returns:
            The outcome; ``passed`` is False when every attempt failed
            validation, in which case no stop signal is sent

        Raises:
            Whatever the work unit raises; the execution stays in attempting
        """
        parameters = dict(parameters or {})
        execution_id = self.declare_intent(intent, context)

        knowledge = self.get_context(intent)
        logger.debug(
            "%s: %d similar execution(s), %d pattern(s) for %r",
            self.agent_id,
            len(knowledge.similar_executions),
            len(knowledge.patterns),
            intent,
        )

        attempt_ids: list[str] = []
        output = ""
        retry_count = 0

        while retry_count <= self._rmax:
            attempt_id = self.start_attempt(execution_id, action, parameters)
            attempt_ids.append(attempt_id)

            work = self._work_unit.perform(action, parameters)
            output = work.output
            artifacts = dict(work.artifacts)
            if work.exit_code is not None:
                artifacts.setdefault("exit_code", work.exit_code)
            self.produce_output(execution_id, attempt_id, output, artifacts)

            result = self._validator.validate(work)
            self.validate_output(
                execution_id,
                attempt_id,
                result.passed,
                criteria=result.criteria,
                errors=result.errors,
            )

            if result.passed:
                handed_off_to = self.send_stop_signal(
                    f"Completed: {intent}",
                    next_agent=next_agent,
                    context={"execution_id": execution_id},
                )
                return ExecutionOutcome(
                    execution_id=execution_id,
                    passed=True,
                    output=output,
                    attempt_ids=tuple(attempt_ids),
                    handed_off_to=handed_off_to,
                )

            retry_count += 1
            logger.info(
                "%s: attempt %d of %d failed for %s",
                self.agent_id,
                retry_count,
                self._rmax + 1,
                execution_id,
            )

        logger.warning(
            "%s: gave up on %s after %d attempt(s)",
            self.agent_id,
            execution_id,
            len(attempt_ids),
        )
        return ExecutionOutcome(
            execution_id=execution_id,
            passed=False,
            output=output,
            attempt_ids=tuple(attempt_ids),
        )
