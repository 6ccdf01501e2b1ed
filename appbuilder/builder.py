import enum
import hashlib
import json
import logging
from typing import Awaitable, Callable, Dict, Any

from .errors import GenerationError, PublishError
from .gh_api import RepositoryPublisher
from .llm import CodeGenerator
from .models import BuildRequest, FailurePayload, NotificationPayload
from .notifier import notify_with_backoff
from .settings import Settings

logger = logging.getLogger("appbuilder.builder")

Notify = Callable[..., Awaitable[bool]]


class BuildState(str, enum.Enum):
    ACCEPTED = "accepted"
    GENERATING = "generating"
    PUBLISHING = "publishing"
    NOTIFYING = "notifying"
    DONE = "done"


class BuildOutcome(str, enum.Enum):
    SUCCESS = "success"  # evaluator confirmed receipt
    PARTIAL = "partial"  # repository published, notification never confirmed
    FAILURE = "failure"  # generation or publishing aborted the build


def _fallback_token(req: BuildRequest) -> str:
    # stable for a resent identical request, unlike a timestamp
    identity = json.dumps(
        [req.email, req.task, req.round, req.brief, req.checks],
        ensure_ascii=False,
    )
    return hashlib.sha1(identity.encode("utf-8")).hexdigest()[:12]

def derive_repo_name(req: BuildRequest) -> str:
    task = req.task.strip().replace(" ", "-")
    token = req.nonce or _fallback_token(req)
    return f"{task}-r{req.round}-{token}"


class BuildOrchestrator:
    """
    Runs one build request through Generate -> Publish -> Notify.

    ``run`` never raises: every failure ends the build in ``DONE`` with an
    outcome, and is visible only in the logs and in whether the evaluator
    hears back. Generation and publish failures are not reported to the
    evaluator unless ``NOTIFY_ON_FAILURE`` is enabled.
    """

    def __init__(
        self,
        settings: Settings,
        generator: CodeGenerator,
        publisher: RepositoryPublisher,
        notify: Notify = notify_with_backoff,
    ):
        self.settings = settings
        self.generator = generator
        self.publisher = publisher
        self.notify = notify

    def _enter(self, req: BuildRequest, state: BuildState) -> None:
        logger.info("[%s r%s] -> %s", req.task, req.round, state.value)

    async def _deliver(self, req: BuildRequest, payload: Dict[str, Any]) -> bool:
        return await self.notify(
            str(req.evaluation_url),
            payload,
            self.settings.NOTIFY_MAX_ATTEMPTS,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
        )

    async def _abort(self, req: BuildRequest, stage: BuildState, error: Exception) -> BuildOutcome:
        logger.error("[%s r%s] build aborted while %s: %s", req.task, req.round, stage.value, error)
        if self.settings.NOTIFY_ON_FAILURE:
            payload = FailurePayload(
                email=req.email,
                task=req.task,
                round=req.round,
                nonce=req.nonce,
                stage=stage.value,
                error=str(error),
            )
            await self._deliver(req, payload.model_dump())
        self._enter(req, BuildState.DONE)
        return BuildOutcome.FAILURE

    async def run(self, req: BuildRequest) -> BuildOutcome:
        state = BuildState.ACCEPTED
        self._enter(req, state)
        try:
            state = BuildState.GENERATING
            self._enter(req, state)
            try:
                content = await self.generator.generate(req.brief, req.checks, req.attachments)
            except GenerationError as e:
                return await self._abort(req, state, e)

            repo_name = derive_repo_name(req)
            state = BuildState.PUBLISHING
            self._enter(req, state)
            try:
                record = await self.publisher.publish(repo_name, content, req.brief, req.checks)
            except PublishError as e:
                return await self._abort(req, state, e)
            logger.info("[%s r%s] repository ready: %s", req.task, req.round, record.repo_url)

            state = BuildState.NOTIFYING
            self._enter(req, state)
            payload = NotificationPayload(
                email=req.email,
                task=req.task,
                round=req.round,
                nonce=req.nonce,
                **record.model_dump(),
            )
            delivered = await self._deliver(req, payload.model_dump())
        except Exception as e:
            logger.exception("[%s r%s] unexpected error in build pipeline", req.task, req.round)
            return await self._abort(req, state, e)

        self._enter(req, BuildState.DONE)
        return BuildOutcome.SUCCESS if delivered else BuildOutcome.PARTIAL
