import logging
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse

from .builder import BuildOrchestrator
from .errors import AuthError
from .gh_api import RepositoryPublisher
from .llm import CodeGenerator
from .logs import configure_logging
from .models import AckResponse, BuildRequest, ErrorResponse
from .security import verify_secret
from .settings import Settings

logger = logging.getLogger("appbuilder.api")

def build_orchestrator(settings: Settings) -> BuildOrchestrator:
    return BuildOrchestrator(
        settings,
        generator=CodeGenerator(settings),
        publisher=RepositoryPublisher(settings),
    )

def create_app(settings: Optional[Settings] = None, orchestrator: Optional[BuildOrchestrator] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)
    orchestrator = orchestrator or build_orchestrator(settings)

    app = FastAPI(title="LLM App Builder", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    @app.exception_handler(AuthError)
    async def _auth_error(request: Request, exc: AuthError):
        return JSONResponse(status_code=403, content=ErrorResponse(error=str(exc)).model_dump())

    # ---- MAIN ENDPOINT ----
    @app.post("/build", response_model=AckResponse, responses={403: {"model": ErrorResponse}})
    async def build(req: BuildRequest, background_tasks: BackgroundTasks) -> AckResponse:
        if not verify_secret(req.secret, settings):
            logger.warning("rejected build for task %s: invalid secret", req.task)
            raise AuthError("Invalid secret")

        logger.info("accepted build for task %s round %s", req.task, req.round)
        # runs after the acknowledgement has been sent
        background_tasks.add_task(orchestrator.run, req)
        return AckResponse(message="Request accepted, processing...")

    return app
