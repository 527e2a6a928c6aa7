from functools import lru_cache, partial
from typing import Any

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import ValidationError

from pages_builder.ai.generator import ContentGenerator
from pages_builder.core.config import get_settings
from pages_builder.core.errors import AuthError
from pages_builder.core.github import GithubStore
from pages_builder.core.logger import logger
from pages_builder.core.model import TaskRequest
from pages_builder.core.orchestrator import TaskOrchestrator
from pages_builder.core.publisher import Publisher
from pages_builder.core.send_eval import send_evaluation

logger.info("Fresh Starting")

settings = get_settings()

# Presence only, never values
logger.info(f"Env presence: {settings.presence()}")
missing = settings.missing()
if missing:
    logger.warning(f"[WARNING] Missing environment variables: {', '.join(missing)}. Please check your .env file.")


@lru_cache
def get_orchestrator() -> TaskOrchestrator:
    notifier = partial(
        send_evaluation,
        max_retries=settings.NOTIFY_MAX_ATTEMPTS,
        timeout=settings.NOTIFY_TIMEOUT,
        initial_delay=settings.NOTIFY_INITIAL_DELAY,
    )
    return TaskOrchestrator(
        settings=settings,
        generator=ContentGenerator(settings),
        publisher=Publisher(settings, GithubStore(settings)),
        notifier=notifier,
    )


# App and Enables Cors
app = FastAPI(title="GitHub Pages App Builder")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=403, content={"error": "Invalid secret"})


# An unreadable body carries no secret that could be verified
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"==========Unreadable request body, sending 403==========\n{exc.errors()}")
    return JSONResponse(status_code=403, content={"error": "Invalid secret"})


# Just Health Check
@app.get("/", response_class=HTMLResponse)
async def home():
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>GitHub Pages App Builder</title>
    </head>
    <body>
        <h1>GitHub Pages App Builder</h1>
        <p>API is <strong>running</strong> and ready to receive tasks.</p>
        <p>API is currently using AI_MODEL = <strong>{settings.AI_MODEL}</strong></p>
        <h2>Endpoints:</h2>
        <ul>
            <li>
                POST /api-endpoint - Generate, publish and report an app
                <ul>
                    <li> Data in <strong>JsonBody</strong> Required </li>
                    <li> <strong>secret</strong>: must match SHARED_SECRET</li>
                    <li> brief: str</li>
                    <li> task: str (also the repository name)</li>
                    <li> email: str</li>
                    <li> round: int (1 creates, 2 revises)</li>
                    <li> nonce: str</li>
                    <li> evaluation_url: str</li>
                </ul>
            </li>
        </ul>
    </body>
    </html>
    """


@app.post("/api-endpoint")
async def api_endpoint(
    background_tasks: BackgroundTasks,
    payload: Any = Body(None),
    orchestrator: TaskOrchestrator = Depends(get_orchestrator),
):
    # The secret is checked on the raw body so a bad secret is always a 403,
    # whatever else is wrong with the request
    body = payload if isinstance(payload, dict) else {}
    logger.info(f"=====New task received | Email={body.get('email')} | Round={body.get('round')} | Task={body.get('task')}=====")

    orchestrator.authenticate(body.get("secret"))

    try:
        client_task = TaskRequest.model_validate(body)
    except ValidationError as e:
        logger.error(f"=====Task body is invalid, nothing will be processed=====\n{e}\n===============")
    else:
        logger.debug(f"=====Full task data=====\n{client_task.model_dump_json(indent=2, exclude={'secret'})}\n===============")
        # Runs after the response has been sent
        background_tasks.add_task(orchestrator.run, client_task)

    return {"message": "Request received and is being processed."}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
