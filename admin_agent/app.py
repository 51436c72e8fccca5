# admin_agent/app.py
import time

# Load .env BEFORE any admin_agent imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response, PlainTextResponse

from admin_agent.dispatcher import AgentDispatcher
from admin_agent import monitoring
from admin_agent.db import Store
from admin_agent.errors import ConfigurationError, CompletionServiceError, HandlerError
from admin_agent.schemas import ChatRequest, ChatReply

app = FastAPI(title="Laundromat Admin Agent API")

# Store handle and dispatcher are built once and shared by every request
store = Store()
store.init_db()
dispatcher = AgentDispatcher(store)


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/api/agent-chat", response_model=ChatReply)
def agent_chat(req: ChatRequest):
    """
    POST /api/agent-chat
    Body: { "query": "...", "history": [{"role": "user"|"agent", "content": "..."}] }
    """
    monitoring.logger.info("Received /api/agent-chat request",
                           extra={"query_preview": req.query[:200], "history_len": len(req.history)})
    try:
        reply = dispatcher.handle_turn(req.query, req.history)
        return ChatReply(reply=reply)
    except ConfigurationError as e:
        monitoring.logger.error("Agent misconfigured", extra={"error": str(e)})
        return JSONResponse(status_code=500, content={"error": str(e)})
    except CompletionServiceError as e:
        monitoring.logger.exception("Completion service failed", extra={"upstream_status": e.status_code})
        return JSONResponse(status_code=502, content={"error": e.message})
    except HandlerError as e:
        monitoring.logger.exception("Handler failed", extra={"function": e.function_name})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    except Exception:
        monitoring.logger.exception("Unexpected error in /api/agent-chat handler")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)
