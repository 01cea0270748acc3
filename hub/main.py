import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List
from urllib.parse import quote

import requests
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, RedirectResponse

from hub import assets, llm_client, registry
from hub.render import render_hub_html
from hub.validators import validate_chat_request


if not logging.getLogger().handlers:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

app = FastAPI(title="AI Trend Apps Hub")

allow_origins = [o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins or ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = time.time()
    request.state.request_id = rid
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time.time() - start) * 1000)
        log.info(
            "rid=%s method=%s path=%s status=%s dur_ms=%d",
            rid,
            request.method,
            request.url.path,
            getattr(response, "status_code", "?"),
            dur_ms,
        )


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.get("/", response_class=HTMLResponse)
def root() -> str:
    return render_hub_html(registry.scan_apps())


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/apps")
def list_apps() -> List[Dict[str, Any]]:
    return [a.model_dump() for a in registry.scan_apps()]


@app.get("/api/ai/status")
def ai_status() -> Dict[str, Any]:
    return llm_client.status()


@app.post("/api/ai/chat")
async def ai_chat(request: Request):
    """
    Proxy for browser apps: they call this instead of the upstream API so the key stays server-side.
    """
    if not llm_client.api_key():
        log.error("ai.chat: OPENAI_API_KEY is not configured")
        return _error("OpenAI API not configured", 500)

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("request body must be valid JSON", 400)

    try:
        req = validate_chat_request(payload)
    except ValueError as e:
        return _error(str(e), 400)

    try:
        # requests is blocking; keep it off the event loop
        completion = await run_in_threadpool(
            llm_client.chat_completion,
            req["messages"],
            model=req["model"],
            max_tokens=req["max_tokens"],
        )
    except llm_client.MissingCredentialsError:
        log.error("ai.chat: OPENAI_API_KEY disappeared mid-request")
        return _error("OpenAI API not configured", 500)
    except llm_client.UpstreamError as e:
        return _error("AI request failed", e.status_code)
    except requests.RequestException:
        log.exception("ai.chat: upstream transport error")
        return _error("Internal server error", 500)

    return completion.to_dict()


def _slash_redirect_target(request: Request) -> str:
    # Use the path as sent so escapes like %23 and %3F survive the round trip
    raw = request.scope.get("raw_path")
    if raw:
        path = raw.split(b"?", 1)[0].decode("latin-1")
    else:
        path = quote(request.url.path)
    return path + "/"


@app.get("/apps/{asset_path:path}")
def serve_app_asset(asset_path: str, request: Request):
    url_path = request.url.path
    asset = assets.resolve_asset(registry.APPS_DIR, asset_path, trailing_slash=url_path.endswith("/"))

    if asset.kind == assets.REDIRECT:
        return RedirectResponse(url=_slash_redirect_target(request), status_code=301)
    if asset.kind in (assets.FILE, assets.INDEX):
        try:
            st = assets.stat_asset(asset)
        except OSError:
            log.warning("assets: failed to stat %s", asset.path, exc_info=True)
            return _error("Not Found", 404)
        return FileResponse(asset.path, media_type=asset.media_type, stat_result=st)
    return _error("Not Found", 404)


def run() -> None:
    import uvicorn

    port = int(os.getenv("PORT", "3000") or 3000)
    host = os.getenv("HOST", "0.0.0.0")
    log.info("AI Trend Apps Hub running on http://localhost:%d", port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
