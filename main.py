"""
Entry point for the frp multiuser auth plugin.

Responsibilities:
    - Expose one catch-all POST endpoint answering frp Login plugin calls
    - Load the credential file once at startup (fatal if unreadable)
    - Optionally keep the credentials fresh with a file watcher
    - Map request failures to JSON ``{"msg": ...}`` bodies

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - The credential store is created per app and injected into the handler
      and the reload coordinator; there is no module-level state.
    - Background reloading is tied to the FastAPI lifespan.

Run:
    python main.py --addr 0.0.0.0:7003 --auth-file ./tokens --inotify

frps.toml:
    [[httpPlugins]]
    name = "multiuser"
    addr = "127.0.0.1:7003"
    path = "/handler"
    ops = ["Login"]
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Callable, List, Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from frp_multiuser.config import Config, parse_args
from frp_multiuser.credentials.loader import CredentialFileError, load_credentials
from frp_multiuser.credentials.store import CredentialStore
from frp_multiuser.lifecycle import ServiceLifecycle
from frp_multiuser.logging_config import configure_logging
from frp_multiuser.plugin.handler import PluginError, decode_request, encode_response, handle_login
from frp_multiuser.plugin.schemas import ErrorBody
from frp_multiuser.reload.watcher import WatchError

log = logging.getLogger("frp_multiuser")


def create_app(
    config: Config,
    store: Optional[CredentialStore] = None,
    on_fatal: Optional[Callable[[BaseException], None]] = None,
    observer_factory: Optional[Callable[[], object]] = None,
) -> FastAPI:
    """
    Build a configured FastAPI app.

    Args:
        config (Config): Service configuration.
        store (Optional[CredentialStore]): Pre-seeded store; when omitted the
            credential file is loaded now.
        on_fatal (Optional[Callable]): Called if a background reload task dies.
        observer_factory (Optional[Callable]): watchdog observer override.

    Raises:
        CredentialFileError: If the initial credential file cannot be read.

    LLM Prompt Example:
        "Show how an application factory lets tests inject a pre-seeded store
        while production loads it from disk at boot."
    """
    if store is None:
        store = CredentialStore(load_credentials(config.auth_file))
    log.info("loaded %d users from %s", len(store), config.auth_file)

    lifecycle = ServiceLifecycle(
        config, store, on_fatal=on_fatal, observer_factory=observer_factory
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await lifecycle.start()
        except WatchError as exc:
            log.critical("inotify auth file error: %s", exc)
            raise
        try:
            yield
        finally:
            await lifecycle.stop()

    app = FastAPI(
        title="frp multiuser auth plugin",
        description="Authorizes frp client logins against a credential file",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.lifecycle = lifecycle

    @app.exception_handler(PluginError)
    async def plugin_error_handler(request: Request, exc: PluginError) -> JSONResponse:
        return JSONResponse(ErrorBody(msg=exc.msg).model_dump(), status_code=exc.status)

    @app.get("/health")
    def health():
        return {"status": "ok", "users": len(store)}

    @app.post("/{path:path}")
    async def login_plugin(request: Request, path: str) -> Response:
        """
        Answer one frp Login plugin call, whatever path frps is configured with.

        Returns:
            Response: 200 with ``{"reject", "reject_reason", "unchange"}``.

        Raises:
            PluginError: 400 on an undecodable body, 500 if the body cannot
            be read or the decision cannot be encoded.
        """
        try:
            raw = await request.body()
        except ClientDisconnect as exc:
            raise PluginError(500, "client disconnected before sending the body") from exc

        decision = handle_login(decode_request(raw), store)
        return Response(content=encode_response(decision), media_type="application/json")

    return app


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse flags, load credentials and serve until shutdown. Returns an exit status."""
    try:
        config = parse_args(argv)
    except ValueError as exc:
        configure_logging()
        log.critical("parse bind address error: %s", exc)
        return 1
    configure_logging(config.log_level)

    fatal: List[BaseException] = []
    server: Optional[uvicorn.Server] = None

    def _on_fatal(exc: BaseException) -> None:
        fatal.append(exc)
        if server is not None:
            server.should_exit = True

    try:
        app = create_app(config, on_fatal=_on_fatal)
    except CredentialFileError as exc:
        log.critical("read auth file error: %s", exc)
        return 1

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host or "0.0.0.0",
            port=config.port,
            lifespan="on",
            log_level=config.log_level.lower(),
        )
    )
    log.info("listen on %s", config.bind_address)
    server.run()

    if fatal or not server.started:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
