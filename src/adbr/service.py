"""FastAPI integration entrypoint."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any, Iterable

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, Security
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .adb import ADBClient, ADBError
from .config import Settings, load_settings
from .errors import ParseError
from .global_option import GlobalOptions
from .logs import SERVICE_NAME, configure_logging, log_event
from .sockets import coerce_socket, parse_socket

CONFIG_ENV_VAR = "ADBR_CONFIG_PATH"
CONFIG_SEARCH_PATHS_ENV_VAR = "ADBR_CONFIG_SEARCH_PATHS"
DEFAULT_CONFIG_FILENAME = "config.yaml"
API_TOKEN_ENV_VAR = "ADBR_API_TOKEN"  # noqa: S105 - env var name, not a secret
DEFAULT_CONFIG_SEARCH_PATHS: tuple[Path, ...] = (
    Path("config.yaml"),
    Path("config/config.yaml"),
    Path(__file__).resolve().parent / DEFAULT_CONFIG_FILENAME,
)

auth_scheme = HTTPBearer(auto_error=False)
AuthCredentials = Annotated[HTTPAuthorizationCredentials | None, Security(auth_scheme)]


def create_app(
    *,
    config_path: str | None = None,
    adb_client: ADBClient | None = None,
    api_token: str | None = None,
    config_search_paths: Iterable[str | os.PathLike[str]] | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""

    configure_logging()

    state: dict[str, Any] = {
        "settings": None,
        "adb": adb_client,
        "config_path": config_path,
        "api_token": api_token or os.getenv(API_TOKEN_ENV_VAR),
        "config_search_paths": tuple(config_search_paths or ()),
    }

    @asynccontextmanager
    async def _lifespan(app: FastAPI):  # pragma: no cover - exercised via tests
        resolved_path = _resolve_config_path(state["config_path"], state["config_search_paths"])
        try:
            settings = load_settings(resolved_path)
        except Exception:
            log_event("config.load_failed", level=logging.ERROR, path=str(resolved_path))
            raise

        state["settings"] = settings
        state["config_path"] = str(resolved_path)
        log_event("config.loaded", path=str(resolved_path))
        try:
            yield
        finally:
            state["settings"] = None
            log_event("config.unloaded")

    app = FastAPI(
        title="adbr",
        description="Parse adb socket addresses and global options, and manage port forwards.",
        version="0.1.0",
        lifespan=_lifespan,
    )

    forward_lock = asyncio.Lock()

    @app.exception_handler(ParseError)
    async def _parse_error_handler(request: Request, exc: ParseError) -> JSONResponse:
        log_event("request.invalid", path=request.url.path, reason=str(exc))
        return JSONResponse(status_code=422, content={"detail": _describe(exc)})

    def _require_settings() -> Settings:
        settings = state.get("settings")
        if settings is None:
            raise HTTPException(status_code=503, detail={"message": "Service not initialized"})
        return settings

    def _get_adb() -> ADBClient:
        adb = state.get("adb")
        if adb is None:
            adb = _require_settings().client()
            state["adb"] = adb
        return adb

    async def _authorize(credentials: AuthCredentials) -> None:
        token = state.get("api_token")
        if token is None:
            return
        if credentials is None or credentials.credentials != token:
            raise HTTPException(status_code=401, detail={"message": "Invalid or missing API token"})

    @app.get("/")
    async def root() -> dict[str, Any]:
        settings = state.get("settings")
        return {
            "service": SERVICE_NAME,
            "version": app.version,
            "config_path": state.get("config_path"),
            "executable": settings.executable if settings else None,
            "command_timeout": settings.command_timeout if settings else None,
            "global_options": settings.global_options.to_args() if settings else [],
            "auth_enabled": bool(state.get("api_token")),
        }

    @app.get("/health")
    async def health() -> dict[str, Any]:
        adb = _get_adb()
        try:
            devices = await adb.list_devices()
        except ADBError as exc:
            log_event("health.failed", level=logging.WARNING, reason=str(exc))
            raise HTTPException(status_code=502, detail={"message": str(exc)}) from exc

        online = [device for device in devices if device.online]
        status_text = "healthy" if online else ("no-devices" if not devices else "issues")
        log_event("health.reported", status=status_text, devices=len(devices))
        return {
            "service": SERVICE_NAME,
            "status": status_text,
            "devices": [
                {
                    "serial": device.serial,
                    "state": device.state,
                    "online": device.online,
                    "attributes": device.attributes,
                }
                for device in devices
            ],
        }

    @app.post("/sockets/parse")
    async def parse_socket_endpoint(value: Annotated[str, Body(embed=True)]) -> dict[str, Any]:
        endpoint = parse_socket(value)
        return {"family": endpoint.FAMILY, "value": str(endpoint)}

    @app.post("/options/parse")
    async def parse_options_endpoint(
        options: Annotated[list[str], Body(embed=True)],
        credentials: AuthCredentials,
        resolve: Annotated[bool, Body(embed=True)] = False,
    ) -> dict[str, Any]:
        if resolve:
            # getaddrinfo blocks, so lookups run in a worker thread
            await _authorize(credentials)
            parsed = await asyncio.to_thread(GlobalOptions.parse, options, resolve=True)
        else:
            parsed = GlobalOptions.parse(options)
        return {
            "options": [str(option) for option in parsed],
            "args": parsed.to_args(),
        }

    @app.get("/forward")
    async def list_forwards(
        _: None = Depends(_authorize),
        serial: str | None = None,
    ) -> dict[str, Any]:
        adb = _get_adb()
        try:
            forwards = await adb.forward_list(serial)
        except ADBError as exc:
            raise HTTPException(status_code=502, detail={"message": str(exc)}) from exc
        return {
            "service": SERVICE_NAME,
            "count": len(forwards),
            "forwards": [
                {"serial": device, "local": local, "remote": remote}
                for device, local, remote in forwards
            ],
        }

    @app.post("/forward")
    async def add_forward(
        serial: Annotated[str, Body(embed=True)],
        local: Annotated[str, Body(embed=True)],
        remote: Annotated[str, Body(embed=True)],
        no_rebind: Annotated[bool, Body(embed=True)] = False,
        _: None = Depends(_authorize),
    ) -> dict[str, Any]:
        local_endpoint = coerce_socket(local)
        remote_endpoint = coerce_socket(remote)
        adb = _get_adb()
        async with forward_lock:
            try:
                output = await adb.forward(serial, local_endpoint, remote_endpoint, no_rebind=no_rebind)
            except ADBError as exc:
                log_event("forward.failed", level=logging.WARNING, serial=serial, reason=str(exc))
                raise HTTPException(status_code=502, detail={"message": str(exc)}) from exc
        log_event("forward.added", serial=serial, local=str(local_endpoint), remote=str(remote_endpoint))
        return {
            "service": SERVICE_NAME,
            "serial": serial,
            "local": str(local_endpoint),
            "remote": str(remote_endpoint),
            "output": output,
        }

    @app.delete("/forward")
    async def remove_forward(
        serial: Annotated[str, Query()],
        local: Annotated[str, Query()],
        _: None = Depends(_authorize),
    ) -> dict[str, Any]:
        local_endpoint = coerce_socket(local)
        adb = _get_adb()
        async with forward_lock:
            try:
                await adb.forward_remove(serial, local_endpoint)
            except ADBError as exc:
                log_event("forward.failed", level=logging.WARNING, serial=serial, reason=str(exc))
                raise HTTPException(status_code=502, detail={"message": str(exc)}) from exc
        log_event("forward.removed", serial=serial, local=str(local_endpoint))
        return {"service": SERVICE_NAME, "serial": serial, "local": str(local_endpoint)}

    return app


def _describe(exc: ParseError) -> dict[str, Any]:
    return {
        "message": str(exc),
        "error": type(exc).__name__,
        "value": exc.value,
        "target": exc.target,
    }


def _resolve_config_path(
    override: str | None = None,
    extra_search_paths: Iterable[str | os.PathLike[str]] | None = None,
) -> Path:
    candidate = override or os.getenv(CONFIG_ENV_VAR)
    if candidate:
        path = _normalize_path(candidate)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found at {path}")
        return path

    search_candidates: list[Path] = []
    env_search = os.getenv(CONFIG_SEARCH_PATHS_ENV_VAR)
    if env_search:
        for raw in env_search.split(os.pathsep):
            cleaned = raw.strip()
            if cleaned:
                search_candidates.append(Path(cleaned))

    if extra_search_paths:
        for configured in extra_search_paths:
            search_candidates.append(Path(str(configured)))

    search_candidates.extend(DEFAULT_CONFIG_SEARCH_PATHS)

    evaluated_paths: list[Path] = []
    for candidate_path in search_candidates:
        path = _normalize_path(candidate_path)
        evaluated_paths.append(path)
        if path.exists():
            return path

    searched = ", ".join(str(p) for p in evaluated_paths)
    raise FileNotFoundError(
        (
            "Unable to locate configuration file. Set "
            f"{CONFIG_ENV_VAR} or place config.yaml in one of: {searched}"
        )
    )


def _normalize_path(candidate: str | os.PathLike[str]) -> Path:
    path = Path(candidate).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path
