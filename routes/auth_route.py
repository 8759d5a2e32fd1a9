"""Session probes used by the dashboard to decide whether to show the login page."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from utils.session_auth import session_token

router = APIRouter(prefix="/api/auth")


def _session_probe(request: Request) -> JSONResponse:
	if not session_token(request):
		return JSONResponse({"ok": False}, status_code=401)
	return JSONResponse({"ok": True})


@router.get("/me")
async def me(request: Request):
	return _session_probe(request)


@router.get("/ping")
async def ping(request: Request):
	return _session_probe(request)
