from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Liveness probe; does not call Facturama"""
    app_settings = request.app.state.settings
    return {"status": "ok", "app": app_settings.app_name, "env": app_settings.app_env}
