from fastapi import APIRouter

from tasksync import runtime
from tasksync.models.tasks import UpdateViewSettingsRequest, ViewSettings

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
def get_view_settings() -> ViewSettings:
    return runtime.get_store().get_view_settings()


@router.patch("")
def update_view_settings(request: UpdateViewSettingsRequest) -> ViewSettings:
    """Change display preferences. View settings are local only and never synced."""
    return runtime.get_store().update_view_settings(**request.model_dump(exclude_unset=True))
