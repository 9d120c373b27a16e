# app/domains/evi/tasks.py

import logging
from typing import Any, Dict

from app.core.config import settings
from app.core.exceptions import SeminarHubError
from app.services.drive.folders import reconcile_duplicates

logger = logging.getLogger(__name__)


async def reconcile_duplicate_folders_task(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """
    루트 폴더 아래 같은 이름의 증빙자료 폴더를 찾아 설정된 정책(flag/merge)을 적용합니다.
    동시 요청으로 같은 폴더가 두 번 생성된 경우를 사후에 정리하기 위한 야간 작업입니다.
    """
    drive = ctx.get("drive")
    policy = settings.DRIVE_DUPLICATE_FOLDER_POLICY
    if drive is None:
        logger.info("Duplicate folder reconciliation skipped: Google Drive is not configured")
        return {"status": "skipped", "policy": policy.value}

    logger.info("ARQ task: reconciling duplicate folders under %s (policy: %s)", drive.root_folder_id, policy.value)
    try:
        report = await reconcile_duplicates(drive.client, drive.root_folder_id, policy)
    except SeminarHubError as e:
        logger.error("Duplicate folder reconciliation failed: %s (%s)", e.message, e.details)
        return {"status": "failed", "policy": policy.value, "message": e.message}

    logger.info("Duplicate folder reconciliation done: %d group(s)", len(report))
    return {"status": "success", "policy": policy.value, "groups": [g.model_dump() for g in report]}
