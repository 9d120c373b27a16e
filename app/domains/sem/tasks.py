# app/domains/sem/tasks.py

import logging
from typing import Any, Dict

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


async def send_seminar_created_notification_task(
    ctx: Dict[str, Any], seminar_id: int, title: str, owner_name: str, description: str = ""
) -> Dict[str, Any]:
    """
    새 세미나 개설 알림을 웹훅으로 전송합니다.
    웹훅 URL이 설정되지 않았으면 로그만 남깁니다.
    """
    webhook_url = settings.NOTIFICATION_WEBHOOK_URL
    if not webhook_url:
        logger.info("Notification webhook not configured; seminar %d '%s' created by %s", seminar_id, title, owner_name)
        return {"status": "skipped"}

    payload = {
        "text": f"새 세미나가 개설되었습니다: {title} ({owner_name})",
        "seminar": {"id": seminar_id, "title": title, "owner": owner_name, "description": description},
    }
    shared_http = ctx.get("http")
    http = shared_http or httpx.AsyncClient(timeout=10.0)
    try:
        response = await http.post(webhook_url, json=payload)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Failed to send seminar creation notification for %d: %s", seminar_id, e)
        return {"status": "failed", "message": str(e)}
    finally:
        if shared_http is None:
            await http.aclose()

    logger.info("Seminar creation notification sent for %d", seminar_id)
    return {"status": "success"}
