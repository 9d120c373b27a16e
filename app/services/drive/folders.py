# app/services/drive/folders.py

"""
원격 폴더 조회/생성(find-or-create)과 중복 폴더 정리 로직을 담당하는 모듈입니다.

조회와 생성은 트랜잭션으로 묶이지 않습니다. 서로 다른 요청이 동시에 같은 폴더를 찾지 못하고
각자 생성하면, Drive는 이름 중복을 허용하므로 같은 이름의 폴더가 두 개 생길 수 있습니다.
- 같은 프로세스 안에서는 (부모, 이름)별 asyncio.Lock으로 직렬화합니다 (선택 사항).
- 프로세스 간 경쟁은 주기적 정리 작업(`reconcile_duplicates`)이 정책에 따라 보고/병합합니다.
"""

import asyncio
import logging
import weakref
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from app.core.config import DuplicateFolderPolicy
from .client import DriveClient
from .models import DriveItem

logger = logging.getLogger(__name__)


class FolderLockRegistry:
    """
    (부모 ID, 폴더 이름)별 asyncio.Lock 저장소입니다.
    사용 중인 잠금만 유지되며, 참조가 사라지면 자동으로 제거됩니다.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, parent_id: str, name: str) -> asyncio.Lock:
        key = (parent_id, name)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


class FolderResolver:
    def __init__(
        self,
        client: DriveClient,
        *,
        locks: Optional[FolderLockRegistry] = None,
        duplicate_policy: DuplicateFolderPolicy = DuplicateFolderPolicy.FLAG,
    ):
        self._client = client
        self._locks = locks
        self._duplicate_policy = duplicate_policy

    async def resolve(self, parent_id: str, name: str) -> str:
        """
        `parent_id` 아래에서 이름이 정확히 `name`인 폴더의 ID를 반환합니다. 없으면 만듭니다.
        같은 이름의 폴더가 여러 개면 목록 조회의 첫 번째(가장 먼저 생성된) 폴더를 사용합니다.
        """
        if self._locks is None:
            return await self._find_or_create(parent_id, name)
        async with self._locks.lock_for(parent_id, name):
            return await self._find_or_create(parent_id, name)

    async def find(self, parent_id: str, name: str) -> List[DriveItem]:
        children = await self._client.list_children(parent_id, name=name, folders_only=True)
        return [item for item in children if item.name == name]

    async def _find_or_create(self, parent_id: str, name: str) -> str:
        matches = await self.find(parent_id, name)
        if matches:
            if len(matches) > 1 and self._duplicate_policy != DuplicateFolderPolicy.IGNORE:
                logger.warning(
                    "Duplicate folders named '%s' under %s: %s (using %s)",
                    name, parent_id, [m.id for m in matches], matches[0].id,
                )
            logger.info("Found existing folder: %s (ID: %s)", name, matches[0].id)
            return matches[0].id

        logger.info("Creating new folder: %s under %s", name, parent_id)
        folder = await self._client.create_folder(parent_id, name)
        logger.info("Created folder: %s (ID: %s)", name, folder.id)
        return folder.id


# =============================================================================
# 중복 폴더 정리
# =============================================================================
class DuplicateGroup(BaseModel):
    name: str
    kept_id: str
    duplicate_ids: List[str]
    moved_files: int = 0


def group_duplicate_folders(children: List[DriveItem]) -> Dict[str, List[DriveItem]]:
    """폴더만 골라 이름별로 묶은 뒤, 두 개 이상인 그룹만 반환합니다 (입력 순서 유지)."""
    groups: Dict[str, List[DriveItem]] = defaultdict(list)
    for item in children:
        if item.is_folder:
            groups[item.name].append(item)
    return {name: items for name, items in groups.items() if len(items) > 1}


async def reconcile_duplicates(
    client: DriveClient, parent_id: str, policy: DuplicateFolderPolicy
) -> List[DuplicateGroup]:
    """
    `parent_id` 바로 아래의 이름 중복 폴더를 찾아 정책을 적용합니다.

    - IGNORE: 아무것도 하지 않고 빈 목록을 반환합니다.
    - FLAG: 중복 그룹을 경고 로그로 남기고 보고합니다.
    - MERGE: 뒤쪽 중복 폴더의 파일을 첫 번째 폴더로 이동합니다. 폴더 자체는 삭제하지 않습니다.
    """
    if policy == DuplicateFolderPolicy.IGNORE:
        return []

    children = await client.list_children(parent_id, folders_only=True)
    report: List[DuplicateGroup] = []
    for name, folders in group_duplicate_folders(children).items():
        kept, duplicates = folders[0], folders[1:]
        group = DuplicateGroup(name=name, kept_id=kept.id, duplicate_ids=[d.id for d in duplicates])
        logger.warning("Duplicate folder group '%s': keeping %s, duplicates %s", name, kept.id, group.duplicate_ids)

        if policy == DuplicateFolderPolicy.MERGE:
            for duplicate in duplicates:
                for child in await client.list_children(duplicate.id):
                    await client.move_file(child.id, add_parent=kept.id, remove_parent=duplicate.id)
                    group.moved_files += 1
            logger.info("Merged %d item(s) into folder '%s' (%s)", group.moved_files, name, kept.id)
        report.append(group)
    return report
