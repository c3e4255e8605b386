"""
健康数据聚合

并发拉取四类记录（恢复/睡眠/训练/周期），共享同一个客户端与限流器。
任一拉取失败则整个请求失败，部分结果丢弃。
"""
import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from whoop_insight.integrations.whoop.client import WhoopClient
from whoop_insight.models.whoop import RecordKind, WhoopCycle, WhoopRecovery, WhoopSleep, WhoopWorkout
from whoop_insight.utils.datetime_helper import DateWindow

logger = logging.getLogger(__name__)

ALL_KINDS = (RecordKind.RECOVERY, RecordKind.SLEEP, RecordKind.WORKOUT, RecordKind.CYCLE)


class HealthDataBundle(BaseModel):
    """一次聚合请求的全部输入数据"""

    model_config = ConfigDict(frozen=True)

    user_id: int
    window: DateWindow
    recoveries: List[WhoopRecovery] = Field(default_factory=list)
    sleeps: List[WhoopSleep] = Field(default_factory=list)
    workouts: List[WhoopWorkout] = Field(default_factory=list)
    cycles: List[WhoopCycle] = Field(default_factory=list)


_BUNDLE_FIELDS = {
    RecordKind.RECOVERY: "recoveries",
    RecordKind.SLEEP: "sleeps",
    RecordKind.WORKOUT: "workouts",
    RecordKind.CYCLE: "cycles",
}


class HealthDataAggregator:
    """并发拉取并汇总健康记录"""

    def __init__(self, client: WhoopClient):
        self.client = client

    async def resolve_user_id(self, user_id: Optional[int] = None) -> int:
        """显式指定的用户ID优先，否则查询当前授权用户"""
        if user_id is not None:
            return user_id
        user = await self.client.get_user()
        return user.user_id

    async def _fetch_kind(self, kind: RecordKind, window: DateWindow):
        return kind, await self.client.fetch_records(kind, window)

    async def fetch_all(self, window: DateWindow, user_id: Optional[int] = None) -> HealthDataBundle:
        return await self.fetch_kinds(window, ALL_KINDS, user_id=user_id)

    async def fetch_kinds(
        self,
        window: DateWindow,
        kinds: Iterable[RecordKind],
        user_id: Optional[int] = None,
    ) -> HealthDataBundle:
        """
        并发拉取指定类型的记录

        所有任务都会被等待（按完成顺序），之后抛出最先观察到的异常；
        兄弟任务不会被取消。

        Args:
            window: 查询时间窗口
            kinds: 需要拉取的记录类型
            user_id: 可选用户ID（默认当前授权用户）

        Returns:
            HealthDataBundle，未请求的类型为空列表
        """
        resolved_user_id = await self.resolve_user_id(user_id)
        kinds = list(dict.fromkeys(kinds))

        tasks = [asyncio.create_task(self._fetch_kind(kind, window)) for kind in kinds]

        results: Dict[RecordKind, list] = {}
        first_error: Optional[Exception] = None

        for future in asyncio.as_completed(tasks):
            try:
                kind, records = await future
            except Exception as e:
                if first_error is None:
                    first_error = e
                continue
            results[kind] = records

        if first_error is not None:
            logger.error(f"健康数据拉取失败: user_id={resolved_user_id}, error={first_error}")
            raise first_error

        logger.info(
            f"健康数据拉取完成: user_id={resolved_user_id}, "
            + ", ".join(f"{kind.value}={len(results.get(kind, []))}" for kind in kinds)
        )

        return HealthDataBundle(
            user_id=resolved_user_id,
            window=window,
            **{_BUNDLE_FIELDS[kind]: results.get(kind, []) for kind in kinds},
        )
