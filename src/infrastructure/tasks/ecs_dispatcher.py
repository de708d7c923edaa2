"""Amazon ECS implementation of the task dispatcher."""

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import TaskDispatchException
from src.infrastructure.tasks.base import TaskDispatcherBase


class ECSTaskDispatcher(TaskDispatcherBase):
    """Runs the transcoder as a one-off ECS task with container overrides."""

    def __init__(
        self,
        client: Any,
        cluster: str,
        task_definition: str,
        task_family: str,
        container_name: str,
        subnets: list[str],
        security_groups: list[str],
        assign_public_ip: bool = True,
        launch_type: str = "FARGATE",
        extra_environment: dict[str, str] | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            client: boto3 ECS client.
            cluster: Cluster name or ARN.
            task_definition: Task definition family[:revision] or ARN.
            task_family: Family used to look up running tasks.
            container_name: Container receiving the environment overrides.
            subnets: awsvpc subnets.
            security_groups: awsvpc security groups.
            assign_public_ip: Give the task a public IP (no NAT).
            launch_type: FARGATE or EC2.
            extra_environment: Static variables added to every launch.
        """
        self._client = client
        self._cluster = cluster
        self._task_definition = task_definition
        self._task_family = task_family
        self._container_name = container_name
        self._subnets = subnets
        self._security_groups = security_groups
        self._assign_public_ip = assign_public_ip
        self._launch_type = launch_type
        self._extra_environment = extra_environment or {}
        self._logger = get_logger(__name__)

    async def has_active_task(self) -> bool:
        """Look for RUNNING, then PENDING, tasks of the family."""
        loop = asyncio.get_event_loop()
        for desired_status in ("RUNNING", "PENDING"):

            def _list(status: str = desired_status) -> dict[str, Any]:
                return dict(
                    self._client.list_tasks(
                        cluster=self._cluster,
                        family=self._task_family,
                        desiredStatus=status,
                        maxResults=1,
                    )
                )

            response = await loop.run_in_executor(None, _list)
            if response.get("taskArns"):
                return True
        return False

    @timed
    async def dispatch(self, object_key: str, video_id: str, lock_owner: str) -> str:
        """Call RunTask with the video passed through the environment."""
        environment = {
            **self._extra_environment,
            "VIDEO_KEY": object_key,
            "VIDEO_ID": video_id,
            "LOCK_OWNER": lock_owner,
        }
        params: dict[str, Any] = {
            "cluster": self._cluster,
            "taskDefinition": self._task_definition,
            "launchType": self._launch_type,
            "count": 1,
            "networkConfiguration": {
                "awsvpcConfiguration": {
                    "subnets": self._subnets,
                    "securityGroups": self._security_groups,
                    "assignPublicIp": (
                        "ENABLED" if self._assign_public_ip else "DISABLED"
                    ),
                }
            },
            "overrides": {
                "containerOverrides": [
                    {
                        "name": self._container_name,
                        "environment": [
                            {"name": name, "value": value}
                            for name, value in environment.items()
                            if value
                        ],
                    }
                ]
            },
            "startedBy": f"intake-{video_id}"[:128],
        }

        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None, lambda: dict(self._client.run_task(**params))
            )
        except (ClientError, BotoCoreError) as e:
            raise TaskDispatchException(video_id, str(e)) from e

        failures = response.get("failures") or []
        if failures:
            reasons = ", ".join(
                f"{f.get('reason', 'unknown')} ({f.get('arn', '-')})" for f in failures
            )
            raise TaskDispatchException(video_id, reasons)

        tasks = response.get("tasks") or []
        if not tasks:
            raise TaskDispatchException(video_id, "RunTask returned no tasks")

        task_arn = str(tasks[0].get("taskArn", ""))
        self._logger.info(
            "Transcoding task launched",
            extra={"video_id": video_id, "task_arn": task_arn},
        )
        return task_arn
