"""Map a pod snapshot to one coarse status label.

Checks run in a fixed order and the first match wins:

1. deletion requested                        -> Terminating
2. container waiting on a blocking reason    -> matching label
3. container last terminated by OOMKilled    -> OOMKilled
4. phase Pending                             -> Pending
5. phase Failed, reason Evicted              -> Evicted
6. phase Failed                              -> Error
7. phase Running, some container not ready   -> NotReady
8. phase Running (all ready) or Succeeded    -> Healthy
9. anything else                             -> Unknown

A container crash-looping because its previous instance was OOMKilled is
reported as OOMKilled: the crash loop is the symptom, the memory limit the cause.
"""
from __future__ import annotations

from poddoctor.models import ContainerStatus, PodSnapshot, PodStatus

WAITING_STATUS: dict[str, PodStatus] = {
    "CrashLoopBackOff": PodStatus.CrashLoopBackOff,
    "ImagePullBackOff": PodStatus.ImagePullBackOff,
    "ErrImagePull": PodStatus.ImagePullBackOff,
    "CreateContainerError": PodStatus.CreateContainerError,
    "CreateContainerConfigError": PodStatus.CreateContainerConfigError,
}


def _oom_killed(cs: ContainerStatus) -> bool:
    last = cs.last_state.terminated
    return last is not None and last.reason == "OOMKilled"


def classify_pod_status(pod: PodSnapshot) -> PodStatus:
    if pod.deletion_requested:
        return PodStatus.Terminating

    for cs in pod.container_statuses:
        waiting = cs.state.waiting
        status = WAITING_STATUS.get(waiting.reason) if waiting is not None else None
        if status is None:
            continue
        if status == PodStatus.CrashLoopBackOff and _oom_killed(cs):
            return PodStatus.OOMKilled
        return status

    if any(_oom_killed(cs) for cs in pod.container_statuses):
        return PodStatus.OOMKilled

    if pod.phase == "Pending":
        return PodStatus.Pending
    if pod.phase == "Failed":
        if pod.reason == "Evicted":
            return PodStatus.Evicted
        return PodStatus.Error
    if pod.phase == "Running":
        if any(not cs.ready for cs in pod.container_statuses):
            return PodStatus.NotReady
        return PodStatus.Healthy
    if pod.phase == "Succeeded":
        return PodStatus.Healthy
    return PodStatus.Unknown
