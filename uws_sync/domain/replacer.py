"""参数替换：对作业现有参数值执行字面子串替换。"""

from __future__ import annotations

import logging

from uws_sync.domain.models import Job, ParameterReplacement

logger = logging.getLogger(__name__)


def apply_replacement(job: Job, replacement: ParameterReplacement) -> bool:
    """原地替换所有参数值中的字面子串，返回是否有参数被修改。"""
    replaced = False
    for param in job.parameters:
        updated = param.value.replace(replacement.original, replacement.new)
        if updated != param.value:
            logger.debug("replace param: %s: %s -> %s", param.name, param.value, updated)
            param.value = updated
            replaced = True
    if not replaced:
        logger.debug("no parameter modified by %s", replacement)
    return replaced
