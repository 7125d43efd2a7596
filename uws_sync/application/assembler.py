"""作业组装器：将归一化请求输入合并为一个规范化作业描述。"""

from __future__ import annotations

import logging

from uws_sync.domain.attributes import apply_attribute, classify
from uws_sync.domain.enums import ExecutionPhase
from uws_sync.domain.models import (
    CONTENT_JOBINFO,
    CONTENT_PARAM_REPLACE,
    FormValue,
    InlineContent,
    Job,
    JobInfo,
    NormalizedInput,
    Parameter,
    ParameterReplacement,
)
from uws_sync.domain.replacer import apply_replacement

logger = logging.getLogger(__name__)


class JobAssembler:
    """按请求中出现顺序合并保留属性、普通参数与内联内容。"""

    def build(self, inputs: NormalizedInput) -> Job:
        """构建新作业；任何 FormatError 都会中止构建且不返回半成品。"""
        job = Job(phase=ExecutionPhase.pending, parameters=[])
        replacements: list[ParameterReplacement] = []

        for item in inputs.items:
            if isinstance(item, FormValue):
                self._process_value(job, item)
            elif isinstance(item, InlineContent):
                self._process_content(job, item, replacements)

        # 替换指令只作用于已解析完成的参数，因此放在最后统一执行。
        for replacement in replacements:
            apply_replacement(job, replacement)

        job.request_path = inputs.request_path
        job.remote_ip = inputs.client_ip
        logger.debug(
            "job assembled: params=%s run_id=%s job_info=%s",
            len(job.parameters),
            job.run_id,
            job.job_info is not None,
        )
        return job

    @staticmethod
    def _process_value(job: Job, item: FormValue) -> None:
        attribute = classify(item.name)
        if attribute is not None:
            apply_attribute(job, attribute, item.value)
        else:
            job.parameters.append(Parameter(item.name, item.value))

    @staticmethod
    def _process_content(job: Job, item: InlineContent, replacements: list[ParameterReplacement]) -> None:
        if item.name == CONTENT_JOBINFO:
            if job.job_info is not None:
                logger.debug("job info replaced by later inline content")
            job.job_info = item.value if isinstance(item.value, JobInfo) else JobInfo(content=str(item.value))
        elif item.name == CONTENT_PARAM_REPLACE:
            if not isinstance(item.value, ParameterReplacement):
                raise TypeError(f"{CONTENT_PARAM_REPLACE} content must be a ParameterReplacement")
            replacements.append(item.value)
        elif item.value is not None:
            logger.debug("inline content: %s -> new param", item.name)
            JobAssembler._process_value(job, FormValue(item.name, str(item.value)))
