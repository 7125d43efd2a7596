"""内容解释器注册中心：按配置键静态注册解释器工厂。"""

from __future__ import annotations

from collections.abc import Callable

from uws_sync.domain.errors import ConfigurationError
from uws_sync.domain.interpreters.base import BaseContentInterpreter
from uws_sync.domain.interpreters.jobinfo import JobInfoInterpreter
from uws_sync.domain.interpreters.json_content import JsonContentInterpreter
from uws_sync.domain.interpreters.text_param import TextParamInterpreter

InterpreterFactory = Callable[[], BaseContentInterpreter]


class ContentInterpreterRegistry:
    """内容解释器注册中心，统一管理可选解释器工厂。"""
    def __init__(self) -> None:
        self._factories: dict[str, InterpreterFactory] = {}
        self.register(JobInfoInterpreter.code, JobInfoInterpreter)
        self.register(JsonContentInterpreter.code, JsonContentInterpreter)
        self.register(TextParamInterpreter.code, TextParamInterpreter)

    def register(self, code: str, factory: InterpreterFactory) -> None:
        """注册解释器工厂到注册中心。"""
        self._factories[code] = factory

    def resolve(self, code: str) -> InterpreterFactory:
        """按配置键获取解释器工厂，未知键抛出 ConfigurationError。"""
        try:
            return self._factories[code]
        except KeyError as exc:
            raise ConfigurationError(
                f"unknown inline content handler: {code} (registered: {', '.join(self.codes())})"
            ) from exc

    def codes(self) -> list[str]:
        return sorted(self._factories)
