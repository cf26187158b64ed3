"""Uniform attempt → on_success → on_failure template for pipeline stages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class Stage(Generic[T, R]):
    """One fallible step and its two continuations."""

    name: str
    attempt: Callable[[], T]
    on_success: Callable[[T], R]
    on_failure: Callable[[Exception], R]


def run_stage(stage: Stage[T, R], log: Optional[logging.Logger] = None) -> R:
    """Run ``attempt``; hand its value to ``on_success`` or its error to ``on_failure``.

    Only errors raised by ``attempt`` are routed to the failure hook.
    """
    log = log or logger
    try:
        value = stage.attempt()
    except Exception as e:
        log.warning("Stage %s failed: %s", stage.name, e)
        return stage.on_failure(e)
    return stage.on_success(value)
