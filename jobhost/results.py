from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class BindResult:
    """The envelope handed to the invocation pipeline for each bound parameter. The post action, when there is one, is
    run after the job function returns."""
    result: Any
    post_action: Callable[[], None] | None = None

    def run_post_action(self):
        if self.post_action is not None:
            self.post_action()
