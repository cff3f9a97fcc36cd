"""
Intercept points on inbound host events.

A hook receives the event arguments and a `next` callable. Hooks run from the
highest priority down; the last `next` reaches the ordinary event handlers.
A hook that returns without calling `next` consumes the event.
"""

from typing import Any, Callable

HookNext = Callable[[tuple[Any, ...]], Any]
HookFunction = Callable[[tuple[Any, ...], HookNext], Any]


class HookRegistry:
    def __init__(self) -> None:
        self._hooks: dict[str, list[tuple[int, HookFunction]]] = {}

    def hook(self, name: str, priority: int, fn: HookFunction) -> Callable[[], None]:
        """Install a hook on a host event. Returns a function removing it again."""
        entries = self._hooks.setdefault(name, [])
        entry = (priority, fn)
        entries.append(entry)
        # stable sort keeps registration order among equal priorities
        entries.sort(key=lambda e: -e[0])

        def remove() -> None:
            try:
                entries.remove(entry)
            except ValueError:
                pass
        return remove

    def call(self, name: str, args: tuple[Any, ...], original: HookNext) -> Any:
        chain = [fn for _, fn in self._hooks.get(name, ())]

        def run(index: int, call_args: tuple[Any, ...]) -> Any:
            if index < len(chain):
                return chain[index](call_args, lambda a: run(index + 1, a))
            return original(call_args)

        return run(0, args)
