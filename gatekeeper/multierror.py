"""An exception that carries several underlying errors at once."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class MultiError(Exception):
    """A composite error made of zero or more underlying errors."""

    def __init__(self, errors: Iterable[BaseException | None] = ()) -> None:
        self.errors: list[BaseException | None] = list(errors)
        super().__init__(*self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return ""
        if len(self.errors) == 1:
            return str(self.errors[0])
        lines = ["composite error:"]
        lines.extend(str(err) for err in self.errors if err is not None)
        return "\n\t".join(lines)

    def __iter__(self) -> Iterator[BaseException | None]:
        return iter(self.errors)

    def matches(self, target: BaseException | type[BaseException]) -> bool:
        """Tell whether any contained error is, or is caused by, ``target``.

        ``target`` may be an exception instance, matched by identity, or an
        exception class, matched by ``isinstance``.
        """
        return any(_error_matches(err, target) for err in self.errors)


def _error_matches(
    err: BaseException | None, target: BaseException | type[BaseException]
) -> bool:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        if err is target:
            return True
        if isinstance(target, type) and isinstance(err, target):
            return True
        if isinstance(err, MultiError) and err.matches(target):
            return True
        err = err.__cause__
    return False