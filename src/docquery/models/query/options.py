"""
Run options: execution hints attached to a query with
[`Query.with_run_options()`][docquery.models.query.Query.with_run_options].
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from ...errors import DuplicateOptionError, InvalidOptionError
from . import wire


class RunOption:
    """Base class of every run option."""

    def _apply(self, settings: "RunQuerySettings") -> "RunQuerySettings":
        raise NotImplementedError


@dataclass(frozen=True)
class ExplainOptions(RunOption):
    """
    Requests the query plan along with (or instead of) the results.

    Attributes:
        analyze: If True the query is executed and execution statistics are
            returned; otherwise only the plan is returned.
    """

    analyze: bool = False

    def _apply(self, settings: "RunQuerySettings") -> "RunQuerySettings":
        if settings.explain_options is not None:
            raise DuplicateOptionError("ExplainOptions can be specified only once")
        return replace(settings, explain_options=self)

    def to_wire(self) -> wire.ExplainOptions:
        return wire.ExplainOptions(analyze=self.analyze)


@dataclass(frozen=True)
class RunQuerySettings:
    """The accumulated run options of a query. Every option can be set only once."""

    explain_options: Optional[ExplainOptions] = None

    def with_options(self, options: Iterable[Optional[RunOption]]) -> "RunQuerySettings":
        """
        Returns new settings with `options` applied on top of these.

        Raises:
            InvalidOptionError: If an option is `None` or not a `RunOption`.
            DuplicateOptionError: If an option is already set.
        """
        settings = self
        for opt in options:
            if opt is None:
                raise InvalidOptionError("run option cannot be None")
            if not isinstance(opt, RunOption):
                raise InvalidOptionError(
                    f"unsupported run option type '{type(opt).__name__}'"
                )
            settings = opt._apply(settings)
        return settings

    @classmethod
    def from_options(cls, options: Iterable[Optional[RunOption]]) -> "RunQuerySettings":
        return cls().with_options(options)

    def explain_to_wire(self) -> Optional[wire.ExplainOptions]:
        if self.explain_options is None:
            return None
        return self.explain_options.to_wire()
